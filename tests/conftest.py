"""Shared fixtures for the mediahub test suite.

* No internet access in any test: HTTP sessions and yt-dlp are faked at
  the infrastructure boundary.
* The Flask app is built through ``create_app`` with injected fakes.
"""

from __future__ import annotations

import pytest

from mediahub import create_app
from mediahub.errors import ExtractorError
from mediahub.registry import build_registry

FULL_ENV = {
    "RAPIDAPI_KEY": "test-key",
    "YOUTUBE_API_HOST": "yt.example.test",
    "TIKTOK_API_HOST": "tt.example.test",
    "PINTEREST_API_HOST": "pin.example.test",
    "SPOTIFY_API_HOST": "sp.example.test",
    "TERABOX_API_HOST": "tb.example.test",
    "GENERAL_API_HOST": "all.example.test",
}


class FakeStream:
    """Stands in for ExtractionStream without spawning anything."""

    def __init__(self, chunks=(b"chunk-1", b"chunk-2"), returncode=0, extension="mp4"):
        self._chunks = list(chunks)
        self._returncode = returncode
        self.extension = extension
        self.timed_out = False
        self.cancel_calls = 0
        self.pids = [4242]
        self.stderr_tail = "fake stderr"

    def read(self):
        return self._chunks.pop(0) if self._chunks else b""

    def __iter__(self):
        while True:
            chunk = self.read()
            if not chunk:
                return
            yield chunk

    def returncode(self, timeout=None):
        return self._returncode

    def running(self):
        return self.cancel_calls == 0

    def cancel(self):
        self.cancel_calls += 1


class FakeExtractor:
    def __init__(self, info=None, error=None, stream=None):
        self.info = info
        self.error = error
        self.stream_obj = stream or FakeStream()
        self.probe_calls = []
        self.stream_calls = []

    def probe(self, url):
        self.probe_calls.append(url)
        if self.error is not None:
            raise self.error
        return self.info

    def stream(self, url, constraints):
        self.stream_calls.append((url, constraints))
        if self.error is not None:
            raise self.error
        return self.stream_obj


class FakeProvider:
    def __init__(self, outcome, name="fake-provider"):
        self.outcome = outcome
        self.name = name
        self.calls = []

    def resolve(self, url):
        self.calls.append(url)
        return self.outcome


def ytdlp_info(title="Sample Video"):
    """Minimal yt-dlp dump with one 720p mp4 and one m4a stream."""
    return {
        "title": title,
        "thumbnail": "https://img.example.test/t.jpg",
        "formats": [
            {"url": "https://cdn.example.test/v720", "ext": "mp4", "height": 720, "vcodec": "avc1", "acodec": "mp4a"},
            {"url": "https://cdn.example.test/v360", "ext": "mp4", "height": 360, "vcodec": "avc1", "acodec": "none"},
            {"url": "https://cdn.example.test/a", "ext": "m4a", "vcodec": "none", "acodec": "mp4a", "abr": 129.6},
        ],
    }


@pytest.fixture
def full_registry():
    return build_registry(FULL_ENV)


@pytest.fixture
def empty_registry():
    return build_registry({})


@pytest.fixture
def fake_extractor():
    return FakeExtractor(info=ytdlp_info())


@pytest.fixture
def failing_extractor():
    return FakeExtractor(error=ExtractorError("yt-dlp probe failed", returncode=1, stderr="ERROR: boom"))


@pytest.fixture
def make_client():
    """Factory: build a test client around the given registry/extractor."""

    def _make(registry, extractor, **kwargs):
        kwargs.setdefault("expand_url", lambda url: url)
        app = create_app(registry=registry, extractor=extractor, **kwargs)
        app.config["TESTING"] = True
        return app.test_client()

    return _make
