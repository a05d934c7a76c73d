"""Tests for the resolution orchestrator (resolver.py).

Providers are replaced through ``provider_factory`` so the chain order and
the soft/hard failure semantics can be observed call by call.
"""

from __future__ import annotations

import pytest
import requests

from mediahub.errors import (
    CollectionNotSupported, ExtractorError, ProviderHardFailure, ResolutionFailed, UnsupportedPlatform,
)
from mediahub.models import FormatDescriptor, HardFailure, MediaInfo, Platform, Resolved, SoftFailure
from mediahub.registry import build_registry
from mediahub.resolver import Resolver

from conftest import FULL_ENV, FakeExtractor, FakeProvider, ytdlp_info


YT_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def _info(formats=True) -> MediaInfo:
    return MediaInfo(
        title="From provider",
        thumbnail_url="https://img.test/p.jpg",
        platform=Platform.YOUTUBE,
        formats=[FormatDescriptor("video", resolutions=["720p"])] if formats else [],
        primary_download_url="https://cdn.test/direct" if formats else None,
    )


def _resolver(outcomes, extractor=None, env=FULL_ENV):
    """Build a Resolver whose providers answer with *outcomes*, in order."""
    made = []
    queue = list(outcomes)

    def factory(cfg, session=None):
        provider = FakeProvider(queue.pop(0) if queue else SoftFailure("exhausted"), name=cfg.name)
        made.append(provider)
        return provider

    resolver = Resolver(
        build_registry(env),
        extractor or FakeExtractor(info=ytdlp_info()),
        provider_factory=factory,
        expand_url=lambda url: url,
    )
    return resolver, made


class TestPrepare:
    def test_collection_rejected_before_any_call(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, made = _resolver([], extractor=extractor)
        with pytest.raises(CollectionNotSupported) as exc:
            resolver.resolve("https://youtube.com/playlist?list=XYZ")
        assert exc.value.code == "COLLECTION_NOT_SUPPORTED"
        assert made == []
        assert extractor.probe_calls == []

    def test_unsupported_rejected_before_any_call(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, made = _resolver([], extractor=extractor)
        with pytest.raises(UnsupportedPlatform):
            resolver.resolve("https://example.com/video/1")
        assert made == []
        assert extractor.probe_calls == []

    def test_short_url_expanded_before_classification(self) -> None:
        resolver, _ = _resolver([])
        resolver.expand_url = lambda url: "https://www.pinterest.com/someone/board/"
        with pytest.raises(CollectionNotSupported):
            resolver.prepare("https://pin.it/AbC")

    def test_prepare_returns_platform(self) -> None:
        resolver, _ = _resolver([])
        assert resolver.prepare(f"  {YT_URL} ") == (YT_URL, Platform.YOUTUBE)


class TestChain:
    def test_specialized_success_skips_fallback(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, made = _resolver([Resolved(_info())], extractor=extractor)
        info = resolver.resolve(YT_URL)
        assert info.title == "From provider"
        assert len(made) == 1 and made[0].calls == [YT_URL]
        assert extractor.probe_calls == []

    def test_soft_failure_falls_back_once(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, _ = _resolver([SoftFailure("HTTP 503")], extractor=extractor)
        info = resolver.resolve(YT_URL)
        assert extractor.probe_calls == [YT_URL]
        assert info.title == "Sample Video"
        assert info.platform is Platform.YOUTUBE

    def test_resolved_without_formats_falls_through(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, _ = _resolver([Resolved(_info(formats=False))], extractor=extractor)
        info = resolver.resolve(YT_URL)
        assert extractor.probe_calls == [YT_URL]
        assert info.formats

    def test_hard_failure_never_reaches_fallback(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, _ = _resolver([HardFailure("Content type not supported")], extractor=extractor)
        with pytest.raises(ProviderHardFailure) as exc:
            resolver.resolve("https://www.instagram.com/p/Cabc123/")
        assert exc.value.code == "UNSUPPORTED_CONTENT"
        assert "Content type" not in exc.value.message
        assert extractor.probe_calls == []

    def test_unconfigured_platform_goes_straight_to_fallback(self) -> None:
        extractor = FakeExtractor(info=ytdlp_info())
        resolver, made = _resolver([], extractor=extractor, env={})
        info = resolver.resolve(YT_URL)
        assert made == []
        assert extractor.probe_calls == [YT_URL]
        assert info.formats

    def test_everything_fails(self, failing_extractor) -> None:
        resolver, _ = _resolver([SoftFailure("timed out")], extractor=failing_extractor)
        with pytest.raises(ResolutionFailed) as exc:
            resolver.resolve(YT_URL)
        assert exc.value.status == 502
        assert len(exc.value.causes) == 2
        assert "timed out" in exc.value.causes[0]
        assert "boom" in exc.value.causes[1]

    def test_fallback_without_formats_fails(self) -> None:
        extractor = FakeExtractor(info={"title": "Nothing", "formats": []})
        resolver, _ = _resolver([SoftFailure("down")], extractor=extractor)
        with pytest.raises(ResolutionFailed):
            resolver.resolve(YT_URL)


class TestResolveSpecialized:
    def test_providers_share_one_session(self) -> None:
        sessions = []

        def factory(cfg, session=None):
            sessions.append(session)
            return FakeProvider(SoftFailure("down"), name=cfg.name)

        resolver = Resolver(build_registry(FULL_ENV), FakeExtractor(info=ytdlp_info()),
                            provider_factory=factory, expand_url=lambda url: url)
        resolver.resolve(YT_URL)
        resolver.resolve("https://www.instagram.com/p/Cabc123/")
        assert len(sessions) == 2
        assert isinstance(sessions[0], requests.Session)
        assert sessions[0] is sessions[1] is resolver.session

    def test_returns_none_when_chain_exhausted(self) -> None:
        resolver, _ = _resolver([SoftFailure("down")])
        causes = []
        assert resolver.resolve_specialized(YT_URL, Platform.YOUTUBE, causes) is None
        assert causes and "down" in causes[0]

    def test_extractor_errors_are_reported(self) -> None:
        extractor = FakeExtractor(error=ExtractorError("yt-dlp exited with code 1", returncode=1, stderr="ERROR: private"))
        resolver, _ = _resolver([], extractor=extractor, env={})
        with pytest.raises(ResolutionFailed) as exc:
            resolver.resolve(YT_URL)
        assert any("private" in c for c in exc.value.causes)
