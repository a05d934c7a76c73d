# mediahub/delivery.py
"""Deliver resolved media to the client.

``deliver`` first asks the specialized providers for a direct URL and, when
one exists, answers with a :class:`Redirect`; no bytes pass through this
server. Otherwise yt-dlp is spawned and its stdout is piped to the response
as it is produced. The first chunk is read before any header goes out, so
a pipeline that dies immediately still becomes a structured error. After
that, failures only truncate the stream. Closing the response iterator
(client disconnect) terminates the child processes.
"""
import inspect
import logging
from dataclasses import dataclass

from .config import DEFAULT_AUDIO_BITRATE
from .errors import DeliveryFailed, ExtractorError, InvalidRequest
from .hooks import DeliveryHooks
from .models import Redirect, StreamConstraints
from .normalizer import quality_value
from .utils import content_disposition, emit_status

logger = logging.getLogger(__name__)

FORMATS = ("mp4", "mp3")
MIMETYPES = {"mp4": "video/mp4", "mp3": "audio/mpeg", "m4a": "audio/mp4"}


class StreamBody:
    """Response iterable whose ``close()`` always reaches the child processes.

    The WSGI server calls ``close()`` when the client goes away, even if the
    generator was never started.
    """

    def __init__(self, chunks, stream, on_abort=None):
        self._chunks = chunks
        self._stream = stream
        self._on_abort = on_abort

    def __iter__(self):
        return self._chunks

    def close(self):
        # an unstarted generator gets no GeneratorExit, so report the abort here
        unstarted = inspect.getgeneratorstate(self._chunks) == inspect.GEN_CREATED
        try:
            if unstarted and self._on_abort is not None:
                self._on_abort()
            self._chunks.close()
        finally:
            self._stream.cancel()


@dataclass
class StreamingDelivery:
    body: StreamBody
    mimetype: str
    content_disposition: str


def parse_height(quality):
    """'720', '720p' -> 720. Anything without a number means no ceiling."""
    value = quality_value(quality) if isinstance(quality, str) else 0
    return value or None


def parse_bitrate(quality):
    value = quality_value(quality) if isinstance(quality, str) else 0
    if not value:
        return DEFAULT_AUDIO_BITRATE
    return max(32, min(value, 320))


def build_constraints(fmt, quality):
    if fmt == "mp3":
        return StreamConstraints(fmt="mp3", audio_bitrate=parse_bitrate(quality))
    return StreamConstraints(fmt="mp4", max_height=parse_height(quality))


class DeliveryStreamer:
    def __init__(self, resolver, extractor, hooks=None):
        self.resolver = resolver
        self.extractor = extractor
        self.hooks = hooks or DeliveryHooks()

    def deliver(self, url, platform, fmt, quality=None, title=None, tier="free", download_id=None):
        """Return a :class:`Redirect` or a :class:`StreamingDelivery`."""
        fmt = (fmt or "mp4").lower()
        if fmt not in FORMATS:
            raise InvalidRequest(f"Unsupported format '{fmt}'. Use mp4 or mp3.")
        event = {"url": url, "platform": platform.value, "format": fmt, "quality": quality,
                 "tier": tier, "download_id": download_id}

        info = self.resolver.resolve_specialized(url, platform)
        direct = info.direct_url_for(fmt) if info is not None else None
        if direct:
            logger.info(f"Redirecting {platform.value} {fmt} download to provider URL")
            self._finish(event, mode="redirect")
            return Redirect(direct)

        constraints = build_constraints(fmt, quality)
        try:
            stream = self.extractor.stream(url, constraints)
        except ExtractorError as e:
            self._fail(event, str(e))
            raise DeliveryFailed("The download could not be started. Please try again.")

        first = stream.read()
        if not first:
            rc = stream.returncode()
            stream.cancel()
            self._fail(event, f"no output, exit code {rc}: {stream.stderr_tail}")
            raise DeliveryFailed("The download produced no data. Please try another quality.")

        emit_status(download_id, "streaming")
        name = title or (info.title if info is not None else None) or "download"
        return StreamingDelivery(
            body=StreamBody(self._pump(stream, first, event), stream,
                            on_abort=lambda: self._abort(stream, event, 0)),
            mimetype=MIMETYPES.get(stream.extension, "application/octet-stream"),
            content_disposition=content_disposition(name, stream.extension),
        )

    def _pump(self, stream, first, event):
        sent = 0
        done = False
        try:
            sent += len(first)
            yield first
            for chunk in stream:
                sent += len(chunk)
                yield chunk
            rc = stream.returncode()
            if rc != 0 or stream.timed_out:
                # headers are gone; the client sees a truncated file
                self._fail(event, f"exit code {rc} after {sent} bytes: {stream.stderr_tail}")
            else:
                self._finish(event, mode="stream", bytes=sent)
            done = True
        except GeneratorExit:
            self._abort(stream, event, sent)
            done = True
            raise
        finally:
            if not done:
                self._fail(event, f"stream interrupted after {sent} bytes")
            stream.cancel()

    def _abort(self, stream, event, sent):
        logger.info(f"Client aborted {event['platform']} download after {sent} bytes, pids {stream.pids}")
        self.hooks.fire("aborted", bytes=sent, **event)
        emit_status(event["download_id"], "aborted")

    def _finish(self, event, **extra):
        self.hooks.fire("completed", **extra, **event)
        if event.get("tier") == "premium":
            self.hooks.record_premium_event(**event)
        emit_status(event["download_id"], "completed")

    def _fail(self, event, reason):
        logger.warning(f"Delivery failed for {event['platform']} {event['format']}: {reason}")
        self.hooks.fire("failed", reason=reason, **event)
        emit_status(event["download_id"], "failed")
