# mediahub/platforms/extractor.py
"""yt-dlp as the generic fallback extractor.

Two capabilities: :meth:`YtDlpExtractor.probe` returns the JSON dump of a
URL, :meth:`YtDlpExtractor.stream` spawns yt-dlp writing the chosen
format to stdout and hands back an :class:`ExtractionStream` that owns
the child processes. Nothing outside this module touches subprocesses.
"""
import json
import logging
import subprocess
import threading
import time
from collections import deque

from ..config import (
    YTDLP_PATH, YTDLP_PROBE_TIMEOUT, DELIVERY_TIMEOUT, TERMINATE_GRACE, CHUNK_SIZE,
    USER_AGENT, DEFAULT_AUDIO_BITRATE,
)
from ..errors import ExtractorError
from ..utils import find_ffmpeg

logger = logging.getLogger(__name__)


class ExtractionStream:
    """Byte stream read from the stdout of the last process in a pipeline."""

    def __init__(self, processes, chunk_size=CHUNK_SIZE, timeout=DELIVERY_TIMEOUT, grace=TERMINATE_GRACE,
                 media_type="video", extension="mp4"):
        self.processes = list(processes)
        self.chunk_size = chunk_size
        self.grace = grace
        self.media_type = media_type
        self.extension = extension
        self.timed_out = False
        self.cancelled = False
        self._stderr = deque(maxlen=20)
        self._lock = threading.Lock()
        for proc in self.processes:
            if proc.stderr is not None:
                threading.Thread(target=self._drain, args=(proc.stderr,), daemon=True).start()
        self._watchdog = None
        if timeout:
            self._watchdog = threading.Timer(timeout, self._expire)
            self._watchdog.daemon = True
            self._watchdog.start()

    def _drain(self, pipe):
        try:
            for line in iter(pipe.readline, b""):
                text = line.decode("utf-8", "ignore").strip()
                if text:
                    self._stderr.append(text)
        except (OSError, ValueError):
            # pipe closed under us during cancel
            pass

    def _expire(self):
        logger.warning(f"Extraction exceeded its time limit, terminating pid(s) {self.pids}")
        self.timed_out = True
        self.cancel()

    @property
    def pids(self):
        return [p.pid for p in self.processes]

    @property
    def stderr_tail(self):
        return "\n".join(self._stderr)

    def read(self):
        """Next chunk of output, ``b""`` once the pipeline is exhausted."""
        try:
            return self.processes[-1].stdout.read(self.chunk_size)
        except (OSError, ValueError):
            return b""

    def __iter__(self):
        while True:
            chunk = self.read()
            if not chunk:
                return
            yield chunk

    def returncode(self, timeout=None):
        """Wait for every process and return the first non-zero exit code (or 0)."""
        code = 0
        for proc in self.processes:
            try:
                rc = proc.wait(timeout=timeout if timeout is not None else self.grace)
            except subprocess.TimeoutExpired:
                rc = None
            if rc is None:
                rc = -1
            if rc != 0 and code == 0:
                code = rc
        return code

    def running(self):
        return any(p.poll() is None for p in self.processes)

    def cancel(self):
        """Terminate every process still alive, escalating to kill after the grace period."""
        with self._lock:
            if self._watchdog is not None:
                self._watchdog.cancel()
            alive = [p for p in self.processes if p.poll() is None]
            if alive and not self.timed_out:
                self.cancelled = True
            for proc in alive:
                try:
                    proc.terminate()
                except OSError:
                    pass
            for proc in alive:
                try:
                    proc.wait(timeout=self.grace)
                except subprocess.TimeoutExpired:
                    logger.warning(f"pid {proc.pid} ignored SIGTERM, killing")
                    proc.kill()
                    proc.wait()
            for proc in self.processes:
                for pipe in (proc.stdout, proc.stderr):
                    if pipe is not None:
                        try:
                            pipe.close()
                        except OSError:
                            pass

    close = cancel


def _video_selector(max_height):
    if not max_height:
        return "best[ext=mp4]/bestvideo[ext=mp4]+bestaudio[ext=m4a]"
    h = int(max_height)
    # mp4 only: muxed at or below the ceiling, then merged, then the smallest muxed mp4 above it
    return (
        f"best[height<={h}][ext=mp4]/"
        f"bestvideo[height<={h}][ext=mp4]+bestaudio[ext=m4a]/"
        f"worst[ext=mp4]"
    )


class YtDlpExtractor:
    def __init__(self, binary=YTDLP_PATH, probe_timeout=YTDLP_PROBE_TIMEOUT, stream_timeout=DELIVERY_TIMEOUT,
                 grace=TERMINATE_GRACE, ffmpeg_finder=find_ffmpeg):
        self.binary = binary
        self.probe_timeout = probe_timeout
        self.stream_timeout = stream_timeout
        self.grace = grace
        self.ffmpeg_finder = ffmpeg_finder

    def _base_cmd(self):
        return [self.binary, "--no-playlist", "--no-warnings", "--no-check-certificates", "--user-agent", USER_AGENT]

    # ------------ probe ------------
    def probe(self, url):
        cmd = self._base_cmd() + ["--dump-json", url]
        try:
            res = subprocess.run(cmd, capture_output=True, text=True, timeout=self.probe_timeout)
        except FileNotFoundError:
            raise ExtractorError(f"{self.binary} executable not found")
        except subprocess.TimeoutExpired:
            raise ExtractorError(f"{self.binary} probe timed out after {self.probe_timeout}s")
        if res.returncode != 0:
            raise ExtractorError("yt-dlp probe failed", returncode=res.returncode, stderr=res.stderr.strip())
        for line in res.stdout.splitlines():
            if line.strip():
                try:
                    data = json.loads(line)
                except ValueError:
                    raise ExtractorError("yt-dlp returned malformed JSON")
                if isinstance(data, dict):
                    return data
        raise ExtractorError("yt-dlp returned no metadata")

    # ------------ stream ------------
    def build_video_cmd(self, url, max_height):
        return self._base_cmd() + [
            "--quiet", "--no-part",
            "-f", _video_selector(max_height),
            "--merge-output-format", "mp4",
            "-o", "-", url,
        ]

    def build_audio_cmd(self, url, native=False):
        # without the mp3 encoder the bytes go out as-is, so only m4a is acceptable
        selector = "bestaudio[ext=m4a]" if native else "bestaudio[ext=m4a]/bestaudio/best"
        return self._base_cmd() + ["--quiet", "--no-part", "-f", selector, "-o", "-", url]

    @staticmethod
    def build_mp3_cmd(ffmpeg_path, bitrate):
        return [
            ffmpeg_path, "-hide_banner", "-loglevel", "error",
            "-i", "pipe:0", "-vn", "-acodec", "libmp3lame", "-b:a", f"{bitrate}k",
            "-f", "mp3", "pipe:1",
        ]

    def _spawn(self, cmd, stdin=None):
        try:
            return subprocess.Popen(cmd, stdin=stdin, stdout=subprocess.PIPE, stderr=subprocess.PIPE, bufsize=0)
        except FileNotFoundError:
            raise ExtractorError(f"{cmd[0]} executable not found")

    def stream(self, url, constraints):
        """Spawn the extractor for *constraints* and return an ExtractionStream."""
        if constraints.fmt == "mp3":
            return self._stream_audio(url, constraints.audio_bitrate or DEFAULT_AUDIO_BITRATE)
        proc = self._spawn(self.build_video_cmd(url, constraints.max_height))
        logger.info(f"Streaming video via yt-dlp pid={proc.pid} max_height={constraints.max_height}")
        return ExtractionStream([proc], timeout=self.stream_timeout, grace=self.grace,
                                media_type="video", extension="mp4")

    def _stream_audio(self, url, bitrate):
        ffmpeg_path = self.ffmpeg_finder()
        source = self._spawn(self.build_audio_cmd(url, native=not ffmpeg_path))
        if not ffmpeg_path:
            logger.warning("FFmpeg not found, serving native audio stream without mp3 conversion")
            return ExtractionStream([source], timeout=self.stream_timeout, grace=self.grace,
                                    media_type="audio", extension="m4a")
        try:
            encoder = self._spawn(self.build_mp3_cmd(ffmpeg_path, bitrate), stdin=source.stdout)
        except ExtractorError:
            source.kill()
            source.wait()
            raise
        # let yt-dlp see SIGPIPE if ffmpeg exits first
        source.stdout.close()
        source.stdout = None
        logger.info(f"Streaming audio via yt-dlp pid={source.pid} -> ffmpeg pid={encoder.pid} at {bitrate}k")
        return ExtractionStream([source, encoder], timeout=self.stream_timeout, grace=self.grace,
                                media_type="audio", extension="mp3")
