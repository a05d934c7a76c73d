# mediahub/normalizer.py
"""Map raw provider payloads onto :class:`MediaInfo`.

One mapping function per provider shape. Every mapper is total: missing
or malformed fields fall back to defaults (title ``"Untitled"``, empty
thumbnail, empty format lists) and bad media entries are dropped.
Resolution and bitrate labels are de-duplicated and sorted best-first.
"""
import logging
import math
import re

from .models import FormatDescriptor, MediaInfo, Platform

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
AUDIO_EXTS = ("m4a", "mp3", "opus", "aac", "ogg")

_QUALITY_RE = re.compile(r"(\d+)\s*(?:p|kbps|k)\b", re.I)
_DIGITS_RE = re.compile(r"\d+")


# ------------ helpers ------------
def _obj(value):
    return value if isinstance(value, dict) else {}


def _text(*values):
    for v in values:
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


def _url(value):
    return value.strip() if isinstance(value, str) and value.strip().startswith(("http://", "https://")) else None


def quality_value(label):
    if not isinstance(label, str):
        return 0
    m = _QUALITY_RE.search(label) or _DIGITS_RE.search(label)
    return int(m.group(1) if m.groups() else m.group(0)) if m else 0


def sort_labels(labels):
    """De-duplicate *labels* and order them best-first by their numeric value."""
    seen = []
    for label in labels:
        if isinstance(label, str) and label.strip() and label.strip() not in seen:
            seen.append(label.strip())
    return sorted(seen, key=quality_value, reverse=True)


def video_format(resolutions):
    return FormatDescriptor(kind="video", resolutions=sort_labels(resolutions))


def audio_format(bitrates):
    return FormatDescriptor(kind="audio", bitrates=sort_labels(bitrates))


def _best(items):
    """URL of the highest-quality item in a list of (label, url) pairs."""
    if not items:
        return None
    return max(items, key=lambda pair: quality_value(pair[0]))[1]


# ------------ provider mappings ------------
def map_youtube(platform, data):
    info = _obj(data.get("info"))
    # this API only converts on demand, so formats are the fixed ladder it offers
    formats = [
        video_format(["1080p", "720p", "480p", "360p"]),
        audio_format(["320kbps", "128kbps"]),
    ]
    return MediaInfo(
        title=_text(info.get("title"), data.get("title")) or DEFAULT_TITLE,
        thumbnail_url=_text(info.get("image"), data.get("thumbnail")),
        platform=platform,
        formats=formats,
    )


def map_tiktok(platform, data):
    body = _obj(data.get("data"))
    play = _url(body.get("play"))
    hdplay = _url(body.get("hdplay"))
    music = _url(body.get("music"))
    formats = []
    if play or hdplay:
        formats.append(video_format(["1080p", "720p"] if hdplay else ["720p"]))
    if music:
        formats.append(audio_format(["128kbps"]))
    return MediaInfo(
        title=_text(body.get("title")) or DEFAULT_TITLE,
        thumbnail_url=_text(body.get("cover"), body.get("origin_cover")),
        platform=platform,
        formats=formats,
        primary_download_url=hdplay or play,
        audio_download_url=music,
    )


def map_pinterest(platform, data):
    formats = []
    primary = None
    media_url = _url(data.get("url"))
    kind = _text(data.get("type")).lower()
    if media_url and kind == "video":
        height = data.get("height")
        label = f"{height}p" if isinstance(height, int) and height > 0 else "720p"
        formats.append(video_format([label]))
        primary = media_url
    elif media_url and kind == "image":
        # image pin: one synthetic entry so callers always see a format
        formats.append(FormatDescriptor(kind="video", resolutions=["original"]))
        primary = media_url
    return MediaInfo(
        title=_text(data.get("title")) or DEFAULT_TITLE,
        thumbnail_url=_text(data.get("thumbnail"), media_url if kind == "image" else None),
        platform=platform,
        formats=formats,
        primary_download_url=primary,
    )


def map_spotify(platform, data):
    body = _obj(data.get("data"))
    medias = body.get("medias") if isinstance(body.get("medias"), list) else []
    items = []
    for m in medias:
        m = _obj(m)
        label, url = _text(m.get("quality")), _url(m.get("url"))
        if label and url:
            items.append((label, url))
    formats = [audio_format([label for label, _ in items])] if items else []
    return MediaInfo(
        title=_text(body.get("title")) or DEFAULT_TITLE,
        thumbnail_url=_text(body.get("thumbnail")),
        platform=platform,
        formats=formats,
        audio_download_url=_best(items),
    )


def map_terabox(platform, data):
    primary = _url(data.get("download_url"))
    return MediaInfo(
        title=_text(data.get("title"), data.get("file_name")) or DEFAULT_TITLE,
        thumbnail_url=_text(data.get("thumbnail")),
        platform=platform,
        formats=[video_format(["720p"])] if primary else [],
        primary_download_url=primary,
    )


def map_general(platform, data):
    """Shared all-in-one API used for Instagram, Facebook, Twitter and Dailymotion."""
    medias = data.get("medias") if isinstance(data.get("medias"), list) else []
    videos, audios = [], []
    for m in medias:
        m = _obj(m)
        ext = _text(m.get("extension")).lower()
        label, url = _text(m.get("quality")), _url(m.get("url"))
        if not (label and url):
            continue
        if ext == "mp4":
            videos.append((label, url))
        elif ext == "mp3":
            audios.append((label, url))
    formats = []
    if videos:
        formats.append(video_format([label for label, _ in videos]))
    if audios:
        formats.append(audio_format([label for label, _ in audios]))
    return MediaInfo(
        title=_text(data.get("title")) or DEFAULT_TITLE,
        thumbnail_url=_text(data.get("thumbnail"), data.get("thumb")),
        platform=platform,
        formats=formats,
        primary_download_url=_best(videos),
        audio_download_url=_best(audios),
    )


def _positive(value):
    # JSON dumps may carry Infinity or NaN
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) and value > 0 else None


def map_ytdlp(platform, data):
    """Formats reported by the generic extractor's JSON dump."""
    raw_formats = data.get("formats")
    if not isinstance(raw_formats, list):
        # single-format extractors report the one format at the top level
        raw_formats = [data] if data.get("url") else []
    resolutions, bitrates = [], []
    for f in raw_formats:
        f = _obj(f)
        if not _url(f.get("url")):
            continue
        ext = f.get("ext")
        height = _positive(f.get("height"))
        abr = _positive(f.get("abr"))
        if ext == "mp4" and height and f.get("vcodec") != "none":
            resolutions.append(f"{int(height)}p")
        elif ext in AUDIO_EXTS and f.get("acodec") != "none" and abr:
            bitrates.append(f"{round(abr)}kbps")
    formats = []
    if resolutions:
        formats.append(video_format(resolutions))
    if bitrates:
        formats.append(audio_format(bitrates))
    return MediaInfo(
        title=_text(data.get("title"), data.get("fulltitle")) or DEFAULT_TITLE,
        thumbnail_url=_text(data.get("thumbnail")),
        platform=platform,
        formats=formats,
    )


MAPPERS = {
    "youtube": map_youtube,
    "tiktok": map_tiktok,
    "pinterest": map_pinterest,
    "spotify": map_spotify,
    "terabox": map_terabox,
    "general": map_general,
    "ytdlp": map_ytdlp,
}

PLATFORM_MAPPING = {
    Platform.YOUTUBE: "youtube",
    Platform.TIKTOK: "tiktok",
    Platform.PINTEREST: "pinterest",
    Platform.SPOTIFY: "spotify",
    Platform.TERABOX: "terabox",
    Platform.INSTAGRAM: "general",
    Platform.FACEBOOK: "general",
    Platform.TWITTER: "general",
    Platform.DAILYMOTION: "general",
}


def empty_info(platform):
    return MediaInfo(title=DEFAULT_TITLE, thumbnail_url="", platform=platform, formats=[])


def normalize(platform, raw, mapping=None):
    mapping = mapping or PLATFORM_MAPPING.get(platform)
    mapper = MAPPERS.get(mapping)
    if mapper is None or not isinstance(raw, dict):
        return empty_info(platform)
    try:
        return mapper(platform, raw)
    except (TypeError, ValueError, AttributeError, OverflowError) as e:
        logger.warning(f"Could not map {mapping} payload for {platform.value}: {e}")
        return empty_info(platform)
