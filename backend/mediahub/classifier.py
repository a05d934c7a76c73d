# mediahub/classifier.py
import re
from urllib.parse import urlsplit, parse_qs

from .errors import InvalidUrl
from .models import Platform, CollectionCheck

# (platform, host pattern, path[?query] pattern) for single-item links
_SINGLE_ITEM_PATTERNS = [
    (Platform.YOUTUBE, r"(?:www\.|m\.|music\.)?youtube\.com",
     r"/(?:watch\?(?:[^#]*&)?v=[\w-]+|shorts/[\w-]+|embed/[\w-]+|live/[\w-]+)"),
    (Platform.YOUTUBE, r"youtu\.be", r"/[\w-]+"),
    (Platform.TWITTER, r"(?:www\.|mobile\.)?(?:twitter|x)\.com",
     r"/[^/?#]+/status(?:es)?/\d+(?:[/?#].*)?$"),
    (Platform.INSTAGRAM, r"(?:www\.)?instagram\.com",
     r"/(?:[\w.]+/)?(?:p|reel|reels|tv)/[\w-]+(?:[/?#].*)?$"),
    (Platform.FACEBOOK, r"(?:www\.|m\.|web\.)?facebook\.com",
     r"/(?:watch/?\?(?:[^#]*&)?v=\d+|video\.php\?(?:[^#]*&)?v=\d+"
     r"|[^/?#]+/videos/(?:[^/?#]+/)?\d+|reel/\d+)"),
    (Platform.FACEBOOK, r"fb\.watch", r"/[\w-]+"),
    (Platform.TIKTOK, r"(?:www\.|m\.)?tiktok\.com", r"/(?:@[\w.-]+/video/\d+|v/\d+)"),
    (Platform.TIKTOK, r"v[mt]\.tiktok\.com", r"/[\w-]+"),
    (Platform.DAILYMOTION, r"(?:www\.)?dailymotion\.com", r"/video/[a-zA-Z0-9]+"),
    (Platform.DAILYMOTION, r"dai\.ly", r"/[a-zA-Z0-9]+"),
    (Platform.PINTEREST, r"(?:www\.|[a-z]{2}\.)?pinterest\.(?:com|[a-z]{2}|co\.uk|com\.au)",
     r"/pin/[\w-]+"),
    (Platform.PINTEREST, r"pin\.it", r"/[\w-]+"),
    (Platform.SPOTIFY, r"open\.spotify\.com", r"/(?:intl-[\w-]+/)?(?:track|episode)/[a-zA-Z0-9]+"),
    (Platform.SPOTIFY, r"spotify\.link", r"/[\w-]+"),
    (Platform.TERABOX, r"(?:www\.)?(?:terabox|1024terabox|teraboxapp)\.com", r"/s/[\w-]+"),
]
_SINGLE_ITEM_PATTERNS = [
    (platform, re.compile(host, re.I), re.compile(path))
    for platform, host, path in _SINGLE_ITEM_PATTERNS
]

_YOUTUBE_HOST = re.compile(r"(?:www\.|m\.|music\.)?youtube\.com|youtu\.be", re.I)
_SPOTIFY_HOST = re.compile(r"(?:open\.)?spotify\.com", re.I)
_SPOTIFY_COLLECTION = re.compile(r"/(?:intl-[\w-]+/)?(?:playlist|album)/")
_PINTEREST_HOST = re.compile(r"(?:www\.|[a-z]{2}\.)?pinterest\.(?:com|[a-z]{2}|co\.uk|com\.au)", re.I)
_DAILYMOTION_HOST = re.compile(r"(?:www\.)?dailymotion\.com", re.I)


def _split(url):
    """Return (host, target) or None when *url* is not an http(s) URL."""
    if not isinstance(url, str):
        return None
    url = url.strip()
    if not url or any(c.isspace() for c in url):
        return None
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not host:
        return None
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    return host, target


def is_valid_url(url):
    return _split(url) is not None


def validate_url(url):
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrl("Please provide a URL.")
    if _split(url) is None:
        raise InvalidUrl("That doesn't look like a valid link.", hint="Links must start with http:// or https://")
    return url.strip()


def detect_platform(url):
    split = _split(url)
    if split is None:
        return Platform.UNSUPPORTED
    host, target = split
    for platform, host_re, path_re in _SINGLE_ITEM_PATTERNS:
        if host_re.fullmatch(host) and path_re.match(target):
            return platform
    return Platform.UNSUPPORTED


def check_collection(url):
    """Flag playlist/album/board links, independently of detect_platform."""
    split = _split(url)
    if split is None:
        return CollectionCheck()
    host, target = split
    path = target.split("?", 1)[0]
    query = parse_qs(target.split("?", 1)[1]) if "?" in target else {}

    if _YOUTUBE_HOST.fullmatch(host):
        if ("list" in query or path.startswith("/playlist")) and detect_platform(url) is not Platform.YOUTUBE:
            return CollectionCheck(True, "YouTube")
    elif _SPOTIFY_HOST.fullmatch(host):
        if _SPOTIFY_COLLECTION.match(path):
            return CollectionCheck(True, "Spotify")
    elif _PINTEREST_HOST.fullmatch(host):
        # anything that is not a pin is a board or a profile
        if detect_platform(url) is not Platform.PINTEREST:
            return CollectionCheck(True, "Pinterest")
    elif _DAILYMOTION_HOST.fullmatch(host):
        if path.startswith("/playlist/"):
            return CollectionCheck(True, "Dailymotion")
    return CollectionCheck()


def classify(url):
    return detect_platform(url), check_collection(url)
