# mediahub/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _bool_env(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "1", "yes", "on")


LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT = _int_env("PORT", 5000)
API_ONLY_MODE = _bool_env("API_ONLY_MODE")
CORS_ALLOWED_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ALLOWED_ORIGINS", "*").split(",") if o.strip()
] or ["*"]

# upstream providers
PROVIDER_TIMEOUT = _int_env("PROVIDER_TIMEOUT", 15)
SHORT_URL_TIMEOUT = _int_env("SHORT_URL_TIMEOUT", 5)
USER_AGENT = os.environ.get(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36",
)

# generic extractor
YTDLP_PATH = os.environ.get("YTDLP_PATH", "yt-dlp")
YTDLP_PROBE_TIMEOUT = _int_env("YTDLP_PROBE_TIMEOUT", 60)
DELIVERY_TIMEOUT = _int_env("DELIVERY_TIMEOUT", 1800)
TERMINATE_GRACE = _int_env("TERMINATE_GRACE", 3)
CHUNK_SIZE = 1024 * 64

DEFAULT_AUDIO_BITRATE = 192

# hosts whose links are shortlinks for a supported platform
SHORTLINK_HOSTS = (
    "pin.it",
    "vm.tiktok.com",
    "vt.tiktok.com",
    "fb.watch",
    "t.co",
    "spotify.link",
)

# env var names per platform: (host, key)
PROVIDER_ENV = {
    "youtube": ("YOUTUBE_API_HOST", "RAPIDAPI_KEY"),
    "tiktok": ("TIKTOK_API_HOST", "RAPIDAPI_KEY"),
    "pinterest": ("PINTEREST_API_HOST", "RAPIDAPI_KEY"),
    "spotify": ("SPOTIFY_API_HOST", "RAPIDAPI_KEY"),
    "terabox": ("TERABOX_API_HOST", "RAPIDAPI_KEY"),
    "instagram": ("GENERAL_API_HOST", "RAPIDAPI_KEY"),
    "facebook": ("GENERAL_API_HOST", "RAPIDAPI_KEY"),
    "twitter": ("GENERAL_API_HOST", "RAPIDAPI_KEY"),
    "dailymotion": ("GENERAL_API_HOST", "RAPIDAPI_KEY"),
}
