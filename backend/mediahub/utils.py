# mediahub/utils.py
import os
import re
import shutil
import logging
import unicodedata
from urllib.parse import quote, urlsplit

import requests

from .config import SHORTLINK_HOSTS, SHORT_URL_TIMEOUT, USER_AGENT
from mediahub import socketio

logger = logging.getLogger(__name__)


# ------------ Helpers ------------
def sanitize_filename(filename):
    if not isinstance(filename, str):
        filename = ""
    nfkd_form = unicodedata.normalize("NFKD", filename)
    cleaned = "".join([c for c in nfkd_form if not unicodedata.combining(c)])
    cleaned = re.sub(r"[\n\r\t]+", " ", cleaned)
    cleaned = re.sub(r"[^\w\s\-\.,\(\)\[\]]+", "", cleaned, flags=re.UNICODE)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    cleaned = re.sub(r'[<>:"/\\|?*]', "_", cleaned)
    return (cleaned[:120] or "download").strip()


def content_disposition(title, extension):
    name = f"{sanitize_filename(title)}.{extension}"
    ascii_name = name.encode("ascii", "ignore").decode("ascii") or f"download.{extension}"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name)}"


def find_ffmpeg():
    possible_paths = [
        "ffmpeg", "ffmpeg.exe",
        "/usr/bin/ffmpeg", "/usr/local/bin/ffmpeg",
        os.path.join(os.getcwd(), "ffmpeg.exe"),
        os.path.join(os.getcwd(), "ffmpeg", "ffmpeg.exe"),
    ]
    for p in possible_paths:
        if shutil.which(p):
            return p
        if os.path.isfile(p):
            return p
    return None


def is_shortlink(url):
    try:
        host = (urlsplit(url.strip()).hostname or "").lower()
    except (ValueError, AttributeError):
        return False
    return host in SHORTLINK_HOSTS


def resolve_short_url(url, session=None, timeout=SHORT_URL_TIMEOUT):
    """Expand a shortlink by following redirects. Any failure returns *url* unchanged."""
    if not is_shortlink(url):
        return url
    http = session or requests
    try:
        r = http.head(url, allow_redirects=True, timeout=timeout, headers={"User-Agent": USER_AGENT})
        final = getattr(r, "url", None)
    except requests.RequestException as e:
        logger.info(f"Short URL expansion failed for {url}: {e.__class__.__name__}")
        return url
    if isinstance(final, str) and final.startswith(("http://", "https://")):
        if final != url:
            logger.info(f"Expanded short URL {url} -> {final}")
        return final
    return url


def emit_status(download_id, status, **extra):
    if not download_id:
        return
    payload = {"download_id": download_id, "session": dict(status=status, **extra)}
    socketio.emit("download_update", payload, room=download_id)


# ------------ Socket handlers registration ------------
def register_socket_handlers(app):
    from flask_socketio import emit, join_room

    @socketio.on("connect")
    def on_connect():
        emit("connection_response", {"message": "Connected"})

    @socketio.on("join")
    def on_join_room(data):
        room = (data or {}).get("download_id")
        if room:
            join_room(room)
