# mediahub/routes/download_routes.py
import logging
from flask import Blueprint, request, redirect, Response

from ..errors import InvalidRequest
from ..models import Redirect
from .base_routes import component

logger = logging.getLogger(__name__)

download_bp = Blueprint("download", __name__)


def _str(data, key):
    value = data.get(key)
    return value if isinstance(value, str) else None


def _download_params():
    if request.method == "POST":
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
    else:
        data = request.args
    fmt = data.get("format")
    if fmt is not None and not isinstance(fmt, str):
        raise InvalidRequest("Unsupported format. Use mp4 or mp3.")
    return {
        "url": _str(data, "url") or "",
        "fmt": (fmt or "mp4").lower(),
        "quality": _str(data, "quality") or _str(data, "resolution") or _str(data, "bitrate"),
        "title": _str(data, "title"),
        "tier": (_str(data, "tier") or "free").lower(),
        "download_id": _str(data, "download_id"),
    }


@download_bp.route("/api/download", methods=["GET", "POST"])
def download():
    params = _download_params()
    url, platform = component("resolver").prepare(params.pop("url"))
    result = component("streamer").deliver(url, platform, **params)

    if isinstance(result, Redirect):
        return redirect(result.location, code=302)

    return Response(
        result.body,
        mimetype=result.mimetype,
        headers={
            "Content-Disposition": result.content_disposition,
            "Cache-Control": "private, no-cache",
            "X-Content-Type-Options": "nosniff",
        },
        direct_passthrough=True,
    )
