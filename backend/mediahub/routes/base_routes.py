# mediahub/routes/base_routes.py
import logging
import shutil
from datetime import datetime
from flask import Blueprint, jsonify, current_app

from ..config import API_ONLY_MODE, YTDLP_PATH
from ..errors import MediaHubError
from ..utils import find_ffmpeg

logger = logging.getLogger(__name__)

base_bp = Blueprint("base", __name__)


def component(name):
    return current_app.extensions["mediahub"][name]


@base_bp.route("/api/health")
def health():
    registry = component("registry")
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "ffmpeg_available": find_ffmpeg() is not None,
        "ytdlp_available": shutil.which(YTDLP_PATH) is not None,
        "providers": sorted({cfg.name for cfg in registry.all_providers() if cfg.configured}),
    })


@base_bp.route("/")
def index():
    if API_ONLY_MODE:
        return jsonify({"message": "MediaHub API is running"})
    return jsonify({"message": "MediaHub API", "endpoints": ["/api/info", "/api/download", "/api/health"]})


@base_bp.app_errorhandler(MediaHubError)
def handle_mediahub_error(e):
    return jsonify({"error": e.to_dict()}), e.status


@base_bp.app_errorhandler(500)
def handle_internal_error(e):
    logger.error(f"Unhandled error: {getattr(e, 'original_exception', e)!r}")
    return jsonify({"error": {"code": "INTERNAL_ERROR", "message": "Something went wrong. Please try again."}}), 500
