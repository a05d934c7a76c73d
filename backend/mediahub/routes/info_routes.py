# mediahub/routes/info_routes.py
import logging
from flask import Blueprint, request, jsonify

from .base_routes import component

logger = logging.getLogger(__name__)

info_bp = Blueprint("info", __name__)


@info_bp.route("/api/info")
@info_bp.route("/api/fetch-info")
def fetch_info():
    url = request.args.get("url", "")
    info = component("resolver").resolve(url)
    return jsonify(info.to_dict())
