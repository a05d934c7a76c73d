# mediahub/routes/__init__.py
from .base_routes import base_bp
from .info_routes import info_bp
from .download_routes import download_bp


def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(info_bp)
    app.register_blueprint(download_bp)
