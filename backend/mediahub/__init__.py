# mediahub/__init__.py
import logging
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

# create socketio instance with enhanced options
socketio = SocketIO(
    async_mode="threading",
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    manage_session=False  # Important for threading mode
)


def create_app(registry=None, extractor=None, hooks=None, session=None, expand_url=None, on_premium=None):
    """Build the Flask app. Keyword arguments replace the default collaborators."""
    from .config import CORS_ALLOWED_ORIGINS, LOG_LEVEL
    from .delivery import DeliveryStreamer
    from .hooks import DeliveryHooks
    from .platforms.extractor import YtDlpExtractor
    from .registry import build_registry
    from .resolver import Resolver
    from .utils import resolve_short_url

    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": CORS_ALLOWED_ORIGINS}})

    # basic logging
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    registry = registry or build_registry()
    extractor = extractor or YtDlpExtractor()
    hooks = hooks or DeliveryHooks()
    if on_premium is not None:
        hooks.on("premium", on_premium)
    resolver = Resolver(registry, extractor, session=session, expand_url=expand_url or resolve_short_url)
    app.extensions["mediahub"] = {
        "registry": registry,
        "extractor": extractor,
        "hooks": hooks,
        "resolver": resolver,
        "streamer": DeliveryStreamer(resolver, extractor, hooks),
    }

    # register blueprints/routes
    from .routes import register_routes
    register_routes(app)

    from .utils import register_socket_handlers
    register_socket_handlers(app)

    # IMPORTANT: bind socketio to app before returning
    origins = "*" if CORS_ALLOWED_ORIGINS == ["*"] else CORS_ALLOWED_ORIGINS
    socketio.init_app(app, cors_allowed_origins=origins)

    return app
