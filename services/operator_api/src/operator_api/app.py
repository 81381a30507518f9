import atexit
import logging

from flask import Flask

from dispatch_engine.engine import DispatchEngine

from operator_api.log import setup_logging
from operator_api.routes import bp

logger = logging.getLogger(__name__)


def create_app(engine: DispatchEngine, log_level: str = "INFO") -> Flask:
    """Flask application factory.

    Args:
        engine: Dispatch engine instance (real or mock for tests).
        log_level: Root log level for the JSON log handler.
    """
    setup_logging(log_level)

    app = Flask(__name__)
    app.extensions["dispatch_engine"] = engine

    app.register_blueprint(bp)

    atexit.register(engine.close)

    logger.info("Operator API initialized")
    return app
