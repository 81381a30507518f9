"""WSGI entry point for gunicorn.

Usage:
    gunicorn operator_api.wsgi:app --bind 127.0.0.1:8000
"""
from dispatch_engine.engine import build_engine

from operator_api.app import create_app
from operator_api.config import OperatorApiConfig

_config = OperatorApiConfig()
app = create_app(build_engine(), log_level=_config.log_level)
