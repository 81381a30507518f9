"""Logging setup for dispatch_engine (delegates to shared)."""

from typing import TextIO

from shared.log import JsonFormatter, setup_logging as _setup

__all__ = ["JsonFormatter", "setup_logging"]


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    _setup(level, suppress=["celery", "kombu", "httpx", "httpcore"], stream=stream)
