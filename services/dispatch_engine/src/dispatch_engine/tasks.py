"""Celery task for fire-and-forget notification dispatch."""

import logging
from typing import Any

from dispatch_engine.celery import app
from dispatch_engine.engine import DispatchEngine
from dispatch_engine.errors import InvalidEventData

logger = logging.getLogger(__name__)


@app.task(name="dispatch_engine.tasks.send_notification")
def send_notification(
    kind: str,
    event_data: dict[str, Any],
    correlation_id: str | None = None,
) -> dict[str, object]:
    """Render and dispatch one notification.

    Provider failures are already handled by the engine (fallback plus the
    failure log), so the task never retries. Invalid event data cannot
    succeed on a retry either and is reported in the returned summary.
    """
    engine: DispatchEngine = app.conf._dispatch_engine

    try:
        result = engine.send(kind, event_data, correlation_id=correlation_id)
    except InvalidEventData as exc:
        logger.warning(
            "Invalid event data, notification dropped",
            extra={"kind": str(kind), "error": str(exc), "correlation_id": correlation_id},
        )
        return {
            "status": "invalid",
            "kind": str(kind),
            "error": str(exc),
            "errors": exc.errors,
        }

    return {
        "status": "delivered" if result.succeeded else "failed",
        **result.summary(),
    }
