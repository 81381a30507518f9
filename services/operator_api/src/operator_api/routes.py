import logging
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from shared.enums import ALL_NOTIFICATION_KINDS

from dispatch_engine.engine import DispatchEngine
from dispatch_engine.errors import InvalidEventData

logger = logging.getLogger(__name__)

bp = Blueprint("operator", __name__)

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _engine() -> DispatchEngine:
    return current_app.extensions["dispatch_engine"]


def _error(message: str, status: int, **extra: Any) -> tuple[Response, int]:
    body: dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), status


@bp.post("/notifications")
def post_notification() -> tuple[Response, int]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return _error("Request body must be a JSON object", 400)

    kind = body.get("kind")
    event_data = body.get("event_data")
    correlation_id = body.get("correlation_id")

    if kind is None or event_data is None:
        return _error("Both 'kind' and 'event_data' are required", 400)

    if not isinstance(event_data, dict):
        return _error("'event_data' must be a JSON object", 400)

    if correlation_id is not None and not isinstance(correlation_id, str):
        return _error("'correlation_id' must be a string", 400)

    try:
        result = _engine().send(kind, event_data, correlation_id=correlation_id)
    except InvalidEventData as exc:
        return _error(
            "Event data validation failed",
            422,
            kind=str(kind),
            supported=sorted(ALL_NOTIFICATION_KINDS),
            details=exc.errors or [str(exc)],
        )

    logger.info(
        "Notification dispatched via API",
        extra={
            "correlation_id": result.correlation_id,
            "kind": kind,
            "succeeded": result.succeeded,
        },
    )
    return jsonify(result.summary()), 200


@bp.get("/failures")
def list_failures() -> tuple[Response, int]:
    pending_only = request.args.get("pending", "").lower() in _TRUE_VALUES
    entries = _engine().failure_log.list(include_acknowledged=not pending_only)
    return jsonify({"failures": [entry.summary() for entry in entries]}), 200


@bp.post("/failures/<path:correlation_id>/ack")
def acknowledge_failure(correlation_id: str) -> tuple[Response, int]:
    if not _engine().failure_log.acknowledge(correlation_id):
        return _error("Failure log entry not found", 404, correlation_id=correlation_id)
    return jsonify({"correlation_id": correlation_id, "acknowledged": True}), 200


@bp.delete("/failures")
def clear_failures() -> tuple[Response, int]:
    cleared = _engine().failure_log.clear()
    logger.info("Failure log cleared via API", extra={"cleared": cleared})
    return jsonify({"cleared": cleared}), 200


@bp.get("/health")
def health() -> tuple[Response, int]:
    providers = _engine().health_snapshot()
    usable = [
        p for p in providers
        if p["credentials_present"] and p["health"] != "unhealthy"
    ]
    status = "healthy" if usable else "degraded"
    return jsonify({"status": status, "providers": providers}), 200


@bp.post("/providers/reload")
def reload_providers() -> tuple[Response, int]:
    try:
        names = _engine().reload()
    except ValueError as exc:
        logger.exception("Provider reload rejected")
        return _error(str(exc), 409)
    return jsonify({"status": "reloaded", "providers": names}), 200
