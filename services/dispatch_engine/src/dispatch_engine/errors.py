"""Errors surfaced to callers of the dispatch engine.

Provider failures are never raised; they are reported as data inside
``AttemptOutcome`` / ``DispatchResult``.
"""

from typing import Any


class InvalidEventData(ValueError):
    """Event data is missing fields required by the notification template."""

    def __init__(
        self,
        kind: str,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.kind = kind
        self.errors = errors or []
        super().__init__(f"Invalid event data for {kind!r}: {message}")
