"""Per-provider health flags shared by concurrent dispatches."""

import logging
import threading

from shared.enums import ProviderHealth

logger = logging.getLogger(__name__)


class ProviderHealthRegistry:
    """Tracks which providers are currently usable.

    ``unknown -> healthy <-> unhealthy``. An adapter that reported an
    authentication/account failure stays unhealthy until :meth:`reset`
    is called on an explicit configuration reload; nothing recovers it
    automatically.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, ProviderHealth] = {}
        self._reasons: dict[str, str] = {}

    def state(self, name: str) -> ProviderHealth:
        with self._lock:
            return self._states.get(name, ProviderHealth.UNKNOWN)

    def is_unhealthy(self, name: str) -> bool:
        return self.state(name) == ProviderHealth.UNHEALTHY

    def reason(self, name: str) -> str | None:
        with self._lock:
            return self._reasons.get(name)

    def mark_healthy(self, name: str) -> None:
        """Record a provider that answered normally.

        Has no effect on an unhealthy provider.
        """
        with self._lock:
            if self._states.get(name) != ProviderHealth.UNHEALTHY:
                self._states[name] = ProviderHealth.HEALTHY

    def mark_unhealthy(self, name: str, reason: str | None = None) -> bool:
        """Flag a provider as unusable. Returns True if this call flipped it."""
        with self._lock:
            changed = self._states.get(name) != ProviderHealth.UNHEALTHY
            self._states[name] = ProviderHealth.UNHEALTHY
            self._reasons[name] = reason or "authentication failure"
        if changed:
            logger.error(
                "Provider marked unhealthy until configuration reload",
                extra={"provider": name, "reason": reason},
            )
        return changed

    def reset(self) -> None:
        """Forget every flag (configuration reload)."""
        with self._lock:
            self._states.clear()
            self._reasons.clear()
        logger.info("Provider health reset")

    def snapshot(self) -> dict[str, ProviderHealth]:
        with self._lock:
            return dict(self._states)
