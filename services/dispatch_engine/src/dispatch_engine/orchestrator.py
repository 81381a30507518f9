"""Fallback orchestration across the priority-ordered provider chain."""

import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone

from shared.enums import AttemptResult

from dispatch_engine.health import ProviderHealthRegistry
from dispatch_engine.models import AttemptOutcome, DispatchResult, NotificationRequest
from dispatch_engine.providers import ProviderAdapter, ProviderRegistry
from dispatch_engine.providers.base import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_MAX_ATTEMPT_WORKERS = 16


class FallbackOrchestrator:
    """Tries providers one at a time until one accepts the message.

    Providers are ordered by ascending priority; equal priorities keep
    registration order. Providers without credentials, or flagged
    unhealthy, are recorded as ``skipped`` and not called. Every call is
    bounded by the per-attempt timeout, so a dispatch never takes longer
    than ``attempt_timeout`` times the number of usable providers.

    ``dispatch`` never raises: every failure becomes an AttemptOutcome.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        health: ProviderHealthRegistry,
        attempt_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        executor: Executor | None = None,
    ) -> None:
        _require_providers(registry)
        self._registry = registry
        self._health = health
        self._attempt_timeout = attempt_timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=_MAX_ATTEMPT_WORKERS,
            thread_name_prefix="provider-attempt",
        )
        self._lock = threading.Lock()

    @property
    def health(self) -> ProviderHealthRegistry:
        return self._health

    @property
    def registry(self) -> ProviderRegistry:
        with self._lock:
            return self._registry

    def attempt_order(self) -> list[ProviderAdapter]:
        """Every registered adapter, in the order a dispatch considers them."""
        return sorted(self.registry, key=lambda adapter: adapter.descriptor.priority)

    def dispatch(self, request: NotificationRequest) -> DispatchResult:
        log_ctx = {
            "correlation_id": request.correlation_id,
            "kind": str(request.kind),
        }
        attempts: list[AttemptOutcome] = []

        for adapter in self.attempt_order():
            skip_reason = self._skip_reason(adapter)
            if skip_reason is not None:
                attempts.append(_skipped(adapter.name, skip_reason))
                logger.info(
                    "Provider skipped",
                    extra={**log_ctx, "provider": adapter.name, "reason": skip_reason},
                )
                continue

            outcome = self._attempt(adapter, request)
            attempts.append(outcome)
            self._record_health(adapter.name, outcome)

            if outcome.result == AttemptResult.SUCCESS:
                logger.info(
                    "Notification delivered to provider",
                    extra={
                        **log_ctx,
                        "provider": adapter.name,
                        "attempt": len(attempts),
                    },
                )
                return DispatchResult(
                    succeeded=True,
                    attempts=tuple(attempts),
                    correlation_id=request.correlation_id,
                    final_provider=adapter.name,
                )

            logger.warning(
                "Provider attempt failed, falling back",
                extra={
                    **log_ctx,
                    "provider": adapter.name,
                    "result": str(outcome.result),
                    "provider_message": outcome.provider_message,
                },
            )

        logger.warning(
            "All providers exhausted",
            extra={**log_ctx, "attempts": len(attempts)},
        )
        return DispatchResult(
            succeeded=False,
            attempts=tuple(attempts),
            correlation_id=request.correlation_id,
        )

    def reload(self, registry: ProviderRegistry) -> None:
        """Swap in a freshly configured provider set and clear health flags."""
        _require_providers(registry)
        with self._lock:
            self._registry = registry
        self._health.reset()
        logger.info(
            "Providers reloaded",
            extra={"providers": [d.name for d in registry.descriptors()]},
        )

    def provider_status(self) -> list[dict[str, object]]:
        """Descriptor and health of each adapter, in attempt order."""
        status = []
        for adapter in self.attempt_order():
            descriptor = adapter.descriptor
            status.append({
                "name": descriptor.name,
                "priority": descriptor.priority,
                "capabilities": sorted(str(flag) for flag in descriptor.capabilities),
                "credentials_present": descriptor.credentials_present,
                "health": str(self._health.state(descriptor.name)),
                "reason": self._health.reason(descriptor.name),
            })
        return status

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _skip_reason(self, adapter: ProviderAdapter) -> str | None:
        if not adapter.descriptor.credentials_present:
            return "credentials not configured"
        if self._health.is_unhealthy(adapter.name):
            return "marked unhealthy after an authentication failure"
        return None

    def _attempt(
        self, adapter: ProviderAdapter, request: NotificationRequest
    ) -> AttemptOutcome:
        started_at = datetime.now(timezone.utc)
        clock_start = time.monotonic()

        def _failed(message: str) -> AttemptOutcome:
            return AttemptOutcome(
                provider=adapter.name,
                started_at=started_at,
                duration_ms=int((time.monotonic() - clock_start) * 1000),
                result=AttemptResult.TRANSPORT_ERROR,
                provider_message=message,
            )

        try:
            future = self._executor.submit(adapter.send, request.recipient, request.body)
        except RuntimeError as exc:
            return _failed(f"could not start attempt: {exc}")

        try:
            return future.result(timeout=self._attempt_timeout)
        except TimeoutError:
            if future.cancel():
                # Still queued: the provider was never called.
                logger.warning(
                    "Provider attempt never started; attempt workers busy",
                    extra={
                        "provider": adapter.name,
                        "correlation_id": request.correlation_id,
                    },
                )
                return _failed(
                    f"not started within {self._attempt_timeout:g}s: "
                    "all attempt workers busy"
                )
            return _failed(f"no answer within {self._attempt_timeout:g}s")
        except Exception as exc:
            logger.exception(
                "Provider adapter raised",
                extra={"provider": adapter.name, "correlation_id": request.correlation_id},
            )
            return _failed(f"{type(exc).__name__}: {exc}")

    def _record_health(self, name: str, outcome: AttemptOutcome) -> None:
        if outcome.result == AttemptResult.AUTH_ERROR:
            self._health.mark_unhealthy(name, outcome.provider_message)
        elif outcome.result in (
            AttemptResult.SUCCESS,
            AttemptResult.REJECTED_BY_PROVIDER,
        ):
            self._health.mark_healthy(name)


def _require_providers(registry: ProviderRegistry) -> None:
    if len(registry) == 0:
        raise ValueError("At least one provider adapter must be registered")


def _skipped(name: str, reason: str) -> AttemptOutcome:
    return AttemptOutcome(
        provider=name,
        started_at=datetime.now(timezone.utc),
        duration_ms=0,
        result=AttemptResult.SKIPPED,
        provider_message=reason,
    )
