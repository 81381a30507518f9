"""Tests for fallback orchestration across providers."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from shared.enums import AttemptResult, ProviderHealth

from dispatch_engine.orchestrator import FallbackOrchestrator
from dispatch_engine.providers import ProviderRegistry

SUCCESS = AttemptResult.SUCCESS
TRANSPORT = AttemptResult.TRANSPORT_ERROR
AUTH = AttemptResult.AUTH_ERROR
REJECTED = AttemptResult.REJECTED_BY_PROVIDER
SKIPPED = AttemptResult.SKIPPED


@pytest.fixture()
def orchestrate(health, registry_of):
    """Build an orchestrator over adapters; closed after the test."""
    built: list[FallbackOrchestrator] = []

    def _make(*adapters, attempt_timeout: float = 2.0) -> FallbackOrchestrator:
        orchestrator = FallbackOrchestrator(
            registry_of(*adapters), health, attempt_timeout=attempt_timeout
        )
        built.append(orchestrator)
        return orchestrator

    yield _make
    for orchestrator in built:
        orchestrator.close()


class TestFallback:
    def test_falls_back_to_next_provider(self, stub, orchestrate, notification_request):
        regional = stub("RegionalSMS", 1, [TRANSPORT])
        global_ = stub("GlobalSMS", 2, [SUCCESS])

        result = orchestrate(regional, global_).dispatch(notification_request)

        assert result.succeeded is True
        assert len(result.attempts) == 2
        assert result.final_provider == "GlobalSMS"
        assert [a.result for a in result.attempts] == [TRANSPORT, SUCCESS]
        assert result.correlation_id == notification_request.correlation_id

    def test_first_success_stops(self, stub, orchestrate, notification_request):
        first = stub("First", 1, [SUCCESS])
        second = stub("Second", 2, [SUCCESS])

        result = orchestrate(first, second).dispatch(notification_request)

        assert len(result.attempts) == 1
        assert result.final_provider == "First"
        assert second.calls == []

    def test_priority_order_not_registration_order(
        self, stub, orchestrate, notification_request
    ):
        low = stub("Webhook", 4, [SUCCESS])
        high = stub("TextLocal", 1, [TRANSPORT])

        result = orchestrate(low, high).dispatch(notification_request)

        assert [a.provider for a in result.attempts] == ["TextLocal", "Webhook"]

    def test_equal_priority_keeps_registration_order(
        self, stub, orchestrate, notification_request
    ):
        a = stub("A", 5, [TRANSPORT])
        b = stub("B", 5, [TRANSPORT])
        c = stub("C", 5, [TRANSPORT])

        result = orchestrate(a, b, c).dispatch(notification_request)

        assert [o.provider for o in result.attempts] == ["A", "B", "C"]

    def test_exhaustion_returns_every_attempt(
        self, stub, orchestrate, notification_request
    ):
        adapters = [
            stub("TextLocal", 1, [TRANSPORT]),
            stub("Twilio", 2, [REJECTED]),
            stub("Webhook", 3, [TRANSPORT]),
        ]

        result = orchestrate(*adapters).dispatch(notification_request)

        assert result.succeeded is False
        assert result.final_provider is None
        assert [a.result for a in result.attempts] == [TRANSPORT, REJECTED, TRANSPORT]

    def test_passes_recipient_and_body(self, stub, orchestrate, notification_request):
        adapter = stub("TextLocal", 1, [SUCCESS])

        orchestrate(adapter).dispatch(notification_request)

        assert adapter.calls == [
            (notification_request.recipient, notification_request.body)
        ]


class TestSkipping:
    def test_missing_credentials_skipped_without_call(
        self, stub, orchestrate, notification_request
    ):
        adapter = stub("TextLocal", 1, [SUCCESS], credentials_present=False)

        result = orchestrate(adapter).dispatch(notification_request)

        assert result.succeeded is False
        assert len(result.attempts) == 1
        assert result.attempts[0].result == SKIPPED
        assert result.attempts[0].provider_message == "credentials not configured"
        assert adapter.calls == []

    def test_skipped_outcomes_keep_priority_position(
        self, stub, orchestrate, notification_request
    ):
        adapters = [
            stub("TextLocal", 1, [TRANSPORT]),
            stub("Twilio", 2, credentials_present=False),
            stub("Webhook", 3, [SUCCESS]),
        ]

        result = orchestrate(*adapters).dispatch(notification_request)

        assert [(a.provider, a.result) for a in result.attempts] == [
            ("TextLocal", TRANSPORT),
            ("Twilio", SKIPPED),
            ("Webhook", SUCCESS),
        ]
        assert len(result.attempted) == 2
        assert len(result.skipped) == 1


class TestHealth:
    def test_auth_error_marks_unhealthy_and_later_dispatch_skips(
        self, stub, orchestrate, health, notification_request
    ):
        textlocal = stub("TextLocal", 1, [AUTH])
        twilio = stub("Twilio", 2, [SUCCESS])
        orchestrator = orchestrate(textlocal, twilio)

        first = orchestrator.dispatch(notification_request)
        second = orchestrator.dispatch(notification_request)

        assert first.succeeded is True
        assert health.state("TextLocal") == ProviderHealth.UNHEALTHY
        assert second.attempts[0].result == SKIPPED
        assert len(textlocal.calls) == 1
        assert len(twilio.calls) == 2

    def test_success_and_rejection_mark_healthy(
        self, stub, orchestrate, health, notification_request
    ):
        orchestrate(
            stub("TextLocal", 1, [REJECTED]), stub("Twilio", 2, [SUCCESS])
        ).dispatch(notification_request)

        assert health.state("TextLocal") == ProviderHealth.HEALTHY
        assert health.state("Twilio") == ProviderHealth.HEALTHY

    def test_transport_error_leaves_health_unchanged(
        self, stub, orchestrate, health, notification_request
    ):
        orchestrate(stub("TextLocal", 1, [TRANSPORT])).dispatch(notification_request)

        assert health.state("TextLocal") == ProviderHealth.UNKNOWN

    def test_reload_resets_health(
        self, stub, orchestrate, health, registry_of, notification_request
    ):
        orchestrator = orchestrate(stub("TextLocal", 1, [AUTH]))
        orchestrator.dispatch(notification_request)

        replacement = stub("TextLocal", 1, [SUCCESS])
        orchestrator.reload(registry_of(replacement))
        result = orchestrator.dispatch(notification_request)

        assert result.succeeded is True
        assert health.snapshot() == {"TextLocal": ProviderHealth.HEALTHY}

    def test_provider_status(self, stub, orchestrate, notification_request):
        orchestrator = orchestrate(
            stub("Twilio", 2, [SUCCESS]),
            stub("TextLocal", 1, [AUTH]),
        )
        orchestrator.dispatch(notification_request)

        status = orchestrator.provider_status()

        assert [s["name"] for s in status] == ["TextLocal", "Twilio"]
        assert status[0]["health"] == "unhealthy"
        assert status[0]["reason"] == "TextLocal says auth_error"
        assert status[1]["health"] == "healthy"

    def test_concurrent_dispatches_keep_auth_failure_sticky(
        self, stub, orchestrate, health, notification_request
    ):
        textlocal = stub("TextLocal", 1, [AUTH])
        twilio = stub("Twilio", 2, [SUCCESS])
        orchestrator = orchestrate(textlocal, twilio)
        n = 8
        barrier = threading.Barrier(n)
        results = []

        def dispatch():
            barrier.wait()
            results.append(orchestrator.dispatch(notification_request))

        threads = [threading.Thread(target=dispatch) for _ in range(n)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(results) == n
        assert all(result.final_provider == "Twilio" for result in results)
        assert health.state("TextLocal") == ProviderHealth.UNHEALTHY
        assert health.state("Twilio") == ProviderHealth.HEALTHY


class TestFailureContainment:
    def test_adapter_exception_becomes_transport_error(
        self, stub, orchestrate, notification_request
    ):
        broken = stub("TextLocal", 1, [RuntimeError("socket exploded")])
        backup = stub("Twilio", 2, [SUCCESS])

        result = orchestrate(broken, backup).dispatch(notification_request)

        assert result.succeeded is True
        assert result.attempts[0].result == TRANSPORT
        assert result.attempts[0].provider_message == "RuntimeError: socket exploded"

    def test_slow_adapter_times_out(self, stub, orchestrate, notification_request):
        release = threading.Event()
        slow = stub("TextLocal", 1, [SUCCESS], before_send=lambda: release.wait(5))
        backup = stub("Twilio", 2, [SUCCESS])

        try:
            result = orchestrate(slow, backup, attempt_timeout=0.2).dispatch(
                notification_request
            )
        finally:
            release.set()

        assert result.final_provider == "Twilio"
        assert result.attempts[0].result == TRANSPORT
        assert result.attempts[0].provider_message == "no answer within 0.2s"

    def test_queued_attempt_is_not_reported_as_unanswered(
        self, stub, health, registry_of, notification_request
    ):
        release = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1)
        executor.submit(release.wait, 5)
        queued = stub("TextLocal", 1, [SUCCESS])
        orchestrator = FallbackOrchestrator(
            registry_of(queued), health, attempt_timeout=0.2, executor=executor
        )

        try:
            result = orchestrator.dispatch(notification_request)
        finally:
            release.set()
            orchestrator.close()

        assert result.succeeded is False
        assert result.attempts[0].result == TRANSPORT
        assert result.attempts[0].provider_message == (
            "not started within 0.2s: all attempt workers busy"
        )
        assert queued.calls == []

    def test_empty_registry_rejected(self, health):
        with pytest.raises(ValueError, match="At least one provider"):
            FallbackOrchestrator(ProviderRegistry(), health)

    def test_reload_with_empty_registry_rejected(
        self, stub, orchestrate, notification_request
    ):
        orchestrator = orchestrate(stub("TextLocal", 1, [SUCCESS]))

        with pytest.raises(ValueError):
            orchestrator.reload(ProviderRegistry())

        assert orchestrator.dispatch(notification_request).succeeded is True
