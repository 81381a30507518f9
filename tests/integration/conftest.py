"""Integration fixtures: the real engine and HTTP API over fake SMS gateways.

Every built-in adapter is configured through environment variables, and
all provider traffic goes to an in-process httpx transport that answers
like the real gateways would.
"""

from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from flask.testing import FlaskClient

from dispatch_engine.engine import DispatchEngine, build_engine

from operator_api.app import create_app

pytestmark = pytest.mark.integration

TEXTLOCAL_HOST = "api.textlocal.in"
TWILIO_HOST = "api.twilio.com"
SNS_HOST = "sns.example.com"
WEBHOOK_HOST = "hooks.example.com"

Responder = Callable[[httpx.Request], httpx.Response]


def textlocal_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"status": "success", "batch_id": 9001})


def textlocal_bad_key(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={
        "status": "failure",
        "errors": [{"code": 3, "message": "Invalid login details"}],
    })


def twilio_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"sid": "SM0001", "status": "queued"})


def sns_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"messageId": "sns-0001"})


def webhook_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text="accepted")


def unavailable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="Service Unavailable")


class FakeGateways:
    """Routes provider requests by host and records every one of them."""

    def __init__(self) -> None:
        self.responders: dict[str, Responder] = {
            TEXTLOCAL_HOST: textlocal_ok,
            TWILIO_HOST: twilio_ok,
            SNS_HOST: sns_ok,
            WEBHOOK_HOST: webhook_ok,
        }
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responders[request.url.host](request)

    def hits(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def answer(self, host: str, status: int, **kwargs: object) -> None:
        """Make *host* reply with a fixed response from now on."""
        self.responders[host] = lambda request: httpx.Response(status, **kwargs)

    def fail_all(self) -> None:
        for host in self.responders:
            self.responders[host] = unavailable


@pytest.fixture()
def gateways() -> FakeGateways:
    return FakeGateways()


@pytest.fixture()
def provider_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> str:
    """Configure every provider plus a failure log file. Returns the DSN."""
    dsn = f"sqlite:///{tmp_path / 'failure_log.db'}"
    env = {
        "FAILURE_LOG_DB_DSN": dsn,
        "DISPATCH_OPERATOR_PHONE": "+919740303404",
        "DISPATCH_ATTEMPT_TIMEOUT_SECONDS": "2",
        "TEXTLOCAL_API_KEY": "tl-live-key",
        "TWILIO_ACCOUNT_SID": "AC0123456789",
        "TWILIO_AUTH_TOKEN": "tw-secret",
        "TWILIO_FROM_PHONE": "+15005550006",
        "AWS_SNS_ENDPOINT": f"https://{SNS_HOST}/sms",
        "AWS_SNS_API_KEY": "sns-secret",
        "SMS_WEBHOOK_URL": f"https://{WEBHOOK_HOST}/sms",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return dsn


@pytest.fixture()
def make_engine(
    provider_env: str, gateways: FakeGateways
) -> Generator[Callable[[], DispatchEngine], None, None]:
    """Build engines the way a process start does; closed after the test."""
    engines: list[DispatchEngine] = []

    def _make() -> DispatchEngine:
        client = httpx.Client(transport=httpx.MockTransport(gateways))
        engine = build_engine(http_client=client)
        engines.append(engine)
        return engine

    yield _make
    for engine in engines:
        engine.close()


@pytest.fixture()
def engine(make_engine: Callable[[], DispatchEngine]) -> DispatchEngine:
    return make_engine()


@pytest.fixture()
def http_client(engine: DispatchEngine) -> FlaskClient:
    app = create_app(engine)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture()
def booking_data() -> dict:
    return {
        "customerName": "Anjali Rao",
        "services": ["Hair Spa", "Manicure", "Pedicure", "Threading"],
        "date": "2026-10-24",
        "time": "5:30 PM",
        "amount": "3450.50",
        "bookingId": "AKP-20261024-017",
        "customerEmail": "anjali@example.com",
        "customerPhone": "98860 44321",
    }

