"""Provider adapter interface and the shared HTTP send/classify template."""

import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone

import httpx

from shared.enums import AttemptResult, CapabilityFlag

from dispatch_engine.models import AttemptOutcome, ProviderDescriptor

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 8.0

_E164_RE = re.compile(r"^\+\d{8,15}$")
_DETAIL_LIMIT = 300


class ProviderAdapter(ABC):
    """Base class for all notification transports."""

    def __init__(self, descriptor: ProviderDescriptor) -> None:
        self._descriptor = descriptor

    @property
    def descriptor(self) -> ProviderDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    @abstractmethod
    def send(self, recipient: str, body: str) -> AttemptOutcome:
        """Attempt to hand one message to the transport.

        Implementations must not raise; they report failures through the
        outcome's ``result`` instead.
        """


class HttpProviderAdapter(ProviderAdapter):
    """Adapter for providers reached over HTTP.

    Subclasses build the request (``_post``) and read the provider's
    verdict from a response (``_classify``). Prerequisite checks, timing
    and network-error handling live here so that every transport
    classifies failures the same way:

    * no credentials / unacceptable recipient: ``transport_error`` with
      no network call
    * timeouts, connection failures, HTTP 429 and 5xx: ``transport_error``
    * HTTP 401/403: ``auth_error``
    * other HTTP 4xx: ``rejected_by_provider``
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        client: httpx.Client,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(descriptor)
        self._client = client
        self._timeout = timeout

    def send(self, recipient: str, body: str) -> AttemptOutcome:
        started_at = datetime.now(timezone.utc)
        clock_start = time.monotonic()

        problem = self.check_prerequisites(recipient)
        if problem is not None:
            return self._outcome(
                started_at, clock_start, AttemptResult.TRANSPORT_ERROR, problem
            )

        try:
            response = self._post(recipient, body)
        except httpx.TimeoutException:
            return self._outcome(
                started_at,
                clock_start,
                AttemptResult.TRANSPORT_ERROR,
                f"timed out after {self._timeout:g}s",
            )
        except httpx.HTTPError as exc:
            return self._outcome(
                started_at,
                clock_start,
                AttemptResult.TRANSPORT_ERROR,
                f"{type(exc).__name__}: {exc}",
            )

        status_result = classify_http_status(response.status_code)
        if status_result is None:
            result, message = self._classify(response)
        else:
            result, message = self._classify_error(response, status_result)

        return self._outcome(started_at, clock_start, result, message)

    def check_prerequisites(self, recipient: str) -> str | None:
        """Return why this adapter cannot try *recipient*, or None."""
        if not self.descriptor.credentials_present:
            return "credentials not configured"
        if not _E164_RE.match(recipient or ""):
            return f"recipient {recipient!r} is not an E.164 number"
        return None

    @abstractmethod
    def _post(self, recipient: str, body: str) -> httpx.Response:
        """Perform the provider call. May raise httpx errors."""

    @abstractmethod
    def _classify(self, response: httpx.Response) -> tuple[AttemptResult, str]:
        """Classify a 2xx response into a result and diagnostic message."""

    def _classify_error(
        self, response: httpx.Response, status_result: AttemptResult
    ) -> tuple[AttemptResult, str]:
        """Classify a non-2xx response. Defaults to the HTTP status mapping."""
        return status_result, f"HTTP {response.status_code}: {response_detail(response)}"

    def _outcome(
        self,
        started_at: datetime,
        clock_start: float,
        result: AttemptResult,
        message: str | None,
    ) -> AttemptOutcome:
        outcome = AttemptOutcome(
            provider=self.name,
            started_at=started_at,
            duration_ms=int((time.monotonic() - clock_start) * 1000),
            result=result,
            provider_message=message,
        )
        logger.debug(
            "Provider attempt finished",
            extra={
                "provider": self.name,
                "result": str(result),
                "duration_ms": outcome.duration_ms,
            },
        )
        return outcome


def classify_http_status(status: int) -> AttemptResult | None:
    """Map non-2xx HTTP statuses to a result. Returns None for 2xx."""
    if 200 <= status < 300:
        return None
    if status in (401, 403):
        return AttemptResult.AUTH_ERROR
    if status == 429 or status >= 500:
        return AttemptResult.TRANSPORT_ERROR
    return AttemptResult.REJECTED_BY_PROVIDER


def response_detail(response: httpx.Response) -> str:
    """Provider diagnostics, trimmed for logs and the failure log."""
    text = response.text.strip() or response.reason_phrase
    return text[:_DETAIL_LIMIT]


def describe(
    name: str,
    priority: int,
    credentials_present: bool,
    *flags: CapabilityFlag,
) -> ProviderDescriptor:
    return ProviderDescriptor(
        name=name,
        priority=priority,
        capabilities=frozenset(flags),
        credentials_present=credentials_present,
    )
