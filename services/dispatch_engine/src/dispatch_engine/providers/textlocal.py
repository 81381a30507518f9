"""TextLocal: regional (India) SMS gateway, tried first."""

from typing import cast

import httpx
from pydantic import SecretStr

from shared.enums import AttemptResult, CapabilityFlag

from dispatch_engine.config import TextLocalConfig
from dispatch_engine.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    HttpProviderAdapter,
    describe,
    response_detail,
)

# Error codes about the account itself rather than the message:
# invalid login, insufficient credits, invalid or missing sender name.
_ACCOUNT_ERROR_CODES = frozenset({3, 7, 43, 44})


class TextLocalAdapter(HttpProviderAdapter):
    """Sends through the TextLocal form API.

    TextLocal answers HTTP 200 for business-level failures and reports
    them as ``{"status": "failure", "errors": [{"code": .., "message": ..}]}``.
    """

    def __init__(
        self,
        config: TextLocalConfig,
        client: httpx.Client,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(
            describe(
                "TextLocal",
                config.priority,
                config.credentials_present,
                CapabilityFlag.REQUIRES_CREDENTIALS,
                CapabilityFlag.REGIONAL_ONLY,
            ),
            client,
            timeout,
        )
        self._config = config

    def check_prerequisites(self, recipient: str) -> str | None:
        problem = super().check_prerequisites(recipient)
        if problem is not None:
            return problem
        if not recipient.startswith(f"+{self._config.country_code}"):
            return (
                f"recipient outside +{self._config.country_code} "
                "is not supported by a regional gateway"
            )
        return None

    def _post(self, recipient: str, body: str) -> httpx.Response:
        api_key = cast(SecretStr, self._config.api_key)
        return self._client.post(
            self._config.base_url,
            data={
                "apikey": api_key.get_secret_value(),
                "numbers": recipient.lstrip("+"),
                "message": body,
                "sender": self._config.sender_id,
            },
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )

    def _classify(self, response: httpx.Response) -> tuple[AttemptResult, str]:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return (
                AttemptResult.TRANSPORT_ERROR,
                f"unreadable response: {response_detail(response)}",
            )

        if payload.get("status") == "success":
            batch = payload.get("batch_id")
            return AttemptResult.SUCCESS, f"batch_id={batch}" if batch else "sent"

        errors = payload.get("errors")
        first = errors[0] if isinstance(errors, list) and errors else {}
        if not isinstance(first, dict):
            first = {}
        code = first.get("code")
        message = first.get("message") or "TextLocal SMS sending failed"
        if code in _ACCOUNT_ERROR_CODES:
            return AttemptResult.AUTH_ERROR, f"code {code}: {message}"
        return AttemptResult.REJECTED_BY_PROVIDER, f"code {code}: {message}"
