"""Twilio: international SMS through the REST Messages API."""

from typing import cast

import httpx
from pydantic import SecretStr

from shared.enums import AttemptResult, CapabilityFlag

from dispatch_engine.config import TwilioConfig
from dispatch_engine.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    HttpProviderAdapter,
    describe,
    response_detail,
)

# Twilio error codes that point at our own account or sender setup:
# authentication failed, account suspended/inactive, invalid From number,
# From number not SMS capable.
_ACCOUNT_ERROR_CODES = frozenset({20003, 20005, 20006, 21212, 21606})


class TwilioAdapter(HttpProviderAdapter):
    def __init__(
        self,
        config: TwilioConfig,
        client: httpx.Client,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(
            describe(
                "Twilio",
                config.priority,
                config.credentials_present,
                CapabilityFlag.REQUIRES_CREDENTIALS,
                CapabilityFlag.SUPPORTS_INTERNATIONAL,
            ),
            client,
            timeout,
        )
        self._config = config

    def _post(self, recipient: str, body: str) -> httpx.Response:
        account_sid = cast(str, self._config.account_sid)
        auth_token = cast(SecretStr, self._config.auth_token)
        base_url = self._config.base_url.rstrip("/")
        return self._client.post(
            f"{base_url}/2010-04-01/Accounts/{account_sid}/Messages.json",
            data={"To": recipient, "From": self._config.from_phone, "Body": body},
            auth=(account_sid, auth_token.get_secret_value()),
            timeout=self._timeout,
        )

    def _classify(self, response: httpx.Response) -> tuple[AttemptResult, str]:
        try:
            sid = response.json().get("sid")
        except (ValueError, AttributeError):
            sid = None
        return AttemptResult.SUCCESS, f"sid={sid}" if sid else "accepted"

    def _classify_error(
        self, response: httpx.Response, status_result: AttemptResult
    ) -> tuple[AttemptResult, str]:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return super()._classify_error(response, status_result)

        code = payload.get("code")
        message = payload.get("message") or response_detail(response)
        detail = f"HTTP {response.status_code} code {code}: {message}"
        if code in _ACCOUNT_ERROR_CODES:
            return AttemptResult.AUTH_ERROR, detail
        return status_result, detail
