"""AWS SNS, reached through an API-gateway relay endpoint."""

from typing import cast

import httpx
from pydantic import SecretStr

from shared.enums import AttemptResult, CapabilityFlag

from dispatch_engine.config import AwsSnsConfig
from dispatch_engine.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    HttpProviderAdapter,
    describe,
)


class AwsSnsAdapter(HttpProviderAdapter):
    def __init__(
        self,
        config: AwsSnsConfig,
        client: httpx.Client,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(
            describe(
                "AwsSns",
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
        endpoint = cast(str, self._config.endpoint)
        api_key = cast(SecretStr, self._config.api_key)
        return self._client.post(
            endpoint,
            json={
                "phoneNumber": recipient,
                "message": body,
                "senderId": self._config.sender_id,
            },
            headers={
                "Authorization": f"Bearer {api_key.get_secret_value()}"
            },
            timeout=self._timeout,
        )

    def _classify(self, response: httpx.Response) -> tuple[AttemptResult, str]:
        try:
            message_id = response.json().get("messageId")
        except (ValueError, AttributeError):
            message_id = None
        return (
            AttemptResult.SUCCESS,
            f"messageId={message_id}" if message_id else "accepted",
        )
