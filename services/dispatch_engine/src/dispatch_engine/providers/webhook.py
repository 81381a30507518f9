"""Generic webhook relay (e.g. a Zapier hook that forwards to SMS), tried last."""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import cast

import httpx

from shared.enums import AttemptResult, CapabilityFlag

from dispatch_engine.config import WebhookConfig
from dispatch_engine.providers.base import (
    DEFAULT_TIMEOUT_SECONDS,
    HttpProviderAdapter,
    describe,
)


class WebhookAdapter(HttpProviderAdapter):
    def __init__(
        self,
        config: WebhookConfig,
        client: httpx.Client,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        source_tag: str = "AKSHATA_PARLOR_BOOKING",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        super().__init__(
            describe(
                "Webhook",
                config.priority,
                config.credentials_present,
                CapabilityFlag.SUPPORTS_INTERNATIONAL,
            ),
            client,
            timeout,
        )
        self._config = config
        self._source_tag = source_tag
        self._clock = clock

    def _post(self, recipient: str, body: str) -> httpx.Response:
        url = cast(str, self._config.url)
        return self._client.post(
            url,
            json={
                "to": recipient,
                "message": body,
                "timestamp": self._clock().isoformat(),
                "source": self._source_tag,
            },
            timeout=self._timeout,
        )

    def _classify(self, response: httpx.Response) -> tuple[AttemptResult, str]:
        return AttemptResult.SUCCESS, f"HTTP {response.status_code}"
