"""Provider registry: the ordered set of adapters a dispatch can try."""

from collections.abc import Iterator

import httpx

from dispatch_engine.config import (
    AwsSnsConfig,
    DispatchConfig,
    TextLocalConfig,
    TwilioConfig,
    WebhookConfig,
)
from dispatch_engine.models import ProviderDescriptor
from dispatch_engine.providers.aws_sns import AwsSnsAdapter
from dispatch_engine.providers.base import HttpProviderAdapter, ProviderAdapter
from dispatch_engine.providers.textlocal import TextLocalAdapter
from dispatch_engine.providers.twilio import TwilioAdapter
from dispatch_engine.providers.webhook import WebhookAdapter

__all__ = [
    "AwsSnsAdapter",
    "HttpProviderAdapter",
    "ProviderAdapter",
    "ProviderRegistry",
    "TextLocalAdapter",
    "TwilioAdapter",
    "WebhookAdapter",
    "create_default_registry",
]


class ProviderRegistry:
    """Maps provider names to adapters, remembering registration order.

    Registration order is the tie-break when two adapters share a
    priority.
    """

    def __init__(self) -> None:
        self._providers: dict[str, ProviderAdapter] = {}

    def register(self, provider: ProviderAdapter) -> None:
        if provider.name in self._providers:
            raise ValueError(f"Provider already registered: {provider.name!r}")
        self._providers[provider.name] = provider

    def get(self, name: str) -> ProviderAdapter:
        """Return the adapter registered under *name*.

        Raises KeyError if no adapter has that name.
        """
        return self._providers[name]

    def descriptors(self) -> list[ProviderDescriptor]:
        return [provider.descriptor for provider in self._providers.values()]

    def __iter__(self) -> Iterator[ProviderAdapter]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)


def create_default_registry(
    client: httpx.Client | None = None,
    dispatch_config: DispatchConfig | None = None,
) -> ProviderRegistry:
    """Create a registry with every enabled built-in adapter.

    Provider settings are read from the environment on each call, so
    calling this again is how configuration gets reloaded.
    """
    dispatch_config = dispatch_config or DispatchConfig()
    timeout = dispatch_config.attempt_timeout_seconds
    client = client or httpx.Client(timeout=timeout)

    registry = ProviderRegistry()

    textlocal = TextLocalConfig()
    if textlocal.enabled:
        registry.register(TextLocalAdapter(textlocal, client, timeout))

    twilio = TwilioConfig()
    if twilio.enabled:
        registry.register(TwilioAdapter(twilio, client, timeout))

    aws_sns = AwsSnsConfig()
    if aws_sns.enabled:
        registry.register(AwsSnsAdapter(aws_sns, client, timeout))

    webhook = WebhookConfig()
    if webhook.enabled:
        registry.register(
            WebhookAdapter(
                webhook, client, timeout, source_tag=dispatch_config.source_tag
            )
        )

    return registry
