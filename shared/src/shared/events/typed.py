from typing import Any

from shared.enums import NotificationKind
from shared.events.base import EventPayload
from shared.events.payloads import (
    BookingConfirmationPayload,
    BookingCreatedPayload,
    GenericTestPayload,
    PaymentReceivedPayload,
)

AnyPayload = (
    BookingCreatedPayload
    | BookingConfirmationPayload
    | PaymentReceivedPayload
    | GenericTestPayload
)

_PAYLOAD_REGISTRY: dict[str, type[EventPayload]] = {
    NotificationKind.BOOKING_CREATED: BookingCreatedPayload,
    NotificationKind.BOOKING_CONFIRMATION: BookingConfirmationPayload,
    NotificationKind.PAYMENT_RECEIVED: PaymentReceivedPayload,
    NotificationKind.GENERIC_TEST: GenericTestPayload,
}


def payload_model_for(kind: str) -> type[EventPayload]:
    """Return the payload model for a notification kind.

    Raises ValueError for unknown kinds.
    """
    model = _PAYLOAD_REGISTRY.get(kind)
    if model is None:
        raise ValueError(f"Unknown notification kind: {kind!r}")
    return model


def parse_payload(kind: str, raw: Any) -> AnyPayload:
    """Validate raw event data (e.g. from a booking flow) for *kind*.

    Raises ValueError if the kind is unknown and pydantic's
    ValidationError if required fields are missing or malformed.
    """
    if not isinstance(raw, dict):
        raise ValueError("Event data must be a mapping of named fields")
    return payload_model_for(kind).model_validate(raw)  # type: ignore[return-value]
