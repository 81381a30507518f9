from shared.events.base import EventPayload
from shared.events.payloads import (
    BookingConfirmationPayload,
    BookingCreatedPayload,
    GenericTestPayload,
    PaymentReceivedPayload,
)
from shared.events.typed import AnyPayload, parse_payload, payload_model_for

__all__ = [
    "EventPayload",
    "BookingCreatedPayload",
    "BookingConfirmationPayload",
    "PaymentReceivedPayload",
    "GenericTestPayload",
    "AnyPayload",
    "parse_payload",
    "payload_model_for",
]
