from enum import StrEnum


class NotificationKind(StrEnum):
    BOOKING_CREATED = "booking-created"
    BOOKING_CONFIRMATION = "booking-confirmation"
    PAYMENT_RECEIVED = "payment-received"
    GENERIC_TEST = "generic-test"


ALL_NOTIFICATION_KINDS: set[str] = {kind.value for kind in NotificationKind}

# Kinds addressed to the salon operator rather than the customer.
OPERATOR_KINDS: frozenset[NotificationKind] = frozenset({
    NotificationKind.BOOKING_CREATED,
    NotificationKind.PAYMENT_RECEIVED,
    NotificationKind.GENERIC_TEST,
})


class AttemptResult(StrEnum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport_error"
    AUTH_ERROR = "auth_error"
    REJECTED_BY_PROVIDER = "rejected_by_provider"
    SKIPPED = "skipped"


class ProviderHealth(StrEnum):
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class CapabilityFlag(StrEnum):
    SUPPORTS_INTERNATIONAL = "supports_international"
    REQUIRES_CREDENTIALS = "requires_credentials"
    REGIONAL_ONLY = "regional_only"


class PaymentMethod(StrEnum):
    UPI = "upi"
    CARD = "card"
    CASH = "cash"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.UPI: "UPI Payment",
            PaymentMethod.CARD: "Card Payment",
            PaymentMethod.CASH: "Cash Payment",
        }[self]
