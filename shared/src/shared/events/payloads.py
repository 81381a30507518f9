import datetime as dt
import re
from decimal import Decimal

from pydantic import EmailStr, Field, field_validator

from shared.enums import PaymentMethod
from shared.events.base import EventPayload

_PHONE_RE = re.compile(r"^\+?\d{6,15}$")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None
    compact = re.sub(r"[\s\-()]", "", value)
    if not compact:
        return None
    if not _PHONE_RE.match(compact):
        raise ValueError(f"Invalid phone number: {value!r}")
    return compact


class BookingCreatedPayload(EventPayload):
    customer_name: str = Field(min_length=1)
    services: list[str] = Field(min_length=1)
    date: dt.date
    time: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    booking_id: str = Field(min_length=1)
    customer_email: EmailStr | None = None
    customer_phone: str | None = None

    @field_validator("services")
    @classmethod
    def _check_services(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError("Service names must not be blank")
        return cleaned

    @field_validator("customer_email", mode="before")
    @classmethod
    def _blank_email(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        return _normalize_phone(value)


class BookingConfirmationPayload(BookingCreatedPayload):
    customer_phone: str

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        normalized = _normalize_phone(value)
        if normalized is None:
            raise ValueError("Customer phone is required for a confirmation")
        return normalized


class PaymentReceivedPayload(EventPayload):
    customer_name: str = Field(min_length=1)
    payment_method: PaymentMethod
    amount: Decimal = Field(ge=0)
    booking_id: str = Field(min_length=1)
    date: dt.date
    time: str = Field(min_length=1)
    services: list[str] = Field(min_length=1)
    payment_id: str | None = None
    customer_email: EmailStr | None = None
    customer_phone: str | None = None

    @field_validator("customer_email", mode="before")
    @classmethod
    def _blank_email(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("customer_phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        return _normalize_phone(value)


class GenericTestPayload(EventPayload):
    requested_at: dt.datetime
    note: str = "SMS service is working correctly!"
