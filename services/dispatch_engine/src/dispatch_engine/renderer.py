"""Jinja2 rendering of business events into channel-ready SMS text.

Rendering is pure: the same kind and event data always give the same body,
recipient and default correlation id.
"""

import datetime
import hashlib
import json
from decimal import Decimal
from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment
from pydantic import ValidationError

from shared.enums import OPERATOR_KINDS, NotificationKind
from shared.events import AnyPayload, parse_payload

from dispatch_engine.errors import InvalidEventData
from dispatch_engine.models import RenderedMessage

TRUNCATION_MARKER = "…[truncated]"
DEFAULT_MAX_LENGTH = 1000


def _format_inr(amount: Decimal) -> str:
    """Format an amount with Indian digit grouping, e.g. ₹1,25,000.50."""
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    if value == value.to_integral_value():
        text = f"{value.to_integral_value():f}"
    else:
        text = f"{value.quantize(Decimal('0.01')):f}"
    whole, _, fraction = text.partition(".")
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join([*groups, tail]) if groups else tail
    return f"{sign}₹{grouped}" + (f".{fraction}" if fraction else "")


def _long_date(value: datetime.date) -> str:
    return f"{value:%A}, {value.day} {value:%B %Y}"


def _short_date(value: datetime.date) -> str:
    return f"{value:%a}, {value.day} {value:%b}"


def _numeric_date(value: datetime.date) -> str:
    return f"{value.day}/{value.month}/{value.year}"


def _service_summary(services: list[str], shown: int = 2) -> str:
    summary = ", ".join(services[:shown])
    if len(services) > shown:
        summary += f" +{len(services) - shown} more"
    return summary


_env = SandboxedEnvironment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters.update(
    inr=_format_inr,
    long_date=_long_date,
    short_date=_short_date,
    numeric_date=_numeric_date,
    service_summary=_service_summary,
)

_TEMPLATES: dict[NotificationKind, str] = {
    NotificationKind.BOOKING_CREATED: """\
NEW APPOINTMENT BOOKED!

Customer: {{ customer_name }}
Email: {{ customer_email or "Not provided" }}
Phone: {{ customer_phone_display or "Not provided" }}

Date: {{ date | long_date }}
Time: {{ time }}

Services:
{{ services | join(", ") }}

Total Amount: {{ amount | inr }}

Booking ID: {{ booking_id }}

Please confirm the appointment with the customer.

- AKSHATA PARLOR System""",
    NotificationKind.BOOKING_CONFIRMATION: """\
AKSHATA PARLOR - Booking Confirmed!

Hi {{ customer_name }}!

Your appointment is confirmed:
Date: {{ date | short_date }} at {{ time }}
Services: {{ services | service_summary }}
Amount: {{ amount | inr }}

Booking ID: {{ booking_id }}

We'll call you 1 day before to confirm. For any changes, call +91 98765 43210.

Thank you for choosing AKSHATA PARLOR!""",
    NotificationKind.PAYMENT_RECEIVED: """\
PAYMENT RECEIVED - AKSHATA PARLOR

Customer: {{ customer_name }}
Email: {{ customer_email or "Not provided" }}
Phone: {{ customer_phone_display or "Not provided" }}

Payment Method: {{ payment_method.label }}
Amount: {{ amount | inr }}
Booking ID: {{ booking_id }}
{% if payment_id %}
Payment ID: {{ payment_id }}
{% endif %}

Appointment: {{ date | numeric_date }} at {{ time }}
Services: {{ services | join(", ") }}

Payment confirmed and appointment secured!

- AKSHATA PARLOR System""",
    NotificationKind.GENERIC_TEST: """\
TEST MESSAGE - {{ requested_at.strftime("%d/%m/%Y %H:%M:%S") }}

This is a test message from AKSHATA PARLOR booking system.

{{ note }}
Real-time notifications are active.

- AKSHATA PARLOR System""",
}

_COMPILED = {kind: _env.from_string(source) for kind, source in _TEMPLATES.items()}


def to_e164(phone: str, default_country_code: str) -> str:
    """Prefix bare national numbers with ``+<country code>``."""
    if phone.startswith("+"):
        return phone
    if phone.startswith("00"):
        return f"+{phone[2:]}"
    return f"+{default_country_code}{phone}"


def truncate(body: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Bound *body* to *max_length* characters, marking any cut."""
    if max_length <= len(TRUNCATION_MARKER):
        raise ValueError(
            f"max_length must exceed the truncation marker length "
            f"({len(TRUNCATION_MARKER)})"
        )
    if len(body) <= max_length:
        return body
    return body[: max_length - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def correlation_id_for(kind: NotificationKind, payload: AnyPayload) -> str:
    """Stable id derived from the event content."""
    canonical = json.dumps(
        {"kind": str(kind), "data": payload.model_dump(mode="json")},
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{kind}:{digest[:32]}"


def render(
    kind: str,
    event_data: Any,
    *,
    operator_phone: str,
    default_country_code: str = "91",
    max_length: int = DEFAULT_MAX_LENGTH,
) -> RenderedMessage:
    """Render event data for *kind* into an SMS body and recipient.

    Raises InvalidEventData if the kind is unknown or the event data
    lacks fields the template needs. Nothing partially rendered is
    ever returned.
    """
    try:
        notification_kind = NotificationKind(kind)
    except ValueError as exc:
        raise InvalidEventData(str(kind), "unknown notification kind") from exc

    try:
        payload = parse_payload(notification_kind, event_data)
    except ValidationError as exc:
        raise InvalidEventData(
            notification_kind,
            f"{exc.error_count()} field(s) failed validation",
            exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
    except ValueError as exc:
        raise InvalidEventData(notification_kind, str(exc)) from exc

    context = payload.model_dump()
    phone = getattr(payload, "customer_phone", None)
    context["customer_phone_display"] = (
        to_e164(phone, default_country_code) if phone else None
    )

    try:
        body = _COMPILED[notification_kind].render(context)
    except TemplateError as exc:
        raise InvalidEventData(notification_kind, str(exc)) from exc

    if notification_kind in OPERATOR_KINDS:
        recipient = operator_phone
    else:
        recipient = context["customer_phone_display"]

    return RenderedMessage(
        body=truncate(body, max_length),
        recipient=recipient,
        correlation_id=correlation_id_for(notification_kind, payload),
    )
