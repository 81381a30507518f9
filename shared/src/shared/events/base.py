from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class EventPayload(BaseModel):
    """Base for business-event payloads handed to the dispatch engine.

    Booking and payment flows send camelCase keys (``customerName``,
    ``bookingId``); Python callers may use the snake_case field names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
    )
