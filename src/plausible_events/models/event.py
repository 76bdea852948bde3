"""
Module: event.py
Description: Event data model for the analytics delivery client.

Defines the immutable Event value object sent to the collector and
persisted to the retry queue. The same JSON form is used on the wire
and on disk.

Key Components:
- Event: frozen pydantic model with URL and props normalization
- Event.to_json() / Event.from_json(): wire and persisted codec
- PAGEVIEW: reserved event name with special meaning to the collector

Dependencies: pydantic, typing
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plausible_events.exceptions import DecodeFailure
from plausible_events.utils.urls import normalize_url

PAGEVIEW = "pageview"


def _prop_to_str(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Event(BaseModel):
    """
    One tracked occurrence (page view or custom event).

    Events are frozen once constructed: retries and replays resend the
    identical payload.

    Attributes:
        domain: Site identifier registered with the collector
        name: Event name; "pageview" is reserved, anything else is custom
        url: Triggering location, always with scheme and authority
        referrer: Free-form referrer string
        screen_width: Device width in density-independent units
        props: Optional custom properties, values stored as strings
    """

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., description="Site identifier")
    name: str = Field(..., min_length=1, description="Event name")
    url: str = Field(..., description="URL of the triggering location")
    referrer: str = Field(default="", description="Referrer for this event")
    screen_width: int = Field(default=0, description="Screen width in dp")
    props: Optional[Dict[str, str]] = Field(
        default=None,
        description="Custom properties; scalar values are stringified"
    )

    @field_validator('url', mode='before')
    @classmethod
    def validate_url(cls, v: Any) -> str:
        """Default a missing scheme to app:// and a missing authority to localhost."""
        if v is None:
            v = ""
        if not isinstance(v, str):
            raise ValueError("url must be a string")
        return normalize_url(v)

    @field_validator('referrer', mode='before')
    @classmethod
    def validate_referrer(cls, v: Any) -> str:
        return "" if v is None else v

    @field_validator('props', mode='before')
    @classmethod
    def validate_props(cls, v: Any) -> Optional[Dict[str, str]]:
        """Store every property value as its string representation."""
        if v is None:
            return None
        if not isinstance(v, dict):
            raise ValueError("props must be a mapping")
        return {str(key): _prop_to_str(value) for key, value in v.items()}

    @property
    def is_pageview(self) -> bool:
        return self.name == PAGEVIEW

    def to_json(self) -> str:
        """Serialize to the wire/persisted JSON body."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data) -> "Event":
        """
        Parse an event from its JSON form.

        Args:
            data: JSON text (str or bytes)

        Returns:
            Decoded Event

        Raises:
            DecodeFailure: If the text is not valid JSON or violates the schema
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise DecodeFailure(f"Invalid event JSON: {e.error_count()} error(s)") from e
