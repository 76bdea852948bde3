"""
Package: plausible_events
Description: Best-effort analytics event delivery for client applications.

Sends page views and custom events to a Plausible-compatible collector,
persisting failed events to disk and retrying them later.
"""

__version__ = "0.1.0"

from .client import Plausible
from .config.settings import DeliverySettings
from .delivery.engine import DeliveryEngine, DeliveryState, ReplaySummary
from .exceptions import DecodeFailure, TransportFailure
from .models.event import Event

__all__ = [
    "Plausible",
    "DeliverySettings",
    "DeliveryEngine",
    "DeliveryState",
    "ReplaySummary",
    "DecodeFailure",
    "TransportFailure",
    "Event",
]
