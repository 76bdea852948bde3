"""
Module: exceptions.py
Description: Error types raised by the delivery pipeline.

TransportFailure covers anything that makes a single delivery attempt fail
and is always retryable. DecodeFailure marks a persisted record that can
never be delivered.
"""

from typing import Optional


class PlausibleEventsError(Exception):
    """Base class for delivery errors."""


class TransportFailure(PlausibleEventsError):
    """A delivery attempt failed (connection error, timeout or non-2xx response)."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class DecodeFailure(PlausibleEventsError):
    """A serialized event could not be parsed back into an Event."""
