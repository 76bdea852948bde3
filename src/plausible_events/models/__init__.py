"""
Module: models
Description: Package initialization for Pydantic data models.

- Event: immutable analytics event with its JSON codec
"""

from .event import Event, PAGEVIEW

__all__ = [
    "Event",
    "PAGEVIEW",
]
