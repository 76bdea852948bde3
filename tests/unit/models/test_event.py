"""
Module: test_event.py
Description: Unit tests for Event model validation.

Tests Pydantic model validation, URL normalization, props stringification,
immutability and the JSON codec shared by the wire and the retry queue.
"""

import json

import pytest
from pydantic import ValidationError

from plausible_events.exceptions import DecodeFailure
from plausible_events.models.event import Event, PAGEVIEW


class TestEventModel:
    """Test cases for Event model validation and behavior."""

    def test_valid_event_creation(self, sample_event):
        """Test creating a valid Event instance."""
        assert sample_event.domain == "test.example.com"
        assert sample_event.name == "signup"
        assert sample_event.url == "app://localhost/login"
        assert sample_event.screen_width == 123
        assert sample_event.props == {"plan": "pro", "trial": "true"}
        assert not sample_event.is_pageview

    def test_defaults(self):
        event = Event(domain="example.com", name=PAGEVIEW, url="https://example.com/")
        assert event.referrer == ""
        assert event.screen_width == 0
        assert event.props is None
        assert event.is_pageview

    def test_url_normalization(self):
        """Test missing scheme and authority are defaulted."""
        cases = {
            "eventUrl": "app://localhost/eventUrl",
            "/settings/profile": "app://localhost/settings/profile",
            "": "app://localhost",
            "//cdn.example.com/page": "app://cdn.example.com/page",
            "https://example.com/home?ref=1": "https://example.com/home?ref=1",
            "app://localhost/login": "app://localhost/login",
        }
        for raw, expected in cases.items():
            event = Event(domain="example.com", name="pageview", url=raw)
            assert event.url == expected, raw

    def test_props_values_stringified(self):
        """Test all prop values are stored as strings."""
        event = Event(
            domain="example.com",
            name="purchase",
            url="/checkout",
            props={"amount": 99.5, "count": 3, "gift": True, "coupon": None, "sku": "A1"}
        )
        assert event.props == {
            "amount": "99.5",
            "count": "3",
            "gift": "true",
            "coupon": "null",
            "sku": "A1",
        }

    def test_invalid_props(self):
        with pytest.raises(ValidationError):
            Event(domain="example.com", name="purchase", url="/", props=["not", "a", "mapping"])

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Event(domain="example.com", name="", url="/")

    def test_event_is_immutable(self, sample_event):
        """Test queued events cannot be mutated."""
        with pytest.raises(ValidationError):
            sample_event.url = "app://localhost/other"

    def test_json_uses_wire_field_names(self, sample_event):
        body = json.loads(sample_event.to_json())
        assert body == {
            "domain": "test.example.com",
            "name": "signup",
            "url": "app://localhost/login",
            "referrer": "https://search.example.org/?q=app",
            "screen_width": 123,
            "props": {"plan": "pro", "trial": "true"},
        }

    def test_json_round_trip(self, sample_event):
        """Test serializing and decoding yields an equal event."""
        decoded = Event.from_json(sample_event.to_json())
        assert decoded == sample_event

        bare = Event(domain="example.com", name="pageview", url="/home")
        assert Event.from_json(bare.to_json().encode("utf-8")) == bare

    def test_from_json_rejects_corrupt_data(self):
        """Test malformed records raise DecodeFailure."""
        corrupt = [
            "",
            "{not json",
            "[]",
            json.dumps({"domain": "example.com"}),
            json.dumps({"domain": "example.com", "name": "x", "url": "/", "screen_width": "wide"}),
        ]
        for data in corrupt:
            with pytest.raises(DecodeFailure):
                Event.from_json(data)
