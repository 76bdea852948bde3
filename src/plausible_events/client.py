"""
Module: client.py
Description: Public tracker API for sending analytics events.

Thin facade over the delivery engine: it stamps events with the
configured domain and screen width and hands them off fire-and-forget.
"""

from typing import Any, Dict, Optional

from plausible_events.config.settings import DeliverySettings
from plausible_events.delivery.engine import DeliveryEngine
from plausible_events.models.event import PAGEVIEW
from plausible_events.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


class Plausible:
    """
    Tracker for sending page views and custom events.

    Args:
        domain: Site domain to track events for; overrides config.domain
        host: Collector base URL; overrides config.host
        config: DeliverySettings to use (a fresh one from the environment
            when omitted); its log_level is applied to structlog
        client: Object exposing ``submit(domain, name, url, referrer,
            screen_width, props)``; defaults to a DeliveryEngine

    Example:
        >>> async with Plausible("example.com") as plausible:
        ...     plausible.page_view("/login")
        ...     plausible.event("signup", "/login", props={"plan": "pro"})
    """

    def __init__(
        self,
        domain: Optional[str] = None,
        host: Optional[str] = None,
        *,
        config: Optional[DeliverySettings] = None,
        client=None
    ):
        self.config = config if config is not None else DeliverySettings()
        configure_logging(self.config.log_level)
        if domain is not None:
            self.config.domain = domain
        if host is not None:
            self.config.host = host
        self.client = client if client is not None else DeliveryEngine(self.config)

    async def __aenter__(self) -> "Plausible":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def start(self) -> None:
        """Start the underlying client (replays events left from earlier runs)."""
        start = getattr(self.client, "start", None)
        if start is not None:
            start()

    async def aclose(self) -> None:
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    def enable(self, enable: bool) -> None:
        """Enable or disable event sending, e.g. for user opt-out."""
        self.config.enable = enable

    def set_user_agent(self, user_agent: str) -> None:
        """
        Set the User-Agent sent with every event.

        The collector hashes the raw User-Agent into the visitor id and
        derives the device report from it. A blank value restores the default.
        """
        self.config.user_agent = user_agent

    def page_view(
        self,
        url: str,
        referrer: str = "",
        props: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Send a ``pageview`` event.

        Args:
            url: Location of the page. Apps can send screen paths such as
                ``/login``; they are sent as ``app://localhost/login`` and the
                path shows up as the page in the dashboard.
            referrer: Referrer for this event
            props: Custom properties; values must be scalar
        """
        self.event(PAGEVIEW, url, referrer=referrer, props=props)

    def event(
        self,
        name: str,
        url: str,
        referrer: str = "",
        props: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Send a custom event. Use page_view() for page views.

        Args:
            name: Event name; ``pageview`` is reserved for page views
            url: Location where the event was triggered
            referrer: Referrer for this event
            props: Custom properties; values must be scalar
        """
        if not self.config.domain:
            logger.warning("Sending event without a domain", event_name=name)

        self.client.submit(
            self.config.domain,
            name,
            url,
            referrer,
            self.config.screen_width,
            props
        )
