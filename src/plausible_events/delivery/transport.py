"""
Module: transport.py
Description: HTTP transport for posting events to the collector.

Performs exactly one POST per call with a bounded timeout. Retries and
persistence are the delivery engine's job, not the transport's.
"""

import httpx

from plausible_events.exceptions import TransportFailure
from plausible_events.models.event import Event
from plausible_events.utils.logger import get_logger

logger = get_logger(__name__)


class HttpTransport:
    """
    HTTP client for posting events to the collector's /event endpoint.

    Host and user agent are read from the config on every call, so runtime
    changes apply to the next attempt. Cancelling the awaiting task aborts
    the in-flight request.
    """

    def __init__(self, config):
        """
        Initialize HTTP transport.

        Args:
            config: DeliverySettings (or any object exposing host,
                user_agent and delivery_timeout)
        """
        self.config = config

    def event_url(self) -> str:
        return f"{self.config.host.rstrip('/')}/event"

    async def post(self, event: Event) -> None:
        """
        POST one event to the collector.

        Args:
            event: Event to deliver

        Raises:
            ValueError: If event is not an Event
            TransportFailure: On connection failure, timeout or non-2xx response
        """
        if not isinstance(event, Event):
            raise ValueError("event must be an Event instance")

        url = self.event_url()
        timeout = httpx.Timeout(self.config.delivery_timeout)

        async with httpx.AsyncClient(timeout=timeout) as client:
            try:
                logger.debug(
                    "Attempting event delivery",
                    event_name=event.name,
                    domain=event.domain,
                    url=url
                )

                response = await client.post(
                    url,
                    content=event.to_json(),
                    headers={
                        'Content-Type': 'application/json',
                        'User-Agent': self.config.user_agent,
                    }
                )

                response.raise_for_status()

                logger.info(
                    "Event delivered successfully",
                    event_name=event.name,
                    domain=event.domain,
                    status_code=response.status_code,
                    response_time_ms=response.elapsed.total_seconds() * 1000
                )

            except httpx.TimeoutException as e:
                logger.warning(
                    "Event delivery timeout",
                    event_name=event.name,
                    url=url
                )
                raise TransportFailure(f"Timed out posting to {url}") from e

            except httpx.HTTPStatusError as e:
                body = e.response.text[:500]  # Truncate large responses
                logger.warning(
                    "Event delivery HTTP error",
                    event_name=event.name,
                    status_code=e.response.status_code,
                    response=body
                )
                raise TransportFailure(
                    f"Received unexpected response: {e.response.status_code} {body}",
                    status_code=e.response.status_code
                ) from e

            except httpx.TransportError as e:
                logger.warning(
                    "Event delivery network error",
                    event_name=event.name,
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise TransportFailure(f"Failed to send event to {url}: {e}") from e

            except httpx.HTTPError as e:
                logger.error(
                    "Event delivery failed",
                    event_name=event.name,
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise TransportFailure(f"Failed to send event to {url}: {e}") from e
