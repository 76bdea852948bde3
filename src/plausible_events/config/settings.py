"""
Module: settings.py
Description: Delivery configuration using pydantic-settings.

Configures the event client from PLAUSIBLE_* environment variables with
validation and defaults. Supports .env files for local development.
Fields are re-validated on assignment so the tracker can flip them at
runtime (enable/disable, user agent) while deliveries are in flight.
"""

import platform
import re
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from plausible_events import __version__

DEFAULT_PLAUSIBLE_HOST = "https://plausible.io/api"
DEFAULT_USER_AGENT = (
    f"plausible-events/{__version__} "
    f"Python/{platform.python_version()} {platform.system()} {platform.release()}"
)
DEFAULT_EVENT_DIR = Path.home() / ".plausible" / "events"

_DOMAIN_PATTERN = re.compile(
    r"^(?:https?://)?(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}(?::\d{1,5})?(?:/\S*)?$",
    re.IGNORECASE,
)


class DeliverySettings(BaseSettings):
    """Event delivery settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PLAUSIBLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    domain: str = Field(default="", description="Domain name of the site in Plausible")
    enable: bool = Field(
        default=True,
        description="Whether events are sent at all (user opt-in/opt-out)"
    )
    host: str = Field(
        default=DEFAULT_PLAUSIBLE_HOST,
        description="Base URL of the collector API; events go to <host>/event"
    )
    retry_on_failure: bool = Field(
        default=True,
        description=(
            "Persist failed events to event_dir and resend later. The Events API "
            "takes no timestamp, so resent events are recorded at resend time."
        )
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header; the collector derives visitor and device data from it"
    )
    event_dir: Path = Field(
        default=DEFAULT_EVENT_DIR,
        description="Directory holding events pending retry"
    )
    screen_width: int = Field(default=0, ge=0, description="Width of the screen in dp")
    delivery_timeout: float = Field(
        default=10,
        ge=1,
        le=60,
        description="HTTP timeout in seconds for delivery attempts"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level applied by the Plausible tracker and the CLI"
    )

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Validate domain looks like a web host, or is empty."""
        v = v.strip()
        if v and not _DOMAIN_PATTERN.match(v):
            raise ValueError("Invalid URL format")
        return v

    @field_validator('host')
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Blank host falls back to the public collector."""
        v = v.strip()
        if not v:
            return DEFAULT_PLAUSIBLE_HOST
        if not v.startswith(('http://', 'https://')):
            raise ValueError("host must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        return v if v.strip() else DEFAULT_USER_AGENT

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

