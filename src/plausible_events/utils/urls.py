"""
Module: urls.py
Description: URL normalization for tracked locations.

Mobile and desktop apps rarely have real web URLs, so screen names like
"login" are turned into "app://localhost/login". The collector derives the
page path from the URL, which only works when scheme and authority exist.
"""

from urllib.parse import urlsplit, urlunsplit

DEFAULT_SCHEME = "app"
DEFAULT_AUTHORITY = "localhost"


def normalize_url(url: str) -> str:
    """
    Fill in a missing scheme and authority.

    Args:
        url: Raw URL or screen path supplied by the caller

    Returns:
        URL with non-blank scheme and authority; already complete URLs
        are returned unchanged

    Example:
        >>> normalize_url("settings/profile")
        'app://localhost/settings/profile'
        >>> normalize_url("https://example.com/home")
        'https://example.com/home'
    """
    parts = urlsplit(url or "")
    scheme = parts.scheme if parts.scheme.strip() else DEFAULT_SCHEME
    netloc = parts.netloc if parts.netloc.strip() else DEFAULT_AUTHORITY
    if scheme == parts.scheme and netloc == parts.netloc:
        return url
    return urlunsplit((scheme, netloc, parts.path, parts.query, parts.fragment))
