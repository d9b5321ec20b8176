"""Utility modules for the Pinrank competitor tracker."""

from .config import Settings, get_settings
from .http import (
    FetchError,
    create_http_client,
    get_http_client,
    fetch_bytes,
    fetch_text,
)

__all__ = [
    "Settings",
    "get_settings",
    # Remote fetching
    "FetchError",
    "create_http_client",
    "get_http_client",
    "fetch_bytes",
    "fetch_text",
]
