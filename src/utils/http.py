"""
Remote document fetching

Shared httpx client for spreadsheet CSV exports and sitemap XML.
No retries: a failed fetch is reported to the caller as FetchError.
"""

import gzip
import logging
from typing import AsyncGenerator

import httpx

from .config import get_settings

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Remote resource could not be retrieved."""
    def __init__(self, message: str, url: str = None, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def create_http_client(timeout: float = None, transport: httpx.AsyncBaseTransport = None) -> httpx.AsyncClient:
    """Create an AsyncClient with the configured timeout and user agent."""
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=timeout or settings.FETCH_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": settings.FETCH_USER_AGENT},
        transport=transport,
    )


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    FastAPI dependency yielding a per-request HTTP client.

    Usage:
        @router.post("/fetch")
        async def fetch(client: httpx.AsyncClient = Depends(get_http_client)):
            ...
    """
    client = create_http_client()
    try:
        yield client
    finally:
        await client.aclose()


async def fetch_bytes(client: httpx.AsyncClient, url: str) -> bytes:
    """
    GET `url` and return the body, gunzipped when needed.

    Raises:
        FetchError: on transport failure or a non-2xx status
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch {url}: {e}")
        raise FetchError(f"Could not retrieve {url}", url=url) from e

    if not response.is_success:
        logger.warning(f"Fetching {url} returned HTTP {response.status_code}")
        raise FetchError(
            f"Could not retrieve {url} (HTTP {response.status_code})",
            url=url,
            status_code=response.status_code,
        )

    content = response.content
    if url.endswith(".gz") or content[:2] == b"\x1f\x8b":
        try:
            content = gzip.decompress(content)
        except OSError:
            pass  # Not actually gzipped

    return content


async def fetch_text(client: httpx.AsyncClient, url: str) -> str:
    """GET `url` and decode the body as UTF-8 (BOM stripped)."""
    content = await fetch_bytes(client, url)
    return content.decode("utf-8-sig", errors="replace")
