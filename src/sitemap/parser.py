"""
Sitemap Parser

Fetches XML sitemaps and splits them into page entries and child
sitemap references.

Supports:
- Standard <urlset> sitemaps (loc + optional lastmod)
- Sitemap index files (<sitemapindex>), returned as child URLs for the
  caller to fetch
- Compressed sitemaps (.gz)

Index files are not followed recursively here; `fetch_many` is given the
child URLs explicitly and fetches them in small parallel batches.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
import xml.etree.ElementTree as ET

import httpx

from src.utils.config import get_settings
from src.utils.http import FetchError, fetch_text

logger = logging.getLogger(__name__)


class SitemapParseError(Exception):
    """Sitemap body is not well-formed XML."""
    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


@dataclass
class SitemapUrl:
    """A page entry from a <urlset>."""
    loc: str
    lastmod: Optional[str] = None

    def to_dict(self) -> dict:
        return {"loc": self.loc, "lastmod": self.lastmod}


@dataclass
class ParsedSitemap:
    """Page entries and child sitemap URLs found in one or more documents."""
    urls: List[SitemapUrl] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)

    def extend(self, other: "ParsedSitemap") -> None:
        self.urls.extend(other.urls)
        self.sitemaps.extend(other.sitemaps)

    def to_dict(self) -> dict:
        return {
            "urls": [u.to_dict() for u in self.urls],
            "sitemaps": list(self.sitemaps),
        }


def _local_name(tag: str) -> str:
    """'{ns}urlset' -> 'urlset'"""
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> Optional[str]:
    for child in elem:
        if _local_name(child.tag) == name and child.text and child.text.strip():
            return child.text.strip()
    return None


def parse_sitemap_xml(xml_content: str, url: str = None) -> ParsedSitemap:
    """
    Parse one sitemap document.

    <sitemapindex> -> sitemaps filled, <urlset> -> urls filled,
    any other root -> both empty.

    Raises:
        SitemapParseError: on malformed XML
    """
    result = ParsedSitemap()

    # Remove default XML namespace for easier parsing
    xml_content = re.sub(r'\sxmlns="[^"]+"', '', xml_content, count=1)
    try:
        root = ET.fromstring(xml_content.strip())
    except ET.ParseError as e:
        logger.warning(f"XML parse error in {url or 'sitemap'}: {e}")
        raise SitemapParseError(f"Failed to parse sitemap: {e}", url=url) from e

    root_name = _local_name(root.tag)

    if root_name == "sitemapindex":
        for sitemap_elem in root:
            if _local_name(sitemap_elem.tag) != "sitemap":
                continue
            loc = _child_text(sitemap_elem, "loc")
            if loc:
                result.sitemaps.append(loc)

    elif root_name == "urlset":
        for url_elem in root:
            if _local_name(url_elem.tag) != "url":
                continue
            loc = _child_text(url_elem, "loc")
            if not loc:
                continue
            result.urls.append(SitemapUrl(loc=loc, lastmod=_child_text(url_elem, "lastmod")))

    else:
        logger.info(f"Unrecognized sitemap root <{root_name}> in {url or 'sitemap'}")

    return result


class SitemapParser:
    """
    Fetches and parses sitemaps over a shared HTTP client.

    Usage:
        async with create_http_client() as client:
            parser = SitemapParser(client)
            result = await parser.fetch_and_parse("https://example.com/sitemap.xml")
            children = await parser.fetch_many(result.sitemaps)
    """

    def __init__(self, client: httpx.AsyncClient, concurrency: int = None):
        self.client = client
        self.concurrency = concurrency or get_settings().SITEMAP_FETCH_CONCURRENCY

    async def fetch_and_parse(self, url: str) -> ParsedSitemap:
        """
        Fetch one sitemap document and parse it.

        Raises:
            FetchError: on network failure or non-2xx response
            SitemapParseError: on malformed XML
        """
        xml_content = await fetch_text(self.client, url)
        result = parse_sitemap_xml(xml_content, url=url)
        logger.info(f"Parsed {url}: {len(result.urls)} URLs, {len(result.sitemaps)} child sitemaps")
        return result

    async def fetch_many(self, urls: List[str]) -> ParsedSitemap:
        """
        Fetch several sitemaps, `concurrency` at a time, and merge them.

        Documents that fail to fetch or parse are logged and left out.
        """
        combined = ParsedSitemap()

        for i in range(0, len(urls), self.concurrency):
            batch = urls[i:i + self.concurrency]
            results = await asyncio.gather(
                *(self.fetch_and_parse(u) for u in batch),
                return_exceptions=True,
            )
            for url, result in zip(batch, results):
                if isinstance(result, (FetchError, SitemapParseError)):
                    logger.warning(f"Skipping sitemap {url}: {result}")
                    continue
                if isinstance(result, BaseException):
                    raise result
                combined.extend(result)

        logger.info(
            f"Fetched {len(urls)} sitemaps: {len(combined.urls)} URLs, "
            f"{len(combined.sitemaps)} child sitemaps"
        )
        return combined
