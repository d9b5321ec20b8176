"""
Sitemap discovery and storage
"""

from .parser import ParsedSitemap, SitemapParseError, SitemapParser, SitemapUrl, parse_sitemap_xml
from .ingest import build_page_rows, store_page_urls

__all__ = [
    "ParsedSitemap",
    "SitemapParseError",
    "SitemapParser",
    "SitemapUrl",
    "parse_sitemap_xml",
    "build_page_rows",
    "store_page_urls",
]
