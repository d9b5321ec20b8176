"""
Google Sheets Importer

Pulls keyword exports from a remote CSV or a Google Sheets document and
feeds them through the normalizer and reconciliation engine.

Two entry points:
- import_csv_url: one URL -> one known domain
- import_spreadsheet: every tab of a spreadsheet -> the domain named by
  each tab's links (created on first sight)

Sheet URL handling:
- Published sheets (".../d/e/..." or "output=csv") are fetched as-is with
  output=csv forced; only the tab named by gid is read.
- Regular sheets ("/d/<id>/...") are exported per tab through
  /export?format=csv&gid=N. Tabs are discovered by scraping the editor
  page; if that fails the gid in the URL (or 0) is used.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import httpx
from sqlalchemy.orm import Session

from src.database.models import UrlSource
from src.database.repository import find_or_create_domain, get_domain
from src.database.session import transaction
from src.utils.http import FetchError, fetch_bytes, fetch_text

from .csv_source import parse_csv
from .normalizer import (
    ImportValidationError,
    extract_domain,
    map_columns,
    normalize_rows,
    LINK,
)
from .reconcile import ImportResult, reconcile_rankings

logger = logging.getLogger(__name__)

SHEETS_BASE_URL = "https://docs.google.com/spreadsheets/d"

_SHEET_ID = re.compile(r"/d/([a-zA-Z0-9-_]+)")
_GID = re.compile(r"[#&?]gid=(\d+)")
_TAB_LINK = re.compile(r"gid=(\d+)[^>]*>([^<]+)<")


class InvalidSheetUrlError(ImportValidationError):
    """URL is neither a published sheet nor a /d/<id> spreadsheet link."""
    def __init__(self, url: str):
        super().__init__("Invalid Google Sheets URL")
        self.url = url


@dataclass
class SheetTab:
    gid: str
    name: str
    csv_url: str


# =============================================================================
# URL RESOLUTION
# =============================================================================

def is_published_url(url: str) -> bool:
    return "/d/e/" in url or "output=csv" in url


def extract_gid(url: str) -> Optional[str]:
    """gid from the query string or fragment, if any."""
    match = _GID.search(url)
    return match.group(1) if match else None


def extract_sheet_id(url: str) -> str:
    """
    Spreadsheet id from a /d/<id>/ URL.

    Raises:
        InvalidSheetUrlError: if no id is present
    """
    match = _SHEET_ID.search(url)
    if not match or match.group(1) == "e":
        raise InvalidSheetUrlError(url)
    return match.group(1)


def export_url(sheet_id: str, gid: str) -> str:
    return f"{SHEETS_BASE_URL}/{sheet_id}/export?format=csv&gid={gid}"


def to_csv_export_url(url: str) -> str:
    """
    Turn any accepted URL into something that returns CSV.

    Google Sheets links become their CSV export; other URLs (plain .csv
    files) are returned unchanged.
    """
    url = url.strip()
    if "docs.google.com/spreadsheets" not in url:
        return url
    if is_published_url(url):
        return _force_csv_output(url)
    return export_url(extract_sheet_id(url), extract_gid(url) or "0")


def _force_csv_output(url: str) -> str:
    if "output=csv" in url:
        return url
    query = parse_qs(urlparse(url).query)
    if "output" in query:
        return re.sub(r"output=[^&#]*", "output=csv", url)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}output=csv"


def parse_tab_listing(html: str) -> List[Dict[str, str]]:
    """(gid, name) pairs scraped from the spreadsheet editor page, de-duplicated."""
    tabs: List[Dict[str, str]] = []
    seen = set()
    for gid, name in _TAB_LINK.findall(html):
        name = name.strip()
        if gid in seen or not name:
            continue
        seen.add(gid)
        tabs.append({"gid": gid, "name": name})
    return tabs


async def discover_tabs(client: httpx.AsyncClient, url: str) -> List[SheetTab]:
    """
    List the tabs of a spreadsheet.

    Raises:
        InvalidSheetUrlError: for URLs that are not Google Sheets links
    """
    url = url.strip()

    if is_published_url(url):
        gid = extract_gid(url) or "0"
        return [SheetTab(gid=gid, name=f"Sheet (gid={gid})", csv_url=_force_csv_output(url))]

    sheet_id = extract_sheet_id(url)
    tabs: List[Dict[str, str]] = []
    try:
        html = await fetch_text(client, f"{SHEETS_BASE_URL}/{sheet_id}/edit")
        tabs = parse_tab_listing(html)
    except FetchError as e:
        logger.warning(f"Could not list tabs for sheet {sheet_id}: {e}")

    if not tabs:
        tabs = [{"gid": extract_gid(url) or "0", "name": "Sheet1"}]

    logger.info(f"Found {len(tabs)} tab(s) in sheet {sheet_id}")
    return [SheetTab(gid=t["gid"], name=t["name"], csv_url=export_url(sheet_id, t["gid"])) for t in tabs]


# =============================================================================
# IMPORTS
# =============================================================================

async def import_csv_url(
    db: Session,
    client: httpx.AsyncClient,
    domain_id: int,
    url: str,
    file_name: str = "Google Sheets Import",
) -> ImportResult:
    """
    Fetch a CSV (or sheet export) and replace the domain's rankings with it.

    Nothing is written when the fetch fails or the sheet has no usable rows.
    The caller commits.
    """
    get_domain(db, domain_id)
    csv_url = to_csv_export_url(url)
    logger.info(f"Importing keywords for domain {domain_id} from {csv_url}")

    table = parse_csv(await fetch_bytes(client, csv_url))
    batch = normalize_rows(table.rows, table.headers)
    return reconcile_rankings(
        db,
        domain_id,
        batch,
        source=UrlSource.SHEETS_IMPORT,
        file_name=file_name,
    )


def detect_tab_domain(rows: List[Dict[str, str]], headers: List[str]) -> Optional[str]:
    """Hostname of the first data row's Link cell."""
    mapping = map_columns(headers)
    if not mapping.has(LINK) or not rows:
        return None
    return extract_domain(mapping.value(rows[0], LINK) or "")


async def import_spreadsheet(db: Session, client: httpx.AsyncClient, url: str) -> List[Dict[str, Any]]:
    """
    Import every tab of a spreadsheet, one domain per tab.

    Each tab is committed on its own. Tabs that cannot be fetched, lack the
    required columns, have no usable rows or no detectable domain are
    skipped and logged.

    Returns:
        [{"domain", "keywordsImported", "urlsCreated"}] for imported tabs

    Raises:
        InvalidSheetUrlError: if `url` is not a Google Sheets link
    """
    results: List[Dict[str, Any]] = []

    for tab in await discover_tabs(client, url):
        try:
            table = parse_csv(await fetch_bytes(client, tab.csv_url))
        except FetchError as e:
            logger.warning(f"Skipping tab '{tab.name}': {e}")
            continue

        domain_name = detect_tab_domain(table.rows, table.headers)
        if not domain_name:
            logger.warning(f"Skipping tab '{tab.name}': could not detect a domain")
            continue

        try:
            batch = normalize_rows(table.rows, table.headers)
            with transaction(db):
                domain = find_or_create_domain(db, domain_name)
                result = reconcile_rankings(
                    db,
                    domain.id,
                    batch,
                    source=UrlSource.SHEETS_IMPORT,
                    file_name=f"Google Sheets - {tab.name}",
                )
        except ImportValidationError as e:
            logger.warning(f"Skipping tab '{tab.name}': {e}")
            continue

        results.append({
            "domain": result.domain_name,
            "keywordsImported": result.keywords_imported,
            "urlsCreated": result.urls_created,
        })

    logger.info(f"Multi-tab import finished: {len(results)} domain(s) imported")
    return results
