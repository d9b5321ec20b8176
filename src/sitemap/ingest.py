"""
Sitemap URL ingestion

Stores sitemap page entries as a domain's page URLs.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.database.bulk import chunked, upsert
from src.database.models import Domain, PageUrl, ImportType, UrlSource
from src.database.repository import count_page_urls, get_domain, log_import
from src.importer.normalizer import extract_slug
from src.utils.config import get_settings

from .parser import SitemapUrl

logger = logging.getLogger(__name__)

PARTIAL_IMPORT_WARNING = "Some URLs skipped or updated"


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a W3C datetime (naive UTC), or None if absent/invalid."""
    if not dt_str:
        return None
    try:
        parsed = datetime.fromisoformat(dt_str.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _page_path(loc: str) -> Optional[str]:
    """Path without surrounding slashes, or None if loc is not an absolute URL."""
    try:
        parsed = urlparse(loc)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return parsed.path.strip("/")


def build_page_rows(domain_id: int, entries: Iterable[SitemapUrl], now: datetime) -> List[dict]:
    """
    Rows for the page_urls upsert.

    Entries without a loc, with an unparseable URL or with an empty path
    (the site root) are skipped. A URL listed twice keeps its first entry.
    """
    rows: List[dict] = []
    seen = set()

    for entry in entries:
        loc = (entry.loc or "").strip()
        if not loc:
            logger.debug("Skipping sitemap entry without loc")
            continue
        path = _page_path(loc)
        if path is None:
            logger.warning(f"Skipping invalid sitemap URL: {loc}")
            continue
        if not path:
            continue
        if loc in seen:
            continue
        seen.add(loc)

        rows.append({
            "domain_id": domain_id,
            "url": loc,
            "slug": extract_slug(loc),
            "last_modified": _parse_datetime(entry.lastmod) or now,
            "source": UrlSource.SITEMAP.value,
            "created_at": now,
            "updated_at": now,
        })

    return rows


def store_page_urls(
    db: Session,
    domain_id: int,
    entries: Iterable[SitemapUrl],
    batch_size: int = None,
) -> int:
    """
    Upsert sitemap entries as page URLs for a domain.

    Each batch runs in a savepoint: a failing batch is logged and rolled
    back without discarding the others. Existing URLs get last_modified and
    updated_at refreshed.

    Returns:
        Number of rows inserted or updated

    Raises:
        DomainNotFoundError: unknown domain
    """
    settings = get_settings()
    batch_size = batch_size or settings.SITEMAP_BATCH_SIZE
    domain: Domain = get_domain(db, domain_id)

    entries = list(entries)
    now = datetime.utcnow()
    rows = build_page_rows(domain_id, entries, now)

    added = 0
    failed_batches = 0
    for batch in chunked(rows, batch_size):
        try:
            with db.begin_nested():
                result = upsert(
                    db,
                    PageUrl,
                    list(batch),
                    conflict_columns=["url"],
                    update_columns=["last_modified"],
                    extra_updates={"updated_at": now},
                )
                added += result.rowcount if result.rowcount and result.rowcount > 0 else 0
        except SQLAlchemyError as e:
            failed_batches += 1
            logger.error(f"Sitemap batch for {domain.domain_name} failed: {e}")

    domain.total_recipe_urls = count_page_urls(db, domain_id)
    domain.last_sitemap_import = now

    warnings = [PARTIAL_IMPORT_WARNING] if added < len(entries) else None
    log_import(
        db,
        domain_id=domain_id,
        import_type=ImportType.SITEMAP,
        rows_imported=added,
        rows_skipped=len(entries) - added if added < len(entries) else 0,
        warnings=warnings,
    )
    db.flush()

    logger.info(
        f"Stored {added} of {len(entries)} sitemap URLs for {domain.domain_name} "
        f"({domain.total_recipe_urls} total, {failed_batches} failed batches)"
    )
    return added
