"""
Keyword Reconciliation Engine

Brings a domain's keyword rankings into agreement with one imported batch.

Two phases:
1. Plan (pure): from the preloaded keyword/URL maps and the batch, work
   out which keyword texts and page URLs must be created.
2. Apply: bulk insert-or-ignore the missing keywords/URLs in chunks,
   reload ids for everything the batch references, then replace the
   domain's ranking snapshot.

Preloading every mapping up front keeps the import at a handful of
queries regardless of row count.

The engine works inside the caller's session. Committing once after
`reconcile_rankings` returns makes the delete + insert atomic; a failed
run leaves the previous snapshot in place.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.database.bulk import chunked, insert_ignore
from src.database.models import Domain, Keyword, KeywordRanking, PageUrl, ImportType, UrlSource
from src.database.repository import get_domain, log_import
from src.utils.config import get_settings

from .normalizer import CanonicalRow, EmptyImportError, NormalizedBatch, extract_slug

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class ReconciliationPlan:
    """Keyword texts and (url, slug) pairs the batch needs created."""
    new_keywords: List[str] = field(default_factory=list)
    new_urls: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.new_keywords and not self.new_urls


@dataclass
class ImportResult:
    """Outcome of one reconciliation run."""
    domain_id: int
    domain_name: str
    keywords_imported: int = 0
    rows_skipped: int = 0
    urls_created: int = 0
    keywords_created: int = 0
    rankings_replaced: int = 0
    warnings: List[str] = field(default_factory=list)


# =============================================================================
# PURE PLANNING
# =============================================================================

def plan_reconciliation(
    rows: Iterable[CanonicalRow],
    known_keywords: Mapping[str, int],
    known_urls: Mapping[str, int],
) -> ReconciliationPlan:
    """
    Collect distinct unknown keyword texts and URLs, in first-seen order.

    URLs are matched exactly (after the trimming done by the normalizer).
    """
    plan = ReconciliationPlan()
    seen_keywords = set()
    seen_urls = set()

    for row in rows:
        if row.keyword not in known_keywords and row.keyword not in seen_keywords:
            seen_keywords.add(row.keyword)
            plan.new_keywords.append(row.keyword)
        if row.link not in known_urls and row.link not in seen_urls:
            seen_urls.add(row.link)
            plan.new_urls.append((row.link, extract_slug(row.link)))

    return plan


def build_ranking_rows(
    rows: Iterable[CanonicalRow],
    domain_id: int,
    keyword_ids: Mapping[str, int],
    url_ids: Mapping[str, int],
    tracked_date: date,
    imported_at: datetime,
) -> List[Dict[str, Any]]:
    """
    Final ranking rows for insertion.

    Rows whose keyword has no id are dropped. A keyword repeated within
    the batch keeps its first row, matching the (keyword, domain) unique key.
    """
    values: List[Dict[str, Any]] = []
    seen = set()

    for row in rows:
        keyword_id = keyword_ids.get(row.keyword)
        if not keyword_id:
            logger.warning(f"Keyword '{row.keyword}' could not be resolved, dropping row")
            continue
        if keyword_id in seen:
            continue
        seen.add(keyword_id)

        values.append({
            "domain_id": domain_id,
            "keyword_id": keyword_id,
            "page_url_id": url_ids.get(row.link),
            "position": row.position,
            "position_change": row.change,
            "search_volume": row.volume,
            "pinterest_pin_url": row.pin,
            "tracked_date": tracked_date,
            "imported_at": imported_at,
        })

    return values


# =============================================================================
# PERSISTENCE
# =============================================================================

def _load_keyword_map(db: Session, texts: Optional[List[str]] = None, batch_size: int = 500) -> Dict[str, int]:
    """keyword_text -> id, for all keywords or just `texts`."""
    if texts is None:
        return {text: id_ for id_, text in db.execute(select(Keyword.id, Keyword.keyword_text))}

    mapping: Dict[str, int] = {}
    for chunk in chunked(texts, batch_size):
        for id_, text in db.execute(
            select(Keyword.id, Keyword.keyword_text).where(Keyword.keyword_text.in_(chunk))
        ):
            mapping[text] = id_
    return mapping


def _load_url_map(
    db: Session,
    domain_id: Optional[int] = None,
    urls: Optional[List[str]] = None,
    batch_size: int = 500,
) -> Dict[str, int]:
    """url -> id, scoped to a domain or limited to `urls`."""
    if urls is None:
        stmt = select(PageUrl.id, PageUrl.url).where(PageUrl.domain_id == domain_id)
        return {url: id_ for id_, url in db.execute(stmt)}

    mapping: Dict[str, int] = {}
    for chunk in chunked(urls, batch_size):
        for id_, url in db.execute(select(PageUrl.id, PageUrl.url).where(PageUrl.url.in_(chunk))):
            mapping[url] = id_
    return mapping


def _distinct(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def reconcile_rankings(
    db: Session,
    domain_id: int,
    batch: NormalizedBatch,
    source: UrlSource = UrlSource.SHEETS_IMPORT,
    file_name: Optional[str] = None,
    import_time: Optional[datetime] = None,
    batch_size: Optional[int] = None,
) -> ImportResult:
    """
    Replace the domain's ranking snapshot with `batch`.

    Steps:
        1. Preload keyword map (global) and URL map (this domain)
        2. Delete the domain's existing rankings
        3. Plan unknown keywords / URLs
        4. Insert-or-ignore them in chunks, reload ids for the batch
        5. New URLs get their slug, `source` and last_modified = import time
        6. Build ranking rows (unresolved keywords dropped)
        7. Insert-or-ignore rankings on (keyword_id, domain_id)
        8. Refresh domain counters and append an import log

    Raises:
        DomainNotFoundError: unknown domain (before any mutation)
        EmptyImportError: no usable rows (before any mutation)
    """
    settings = get_settings()
    batch_size = batch_size or settings.KEYWORD_BATCH_SIZE
    import_time = import_time or datetime.utcnow()

    domain: Domain = get_domain(db, domain_id)
    if not batch.rows:
        raise EmptyImportError(batch.skipped)

    # 1. Preload
    keyword_map = _load_keyword_map(db)
    url_map = _load_url_map(db, domain_id=domain_id)
    logger.info(
        f"Reconciling {len(batch.rows)} rows for {domain.domain_name} "
        f"({len(keyword_map)} known keywords, {len(url_map)} known URLs)"
    )

    # 2. Snapshot replace
    deleted = db.execute(delete(KeywordRanking).where(KeywordRanking.domain_id == domain_id))
    logger.info(f"Deleted {deleted.rowcount} previous rankings for {domain.domain_name}")

    # 3. Plan
    plan = plan_reconciliation(batch.rows, keyword_map, url_map)

    # 4a. Keywords
    keywords_created = 0
    if plan.new_keywords:
        inserted = insert_ignore(
            db,
            Keyword,
            [{"keyword_text": text, "created_at": import_time} for text in plan.new_keywords],
            conflict_columns=["keyword_text"],
            batch_size=batch_size,
        )
        keywords_created = len(inserted)
        keyword_map.update(
            _load_keyword_map(db, texts=_distinct(r.keyword for r in batch.rows), batch_size=batch_size)
        )

    # 4b/5. Page URLs
    urls_created = 0
    warnings: List[str] = []
    if plan.new_urls:
        inserted = insert_ignore(
            db,
            PageUrl,
            [
                {
                    "domain_id": domain_id,
                    "url": url,
                    "slug": slug,
                    "source": source.value,
                    "last_modified": import_time,
                    "created_at": import_time,
                    "updated_at": import_time,
                }
                for url, slug in plan.new_urls
            ],
            conflict_columns=["url"],
            batch_size=batch_size,
        )
        urls_created = len(inserted)
        url_map.update(
            _load_url_map(db, urls=_distinct(r.link for r in batch.rows), batch_size=batch_size)
        )
        # URLs owned by another domain are linked, not created
        created_ids = set(inserted)
        warnings.extend(
            f"Created missing URL: {url}"
            for url, _ in plan.new_urls
            if url_map.get(url) in created_ids
        )

    # 6/7. Rankings
    ranking_rows = build_ranking_rows(
        batch.rows,
        domain_id=domain_id,
        keyword_ids=keyword_map,
        url_ids=url_map,
        tracked_date=import_time.date(),
        imported_at=import_time,
    )
    inserted_rankings = insert_ignore(
        db,
        KeywordRanking,
        ranking_rows,
        conflict_columns=["keyword_id", "domain_id"],
        batch_size=batch_size,
    )

    # 8. Counters + audit trail
    domain.last_keywords_import = import_time
    domain.total_keywords = len(inserted_rankings)
    log_import(
        db,
        domain_id=domain_id,
        import_type=ImportType.KEYWORDS,
        rows_imported=len(inserted_rankings),
        rows_skipped=batch.skipped,
        file_name=file_name,
        warnings=warnings,
        warning_limit=settings.IMPORT_WARNING_LIMIT,
    )
    db.flush()

    logger.info(
        f"Import complete for {domain.domain_name}: {len(inserted_rankings)} rankings, "
        f"{batch.skipped} skipped, {keywords_created} new keywords, {urls_created} new URLs"
    )

    return ImportResult(
        domain_id=domain_id,
        domain_name=domain.domain_name,
        keywords_imported=len(inserted_rankings),
        rows_skipped=batch.skipped,
        urls_created=urls_created,
        keywords_created=keywords_created,
        rankings_replaced=deleted.rowcount or 0,
        warnings=warnings,
    )
