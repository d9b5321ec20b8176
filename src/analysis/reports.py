"""
Report Aggregators

Read-only queries behind the dashboard reports:
- Domain keyword listing, pin analysis and stats
- Keyword coverage across all tracked domains (paginated)
- Per-keyword ranking detail
"""

import logging
import math
from typing import Any, Dict, List

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from src.database.models import Domain, Keyword, KeywordRanking, PageUrl
from src.database.repository import get_domain

logger = logging.getLogger(__name__)


def _rows(result) -> List[Dict[str, Any]]:
    return [dict(row._mapping) for row in result]


# =============================================================================
# DOMAIN KEYWORD ANALYSIS
# =============================================================================

def domain_keywords(db: Session, domain_id: int) -> List[Dict[str, Any]]:
    """A domain's ranked keywords, highest search volume first."""
    return _rows(db.execute(
        select(
            Keyword.id,
            Keyword.keyword_text,
            KeywordRanking.position,
            KeywordRanking.search_volume,
            KeywordRanking.pinterest_pin_url,
            PageUrl.url.label("recipe_url"),
        )
        .select_from(KeywordRanking)
        .join(Keyword, KeywordRanking.keyword_id == Keyword.id)
        .outerjoin(PageUrl, KeywordRanking.page_url_id == PageUrl.id)
        .where(KeywordRanking.domain_id == domain_id)
        .order_by(KeywordRanking.search_volume.desc().nulls_last(), Keyword.id)
    ))


def pin_analysis(db: Session, domain_id: int) -> List[Dict[str, Any]]:
    """Keywords and volume per Pinterest pin, most keywords first."""
    keyword_count = func.count(distinct(KeywordRanking.keyword_id)).label("keyword_count")
    return _rows(db.execute(
        select(
            KeywordRanking.pinterest_pin_url,
            keyword_count,
            func.sum(func.coalesce(KeywordRanking.search_volume, 0)).label("total_volume"),
            PageUrl.url.label("recipe_url"),
        )
        .outerjoin(PageUrl, KeywordRanking.page_url_id == PageUrl.id)
        .where(
            KeywordRanking.domain_id == domain_id,
            KeywordRanking.pinterest_pin_url.isnot(None),
        )
        .group_by(KeywordRanking.pinterest_pin_url, PageUrl.url)
        .order_by(keyword_count.desc(), KeywordRanking.pinterest_pin_url)
    ))


def domain_stats(db: Session, domain_id: int) -> Dict[str, int]:
    row = db.execute(
        select(
            func.count(KeywordRanking.id),
            func.coalesce(func.sum(func.coalesce(KeywordRanking.search_volume, 0)), 0),
        ).where(KeywordRanking.domain_id == domain_id)
    ).one()
    return {"total_keywords": int(row[0] or 0), "total_volume": int(row[1] or 0)}


def keyword_analysis(db: Session, domain_id: int) -> Dict[str, Any]:
    """
    Keyword listing, pin analysis and totals for one domain.

    Raises:
        DomainNotFoundError: unknown domain
    """
    get_domain(db, domain_id)
    return {
        "keywords": domain_keywords(db, domain_id),
        "pinAnalysis": pin_analysis(db, domain_id),
        "stats": domain_stats(db, domain_id),
    }


# =============================================================================
# CROSS-DOMAIN REPORTS
# =============================================================================

def keyword_coverage(db: Session, page: int = 1, limit: int = 50) -> Dict[str, Any]:
    """
    Keywords ranked by how many domains rank for them, then by volume.

    Only keywords with at least one ranking are listed.
    """
    page = max(page, 1)
    limit = max(limit, 1)

    total = db.execute(
        select(func.count(distinct(KeywordRanking.keyword_id)))
    ).scalar_one() or 0

    domain_count = func.count(distinct(KeywordRanking.domain_id)).label("domain_count")
    volume = func.max(KeywordRanking.search_volume).label("volume")
    data = _rows(db.execute(
        select(Keyword.id, Keyword.keyword_text, domain_count, volume)
        .join(KeywordRanking, KeywordRanking.keyword_id == Keyword.id)
        .group_by(Keyword.id, Keyword.keyword_text)
        .order_by(domain_count.desc(), volume.desc().nulls_last(), Keyword.id)
        .limit(limit)
        .offset((page - 1) * limit)
    ))

    return {
        "data": data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        },
    }


def keyword_rankings(db: Session, keyword_id: int) -> List[Dict[str, Any]]:
    """Every domain's ranking for one keyword, best position first."""
    return _rows(db.execute(
        select(
            Domain.domain_name.label("domainName"),
            KeywordRanking.position,
            PageUrl.url,
            KeywordRanking.pinterest_pin_url.label("pinterestPinUrl"),
            KeywordRanking.pin_image_url.label("pinImageUrl"),
        )
        .select_from(KeywordRanking)
        .join(Domain, KeywordRanking.domain_id == Domain.id)
        .outerjoin(PageUrl, KeywordRanking.page_url_id == PageUrl.id)
        .where(KeywordRanking.keyword_id == keyword_id)
        .order_by(KeywordRanking.position, Domain.domain_name)
    ))
