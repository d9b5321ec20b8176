"""
API Endpoints for Sitemap Import

Handles:
1. Fetch + parse one sitemap (page URLs or child sitemaps)
2. Fetch several child sitemaps in small parallel batches
3. Store selected page URLs for a domain
"""

import logging
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from src.auth.dependencies import require_admin
from src.database.repository import DomainNotFoundError, get_domain
from src.database.session import get_db
from src.sitemap import SitemapParseError, SitemapParser, SitemapUrl, store_page_urls
from src.utils.http import FetchError, get_http_client

from api.schemas import CamelModel, UrlRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/domains/{domain_id}/sitemap",
    tags=["Sitemap"],
    dependencies=[Depends(require_admin)],
)


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class SitemapEntry(CamelModel):
    loc: str
    lastmod: Optional[str] = None


class SitemapResponse(CamelModel):
    urls: List[SitemapEntry]
    sitemaps: List[str]


class FetchBatchRequest(CamelModel):
    urls: List[str] = Field(..., min_length=1)


class ProcessRequest(CamelModel):
    urls: List[SitemapEntry] = Field(..., min_length=1)


class ProcessResponse(CamelModel):
    success: bool = True
    added: int


def _require_domain(db: Session, domain_id: int) -> None:
    try:
        get_domain(db, domain_id)
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/fetch", response_model=SitemapResponse)
async def fetch_sitemap(
    domain_id: int,
    request: UrlRequest,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Fetch one sitemap and return its page URLs or child sitemaps."""
    _require_domain(db, domain_id)

    try:
        result = await SitemapParser(client).fetch_and_parse(request.url.strip())
    except FetchError as e:
        raise HTTPException(status_code=400, detail=f"Sitemap could not be retrieved: {e}")
    except SitemapParseError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return result.to_dict()


@router.post("/fetch-batch", response_model=SitemapResponse)
async def fetch_sitemap_batch(
    domain_id: int,
    request: FetchBatchRequest,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Fetch several child sitemaps and merge the results.

    Sitemaps that fail to load are left out.
    """
    _require_domain(db, domain_id)
    result = await SitemapParser(client).fetch_many([u.strip() for u in request.urls if u.strip()])
    return result.to_dict()


@router.post("/process", response_model=ProcessResponse)
async def process_sitemap_urls(
    domain_id: int,
    request: ProcessRequest,
    db: Session = Depends(get_db),
):
    """Store the given sitemap entries as the domain's page URLs."""
    try:
        added = store_page_urls(
            db,
            domain_id,
            [SitemapUrl(loc=entry.loc, lastmod=entry.lastmod) for entry in request.urls],
        )
        db.commit()
    except DomainNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Domain not found")

    return ProcessResponse(added=added)
