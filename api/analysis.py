"""
API Endpoints for Domain Analysis

Handles:
1. Keyword analysis (keywords, pin analysis, totals)
2. Slug word-frequency analysis
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from src.analysis import StopWordsService, analyze_domain_slugs, keyword_analysis
from src.auth.dependencies import require_admin
from src.database.repository import DomainNotFoundError
from src.database.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/domains/{domain_id}",
    tags=["Analysis"],
    dependencies=[Depends(require_admin)],
)


@router.get("/keyword-analysis")
async def get_keyword_analysis(domain_id: int, db: Session = Depends(get_db)):
    """Keywords by volume, keyword counts per pin, and domain totals."""
    try:
        return keyword_analysis(db, domain_id)
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")


@router.get("/slug-analysis")
async def get_slug_analysis(domain_id: int, db: Session = Depends(get_db)):
    """Most frequent words across the domain's page slugs."""
    stop_words = StopWordsService(db).get_stop_words()
    try:
        return analyze_domain_slugs(db, domain_id, stop_words).to_dict()
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")
