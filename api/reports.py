"""
API Endpoints for Cross-Domain Reports

Handles:
1. Keyword coverage across competitors (paginated)
2. Per-keyword ranking detail
3. Import log history
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.analysis import keyword_coverage, keyword_rankings
from src.auth.dependencies import require_admin
from src.database.repository import list_import_logs
from src.database.session import get_db
from src.utils.config import get_settings

from api.schemas import ImportLogResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Reports"],
    dependencies=[Depends(require_admin)],
)


@router.get("/reports/keyword-coverage")
async def get_keyword_coverage(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Keywords ranked by how many tracked domains rank for them."""
    return keyword_coverage(db, page=page, limit=limit)


@router.get("/keywords/{keyword_id}/rankings")
async def get_keyword_rankings(keyword_id: int, db: Session = Depends(get_db)):
    """All domains ranking for a keyword, best position first."""
    return keyword_rankings(db, keyword_id)


@router.get("/logs", response_model=List[ImportLogResponse])
async def get_import_logs(db: Session = Depends(get_db)):
    """Most recent import logs."""
    return list_import_logs(db, limit=get_settings().IMPORT_LOG_LIMIT)
