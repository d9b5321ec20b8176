"""
API Endpoints for Keyword Imports

Handles:
1. CSV file upload for one domain
2. Remote CSV / Google Sheet import for one domain
3. Multi-tab spreadsheet import (one domain per tab)

Every import replaces the target domain's ranking snapshot.
"""

import logging
from typing import List

import httpx
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from src.auth.dependencies import require_admin
from src.database.models import UrlSource
from src.database.repository import DomainNotFoundError
from src.database.session import get_db
from src.importer import (
    ImportValidationError,
    import_csv_url,
    import_spreadsheet,
    normalize_rows,
    parse_csv,
    reconcile_rankings,
)
from src.importer.reconcile import ImportResult
from src.utils.http import FetchError, get_http_client

from api.schemas import CamelModel, ImportResponse, UrlRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Keywords"],
    dependencies=[Depends(require_admin)],
)


class MultiImportTabResult(CamelModel):
    domain: str
    keywords_imported: int
    urls_created: int


class MultiImportResponse(CamelModel):
    success: bool = True
    results: List[MultiImportTabResult]
    total_domains: int
    total_keywords: int


def _to_response(result: ImportResult) -> ImportResponse:
    return ImportResponse(
        count=result.keywords_imported,
        skipped=result.rows_skipped,
        urls_created=result.urls_created,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/domains/{domain_id}/keywords/upload", response_model=ImportResponse)
async def upload_keywords_csv(
    domain_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """Import a keyword export uploaded as a CSV file."""
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        table = parse_csv(content)
        batch = normalize_rows(table.rows, table.headers)
        result = reconcile_rankings(
            db,
            domain_id,
            batch,
            source=UrlSource.CSV_IMPORT,
            file_name=file.filename,
        )
        db.commit()
    except DomainNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Domain not found")
    except ImportValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(result)


@router.post("/domains/{domain_id}/keywords/upload-url", response_model=ImportResponse)
async def upload_keywords_from_url(
    domain_id: int,
    request: UrlRequest,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Import a keyword export from a public CSV or Google Sheets URL."""
    try:
        result = await import_csv_url(db, client, domain_id, request.url)
        db.commit()
    except DomainNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Domain not found")
    except FetchError:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Failed to fetch spreadsheet. Make sure it is shared publicly.",
        )
    except ImportValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    return _to_response(result)


@router.post("/keywords/import-multi", response_model=MultiImportResponse)
async def import_multi_tab(
    request: UrlRequest,
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Import every tab of a spreadsheet.

    Each tab's domain is detected from its links and created if needed.
    Tabs that cannot be imported are skipped.
    """
    try:
        results = await import_spreadsheet(db, client, request.url)
    except ImportValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MultiImportResponse(
        results=[MultiImportTabResult(**r) for r in results],
        total_domains=len(results),
        total_keywords=sum(r["keywordsImported"] for r in results),
    )
