"""
API Endpoints for Domain Management

Handles:
1. List tracked competitor domains
2. Get single domain details
3. Register a domain
4. Update domain settings
5. Delete domain (URLs, rankings and logs go with it)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.auth.dependencies import require_admin
from src.database.models import DomainStatus
from src.database.session import get_db
from src.database.repository import (
    DomainExistsError,
    DomainNotFoundError,
    create_domain,
    delete_domain,
    get_domain,
    list_domains,
    update_domain,
)

from api.schemas import CamelModel, DomainResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/domains",
    tags=["Domains"],
    dependencies=[Depends(require_admin)],
)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreateDomainRequest(CamelModel):
    """Request to register a competitor domain."""
    domain_name: str = Field(..., min_length=1, max_length=255)
    pinclicks_account_url: Optional[str] = None


class UpdateDomainRequest(CamelModel):
    """Request to update domain settings."""
    pinclicks_account_url: Optional[str] = None
    monthly_views: Optional[int] = Field(default=None, ge=0)
    status: Optional[DomainStatus] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[DomainResponse])
async def list_all_domains(db: Session = Depends(get_db)):
    """List all domains, newest first."""
    return list_domains(db)


@router.post("", response_model=DomainResponse, status_code=201)
async def create_new_domain(request: CreateDomainRequest, db: Session = Depends(get_db)):
    """
    Register a domain.

    The name is stored without protocol or trailing slash.
    """
    if not request.domain_name.strip():
        raise HTTPException(status_code=400, detail="Domain name is required")

    try:
        domain = create_domain(db, request.domain_name, request.pinclicks_account_url)
        db.commit()
    except (DomainExistsError, IntegrityError) as e:
        db.rollback()
        raise HTTPException(status_code=409, detail="Domain already exists") from e

    return domain


@router.get("/{domain_id}", response_model=DomainResponse)
async def get_single_domain(domain_id: int, db: Session = Depends(get_db)):
    """Get details of a single domain."""
    try:
        return get_domain(db, domain_id)
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")


@router.patch("/{domain_id}", response_model=DomainResponse)
async def update_domain_settings(
    domain_id: int,
    request: UpdateDomainRequest,
    db: Session = Depends(get_db),
):
    """Update domain settings. Omitted fields are left unchanged."""
    try:
        domain = update_domain(
            db,
            domain_id,
            pinclicks_account_url=request.pinclicks_account_url,
            monthly_views=request.monthly_views,
            status=request.status.value if request.status else None,
        )
        db.commit()
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")

    logger.info(f"Domain updated: {domain.domain_name}")
    return domain


@router.delete("/{domain_id}")
async def delete_single_domain(domain_id: int, db: Session = Depends(get_db)):
    """Delete a domain with all its URLs, rankings and import logs."""
    try:
        name = delete_domain(db, domain_id)
        db.commit()
    except DomainNotFoundError:
        raise HTTPException(status_code=404, detail="Domain not found")

    return {"success": True, "message": f"Domain {name} deleted"}
