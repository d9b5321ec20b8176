"""
Repository Layer - Clean Interface for Data Operations

Provides simple functions to store and retrieve data.
Handles all SQLAlchemy complexity internally. Functions take the caller's
session and never commit; the request (or `transaction()`) owns the unit
of work.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .bulk import dialect_insert
from .models import (
    Domain, PageUrl, ImportLog, Setting,
    DomainStatus, ImportType,
)

logger = logging.getLogger(__name__)


class DomainNotFoundError(LookupError):
    """Raised when a domain id does not exist."""
    def __init__(self, domain_id: int):
        super().__init__(f"Domain {domain_id} not found")
        self.domain_id = domain_id


class DomainExistsError(ValueError):
    """Raised when creating a domain whose name is already tracked."""
    def __init__(self, domain_name: str):
        super().__init__(f"Domain '{domain_name}' already exists")
        self.domain_name = domain_name


# =============================================================================
# DOMAIN MANAGEMENT
# =============================================================================

def normalize_domain_name(raw: str) -> str:
    """Strip protocol and trailing slash: 'https://site.com/' -> 'site.com'"""
    name = raw.strip()
    for prefix in ("https://", "http://"):
        if name.lower().startswith(prefix):
            name = name[len(prefix):]
    return name.rstrip("/")


def list_domains(db: Session) -> List[Domain]:
    """All domains, newest first."""
    return db.query(Domain).order_by(Domain.created_at.desc(), Domain.id.desc()).all()


def get_domain(db: Session, domain_id: int) -> Domain:
    """Get a domain by id or raise DomainNotFoundError."""
    domain = db.get(Domain, domain_id)
    if domain is None:
        raise DomainNotFoundError(domain_id)
    return domain


def get_domain_by_name(db: Session, domain_name: str) -> Optional[Domain]:
    return db.query(Domain).filter(Domain.domain_name == domain_name).first()


def create_domain(
    db: Session,
    domain_name: str,
    pinclicks_account_url: Optional[str] = None,
) -> Domain:
    """
    Register a competitor domain.

    Raises:
        DomainExistsError: if the (normalized) name is already tracked
    """
    normalized = normalize_domain_name(domain_name)
    if get_domain_by_name(db, normalized):
        raise DomainExistsError(normalized)

    domain = Domain(
        domain_name=normalized,
        pinclicks_account_url=pinclicks_account_url,
        monthly_views=0,
        total_keywords=0,
        total_recipe_urls=0,
        status=DomainStatus.ACTIVE.value,
    )
    db.add(domain)
    db.flush()

    logger.info(f"Domain created: {normalized}")
    return domain


def find_or_create_domain(db: Session, domain_name: str) -> Domain:
    """
    Resolve a domain by name, creating it if unseen.

    Uses insert-or-ignore followed by a re-read so two imports racing to
    create the same hostname both end up with the winning row.
    """
    domain = get_domain_by_name(db, domain_name)
    if domain:
        return domain

    stmt = (
        dialect_insert(db, Domain)
        .values(
            domain_name=domain_name,
            status=DomainStatus.ACTIVE.value,
            monthly_views=0,
            total_keywords=0,
            total_recipe_urls=0,
            created_at=datetime.utcnow(),
        )
        .on_conflict_do_nothing(index_elements=["domain_name"])
    )
    result = db.execute(stmt)
    if result.rowcount:
        logger.info(f"Created new domain: {domain_name}")
    else:
        logger.info(f"Domain {domain_name} was created concurrently, reusing it")

    return db.execute(
        select(Domain).where(Domain.domain_name == domain_name)
    ).scalar_one()


def update_domain(db: Session, domain_id: int, **fields: Any) -> Domain:
    """Update the given (non-None) fields on a domain."""
    domain = get_domain(db, domain_id)
    for field, value in fields.items():
        if value is not None:
            setattr(domain, field, value)
    db.flush()
    return domain


def delete_domain(db: Session, domain_id: int) -> str:
    """Delete a domain; URLs, rankings and logs go with it. Returns its name."""
    domain = get_domain(db, domain_id)
    name = domain.domain_name
    db.delete(domain)
    db.flush()
    logger.info(f"Domain deleted: {name}")
    return name


def count_page_urls(db: Session, domain_id: int) -> int:
    """Live count of page URLs owned by a domain."""
    return db.execute(
        select(func.count(PageUrl.id)).where(PageUrl.domain_id == domain_id)
    ).scalar_one()


# =============================================================================
# IMPORT LOGS
# =============================================================================

def log_import(
    db: Session,
    domain_id: int,
    import_type: ImportType,
    rows_imported: int,
    rows_skipped: Optional[int] = None,
    file_name: Optional[str] = None,
    warnings: Optional[List[str]] = None,
    warning_limit: int = 50,
) -> ImportLog:
    """Append one entry to the import audit trail."""
    entry = ImportLog(
        domain_id=domain_id,
        import_type=import_type.value,
        file_name=file_name,
        rows_imported=rows_imported,
        rows_skipped=rows_skipped,
        warnings=[{"message": w} for w in warnings[:warning_limit]] if warnings else None,
        imported_at=datetime.utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def list_import_logs(db: Session, limit: int = 50) -> List[Dict[str, Any]]:
    """Most recent import logs with their domain name."""
    rows = db.execute(
        select(
            ImportLog.id,
            Domain.domain_name,
            ImportLog.import_type,
            ImportLog.rows_imported,
            ImportLog.rows_skipped,
            ImportLog.file_name,
            ImportLog.imported_at,
            ImportLog.warnings,
        )
        .outerjoin(Domain, ImportLog.domain_id == Domain.id)
        .order_by(ImportLog.imported_at.desc(), ImportLog.id.desc())
        .limit(limit)
    ).all()
    return [dict(row._mapping) for row in rows]


# =============================================================================
# SETTINGS
# =============================================================================

def get_setting(db: Session, key: str) -> Optional[Any]:
    """Stored JSON value for `key`, or None."""
    setting = db.query(Setting).filter(Setting.key == key).first()
    return setting.value if setting else None


def save_setting(db: Session, key: str, value: Any) -> Setting:
    """Create or replace the JSON value stored under `key`."""
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting:
        setting.value = value
        setting.updated_at = datetime.utcnow()
    else:
        setting = Setting(key=key, value=value, updated_at=datetime.utcnow())
        db.add(setting)
    db.flush()
    return setting
