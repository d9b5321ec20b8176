"""
SQLAlchemy Models for the Pinrank competitor tracker

Design Principles:
1. Keywords and page URLs are global, shared across competitors
2. Rankings are a per-domain snapshot, replaced on every import
3. Import logs are an append-only audit trail
4. Settings hold small JSON documents (stop words)

Works on PostgreSQL (production) and SQLite (local development, tests).
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Text,
    ForeignKey, Index, UniqueConstraint, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON everywhere else
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ENUMS
# =============================================================================

class UrlSource(str, enum.Enum):
    """Where a page URL was first discovered"""
    SITEMAP = "sitemap"
    CSV_IMPORT = "csv_import"
    SHEETS_IMPORT = "sheets_import"


class ImportType(str, enum.Enum):
    """Kind of import recorded in the audit trail"""
    SITEMAP = "sitemap"
    KEYWORDS = "keywords"


class DomainStatus(str, enum.Enum):
    """Tracking status of a competitor domain"""
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


# =============================================================================
# CORE TABLES
# =============================================================================

class Domain(Base):
    """Competitor domains being tracked"""
    __tablename__ = "domains"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain_name = Column(Text, unique=True, nullable=False)
    pinclicks_account_url = Column(Text)

    # Cached counters, refreshed by imports
    monthly_views = Column(Integer, default=0)
    total_keywords = Column(Integer, default=0)
    total_recipe_urls = Column(Integer, default=0)

    status = Column(String(20), default=DomainStatus.ACTIVE.value)
    last_sitemap_import = Column(DateTime)
    last_keywords_import = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships (rows are removed by ON DELETE CASCADE)
    page_urls = relationship("PageUrl", back_populates="domain", cascade="all, delete-orphan", passive_deletes=True)
    rankings = relationship("KeywordRanking", back_populates="domain", cascade="all, delete-orphan", passive_deletes=True)
    import_logs = relationship("ImportLog", back_populates="domain", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Domain {self.domain_name}>"


class PageUrl(Base):
    """A page on a tracked domain, from a sitemap or a ranking import"""
    __tablename__ = "recipe_urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"))

    url = Column(Text, unique=True, nullable=False)
    slug = Column(Text, nullable=False)
    last_modified = Column(DateTime)
    source = Column(String(20), default=UrlSource.SITEMAP.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    domain = relationship("Domain", back_populates="page_urls")
    rankings = relationship("KeywordRanking", back_populates="page_url", passive_deletes=True)

    __table_args__ = (
        Index("idx_recipe_urls_domain", "domain_id"),
    )


class Keyword(Base):
    """Search term tracked across all competitors"""
    __tablename__ = "keywords"

    id = Column(Integer, primary_key=True, autoincrement=True)
    keyword_text = Column(Text, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    rankings = relationship("KeywordRanking", back_populates="keyword", passive_deletes=True)


class KeywordRanking(Base):
    """One domain's observed position for one keyword in the current snapshot"""
    __tablename__ = "keyword_rankings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    keyword_id = Column(Integer, ForeignKey("keywords.id", ondelete="CASCADE"), nullable=False)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False)
    page_url_id = Column(Integer, ForeignKey("recipe_urls.id", ondelete="SET NULL"))

    position = Column(Integer, nullable=False)
    position_change = Column(Integer)  # None = no change recorded
    search_volume = Column(Integer)

    pinterest_pin_url = Column(Text)
    pin_image_url = Column(Text)

    tracked_date = Column(Date, nullable=False)
    imported_at = Column(DateTime, default=datetime.utcnow)

    keyword = relationship("Keyword", back_populates="rankings")
    domain = relationship("Domain", back_populates="rankings")
    page_url = relationship("PageUrl", back_populates="rankings")

    __table_args__ = (
        UniqueConstraint("keyword_id", "domain_id", name="uq_keyword_rankings_keyword_domain"),
        Index("idx_keyword_rankings_domain", "domain_id"),
        Index("idx_keyword_rankings_pin", "domain_id", "pinterest_pin_url"),
    )


class ImportLog(Base):
    """Append-only audit trail of sitemap and keyword imports"""
    __tablename__ = "import_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"))

    import_type = Column(String(20), nullable=False)
    file_name = Column(Text)
    rows_imported = Column(Integer)
    rows_skipped = Column(Integer)
    warnings = Column(JSONType)  # [{"message": "..."}]
    imported_by = Column(Text)
    imported_at = Column(DateTime, default=datetime.utcnow)

    domain = relationship("Domain", back_populates="import_logs")

    __table_args__ = (
        Index("idx_import_logs_imported_at", "imported_at"),
    )


class Setting(Base):
    """Global key/value settings (JSON payloads)"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(Text, unique=True, nullable=False)
    value = Column(JSONType)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
