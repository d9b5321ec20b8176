"""
Database Session Management

Handles connection pooling, session lifecycle, and database initialization.
Designed for both hosted PostgreSQL and local development (SQLite).
"""

import os
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from .models import Base

logger = logging.getLogger(__name__)

# =============================================================================
# DATABASE URL CONFIGURATION
# =============================================================================

def get_database_url() -> str:
    """
    Get database URL from environment.

    Priority:
    1. DATABASE_URL
    2. POSTGRES_URL (alternative)
    3. SQLite fallback for local development
    """
    url = os.getenv("DATABASE_URL")

    if url:
        # Hosted PostgreSQL URLs often use postgres:// but SQLAlchemy needs postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        logger.info("Using database from DATABASE_URL")
        return url

    url = os.getenv("POSTGRES_URL")
    if url:
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        logger.info("Using PostgreSQL database from POSTGRES_URL")
        return url

    sqlite_path = os.getenv("SQLITE_PATH", "pinrank_dev.db")
    logger.warning(f"No DATABASE_URL found, using SQLite: {sqlite_path}")
    return f"sqlite:///{sqlite_path}"


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

def create_db_engine(url: Optional[str] = None):
    """
    Create database engine with appropriate settings.

    PostgreSQL: Connection pooling, pre-ping
    SQLite: Simpler settings, foreign key support (needed for ON DELETE CASCADE)
    """
    url = url or get_database_url()
    is_postgres = url.startswith("postgresql")
    echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

    if is_postgres:
        engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,                # Base connections
            max_overflow=10,            # Additional connections under load
            pool_timeout=30,            # Wait for connection
            pool_recycle=1800,          # Recycle connections after 30 min
            pool_pre_ping=True,         # Verify connections before use
            echo=echo,
        )
        logger.info("Created PostgreSQL engine with connection pooling")
    else:
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},  # Allow multi-thread access
            echo=echo,
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

        logger.info("Created SQLite engine")

    return engine


# Global engine (lazy initialization)
_engine = None


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


# =============================================================================
# SESSION MANAGEMENT
# =============================================================================

# Session factory (lazy initialization)
_SessionLocal = None


def get_session_factory():
    """Get or create session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,  # Don't expire objects after commit
        )
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI-style dependency for database sessions.

    Usage:
        @router.get("/domains")
        def list_domains(db: Session = Depends(get_db)):
            return db.query(Domain).all()
    """
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# DATABASE INITIALIZATION
# =============================================================================

def init_db(drop_all: bool = False, engine=None) -> None:
    """
    Initialize database - create all tables.

    Args:
        drop_all: If True, drop all tables first (USE WITH CAUTION!)
        engine: Engine to use (defaults to the global engine)
    """
    engine = engine or get_engine()

    if drop_all:
        logger.warning("Dropping all database tables!")
        Base.metadata.drop_all(bind=engine)

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def get_db_info() -> dict:
    """
    Get database information.

    Returns diagnostic info for debugging deployments.
    """
    url = get_database_url()
    is_postgres = url.startswith("postgresql")

    # Mask password in URL for logging
    safe_url = url
    if "@" in url:
        parts = url.split("@")
        safe_url = parts[0].rsplit(":", 1)[0] + ":***@" + parts[1]

    info = {
        "database_type": "postgresql" if is_postgres else "sqlite",
        "connection_url": safe_url,
        "connected": False,
        "table_count": 0,
        "tables": [],
    }

    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            info["connected"] = True

            if is_postgres:
                result = conn.execute(text("""
                    SELECT table_name FROM information_schema.tables
                    WHERE table_schema = 'public' ORDER BY table_name
                """))
            else:
                result = conn.execute(text("""
                    SELECT name FROM sqlite_master WHERE type='table' ORDER BY name
                """))
            info["tables"] = [row[0] for row in result]
            info["table_count"] = len(info["tables"])

    except Exception as e:
        logger.error(f"Error reading database info: {e}")
        info["error"] = "Database unavailable"

    return info


def check_db_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


# =============================================================================
# TRANSACTION HELPERS
# =============================================================================

@contextmanager
def transaction(db: Session):
    """
    Explicit transaction context manager.

    Usage:
        with transaction(db):
            db.add(item1)
            db.add(item2)
            # Commits at end, rollback on exception
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
