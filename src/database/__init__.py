"""
Pinrank Database Layer

Usage:
    from src.database import (
        # Session management
        init_db, get_db, get_session_factory, transaction,

        # Models
        Domain, PageUrl, Keyword, KeywordRanking, ImportLog, Setting,

        # Repository (high-level operations)
        create_domain, find_or_create_domain, log_import,
    )

    # Initialize database
    init_db()

    with transaction(get_session_factory()()) as db:
        domain = create_domain(db, "example.com")
"""

# Models
from .models import (
    Base,
    Domain,
    PageUrl,
    Keyword,
    KeywordRanking,
    ImportLog,
    Setting,
    # Enums
    UrlSource,
    ImportType,
    DomainStatus,
)

# Session management
from .session import (
    get_database_url,
    create_db_engine,
    get_engine,
    get_session_factory,
    get_db,
    init_db,
    get_db_info,
    check_db_connection,
    transaction,
)

# Bulk writes
from .bulk import (
    chunked,
    dialect_insert,
    insert_ignore,
    upsert,
)

# Repository
from .repository import (
    DomainNotFoundError,
    DomainExistsError,
    normalize_domain_name,
    list_domains,
    get_domain,
    get_domain_by_name,
    create_domain,
    find_or_create_domain,
    update_domain,
    delete_domain,
    count_page_urls,
    log_import,
    list_import_logs,
    get_setting,
    save_setting,
)

__all__ = [
    # Models
    "Base",
    "Domain",
    "PageUrl",
    "Keyword",
    "KeywordRanking",
    "ImportLog",
    "Setting",
    "UrlSource",
    "ImportType",
    "DomainStatus",
    # Session
    "get_database_url",
    "create_db_engine",
    "get_engine",
    "get_session_factory",
    "get_db",
    "init_db",
    "get_db_info",
    "check_db_connection",
    "transaction",
    # Bulk
    "chunked",
    "dialect_insert",
    "insert_ignore",
    "upsert",
    # Repository
    "DomainNotFoundError",
    "DomainExistsError",
    "normalize_domain_name",
    "list_domains",
    "get_domain",
    "get_domain_by_name",
    "create_domain",
    "find_or_create_domain",
    "update_domain",
    "delete_domain",
    "count_page_urls",
    "log_import",
    "list_import_logs",
    "get_setting",
    "save_setting",
]
