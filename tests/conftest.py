"""
Pytest Configuration and Shared Fixtures

Provides a throwaway SQLite database, a scripted HTTP transport for
remote sheets and sitemaps, and an authenticated API client.
"""

import os

os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["AUTH_ENABLED"] = "true"

from typing import Dict, List, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src.auth.config import get_auth_config
from src.database.session import create_db_engine, get_db, init_db
from src.utils.http import create_http_client, get_http_client

get_auth_config.cache_clear()

ADMIN_KEY = "test-admin-key"


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    """Database session for direct repository/engine tests."""
    session = session_factory()
    yield session
    session.close()


# ============================================================================
# Remote documents
# ============================================================================

class RemoteFiles:
    """
    Scripted responses for httpx.MockTransport.

    Unregistered URLs answer 404.
    """

    def __init__(self):
        self.responses: Dict[str, Tuple[int, bytes]] = {}
        self.requested: List[str] = []

    def add(self, url: str, body, status: int = 200) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses[url] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requested.append(url)
        status, body = self.responses.get(url, (404, b"Not Found"))
        return httpx.Response(status, content=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def remote():
    return RemoteFiles()


@pytest.fixture
async def http_client(remote):
    client = create_http_client(transport=remote.transport())
    yield client
    await client.aclose()


# ============================================================================
# API client
# ============================================================================

@pytest.fixture
def app(session_factory, remote):
    from api.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def override_get_http_client():
        client = create_http_client(transport=remote.transport())
        try:
            yield client
        finally:
            await client.aclose()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Authenticated client (admin key header)."""
    return TestClient(app, headers={"x-admin-key": ADMIN_KEY})


@pytest.fixture
def anonymous_client(app):
    return TestClient(app)


# ============================================================================
# Sample data
# ============================================================================

@pytest.fixture
def keyword_csv() -> str:
    return (
        "Keyword,Link,Position,Volume,Pin\n"
        "banana bread,https://site.com/banana-bread,3,\"1,200\",https://pinterest.com/pin/1\n"
    )


@pytest.fixture
def sitemap_xml() -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        "  <url><loc>https://site.com/</loc></url>\n"
        "  <url><loc>https://site.com/banana-bread/</loc><lastmod>2024-01-15T10:00:00+00:00</lastmod></url>\n"
        "  <url><loc>https://site.com/easy-chocolate-chip-cookies/</loc></url>\n"
        "</urlset>\n"
    )


@pytest.fixture
def sitemap_index_xml() -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        "  <sitemap><loc>https://site.com/post-sitemap.xml</loc></sitemap>\n"
        "  <sitemap><loc>https://site.com/page-sitemap.xml</loc></sitemap>\n"
        "</sitemapindex>\n"
    )
