"""
Google Sheets Importer Tests
"""

import pytest
from sqlalchemy import select

from src.database.models import Domain, ImportLog, KeywordRanking, PageUrl
from src.database.repository import DomainNotFoundError, create_domain
from src.importer.normalizer import MissingColumnsError
from src.importer.sheets import (
    InvalidSheetUrlError,
    discover_tabs,
    import_csv_url,
    import_spreadsheet,
    parse_tab_listing,
    to_csv_export_url,
)
from src.utils.http import FetchError

SHEET = "https://docs.google.com/spreadsheets/d/abc123"


def _export(gid: str) -> str:
    return f"{SHEET}/export?format=csv&gid={gid}"


# =============================================================================
# URL RESOLUTION
# =============================================================================

class TestUrlResolution:
    """Tests for turning sheet links into CSV URLs."""

    def test_editor_link_becomes_export(self):
        assert to_csv_export_url(f"{SHEET}/edit#gid=42") == _export("42")

    def test_editor_link_defaults_to_first_tab(self):
        assert to_csv_export_url(f"{SHEET}/edit") == _export("0")

    def test_published_link_forces_csv(self):
        url = "https://docs.google.com/spreadsheets/d/e/2PACX-xyz/pubhtml"
        assert to_csv_export_url(url) == f"{url}?output=csv"

    def test_published_output_is_replaced(self):
        url = "https://docs.google.com/spreadsheets/d/e/2PACX-xyz/pub?gid=0&output=tsv"
        assert to_csv_export_url(url).endswith("gid=0&output=csv")

    def test_plain_csv_url_unchanged(self):
        assert to_csv_export_url(" https://files.site.com/k.csv ") == "https://files.site.com/k.csv"

    def test_parse_tab_listing(self):
        html = (
            '<a href="#gid=0" class="tab">Site One</a>'
            '<a href="#gid=987">Other Site</a>'
            '<a href="#gid=0">Site One</a>'
        )
        assert parse_tab_listing(html) == [
            {"gid": "0", "name": "Site One"},
            {"gid": "987", "name": "Other Site"},
        ]


class TestDiscoverTabs:
    """Tests for tab discovery."""

    @pytest.mark.asyncio
    async def test_tabs_from_editor_page(self, remote, http_client):
        remote.add(f"{SHEET}/edit", '<div id="gid=0">First</div><div id="gid=55">Second</div>')

        tabs = await discover_tabs(http_client, f"{SHEET}/edit")
        assert [(t.gid, t.name, t.csv_url) for t in tabs] == [
            ("0", "First", _export("0")),
            ("55", "Second", _export("55")),
        ]

    @pytest.mark.asyncio
    async def test_falls_back_to_url_gid(self, remote, http_client):
        tabs = await discover_tabs(http_client, f"{SHEET}/edit#gid=7")
        assert [(t.gid, t.name) for t in tabs] == [("7", "Sheet1")]

    @pytest.mark.asyncio
    async def test_published_sheet_single_tab(self, http_client):
        tabs = await discover_tabs(
            http_client, "https://docs.google.com/spreadsheets/d/e/2PACX-xyz/pub?gid=3&output=csv"
        )
        assert len(tabs) == 1
        assert tabs[0].name == "Sheet (gid=3)"

    @pytest.mark.asyncio
    async def test_invalid_url(self, http_client):
        with pytest.raises(InvalidSheetUrlError):
            await discover_tabs(http_client, "https://example.com/not-a-sheet")


# =============================================================================
# IMPORTS
# =============================================================================

class TestImportCsvUrl:
    """Tests for single-domain URL imports."""

    @pytest.mark.asyncio
    async def test_import(self, db, remote, http_client, keyword_csv):
        domain = create_domain(db, "site.com")
        db.commit()
        remote.add(_export("0"), keyword_csv)

        result = await import_csv_url(db, http_client, domain.id, f"{SHEET}/edit")
        db.commit()

        assert result.keywords_imported == 1
        assert result.urls_created == 1
        page = db.execute(select(PageUrl)).scalar_one()
        assert page.source == "sheets_import"
        log = db.execute(select(ImportLog)).scalar_one()
        assert log.file_name == "Google Sheets Import"

    @pytest.mark.asyncio
    async def test_fetch_failure_writes_nothing(self, db, http_client):
        domain = create_domain(db, "site.com")
        db.commit()

        with pytest.raises(FetchError):
            await import_csv_url(db, http_client, domain.id, "https://files.site.com/missing.csv")
        db.rollback()

        assert db.execute(select(ImportLog)).first() is None

    @pytest.mark.asyncio
    async def test_missing_columns(self, db, remote, http_client):
        domain = create_domain(db, "site.com")
        db.commit()
        remote.add("https://files.site.com/k.csv", "Keyword,Volume\nx,1\n")

        with pytest.raises(MissingColumnsError):
            await import_csv_url(db, http_client, domain.id, "https://files.site.com/k.csv")

    @pytest.mark.asyncio
    async def test_unknown_domain_checked_first(self, db, http_client):
        with pytest.raises(DomainNotFoundError):
            await import_csv_url(db, http_client, 404, "https://files.site.com/k.csv")


class TestImportSpreadsheet:
    """Tests for multi-tab imports."""

    @pytest.mark.asyncio
    async def test_each_tab_goes_to_its_domain(self, db, remote, http_client):
        existing = create_domain(db, "site.com")
        db.commit()

        remote.add(
            f"{SHEET}/edit",
            '<li id="gid=0">Site</li><li id="gid=1">Other</li>'
            '<li id="gid=2">Broken</li><li id="gid=3">Empty</li>',
        )
        remote.add(_export("0"), (
            "Keyword,Link,Position\n"
            "banana bread,https://www.site.com/banana-bread,3\n"
        ))
        remote.add(_export("1"), (
            "Keyword,Link,Position\n"
            "apple pie,https://other.com/apple-pie,2\n"
            "plum cake,https://other.com/plum-cake,4\n"
        ))
        remote.add(_export("2"), "Keyword,Volume\nx,1\n")
        remote.add(_export("3"), "Keyword,Link\n")

        results = await import_spreadsheet(db, http_client, f"{SHEET}/edit")

        assert results == [
            {"domain": "site.com", "keywordsImported": 1, "urlsCreated": 1},
            {"domain": "other.com", "keywordsImported": 2, "urlsCreated": 2},
        ]
        domains = {d.domain_name: d for d in db.execute(select(Domain)).scalars()}
        assert set(domains) == {"site.com", "other.com"}
        assert domains["site.com"].id == existing.id

        logs = db.execute(select(ImportLog.file_name).order_by(ImportLog.id)).scalars().all()
        assert logs == ["Google Sheets - Site", "Google Sheets - Other"]
        assert len(db.execute(select(KeywordRanking)).all()) == 3

    @pytest.mark.asyncio
    async def test_unfetchable_tab_skipped(self, db, http_client):
        results = await import_spreadsheet(db, http_client, f"{SHEET}/edit")
        assert results == []

    @pytest.mark.asyncio
    async def test_invalid_url(self, db, http_client):
        with pytest.raises(InvalidSheetUrlError):
            await import_spreadsheet(db, http_client, "https://example.com/sheet")
