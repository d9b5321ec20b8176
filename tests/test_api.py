"""
API Endpoint Tests

Exercises the routers through FastAPI's TestClient against a temporary
SQLite database and scripted remote documents.
"""

import pytest

SHEET = "https://docs.google.com/spreadsheets/d/abc123"


def _create_domain(client, name="site.com") -> int:
    response = client.post("/api/domains", json={"domainName": name})
    assert response.status_code == 201
    return response.json()["id"]


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:
    """Tests for unauthenticated endpoints."""

    def test_root(self, anonymous_client):
        response = anonymous_client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


# =============================================================================
# DOMAINS
# =============================================================================

class TestDomains:
    """Tests for domain CRUD."""

    def test_create_normalizes_name(self, client):
        response = client.post(
            "/api/domains",
            json={"domainName": "https://site.com/", "pinclicksAccountUrl": "https://pinclicks.com/u/site"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["domainName"] == "site.com"
        assert body["pinclicksAccountUrl"] == "https://pinclicks.com/u/site"
        assert body["totalKeywords"] == 0
        assert body["status"] == "active"

    def test_duplicate_is_conflict(self, client):
        _create_domain(client)
        response = client.post("/api/domains", json={"domainName": "http://site.com"})
        assert response.status_code == 409

    def test_missing_name_is_bad_request(self, client):
        assert client.post("/api/domains", json={}).status_code == 400
        assert client.post("/api/domains", json={"domainName": "   "}).status_code == 400

    def test_list_newest_first(self, client):
        _create_domain(client, "a.com")
        _create_domain(client, "b.com")

        names = [d["domainName"] for d in client.get("/api/domains").json()]
        assert names == ["b.com", "a.com"]

    def test_get_update_delete(self, client):
        domain_id = _create_domain(client)

        assert client.get(f"/api/domains/{domain_id}").json()["domainName"] == "site.com"

        response = client.patch(f"/api/domains/{domain_id}", json={"monthlyViews": 5000, "status": "paused"})
        assert response.status_code == 200
        assert response.json()["monthlyViews"] == 5000
        assert response.json()["status"] == "paused"

        assert client.delete(f"/api/domains/{domain_id}").status_code == 200
        assert client.get(f"/api/domains/{domain_id}").status_code == 404

    def test_unknown_domain(self, client):
        assert client.get("/api/domains/999").status_code == 404
        assert client.patch("/api/domains/999", json={"monthlyViews": 1}).status_code == 404
        assert client.delete("/api/domains/999").status_code == 404

    def test_non_numeric_id_is_bad_request(self, client):
        assert client.get("/api/domains/abc").status_code == 400


# =============================================================================
# KEYWORD IMPORTS
# =============================================================================

class TestKeywordImports:
    """Tests for upload, upload-url and import-multi."""

    def test_upload_csv(self, client, keyword_csv):
        domain_id = _create_domain(client)

        response = client.post(
            f"/api/domains/{domain_id}/keywords/upload",
            files={"file": ("export.csv", keyword_csv, "text/csv")},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 1, "skipped": 0, "urlsCreated": 1}
        assert client.get(f"/api/domains/{domain_id}").json()["totalKeywords"] == 1

        logs = client.get("/api/logs").json()
        assert logs[0]["fileName"] == "export.csv"
        assert logs[0]["domainName"] == "site.com"
        assert logs[0]["rowsImported"] == 1

    def test_upload_missing_columns(self, client):
        domain_id = _create_domain(client)

        response = client.post(
            f"/api/domains/{domain_id}/keywords/upload",
            files={"file": ("export.csv", "Keyword,Volume\nx,1\n", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Missing required columns: Link")

    def test_upload_without_file(self, client):
        domain_id = _create_domain(client)
        assert client.post(f"/api/domains/{domain_id}/keywords/upload").status_code == 400

    def test_upload_unknown_domain(self, client, keyword_csv):
        response = client.post(
            "/api/domains/77/keywords/upload",
            files={"file": ("export.csv", keyword_csv, "text/csv")},
        )
        assert response.status_code == 404

    def test_upload_url(self, client, remote, keyword_csv):
        domain_id = _create_domain(client)
        remote.add(f"{SHEET}/export?format=csv&gid=0", keyword_csv)

        response = client.post(f"/api/domains/{domain_id}/keywords/upload-url", json={"url": f"{SHEET}/edit"})

        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_upload_url_fetch_failure(self, client, keyword_csv):
        domain_id = _create_domain(client)
        client.post(
            f"/api/domains/{domain_id}/keywords/upload",
            files={"file": ("export.csv", keyword_csv, "text/csv")},
        )

        response = client.post(
            f"/api/domains/{domain_id}/keywords/upload-url",
            json={"url": "https://files.site.com/missing.csv"},
        )

        assert response.status_code == 400
        assert "Failed to fetch spreadsheet" in response.json()["detail"]
        # Previous snapshot untouched
        assert client.get(f"/api/domains/{domain_id}/keyword-analysis").json()["stats"]["total_keywords"] == 1

    def test_upload_url_requires_url(self, client):
        domain_id = _create_domain(client)
        assert client.post(f"/api/domains/{domain_id}/keywords/upload-url", json={}).status_code == 400

    def test_import_multi(self, client, remote):
        remote.add(f"{SHEET}/edit", '<li id="gid=0">Site</li>')
        remote.add(
            f"{SHEET}/export?format=csv&gid=0",
            "Keyword,Link,Position\nbanana bread,https://site.com/banana-bread,3\n",
        )

        response = client.post("/api/keywords/import-multi", json={"url": f"{SHEET}/edit"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "results": [{"domain": "site.com", "keywordsImported": 1, "urlsCreated": 1}],
            "totalDomains": 1,
            "totalKeywords": 1,
        }

    def test_import_multi_invalid_url(self, client):
        response = client.post("/api/keywords/import-multi", json={"url": "https://example.com/x"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid Google Sheets URL"


# =============================================================================
# SITEMAPS
# =============================================================================

class TestSitemap:
    """Tests for sitemap fetch and process."""

    def test_fetch(self, client, remote, sitemap_index_xml):
        domain_id = _create_domain(client)
        remote.add("https://site.com/sitemap_index.xml", sitemap_index_xml)

        response = client.post(
            f"/api/domains/{domain_id}/sitemap/fetch",
            json={"url": "https://site.com/sitemap_index.xml"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "urls": [],
            "sitemaps": ["https://site.com/post-sitemap.xml", "https://site.com/page-sitemap.xml"],
        }

    def test_fetch_batch(self, client, remote, sitemap_xml):
        domain_id = _create_domain(client)
        remote.add("https://site.com/post-sitemap.xml", sitemap_xml)

        response = client.post(
            f"/api/domains/{domain_id}/sitemap/fetch-batch",
            json={"urls": ["https://site.com/post-sitemap.xml", "https://site.com/page-sitemap.xml"]},
        )

        assert response.status_code == 200
        assert len(response.json()["urls"]) == 3

    def test_fetch_unreachable(self, client):
        domain_id = _create_domain(client)
        response = client.post(
            f"/api/domains/{domain_id}/sitemap/fetch",
            json={"url": "https://site.com/missing.xml"},
        )
        assert response.status_code == 400

    def test_fetch_malformed(self, client, remote):
        domain_id = _create_domain(client)
        remote.add("https://site.com/sitemap.xml", "<urlset><url>")

        response = client.post(
            f"/api/domains/{domain_id}/sitemap/fetch",
            json={"url": "https://site.com/sitemap.xml"},
        )
        assert response.status_code == 500

    def test_process(self, client):
        domain_id = _create_domain(client)

        response = client.post(
            f"/api/domains/{domain_id}/sitemap/process",
            json={"urls": [
                {"loc": "https://site.com/banana-bread/", "lastmod": "2024-01-15"},
                {"loc": "https://site.com/easy-banana-muffins/"},
            ]},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "added": 2}
        assert client.get(f"/api/domains/{domain_id}").json()["totalRecipeUrls"] == 2

        analysis = client.get(f"/api/domains/{domain_id}/slug-analysis").json()
        assert analysis["totalUrls"] == 2
        assert analysis["analysis"][0]["word"] == "banana"
        assert analysis["analysis"][0]["count"] == 2

    def test_process_requires_urls(self, client):
        domain_id = _create_domain(client)
        response = client.post(f"/api/domains/{domain_id}/sitemap/process", json={"urls": []})
        assert response.status_code == 400


# =============================================================================
# REPORTS & SETTINGS
# =============================================================================

class TestReportsAndSettings:
    """Tests for report and settings endpoints."""

    def test_keyword_coverage_and_rankings(self, client, keyword_csv):
        domain_id = _create_domain(client)
        client.post(
            f"/api/domains/{domain_id}/keywords/upload",
            files={"file": ("export.csv", keyword_csv, "text/csv")},
        )

        coverage = client.get("/api/reports/keyword-coverage", params={"page": 1, "limit": 10}).json()
        assert coverage["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}
        keyword_id = coverage["data"][0]["id"]

        rankings = client.get(f"/api/keywords/{keyword_id}/rankings").json()
        assert rankings == [{
            "domainName": "site.com",
            "position": 3,
            "url": "https://site.com/banana-bread",
            "pinterestPinUrl": "https://pinterest.com/pin/1",
            "pinImageUrl": None,
        }]

    def test_coverage_rejects_bad_page(self, client):
        assert client.get("/api/reports/keyword-coverage", params={"page": 0}).status_code == 400

    def test_stop_words_round_trip(self, client):
        assert client.get("/api/settings/stop-words").json() == {"stopWords": None, "customWords": []}

        response = client.post("/api/settings/stop-words", json={"stopWords": None, "customWords": ["banana"]})
        assert response.status_code == 200
        assert response.json() == {"success": True}

        assert client.get("/api/settings/stop-words").json() == {"stopWords": None, "customWords": ["banana"]}

    def test_custom_stop_words_apply_to_slug_analysis(self, client):
        domain_id = _create_domain(client)
        client.post(
            f"/api/domains/{domain_id}/sitemap/process",
            json={"urls": [{"loc": "https://site.com/banana-bread/"}]},
        )
        client.post("/api/settings/stop-words", json={"customWords": ["banana"]})

        words = [w["word"] for w in client.get(f"/api/domains/{domain_id}/slug-analysis").json()["analysis"]]
        assert words == ["bread"]

    @pytest.mark.parametrize("path", ["/api/domains/1/keyword-analysis", "/api/domains/1/slug-analysis"])
    def test_analysis_unknown_domain(self, client, path):
        assert client.get(path).status_code == 404
