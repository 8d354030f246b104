"""
Integration tests for Search API.
"""
import asyncio

from fastapi.testclient import TestClient

from media_discovery.api.dependencies import get_catalog_client
from media_discovery.clients.memory import InMemoryCatalogClient
from media_discovery.config import get_settings
from media_discovery.main import app


class StalledCatalog(InMemoryCatalogClient):
    """Catalog whose discover call never completes."""

    async def discover(self, query):
        await asyncio.Event().wait()
        return []


class TestSearchAPI:
    def test_exact_title_lookup(self, test_client: TestClient):
        """Bare title returns the single exact match."""
        response = test_client.post("/v1/search", json={"query": "Inception"})

        assert response.status_code == 200
        data = response.json()
        assert len(data["results"]) == 1
        result = data["results"][0]
        assert result["catalogId"] == 27205
        assert result["mediaType"] == "movie"
        assert result["relevanceScore"] == 1.0
        assert result["reasoning"] == "Exact title match"
        assert result["posterUrl"].startswith("https://image.tmdb.org/t/p/w500/")
        assert result["year"] == 2010

    def test_feel_good_discovery(self, test_client: TestClient):
        """Mood query returns ranked, explained movies."""
        response = test_client.post(
            "/v1/search",
            json={"query": "feel-good movies like Forrest Gump from the 90s"},
        )

        assert response.status_code == 200
        data = response.json()
        assert 0 < len(data["results"]) <= 12
        assert len(data["traceId"]) == 32
        for item in data["results"]:
            assert item["mediaType"] == "movie"
            assert 0 < item["relevanceScore"] <= 1
            assert item["reasoning"].startswith("Because ")

        scores = [item["relevanceScore"] for item in data["results"]]
        assert scores == sorted(scores, reverse=True)

    def test_limit_hint(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"query": "comedies", "limit": 4})

        assert response.status_code == 200
        assert len(response.json()["results"]) == 4

    def test_count_in_query_wins(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"query": "top 2 comedies", "limit": 8})

        assert response.status_code == 200
        assert len(response.json()["results"]) == 2

    def test_empty_query_is_rejected(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"query": "   "})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_oversized_query_is_rejected(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"query": "a" * 501})
        assert response.status_code == 400

    def test_invalid_body(self, test_client: TestClient):
        assert test_client.post("/v1/search", json={}).status_code == 422
        assert test_client.post("/v1/search", json={"query": "x", "limit": 0}).status_code == 422

    def test_invalid_body_uses_error_envelope(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"limit": 5})

        error = response.json()["error"]
        assert error["code"] == "INVALID_REQUEST"
        assert [e["field"] for e in error["details"]["errors"]] == ["body.query"]

    def test_title_with_media_word_is_exact_lookup(self, test_client: TestClient):
        response = test_client.post("/v1/search", json={"query": "Inception movie"})

        assert response.status_code == 200
        [result] = response.json()["results"]
        assert result["catalogId"] == 27205
        assert result["reasoning"] == "Exact title match"

    def test_catalog_outage_returns_empty_results(self, test_client: TestClient):
        """Every catalog call failing still yields a valid, empty response."""
        failing = InMemoryCatalogClient(failing_operations={
            "multi_search", "discover", "find_exact_title", "recommendations", "similar", "genre_map",
        })
        app.dependency_overrides[get_catalog_client] = lambda: failing

        response = test_client.post("/v1/search", json={"query": "cozy shows"})

        assert response.status_code == 200
        assert response.json()["results"] == []

    def test_timeout_returns_504(self, test_client: TestClient):
        settings = get_settings()
        original_timeout = settings.SEARCH_TIMEOUT_SEC
        settings.SEARCH_TIMEOUT_SEC = 0.1
        stalled = StalledCatalog()
        app.dependency_overrides[get_catalog_client] = lambda: stalled

        try:
            response = test_client.post("/v1/search", json={"query": "feel-good movies"})
            assert response.status_code == 504
            assert response.json()["error"]["code"] == "SEARCH_TIMEOUT"
        finally:
            settings.SEARCH_TIMEOUT_SEC = original_timeout


class TestHealthAPI:
    def test_health(self, test_client: TestClient):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_readiness(self, test_client: TestClient):
        response = test_client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["circuit_breaker"]["state"] == "closed"
        assert data["catalog"]["client"] == "InMemoryCatalogClient"
        assert data["intent_extractor"] == "RuleBasedIntentExtractor"
