"""
Pytest configuration and fixtures.
"""
import pytest
from fastapi.testclient import TestClient

from media_discovery.api.dependencies import (
    clear_caches,
    get_catalog_client,
    get_intent_circuit_breaker,
    get_intent_extractor,
)
from media_discovery.clients.memory import InMemoryCatalogClient
from media_discovery.core.circuit_breaker import CircuitBreaker
from media_discovery.core.rate_limiter import RateLimiter
from media_discovery.main import app
from media_discovery.models.schemas import (
    Candidate,
    GenreSelection,
    Intent,
    MediaType,
    RankingContext,
    SourceKind,
)
from media_discovery.services.intent import RuleBasedIntentExtractor
from media_discovery.services.search import SearchService

CURRENT_YEAR = 2024


@pytest.fixture
def catalog():
    """Fixture for the in-memory catalog with its own rate limiter."""
    return InMemoryCatalogClient(rate_limiter=RateLimiter(max_requests=40, window_sec=10))


@pytest.fixture
def rule_extractor():
    return RuleBasedIntentExtractor()


@pytest.fixture
def search_service(catalog, rule_extractor):
    """Search service over the in-memory catalog with a fixed current year."""
    return SearchService(
        catalog=catalog,
        intent_extractor=rule_extractor,
        current_year=CURRENT_YEAR,
    )


@pytest.fixture
def test_client(catalog, rule_extractor):
    """
    TestClient fixture with dependency overrides.
    Uses the in-memory catalog for isolation.
    """
    breaker = CircuitBreaker("intent_extractor", failure_threshold=5)
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_intent_extractor] = lambda: rule_extractor
    app.dependency_overrides[get_intent_circuit_breaker] = lambda: breaker

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    clear_caches()


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible defaults."""

    def _make(catalog_id: int = 1, **overrides) -> Candidate:
        fields = dict(
            media_type=MediaType.MOVIE,
            catalog_id=catalog_id,
            name=f"Title {catalog_id}",
            overview="",
            vote_average=7.0,
            vote_count=1000,
            release_year=2010,
            source=SourceKind.GENRE_DISCOVERY,
            original_language="en",
        )
        fields.update(overrides)
        return Candidate(**fields)

    return _make


@pytest.fixture
def make_context():
    """Factory for ranking contexts."""

    def _make(intent: Intent = None, **overrides) -> RankingContext:
        fields = dict(
            intent=intent or Intent(is_requesting_suggestions=True),
            preferred_language="en",
            current_year=CURRENT_YEAR,
        )
        fields.update(overrides)
        return RankingContext(**fields)

    return _make


@pytest.fixture
def feel_good_selection():
    """Movie genre ids reached through the feel-good mood."""
    return GenreSelection(mood_ids=frozenset({35, 10751, 10402, 10749}))
