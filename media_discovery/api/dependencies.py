"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
import logging
from functools import lru_cache

from fastapi import Depends

from media_discovery.clients.llm import ChatCompletionIntentExtractor
from media_discovery.clients.memory import InMemoryCatalogClient
from media_discovery.clients.tmdb import TmdbCatalogClient
from media_discovery.config import get_settings
from media_discovery.core.circuit_breaker import CircuitBreaker
from media_discovery.core.rate_limiter import RateLimiter
from media_discovery.models.interfaces import CatalogClient, IntentExtractor
from media_discovery.services.intent import RuleBasedIntentExtractor
from media_discovery.services.ranking import HybridRanker
from media_discovery.services.search import SearchService

logger = logging.getLogger(__name__)


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    """Get singleton rate limiter shared by every catalog call."""
    settings = get_settings()
    return RateLimiter(
        max_requests=settings.CATALOG_RATE_LIMIT_REQUESTS,
        window_sec=settings.CATALOG_RATE_LIMIT_WINDOW_SEC,
    )


@lru_cache()
def get_catalog_client() -> CatalogClient:
    """Get singleton catalog client for the configured backend."""
    settings = get_settings()
    if settings.CATALOG_BACKEND == "tmdb":
        if settings.TMDB_API_KEY:
            return TmdbCatalogClient(
                api_key=settings.TMDB_API_KEY,
                base_url=settings.TMDB_BASE_URL,
                language=settings.TMDB_LANGUAGE,
                timeout_sec=settings.TMDB_TIMEOUT_SEC,
                rate_limiter=get_rate_limiter(),
            )
        logger.warning("CATALOG_BACKEND=tmdb but TMDB_API_KEY is not set, using in-memory catalog")
    return InMemoryCatalogClient(rate_limiter=get_rate_limiter())


@lru_cache()
def get_intent_extractor() -> IntentExtractor:
    """Get singleton intent extractor (model-backed when a key is configured)."""
    settings = get_settings()
    if settings.LLM_API_KEY:
        return ChatCompletionIntentExtractor(
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            provider=settings.LLM_PROVIDER,
            base_url=settings.LLM_BASE_URL,
            timeout_sec=settings.LLM_TIMEOUT_SEC,
        )
    return RuleBasedIntentExtractor()


@lru_cache()
def get_intent_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for intent extraction."""
    settings = get_settings()
    return CircuitBreaker(
        name="intent_extractor",
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
    )


@lru_cache()
def get_ranker() -> HybridRanker:
    """Get singleton hybrid ranker."""
    return HybridRanker()


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_search_service(
    catalog: CatalogClient = Depends(get_catalog_client),
    intent_extractor: IntentExtractor = Depends(get_intent_extractor),
    circuit_breaker: CircuitBreaker = Depends(get_intent_circuit_breaker),
    ranker: HybridRanker = Depends(get_ranker),
) -> SearchService:
    """
    Get search service with all dependencies wired.
    This is the main entry point for the search endpoint.
    """
    settings = get_settings()
    return SearchService(
        catalog=catalog,
        intent_extractor=intent_extractor,
        ranker=ranker,
        circuit_breaker=circuit_breaker,
        max_query_length=settings.MAX_QUERY_LENGTH,
        max_result_limit=settings.MAX_RESULT_LIMIT,
        min_vote_count=settings.DISCOVERY_MIN_VOTE_COUNT,
        preferred_language=settings.PREFERRED_LANGUAGE,
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


async def close_clients() -> None:
    """Close HTTP clients that were created during the application lifetime."""
    if get_catalog_client.cache_info().currsize:
        await get_catalog_client().aclose()
    if get_intent_extractor.cache_info().currsize:
        extractor = get_intent_extractor()
        if isinstance(extractor, ChatCompletionIntentExtractor):
            await extractor.aclose()


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_rate_limiter.cache_clear()
    get_catalog_client.cache_clear()
    get_intent_extractor.cache_clear()
    get_intent_circuit_breaker.cache_clear()
    get_ranker.cache_clear()
