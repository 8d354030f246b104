"""
Health check router for observability.
"""
from fastapi import APIRouter, Depends

from media_discovery.api.dependencies import (
    get_catalog_client,
    get_intent_circuit_breaker,
    get_intent_extractor,
)
from media_discovery.config import get_settings
from media_discovery.core.circuit_breaker import CircuitBreaker
from media_discovery.models.interfaces import CatalogClient, IntentExtractor

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check(
    circuit_breaker: CircuitBreaker = Depends(get_intent_circuit_breaker),
    catalog: CatalogClient = Depends(get_catalog_client),
    intent_extractor: IntentExtractor = Depends(get_intent_extractor),
) -> dict:
    """
    Readiness check for Kubernetes.
    Returns circuit breaker state and the configured collaborators.
    """
    settings = get_settings()

    return {
        "status": "ready",
        "circuit_breaker": {
            "name": circuit_breaker.name,
            "state": circuit_breaker.state.value,
        },
        "catalog": {
            "backend": settings.CATALOG_BACKEND,
            "client": type(catalog).__name__,
        },
        "intent_extractor": type(intent_extractor).__name__,
    }
