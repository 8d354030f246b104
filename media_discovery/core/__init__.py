"""Core infrastructure components."""
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    CatalogError,
    CircuitBreakerOpenError,
    IntentExtractionError,
    SearchTimeoutError,
    ValidationError,
)
from .rate_limiter import RateLimiter

__all__ = [
    "AppException",
    "CatalogError",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "IntentExtractionError",
    "RateLimiter",
    "SearchTimeoutError",
    "ValidationError",
]
