"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppException):
    """Invalid input data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class CatalogError(AppException):
    """A catalog call failed."""

    def __init__(self, operation: str, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Catalog {operation} failed: {reason}",
            status_code=502,
            error_code="CATALOG_ERROR",
            details={"operation": operation, "reason": reason},
        )


class IntentExtractionError(AppException):
    """The intent provider failed or returned malformed output."""

    def __init__(self, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Intent extraction failed: {reason}",
            status_code=502,
            error_code="INTENT_EXTRACTION_ERROR",
            details={"reason": reason},
        )


class CircuitBreakerOpenError(AppException):
    """Circuit breaker is open - service calls blocked."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            message=f"Circuit breaker open for: {service_name}",
            status_code=503,
            error_code="CIRCUIT_BREAKER_OPEN",
            details={"service": service_name},
        )


class SearchTimeoutError(AppException):
    """The search did not finish within its time budget."""

    def __init__(self, timeout_sec: float) -> None:
        super().__init__(
            message=f"Search timed out after {timeout_sec:g}s",
            status_code=504,
            error_code="SEARCH_TIMEOUT",
            details={"timeout_seconds": timeout_sec},
        )
