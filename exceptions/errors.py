"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict
so routes can hand it straight back as JSON.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Catalog entry not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class CatalogQueryError(DatabaseError):
    """The working-set query for a batch failed; nothing can be processed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(operation="select", message=message, details=details)
        self.code = "CATALOG_QUERY_FAILED"


class UnsupportedMarketplaceError(ValidationError):
    """Marketplace name not recognised."""

    def __init__(self, marketplace: str, valid: list[str]):
        super().__init__(
            code="UNSUPPORTED_MARKETPLACE",
            message=f"Unsupported marketplace: {marketplace}",
            details={"provided": marketplace, "valid": valid}
        )


# ===================
# REVIEW QUEUE ERRORS
# ===================

class StagedCandidateNotFoundError(NotFoundError):
    """Staged UPC candidate not found (never staged or already consumed)."""

    def __init__(self, staging_id: str):
        super().__init__(
            resource="Staged candidate",
            identifier=staging_id,
            code="STAGED_CANDIDATE_NOT_FOUND"
        )


class MappingProposalNotFoundError(NotFoundError):
    """Marketplace mapping proposal not found."""

    def __init__(self, proposal_id: str):
        super().__init__(
            resource="Mapping proposal",
            identifier=proposal_id,
            code="MAPPING_PROPOSAL_NOT_FOUND"
        )


# ===================
# EXTERNAL SOURCE ERRORS
# ===================

class MarketplaceSearchError(ExternalServiceError):
    """Marketplace unreachable, timed out, or answered non-2xx."""

    def __init__(self, marketplace: str, message: str, details: Optional[dict] = None):
        super().__init__(service=marketplace, message=message, details=details)


class ScraperUnavailableError(ExternalServiceError):
    """Scraper source could not be reached."""

    def __init__(self, source: str, message: str, details: Optional[dict] = None):
        super().__init__(service=source, message=message, details=details)
