"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Catalog
    ProductNotFoundError,
    CatalogQueryError,
    UnsupportedMarketplaceError,

    # Review queue
    StagedCandidateNotFoundError,
    MappingProposalNotFoundError,

    # External sources
    MarketplaceSearchError,
    ScraperUnavailableError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Catalog
    "ProductNotFoundError",
    "CatalogQueryError",
    "UnsupportedMarketplaceError",

    # Review queue
    "StagedCandidateNotFoundError",
    "MappingProposalNotFoundError",

    # External sources
    "MarketplaceSearchError",
    "ScraperUnavailableError",
]
