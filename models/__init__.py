"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, TimestampMixin
from models.product import Marketplace, CatalogEntry
from models.matching import (
    ConfidenceTier,
    ScrapedItem,
    MarketplaceHit,
    MatchCandidate,
    MappedProduct,
    BatchResult,
    BatchRunSummary,
    ReconcileResult,
    BatchRequest,
    BatchRunRequest,
    ReconcileRequest,
)
from models.upc_candidate import (
    UPCCandidateCreate,
    UPCCandidateResponse,
    StageOutcome,
    ReviewResult,
)
from models.product_mapping import (
    MappingProposalResponse,
    ManualMappingRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # Catalog
    "Marketplace",
    "CatalogEntry",

    # Matching
    "ConfidenceTier",
    "ScrapedItem",
    "MarketplaceHit",
    "MatchCandidate",
    "MappedProduct",
    "BatchResult",
    "BatchRunSummary",
    "ReconcileResult",
    "BatchRequest",
    "BatchRunRequest",
    "ReconcileRequest",

    # Review queue
    "UPCCandidateCreate",
    "UPCCandidateResponse",
    "StageOutcome",
    "ReviewResult",
    "MappingProposalResponse",
    "ManualMappingRequest",
]
