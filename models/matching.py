"""
Matching schemas: scraped input, marketplace hits, ranked candidates
and the aggregate results returned by batch runs.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.product import Marketplace


class ConfidenceTier(str, Enum):
    """Human-facing match label derived from name containment."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class ScrapedItem(BaseSchema):
    """Externally scraped product record. Never persisted as-is."""

    name: str = Field(..., min_length=1, description="Free-text product name")
    code: Optional[str] = Field(None, description="Source code, e.g. UPC")
    sku: Optional[str] = Field(None, description="Publisher SKU if scraped")
    set_code: Optional[str] = Field(None, description="Set code inferred from the source")
    source_url: Optional[str] = Field(None, description="Provenance URL")

    @field_validator("code")
    @classmethod
    def blank_code_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class MarketplaceHit(BaseSchema):
    """One search result from a marketplace adapter."""

    external_id: int = Field(..., description="Marketplace product/blueprint id")
    external_name: str = Field(..., min_length=1, description="Marketplace listing name")
    external_url: Optional[str] = Field(None, description="Listing URL")
    set_name: Optional[str] = Field(None, description="Set/expansion reported by the marketplace")


class MatchCandidate(BaseSchema):
    """
    Result of ranking one scraped item against the catalog.

    `product_id` is None for the no-match sentinel.
    """

    product_id: Optional[str] = None
    product_name: Optional[str] = None
    scraped_name: str
    scraped_code: Optional[str] = None
    source_url: Optional[str] = None
    score: float = Field(default=0.0, ge=0, le=1)
    confidence: ConfidenceTier = ConfidenceTier.NONE

    @property
    def is_match(self) -> bool:
        return self.product_id is not None

    @classmethod
    def no_match(cls, item: ScrapedItem) -> "MatchCandidate":
        return cls(
            scraped_name=item.name,
            scraped_code=item.code,
            source_url=item.source_url,
        )


class MappedProduct(BaseSchema):
    """A catalog entry paired with the marketplace hit accepted for it."""

    product_id: str
    product_name: str
    external_id: int
    external_name: str
    confidence: ConfidenceTier


class BatchResult(BaseSchema):
    """Aggregate outcome of one bulk mapping batch."""

    marketplace: Marketplace
    total: int = 0
    processed: int = 0
    mapped: int = 0
    errors: int = 0
    product_ids: list[str] = Field(default_factory=list)
    mapped_products: list[MappedProduct] = Field(default_factory=list)


class BatchRunSummary(BaseSchema):
    """Aggregate outcome of a multi-batch mapping run."""

    marketplace: Marketplace
    total: int = 0
    processed: int = 0
    mapped: int = 0
    errors: int = 0
    batches_processed: int = 0
    complete: bool = False
    message: str = ""


class ReconcileResult(BaseSchema):
    """Aggregate outcome of one UPC reconciliation run."""

    total_scraped: int = 0
    total_matched: int = 0
    total_staged: int = 0
    errors: int = 0
    used_fallback: bool = False
    matches: list[MatchCandidate] = Field(default_factory=list)


# ===================
# REQUEST BODIES
# ===================

class BatchRequest(BaseSchema):
    """Body for a single mapping batch."""

    batch_size: Optional[int] = Field(None, ge=1, le=100, description="Entries to process")


class BatchRunRequest(BaseSchema):
    """Body for a multi-batch mapping run."""

    batch_size: Optional[int] = Field(None, ge=1, le=100)
    max_batches: int = Field(default=3, ge=1, le=100)


class ReconcileRequest(BaseSchema):
    """Body for a reconciliation run; omit `items` to scrape."""

    items: Optional[list[ScrapedItem]] = None
