"""
Staged UPC candidate schemas.

A staged candidate is a pending proposal linking a scraped UPC to a
catalog entry, stored in `upc_candidates` until a reviewer approves
(entry gets the UPC, row deleted) or rejects it (row deleted).
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class UPCCandidateCreate(BaseSchema):
    """Manual staging request."""

    product_id: str = Field(..., min_length=1, description="Target catalog entry")
    scraped_upc: str = Field(..., min_length=1, description="Scraped UPC")
    scraped_name: Optional[str] = Field(None, description="Scraped product name")
    wpn_url: Optional[str] = Field(None, description="Provenance URL")


class UPCCandidateResponse(BaseSchema):
    """Row in `upc_candidates`."""

    id: str
    product_id: str
    scraped_name: Optional[str] = None
    scraped_upc: Optional[str] = None
    wpn_url: Optional[str] = None
    created_at: Optional[datetime] = None


class StageOutcome(BaseSchema):
    """Result of an idempotent staging attempt."""

    created: bool
    candidate: UPCCandidateResponse
    message: str


class ReviewResult(BaseSchema):
    """Outcome of an approve/reject action."""

    success: bool
    message: str
    id: Optional[str] = None
    product_id: Optional[str] = None
