"""
Marketplace mapping proposal schemas.

Flows running with the stage-for-review policy store the accepted
marketplace hit in `product_mappings` instead of touching the catalog
entry; a reviewer later approves it onto the entry.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin
from models.product import Marketplace


class MappingProposalResponse(BaseSchema, TimestampMixin):
    """Row in `product_mappings`."""

    id: str
    product_id: str
    marketplace: Marketplace
    external_id: int
    external_name: str
    external_url: Optional[str] = None
    verified: bool = False


class ManualMappingRequest(BaseSchema):
    """Admin-selected mapping from the search screen."""

    product_id: str = Field(..., min_length=1)
    external_id: int = Field(..., ge=1)
    external_name: str = Field(..., min_length=1)
    external_url: Optional[str] = None
