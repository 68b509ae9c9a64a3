"""
Marketplace mapping API routes.

Handlers are plain `def` so FastAPI runs the rate-limited batch loops
in its threadpool instead of blocking the event loop.
"""

from fastapi import APIRouter, Query
from typing import Optional
import structlog

from integrations import get_marketplace_adapter
from models.matching import BatchRequest, BatchRunRequest, MarketplaceHit
from models.product_mapping import ManualMappingRequest
from routes.common import handle_error, parse_marketplace, review_error
from services.bulk_mapping_service import get_bulk_mapping_service
from services.product_mapping_service import get_product_mapping_service

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# PROPOSALS
# ===================

@router.get("/proposals")
def list_proposals(
    marketplace: Optional[str] = Query(None, description="Filter by marketplace"),
    limit: int = Query(100, ge=1, le=500)
):
    """List mapping proposals awaiting review."""
    try:
        target = parse_marketplace(marketplace) if marketplace else None
        service = get_product_mapping_service()
        return service.list_pending(target, limit)
    except Exception as e:
        return handle_error(e)


@router.post("/proposals/{proposal_id}/approve")
def approve_proposal(proposal_id: str):
    """
    Apply a proposal to its catalog entry.

    Raises:
        404: Proposal not found
    """
    try:
        return get_product_mapping_service().approve(proposal_id)
    except Exception as e:
        return review_error(e)


@router.post("/proposals/{proposal_id}/reject")
def reject_proposal(proposal_id: str):
    """
    Delete a proposal.

    Raises:
        404: Proposal not found
    """
    try:
        return get_product_mapping_service().reject(proposal_id)
    except Exception as e:
        return review_error(e)


# ===================
# MARKETPLACE ROUTES
# ===================

@router.get("/{marketplace}/search", response_model=list[MarketplaceHit])
def search_marketplace(
    marketplace: str,
    q: str = Query(..., min_length=1, description="Product name"),
    set_code: Optional[str] = Query(None, description="Set code or set name")
):
    """Search a marketplace for manual mapping."""
    try:
        adapter = get_marketplace_adapter(parse_marketplace(marketplace))
        return adapter.search(q, hint=set_code)
    except Exception as e:
        return handle_error(e)


@router.post("/{marketplace}/manual")
def set_manual_mapping(marketplace: str, data: ManualMappingRequest):
    """
    Apply an admin-selected listing to a catalog entry as verified.

    Raises:
        404: Product not found
    """
    try:
        target = parse_marketplace(marketplace)
        hit = MarketplaceHit(
            external_id=data.external_id,
            external_name=data.external_name,
            external_url=data.external_url,
        )
        return get_product_mapping_service().set_manual_mapping(data.product_id, target, hit)
    except Exception as e:
        return handle_error(e)


@router.post("/{marketplace}/batch")
def run_mapping_batch(marketplace: str, data: Optional[BatchRequest] = None):
    """
    Map one batch of unverified entries.

    Always returns aggregate counts unless the working-set query fails.
    """
    try:
        service = get_bulk_mapping_service(parse_marketplace(marketplace))
        batch_size = data.batch_size if data else None
        return service.run_batch(batch_size)
    except Exception as e:
        return handle_error(e)


@router.post("/{marketplace}/run")
def run_mapping(marketplace: str, data: Optional[BatchRunRequest] = None):
    """Run batches until done or the batch ceiling is reached."""
    try:
        service = get_bulk_mapping_service(parse_marketplace(marketplace))
        data = data or BatchRunRequest()
        return service.run_until_complete(data.batch_size, data.max_batches)
    except Exception as e:
        return handle_error(e)
