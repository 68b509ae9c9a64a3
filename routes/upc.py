"""
UPC reconciliation and review API routes.
"""

from fastapi import APIRouter, Query
from typing import Optional
import structlog

from models.matching import ReconcileRequest, ReconcileResult
from models.upc_candidate import (
    StageOutcome,
    UPCCandidateCreate,
    UPCCandidateResponse,
)
from routes.common import handle_error, review_error
from services.upc_reconciliation_service import get_upc_reconciliation_service
from services.upc_staging_service import get_upc_staging_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/reconcile", response_model=ReconcileResult)
def reconcile(data: Optional[ReconcileRequest] = None):
    """
    Scrape UPCs (or use the supplied items) and stage matches.

    Falls back to a fixed fixture set when the scraper is down.
    """
    try:
        items = data.items if data else None
        return get_upc_reconciliation_service().reconcile(items)
    except Exception as e:
        return handle_error(e)


@router.get("/candidates", response_model=list[UPCCandidateResponse])
def list_candidates(limit: int = Query(100, ge=1, le=500)):
    """List staged candidates awaiting review."""
    try:
        return get_upc_staging_service().list_pending(limit)
    except Exception as e:
        return handle_error(e)


@router.post("/candidates", response_model=StageOutcome)
def create_candidate(data: UPCCandidateCreate):
    """
    Stage a UPC by hand.

    Returns created=False if the same (product, UPC) pair is already staged.
    """
    try:
        return get_upc_staging_service().create(
            data.product_id,
            data.scraped_upc,
            name=data.scraped_name,
            provenance=data.wpn_url
        )
    except Exception as e:
        return handle_error(e)


@router.post("/candidates/{staging_id}/approve")
def approve_candidate(staging_id: str):
    """
    Write the UPC onto the catalog entry and consume the candidate.

    Raises:
        404: Candidate not found or already consumed
    """
    try:
        return get_upc_staging_service().approve(staging_id)
    except Exception as e:
        return review_error(e)


@router.post("/candidates/{staging_id}/reject")
def reject_candidate(staging_id: str):
    """
    Discard the candidate without touching the catalog.

    Raises:
        404: Candidate not found or already consumed
    """
    try:
        return get_upc_staging_service().reject(staging_id)
    except Exception as e:
        return review_error(e)
