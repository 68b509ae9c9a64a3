"""
UPC staging and review.

Lifecycle of a staged candidate:

    staged --approve--> (entry gets upc + upc_is_verified, row deleted)
    staged --reject---> (row deleted, entry untouched)

Both actions consume the row, so acting on it again reports not found.
Staging is idempotent on (product_id, scraped_upc).
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.upc_candidate import (
    UPCCandidateResponse,
    StageOutcome,
    ReviewResult,
)
from services.catalog_service import CatalogService
from exceptions import (
    DatabaseError,
    StagedCandidateNotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def _require(value: Optional[str], field: str) -> str:
    """Reject blank identifiers before touching the store."""
    if value is None or not str(value).strip():
        raise ValidationError(
            f"{field} is required",
            code="MISSING_FIELD",
            details={"field": field}
        )
    return str(value).strip()


class UPCStagingService:
    """Review queue for scraped UPC codes."""

    def __init__(self, db=None, catalog: Optional[CatalogService] = None):
        self.db = db or get_supabase_client()
        self.catalog = catalog or CatalogService(db=self.db)
        self.table = "upc_candidates"

    # ===================
    # READ OPERATIONS
    # ===================

    def get(self, staging_id: str) -> UPCCandidateResponse:
        """
        Get a staged candidate.

        Raises:
            ValidationError: If staging_id is blank
            StagedCandidateNotFoundError: If it doesn't exist
            DatabaseError: If the query fails
        """
        staging_id = _require(staging_id, "staging_id")

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", staging_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_staged_candidate_failed", staging_id=staging_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise StagedCandidateNotFoundError(staging_id)

        return UPCCandidateResponse(**result.data[0])

    def find_existing(self, product_id: str, upc: str) -> Optional[UPCCandidateResponse]:
        """Staged candidate for this exact (entry, UPC) pair, if any."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .eq("scraped_upc", upc)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_staged_candidate_failed",
                product_id=product_id,
                upc=upc,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return UPCCandidateResponse(**result.data[0])

    def exists(self, product_id: str, upc: str) -> bool:
        return self.find_existing(product_id, upc) is not None

    def list_pending(self, limit: int = 100) -> list[UPCCandidateResponse]:
        """Staged candidates awaiting review, oldest first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at")
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("list_staged_candidates_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [UPCCandidateResponse(**row) for row in result.data]

    # ===================
    # STATE TRANSITIONS
    # ===================

    def create(
        self,
        product_id: str,
        upc: str,
        name: Optional[str] = None,
        provenance: Optional[str] = None
    ) -> StageOutcome:
        """
        Stage a UPC for an entry unless the same pair is already staged.

        Args:
            product_id: Target catalog entry
            upc: Scraped UPC
            name: Scraped product name
            provenance: Source URL

        Returns:
            StageOutcome with created=False when the pair already existed

        Raises:
            ValidationError: If product_id or upc is blank
            DatabaseError: If the insert fails
        """
        product_id = _require(product_id, "product_id")
        upc = _require(upc, "upc")

        existing = self.find_existing(product_id, upc)
        if existing:
            logger.info(
                "upc_candidate_already_staged",
                product_id=product_id,
                upc=upc,
                staging_id=existing.id
            )
            return StageOutcome(
                created=False,
                candidate=existing,
                message="Candidate already exists, not created"
            )

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "product_id": product_id,
                    "scraped_upc": upc,
                    "scraped_name": name,
                    "wpn_url": provenance,
                })
                .execute()
            )
        except Exception as e:
            logger.error(
                "stage_upc_candidate_failed",
                product_id=product_id,
                upc=upc,
                error=str(e)
            )
            raise DatabaseError("insert", str(e), details={"product_id": product_id})

        candidate = UPCCandidateResponse(**result.data[0])

        logger.info(
            "upc_candidate_staged",
            staging_id=candidate.id,
            product_id=product_id,
            upc=upc
        )

        return StageOutcome(created=True, candidate=candidate, message="Candidate staged")

    def approve(self, staging_id: str) -> ReviewResult:
        """
        Approve a staged candidate onto its catalog entry.

        The entry is updated first; the staged row is only deleted once
        that write succeeded, so a failed update leaves the proposal in
        place for a retry.

        Raises:
            ValidationError: If staging_id is blank
            StagedCandidateNotFoundError: If not staged (or already consumed)
            ProductNotFoundError: If the target entry is gone
            DatabaseError: If a write fails
        """
        candidate = self.get(staging_id)

        if not candidate.scraped_upc:
            raise ValidationError(
                "Staged candidate has no UPC to approve",
                code="MISSING_FIELD",
                details={"field": "scraped_upc", "staging_id": candidate.id}
            )

        logger.info(
            "approving_upc_candidate",
            staging_id=candidate.id,
            product_id=candidate.product_id,
            upc=candidate.scraped_upc
        )

        self.catalog.set_verified_upc(candidate.product_id, candidate.scraped_upc)
        self._delete(candidate.id)

        logger.info("upc_candidate_approved", staging_id=candidate.id)

        return ReviewResult(
            success=True,
            message=f"UPC {candidate.scraped_upc} approved",
            id=candidate.id,
            product_id=candidate.product_id
        )

    def reject(self, staging_id: str) -> ReviewResult:
        """
        Discard a staged candidate. The catalog entry is not touched.

        Raises:
            ValidationError: If staging_id is blank
            StagedCandidateNotFoundError: If not staged (or already consumed)
            DatabaseError: If the delete fails
        """
        candidate = self.get(staging_id)

        self._delete(candidate.id)

        logger.info(
            "upc_candidate_rejected",
            staging_id=candidate.id,
            product_id=candidate.product_id
        )

        return ReviewResult(
            success=True,
            message="Candidate rejected",
            id=candidate.id,
            product_id=candidate.product_id
        )

    def _delete(self, staging_id: str) -> None:
        try:
            self.db.table(self.table).delete().eq("id", staging_id).execute()
        except Exception as e:
            logger.error("delete_staged_candidate_failed", staging_id=staging_id, error=str(e))
            raise DatabaseError("delete", str(e), details={"staging_id": staging_id})


# Singleton instance for convenience
_upc_staging_service: Optional[UPCStagingService] = None

def get_upc_staging_service() -> UPCStagingService:
    """Get or create UPCStagingService instance."""
    global _upc_staging_service
    if _upc_staging_service is None:
        _upc_staging_service = UPCStagingService()
    return _upc_staging_service
