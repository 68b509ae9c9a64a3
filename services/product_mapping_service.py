"""
Marketplace mapping proposals.

One proposal per (product, marketplace). Proposing again replaces the
suggested listing on the existing row instead of inserting a second one.
"""

from typing import Optional
from datetime import datetime, timezone
import structlog

from config import get_supabase_client
from models.matching import MarketplaceHit
from models.product import Marketplace
from models.product_mapping import MappingProposalResponse
from models.upc_candidate import ReviewResult
from services.catalog_service import CatalogService
from exceptions import (
    DatabaseError,
    MappingProposalNotFoundError,
)

logger = structlog.get_logger(__name__)


class ProductMappingService:
    """Stores and reviews marketplace mapping proposals."""

    def __init__(self, db=None, catalog: Optional[CatalogService] = None):
        self.db = db or get_supabase_client()
        self.catalog = catalog or CatalogService(db=self.db)
        self.table = "product_mappings"

    def get(self, proposal_id: str) -> MappingProposalResponse:
        """
        Raises:
            MappingProposalNotFoundError: If it doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", proposal_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_mapping_proposal_failed", proposal_id=proposal_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise MappingProposalNotFoundError(proposal_id)

        return MappingProposalResponse(**result.data[0])

    def find_existing(
        self,
        product_id: str,
        marketplace: Marketplace
    ) -> Optional[MappingProposalResponse]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .eq("marketplace", marketplace.value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_mapping_proposal_failed",
                product_id=product_id,
                marketplace=marketplace.value,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return MappingProposalResponse(**result.data[0])

    def list_pending(
        self,
        marketplace: Optional[Marketplace] = None,
        limit: int = 100
    ) -> list[MappingProposalResponse]:
        """Unverified proposals, oldest first."""
        try:
            query = self.db.table(self.table).select("*").eq("verified", False)
            if marketplace:
                query = query.eq("marketplace", marketplace.value)
            result = query.order("created_at").limit(limit).execute()
        except Exception as e:
            logger.error("list_mapping_proposals_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [MappingProposalResponse(**row) for row in result.data]

    def propose(
        self,
        product_id: str,
        marketplace: Marketplace,
        hit: MarketplaceHit,
        verified: bool = False
    ) -> MappingProposalResponse:
        """
        Record a suggested listing for an entry.

        Updates the entry's existing proposal for this marketplace if
        there is one, otherwise inserts a new row.

        Raises:
            DatabaseError: If the write fails
        """
        fields = {
            "external_id": hit.external_id,
            "external_name": hit.external_name,
            "external_url": hit.external_url,
            "verified": verified,
        }

        existing = self.find_existing(product_id, marketplace)

        try:
            if existing:
                fields["updated_at"] = datetime.now(timezone.utc).isoformat()
                result = (
                    self.db.table(self.table)
                    .update(fields)
                    .eq("id", existing.id)
                    .execute()
                )
                action = "updated"
            else:
                result = (
                    self.db.table(self.table)
                    .insert({
                        "product_id": product_id,
                        "marketplace": marketplace.value,
                        **fields,
                    })
                    .execute()
                )
                action = "created"
        except Exception as e:
            logger.error(
                "propose_mapping_failed",
                product_id=product_id,
                marketplace=marketplace.value,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e), details={"product_id": product_id})

        if not result.data:
            raise DatabaseError("upsert", "no row returned", details={"product_id": product_id})

        proposal = MappingProposalResponse(**result.data[0])

        logger.info(
            f"mapping_proposal_{action}",
            proposal_id=proposal.id,
            product_id=product_id,
            marketplace=marketplace.value,
            external_id=hit.external_id
        )

        return proposal

    def set_manual_mapping(
        self,
        product_id: str,
        marketplace: Marketplace,
        hit: MarketplaceHit
    ) -> MappingProposalResponse:
        """
        Admin picked a listing by hand: record it verified and apply it.

        The entry is written first so a failure leaves nothing claiming
        to be verified.
        """
        self.catalog.set_marketplace_id(product_id, marketplace, hit.external_id, verified=True)
        return self.propose(product_id, marketplace, hit, verified=True)

    def approve(self, proposal_id: str) -> ReviewResult:
        """
        Apply a proposal to its catalog entry and mark it verified.

        Raises:
            MappingProposalNotFoundError: If it doesn't exist
            ProductNotFoundError: If the entry is gone
            DatabaseError: If a write fails (proposal stays unverified)
        """
        proposal = self.get(proposal_id)

        self.catalog.set_marketplace_id(
            proposal.product_id,
            proposal.marketplace,
            proposal.external_id,
            verified=True
        )

        try:
            self.db.table(self.table).update({
                "verified": True,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }).eq("id", proposal.id).execute()
        except Exception as e:
            logger.error("verify_mapping_proposal_failed", proposal_id=proposal.id, error=str(e))
            raise DatabaseError("update", str(e), details={"proposal_id": proposal.id})

        logger.info(
            "mapping_proposal_approved",
            proposal_id=proposal.id,
            product_id=proposal.product_id,
            marketplace=proposal.marketplace.value
        )

        return ReviewResult(
            success=True,
            message=f"{proposal.marketplace.value} mapping approved",
            id=proposal.id,
            product_id=proposal.product_id
        )

    def reject(self, proposal_id: str) -> ReviewResult:
        """
        Delete a proposal. The catalog entry is not touched.

        Raises:
            MappingProposalNotFoundError: If it doesn't exist
        """
        proposal = self.get(proposal_id)

        try:
            self.db.table(self.table).delete().eq("id", proposal.id).execute()
        except Exception as e:
            logger.error("delete_mapping_proposal_failed", proposal_id=proposal.id, error=str(e))
            raise DatabaseError("delete", str(e), details={"proposal_id": proposal.id})

        logger.info("mapping_proposal_rejected", proposal_id=proposal.id)

        return ReviewResult(
            success=True,
            message="Mapping proposal rejected",
            id=proposal.id,
            product_id=proposal.product_id
        )


# Singleton instance for convenience
_product_mapping_service: Optional[ProductMappingService] = None

def get_product_mapping_service() -> ProductMappingService:
    """Get or create ProductMappingService instance."""
    global _product_mapping_service
    if _product_mapping_service is None:
        _product_mapping_service = ProductMappingService()
    return _product_mapping_service
