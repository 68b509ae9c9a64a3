"""
Unit tests for ProductMappingService.
"""

import pytest

from exceptions import DatabaseError, MappingProposalNotFoundError, ProductNotFoundError
from models.matching import MarketplaceHit
from models.product import Marketplace
from services.product_mapping_service import ProductMappingService
from tests.factories import MappingProposalFactory


@pytest.fixture
def mappings(mock_supabase, sample_catalog_rows):
    mock_supabase.set_table_data("products", sample_catalog_rows)
    return ProductMappingService(db=mock_supabase)


@pytest.fixture
def hit():
    return MarketplaceHit(
        external_id=2001,
        external_name="Duskmourn: House of Horror Draft Booster Box",
        external_url="https://www.cardtrader.com/cards/2001",
    )


def _product(mock_supabase, product_id):
    return next(r for r in mock_supabase.rows("products") if r["id"] == product_id)


class TestPropose:
    """Tests for propose()."""

    def test_inserts_first_proposal(self, mappings, mock_supabase, hit):
        proposal = mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)

        assert proposal.product_id == "prod-dsk"
        assert proposal.marketplace == Marketplace.CARDTRADER
        assert proposal.external_id == 2001
        assert proposal.verified is False
        assert len(mock_supabase.rows("product_mappings")) == 1

    def test_does_not_touch_catalog(self, mappings, mock_supabase, hit):
        before = _product(mock_supabase, "prod-dsk")

        mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)

        assert _product(mock_supabase, "prod-dsk") == before

    def test_second_proposal_updates_existing_row(self, mappings, mock_supabase, hit):
        first = mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)
        better = MarketplaceHit(external_id=2002, external_name="Duskmourn Draft Booster Box")

        second = mappings.propose("prod-dsk", Marketplace.CARDTRADER, better)

        rows = mock_supabase.rows("product_mappings")
        assert len(rows) == 1
        assert second.id == first.id
        assert second.external_id == 2002
        assert rows[0]["updated_at"] is not None

    def test_one_row_per_marketplace(self, mappings, mock_supabase, hit):
        mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)
        mappings.propose("prod-dsk", Marketplace.TCGPLAYER, hit)

        assert len(mock_supabase.rows("product_mappings")) == 2

    def test_write_failure(self, mappings, mock_supabase, hit):
        mock_supabase.fail_on("product_mappings", "insert")

        with pytest.raises(DatabaseError):
            mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)


class TestListPending:

    def test_filters_verified_and_marketplace(self, mappings, mock_supabase):
        mock_supabase.set_table_data("product_mappings", [
            MappingProposalFactory.create(id="a", marketplace="cardtrader"),
            MappingProposalFactory.create(id="b", marketplace="tcgplayer"),
            MappingProposalFactory.create(id="c", marketplace="cardtrader", verified=True),
        ])

        assert {p.id for p in mappings.list_pending()} == {"a", "b"}
        assert [p.id for p in mappings.list_pending(Marketplace.CARDTRADER)] == ["a"]


class TestReview:
    """Tests for approve(), reject() and set_manual_mapping()."""

    def test_approve_applies_to_entry(self, mappings, mock_supabase, hit):
        proposal = mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)

        result = mappings.approve(proposal.id)

        assert result.success is True
        assert result.message == "cardtrader mapping approved"
        product = _product(mock_supabase, "prod-dsk")
        assert product["cardtrader_blueprint_id"] == 2001
        assert product["cardtrader_is_verified"] is True
        assert mappings.get(proposal.id).verified is True

    def test_approve_unknown(self, mappings):
        with pytest.raises(MappingProposalNotFoundError):
            mappings.approve("missing")

    def test_approve_missing_product_leaves_proposal_unverified(self, mappings, hit):
        proposal = mappings.propose("gone", Marketplace.CARDTRADER, hit)

        with pytest.raises(ProductNotFoundError):
            mappings.approve(proposal.id)

        assert mappings.get(proposal.id).verified is False

    def test_reject_deletes_proposal_only(self, mappings, mock_supabase, hit):
        proposal = mappings.propose("prod-dsk", Marketplace.CARDTRADER, hit)
        before = _product(mock_supabase, "prod-dsk")

        result = mappings.reject(proposal.id)

        assert result.message == "Mapping proposal rejected"
        assert mock_supabase.rows("product_mappings") == []
        assert _product(mock_supabase, "prod-dsk") == before

        with pytest.raises(MappingProposalNotFoundError):
            mappings.reject(proposal.id)

    def test_manual_mapping_is_verified_everywhere(self, mappings, mock_supabase):
        manual = MarketplaceHit(external_id=555, external_name="Foundations Bundle")

        proposal = mappings.set_manual_mapping("prod-fdn", Marketplace.TCGPLAYER, manual)

        assert proposal.verified is True
        product = _product(mock_supabase, "prod-fdn")
        assert product["tcgplayer_product_id"] == 555
        assert product["tcg_is_verified"] is True

    def test_manual_mapping_unknown_product_writes_nothing(self, mappings, mock_supabase):
        manual = MarketplaceHit(external_id=555, external_name="Foundations Bundle")

        with pytest.raises(ProductNotFoundError):
            mappings.set_manual_mapping("gone", Marketplace.TCGPLAYER, manual)

        assert mock_supabase.rows("product_mappings") == []
