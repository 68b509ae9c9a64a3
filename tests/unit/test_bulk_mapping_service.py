"""
Unit tests for BulkMappingService.

Tests per-item error isolation, trust policies, rate-limit pauses and
the multi-batch driver.
"""

import pytest

from config.settings import MappingPolicy, Settings
from exceptions import CatalogQueryError, MarketplaceSearchError
from models.matching import ConfidenceTier, MarketplaceHit
from models.product import Marketplace
from services.bulk_mapping_service import BulkMappingService
from services.catalog_service import CatalogService
from tests.conftest import FakeMarketplaceAdapter
from tests.factories import CatalogEntryFactory


def _hit(external_id: int, name: str) -> MarketplaceHit:
    return MarketplaceHit(external_id=external_id, external_name=name)


@pytest.fixture
def five_entries(mock_supabase):
    rows = CatalogEntryFactory.create_batch(5, set_code="FDN")
    mock_supabase.set_table_data("products", rows)
    return rows


@pytest.fixture
def adapter():
    """Every product has one hit, except Product 03 which times out."""
    return FakeMarketplaceAdapter({
        "Product 01": [_hit(101, "Product 01")],
        "Product 02": [_hit(102, "Product 02 Booster"), _hit(999, "Other")],
        "Product 03": MarketplaceSearchError("fake", "timed out"),
        "Product 04": [_hit(104, "product 04")],
        "Product 05": [_hit(105, "Unrelated Listing")],
    })


def _service(mock_supabase, adapter, settings, sleep, marketplace=Marketplace.TCGPLAYER, **kwargs):
    return BulkMappingService(
        marketplace,
        adapter=adapter,
        catalog=CatalogService(db=mock_supabase),
        settings=settings,
        sleep=sleep,
        **kwargs
    )


def _product(mock_supabase, name):
    return next(r for r in mock_supabase.rows("products") if r["name"] == name)


# ===================
# SINGLE BATCH
# ===================

class TestRunBatch:
    """Tests for run_batch()."""

    def test_one_failure_does_not_stop_batch(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        """5 entries, the 3rd throws: processed=5, errors=1, mapped=4."""
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        result = service.run_batch(batch_size=5)

        assert result.marketplace == Marketplace.TCGPLAYER
        assert result.total == 5
        assert result.processed == 5
        assert result.errors == 1
        assert result.mapped == 4
        assert len(result.product_ids) == 5

    def test_auto_verify_writes_top_hit(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        service.run_batch(batch_size=5)

        second = _product(mock_supabase, "Product 02")
        assert second["tcgplayer_product_id"] == 102
        assert second["tcg_is_verified"] is True

        failed = _product(mock_supabase, "Product 03")
        assert failed["tcgplayer_product_id"] is None
        assert failed["tcg_is_verified"] is False

        # Top hit accepted even when the name is unrelated
        assert _product(mock_supabase, "Product 05")["tcgplayer_product_id"] == 105

    def test_mapped_products_carry_confidence(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        result = service.run_batch(batch_size=5)

        by_name = {m.product_name: m for m in result.mapped_products}
        assert by_name["Product 02"].confidence == ConfidenceTier.MEDIUM
        assert by_name["Product 04"].confidence == ConfidenceTier.HIGH
        assert by_name["Product 05"].confidence == ConfidenceTier.LOW

    def test_set_code_is_passed_as_hint(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        service.run_batch(batch_size=2)

        assert adapter.queries == [("Product 01", "FDN"), ("Product 02", "FDN")]

    def test_pauses_between_items_only(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        service.run_batch(batch_size=5)

        assert sleep_recorder.calls == [1.5, 1.5, 1.5, 1.5]

    def test_no_hits_is_not_an_error(self, mock_supabase, five_entries, test_settings, sleep_recorder):
        service = _service(mock_supabase, FakeMarketplaceAdapter(), test_settings, sleep_recorder)

        result = service.run_batch(batch_size=5)

        assert result.processed == 5
        assert result.mapped == 0
        assert result.errors == 0

    def test_write_failures_are_counted(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        mock_supabase.fail_on("products", "update")
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        result = service.run_batch(batch_size=5)

        assert result.processed == 5
        assert result.mapped == 0
        assert result.errors == 5

    def test_working_set_failure_aborts(self, mock_supabase, adapter, test_settings, sleep_recorder):
        mock_supabase.fail_on("products", "select")
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        with pytest.raises(CatalogQueryError):
            service.run_batch(batch_size=5)

        assert adapter.queries == []

    def test_empty_working_set(self, mock_supabase, adapter, test_settings, sleep_recorder):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        result = service.run_batch(batch_size=5)

        assert result.total == 0
        assert result.processed == 0
        assert sleep_recorder.calls == []

    def test_default_batch_size_from_settings(
        self, mock_supabase, five_entries, adapter, sleep_recorder
    ):
        settings = Settings(_env_file=None, default_batch_size=3)
        service = _service(mock_supabase, adapter, settings, sleep_recorder)

        result = service.run_batch()

        assert result.total == 3


class TestPolicies:
    """Each marketplace flow applies its configured trust policy."""

    def test_cardtrader_defaults_to_review(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(
            mock_supabase, adapter, test_settings, sleep_recorder,
            marketplace=Marketplace.CARDTRADER
        )

        result = service.run_batch(batch_size=5)

        assert service.policy == MappingPolicy.STAGE_FOR_REVIEW
        assert result.mapped == 4

        # Catalog untouched, proposals stored unverified
        for row in mock_supabase.rows("products"):
            assert row["cardtrader_blueprint_id"] is None
            assert row["cardtrader_is_verified"] is False

        proposals = mock_supabase.rows("product_mappings")
        assert len(proposals) == 4
        assert all(p["marketplace"] == "cardtrader" for p in proposals)
        assert all(p["verified"] is False for p in proposals)

    def test_tcgplayer_defaults_to_auto_verify(self, mock_supabase, adapter, test_settings, sleep_recorder):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        assert service.policy == MappingPolicy.AUTO_VERIFY

    def test_policy_from_settings(self, mock_supabase, adapter, sleep_recorder):
        settings = Settings(_env_file=None, tcgplayer_mapping_policy="stage_for_review")

        service = _service(mock_supabase, adapter, settings, sleep_recorder)

        assert service.policy == MappingPolicy.STAGE_FOR_REVIEW

    def test_preview_writes_nothing(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(
            mock_supabase, adapter, test_settings, sleep_recorder,
            policy=MappingPolicy.PREVIEW
        )

        result = service.run_batch(batch_size=5)

        assert result.mapped == 4
        writes = [op for _, op in mock_supabase.calls if op != "select"]
        assert writes == []


# ===================
# MULTI BATCH
# ===================

class TestRunUntilComplete:
    """Tests for run_until_complete()."""

    def test_runs_until_short_batch(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        """Preview leaves entries unverified; exclusion still moves the run forward."""
        service = _service(
            mock_supabase, adapter, test_settings, sleep_recorder,
            policy=MappingPolicy.PREVIEW
        )

        summary = service.run_until_complete(batch_size=2, max_batches=10)

        assert summary.complete is True
        assert summary.batches_processed == 3
        assert summary.total == 5
        assert summary.processed == 5
        assert summary.mapped == 4
        assert summary.errors == 1
        assert summary.message.startswith("Mapping complete")

        # Each entry searched exactly once
        assert len(adapter.queries) == 5

    def test_pauses_between_batches(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(
            mock_supabase, adapter, test_settings, sleep_recorder,
            policy=MappingPolicy.PREVIEW
        )

        service.run_until_complete(batch_size=2, max_batches=10)

        assert sleep_recorder.calls == [1.5, 2.0, 1.5, 2.0]

    def test_stops_at_max_batches(
        self, mock_supabase, five_entries, adapter, test_settings, sleep_recorder
    ):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        summary = service.run_until_complete(batch_size=2, max_batches=1)

        assert summary.complete is False
        assert summary.batches_processed == 1
        assert summary.processed == 2
        assert "Run again to continue" in summary.message

    def test_max_batches_clamped_to_ceiling(
        self, mock_supabase, five_entries, adapter, sleep_recorder
    ):
        settings = Settings(_env_file=None, max_batches_ceiling=2)
        service = _service(mock_supabase, adapter, settings, sleep_recorder)

        summary = service.run_until_complete(batch_size=2, max_batches=50)

        assert summary.batches_processed == 2
        assert summary.complete is False

    def test_empty_catalog_completes_in_one_batch(self, mock_supabase, adapter, test_settings, sleep_recorder):
        service = _service(mock_supabase, adapter, test_settings, sleep_recorder)

        summary = service.run_until_complete(batch_size=2, max_batches=5)

        assert summary.complete is True
        assert summary.batches_processed == 1
        assert summary.total == 0


class TestSingleton:

    def test_one_service_per_marketplace(self, mock_supabase, monkeypatch):
        import integrations
        import services.bulk_mapping_service as module
        import services.catalog_service as catalog_module
        monkeypatch.setattr(integrations, "_adapters", {})
        monkeypatch.setattr(module, "_bulk_mapping_services", {})
        monkeypatch.setattr(catalog_module, "get_supabase_client", lambda: mock_supabase)

        tcg = module.get_bulk_mapping_service(Marketplace.TCGPLAYER)

        assert module.get_bulk_mapping_service(Marketplace.TCGPLAYER) is tcg
        assert tcg.adapter is integrations.get_marketplace_adapter(Marketplace.TCGPLAYER)
        assert module.get_bulk_mapping_service(Marketplace.CARDTRADER) is not tcg
