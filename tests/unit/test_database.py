"""
Unit tests for database helpers.
"""

from config.database import check_connection


class TestCheckConnection:

    def test_healthy_counts_tables(self, mock_supabase, sample_catalog_rows):
        mock_supabase.set_table_data("products", sample_catalog_rows)

        status = check_connection(mock_supabase)

        assert status == {
            "status": "healthy",
            "products_count": 4,
            "staged_candidates_count": 0,
        }

    def test_unhealthy_on_error(self, mock_supabase):
        mock_supabase.fail_on("products", "select", "connection reset")

        status = check_connection(mock_supabase)

        assert status["status"] == "unhealthy"
        assert status["error"] == "connection reset"
