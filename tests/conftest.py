"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import copy
import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from config.settings import Settings
from exceptions import ScraperUnavailableError
from models.matching import MarketplaceHit, ScrapedItem

# ===================
# IN-MEMORY SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


class MockSupabaseQuery:
    """
    Chainable query over an in-memory table.

    Filters are applied for real, so services see the same rows a
    PostgREST query would return.
    """

    def __init__(self, client: "MockSupabaseClient", table: str, operation: str, payload=None):
        self._client = client
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._negate = False
        self._order: Optional[tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._count_mode = None

    # --- builders ---

    def select(self, *args, count=None, **kwargs):
        self._count_mode = count
        return self

    def _add(self, predicate):
        if self._negate:
            self._filters.append(lambda row, p=predicate: not p(row))
            self._negate = False
        else:
            self._filters.append(predicate)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def eq(self, column, value):
        return self._add(lambda row, c=column, v=value: row.get(c) == v)

    def neq(self, column, value):
        return self._add(lambda row, c=column, v=value: row.get(c) != v)

    def is_(self, column, value):
        if value in ("null", None):
            return self._add(lambda row, c=column: row.get(c) is None)
        return self._add(lambda row, c=column, v=value: row.get(c) is v)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row, c=column, vs=values: row.get(c) in vs)

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    # --- execution ---

    def _matching(self) -> list[dict]:
        rows = self._client._rows(self._table)
        return [row for row in rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockSupabaseResponse:
        self._client._maybe_fail(self._table, self._operation)
        self._client.calls.append((self._table, self._operation))

        if self._operation == "insert":
            return self._execute_insert()

        matched = self._matching()

        if self._operation == "update":
            for row in matched:
                row.update(copy.deepcopy(self._payload))
            return MockSupabaseResponse(copy.deepcopy(matched), len(matched))

        if self._operation == "delete":
            rows = self._client._rows(self._table)
            rows[:] = [row for row in rows if row not in matched]
            return MockSupabaseResponse(copy.deepcopy(matched), len(matched))

        total = len(matched)
        if self._order:
            column, desc = self._order
            matched = sorted(
                matched,
                key=lambda row: (row.get(column) is None, row.get(column) or ""),
                reverse=desc
            )
        if self._limit is not None:
            matched = matched[:self._limit]

        count = total if self._count_mode else None
        return MockSupabaseResponse(copy.deepcopy(matched), count)

    def _execute_insert(self) -> MockSupabaseResponse:
        items = self._payload if isinstance(self._payload, list) else [self._payload]
        inserted = []
        for item in items:
            row = copy.deepcopy(item)
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", self._client._next_timestamp())
            self._client._rows(self._table).append(row)
            inserted.append(copy.deepcopy(row))
        return MockSupabaseResponse(inserted, len(inserted))


class MockSupabaseTable:
    """Entry point for queries on one table."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self._client = client
        self._name = name

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._client, self._name, "select").select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self._client, self._name, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self._client, self._name, "update", data)

    def delete(self):
        return MockSupabaseQuery(self._client, self._name, "delete")


class MockSupabaseClient:
    """In-memory stand-in for the Supabase client."""

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._failures: dict[tuple[str, str], str] = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self.calls: list[tuple[str, str]] = []

    def set_table_data(self, table_name: str, data: list):
        """Replace a table's rows."""
        self._tables[table_name] = copy.deepcopy(data)

    def rows(self, table_name: str) -> list[dict]:
        """Snapshot of a table's rows."""
        return copy.deepcopy(self._rows(table_name))

    def fail_on(self, table_name: str, operation: str, message: str = "simulated failure"):
        """Make every `operation` on `table_name` raise until cleared."""
        self._failures[(table_name, operation)] = message

    def clear_failures(self):
        self._failures.clear()

    def table(self, name: str) -> MockSupabaseTable:
        return MockSupabaseTable(self, name)

    def _rows(self, table_name: str) -> list[dict]:
        return self._tables.setdefault(table_name, [])

    def _maybe_fail(self, table_name: str, operation: str):
        message = self._failures.get((table_name, operation))
        if message:
            raise Exception(message)

    def _next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()


# ===================
# FAKE EXTERNAL SOURCES
# ===================

class FakeMarketplaceAdapter:
    """
    Marketplace adapter answering from a dict of name -> hits.

    A value that is an Exception is raised instead.
    """

    name = "fake"

    def __init__(self, responses: Optional[dict] = None):
        self.responses = responses or {}
        self.queries: list[tuple[str, Optional[str]]] = []

    def search(self, query: str, hint: Optional[str] = None) -> list[MarketplaceHit]:
        self.queries.append((query, hint))
        response = self.responses.get(query, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


class FakeScraper:
    """Scraper returning fixed items, or unavailable when items is None."""

    name = "fake-scraper"

    def __init__(self, items: Optional[list[ScrapedItem]] = None):
        self.items = items

    def fetch(self) -> list[ScrapedItem]:
        if self.items is None:
            raise ScraperUnavailableError(self.name, "connection refused")
        return list(self.items)


class SleepRecorder:
    """Replacement for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create an in-memory Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Foundations Bundle", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any .env file; delays are recorded, never slept."""
    return Settings(
        _env_file=None,
        mapping_delay_seconds=1.5,
        batch_delay_seconds=2.0,
        cardtrader_jwt="test-jwt",
    )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def sample_catalog_rows() -> list:
    """Sealed products as stored in `products`."""
    from tests.factories import CatalogEntryFactory

    return [
        CatalogEntryFactory.create(
            id="prod-dmu",
            name="Dominaria United Draft Booster Pack",
            set_code="DMU",
            type="Draft Booster Pack",
        ),
        CatalogEntryFactory.create(
            id="prod-dsk",
            name="Duskmourn: House of Horror Draft Booster Box",
            set_code="DSK",
            type="Draft Booster Box",
        ),
        CatalogEntryFactory.create(
            id="prod-fdn",
            name="Foundations Bundle",
            set_code="FDN",
            type="Bundle",
        ),
        CatalogEntryFactory.create(
            id="prod-blb",
            name="Bloomburrow Commander Deck",
            set_code="BLB",
            type="Commander Deck",
            upc="195166217928",
            upc_is_verified=True,
            tcgplayer_product_id=123456,
            tcg_is_verified=True,
        ),
    ]


@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
