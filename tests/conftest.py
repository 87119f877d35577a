"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_pool
from src.api.main import app
from src.config import get_settings
from src.core.entities import SalesRecord
from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteSalesStore
from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "sales_test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with all migrations applied."""
    await initialize_database(temp_db_path, create_backup_before=False)
    return temp_db_path


@pytest.fixture
async def pool(initialized_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the migrated temporary database."""
    pool = ConnectionPool(initialized_db, pool_size=2)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def sales_store(pool: ConnectionPool) -> SQLiteSalesStore:
    return SQLiteSalesStore(pool)


@pytest.fixture
async def api_client(pool: ConnectionPool) -> AsyncGenerator[AsyncClient, None]:
    """Async client whose requests hit the temporary database."""
    app.dependency_overrides[get_pool] = lambda: pool
    app.state.pool = pool
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_pool, None)
    app.state.pool = None


@pytest.fixture
def sales_prefix() -> str:
    """Mount point of the sales router."""
    return get_settings().api.sales_prefix


@pytest.fixture
def sample_payload() -> dict:
    """Create body for a typical invoice line."""
    return {
        "invoiceNo": "536365",
        "stockCode": "85123A",
        "description": "WHITE HANGING HEART T-LIGHT HOLDER",
        "quantity": 6,
        "invoiceDate": "2010-12-01T08:26:00Z",
        "unitPrice": 2.55,
        "customerId": 17850,
        "country": "United Kingdom",
    }


@pytest.fixture
def sample_record() -> SalesRecord:
    return SalesRecord(
        invoice_no="536365",
        stock_code="85123A",
        description="WHITE HANGING HEART T-LIGHT HOLDER",
        quantity=6,
        invoice_date=datetime(2010, 12, 1, 8, 26),
        unit_price=Decimal("2.55"),
        customer_id=17850,
        country="United Kingdom",
    )


def _make_record(
    invoice_no: str,
    stock_code: str,
    *,
    quantity: int = 1,
    unit_price: str = "1.00",
    invoice_date: datetime | None = None,
    country: str = "United Kingdom",
    customer_id: int | None = None,
    description: str | None = None,
) -> SalesRecord:
    """Build a record with sensible defaults for the fields a test ignores."""
    return SalesRecord(
        invoice_no=invoice_no,
        stock_code=stock_code,
        description=description,
        quantity=quantity,
        invoice_date=invoice_date or datetime(2010, 12, 1, 8, 26),
        unit_price=Decimal(unit_price),
        customer_id=customer_id,
        country=country,
    )


@pytest.fixture
async def seeded_store(sales_store: SQLiteSalesStore) -> SQLiteSalesStore:
    """
    Store holding a small mixed dataset.

    Five lines over three invoices, two countries and December 2010 to
    January 2011.
    """
    records = [
        _make_record(
            "536365", "85123A", quantity=6, unit_price="2.55",
            invoice_date=datetime(2010, 12, 1, 8, 26), customer_id=17850,
            description="WHITE HANGING HEART T-LIGHT HOLDER",
        ),
        _make_record(
            "536365", "71053", quantity=6, unit_price="3.39",
            invoice_date=datetime(2010, 12, 1, 8, 26), customer_id=17850,
            description="WHITE METAL LANTERN",
        ),
        _make_record(
            "536366", "22633", quantity=12, unit_price="1.85",
            invoice_date=datetime(2010, 12, 1, 8, 28), customer_id=17850,
            description="HAND WARMER UNION JACK",
        ),
        _make_record(
            "539993", "22633", quantity=24, unit_price="1.65",
            invoice_date=datetime(2011, 1, 4, 10, 0), country="France",
            customer_id=12583, description="HAND WARMER UNION JACK",
        ),
        _make_record(
            "539993", "84879", quantity=8, unit_price="1.69",
            invoice_date=datetime(2011, 1, 4, 10, 0), country="France",
            description="ASSORTED COLOUR BIRD ORNAMENT",
        ),
    ]
    for record in records:
        await sales_store.create_record(record)
    return sales_store


@pytest.fixture
def record_factory():
    """Factory for records; keyword arguments override the defaults."""
    return _make_record
