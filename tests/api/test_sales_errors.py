"""Error mapping tests for the sales endpoints with mocked stores."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_sales_store
from src.api.main import app
from src.core.exceptions import DatabaseError
from src.core.interfaces import ISalesStore


@pytest.fixture
def failing_store():
    store = AsyncMock(spec=ISalesStore)
    error = DatabaseError("fetch sales records", "database is locked")
    store.list_records.side_effect = error
    store.count_records.side_effect = error
    store.get_record.side_effect = DatabaseError("fetch sales record", "database is locked")
    store.summarize.side_effect = DatabaseError("fetch sales analytics", "disk I/O error")
    store.top_products.side_effect = RuntimeError("unexpected state")
    return store


@pytest.fixture
async def failing_client(failing_store):
    app.dependency_overrides[get_sales_store] = lambda: failing_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_sales_store, None)


@pytest.fixture
async def unwired_client():
    """Client for an app whose lifespan never opened a pool."""
    app.state.pool = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestStorageFailures:
    async def test_list_failure_is_500_with_detail(self, failing_client: AsyncClient, sales_prefix: str):
        response = await failing_client.get(f"{sales_prefix}/")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Failed to fetch sales records",
            "error": "database is locked",
        }

    async def test_get_failure_is_500_not_404(self, failing_client: AsyncClient, sales_prefix: str):
        response = await failing_client.get(f"{sales_prefix}/536365/85123A")

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to fetch sales record"

    async def test_summary_failure(self, failing_client: AsyncClient, sales_prefix: str):
        response = await failing_client.get(f"{sales_prefix}/analytics/summary")

        assert response.status_code == 500
        assert response.json()["error"] == "disk I/O error"

    async def test_unexpected_exception(self, failing_client: AsyncClient, sales_prefix: str):
        response = await failing_client.get(f"{sales_prefix}/analytics/top-products")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Internal server error",
            "error": "unexpected state",
        }

    async def test_validation_runs_before_storage(
        self, failing_client: AsyncClient, failing_store, sales_prefix: str
    ):
        response = await failing_client.post(f"{sales_prefix}/", json={"invoiceNo": "536365"})

        assert response.status_code == 400
        failing_store.create_record.assert_not_called()

    async def test_empty_update_skips_storage(
        self, failing_client: AsyncClient, failing_store, sales_prefix: str
    ):
        response = await failing_client.put(f"{sales_prefix}/536365/85123A", json={})

        assert response.status_code == 400
        failing_store.update_record.assert_not_called()


class TestMissingPool:
    async def test_requests_fail_cleanly(self, unwired_client: AsyncClient, sales_prefix: str):
        response = await unwired_client.get(f"{sales_prefix}/")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Failed to connect to database"


class TestRouting:
    async def test_unknown_route_uses_envelope(self, unwired_client: AsyncClient):
        response = await unwired_client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["success"] is False

    async def test_request_id_header(self, unwired_client: AsyncClient):
        response = await unwired_client.get("/health")

        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        assert response.headers["X-Response-Time"].endswith("ms")

    async def test_caller_request_id_is_echoed(self, unwired_client: AsyncClient):
        response = await unwired_client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
