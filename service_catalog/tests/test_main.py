"""
Unit tests for Catalog main service.
"""

from datetime import timedelta

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from shared.config import get_config
from shared.errors import DependencyError, ServiceStartupError
from service_catalog.app.main import CatalogService, create_app, main
from service_catalog.testing import (
    FakeClock, InMemoryAssetStore, InMemorySnapshotCache, create_asset_payload
)


class TestCatalogService:
    """Test cases for CatalogService."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        return InMemoryAssetStore(clock)

    @pytest.fixture
    def cache(self, clock):
        return InMemorySnapshotCache(clock)

    @pytest.fixture
    def catalog_service(self, store, cache):
        """Create CatalogService with in-memory dependencies."""
        return CatalogService(get_config("catalog"), store=store, cache=cache)

    @pytest.fixture
    def client(self, catalog_service):
        """Create test client."""
        return TestClient(catalog_service.app)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Data Governance Tool"
        assert data["status"] == "running"
        assert data["endpoints"]["assets"] == "/api/assets"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"database": "connected", "cache": "connected"}
        assert "timestamp" in data

    @pytest.mark.parametrize("failing", ["store", "cache"])
    def test_health_unhealthy_dependency(self, client, store, cache, failing):
        dependency = store if failing == "store" else cache
        dependency.available = False

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        expected = "database" if failing == "store" else "cache"
        assert data["services"][expected] == "disconnected"

    def test_create_asset(self, client):
        response = client.post("/api/assets", json=create_asset_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Asset created successfully"
        assert data["data"]["id"] == 1
        assert data["data"]["asset_name"] == "Customer Database"
        assert data["data"]["sensitivity_level"] == "HIGH"
        assert data["data"]["created_at"] is not None

    @pytest.mark.parametrize("payload", [
        {"asset_type": "Database"},
        {"asset_name": "Customer Database"},
        {"asset_name": "", "asset_type": "Database"},
        {},
    ])
    def test_create_asset_missing_fields(self, client, store, payload):
        response = client.post("/api/assets", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["message"] == "asset_name and asset_type are required"
        assert store.insert_calls == 0

    def test_create_asset_malformed_body(self, client, store):
        response = client.post(
            "/api/assets",
            content="not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert store.insert_calls == 0

    def test_create_asset_store_failure(self, client, store):
        store.available = False

        response = client.post("/api/assets", json=create_asset_payload())

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "DEPENDENCY_ERROR"
        assert "Traceback" not in response.text

    def test_list_assets_source_transitions(self, client):
        client.post("/api/assets", json=create_asset_payload())

        first = client.get("/api/assets")
        second = client.get("/api/assets")

        assert first.status_code == 200
        assert first.json()["source"] == "database"
        assert second.json()["source"] == "cache"
        assert second.json()["data"] == first.json()["data"]
        assert len(first.json()["data"]) == 1

    def test_list_assets_cache_failure(self, client, cache):
        cache.available = False

        response = client.get("/api/assets")

        assert response.status_code == 500
        assert response.json()["code"] == "DEPENDENCY_ERROR"

    def test_get_asset(self, client):
        client.post("/api/assets", json=create_asset_payload())

        first = client.get("/api/assets/1")
        second = client.get("/api/assets/1")

        assert first.status_code == 200
        assert first.json()["source"] == "database"
        assert first.json()["data"]["id"] == 1
        assert second.json()["source"] == "cache"
        assert second.json()["data"] == first.json()["data"]

    def test_get_asset_not_found(self, client):
        response = client.get("/api/assets/999")

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["message"] == "Asset not found"

    def test_get_asset_non_integer_id(self, client):
        response = client.get("/api/assets/abc")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_metrics_endpoint(self, client):
        client.post("/api/assets", json=create_asset_payload())
        client.post("/api/assets", json=create_asset_payload(
            asset_name="Click Stream", asset_type="Stream", sensitivity_level="MEDIUM"
        ))

        response = client.get("/api/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["metrics"] == {
            "total_assets": 2,
            "asset_types": 2,
            "high_sensitivity_assets": 1,
        }
        assert "timestamp" in data

    def test_metrics_endpoint_store_failure(self, client, store):
        store.available = False

        response = client.get("/api/metrics")

        assert response.status_code == 500

    def test_prometheus_endpoint(self, client):
        client.get("/api/assets")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "cache_misses_total" in response.text

    def test_response_headers(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

        generated = client.get("/")
        assert generated.headers["X-Request-ID"]

    def test_error_payload_carries_request_id(self, client):
        response = client.get("/api/assets/404", headers={"X-Request-ID": "req-404"})

        assert response.status_code == 404
        assert response.json()["request_id"] == "req-404"

    def test_list_assets_malformed_cache_entry(self, client, cache, clock):
        cache.entries["assets:all"] = ('{"x": 1}', clock.now + timedelta(seconds=300))

        response = client.get("/api/assets")

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "DEPENDENCY_ERROR"
        assert data["details"] == {"key": "assets:all"}

    def test_get_asset_out_of_range_id(self, client, store):
        store.fetch_asset = AsyncMock(side_effect=DependencyError("database", "Failed to load asset"))

        response = client.get("/api/assets/99999999999")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        store.fetch_asset.assert_not_awaited()

    def test_unhandled_error_keeps_request_context(self, client, store):
        store.fetch_metrics = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/api/metrics", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        data = response.json()
        assert data["code"] == "INTERNAL_ERROR"
        assert data["request_id"] == "req-500"
        assert "boom" not in response.text
        assert response.headers["X-Request-ID"] == "req-500"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_lifespan_starts_and_stops_dependencies(self, catalog_service, store, cache):
        with TestClient(catalog_service.app) as client:
            assert store.started is True
            assert cache.started is True
            assert client.get("/health").status_code == 200

        assert store.started is False
        assert cache.started is False

    @pytest.mark.asyncio
    async def test_initialize_success(self, catalog_service):
        result = await catalog_service.initialize()

        assert result.ok is True
        assert result.error is None

    @pytest.mark.asyncio
    async def test_initialize_failure_is_returned(self, catalog_service, cache):
        error = ServiceStartupError("cache", "connection refused")
        cache.start = AsyncMock(side_effect=error)

        result = await catalog_service.initialize()

        assert result.ok is False
        assert result.error is error

    def test_startup_failure_aborts_lifespan(self, catalog_service, store):
        store.start = AsyncMock(side_effect=ServiceStartupError("database", "refused"))

        with pytest.raises(ServiceStartupError):
            with TestClient(catalog_service.app):
                pass

    def test_create_app(self):
        app = create_app(get_config("catalog"))
        routes = {route.path for route in app.routes}
        assert {"/", "/health", "/api/assets", "/api/assets/{asset_id}", "/api/metrics"} <= routes

    def test_config_defaults(self, monkeypatch):
        for name in ("DB_HOST", "REDIS_HOST", "PORT", "CACHE_TTL_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        config = get_config("catalog")

        assert config.db_host == "postgres"
        assert config.redis_host == "redis"
        assert config.port == 3000
        assert config.cache_ttl_seconds == 300

    def test_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("PORT", "8080")

        config = get_config("catalog")

        assert config.db_host == "db.internal"
        assert config.redis_port == 6380
        assert config.port == 8080

    @pytest.mark.parametrize("started,status", [(True, 0), (False, 1)])
    def test_main_exit_status(self, started, status):
        with patch("shared.base_service.uvicorn.Server") as server_cls:
            server_cls.return_value.started = started

            assert main() == status

        server_cls.return_value.run.assert_called_once_with()
