"""
Catalog service for the Data Governance Tool.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import Body

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import GovernanceError

from .cache.redis_cache import AssetCache
from .models import (
    AssetCreateRequest, AssetCreatedResponse, AssetListResponse, AssetResponse,
    MetricsResponse
)
from .persistence.postgres import AssetStore
from .repository import AssetRepository


@dataclass
class InitResult:
    """Outcome of bringing up the service dependencies."""
    ok: bool
    error: Optional[GovernanceError] = None


class CatalogService(BaseService):
    """Catalog service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[AssetStore] = None,
        cache: Optional[AssetCache] = None,
    ):
        super().__init__("catalog", config or get_config("catalog"))

        self.store = store or AssetStore.from_config(self.config)
        self.cache = cache or AssetCache.from_config(self.config)
        self.repository = AssetRepository(
            self.store,
            self.cache,
            ttl_seconds=self.config.cache_ttl_seconds,
            collector=self.metrics,
        )

        self._setup_catalog_routes()

    def _setup_catalog_routes(self):
        """Set up catalog-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "Data Governance Tool",
                "version": "1.0.0",
                "status": "running",
                "endpoints": {
                    "health": "/health",
                    "assets": "/api/assets",
                    "metrics": "/api/metrics"
                }
            }

        @self.app.get("/api/assets", response_model=AssetListResponse)
        async def list_assets():
            """List all assets, newest first."""
            served = await self.repository.list_all()
            return AssetListResponse(source=served.source, data=served.data)

        @self.app.post("/api/assets", status_code=201, response_model=AssetCreatedResponse)
        async def create_asset(request: AssetCreateRequest = Body(...)):
            """Create a new asset."""
            asset = await self.repository.create(
                request.asset_name,
                request.asset_type,
                owner=request.owner,
                sensitivity_level=request.sensitivity_level
            )
            return AssetCreatedResponse(data=asset)

        @self.app.get("/api/assets/{asset_id}", response_model=AssetResponse)
        async def get_asset(asset_id: int):
            """Get a single asset by id."""
            served = await self.repository.get_by_id(asset_id)
            return AssetResponse(source=served.source, data=served.data)

        @self.app.get("/api/metrics", response_model=MetricsResponse)
        async def get_metrics():
            """Compliance metrics computed from the database."""
            metrics = await self.repository.metrics()
            return MetricsResponse(metrics=metrics, timestamp=datetime.now(timezone.utc))

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check catalog service dependencies."""
        return await self.repository.health()

    async def initialize(self) -> InitResult:
        """Connect to the database (creating the schema) and the cache."""
        try:
            await self.store.start()
            await self.cache.start()
        except GovernanceError as e:
            self.logger.error("Initialization error", code=e.code, message=e.message)
            return InitResult(ok=False, error=e)

        self.logger.info("Database tables initialized successfully")
        return InitResult(ok=True)

    async def start(self):
        """Start catalog service components."""
        result = await self.initialize()
        if not result.ok:
            await self.stop()
            raise result.error

        self.logger.info("Catalog service started", port=self.config.port)

    async def stop(self):
        """Stop catalog service components."""
        await self.cache.stop()
        await self.store.stop()

        self.logger.info("Catalog service stopped")


def create_app(config: Optional[ServiceConfig] = None):
    """Create catalog service application."""
    service = CatalogService(config)
    return service.app


def main() -> int:
    """Run the catalog service under uvicorn. Returns 1 if startup failed."""
    return CatalogService().run()


if __name__ == "__main__":
    raise SystemExit(main())
