"""
Asset repository: read-through caching over the asset store.

Reads consult the cache first and populate it on a miss. Creating an asset
deletes the aggregate list snapshot so the next list read goes to the
database. Per-id snapshots are never invalidated: ids are assigned
monotonically and no update or delete path exists, so a per-id entry can
only describe a row that has not changed since it was cached.
"""

from typing import Any, List, Optional, Protocol, TYPE_CHECKING

from pydantic import ValidationError as SchemaError

from shared.logging import get_logger
from shared.errors import DependencyError, NotFoundError, ValidationError

from .cache.keys import DEFAULT_ASSET_TTL, by_id_key, list_key
from .models import (
    ASSET_ID_MAX, ASSET_ID_MIN, Asset, AssetMetrics, DataSource, Served,
    asset_from_cache, asset_to_cache
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class AssetStoreProtocol(Protocol):
    async def insert_asset(self, asset_name: str, asset_type: str,
                           owner: Optional[str] = None,
                           sensitivity_level: Optional[str] = None) -> Asset: ...

    async def fetch_all_assets(self) -> List[Asset]: ...

    async def fetch_asset(self, asset_id: int) -> Optional[Asset]: ...

    async def fetch_metrics(self) -> AssetMetrics: ...

    async def ping(self) -> bool: ...


class SnapshotCacheProtocol(Protocol):
    async def get_json(self, key: str) -> Optional[Any]: ...

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def ping(self) -> bool: ...


class AssetNotFoundError(NotFoundError):
    """No asset exists with the requested id."""

    def __init__(self, asset_id: int):
        self.asset_id = asset_id
        super().__init__("Asset not found", {"asset_id": asset_id})


def _require(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _malformed(key: str) -> DependencyError:
    return DependencyError("cache", "Cache entry is malformed", {"key": key})


class AssetRepository:
    """Single point of access for reading and writing assets."""

    def __init__(
        self,
        store: AssetStoreProtocol,
        cache: SnapshotCacheProtocol,
        ttl_seconds: int = DEFAULT_ASSET_TTL,
        collector: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.collector = collector
        self.logger = get_logger("catalog.repository")

    def _record_lookup(self, cache_type: str, hit: bool):
        if self.collector is not None:
            self.collector.record_cache_lookup(cache_type, hit)

    async def list_all(self) -> Served[List[Asset]]:
        """Return every asset, newest first."""
        key = list_key()
        cached = await self.cache.get_json(key)
        if cached is not None:
            if not isinstance(cached, list):
                raise _malformed(key)
            try:
                assets = [asset_from_cache(item) for item in cached]
            except SchemaError as e:
                raise _malformed(key) from e
            self.logger.debug("Cache hit for assets", cache_key=key)
            self._record_lookup("list", hit=True)
            return Served(DataSource.CACHE, assets)

        self.logger.debug("Cache miss for assets", cache_key=key)
        self._record_lookup("list", hit=False)
        assets = await self.store.fetch_all_assets()
        await self.cache.set_json(key, [asset_to_cache(a) for a in assets], self.ttl_seconds)
        return Served(DataSource.DATABASE, assets)

    async def get_by_id(self, asset_id: int) -> Served[Asset]:
        """Return one asset or raise AssetNotFoundError."""
        if not ASSET_ID_MIN <= asset_id <= ASSET_ID_MAX:
            # Outside the id column range, so it can never have been created
            raise AssetNotFoundError(asset_id)

        key = by_id_key(asset_id)
        cached = await self.cache.get_json(key)
        if cached is not None:
            try:
                asset = asset_from_cache(cached)
            except SchemaError as e:
                raise _malformed(key) from e
            self.logger.debug("Cache hit for asset", cache_key=key)
            self._record_lookup("item", hit=True)
            return Served(DataSource.CACHE, asset)

        self.logger.debug("Cache miss for asset", cache_key=key)
        self._record_lookup("item", hit=False)
        asset = await self.store.fetch_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)

        await self.cache.set_json(key, asset_to_cache(asset), self.ttl_seconds)
        return Served(DataSource.DATABASE, asset)

    async def create(
        self,
        asset_name: Optional[str],
        asset_type: Optional[str],
        owner: Optional[str] = None,
        sensitivity_level: Optional[str] = None,
    ) -> Asset:
        """Persist a new asset and invalidate the list snapshot."""
        if not (_require(asset_name) and _require(asset_type)):
            raise ValidationError(
                "asset_name and asset_type are required",
                {"fields": [
                    name for name, value in (("asset_name", asset_name), ("asset_type", asset_type))
                    if not _require(value)
                ]}
            )

        asset = await self.store.insert_asset(asset_name, asset_type, owner, sensitivity_level)

        await self.cache.delete(list_key())
        self.logger.info("Asset created", asset_id=asset.id, asset_type=asset.asset_type)
        if self.collector is not None:
            self.collector.increment_counter("assets_created_total")

        return asset

    async def metrics(self) -> AssetMetrics:
        """Counts computed against the store; never cached."""
        return await self.store.fetch_metrics()

    async def health(self) -> dict:
        """Probe each dependency independently."""
        database = await self.store.ping()
        cache = await self.cache.ping()
        return {
            "database": "connected" if database else "disconnected",
            "cache": "connected" if cache else "disconnected",
        }
