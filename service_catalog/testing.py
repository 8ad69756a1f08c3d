"""
In-memory fakes and factories for testing the catalog service.
"""

import json
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from shared.errors import DependencyError
from service_catalog.app.models import Asset, AssetMetrics


class FakeClock:
    """Manually advanced clock shared by the fakes."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemorySnapshotCache:
    """Dict-backed stand-in for AssetCache with expiring keys.

    Values round-trip through JSON like they do in Redis.
    """

    dependency = "cache"

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.entries: Dict[str, Tuple[str, datetime]] = {}
        self.available = True
        self.started = False
        self.calls: List[Tuple[str, str]] = []

    def _check(self, operation: str):
        if not self.available:
            raise DependencyError(self.dependency, f"Cache {operation} failed")

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def get_json(self, key: str) -> Optional[Any]:
        self._check("read")
        self.calls.append(("get", key))
        entry = self.entries.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if self.clock() >= expires_at:
            del self.entries[key]
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._check("write")
        self.calls.append(("set", key))
        self.entries[key] = (json.dumps(value), self.clock() + timedelta(seconds=ttl_seconds))

    async def delete(self, key: str) -> bool:
        self._check("delete")
        self.calls.append(("delete", key))
        return self.entries.pop(key, None) is not None

    async def ping(self) -> bool:
        return self.available


class InMemoryAssetStore:
    """List-backed stand-in for AssetStore with SERIAL-like ids."""

    dependency = "database"

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.rows: List[Asset] = []
        self.available = True
        self.started = False
        self.insert_calls = 0
        self._next_id = 1

    def _check(self, operation: str):
        if not self.available:
            raise DependencyError(self.dependency, f"Failed to {operation}")

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def insert_asset(
        self,
        asset_name: str,
        asset_type: str,
        owner: Optional[str] = None,
        sensitivity_level: Optional[str] = None,
    ) -> Asset:
        self.insert_calls += 1
        self._check("insert asset")
        # Distinct creation times keep newest-first ordering deterministic
        self.clock.advance(1)
        asset = Asset(
            id=self._next_id,
            asset_name=asset_name,
            asset_type=asset_type,
            owner=owner,
            sensitivity_level=sensitivity_level,
            created_at=self.clock(),
            updated_at=self.clock(),
        )
        self._next_id += 1
        self.rows.append(asset)
        return asset

    async def fetch_all_assets(self) -> List[Asset]:
        self._check("load assets")
        return sorted(self.rows, key=lambda a: (a.created_at, a.id), reverse=True)

    async def fetch_asset(self, asset_id: int) -> Optional[Asset]:
        self._check("load asset")
        for asset in self.rows:
            if asset.id == asset_id:
                return asset
        return None

    async def fetch_metrics(self) -> AssetMetrics:
        self._check("compute metrics")
        return AssetMetrics(
            total_assets=len(self.rows),
            asset_types=len({a.asset_type for a in self.rows}),
            high_sensitivity_assets=sum(1 for a in self.rows if a.sensitivity_level == "HIGH"),
        )

    async def ping(self) -> bool:
        return self.available


def create_asset_payload(
    asset_name: str = "Customer Database",
    asset_type: str = "Database",
    owner: Optional[str] = "Data Team",
    sensitivity_level: Optional[str] = "HIGH",
) -> Dict[str, Any]:
    """Create an asset creation request body."""
    return {
        "asset_name": asset_name,
        "asset_type": asset_type,
        "owner": owner,
        "sensitivity_level": sensitivity_level,
    }


def create_asset_row(asset_id: int = 1, **overrides) -> Dict[str, Any]:
    """Create a database row as asyncpg would return it."""
    row = {
        "id": asset_id,
        "asset_name": "Customer Database",
        "asset_type": "Database",
        "owner": "Data Team",
        "sensitivity_level": "HIGH",
        "created_at": datetime(2024, 1, 1, 12, 0, 0),
        "updated_at": datetime(2024, 1, 1, 12, 0, 0),
    }
    row.update(overrides)
    return row
