"""
Asset data models for Catalog Service.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")

# Range of the SERIAL (int4) id column
ASSET_ID_MIN = -(2 ** 31)
ASSET_ID_MAX = 2 ** 31 - 1


class DataSource(str, Enum):
    """Where a read was served from."""
    CACHE = "cache"
    DATABASE = "database"


class Asset(BaseModel):
    """A cataloged data resource, as persisted in ``data_assets``."""
    id: int
    asset_name: str
    asset_type: str
    owner: Optional[str] = None
    sensitivity_level: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssetMetrics(BaseModel):
    """Aggregate counts computed against the store."""
    total_assets: int = 0
    asset_types: int = 0
    high_sensitivity_assets: int = 0


@dataclass(frozen=True)
class Served(Generic[T]):
    """A read result tagged with its source."""
    source: DataSource
    data: T

    @property
    def from_cache(self) -> bool:
        return self.source is DataSource.CACHE


class AssetCreateRequest(BaseModel):
    """Request model for asset creation.

    Required fields are optional here so that missing values are reported
    by the repository as a validation failure instead of a schema error.
    """
    asset_name: Optional[str] = Field(None, description="Asset name")
    asset_type: Optional[str] = Field(None, description="Free-form classification, e.g. Database")
    owner: Optional[str] = Field(None, description="Owning team or person")
    sensitivity_level: Optional[str] = Field(None, description="HIGH, MEDIUM or LOW by convention")


class AssetResponse(BaseModel):
    """Response model for a single asset read."""
    source: DataSource
    data: Asset


class AssetListResponse(BaseModel):
    """Response model for the asset list."""
    source: DataSource
    data: List[Asset]


class AssetCreatedResponse(BaseModel):
    """Response model for asset creation."""
    message: str = "Asset created successfully"
    data: Asset


class MetricsResponse(BaseModel):
    """Response model for compliance metrics."""
    metrics: AssetMetrics
    timestamp: datetime


def asset_to_cache(asset: Asset) -> dict:
    """JSON-safe representation stored in the cache."""
    return asset.model_dump(mode="json")


def asset_from_cache(payload: Any) -> Asset:
    return Asset.model_validate(payload)
