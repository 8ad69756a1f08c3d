"""
PostgreSQL persistence layer for Catalog Service.
"""

import asyncio
from typing import List, Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import DependencyError, ServiceStartupError
from ..models import Asset, AssetMetrics

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)

ASSET_COLUMNS = "id, asset_name, asset_type, owner, sensitivity_level, created_at, updated_at"


class AssetStore:
    """PostgreSQL persistence for data assets."""

    dependency = "database"

    def __init__(
        self,
        host: str = "postgres",
        port: int = 5432,
        database: str = "governance_db",
        user: str = "governance_user",
        password: str = "secure_password",
        max_size: int = 20,
        connect_timeout: float = 2.0,
        command_timeout: float = 30.0,
        pool: Optional[asyncpg.Pool] = None,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.max_size = max_size
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.logger = get_logger("catalog.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = pool

    @classmethod
    def from_config(cls, config) -> "AssetStore":
        return cls(
            host=config.db_host,
            port=config.db_port,
            database=config.db_name,
            user=config.db_user,
            password=config.db_password,
            max_size=config.db_pool_max_size,
            connect_timeout=config.db_connect_timeout,
        )

    async def start(self):
        """Create the connection pool and ensure the schema exists."""
        try:
            if self.pool is None:
                self.pool = await asyncpg.create_pool(
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    user=self.user,
                    password=self.password,
                    min_size=1,
                    max_size=self.max_size,
                    max_inactive_connection_lifetime=30,
                    timeout=self.connect_timeout,
                    command_timeout=self.command_timeout
                )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started", host=self.host, database=self.database)

        except _STORE_ERRORS as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise ServiceStartupError(self.dependency, str(e)) from e

    async def stop(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    def _pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise DependencyError(self.dependency, "Database pool is not initialized")
        return self.pool

    async def _create_tables(self):
        """Create database tables."""
        async with self._pool().acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS data_assets (
                    id SERIAL PRIMARY KEY,
                    asset_name VARCHAR(255) NOT NULL,
                    asset_type VARCHAR(100) NOT NULL,
                    owner VARCHAR(100),
                    sensitivity_level VARCHAR(50),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    async def insert_asset(
        self,
        asset_name: str,
        asset_type: str,
        owner: Optional[str] = None,
        sensitivity_level: Optional[str] = None,
    ) -> Asset:
        """Insert an asset row; the database assigns id and timestamps."""
        try:
            async with self._pool().acquire() as conn:
                row = await conn.fetchrow(f"""
                    INSERT INTO data_assets (asset_name, asset_type, owner, sensitivity_level)
                    VALUES ($1, $2, $3, $4)
                    RETURNING {ASSET_COLUMNS}
                """, asset_name, asset_type, owner, sensitivity_level)
        except _STORE_ERRORS as e:
            raise DependencyError(self.dependency, "Failed to insert asset") from e

        return self._row_to_asset(row)

    async def fetch_all_assets(self) -> List[Asset]:
        """Load every asset, newest first."""
        try:
            async with self._pool().acquire() as conn:
                rows = await conn.fetch(f"""
                    SELECT {ASSET_COLUMNS} FROM data_assets
                    ORDER BY created_at DESC, id DESC
                """)
        except _STORE_ERRORS as e:
            raise DependencyError(self.dependency, "Failed to load assets") from e

        return [self._row_to_asset(row) for row in rows]

    async def fetch_asset(self, asset_id: int) -> Optional[Asset]:
        """Load a single asset, or None when no row has this id."""
        try:
            async with self._pool().acquire() as conn:
                row = await conn.fetchrow(f"""
                    SELECT {ASSET_COLUMNS} FROM data_assets WHERE id = $1
                """, asset_id)
        except _STORE_ERRORS as e:
            raise DependencyError(self.dependency, "Failed to load asset", {"asset_id": asset_id}) from e

        if row is None:
            return None
        return self._row_to_asset(row)

    async def fetch_metrics(self) -> AssetMetrics:
        """Aggregate counts over all assets."""
        try:
            async with self._pool().acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT
                        COUNT(*) AS total_assets,
                        COUNT(DISTINCT asset_type) AS asset_types,
                        COUNT(*) FILTER (WHERE sensitivity_level = 'HIGH') AS high_sensitivity_assets
                    FROM data_assets
                """)
        except _STORE_ERRORS as e:
            raise DependencyError(self.dependency, "Failed to compute metrics") from e

        return AssetMetrics(**dict(row))

    async def ping(self) -> bool:
        """Check database health."""
        try:
            async with self._pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except (DependencyError, *_STORE_ERRORS):
            return False

    def _row_to_asset(self, row) -> Asset:
        """Convert database row to Asset."""
        return Asset(**dict(row))
