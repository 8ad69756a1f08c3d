"""
Catalog Service package for the Data Governance Tool.

This package owns the data-asset catalog: a small CRUD surface over a
PostgreSQL table with a Redis read-through cache in front of reads.

- app.main: API surface for assets, metrics and health.
- app.repository: Read-through cache policy over store and cache.
- app.cache: Redis adapter and cache key construction.
- app.persistence: PostgreSQL adapter for asset rows.

Guidelines:
- The service is stateless; rely on external cache/DB.
- Cached reads are snapshots with a fixed TTL; writes invalidate the
  aggregate list entry only.
"""
