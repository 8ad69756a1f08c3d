"""
Cache package for Catalog Service.

Provides a Redis-backed JSON cache for asset snapshots and the key
functions used by every read and invalidation site.
"""
