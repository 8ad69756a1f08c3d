"""
Persistence package for Catalog Service (PostgreSQL via asyncpg).
"""
