"""
Cache key construction for asset snapshots.

Every read and invalidation site goes through these functions so the key
layout lives in one place.
"""

ASSET_LIST_KEY = "assets:all"
ASSET_KEY_PREFIX = "asset:"

DEFAULT_ASSET_TTL = 300  # 5 minutes


def list_key() -> str:
    """Key for the full, newest-first asset list snapshot."""
    return ASSET_LIST_KEY


def by_id_key(asset_id: int) -> str:
    """Key for a single asset snapshot."""
    if isinstance(asset_id, bool) or not isinstance(asset_id, int):
        raise TypeError(f"asset_id must be an int, got {type(asset_id).__name__}")
    return f"{ASSET_KEY_PREFIX}{asset_id}"
