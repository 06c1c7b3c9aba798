"""
Cache keys and cache stores for Odin checkouts.
"""

from .key import KEY_PREFIX, cache_paths, compose_cache_key, key_prefix
from .store import CacheStore, LocalCacheStore, validate_key
from .saver import CacheSaver

__all__ = [
    "KEY_PREFIX",
    "cache_paths",
    "compose_cache_key",
    "key_prefix",
    "CacheStore",
    "LocalCacheStore",
    "validate_key",
    "CacheSaver",
]
