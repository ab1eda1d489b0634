"""Cache: Redis service and cache key utilities.

Used by the principal repository for read-model caching. CacheService uses
app.core.config; key format is in keys.py.
"""

from app.infrastructure.cache.keys import principal_key
from app.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheService",
    "principal_key",
]
