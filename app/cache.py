"""
Redis caching utilities for frequently read public data
Used for winery search results served to the website and GPT actions
"""
import json
import logging
import time
from typing import Any, Optional

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

# Seconds to wait before retrying an unreachable Redis
RECONNECT_INTERVAL = 60


class Cache:
    """Redis cache wrapper with automatic JSON serialization"""

    def __init__(self):
        self.redis_client = None
        self._last_failure = 0.0

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            if time.time() - self._last_failure < RECONNECT_INTERVAL:
                return None
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                self._last_failure = time.time()
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'wineries:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()


def build_winery_search_key(search: Optional[str], style: Optional[str], limit: Optional[int] = None) -> str:
    """Cache key for a winery search"""
    return f"wineries:search:{(search or '').strip().lower()}:{style or 'any'}:{limit or 'all'}"


def invalidate_winery_cache() -> int:
    """Drop cached winery searches after an admin edit"""
    return cache.delete_pattern("wineries:*")
