"""
Redis-backed query cache with typed cache keys
Every cached read is keyed by (entity, tenant, parameters); mutations invalidate
the keys they affect and the next read re-fetches from the database
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

import redis
from fastapi import Request

from .config import CACHE_DEFAULT_TTL
from .redis_client import get_redis_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """
    Structured cache key.

    A key without a tenant is a prefix that covers the entity for every tenant,
    e.g. ``CacheKey("clients")`` invalidates every tenant's client lists.
    """

    entity: str
    tenant_id: Optional[str] = None
    params: tuple = ()

    def render(self) -> str:
        parts = [self.entity]
        if self.tenant_id is not None:
            parts.append(str(self.tenant_id))
        parts.extend(_render_param(p) for p in self.params)
        return ":".join(parts)

    def pattern(self) -> str:
        """Glob matching every key nested under this one"""
        return f"{self.render()}:*"


def _render_param(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class CacheKeys:
    """Cache key builders, one per cached query family"""

    @staticmethod
    def tenant(tenant_id: Optional[str] = None) -> CacheKey:
        return CacheKey("tenant", tenant_id)

    @staticmethod
    def clients(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("clients", tenant_id, params)

    @staticmethod
    def client(tenant_id: Optional[str], client_id: str) -> CacheKey:
        return CacheKey("client", tenant_id, (client_id,))

    @staticmethod
    def services(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("services", tenant_id, params)

    @staticmethod
    def service(tenant_id: Optional[str], service_id: str) -> CacheKey:
        return CacheKey("service", tenant_id, (service_id,))

    @staticmethod
    def bookings(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("bookings", tenant_id, params)

    @staticmethod
    def booking(tenant_id: Optional[str], booking_id: str) -> CacheKey:
        return CacheKey("booking", tenant_id, (booking_id,))

    @staticmethod
    def overhead_settings(tenant_id: Optional[str] = None) -> CacheKey:
        return CacheKey("overhead-settings", tenant_id)

    @staticmethod
    def overhead_metrics(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("overhead-metrics", tenant_id, params)

    @staticmethod
    def treatment_overhead_analysis(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("treatment-overhead-analysis", tenant_id, params)

    @staticmethod
    def overhead_trends(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("overhead-trends", tenant_id, params)

    @staticmethod
    def revenue_series(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("revenue_series", tenant_id, params)

    @staticmethod
    def booking_series(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("booking_series", tenant_id, params)

    @staticmethod
    def popular_services(tenant_id: Optional[str] = None, *params) -> CacheKey:
        return CacheKey("popular_services", tenant_id, params)

    @staticmethod
    def tenant_metrics(tenant_id: Optional[str] = None) -> CacheKey:
        return CacheKey("tenant_metrics", tenant_id)

    @classmethod
    def for_entity(cls, entity: str, tenant_id: Optional[str] = None) -> CacheKey:
        """
        Prefix key for an entity name, used by the realtime table mapping.
        Families such as ``inventory_items`` are only invalidated here; their
        readers live outside this service and share the same Redis.
        """
        return CacheKey(entity, tenant_id)


class Uncached:
    """Loader result handed back to the caller without being stored (degraded fallbacks)"""

    def __init__(self, value: Any):
        self.value = value


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis_client = redis_client

    def _get_client(self):
        """Lazy load Redis client when none was injected"""
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
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
            if value is not None:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = CACHE_DEFAULT_TTL) -> bool:
        """Set value in cache with TTL"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'clients:tenant-1:*')"""
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

    def remember(
        self,
        key: CacheKey,
        loader: Callable[[], Any],
        ttl: int = CACHE_DEFAULT_TTL,
        default: Any = None,
    ) -> Any:
        """
        Return the cached value for ``key`` or load, cache and return it.

        Queries without a tenant are disabled: ``default`` is returned and
        neither the cache nor ``loader`` is touched.
        A loader may return ``Uncached(value)`` for a fallback result; the value
        is returned but not stored, so the next read tries the loader again.
        """
        if not key.tenant_id:
            logger.debug(f"⏸️ Query '{key.entity}' disabled: no tenant in context")
            return default

        cache_key = key.render()
        cached_value = self.get(cache_key)
        if cached_value is not None:
            return cached_value

        result = loader()
        if isinstance(result, Uncached):
            return result.value
        if result is not None:
            self.set(cache_key, result, ttl)
        return result

    def invalidate(self, *keys: CacheKey) -> int:
        """Drop each key and everything nested under it"""
        deleted = 0
        for key in keys:
            rendered = key.render()
            if self.delete(rendered):
                deleted += 1
            deleted += self.delete_pattern(key.pattern())
        return deleted


def get_cache(request: Request) -> Cache:
    """Dependency returning the application's cache"""
    return request.app.state.cache


def get_cache_stats(cache: Cache) -> dict:
    """Get cache statistics"""
    client = cache._get_client()
    if not client:
        return {"available": False}

    try:
        info = client.info()
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "available": True,
            "used_memory": info.get("used_memory_human"),
            "connected_clients": info.get("connected_clients"),
            "keyspace_hits": hits,
            "keyspace_misses": misses,
            "hit_rate": (hits / max(hits + misses, 1)) * 100,
        }
    except Exception as e:
        logger.error(f"❌ Failed to get cache stats: {e}")
        return {"available": False, "error": str(e)}
