"""
Realtime bridge between tenant change notifications and the query cache

Writers publish a small JSON notification on ``tenant_realtime:{tenant_id}``
after a committed mutation. The bridge subscribes to those channels and
invalidates the cached queries mapped to the changed table; it never patches
cached data, the next read re-fetches.
"""

import json
import logging
from typing import Optional

import redis
from fastapi import Request

from .cache import Cache, CacheKey, CacheKeys
from .config import REALTIME_CHANNEL_PREFIX
from .redis_client import get_redis_client

logger = logging.getLogger(__name__)

# table -> cached query families to invalidate for the tenant
TABLE_INVALIDATIONS: dict[str, tuple[str, ...]] = {
    "inventory_items": ("inventory_items", "tenant_metrics_inv", "tenant_metrics"),
    "product_history": ("inventory_items", "tenant_metrics_inv"),
    "services": ("services", "tenant_metrics"),
    "bookings": ("bookings", "tenant_metrics"),
    "clients": ("clients",),
    "supplier_pos": ("tenant_metrics",),
}


def channel_for(tenant_id: str, prefix: str = REALTIME_CHANNEL_PREFIX) -> str:
    return f"{prefix}:{tenant_id}"


class ChangeFeed:
    """Publishes row-change notifications for a tenant"""

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        channel_prefix: str = REALTIME_CHANNEL_PREFIX,
    ):
        self.redis_client = redis_client
        self.channel_prefix = channel_prefix

    def _get_client(self):
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Realtime publish unavailable: {e}")
                return None
        return self.redis_client

    def publish(self, tenant_id: Optional[str], table: str, event: str = "*") -> int:
        """Notify subscribers that ``table`` changed for ``tenant_id``; returns receiver count"""
        if not tenant_id:
            return 0

        client = self._get_client()
        if not client:
            return 0

        payload = json.dumps({"table": table, "event": event, "tenant_id": tenant_id})
        try:
            receivers = client.publish(channel_for(tenant_id, self.channel_prefix), payload)
            logger.debug(f"📣 Published {event} on {table} for tenant {tenant_id} ({receivers} receivers)")
            return receivers
        except Exception as e:
            logger.error(f"❌ Failed to publish change for tenant {tenant_id} on {table}: {e}")
            return 0


class RealtimeBridge:
    """Subscribes to tenant change channels and invalidates cached queries"""

    def __init__(
        self,
        cache: Cache,
        redis_client: Optional[redis.Redis] = None,
        channel_prefix: str = REALTIME_CHANNEL_PREFIX,
        sleep_time: float = 0.5,
    ):
        self.cache = cache
        self.redis_client = redis_client
        self.channel_prefix = channel_prefix
        self.sleep_time = sleep_time
        self._pubsub = None
        self._thread = None
        self._channels: set[str] = set()

    @property
    def channels(self) -> set[str]:
        return set(self._channels)

    def handle_change(self, tenant_id: Optional[str], table: str) -> list[CacheKey]:
        """Invalidate every cached query family mapped to ``table`` for the tenant"""
        if not tenant_id:
            return []

        entities = TABLE_INVALIDATIONS.get(table)
        if not entities:
            logger.debug(f"Ignoring change on unmapped table '{table}'")
            return []

        keys = [CacheKeys.for_entity(entity, tenant_id) for entity in entities]
        self.cache.invalidate(*keys)
        logger.info(f"🔄 Realtime change on {table} for tenant {tenant_id}: invalidated {len(keys)} queries")
        return keys

    def handle_message(self, message: dict) -> list[CacheKey]:
        """redis-py message handler"""
        channel = _decode(message.get("channel"))
        raw = _decode(message.get("data"))

        prefix = f"{self.channel_prefix}:"
        if not channel or not channel.startswith(prefix):
            return []
        # the channel, not the payload, decides the tenant
        tenant_id = channel[len(prefix):]

        try:
            payload = json.loads(raw) if raw else {}
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Dropping malformed realtime payload on {channel}")
            return []

        table = payload.get("table") if isinstance(payload, dict) else None
        if not table:
            return []

        return self.handle_change(tenant_id, table)

    def _ensure_pubsub(self):
        if self._pubsub is None:
            if self.redis_client is None:
                self.redis_client = get_redis_client()
            self._pubsub = self.redis_client.pubsub(ignore_subscribe_messages=True)
        return self._pubsub

    def _start(self) -> None:
        if self._thread is None:
            self._thread = self._pubsub.run_in_thread(sleep_time=self.sleep_time, daemon=True)
            logger.info("✅ Realtime bridge listening")

    def subscribe(self, tenant_id: Optional[str]) -> bool:
        """Listen to one tenant's channel; no-op without a tenant"""
        if not tenant_id:
            return False

        channel = channel_for(tenant_id, self.channel_prefix)
        if channel in self._channels:
            return True

        pubsub = self._ensure_pubsub()
        pubsub.subscribe(**{channel: self.handle_message})
        self._channels.add(channel)
        self._start()
        logger.info(f"📡 Subscribed to {channel}")
        return True

    def subscribe_all(self) -> None:
        """Listen to every tenant's channel"""
        pattern = f"{self.channel_prefix}:*"
        if pattern in self._channels:
            return

        pubsub = self._ensure_pubsub()
        pubsub.psubscribe(**{pattern: self.handle_message})
        self._channels.add(pattern)
        self._start()
        logger.info(f"📡 Subscribed to {pattern}")

    def unsubscribe(self, tenant_id: Optional[str]) -> None:
        if not tenant_id or self._pubsub is None:
            return

        channel = channel_for(tenant_id, self.channel_prefix)
        if channel in self._channels:
            self._pubsub.unsubscribe(channel)
            self._channels.discard(channel)
            logger.info(f"Unsubscribed from {channel}")

    def close(self) -> None:
        """Stop listening; in-flight requests are not affected"""
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None
        self._channels.clear()
        logger.info("Realtime bridge stopped")


def _decode(value):
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def get_change_feed(request: Request) -> ChangeFeed:
    """Dependency returning the application's change feed"""
    return request.app.state.change_feed
