import json
from datetime import date
from unittest.mock import MagicMock

from conftest import OTHER_TENANT_ID, TENANT_ID, FakeRedis

from salonsphere.cache import Cache, CacheKey, CacheKeys, Uncached, get_cache_stats
from salonsphere.domain.bookings.service import BookingService
from salonsphere.domain.clients.service import ClientService
from salonsphere.domain.services.service import TreatmentService
from salonsphere.realtime import ChangeFeed


def test_cache_key_rendering():
    assert CacheKeys.clients(TENANT_ID, "search", "").render() == "clients:tenant-1:search:"
    assert CacheKeys.client(TENANT_ID, "c1").render() == "client:tenant-1:c1"
    assert CacheKeys.revenue_series(TENANT_ID, date(2026, 10, 1), date(2026, 10, 31)).render() == (
        "revenue_series:tenant-1:2026-10-01:2026-10-31"
    )
    assert CacheKeys.clients().render() == "clients"
    assert CacheKeys.clients().pattern() == "clients:*"
    assert CacheKeys.overhead_metrics(TENANT_ID).render() == "overhead-metrics:tenant-1"


def test_remember_without_tenant_skips_cache_and_loader():
    redis_client = MagicMock()
    cache = Cache(redis_client)
    loader = MagicMock()

    assert cache.remember(CacheKey("clients", None), loader, default=[]) == []
    loader.assert_not_called()
    assert redis_client.method_calls == []


def test_remember_loads_once_then_hits_cache():
    cache = Cache(FakeRedis())
    loader = MagicMock(return_value=[{"id": "c1"}])
    key = CacheKeys.clients(TENANT_ID, "search", "")

    assert cache.remember(key, loader) == [{"id": "c1"}]
    assert cache.remember(key, loader) == [{"id": "c1"}]
    assert loader.call_count == 1


def test_remember_does_not_cache_missing_rows():
    fake = FakeRedis()
    cache = Cache(fake)

    assert cache.remember(CacheKeys.client(TENANT_ID, "missing"), lambda: None) is None
    assert fake.store == {}


def test_remember_returns_degraded_result_without_storing_it():
    fake = FakeRedis()
    cache = Cache(fake)
    loader = MagicMock(side_effect=[Uncached([]), [{"day": "2026-01-05", "revenue": 30}]])
    key = CacheKeys.revenue_series(TENANT_ID, date(2026, 1, 5), date(2026, 1, 5))

    assert cache.remember(key, loader) == []
    assert fake.store == {}
    assert cache.remember(key, loader) == [{"day": "2026-01-05", "revenue": 30}]
    assert loader.call_count == 2
    assert key.render() in fake.store


def test_cache_fails_open_when_redis_errors():
    broken = MagicMock()
    broken.get.side_effect = ConnectionError("down")
    broken.setex.side_effect = ConnectionError("down")
    cache = Cache(broken)

    assert cache.remember(CacheKeys.services(TENANT_ID), lambda: ["fresh"]) == ["fresh"]


def test_invalidate_prefix_without_tenant_covers_all_tenants():
    fake = FakeRedis()
    cache = Cache(fake)
    for key in (
        "clients:tenant-1:search:",
        "clients:tenant-2:segment:vip",
        "client:tenant-1:c1",
        "services:tenant-1:all:",
    ):
        fake.store[key] = json.dumps([])

    cache.invalidate(CacheKeys.clients())

    assert sorted(fake.store) == ["client:tenant-1:c1", "services:tenant-1:all:"]


def test_reads_without_tenant_issue_no_database_calls():
    db = MagicMock()
    fake = FakeRedis()
    cache = Cache(fake)
    feed = ChangeFeed(fake)

    assert ClientService(db, cache, feed).get_clients(None) == []
    assert ClientService(db, cache, feed).get_client(None, "c1") is None
    assert TreatmentService(db, cache, feed).get_services(None) == []
    assert BookingService(db, cache, feed).get_upcoming_bookings(None) == []
    assert BookingService(db, cache, feed).get_paginated(None)["items"] == []

    assert db.method_calls == []
    assert fake.store == {}


def test_client_update_invalidates_exactly_client_queries(api, fake_redis, salon_client):
    unrelated = [
        "services:tenant-1:all:",
        "tenant_metrics:tenant-1",
        f"client:{OTHER_TENANT_ID}:{salon_client.id}",
    ]
    invalidated = [
        "clients:tenant-1:search:",
        "clients:tenant-2:search:",
        f"client:tenant-1:{salon_client.id}",
    ]
    for key in unrelated + invalidated:
        fake_redis.store[key] = json.dumps([])

    response = api.patch(f"/clients/{salon_client.id}", json={"notes": "Allergisch voor latex"})

    assert response.status_code == 200
    assert sorted(fake_redis.store) == sorted(unrelated)


def test_cache_stats():
    stats = get_cache_stats(Cache(FakeRedis()))
    assert stats["available"] is True
    assert stats["hit_rate"] == 75
