import fnmatch
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REALTIME_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salonsphere.auth import CurrentUser, get_current_user
from salonsphere.cache import Cache, get_cache
from salonsphere.database import Base, get_db
from salonsphere.main import app
from salonsphere.models import Client, Service, Tenant, User
from salonsphere.realtime import ChangeFeed, get_change_feed

TENANT_ID = "tenant-1"
OTHER_TENANT_ID = "tenant-2"


class FakeRedis:
    """In-memory stand-in for the redis-py calls the cache and change feed make"""

    def __init__(self):
        self.store = {}
        self.published = []

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    def scan_iter(self, match="*"):
        return [key for key in list(self.store) if fnmatch.fnmatchcase(key, match)]

    def keys(self, pattern="*"):
        return self.scan_iter(match=pattern)

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 1

    def info(self):
        return {"keyspace_hits": 3, "keyspace_misses": 1, "connected_clients": 1}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return Cache(fake_redis)


@pytest.fixture
def feed(fake_redis):
    return ChangeFeed(fake_redis)


@pytest.fixture
def tenant(db_session):
    tenant = Tenant(
        id=TENANT_ID,
        name="Beauty Salon",
        subdomain="beauty-salon",
        custom_domain="www.beautysalon.nl",
        domain_verified=True,
        overhead_monthly=1000,
    )
    other = Tenant(
        id=OTHER_TENANT_ID,
        name="Other Salon",
        subdomain="other-salon",
        custom_domain="www.othersalon.nl",
        domain_verified=False,
    )
    db_session.add_all([tenant, other])
    db_session.commit()
    return tenant


@pytest.fixture
def staff(db_session, tenant):
    user = User(id="staff-1", tenant_id=TENANT_ID, email="anna@beautysalon.nl", first_name="Anna")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def salon_client(db_session, tenant):
    client = Client(tenant_id=TENANT_ID, first_name="Sophie", last_name="de Vries", email="sophie@example.nl")
    db_session.add(client)
    db_session.commit()
    return client


@pytest.fixture
def treatment(db_session, tenant):
    service = Service(
        tenant_id=TENANT_ID,
        name="Gezichtsbehandeling",
        price=50,
        duration_minutes=45,
        material_cost=10,
    )
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture
def current_user():
    return CurrentUser(id="user-1", email="owner@beautysalon.nl", tenant_id=TENANT_ID, role="admin")


@pytest.fixture
def api(db_session, cache, feed, current_user):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_current_user] = lambda: current_user

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Switch the signed-in user for subsequent requests"""

    def _login(tenant_id=TENANT_ID, user_id="user-1"):
        user = CurrentUser(id=user_id, tenant_id=tenant_id, role="admin")
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login
