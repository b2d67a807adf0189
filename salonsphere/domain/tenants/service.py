"""Tenant service - Domain resolution and tenant lookups"""

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...cache import Cache, CacheKeys
from ...config import CACHE_SETTINGS_TTL
from ...models import Tenant
from .repository import TenantRepository
from .schemas import TenantResponse

logger = logging.getLogger(__name__)


def normalize_domain(domain: str) -> str:
    """Lowercase and drop scheme, port and path from an inbound host"""
    host = domain.strip().lower()
    if "://" in host:
        host = host.split("://", 1)[1]
    host = host.split("/", 1)[0]
    return host.split(":", 1)[0]


class TenantService:
    """Service layer for tenant resolution"""

    def __init__(self, db: Session, cache: Cache):
        self.db = db
        self.cache = cache
        self.repo = TenantRepository()

    def resolve_tenant(self, domain: str) -> Optional[Tenant]:
        """
        Resolve a tenant from an inbound domain or subdomain.

        Resolution order:
        1. Subdomain equal to the whole value (e.g. "beauty-salon")
        2. Verified custom domain (e.g. "www.beautysalon.nl")
        3. First label of the host (e.g. "beauty-salon.salonsphere.nl")
        """
        if not domain or not domain.strip():
            return None

        host = normalize_domain(domain)
        logger.info(f"🔎 Resolving tenant for domain: {host}")

        lookups: list[tuple[str, Callable[[], Optional[Tenant]]]] = [
            ("subdomain", lambda: self.repo.get_by_subdomain(self.db, host)),
            ("custom domain", lambda: self.repo.get_by_verified_custom_domain(self.db, host)),
        ]
        if "." in host:
            label = host.split(".")[0]
            lookups.append(("parsed subdomain", lambda: self.repo.get_by_subdomain(self.db, label)))

        for name, lookup in lookups:
            try:
                tenant = lookup()
            except SQLAlchemyError as e:
                logger.error(f"❌ Tenant lookup by {name} failed for {host}: {e}")
                self.db.rollback()
                continue
            if tenant:
                logger.info(f"✅ Found tenant {tenant.id} by {name}")
                return tenant

        logger.info(f"Tenant not found for domain: {host}")
        return None

    def get_tenant(self, tenant_id: Optional[str]) -> Optional[dict]:
        """Cached tenant profile; disabled without a tenant id"""

        def load():
            tenant = self.repo.get_by_id(self.db, tenant_id)
            if not tenant:
                return None
            return TenantResponse.model_validate(tenant).model_dump(mode="json")

        return self.cache.remember(CacheKeys.tenant(tenant_id), load, ttl=CACHE_SETTINGS_TTL)
