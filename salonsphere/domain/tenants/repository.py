"""Tenant repository - Database operations for tenants"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Tenant


class TenantRepository:
    """Repository for tenant database operations"""

    @staticmethod
    def get_by_id(db: Session, tenant_id: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.id == tenant_id).first()

    @staticmethod
    def get_by_subdomain(db: Session, subdomain: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.subdomain == subdomain).first()

    @staticmethod
    def get_by_verified_custom_domain(db: Session, domain: str) -> Optional[Tenant]:
        return (
            db.query(Tenant)
            .filter(Tenant.custom_domain == domain, Tenant.domain_verified.is_(True))
            .first()
        )

