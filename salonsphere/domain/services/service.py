"""Treatment service - Business logic for the service catalogue"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import require_tenant
from ...cache import Cache, CacheKeys
from ...models import Service
from ...realtime import ChangeFeed
from ...shared.duration import format_duration, generate_duration_options
from ..overhead.calculator import calculate_margin
from .repository import ServiceRepository
from .schemas import DurationOption, ServiceCreate, ServiceResponse, ServiceUpdate

logger = logging.getLogger(__name__)


def serialize_service(service: Service) -> dict:
    """Response payload with the derived duration label and margin"""
    response = ServiceResponse.model_validate(service)
    response.duration_label = format_duration(service.duration_minutes)
    response.margin_percentage = round(
        calculate_margin(service.price or 0, service.material_cost or 0), 2
    )
    return response.model_dump(mode="json")


class TreatmentService:
    """Service layer for treatment business logic"""

    def __init__(self, db: Session, cache: Cache, feed: ChangeFeed):
        self.db = db
        self.cache = cache
        self.feed = feed
        self.repo = ServiceRepository()

    def get_services(
        self,
        tenant_id: Optional[str],
        active_only: bool = False,
        category: Optional[str] = None,
    ) -> list[dict]:
        """Catalogue ordered by name; a category filter lists active treatments only"""
        if category:
            active_only = True

        return self.cache.remember(
            CacheKeys.services(tenant_id, "active" if active_only else "all", category),
            lambda: [
                serialize_service(s)
                for s in self.repo.get_services(self.db, tenant_id, active_only, category)
            ],
            default=[],
        )

    def get_service(self, tenant_id: Optional[str], service_id: str) -> Optional[dict]:
        def load():
            service = self.repo.get_service_by_id(self.db, service_id, tenant_id)
            return serialize_service(service) if service else None

        return self.cache.remember(CacheKeys.service(tenant_id, service_id), load)

    @staticmethod
    def get_duration_options(max_minutes: int) -> list[DurationOption]:
        return [
            DurationOption(value=value, label=label)
            for value, label in generate_duration_options(max_minutes)
        ]

    def _get_service_or_404(self, tenant_id: str, service_id: str) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id, tenant_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def _invalidate(self, tenant_id: str, service_id: Optional[str] = None) -> None:
        keys = [
            CacheKeys.services(tenant_id),
            CacheKeys.tenant_metrics(tenant_id),
            CacheKeys.treatment_overhead_analysis(tenant_id),
        ]
        if service_id:
            keys.append(CacheKeys.service(tenant_id, service_id))
        self.cache.invalidate(*keys)

    def create_service(self, tenant_id: Optional[str], data: ServiceCreate) -> dict:
        tenant_id = require_tenant(tenant_id)
        logger.info(f"📥 Creating service '{data.name}' for tenant: {tenant_id}")

        service = self.repo.create_service(self.db, tenant_id, **data.model_dump())

        self._invalidate(tenant_id)
        self.feed.publish(tenant_id, "services", "INSERT")
        return serialize_service(service)

    def update_service(self, tenant_id: Optional[str], service_id: str, data: ServiceUpdate) -> dict:
        tenant_id = require_tenant(tenant_id)
        service = self._get_service_or_404(tenant_id, service_id)

        service = self.repo.update_service(self.db, service, **data.model_dump(exclude_unset=True))

        self._invalidate(tenant_id, service_id)
        self.feed.publish(tenant_id, "services", "UPDATE")
        return serialize_service(service)

    def delete_service(self, tenant_id: Optional[str], service_id: str) -> dict:
        tenant_id = require_tenant(tenant_id)
        service = self._get_service_or_404(tenant_id, service_id)

        try:
            self.repo.delete_service(self.db, service)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Service {service_id} still referenced: {e}")
            raise HTTPException(
                status_code=409,
                detail="Service has bookings; deactivate it instead",
            )

        logger.info(f"🗑️ Deleted service {service_id} for tenant {tenant_id}")
        self._invalidate(tenant_id, service_id)
        self.feed.publish(tenant_id, "services", "DELETE")
        return {"message": "Service deleted"}
