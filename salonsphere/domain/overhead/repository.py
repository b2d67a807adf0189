"""Overhead repository - Aggregates over completed treatments"""

from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, Service, Tenant
from ..bookings.status import completed_clause


class MonthTreatmentStats(NamedTuple):
    total_treatments: int
    average_price: float
    revenue: float
    booked_minutes: int


class OverheadRepository:
    """Repository for overhead queries"""

    @staticmethod
    def get_tenant(db: Session, tenant_id: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.id == tenant_id).first()

    @staticmethod
    def get_month_treatment_stats(
        db: Session, tenant_id: str, start: datetime, end: datetime, now: datetime
    ) -> MonthTreatmentStats:
        """Completed treatments scheduled in [start, end) with their service prices"""
        count, average_price, revenue, minutes = (
            db.query(
                func.count(Booking.id),
                func.avg(Service.price),
                func.sum(Service.price),
                func.sum(Booking.duration_minutes),
            )
            .join(Service, Booking.service_id == Service.id)
            .filter(
                Booking.tenant_id == tenant_id,
                Booking.scheduled_at >= start,
                Booking.scheduled_at < end,
                completed_clause(now),
            )
            .one()
        )
        return MonthTreatmentStats(
            total_treatments=count or 0,
            average_price=float(average_price or 0),
            revenue=float(revenue or 0),
            booked_minutes=int(minutes or 0),
        )

    @staticmethod
    def get_active_services(
        db: Session, tenant_id: str, service_id: Optional[str] = None
    ) -> list[Service]:
        query = db.query(Service).filter(
            Service.tenant_id == tenant_id, Service.active.is_(True)
        )
        if service_id:
            query = query.filter(Service.id == service_id)
        return query.order_by(Service.name.asc()).all()

    @staticmethod
    def update_overhead_settings(db: Session, tenant: Tenant, **updates) -> Tenant:
        for key, value in updates.items():
            if value is not None and hasattr(tenant, key):
                setattr(tenant, key, value)

        db.commit()
        db.refresh(tenant)
        return tenant
