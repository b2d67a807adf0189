"""
Overhead service
Monthly overhead metrics, per-treatment cost analysis, trends and settings
"""

import logging
from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import require_tenant
from ...cache import Cache, CacheKeys, Uncached
from ...config import CACHE_SETTINGS_TTL
from ...models import Tenant
from ..bookings.status import utc_now
from . import calculator
from .repository import OverheadRepository
from .schemas import (
    OverheadMetrics,
    OverheadSettings,
    OverheadSettingsUpdate,
    OverheadTrend,
    PricingRequest,
    PricingResult,
    TreatmentOverheadAnalysis,
)

logger = logging.getLogger(__name__)

DEFAULT_TREND_MONTHS = 6

# OverheadSettings field -> Tenant column
SETTINGS_COLUMNS = {
    "overhead_monthly": "overhead_monthly",
    "calculation_method": "overhead_calculation_method",
    "include_in_pricing": "overhead_include_in_pricing",
    "show_in_reports": "overhead_show_in_reports",
}


def month_start(day: Optional[date] = None) -> date:
    day = day or utc_now().date()
    return day.replace(day=1)


def month_label(start: date) -> str:
    return start.strftime("%Y-%m")


def settings_from_tenant(tenant: Tenant) -> OverheadSettings:
    return OverheadSettings(
        **{field: getattr(tenant, column) for field, column in SETTINGS_COLUMNS.items()}
    )


class OverheadService:
    """Service layer for overhead calculations"""

    def __init__(self, db: Session, cache: Cache):
        self.db = db
        self.cache = cache
        self.repo = OverheadRepository()

    def _get_tenant_or_404(self, tenant_id: str) -> Tenant:
        tenant = self.repo.get_tenant(self.db, tenant_id)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant

    def _month_stats(self, tenant_id: str, start: date):
        end = start + relativedelta(months=1)
        return self.repo.get_month_treatment_stats(
            self.db,
            tenant_id,
            datetime.combine(start, datetime.min.time()),
            datetime.combine(end, datetime.min.time()),
            utc_now(),
        )

    def compute_metrics(self, tenant_id: str, start: date) -> OverheadMetrics:
        """Overhead metrics for the month beginning at ``start``; raises on failure"""
        tenant = self._get_tenant_or_404(tenant_id)
        stats = self._month_stats(tenant_id, start)

        per_treatment = calculator.calculate_overhead_per_treatment(
            tenant.overhead_monthly or 0, stats.total_treatments
        )
        return OverheadMetrics(
            overhead_monthly=tenant.overhead_monthly or 0,
            total_treatments=stats.total_treatments,
            overhead_per_treatment=per_treatment,
            average_treatment_price=stats.average_price,
            overhead_percentage=calculator.calculate_overhead_percentage(
                per_treatment, stats.average_price
            ),
            month_analyzed=month_label(start),
        )

    def get_overhead_metrics(
        self, tenant_id: Optional[str], month: Optional[date] = None
    ) -> Optional[dict]:
        """Metrics for a month (default: current); failures degrade to zeros"""
        start = month_start(month)

        def load():
            try:
                return self.compute_metrics(tenant_id, start).model_dump()
            except Exception as e:
                logger.error(f"❌ Failed to compute overhead metrics for {month_label(start)}: {e}")
                self.db.rollback()
                return Uncached(OverheadMetrics(month_analyzed=month_label(start)).model_dump())

        return self.cache.remember(
            CacheKeys.overhead_metrics(tenant_id, month_label(start)), load
        )

    def get_treatment_overhead_analysis(
        self,
        tenant_id: Optional[str],
        service_id: Optional[str] = None,
        month: Optional[date] = None,
    ) -> list[dict]:
        """Cost breakdown per active treatment using the tenant's allocation method"""
        start = month_start(month)

        def load():
            tenant = self._get_tenant_or_404(tenant_id)
            stats = self._month_stats(tenant_id, start)
            overhead_monthly = tenant.overhead_monthly or 0
            per_treatment = calculator.calculate_overhead_per_treatment(
                overhead_monthly, stats.total_treatments
            )

            analysis = []
            for service in self.repo.get_active_services(self.db, tenant_id, service_id):
                overhead_cost = calculator.allocate_overhead(
                    tenant.overhead_calculation_method,
                    overhead_monthly=overhead_monthly,
                    overhead_per_treatment=per_treatment,
                    price=service.price,
                    duration_minutes=service.duration_minutes,
                    month_revenue=stats.revenue,
                    booked_minutes=stats.booked_minutes,
                )
                costs = calculator.analyze_treatment_costs(
                    service.price, service.material_cost, overhead_cost
                )
                analysis.append(
                    TreatmentOverheadAnalysis(
                        service_id=service.id,
                        service_name=service.name,
                        service_price=service.price,
                        material_cost=service.material_cost,
                        overhead_cost=overhead_cost,
                        **costs,
                    ).model_dump()
                )
            return analysis

        return self.cache.remember(
            CacheKeys.treatment_overhead_analysis(tenant_id, service_id, month_label(start)),
            load,
            default=[],
        )

    def get_overhead_trends(
        self,
        tenant_id: Optional[str],
        months_back: int = DEFAULT_TREND_MONTHS,
        today: Optional[date] = None,
    ) -> list[dict]:
        """
        One entry per month for the last ``months_back`` months, oldest first.
        A month that cannot be computed is reported as zeros so the series has no gaps.
        """
        current = month_start(today)

        def load():
            trends = []
            degraded = False
            for offset in range(months_back - 1, -1, -1):
                start = current - relativedelta(months=offset)
                try:
                    metrics = self.compute_metrics(tenant_id, start)
                    trends.append(
                        OverheadTrend(
                            month=metrics.month_analyzed,
                            overhead_monthly=metrics.overhead_monthly,
                            total_treatments=metrics.total_treatments,
                            overhead_per_treatment=metrics.overhead_per_treatment,
                            overhead_percentage=metrics.overhead_percentage,
                        ).model_dump()
                    )
                except Exception as e:
                    logger.error(f"❌ Error fetching overhead for {month_label(start)}: {e}")
                    self.db.rollback()
                    trends.append(OverheadTrend(month=month_label(start)).model_dump())
                    degraded = True
            return Uncached(trends) if degraded else trends

        return self.cache.remember(
            CacheKeys.overhead_trends(tenant_id, months_back, month_label(current)),
            load,
            ttl=CACHE_SETTINGS_TTL,
            default=[],
        )

    def get_overhead_alerts(self, tenant_id: Optional[str], month: Optional[date] = None) -> list[dict]:
        metrics = self.get_overhead_metrics(tenant_id, month)
        if not metrics:
            return []
        return calculator.build_overhead_alerts(metrics)

    def get_overhead_settings(self, tenant_id: Optional[str]) -> Optional[dict]:
        def load():
            tenant = self.repo.get_tenant(self.db, tenant_id)
            return settings_from_tenant(tenant).model_dump() if tenant else None

        return self.cache.remember(
            CacheKeys.overhead_settings(tenant_id), load, ttl=CACHE_SETTINGS_TTL
        )

    def update_overhead_settings(
        self, tenant_id: Optional[str], data: OverheadSettingsUpdate
    ) -> dict:
        tenant_id = require_tenant(tenant_id)
        tenant = self._get_tenant_or_404(tenant_id)

        updates = {
            SETTINGS_COLUMNS[field]: value
            for field, value in data.model_dump(exclude_unset=True).items()
        }
        tenant = self.repo.update_overhead_settings(self.db, tenant, **updates)
        logger.info(f"💰 Overhead settings updated for tenant {tenant_id}")

        self.cache.invalidate(
            CacheKeys.overhead_metrics(),
            CacheKeys.treatment_overhead_analysis(),
            CacheKeys.overhead_settings(tenant_id),
            CacheKeys.overhead_trends(tenant_id),
            CacheKeys.tenant(tenant_id),
        )
        return settings_from_tenant(tenant).model_dump()

    @staticmethod
    def calculate_pricing(data: PricingRequest) -> PricingResult:
        try:
            return PricingResult(**calculator.calculate_pricing(**data.model_dump()))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
