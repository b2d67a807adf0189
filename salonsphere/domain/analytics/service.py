"""Analytics service - Dashboard series, rankings and headline metrics"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...cache import Cache, CacheKeys, Uncached
from ...models import Booking, Client, InventoryItem
from ...models_invoice import Invoice
from ..bookings.repository import BookingRepository
from ..bookings.service import day_bounds
from ..bookings.status import get_booking_status, utc_now
from .schemas import AgendaStats, TenantMetrics
from .sources import TimeseriesSource, booking_source, fetch_popular_services, revenue_source

logger = logging.getLogger(__name__)

DEFAULT_POPULAR_LIMIT = 5
METRICS_WINDOW = timedelta(days=30)


class AnalyticsService:
    """Aggregation queries; failures are logged and resolve to empty results"""

    def __init__(
        self,
        db: Session,
        cache: Cache,
        revenue: TimeseriesSource = revenue_source,
        bookings: TimeseriesSource = booking_source,
    ):
        self.db = db
        self.cache = cache
        self.revenue = revenue
        self.bookings = bookings

    def _series(self, source: TimeseriesSource, tenant_id: str, start: date, end: date) -> list[dict]:
        try:
            return source.fetch(self.db, tenant_id, start, end)
        except Exception as e:
            logger.error(f"❌ Failed to load {source.value_field} series for tenant {tenant_id}: {e}")
            self.db.rollback()
            return Uncached([])

    def get_revenue_series(self, tenant_id: Optional[str], start: date, end: date) -> list[dict]:
        return self.cache.remember(
            CacheKeys.revenue_series(tenant_id, start, end),
            lambda: self._series(self.revenue, tenant_id, start, end),
            default=[],
        )

    def get_booking_series(self, tenant_id: Optional[str], start: date, end: date) -> list[dict]:
        return self.cache.remember(
            CacheKeys.booking_series(tenant_id, start, end),
            lambda: self._series(self.bookings, tenant_id, start, end),
            default=[],
        )

    def get_popular_services(
        self,
        tenant_id: Optional[str],
        start: date,
        end: date,
        limit: int = DEFAULT_POPULAR_LIMIT,
    ) -> list[dict]:
        def load():
            try:
                return fetch_popular_services(self.db, tenant_id, start, end, limit)
            except Exception as e:
                logger.error(f"❌ Failed to load popular services for tenant {tenant_id}: {e}")
                self.db.rollback()
                return Uncached([])

        return self.cache.remember(
            CacheKeys.popular_services(tenant_id, start, end, limit), load, default=[]
        )

    def _compute_tenant_metrics(self, tenant_id: str) -> TenantMetrics:
        since = utc_now() - METRICS_WINDOW

        revenue = (
            self.db.query(func.coalesce(func.sum(Invoice.total_amount), 0))
            .filter(
                Invoice.tenant_id == tenant_id,
                Invoice.status == "paid",
                Invoice.paid_at >= since,
            )
            .scalar()
        )
        appointments = (
            self.db.query(func.count(Booking.id))
            .filter(
                Booking.tenant_id == tenant_id,
                Booking.scheduled_at >= since,
                (Booking.status.is_(None)) | (Booking.status != "cancelled"),
            )
            .scalar()
        )
        new_clients = (
            self.db.query(func.count(Client.id))
            .filter(Client.tenant_id == tenant_id, Client.created_at >= since)
            .scalar()
        )
        low_stock = (
            self.db.query(func.count(InventoryItem.id))
            .filter(
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.current_stock <= InventoryItem.min_stock,
            )
            .scalar()
        )
        avg_spend = (
            self.db.query(func.coalesce(func.avg(Client.total_spent), 0))
            .filter(Client.tenant_id == tenant_id)
            .scalar()
        )

        return TenantMetrics(
            tenant_id=tenant_id,
            revenue_last30=float(revenue or 0),
            appointments_last30=appointments or 0,
            new_clients_last30=new_clients or 0,
            low_stock_items=low_stock or 0,
            avg_spend_per_client=float(avg_spend or 0),
        )

    def get_tenant_metrics(self, tenant_id: Optional[str]) -> Optional[dict]:
        """Headline metrics; zeros when the aggregation fails"""

        def load():
            try:
                return self._compute_tenant_metrics(tenant_id).model_dump()
            except Exception as e:
                logger.error(f"❌ Failed to compute tenant metrics for {tenant_id}: {e}")
                self.db.rollback()
                return Uncached(TenantMetrics(tenant_id=tenant_id).model_dump())

        return self.cache.remember(CacheKeys.tenant_metrics(tenant_id), load)

    def get_agenda_stats(
        self, tenant_id: Optional[str], start: date, end: Optional[date] = None
    ) -> Optional[dict]:
        """Booking counts for a day, or for the period [start, end]"""
        end = end or start

        def load():
            range_start, _ = day_bounds(start)
            _, range_end = day_bounds(end)
            try:
                bookings = [
                    b
                    for b in BookingRepository.get_bookings_by_date_range(
                        self.db, tenant_id, range_start, range_end
                    )
                    if b.status != "cancelled"
                ]
            except Exception as e:
                logger.error(f"❌ Failed to compute agenda stats for tenant {tenant_id}: {e}")
                self.db.rollback()
                return Uncached(AgendaStats().model_dump())

            now = utc_now()
            return AgendaStats(
                count_today=len(bookings),
                total_minutes=sum(b.duration_minutes or 0 for b in bookings),
                unique_clients=len({b.client_id for b in bookings}),
                completed_count=sum(1 for b in bookings if get_booking_status(b, now) == "completed"),
            ).model_dump()

        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "agenda-stats", start, end), load
        )
