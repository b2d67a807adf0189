"""
Timeseries sources for dashboard analytics

Each source returns ``{"day": "YYYY-MM-DD", <value_field>: number}`` points
ordered by day for a tenant and a closed date range. Database procedures are
the primary path; revenue can fall back to grouping paid invoices.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models_invoice import Invoice

logger = logging.getLogger(__name__)


def _iso_day(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)[:10]


def _fill_days(values: dict, start: date, end: date, field: str, zero) -> list[dict]:
    """One point per day of [start, end]; days missing from ``values`` get ``zero``"""
    points = []
    day = start
    while day <= end:
        key = day.isoformat()
        points.append({"day": key, field: values.get(key, zero)})
        day += timedelta(days=1)
    return points


def _procedure_params(tenant_id: str, start: date, end: date) -> dict:
    return {"_tenant": tenant_id, "_from": start.isoformat(), "_to": end.isoformat()}


class TimeseriesSource:
    """Produces (day, value) points for one tenant over [start, end]"""

    value_field = "value"

    def fetch(self, db: Session, tenant_id: str, start: date, end: date) -> list[dict]:
        raise NotImplementedError


class ProcedureTimeseriesSource(TimeseriesSource):
    """Reads a ``<procedure>(_tenant, _from, _to)`` set-returning function; days without rows are 0"""

    def __init__(self, procedure: str, value_field: str, cast=float):
        self.procedure = procedure
        self.value_field = value_field
        self.cast = cast

    def fetch(self, db: Session, tenant_id: str, start: date, end: date) -> list[dict]:
        rows = db.execute(
            text(f"SELECT * FROM {self.procedure}(:_tenant, :_from, :_to)"),
            _procedure_params(tenant_id, start, end),
        ).mappings().all()

        values = {
            _iso_day(row["day"]): self.cast(row[self.value_field] or 0) for row in rows
        }
        return _fill_days(values, start, end, self.value_field, self.cast(0))


class InvoiceRevenueSource(TimeseriesSource):
    """Sums paid invoices per calendar day of ``paid_at``; days without payments are 0"""

    value_field = "revenue"

    def fetch(self, db: Session, tenant_id: str, start: date, end: date) -> list[dict]:
        paid_day = func.date(Invoice.paid_at)
        rows = (
            db.query(paid_day, func.sum(Invoice.total_amount))
            .filter(
                Invoice.tenant_id == tenant_id,
                Invoice.status == "paid",
                Invoice.paid_at.isnot(None),
                Invoice.paid_at >= datetime.combine(start, time.min),
                Invoice.paid_at < datetime.combine(end + timedelta(days=1), time.min),
            )
            .group_by(paid_day)
            .all()
        )

        totals = defaultdict(float)
        for day, amount in rows:
            totals[_iso_day(day)] += float(amount or 0)

        return _fill_days(totals, start, end, self.value_field, 0.0)


class FallbackTimeseriesSource(TimeseriesSource):
    """Uses ``fallback`` when ``primary`` fails"""

    def __init__(self, primary: TimeseriesSource, fallback: TimeseriesSource):
        self.primary = primary
        self.fallback = fallback
        self.value_field = primary.value_field

    def fetch(self, db: Session, tenant_id: str, start: date, end: date) -> list[dict]:
        try:
            return self.primary.fetch(db, tenant_id, start, end)
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Primary timeseries source failed, using fallback: {e}")
            db.rollback()
            return self.fallback.fetch(db, tenant_id, start, end)


def fetch_popular_services(
    db: Session, tenant_id: str, start: date, end: date, limit: int
) -> list[dict]:
    """Ranked ``popular_services(_tenant, _from, _to, _limit)`` rows"""
    params = _procedure_params(tenant_id, start, end)
    params["_limit"] = limit
    rows = db.execute(
        text("SELECT * FROM popular_services(:_tenant, :_from, :_to, :_limit)"),
        params,
    ).mappings().all()

    return [
        {
            "service_name": row["service_name"],
            "total": int(row["total"] or 0),
            "percentage": float(row["percentage"] or 0),
        }
        for row in rows
    ]


revenue_source = FallbackTimeseriesSource(
    ProcedureTimeseriesSource("revenue_timeseries", "revenue"),
    InvoiceRevenueSource(),
)
booking_source = ProcedureTimeseriesSource("bookings_timeseries", "bookings", cast=int)
