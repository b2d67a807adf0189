"""Analytics router - Dashboard endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from ...security_middleware import set_rls_context
from .schemas import AgendaStats, BookingPoint, PopularService, RevenuePoint, TenantMetrics
from .service import DEFAULT_POPULAR_LIMIT, AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def get_analytics_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    current_user: CurrentUser = Depends(get_current_user),
) -> AnalyticsService:
    """Dependency injection for AnalyticsService"""
    set_rls_context(db, current_user.tenant_id)
    return AnalyticsService(db, cache)


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise HTTPException(status_code=400, detail="start must be on or before end")


@router.get("/revenue", response_model=list[RevenuePoint])
async def get_revenue_series(
    start: date,
    end: date,
    current_user: CurrentUser = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Daily revenue over [start, end]"""
    _check_range(start, end)
    return service.get_revenue_series(current_user.tenant_id, start, end)


@router.get("/bookings", response_model=list[BookingPoint])
async def get_booking_series(
    start: date,
    end: date,
    current_user: CurrentUser = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Daily booking counts over [start, end]"""
    _check_range(start, end)
    return service.get_booking_series(current_user.tenant_id, start, end)


@router.get("/popular-services", response_model=list[PopularService])
async def get_popular_services(
    start: date,
    end: date,
    limit: int = Query(DEFAULT_POPULAR_LIMIT, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    _check_range(start, end)
    return service.get_popular_services(current_user.tenant_id, start, end, limit)


@router.get("/metrics", response_model=Optional[TenantMetrics])
async def get_tenant_metrics(
    current_user: CurrentUser = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue, appointments and new clients over the last 30 days"""
    return service.get_tenant_metrics(current_user.tenant_id)


@router.get("/agenda-stats", response_model=Optional[AgendaStats])
async def get_agenda_stats(
    day: date,
    end: Optional[date] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    if end:
        _check_range(day, end)
    return service.get_agenda_stats(current_user.tenant_id, day, end)
