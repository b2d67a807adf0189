"""Overhead router - FastAPI endpoints for overhead analysis and pricing"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from ...security_middleware import set_rls_context
from .schemas import (
    OverheadAlert,
    OverheadMetrics,
    OverheadSettings,
    OverheadSettingsUpdate,
    OverheadTrend,
    PricingRequest,
    PricingResult,
    TreatmentOverheadAnalysis,
)
from .service import DEFAULT_TREND_MONTHS, OverheadService

router = APIRouter(prefix="/overhead", tags=["Overhead"])


def get_overhead_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    current_user: CurrentUser = Depends(get_current_user),
) -> OverheadService:
    """Dependency injection for OverheadService"""
    set_rls_context(db, current_user.tenant_id)
    return OverheadService(db, cache)


@router.get("/metrics", response_model=Optional[OverheadMetrics])
async def get_overhead_metrics(
    month: Optional[date] = Query(None, description="Any day in the month to analyze"),
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    """Overhead per treatment for a month (default: current month)"""
    return service.get_overhead_metrics(current_user.tenant_id, month)


@router.get("/treatment-analysis", response_model=list[TreatmentOverheadAnalysis])
async def get_treatment_overhead_analysis(
    service_id: Optional[str] = None,
    month: Optional[date] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    return service.get_treatment_overhead_analysis(current_user.tenant_id, service_id, month)


@router.get("/trends", response_model=list[OverheadTrend])
async def get_overhead_trends(
    months_back: int = Query(DEFAULT_TREND_MONTHS, ge=1, le=24),
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    """Monthly overhead for the last ``months_back`` months, oldest first"""
    return service.get_overhead_trends(current_user.tenant_id, months_back)


@router.get("/alerts", response_model=list[OverheadAlert])
async def get_overhead_alerts(
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    return service.get_overhead_alerts(current_user.tenant_id)


@router.get("/settings", response_model=Optional[OverheadSettings])
async def get_overhead_settings(
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    return service.get_overhead_settings(current_user.tenant_id)


@router.put("/settings", response_model=OverheadSettings)
async def update_overhead_settings(
    data: OverheadSettingsUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: OverheadService = Depends(get_overhead_service),
):
    """Update monthly overhead and how it is allocated"""
    return service.update_overhead_settings(current_user.tenant_id, data)


@router.post("/pricing-calculator", response_model=PricingResult)
async def calculate_pricing(
    data: PricingRequest,
    current_user: CurrentUser = Depends(get_current_user),
):
    """Suggested treatment price from costs and a target margin"""
    return OverheadService.calculate_pricing(data)
