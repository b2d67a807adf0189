"""Treatment router - FastAPI endpoints for the service catalogue"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from ...realtime import ChangeFeed, get_change_feed
from ...security_middleware import set_rls_context
from ...shared.duration import DEFAULT_MAX_DURATION, MIN_DURATION
from .schemas import DurationOption, ServiceCreate, ServiceResponse, ServiceUpdate
from .service import TreatmentService

router = APIRouter(prefix="/services", tags=["Services"])


def get_treatment_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    feed: ChangeFeed = Depends(get_change_feed),
    current_user: CurrentUser = Depends(get_current_user),
) -> TreatmentService:
    """Dependency injection for TreatmentService"""
    set_rls_context(db, current_user.tenant_id)
    return TreatmentService(db, cache, feed)


@router.get("", response_model=list[ServiceResponse])
async def get_services(
    active_only: bool = False,
    category: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Get the treatment catalogue for the current tenant"""
    return service.get_services(current_user.tenant_id, active_only, category)


@router.get("/duration-options", response_model=list[DurationOption])
async def get_duration_options(
    max_minutes: int = Query(DEFAULT_MAX_DURATION, ge=MIN_DURATION),
):
    """Selectable durations on the 15-minute grid"""
    return TreatmentService.get_duration_options(max_minutes)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    treatment = service.get_service(current_user.tenant_id, service_id)
    if not treatment:
        raise HTTPException(status_code=404, detail="Service not found")
    return treatment


@router.post("", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Create a treatment"""
    return service.create_service(current_user.tenant_id, data)


@router.patch("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Update a treatment"""
    return service.update_service(current_user.tenant_id, service_id, data)


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: TreatmentService = Depends(get_treatment_service),
):
    """Delete a treatment"""
    return service.delete_service(current_user.tenant_id, service_id)
