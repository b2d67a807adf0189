"""Booking router - FastAPI endpoints for appointments"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, get_current_user
from ...cache import Cache, get_cache
from ...database import get_db
from ...realtime import ChangeFeed, get_change_feed
from ...security_middleware import set_rls_context
from .schemas import AvailableSlot, BookingCreate, BookingPage, BookingResponse, BookingUpdate
from .service import DEFAULT_PAGE_SIZE, UPCOMING_LIMIT, BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    feed: ChangeFeed = Depends(get_change_feed),
    current_user: CurrentUser = Depends(get_current_user),
) -> BookingService:
    """Dependency injection for BookingService"""
    set_rls_context(db, current_user.tenant_id)
    return BookingService(db, cache, feed)


@router.get("", response_model=list[BookingResponse])
async def get_bookings(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings, or those starting between ``start`` and ``end``"""
    if start and end:
        return service.get_bookings_by_date_range(current_user.tenant_id, start, end)
    if start or end:
        raise HTTPException(status_code=400, detail="Both start and end are required")
    return service.get_bookings(current_user.tenant_id)


@router.get("/upcoming", response_model=list[BookingResponse])
async def get_upcoming_bookings(
    limit: int = Query(UPCOMING_LIMIT, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_upcoming_bookings(current_user.tenant_id, limit)


@router.get("/today", response_model=list[BookingResponse])
async def get_today_bookings(
    day: Optional[date] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings for today (UTC) or the given day"""
    return service.get_today_bookings(current_user.tenant_id, day)


@router.get("/paginated", response_model=BookingPage)
async def get_paginated_bookings(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    cursor: Optional[datetime] = None,
    direction: str = Query("future", pattern="^(future|past)$"),
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_paginated(current_user.tenant_id, limit, cursor, direction)


@router.get("/availability", response_model=list[AvailableSlot])
async def get_available_slots(
    service_id: str,
    day: date,
    staff_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Start times for a treatment on a day, flagged available or taken"""
    return service.get_available_slots(current_user.tenant_id, service_id, day, staff_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(current_user.tenant_id, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking"""
    return service.create_booking(current_user.tenant_id, data)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Update or reschedule a booking"""
    return service.update_booking(current_user.tenant_id, booking_id, data)


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Delete a booking"""
    return service.delete_booking(current_user.tenant_id, booking_id)
