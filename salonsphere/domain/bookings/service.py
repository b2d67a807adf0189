"""Booking service - Business logic for appointments"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import require_tenant
from ...cache import Cache, CacheKeys
from ...models import Booking, Client, Service
from ...realtime import ChangeFeed
from ...shared.validators import to_naive_utc, validate_duration_minutes
from .availability import build_slots, weekday_index
from .repository import BookingRepository
from .schemas import BookingCreate, BookingResponse, BookingUpdate
from .status import (
    ACTIVE_STATUSES,
    appointments_overlap,
    booking_end,
    get_booking_status,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5
UPCOMING_LIMIT = 10
# Earliest start considered when checking a staff member's conflicts
OVERLAP_LOOKBACK = timedelta(days=1)
# Columns an update may not null out; staff_id, status and notes may be cleared
REQUIRED_FIELDS = ("client_id", "service_id", "scheduled_at", "duration_minutes", "is_paid")


def serialize_booking(booking: Booking, now: Optional[datetime] = None) -> dict:
    response = BookingResponse.model_validate(booking)
    response.status = get_booking_status(booking, now)
    if booking.client:
        response.client_name = " ".join(
            part for part in (booking.client.first_name, booking.client.last_name) if part
        )
    if booking.service:
        response.service_name = booking.service.name
    return response.model_dump(mode="json")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, cache: Cache, feed: ChangeFeed):
        self.db = db
        self.cache = cache
        self.feed = feed
        self.repo = BookingRepository()

    def _serialize_all(self, bookings: list[Booking]) -> list[dict]:
        now = utc_now()
        return [serialize_booking(b, now) for b in bookings]

    def get_bookings(self, tenant_id: Optional[str]) -> list[dict]:
        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "all"),
            lambda: self._serialize_all(self.repo.get_bookings(self.db, tenant_id)),
            default=[],
        )

    def get_bookings_by_date_range(
        self, tenant_id: Optional[str], start: datetime, end: datetime
    ) -> list[dict]:
        start, end = to_naive_utc(start), to_naive_utc(end)
        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "range", start, end),
            lambda: self._serialize_all(
                self.repo.get_bookings_by_date_range(self.db, tenant_id, start, end)
            ),
            default=[],
        )

    def get_today_bookings(self, tenant_id: Optional[str], today: Optional[date] = None) -> list[dict]:
        start, end = day_bounds(today or utc_now().date())
        return self.get_bookings_by_date_range(tenant_id, start, end)

    def get_upcoming_bookings(self, tenant_id: Optional[str], limit: int = UPCOMING_LIMIT) -> list[dict]:
        """Scheduled or confirmed bookings from now on"""
        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "upcoming", limit),
            lambda: self._serialize_all(
                self.repo.get_upcoming_bookings(
                    self.db, tenant_id, utc_now(), ACTIVE_STATUSES, limit
                )
            ),
            default=[],
        )

    def get_paginated(
        self,
        tenant_id: Optional[str],
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: Optional[datetime] = None,
        direction: str = "future",
    ) -> dict:
        """
        One page of bookings in chronological order.

        ``next_cursor`` is the start time to pass back for the following page:
        the latest item of a future page, the earliest of a past page.
        """
        cursor = to_naive_utc(cursor)
        empty = {"items": [], "has_more": False, "next_cursor": None}

        def load():
            now = utc_now()
            rows = self.repo.get_page(self.db, tenant_id, limit + 1, cursor, direction, now)
            has_more = len(rows) > limit
            rows = rows[:limit]
            if direction == "past":
                rows.reverse()

            next_cursor = None
            if has_more and rows:
                edge = rows[0] if direction == "past" else rows[-1]
                next_cursor = edge.scheduled_at.isoformat()

            return {
                "items": [serialize_booking(b, now) for b in rows],
                "has_more": has_more,
                "next_cursor": next_cursor,
            }

        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "page", direction, cursor, limit),
            load,
            default=empty,
        )

    def get_booking(self, tenant_id: Optional[str], booking_id: str) -> Optional[dict]:
        def load():
            booking = self.repo.get_booking_by_id(self.db, booking_id, tenant_id)
            return serialize_booking(booking) if booking else None

        return self.cache.remember(CacheKeys.booking(tenant_id, booking_id), load)

    def get_available_slots(
        self,
        tenant_id: Optional[str],
        service_id: str,
        day: date,
        staff_id: Optional[str] = None,
    ) -> list[dict]:
        """Slots on ``day`` for a treatment, per scheduled staff member, ordered by time"""

        def load():
            service = self._get_service_or_404(tenant_id, service_id)
            day_start, day_end = day_bounds(day)
            now = utc_now()

            slots = []
            schedules = self.repo.get_staff_schedules(
                self.db, tenant_id, weekday_index(day), staff_id
            )
            for schedule in schedules:
                bookings = self.repo.get_staff_bookings_near(
                    self.db, tenant_id, schedule.staff_id, day_start - OVERLAP_LOOKBACK, day_end
                )
                slots.extend(build_slots(day, schedule, service.duration_minutes, bookings, now))

            return sorted(slots, key=lambda s: (s["time"], s["staff_id"]))

        return self.cache.remember(
            CacheKeys.bookings(tenant_id, "availability", service_id, staff_id, day),
            load,
            default=[],
        )

    def _get_booking_or_404(self, tenant_id: str, booking_id: str) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id, tenant_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def _get_service_or_404(self, tenant_id: str, service_id: str) -> Service:
        service = (
            self.db.query(Service)
            .filter(Service.id == service_id, Service.tenant_id == tenant_id)
            .first()
        )
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def _ensure_client(self, tenant_id: str, client_id: str) -> None:
        exists = (
            self.db.query(Client.id)
            .filter(Client.id == client_id, Client.tenant_id == tenant_id)
            .first()
        )
        if not exists:
            raise HTTPException(status_code=404, detail="Client not found")

    def _check_staff_conflict(
        self,
        tenant_id: str,
        staff_id: Optional[str],
        scheduled_at: datetime,
        duration_minutes: int,
        exclude_id: Optional[str] = None,
    ) -> None:
        if not staff_id:
            return

        end = booking_end(scheduled_at, duration_minutes)
        candidates = self.repo.get_staff_bookings_near(
            self.db, tenant_id, staff_id, scheduled_at - OVERLAP_LOOKBACK, end, exclude_id
        )
        for other in candidates:
            other_end = booking_end(other.scheduled_at, other.duration_minutes)
            if appointments_overlap(scheduled_at, end, other.scheduled_at, other_end):
                logger.warning(
                    f"⚠️ Staff {staff_id} already booked at {other.scheduled_at} (booking {other.id})"
                )
                raise HTTPException(
                    status_code=409,
                    detail="Staff member already has an appointment at this time",
                )

    def _invalidate(self, tenant_id: str, booking_id: Optional[str] = None) -> None:
        keys = [
            CacheKeys.bookings(tenant_id),
            CacheKeys.tenant_metrics(tenant_id),
            CacheKeys.booking_series(tenant_id),
            CacheKeys.overhead_metrics(tenant_id),
            CacheKeys.treatment_overhead_analysis(tenant_id),
            CacheKeys.overhead_trends(tenant_id),
        ]
        if booking_id:
            keys.append(CacheKeys.booking(tenant_id, booking_id))
        self.cache.invalidate(*keys)

    def create_booking(self, tenant_id: Optional[str], data: BookingCreate) -> dict:
        tenant_id = require_tenant(tenant_id)

        self._ensure_client(tenant_id, data.client_id)
        service = self._get_service_or_404(tenant_id, data.service_id)

        booking_data = data.model_dump()
        if booking_data["duration_minutes"] is None:
            try:
                booking_data["duration_minutes"] = validate_duration_minutes(
                    service.duration_minutes
                )
            except ValueError as e:
                raise HTTPException(status_code=422, detail=str(e))

        if booking_data["status"] != "cancelled":
            self._check_staff_conflict(
                tenant_id,
                booking_data["staff_id"],
                booking_data["scheduled_at"],
                booking_data["duration_minutes"],
            )

        booking = self.repo.create_booking(self.db, tenant_id, **booking_data)
        logger.info(f"📅 Booking {booking.id} created for tenant {tenant_id}")

        self._invalidate(tenant_id)
        self.feed.publish(tenant_id, "bookings", "INSERT")
        return serialize_booking(booking)

    def update_booking(self, tenant_id: Optional[str], booking_id: str, data: BookingUpdate) -> dict:
        tenant_id = require_tenant(tenant_id)
        booking = self._get_booking_or_404(tenant_id, booking_id)
        updates = data.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in updates and updates[field] is None:
                del updates[field]

        if updates.get("client_id"):
            self._ensure_client(tenant_id, updates["client_id"])
        if updates.get("service_id"):
            self._get_service_or_404(tenant_id, updates["service_id"])

        reschedules = any(k in updates for k in ("scheduled_at", "duration_minutes", "staff_id"))
        status = updates.get("status", booking.status)
        if reschedules and status != "cancelled":
            self._check_staff_conflict(
                tenant_id,
                updates.get("staff_id", booking.staff_id),
                updates.get("scheduled_at") or booking.scheduled_at,
                updates.get("duration_minutes") or booking.duration_minutes,
                exclude_id=booking.id,
            )

        booking = self.repo.update_booking(self.db, booking, **updates)

        self._invalidate(tenant_id, booking_id)
        self.feed.publish(tenant_id, "bookings", "UPDATE")
        return serialize_booking(booking)

    def delete_booking(self, tenant_id: Optional[str], booking_id: str) -> dict:
        tenant_id = require_tenant(tenant_id)
        booking = self._get_booking_or_404(tenant_id, booking_id)

        self.repo.delete_booking(self.db, booking)
        logger.info(f"🗑️ Deleted booking {booking_id} for tenant {tenant_id}")

        self._invalidate(tenant_id, booking_id)
        self.feed.publish(tenant_id, "bookings", "DELETE")
        return {"message": "Booking deleted"}
