"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, StaffSchedule, User


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def _base_query(db: Session, tenant_id: str):
        return (
            db.query(Booking)
            .options(joinedload(Booking.client), joinedload(Booking.service))
            .filter(Booking.tenant_id == tenant_id)
        )

    @staticmethod
    def get_bookings(db: Session, tenant_id: str) -> list[Booking]:
        return (
            BookingRepository._base_query(db, tenant_id)
            .order_by(Booking.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def get_bookings_by_date_range(
        db: Session, tenant_id: str, start: datetime, end: datetime
    ) -> list[Booking]:
        """Bookings starting within [start, end], chronological"""
        return (
            BookingRepository._base_query(db, tenant_id)
            .filter(and_(Booking.scheduled_at >= start, Booking.scheduled_at <= end))
            .order_by(Booking.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: str, tenant_id: str) -> Optional[Booking]:
        return (
            BookingRepository._base_query(db, tenant_id)
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_upcoming_bookings(
        db: Session, tenant_id: str, now: datetime, statuses: tuple, limit: int = 10
    ) -> list[Booking]:
        return (
            BookingRepository._base_query(db, tenant_id)
            .filter(
                and_(
                    Booking.scheduled_at >= now,
                    Booking.status.in_(statuses),
                )
            )
            .order_by(Booking.scheduled_at.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_page(
        db: Session,
        tenant_id: str,
        limit: int,
        cursor: Optional[datetime],
        direction: str,
        now: datetime,
    ) -> list[Booking]:
        """
        Up to ``limit`` bookings after (future) or before (past) the cursor,
        nearest first. Without a cursor the page starts at ``now``.
        """
        query = BookingRepository._base_query(db, tenant_id)
        anchor = cursor or now

        if direction == "past":
            query = query.filter(Booking.scheduled_at < anchor).order_by(
                Booking.scheduled_at.desc()
            )
        elif cursor:
            query = query.filter(Booking.scheduled_at > anchor).order_by(
                Booking.scheduled_at.asc()
            )
        else:
            query = query.filter(Booking.scheduled_at >= anchor).order_by(
                Booking.scheduled_at.asc()
            )

        return query.limit(limit).all()

    @staticmethod
    def get_staff_bookings_near(
        db: Session,
        tenant_id: str,
        staff_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> list[Booking]:
        """Non-cancelled bookings of a staff member starting before ``end``"""
        query = db.query(Booking).filter(
            Booking.tenant_id == tenant_id,
            Booking.staff_id == staff_id,
            Booking.scheduled_at < end,
            Booking.scheduled_at >= start,
        )
        query = query.filter(
            (Booking.status.is_(None)) | (Booking.status != "cancelled")
        )
        if exclude_id:
            query = query.filter(Booking.id != exclude_id)
        return query.all()

    @staticmethod
    def get_staff_schedules(
        db: Session, tenant_id: str, day_of_week: int, staff_id: Optional[str] = None
    ) -> list[StaffSchedule]:
        """Active schedules of active staff members for a weekday"""
        query = (
            db.query(StaffSchedule)
            .join(User, User.id == StaffSchedule.staff_id)
            .options(joinedload(StaffSchedule.staff))
            .filter(
                StaffSchedule.tenant_id == tenant_id,
                StaffSchedule.day_of_week == day_of_week,
                StaffSchedule.is_active.is_(True),
                User.active.is_(True),
            )
        )
        if staff_id:
            query = query.filter(StaffSchedule.staff_id == staff_id)
        return query.order_by(StaffSchedule.start_time.asc()).all()

    @staticmethod
    def create_booking(db: Session, tenant_id: str, **booking_data) -> Booking:
        booking = Booking(tenant_id=tenant_id, **booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Update a booking with provided fields"""
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.commit()
