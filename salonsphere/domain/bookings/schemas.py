"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import to_naive_utc, validate_duration_minutes
from .status import BOOKING_STATUSES


def _check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in BOOKING_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(BOOKING_STATUSES)}")
    return value


class BookingCreate(BaseModel):
    """Schema for creating a booking; duration defaults to the service's"""

    client_id: str
    service_id: str
    staff_id: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: Optional[int] = None
    status: Optional[str] = "scheduled"
    is_paid: bool = False
    notes: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def check_scheduled_at(cls, v):
        return to_naive_utc(v)

    @field_validator("duration_minutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _check_status(v)


class BookingUpdate(BaseModel):
    """Schema for updating or rescheduling a booking"""

    client_id: Optional[str] = None
    service_id: Optional[str] = None
    staff_id: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: Optional[str] = None
    is_paid: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def check_scheduled_at(cls, v):
        return to_naive_utc(v)

    @field_validator("duration_minutes")
    @classmethod
    def check_duration(cls, v):
        return validate_duration_minutes(v)

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        return _check_status(v)


class BookingResponse(BaseModel):
    """Booking with its effective status and display names"""

    id: str
    client_id: str
    service_id: str
    staff_id: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: Optional[str] = None
    is_paid: bool = False
    notes: Optional[str] = None
    client_name: Optional[str] = None
    service_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingPage(BaseModel):
    items: list[BookingResponse]
    has_more: bool
    next_cursor: Optional[datetime] = None


class AvailableSlot(BaseModel):
    """A bookable start time for one staff member"""

    day: date
    time: str
    available: bool
    staff_id: str
    staff_name: Optional[str] = None
