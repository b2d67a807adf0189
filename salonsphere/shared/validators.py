"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional

from .duration import get_duration_validation_message


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Dutch national numbers (06..., 020...) are rewritten to +31.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    cleaned = re.sub(r"[\s\-().]", "", phone)

    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]
    elif cleaned.startswith("0"):
        cleaned = "+31" + cleaned[1:]

    if not re.match(r"^\+[1-9]\d{7,14}$", cleaned):
        raise ValueError("Invalid phone number")

    return cleaned


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_duration_minutes(value: Optional[int]) -> Optional[int]:
    """Raise with the user-facing message when a duration is off the 15-minute grid"""
    if value is None:
        return value

    message = get_duration_validation_message(value)
    if message:
        raise ValueError(message)

    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
