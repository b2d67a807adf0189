"""
Duration validation utilities for treatment scheduling
All durations are in 15-minute increments
"""

import math
from typing import Optional

DURATION_INCREMENT = 15
MIN_DURATION = 15
DEFAULT_MAX_DURATION = 480


def round_to_nearest_15(value: float) -> int:
    """Round a duration to the nearest 15-minute increment (minimum 15)"""
    if value < MIN_DURATION:
        return MIN_DURATION
    # half-up, so 52.5 -> 60
    return int(math.floor(value / DURATION_INCREMENT + 0.5)) * DURATION_INCREMENT


def validate_duration(value: float) -> bool:
    """Check that a duration is a valid 15-minute increment"""
    return value >= MIN_DURATION and value % DURATION_INCREMENT == 0


def get_duration_validation_message(value: float) -> Optional[str]:
    """Return a user-facing message for an invalid duration, or None when valid"""
    if value < MIN_DURATION:
        return f"Minimale duur is {MIN_DURATION} minuten"

    if value % DURATION_INCREMENT != 0:
        rounded = round_to_nearest_15(value)
        return (
            f"Duur moet een veelvoud van {DURATION_INCREMENT} minuten zijn. "
            f"Voorgesteld: {rounded} minuten"
        )

    return None


def format_duration(minutes: int) -> str:
    """Format minutes as '45 min', '1u' or '1u 30min'"""
    if minutes < 60:
        return f"{minutes} min"

    hours, remaining_minutes = divmod(minutes, 60)

    if remaining_minutes == 0:
        return f"{hours}u"

    return f"{hours}u {remaining_minutes}min"


def generate_duration_options(max_minutes: int = DEFAULT_MAX_DURATION) -> list[tuple[int, str]]:
    """(value, label) pairs from 15 up to max_minutes in 15-minute steps"""
    return [
        (minutes, format_duration(minutes))
        for minutes in range(MIN_DURATION, int(max_minutes) + 1, DURATION_INCREMENT)
    ]
