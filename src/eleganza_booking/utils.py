"""Shared utilities used across the booking engine."""

import math
import re


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("5555 1234")
        '55551234'
        >>> normalize_phone("+502 (5555) 1234")
        '+50255551234'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def slots_needed(duration_minutes: int, slot_minutes: int) -> int:
    """Number of whole slots a duration occupies, rounding partial slots up.

    Examples:
        >>> slots_needed(40, 30)
        2
        >>> slots_needed(0, 30)
        0
    """
    if duration_minutes <= 0:
        return 0
    return math.ceil(duration_minutes / slot_minutes)
