"""Helper utility functions."""

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

COACH_PUBLIC_FIELDS = (
    "firstName",
    "lastName",
    "specialization",
    "profileImageUrl",
    "yearsOfExperience",
    "workplace",
    "shortBio",
    "averageRating",
    "ratingCount",
    "userType",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_date_string(value: Any) -> bool:
    """Check a YYYY-MM-DD string that is also a real calendar date."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def coach_public_details(coach_id: str, data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Project a nutritionist document onto the fields clients may see."""
    if data is None:
        return None
    details = {"id": coach_id}
    for field in COACH_PUBLIC_FIELDS:
        details[field] = data.get(field)
    details["averageRating"] = data.get("averageRating") or 0
    details["ratingCount"] = data.get("ratingCount") or 0
    details["userType"] = data.get("userType") or "Professional"
    return details


def user_public_details(user_id: str, data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Project a user document onto the fields a coach may see."""
    if data is None:
        return None
    return {
        "id": user_id,
        "firstName": data.get("firstName") or "",
        "lastName": data.get("lastName") or "",
        "profileImageUrl": data.get("profileImageUrl"),
        "goal": data.get("goal") or "Goal not specified",
        "userType": data.get("userType") or "Personal",
    }


def full_name(data: Optional[Dict[str, Any]], fallback: str = "Someone") -> str:
    if not data:
        return fallback
    name = f"{data.get('firstName') or ''} {data.get('lastName') or ''}".strip()
    return name or fallback


def round_half_up(value: float, digits: int = 0):
    """Round halves upward (5.5 -> 6, -2.5 -> -2, 4.25 -> 4.3)."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded
