"""Enums for document fields."""

from enum import Enum


class UserType(str, Enum):
    """Account type; each maps to its own collection."""
    PERSONAL = "Personal"
    PROFESSIONAL = "Professional"
    ADMIN = "Admin"


class RequestStatus(str, Enum):
    """Lifecycle of a coach request document."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    SELECTED = "selected"
    ENDED_BY_USER = "ended_by_user"
    ENDED_BY_COACH = "ended_by_coach"
    BLOCKED_BY_USER = "blocked_by_user"
    RATED = "rated"


# A user may hold at most one of these per coach
OPEN_REQUEST_STATUSES = [
    RequestStatus.PENDING.value,
    RequestStatus.ACCEPTED.value,
    RequestStatus.SELECTED.value,
]

RATEABLE_REQUEST_STATUSES = [
    RequestStatus.SELECTED.value,
    RequestStatus.ENDED_BY_USER.value,
    RequestStatus.ENDED_BY_COACH.value,
]


class MealType(str, Enum):
    """Meal slot of a logged meal."""
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class FeedbackStatus(str, Enum):
    """Admin triage status of a feedback entry."""
    NEW = "New"
    READ = "Read"
    ARCHIVED = "Archived"


class CaloriePeriod(str, Enum):
    """Range of the profile calorie chart."""
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"
