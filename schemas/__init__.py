"""Request schemas and enums grouped by API area."""

from schemas.enums import (
    CaloriePeriod,
    FeedbackStatus,
    MealType,
    RequestStatus,
    UserType,
)

__all__ = [
    "CaloriePeriod",
    "FeedbackStatus",
    "MealType",
    "RequestStatus",
    "UserType",
]
