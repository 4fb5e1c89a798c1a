"""Profile summary, weight log and calorie history charts."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from models.database import Database
from schemas.enums import CaloriePeriod, UserType
from services.meal_log_service import DAILY_CONSUMPTION
from utils.errors import NotFound, ValidationFailed
from utils.helpers import is_date_string, round_half_up, utc_now
from utils.logger import setup_logger

logger = setup_logger(__name__)

WEIGHT_HISTORY = "weightHistory"
MAX_WEIGHT_KG = 500
MONTH_WEEKS = 4
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _months_back(day: date, months: int) -> date:
    """First day of the month ``months`` before ``day``'s month."""
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


def period_start(period: CaloriePeriod, today: date) -> date:
    if period == CaloriePeriod.WEEK:
        return today - timedelta(days=6)
    if period == CaloriePeriod.MONTH:
        return today - timedelta(days=MONTH_WEEKS * 7 - 1)
    return _months_back(today, 11)


def build_calorie_chart(period: CaloriePeriod, daily_totals: Dict[str, float], today: date) -> Dict[str, Any]:
    """Chart data from a ``YYYY-MM-DD -> calories`` mapping.

    Week: one point per day for the last 7 days.
    Month: four weekly averages, ``W4`` being the 7 days ending today.
    Year: average calories per logged day for each of the last 12 months.
    """
    labels: List[str] = []
    points: List[int] = []

    if period == CaloriePeriod.WEEK:
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            labels.append(WEEKDAY_LABELS[day.weekday()])
            points.append(round_half_up(daily_totals.get(day.isoformat(), 0)))

    elif period == CaloriePeriod.MONTH:
        for week in range(1, MONTH_WEEKS + 1):
            last_offset = (MONTH_WEEKS - week) * 7
            total = sum(
                daily_totals.get((today - timedelta(days=last_offset + i)).isoformat(), 0)
                for i in range(7)
            )
            labels.append(f"W{week}")
            points.append(round_half_up(total / 7))

    else:
        for months_ago in range(11, -1, -1):
            month = _months_back(today, months_ago)
            prefix = month.strftime("%Y-%m")
            values = [v for k, v in daily_totals.items() if k.startswith(prefix)]
            labels.append(MONTH_LABELS[month.month - 1])
            points.append(round_half_up(sum(values) / len(values)) if values else 0)

    return {"labels": labels, "datasets": [{"data": points}]}


class ProfileService:
    def __init__(self, database: Database):
        self.database = database

    async def get_profile(self, uid: str) -> Dict[str, Any]:
        """Caller's profile from ``users``, falling back to ``nutritionists``."""
        snap = await self.database.user(uid).get()
        user_type = UserType.PERSONAL.value
        if not snap.exists:
            snap = await self.database.nutritionist(uid).get()
            user_type = UserType.PROFESSIONAL.value
            if not snap.exists:
                raise NotFound("User profile not found.")

        data = snap.to_dict() or {}
        profile = {
            "uid": uid,
            "email": data.get("email") or "",
            "firstName": data.get("firstName") or "",
            "lastName": data.get("lastName") or "",
            "weight": data.get("weight") or 0,
            "height": data.get("height") or 0,
            "startWeight": data.get("startWeight") or data.get("weight") or 0,
            "targetWeight": data.get("targetWeight") or 0,
            "goal": data.get("goal") or "",
            "activityLevel": data.get("activityLevel") or "",
            "dietaryPreferences": data.get("dietaryPreferences") or [],
            "userType": data.get("userType") or user_type,
            "onboardingComplete": data.get("onboardingComplete") is True,
        }
        if user_type == UserType.PROFESSIONAL.value:
            profile["specialization"] = data.get("specialization")
            profile["workplace"] = data.get("workplace")
            profile["yearsOfExperience"] = data.get("yearsOfExperience")
        return profile

    async def log_weight(self, uid: str, weight: Any, day: Any):
        errors = []
        if not is_date_string(day):
            errors.append("Valid Date (YYYY-MM-DD) required.")
        try:
            value = float(weight)
        except (TypeError, ValueError):
            value = None
        if value is None or not 0 < value <= MAX_WEIGHT_KG:
            errors.append(f"Valid positive weight required (0-{MAX_WEIGHT_KG}).")
        if errors:
            raise ValidationFailed(errors)

        user_ref = self.database.user(uid)
        entry_ref = user_ref.collection(WEIGHT_HISTORY).document(day)

        async def _log(transaction):
            snap = await user_ref.get(transaction=transaction)
            start_weight = (snap.to_dict() or {}).get("startWeight") if snap.exists else None

            transaction.set(entry_ref, {"weight": value, "logTimestamp": firestore.SERVER_TIMESTAMP})
            update: Dict[str, Any] = {"weight": value}
            if not start_weight:
                update["startWeight"] = value
            transaction.set(user_ref, update, merge=True)

        await self.database.run_transaction(_log)
        logger.info(f"Logged weight {value}kg for user {uid} on {day}")

    async def get_calorie_history(self, uid: str, period: CaloriePeriod, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or utc_now().date()
        start = period_start(period, today)

        query = self.database.user(uid).collection(DAILY_CONSUMPTION).where(
            "dateString", ">=", start.isoformat()
        ).where("dateString", "<=", today.isoformat())

        daily_totals: Dict[str, float] = {}
        async for snap in query.stream():
            data = snap.to_dict() or {}
            day = data.get("dateString") or snap.id
            calories = (data.get("totals") or {}).get("consumedCalories") or 0
            daily_totals[day] = float(calories)

        logger.info(f"Calorie history for {uid} ({period.value}): {len(daily_totals)} logged days")
        return build_calorie_chart(period, daily_totals, today)
