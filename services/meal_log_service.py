"""Meal logging, daily totals and logging streaks."""

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from models.database import AGGREGATES, Database
from schemas.enums import MealType
from utils.errors import NotFound, ValidationFailed
from utils.helpers import is_date_string, utc_now
from utils.logger import setup_logger

logger = setup_logger(__name__)

DAILY_CONSUMPTION = "dailyConsumption"
STREAK_BADGE_DAYS = 7

# request field -> field under ``totals``
NUTRIENT_TOTALS = {
    "calories": "consumedCalories",
    "protein": "consumedProtein",
    "carbs": "consumedCarbs",
    "fat": "consumedFat",
    "fiber": "consumedFiber",
}

MEAL_TYPES = [meal.value for meal in MealType]

DEFAULT_PLAN = {
    "calories": 0,
    "protein": 0,
    "carbs": 0,
    "fat": 0,
    "fiber": {"recommended": 0, "min": 0, "max": 0},
    "fiberGoal": "0-0g",
    "goal": "",
}


@dataclass
class StreakUpdate:
    current_streak: int
    longest_streak: int
    just_achieved_7: bool


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_date_string(value):
        return date.fromisoformat(value)
    return None


def compute_streak(
    current: int,
    longest: int,
    last_day: Any,
    log_day: str,
    achieved_7_before: bool = False
) -> StreakUpdate:
    """Next streak values after logging a meal on ``log_day``.

    One day after the last streak day extends the streak, the same day keeps
    it (at least 1), and any other gap, including a date before the last
    streak day, starts over at 1.
    """
    last = _as_date(last_day)
    if last is None:
        streak = 1
    else:
        delta = (date.fromisoformat(log_day) - last).days
        if delta == 1:
            streak = current + 1
        elif delta == 0:
            streak = max(1, current)
        else:
            streak = 1

    return StreakUpdate(
        current_streak=streak,
        longest_streak=max(longest, streak),
        just_achieved_7=streak >= STREAK_BADGE_DAYS and not achieved_7_before,
    )


def validate_meal(payload: Dict[str, Any]) -> List[str]:
    """Return the list of validation errors of a meal log request."""
    errors = []
    if not payload.get("uid"):
        errors.append("User ID (uid) is required.")
    meal_type = payload.get("mealType")
    if not isinstance(meal_type, str) or meal_type.lower() not in MEAL_TYPES:
        errors.append(f"Meal type must be one of: {', '.join(MEAL_TYPES)}.")
    if not is_date_string(payload.get("date")):
        errors.append("Date must be in YYYY-MM-DD format.")
    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append("Meal title is required.")
    for field in NUTRIENT_TOTALS:
        value = payload.get(field, 0)
        if value is None:
            continue
        if isinstance(value, bool):
            errors.append(f"{field} must be a number.")
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            errors.append(f"{field} must be a number.")
            continue
        if not math.isfinite(number):
            errors.append(f"{field} must be a number.")
    return errors


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0
    number = float(value)
    return int(number) if number.is_integer() else number


class MealLogService:
    """Daily consumption documents and streak bookkeeping."""

    def __init__(self, database: Database):
        self.database = database

    def daily_ref(self, uid: str, date_string: str):
        return self.database.user(uid).collection(DAILY_CONSUMPTION).document(date_string)

    async def log_meal(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Add a meal to the day's totals and meal array in one transaction."""
        errors = validate_meal(payload)
        if errors:
            raise ValidationFailed(errors)

        uid = payload["uid"]
        meal_type = payload["mealType"].lower()
        date_string = payload["date"]
        nutrients = {field: _number(payload.get(field)) for field in NUTRIENT_TOTALS}

        entry = {
            # Server timestamps are not allowed inside arrays
            "logTimestamp": utc_now(),
            "source": payload.get("source") or "manual",
            "recipeId": payload.get("recipeId"),
            "title": payload["title"].strip(),
            **nutrients,
            "imageUrl": payload.get("imageUrl"),
        }

        user_ref = self.database.user(uid)
        daily_ref = self.daily_ref(uid, date_string)
        stats_ref = self.database.collection(AGGREGATES).document("dailyStats").collection("days").document(
            utc_now().strftime("%Y-%m-%d")
        )

        async def _log(transaction):
            user_snap = await user_ref.get(transaction=transaction)
            daily_snap = await daily_ref.get(transaction=transaction)
            is_first_meal = not (user_snap.exists and (user_snap.to_dict() or {}).get("firstMealLoggedAt"))

            if not daily_snap.exists:
                document = {
                    "dateString": date_string,
                    "totals": {total: nutrients[field] for field, total in NUTRIENT_TOTALS.items()},
                }
                for slot in MEAL_TYPES:
                    document[slot] = [entry] if slot == meal_type else []
                transaction.set(daily_ref, document)
            else:
                update = {
                    f"totals.{total}": firestore.Increment(nutrients[field])
                    for field, total in NUTRIENT_TOTALS.items()
                }
                update[meal_type] = firestore.ArrayUnion([entry])
                transaction.update(daily_ref, update)

            if is_first_meal:
                transaction.set(user_ref, {"firstMealLoggedAt": firestore.SERVER_TIMESTAMP}, merge=True)
            transaction.set(stats_ref, {"mealsLogged": firestore.Increment(1)}, merge=True)
            return is_first_meal

        is_first_meal = await self.database.run_transaction(_log)
        logger.info(f"Logged {meal_type} '{entry['title']}' for user {uid} on {date_string}")
        return {"message": "Meal logged successfully", "isFirstMeal": is_first_meal}

    async def get_daily_data(self, uid: str, date_string: str) -> Dict[str, Any]:
        if not is_date_string(date_string):
            raise ValidationFailed(["Valid User ID and Date (YYYY-MM-DD) parameters are required."])

        user_snap = await self.database.user(uid).get()
        if not user_snap.exists:
            raise NotFound("User not found")
        user = user_snap.to_dict() or {}

        plan = {**DEFAULT_PLAN, **(user.get("nutritionPlan") or {})}
        plan["fiber"] = {**DEFAULT_PLAN["fiber"], **(plan.get("fiber") or {})}

        daily_snap = await self.daily_ref(uid, date_string).get()
        totals = ((daily_snap.to_dict() or {}).get("totals") or {}) if daily_snap.exists else {}
        consumed = {field: totals.get(total) or 0 for field, total in NUTRIENT_TOTALS.items()}

        return {
            "success": True,
            "nutritionPlan": plan,
            "consumedTotals": consumed,
            "streak": user.get("currentStreak") or 0,
            "longestStreak": user.get("longestStreak") or 0,
            "lastStreakDayLogged": user.get("lastStreakDayLogged"),
        }

    async def update_streak(self, uid: str, log_day: str) -> Dict[str, Any]:
        if not uid or not is_date_string(log_day):
            raise ValidationFailed(["User ID and valid meal log date (YYYY-MM-DD) are required."])

        user_ref = self.database.user(uid)

        async def _update(transaction):
            snap = await user_ref.get(transaction=transaction)
            user = (snap.to_dict() or {}) if snap.exists else {}
            if not snap.exists:
                logger.warning(f"User document {uid} not found, starting a new streak")

            update = compute_streak(
                int(user.get("currentStreak") or 0),
                int(user.get("longestStreak") or 0),
                user.get("lastStreakDayLogged"),
                log_day,
                user.get("achievedStreak7") is True,
            )
            data = {
                "currentStreak": update.current_streak,
                "lastStreakDayLogged": log_day,
                "longestStreak": update.longest_streak,
            }
            if update.just_achieved_7:
                data["achievedStreak7"] = True
            transaction.set(user_ref, data, merge=True)
            return update

        update = await self.database.run_transaction(_update)
        logger.info(f"Streak for user {uid} is now {update.current_streak} (log day {log_day})")
        return {
            "message": "Streak updated successfully.",
            "currentStreak": update.current_streak,
            "longestStreak": update.longest_streak,
            "achieved7DayStreak": update.just_achieved_7,
        }
