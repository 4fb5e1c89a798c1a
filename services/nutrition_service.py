"""Daily nutrition targets from a user's profile."""

from numbers import Real
from typing import Any, Dict, Optional

from google.cloud import firestore

from models.database import AGGREGATES, Database
from services.notification_service import NotificationService
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.helpers import full_name, round_half_up
from utils.logger import setup_logger

logger = setup_logger(__name__)

MIN_DAILY_CALORIES = 1200
FAT_CALORIE_SHARE = 0.3
DEFAULT_ACTIVITY_FACTOR = 1.375

ACTIVITY_FACTORS = {
    "Mostly Sitting 🪑": 1.2,
    "Lightly Active 🚶": 1.375,
    "Active Lifestyle 🚴": 1.725,
    "Highly Active 💪": 1.9,
}

GOAL_CALORIE_ADJUSTMENTS = {
    "Losing Weight": -500,
    "Gaining Weight": 300,
}


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value > 0


def recommended_fiber(age: float, gender: str) -> Dict[str, int]:
    """Fiber range in grams by age band and gender."""
    female = str(gender).lower() == "female"
    if age >= 50:
        return {"min": 21, "max": 25, "recommended": 22} if female else {"min": 28, "max": 30, "recommended": 28}
    return {"min": 21, "max": 25, "recommended": 25} if female else {"min": 30, "max": 38, "recommended": 32}


def calculate_nutrition_plan(profile: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Mifflin-St Jeor based calorie and macro targets.

    ``profile`` needs ``weight`` (kg), ``height`` (cm), ``age``, ``gender``,
    ``activityLevel`` and ``goal``. Returns None when any of them is missing
    or invalid.
    """
    if not profile:
        return None
    weight, height, age = profile.get("weight"), profile.get("height"), profile.get("age")
    gender, activity, goal = profile.get("gender"), profile.get("activityLevel"), profile.get("goal")
    if not all(_is_positive_number(v) for v in (weight, height, age)) or not (gender and activity and goal):
        logger.warning(
            f"Cannot calculate nutrition plan: weight={weight}, height={height}, age={age}, "
            f"gender={gender}, activityLevel={activity}, goal={goal}"
        )
        return None

    bmr = 10 * weight + 6.25 * height - 5 * age
    bmr += 5 if str(gender).lower() == "male" else -161

    tdee = bmr * ACTIVITY_FACTORS.get(activity, DEFAULT_ACTIVITY_FACTOR)
    calories = max(tdee + GOAL_CALORIE_ADJUSTMENTS.get(goal, 0), MIN_DAILY_CALORIES)

    protein = round_half_up(weight * (1.8 if goal == "Gaining Weight" else 1.6))
    fat_calories = calories * FAT_CALORIE_SHARE
    fat = round_half_up(fat_calories / 9)
    carbs = round_half_up((calories - protein * 4 - fat_calories) / 4)

    return {
        "calories": round_half_up(calories),
        "protein": protein,
        "carbs": carbs,
        "fat": fat,
        "fiber": recommended_fiber(age, gender),
    }


class NutritionService:
    """Stored nutrition plans."""

    def __init__(self, database: Database, notifier: Optional[NotificationService] = None):
        self.database = database
        self.notifier = notifier

    async def save_plan(self, uid: str) -> Dict[str, Any]:
        """Compute the plan from the stored profile and save it on the user."""
        user_ref = self.database.user(uid)
        snap = await user_ref.get()
        if not snap.exists:
            raise NotFound("User not found")

        plan = calculate_nutrition_plan(snap.to_dict() or {})
        if plan is None:
            raise ValidationFailed(["Cannot calculate plan, user profile data is incomplete."])

        plan["fiberGoal"] = f"{plan['fiber']['min']}-{plan['fiber']['max']}g"
        await user_ref.update({
            "nutritionPlan": plan,
            "nutritionPlanLastUpdated": firestore.SERVER_TIMESTAMP,
        })
        await self.database.collection(AGGREGATES).document("globalCounts").set(
            {"totalPlansCreated": firestore.Increment(1)}, merge=True
        )
        logger.info(f"Saved nutrition plan for user {uid}: {plan['calories']} kcal")
        return plan

    async def get_plan(self, uid: str) -> Dict[str, Any]:
        snap = await self.database.user(uid).get()
        if not snap.exists:
            raise NotFound("User not found")
        plan = (snap.to_dict() or {}).get("nutritionPlan")
        if not plan:
            raise NotFound("Nutrition plan not yet calculated.")
        return plan

    async def set_plan_by_coach(self, coach_id: str, client_id: str, macros: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite a client's targets on behalf of their active coach."""
        user_ref = self.database.user(client_id)
        snap = await user_ref.get()
        if not snap.exists:
            raise NotFound("Client not found.")
        if (snap.to_dict() or {}).get("activeCoachId") != coach_id:
            raise Forbidden("You are not this client's active coach.")

        current = (snap.to_dict() or {}).get("nutritionPlan") or {}
        plan = {**current, **{k: v for k, v in macros.items() if v is not None}}
        if isinstance(plan.get("fiber"), (int, float)):
            # A single grams value becomes the recommended point of the stored range
            grams = round_half_up(plan["fiber"])
            previous = current.get("fiber") if isinstance(current.get("fiber"), dict) else {}
            plan["fiber"] = {
                "min": previous.get("min", grams),
                "max": previous.get("max", grams),
                "recommended": grams,
            }
        fiber = plan.get("fiber")
        if isinstance(fiber, dict) and "min" in fiber and "max" in fiber:
            plan["fiberGoal"] = f"{fiber['min']}-{fiber['max']}g"
        plan["updatedByCoach"] = coach_id

        await user_ref.update({
            "nutritionPlan": plan,
            "nutritionPlanLastUpdated": firestore.SERVER_TIMESTAMP,
        })
        logger.info(f"Coach {coach_id} updated the nutrition plan of client {client_id}")

        if self.notifier is not None:
            coach_snap = await self.database.nutritionist(coach_id).get()
            coach = coach_snap.to_dict() if coach_snap.exists else None
            await self.notifier.plan_updated(client_id, coach_id, full_name(coach, "your coach"))
        return plan
