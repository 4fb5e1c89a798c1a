"""Coach-authored weekly nutrition programs.

A client's program lives in ``users/{clientId}/nutritional_program``: the
``activePlan`` document carries the general guidance and one document per
weekday carries that day's workout, meal slots and completion flag.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore
from pydantic import ValidationError

from models.database import Database
from schemas.nutrition_program import ProgramDay
from services.coaching_service import CoachingService
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)

PROGRAM_COLLECTION = "nutritional_program"
GENERAL_DOC = "activePlan"

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MEAL_TIMES = ["Breakfast", "Lunch", "Dinner", "Snack"]
MEAL_FIELDS = ("food", "quantity", "unit", "prepNotes", "timing", "alternatives")

DEFAULT_WATER_INTAKE = "2.5"
DEFAULT_SLEEP = "7-9 hours"


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def build_meal(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    data = data or {}
    return {field: _text(data.get(field)) for field in MEAL_FIELDS}


def build_day(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """A stored day with every meal slot filled in."""
    data = data or {}
    meals = data.get("meals") or {}
    return {
        "dailyWorkout": _text(data.get("dailyWorkout")),
        "meals": {meal: build_meal(meals.get(meal)) for meal in MEAL_TIMES},
        "completed": bool(data.get("completed", False)),
        "clientLastUpdatedAt": data.get("clientLastUpdatedAt"),
        "coachLastUpdatedAt": data.get("coachLastUpdatedAt"),
        "coachLastUpdatedBy": data.get("coachLastUpdatedBy"),
    }


def build_general(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    data = data or {}
    return {
        "generalNotes": _text(data.get("generalNotes")),
        "waterIntake": _text(data.get("waterIntake"), DEFAULT_WATER_INTAKE),
        "sleepRecommendation": _text(data.get("sleepRecommendation"), DEFAULT_SLEEP),
        "lastUpdatedAt": data.get("coachLastUpdatedAt"),
        "lastUpdatedBy": data.get("coachLastUpdatedBy"),
    }


def require_weekday(day: Any) -> str:
    if day not in DAYS_OF_WEEK:
        raise ValidationFailed([f"Invalid day name: {day}. Expected one of: {', '.join(DAYS_OF_WEEK)}."])
    return day


class NutritionProgramService:
    """Weekly programs that a coach writes and a client follows."""

    def __init__(self, database: Database, coaching: CoachingService):
        self.database = database
        self.coaching = coaching

    def program_ref(self, client_id: str):
        return self.database.user(client_id).collection(PROGRAM_COLLECTION)

    async def _require_reader(self, requester_id: str, client_id: str):
        """The client or the client's active coach."""
        if requester_id == client_id:
            if not (await self.database.user(client_id).get()).exists:
                raise NotFound("Client not found.")
            return
        await self.coaching.require_active_client(requester_id, client_id)

    async def get_summary(self, requester_id: str, client_id: str) -> Dict[str, Any]:
        """General guidance plus the weekdays that already have a plan."""
        await self._require_reader(requester_id, client_id)
        general: Dict[str, Any] = {}
        defined: List[str] = []
        async for snap in self.program_ref(client_id).stream():
            if snap.id == GENERAL_DOC:
                general = snap.to_dict() or {}
            elif snap.id in DAYS_OF_WEEK:
                defined.append(snap.id)
        defined.sort(key=DAYS_OF_WEEK.index)
        return {**build_general(general), "definedDays": defined}

    async def get_day(self, requester_id: str, client_id: str, day: str) -> Dict[str, Any]:
        require_weekday(day)
        await self._require_reader(requester_id, client_id)
        general_snap = await self.program_ref(client_id).document(GENERAL_DOC).get()
        day_snap = await self.program_ref(client_id).document(day).get()
        return {
            **build_general(general_snap.to_dict() if general_snap.exists else None),
            "dayName": day,
            "dayData": build_day(day_snap.to_dict() if day_snap.exists else None),
        }

    async def get_program(self, requester_id: str, client_id: str) -> Dict[str, Any]:
        """Full week, with defaults for days the coach has not written yet."""
        await self._require_reader(requester_id, client_id)
        general_snap = await self.program_ref(client_id).document(GENERAL_DOC).get()
        weekly = {}
        for day in DAYS_OF_WEEK:
            snap = await self.program_ref(client_id).document(day).get()
            weekly[day] = build_day(snap.to_dict() if snap.exists else None)
        return {
            **build_general(general_snap.to_dict() if general_snap.exists else None),
            "weeklyPlan": weekly,
        }

    async def save_day(self, coach_id: str, client_id: str, payload: Dict[str, Any]) -> str:
        """Store the general guidance and the selected day in one batch."""
        day = require_weekday(payload.get("selectedDay"))
        received = (payload.get("weeklyPlan") or {}).get(day)
        if not isinstance(received, dict):
            raise ValidationFailed([f"Data for {day} is missing or invalid."])
        try:
            day_data = ProgramDay.model_validate(received)
        except ValidationError as e:
            raise ValidationFailed([f"{day}: {error['msg']}" for error in e.errors()])

        await self.coaching.require_active_client(coach_id, client_id)

        general = {
            "generalNotes": _text(payload.get("generalNotes")),
            "waterIntake": _text(payload.get("waterIntake"), DEFAULT_WATER_INTAKE),
            "sleepRecommendation": _text(payload.get("sleepRecommendation"), DEFAULT_SLEEP),
            "coachLastUpdatedAt": firestore.SERVER_TIMESTAMP,
            "coachLastUpdatedBy": coach_id,
        }
        meals = {name: meal.model_dump() for name, meal in day_data.meals.items()}
        day_doc = {
            "dailyWorkout": _text(day_data.dailyWorkout),
            "meals": {meal: build_meal(meals.get(meal)) for meal in MEAL_TIMES},
            "coachLastUpdatedAt": firestore.SERVER_TIMESTAMP,
            "coachLastUpdatedBy": coach_id,
        }

        batch = self.database.client.batch()
        batch.set(self.program_ref(client_id).document(GENERAL_DOC), general, merge=True)
        batch.set(self.program_ref(client_id).document(day), day_doc, merge=True)
        await batch.commit()
        logger.info(f"Coach {coach_id} saved {day} of the program of client {client_id}")
        return day

    async def set_day_completed(self, requester_id: str, client_id: str, day: str, completed: bool):
        """Only the client marks their own days."""
        if requester_id != client_id:
            raise Forbidden("Forbidden: Only the client can update completion.")
        require_weekday(day)
        day_ref = self.program_ref(client_id).document(day)
        if not (await day_ref.get()).exists:
            raise NotFound(f"Plan for {day} not created yet.")
        await day_ref.update({
            "completed": completed,
            "clientLastUpdatedAt": firestore.SERVER_TIMESTAMP,
        })
        logger.info(f"Client {client_id} marked {day} completed={completed}")
