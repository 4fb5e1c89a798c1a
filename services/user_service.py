"""Personal user profile updates, reminders, feedback and account deletion."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.cloud import firestore

from models.database import FEEDBACKS, USERS, Database
from schemas.enums import FeedbackStatus
from services.account_service import AccountService
from utils.errors import NotFound, ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)

REMINDERS = "reminders"
MIN_FEEDBACK_LENGTH = 5

VALID_GOALS = ("Losing Weight", "Maintaining Weight", "Gaining Weight")
VALID_ACTIVITY_LEVELS = (
    "Mostly Sitting 🪑",
    "Lightly Active 🚶",
    "Moderately Active 🏃‍♂️",
    "Active Lifestyle 🚴",
    "Highly Active 💪",
)


def _millis_to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _datetime_to_millis(value: Any) -> Optional[int]:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return None


async def list_reminders(collection_ref) -> List[Dict[str, Any]]:
    reminders = []
    async for snap in collection_ref.order_by("time").stream():
        data = snap.to_dict() or {}
        reminders.append({
            "id": snap.id,
            "name": data.get("name"),
            "enabled": data.get("enabled") is True,
            "time": _datetime_to_millis(data.get("time")),
        })
    return reminders


async def replace_reminders(database: Database, collection_ref, reminders: List[Dict[str, Any]]) -> int:
    """Replace every reminder; entries without a numeric ``time`` (ms) are skipped."""
    batch = database.client.batch()
    async for snap in collection_ref.stream():
        batch.delete(snap.reference)

    added = 0
    for index, reminder in enumerate(reminders):
        when = _millis_to_datetime(reminder.get("time"))
        if when is None:
            logger.warning(f"Skipping reminder '{reminder.get('name')}' with invalid time")
            continue
        batch.set(collection_ref.document(), {
            "name": reminder.get("name") or f"Reminder {index + 1}",
            "enabled": reminder.get("enabled") is True,
            "time": when,
        })
        added += 1

    await batch.commit()
    return added


async def create_feedback(database: Database, uid: str, email: Optional[str], message: Any, user_type: str) -> str:
    if not isinstance(message, str) or len(message.strip()) < MIN_FEEDBACK_LENGTH:
        raise ValidationFailed([
            f"Message is required and must be at least {MIN_FEEDBACK_LENGTH} characters long."
        ])
    _, feedback_ref = await database.collection(FEEDBACKS).add({
        "message": message.strip(),
        "userId": uid,
        "userType": user_type,
        "senderEmail": email,
        "createdAt": firestore.SERVER_TIMESTAMP,
        "status": FeedbackStatus.NEW.value,
    })
    logger.info(f"{user_type} {uid} submitted feedback {feedback_ref.id}")
    return feedback_ref.id


def _optional_number(value: Any, cast=float):
    """Parsed number, or DELETE_FIELD for blank and unparsable input."""
    if value is None or value == "":
        return firestore.DELETE_FIELD
    try:
        return cast(value)
    except (TypeError, ValueError):
        return firestore.DELETE_FIELD


def _optional_text(value: Any):
    if value is None or not str(value).strip():
        return firestore.DELETE_FIELD
    return str(value).strip()


class UserService:
    def __init__(self, database: Database, accounts: Optional[AccountService] = None):
        self.database = database
        self.accounts = accounts or AccountService(database)

    async def get_user(self, uid: str) -> Dict[str, Any]:
        snap = await self.database.user(uid).get()
        if not snap.exists:
            raise NotFound("User not found")
        return snap.to_dict() or {}

    async def _update(self, uid: str, data: Dict[str, Any]):
        user_ref = self.database.user(uid)
        if not (await user_ref.get()).exists:
            raise NotFound("User not found.")
        await user_ref.update({**data, "updatedAt": firestore.SERVER_TIMESTAMP})
        logger.info(f"Updated user {uid}: {sorted(data)}")

    async def update_name(self, uid: str, first_name: str, last_name: str):
        first, last = (first_name or "").strip(), (last_name or "").strip()
        if not first or not last:
            raise ValidationFailed(["Required fields missing (firstName, lastName)."])
        await self._update(uid, {"firstName": first, "lastName": last})

    async def update_goal(self, uid: str, goal: str):
        if goal not in VALID_GOALS:
            raise ValidationFailed([f"Invalid goal selection. Choose one of: {', '.join(VALID_GOALS)}"])
        await self._update(uid, {"goal": goal})

    async def update_profile_details(self, uid: str, details: Dict[str, Any]):
        gender = details.get("gender")
        if not gender:
            raise ValidationFailed(["All profile detail fields are required."])
        data = {
            "gender": str(gender),
            "age": _optional_number(details.get("age"), int),
            "height": _optional_number(details.get("height")),
            "weight": _optional_number(details.get("weight")),
            "targetWeight": _optional_number(details.get("targetWeight")),
        }
        if details.get("isKg") is not None:
            data["isKg"] = bool(details["isKg"])
        await self._update(uid, data)

    async def update_transformation(self, uid: str, goals: List[str]):
        await self._update(uid, {"transformationGoals": goals})

    async def update_dietary_preferences(self, uid: str, preferences: List[str]):
        await self._update(uid, {"dietaryPreferences": preferences})

    async def update_activity_level(self, uid: str, activity_level: str):
        if activity_level not in VALID_ACTIVITY_LEVELS:
            raise ValidationFailed(["Invalid activity level selection"])
        await self._update(uid, {"activityLevel": activity_level})

    async def complete_onboarding(self, uid: str):
        await self._update(uid, {"onboardingComplete": True})

    async def update_full_profile(self, uid: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        missing = [f for f in ("firstName", "lastName", "goal", "gender", "activityLevel") if not profile.get(f)]
        if missing:
            raise ValidationFailed([f"Missing required field: {field}" for field in missing])

        data = {
            "firstName": str(profile["firstName"]).strip(),
            "lastName": str(profile["lastName"]).strip(),
            "goal": str(profile["goal"]),
            "gender": str(profile["gender"]),
            "activityLevel": str(profile["activityLevel"]),
            "age": _optional_number(profile.get("age"), int),
            "height": _optional_number(profile.get("height")),
            "weight": _optional_number(profile.get("weight")),
            "targetWeight": _optional_number(profile.get("targetWeight")),
            "transformationGoals": profile.get("transformationGoals") or [],
            "dietaryPreferences": profile.get("dietaryPreferences") or [],
            "otherGenderText": _optional_text(profile.get("otherGenderText")),
            "otherTransformationGoalText": _optional_text(profile.get("otherTransformationGoalText")),
            "otherDietaryPrefText": _optional_text(profile.get("otherDietaryPrefText")),
        }
        # None removes the picture; a missing key leaves it untouched
        if "profileImageUrl" in profile:
            image_url = profile["profileImageUrl"]
            if image_url is None:
                data["profileImageUrl"] = firestore.DELETE_FIELD
            elif isinstance(image_url, str) and image_url.startswith("http"):
                data["profileImageUrl"] = image_url

        await self._update(uid, data)
        return await self.get_user(uid)

    async def get_reminders(self, uid: str) -> List[Dict[str, Any]]:
        return await list_reminders(self.database.user(uid).collection(REMINDERS))

    async def save_reminders(self, uid: str, reminders: List[Dict[str, Any]]) -> int:
        added = await replace_reminders(self.database, self.database.user(uid).collection(REMINDERS), reminders)
        logger.info(f"Saved {added} reminders for user {uid}")
        return added

    async def submit_feedback(self, uid: str, email: Optional[str], message: Any) -> str:
        return await create_feedback(self.database, uid, email, message, "User")

    async def delete_account(self, uid: str):
        await self.accounts.delete_account(uid, USERS)
