"""Coach (nutritionist) registration, public profile and account management."""

import asyncio
import re
from typing import Any, Dict, List, Optional

from firebase_admin import auth as firebase_auth
from google.cloud import firestore

from models.database import NUTRITIONISTS, Database
from schemas.enums import UserType
from services.account_service import AccountService
from services.email_service import EmailService
from services.user_service import REMINDERS, create_feedback, list_reminders, replace_reminders
from utils.errors import Conflict, NotFound, ValidationFailed
from utils.helpers import full_name
from utils.logger import setup_logger

logger = setup_logger(__name__)

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^A-Za-z0-9]).{8,}$")

PUBLIC_PROFILE_FIELDS = (
    "firstName",
    "lastName",
    "phoneCountryCode",
    "phoneNumber",
    "yearsOfExperience",
    "specialization",
    "workplace",
    "shortBio",
    "profileImageUrl",
    "professionalCertificateUrl",
    "onboardingComplete",
)

EDITABLE_PROFILE_FIELDS = (
    "firstName",
    "lastName",
    "phoneCountryCode",
    "phoneNumber",
    "yearsOfExperience",
    "specialization",
    "workplace",
    "shortBio",
    "profileImageUrl",
    "professionalCertificateUrl",
)

REQUIRED_PROFILE_FIELDS = ("firstName", "lastName", "specialization")


def validate_registration(data: Dict[str, Any]) -> List[str]:
    errors = []
    for field in ("firstName", "lastName", "email", "specialization"):
        if not str(data.get(field) or "").strip():
            errors.append(f"{field} is required.")
    password = data.get("password") or ""
    if not PASSWORD_PATTERN.match(password):
        errors.append(
            "Password must be at least 8 characters and include upper and lower case letters, "
            "a number and a symbol."
        )
    if password != data.get("confirmPassword"):
        errors.append("Passwords do not match.")
    return errors


class ExpertService:
    def __init__(
        self,
        database: Database,
        email_service: Optional[EmailService] = None,
        accounts: Optional[AccountService] = None
    ):
        self.database = database
        self.email_service = email_service or EmailService()
        self.accounts = accounts or AccountService(database)

    async def register(self, data: Dict[str, Any]) -> str:
        """Create the Auth user and the unverified nutritionist document."""
        errors = validate_registration(data)
        if errors:
            raise ValidationFailed(errors)

        email = data["email"].strip().lower()
        first_name = data["firstName"].strip()
        last_name = data["lastName"].strip()

        try:
            record = await asyncio.to_thread(
                self.database.auth.create_user,
                email=email,
                password=data["password"],
                display_name=f"{first_name} {last_name}",
            )
        except firebase_auth.EmailAlreadyExistsError:
            raise Conflict("This email address is already registered.")
        except ValueError as e:
            raise ValidationFailed([str(e)])

        uid = record.uid
        profile = {
            "uid": uid,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "userType": UserType.PROFESSIONAL.value,
            "isVerified": False,
            "onboardingComplete": True,
            "clientIds": [],
            "averageRating": 0,
            "ratingCount": 0,
            "authDisabled": False,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        for field in EDITABLE_PROFILE_FIELDS:
            if field not in profile and data.get(field) not in (None, ""):
                profile[field] = data[field]

        try:
            await self.database.nutritionist(uid).set(profile)
        except Exception:
            # Do not leave an Auth user without its profile document
            await self.accounts.delete_auth_user(uid)
            raise

        logger.info(f"Registered nutritionist {uid}, awaiting verification")
        result = await self.email_service.send_coach_pending(email, full_name(profile, "Coach"))
        if not result.get("success"):
            logger.warning(f"Pending-application email to {email} failed: {result.get('error')}")
        return uid

    async def get_profile(self, uid: str) -> Dict[str, Any]:
        snap = await self.database.nutritionist(uid).get()
        if not snap.exists:
            raise NotFound("Coach profile not found.")
        data = snap.to_dict() or {}
        return {field: data.get(field) for field in PUBLIC_PROFILE_FIELDS}

    async def update_profile(self, uid: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        missing = [f for f in REQUIRED_PROFILE_FIELDS if not str(updates.get(f) or "").strip()]
        if missing:
            raise ValidationFailed([f"{field} is required." for field in missing])

        coach_ref = self.database.nutritionist(uid)
        if not (await coach_ref.get()).exists:
            raise NotFound("Coach profile not found.")

        data = {field: updates[field] for field in EDITABLE_PROFILE_FIELDS if field in updates}
        for field in REQUIRED_PROFILE_FIELDS:
            data[field] = str(data[field]).strip()
        data["updatedAt"] = firestore.SERVER_TIMESTAMP

        await coach_ref.set(data, merge=True)
        logger.info(f"Coach {uid} updated profile fields {sorted(data)}")
        return await self.get_profile(uid)

    async def get_reminders(self, uid: str) -> List[Dict[str, Any]]:
        return await list_reminders(self.database.nutritionist(uid).collection(REMINDERS))

    async def save_reminders(self, uid: str, reminders: List[Dict[str, Any]]) -> int:
        coach_ref = self.database.nutritionist(uid)
        if not (await coach_ref.get()).exists:
            raise NotFound("Coach profile not found.")
        return await replace_reminders(self.database, coach_ref.collection(REMINDERS), reminders)

    async def submit_feedback(self, uid: str, email: Optional[str], message: Any) -> str:
        return await create_feedback(self.database, uid, email, message, "Coach")

    async def delete_account(self, uid: str):
        await self.accounts.delete_account(uid, NUTRITIONISTS)
