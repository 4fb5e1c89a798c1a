"""Account registration and login resolution."""

import asyncio
from typing import Any, Dict, Optional, Tuple

from firebase_admin import auth as firebase_auth
from google.cloud import firestore

from models.database import ADMINS, NUTRITIONISTS, USERS, Database
from schemas.enums import UserType
from utils.errors import Conflict, Forbidden, NotFound, ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)

PENDING_VERIFICATION = "ACCOUNT_PENDING_VERIFICATION"

USER_TYPE_COLLECTIONS = {
    UserType.PERSONAL: USERS,
    UserType.PROFESSIONAL: NUTRITIONISTS,
    UserType.ADMIN: ADMINS,
}

# Lookup order for an authenticated uid
LOGIN_LOOKUP = (
    (ADMINS, UserType.ADMIN),
    (NUTRITIONISTS, UserType.PROFESSIONAL),
    (USERS, UserType.PERSONAL),
)


def build_login_profile(uid: str, token: Dict[str, Any], data: Dict[str, Any], user_type: str) -> Dict[str, Any]:
    """Profile returned to the client after a successful login."""
    is_admin = token.get("admin") is True or (
        user_type == UserType.ADMIN.value and data.get("isAdmin") is True
    )
    return {
        **data,
        "uid": uid,
        "email": token.get("email") or data.get("email"),
        "userType": user_type,
        "admin": is_admin,
        "onboardingComplete": data.get("onboardingComplete") is True,
        "activeCoachId": data.get("activeCoachId") if user_type == UserType.PERSONAL.value else None,
    }


class AuthService:
    def __init__(self, database: Database):
        self.database = database

    async def find_profile(self, uid: str) -> Optional[Tuple[str, str, Dict[str, Any]]]:
        """``(collection, userType, data)`` of the first collection holding ``uid``."""
        for collection, user_type in LOGIN_LOOKUP:
            snap = await self.database.collection(collection).document(uid).get()
            if snap.exists:
                data = snap.to_dict() or {}
                return collection, data.get("userType") or user_type.value, data
        return None

    async def register(
        self,
        email: str,
        password: str,
        user_type: UserType,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> str:
        collection = USER_TYPE_COLLECTIONS[user_type]

        existing = self.database.collection(collection).where("email", "==", email).limit(1)
        async for _ in existing.stream():
            raise Conflict(f"Email already associated with a {user_type.value} account.")

        try:
            record = await asyncio.to_thread(
                self.database.auth.create_user, email=email, password=password
            )
        except firebase_auth.EmailAlreadyExistsError:
            raise Conflict("Email already registered.")
        except ValueError as e:
            raise ValidationFailed([str(e)])

        uid = record.uid
        if user_type == UserType.ADMIN:
            await asyncio.to_thread(self.database.auth.set_custom_user_claims, uid, {"admin": True})

        profile: Dict[str, Any] = {
            "uid": uid,
            "email": email,
            "userType": user_type.value,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "onboardingComplete": False,
            "profileImageUrl": None,
            "authDisabled": False,
        }
        if first_name:
            profile["firstName"] = first_name.strip()
        if last_name:
            profile["lastName"] = last_name.strip()
        if user_type == UserType.PROFESSIONAL:
            profile["isVerified"] = False
            profile["clientIds"] = []
        elif user_type == UserType.ADMIN:
            profile["isAdmin"] = True

        await self.database.collection(collection).document(uid).set(profile)
        logger.info(f"Registered {user_type.value} account {uid} in '{collection}'")
        return uid

    async def login(self, token: Dict[str, Any]) -> Dict[str, Any]:
        uid = token["uid"]
        found = await self.find_profile(uid)
        if found is None:
            logger.error(f"Verified uid {uid} has no profile document")
            raise NotFound("User profile data not found. Please complete registration or contact support.")

        _, user_type, data = found
        if user_type == UserType.PROFESSIONAL.value and data.get("isVerified") is not True:
            logger.info(f"Login attempt by unverified professional {uid}")
            raise Forbidden(
                "Your account is awaiting verification. Please check back later or contact support.",
                code=PENDING_VERIFICATION,
            )
        return build_login_profile(uid, token, data, user_type)

    async def social_auth(
        self,
        token: Dict[str, Any],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """Log in a social account, creating a Personal profile on first sign-in."""
        uid = token["uid"]
        email = token.get("email")
        if not email:
            raise ValidationFailed(["Email not provided in token."])

        found = await self.find_profile(uid)
        if found is None:
            data: Dict[str, Any] = {
                "uid": uid,
                "email": email,
                "userType": UserType.PERSONAL.value,
                "onboardingComplete": False,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "profileImageUrl": token.get("picture"),
                "authDisabled": False,
            }
            if first_name:
                data["firstName"] = first_name.strip()
            if last_name:
                data["lastName"] = last_name.strip()
            await self.database.user(uid).set(data)
            logger.info(f"Created Personal profile for first social sign-in {uid}")
            return build_login_profile(uid, token, data, UserType.PERSONAL.value), True

        collection, user_type, data = found
        if user_type == UserType.PROFESSIONAL.value and data.get("isVerified") is not True:
            raise Forbidden("Your account is awaiting verification.", code=PENDING_VERIFICATION)

        picture = token.get("picture")
        if picture and not data.get("profileImageUrl"):
            await self.database.collection(collection).document(uid).update({"profileImageUrl": picture})
            data["profileImageUrl"] = picture
        return build_login_profile(uid, token, data, user_type), False
