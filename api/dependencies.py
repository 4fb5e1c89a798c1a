"""Request dependencies: Firebase handle, authentication and services."""

import asyncio
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request

from models.database import Database
from services.account_service import AccountService
from services.admin_service import AdminService
from services.auth_service import AuthService
from services.coaching_service import CoachingService
from services.email_service import EmailService
from services.expert_service import ExpertService
from services.food_service import FoodService
from services.meal_log_service import MealLogService
from services.message_service import MessageService
from services.notification_service import NotificationService
from services.nutrition_program_service import NutritionProgramService
from services.nutrition_service import NutritionService
from services.profile_service import ProfileService
from services.recipe_service import RecipeService
from services.user_service import UserService
from utils.errors import Forbidden, Unauthorized
from utils.logger import setup_logger

logger = setup_logger(__name__)


def get_database(request: Request) -> Database:
    """Return the Firebase handle built at startup, or fail with 500."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        logger.error("Firebase handle requested before initialization")
        raise HTTPException(
            status_code=500,
            detail="Server configuration error. Please try again later."
        )
    return database


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Unauthorized: Missing or improperly formatted token.")
    token = authorization.split("Bearer ", 1)[1].strip()
    if not token:
        raise Unauthorized("Unauthorized: Missing or improperly formatted token.")
    return token


async def verify_token(database: Database, token: str) -> Dict[str, Any]:
    try:
        return await asyncio.to_thread(database.auth.verify_id_token, token)
    except Exception as e:
        logger.warning(f"ID token verification failed: {e}")
        raise Unauthorized("Unauthorized: Invalid or expired token.")


async def require_auth(
    authorization: Optional[str] = Header(None),
    database: Database = Depends(get_database),
) -> Dict[str, Any]:
    """Decoded Firebase ID token of the caller."""
    token = extract_bearer_token(authorization)
    return await verify_token(database, token)


async def require_admin(user: Dict[str, Any] = Depends(require_auth)) -> Dict[str, Any]:
    """Decoded token of a caller holding the ``admin`` custom claim."""
    if user.get("admin") is not True:
        logger.warning(f"Admin access denied for uid {user.get('uid')}")
        raise Forbidden("Forbidden: Admin privileges required.")
    return user


def get_email_service() -> EmailService:
    return EmailService()


def get_notification_service(database: Database = Depends(get_database)) -> NotificationService:
    return NotificationService(database)


def get_account_service(database: Database = Depends(get_database)) -> AccountService:
    return AccountService(database)


def get_auth_service(database: Database = Depends(get_database)) -> AuthService:
    return AuthService(database)


def get_user_service(
    database: Database = Depends(get_database),
    accounts: AccountService = Depends(get_account_service),
) -> UserService:
    return UserService(database, accounts)


def get_expert_service(
    database: Database = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
    accounts: AccountService = Depends(get_account_service),
) -> ExpertService:
    return ExpertService(database, email_service, accounts)


def get_profile_service(database: Database = Depends(get_database)) -> ProfileService:
    return ProfileService(database)


def get_nutrition_service(
    database: Database = Depends(get_database),
    notifier: NotificationService = Depends(get_notification_service),
) -> NutritionService:
    return NutritionService(database, notifier)


def get_meal_log_service(database: Database = Depends(get_database)) -> MealLogService:
    return MealLogService(database)


def get_coaching_service(
    database: Database = Depends(get_database),
    notifier: NotificationService = Depends(get_notification_service),
) -> CoachingService:
    return CoachingService(database, notifier)


def get_message_service(
    database: Database = Depends(get_database),
    notifier: NotificationService = Depends(get_notification_service),
) -> MessageService:
    return MessageService(database, notifier)


def get_admin_service(
    database: Database = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
    accounts: AccountService = Depends(get_account_service),
) -> AdminService:
    return AdminService(database, email_service, accounts)


def get_recipe_service(database: Database = Depends(get_database)) -> RecipeService:
    return RecipeService(database)


def get_food_service(database: Database = Depends(get_database)) -> FoodService:
    return FoodService(database)


def get_nutrition_program_service(
    database: Database = Depends(get_database),
    coaching: CoachingService = Depends(get_coaching_service),
) -> NutritionProgramService:
    return NutritionProgramService(database, coaching)
