"""Personal user profile, reminders, feedback and account routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_user_service, require_auth
from schemas.user import (
    ActivityLevelUpdate,
    DietaryPreferencesUpdate,
    FeedbackRequest,
    FullProfileUpdate,
    GoalUpdate,
    NameUpdate,
    ProfileDetailsUpdate,
    RemindersUpdate,
    TransformationUpdate,
)
from services.user_service import UserService
from utils.errors import ensure_owner, raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile/{uid}")
async def get_user_profile(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        ensure_owner(user["uid"], uid)
        return await user_service.get_user(uid)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch user profile", e)


@router.put("/profile/{uid}")
async def update_full_profile(
    uid: str,
    request: FullProfileUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    """Replace the editable profile fields in one request."""
    try:
        ensure_owner(user["uid"], uid)
        updated = await user_service.update_full_profile(uid, request.model_dump(exclude_unset=True))
        return {"message": "Profile updated successfully!", "user": updated}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update profile", e)


@router.patch("/profile")
async def update_name(
    request: NameUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_name(user["uid"], request.firstName, request.lastName)
        return {"message": "Profile name updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update profile name", e)


@router.patch("/goal")
async def update_goal(
    request: GoalUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_goal(user["uid"], request.goal)
        return {"message": "Goal updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update goal", e)


@router.patch("/profile-details")
async def update_profile_details(
    request: ProfileDetailsUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_profile_details(user["uid"], request.model_dump())
        return {"message": "Profile details updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update profile details", e)


@router.patch("/transformation")
async def update_transformation(
    request: TransformationUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_transformation(user["uid"], request.transformationGoals)
        return {"message": "Transformation goals updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update transformation goals", e)


@router.patch("/dietary-preferences")
async def update_dietary_preferences(
    request: DietaryPreferencesUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_dietary_preferences(user["uid"], request.dietaryPreferences)
        return {"message": "Dietary preferences updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update dietary preferences", e)


@router.patch("/activity-level")
async def update_activity_level(
    request: ActivityLevelUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        await user_service.update_activity_level(user["uid"], request.activityLevel)
        return {"message": "Activity level updated successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update activity level", e)


@router.patch("/{userId}/complete-onboarding")
async def complete_onboarding(
    userId: str,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        ensure_owner(user["uid"], userId)
        await user_service.complete_onboarding(userId)
        return {"message": "Onboarding marked as complete."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "complete onboarding", e)


@router.get("/{uid}/reminders")
async def get_reminders(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        ensure_owner(user["uid"], uid)
        return {"reminders": await user_service.get_reminders(uid)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch reminders", e)


@router.put("/{uid}/reminders")
async def save_reminders(
    uid: str,
    request: RemindersUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        ensure_owner(user["uid"], uid)
        saved = await user_service.save_reminders(uid, [r.model_dump() for r in request.reminders])
        return {"message": "Reminders saved successfully.", "count": saved}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save reminders", e)


@router.post("/feedback", status_code=201)
async def submit_feedback(
    request: FeedbackRequest,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    try:
        feedback_id = await user_service.submit_feedback(user["uid"], user.get("email"), request.message)
        return {"message": "Feedback submitted successfully!", "feedbackId": feedback_id}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "submit feedback", e)


@router.delete("/{uid}")
async def delete_account(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    user_service: UserService = Depends(get_user_service)
):
    """Delete the caller's account and everything stored under it."""
    try:
        ensure_owner(user["uid"], uid, "Forbidden: You can only delete your own account.")
        await user_service.delete_account(uid)
        return {"message": "Account and associated data deleted successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "delete account", e)
