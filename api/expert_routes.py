"""Coach registration, profile and account routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_expert_service, require_auth
from schemas.expert import ExpertProfileUpdate, ExpertRegistration
from schemas.user import FeedbackRequest, RemindersUpdate
from services.expert_service import ExpertService
from utils.errors import ensure_owner, raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/expert", tags=["expert"])


@router.post("/register", status_code=201)
async def register_nutritionist(
    request: ExpertRegistration,
    expert_service: ExpertService = Depends(get_expert_service)
):
    """Submit a coach application; the account stays unverified until approved."""
    try:
        uid = await expert_service.register(request.model_dump())
        return {
            "message": "Nutritionist registration successful! Your application is under review.",
            "userId": uid,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "register nutritionist", e)


@router.get("/profile/{uid}")
async def get_coach_profile(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        return await expert_service.get_profile(uid)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch coach profile", e)


@router.put("/profile/{uid}")
async def update_coach_profile(
    uid: str,
    request: ExpertProfileUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        ensure_owner(user["uid"], uid, "Forbidden: You can only update your own profile.")
        profile = await expert_service.update_profile(uid, request.model_dump(exclude_unset=True))
        return {"message": "Profile updated successfully!", "profile": profile}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update coach profile", e)


@router.post("/feedback", status_code=201)
async def submit_coach_feedback(
    request: FeedbackRequest,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        feedback_id = await expert_service.submit_feedback(user["uid"], user.get("email"), request.message)
        return {"message": "Feedback submitted successfully!", "feedbackId": feedback_id}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "submit feedback", e)


@router.get("/{coachId}/reminders")
async def get_coach_reminders(
    coachId: str,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        ensure_owner(user["uid"], coachId)
        return {"reminders": await expert_service.get_reminders(coachId)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch coach reminders", e)


@router.put("/{coachId}/reminders")
async def save_coach_reminders(
    coachId: str,
    request: RemindersUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        ensure_owner(user["uid"], coachId)
        saved = await expert_service.save_reminders(coachId, [r.model_dump() for r in request.reminders])
        return {"message": "Reminders saved successfully.", "count": saved}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save coach reminders", e)


@router.delete("/{uid}")
async def delete_coach_account(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    expert_service: ExpertService = Depends(get_expert_service)
):
    try:
        ensure_owner(user["uid"], uid, "Forbidden: You can only delete your own account.")
        await expert_service.delete_account(uid)
        return {"message": "Account and associated data deleted successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "delete coach account", e)
