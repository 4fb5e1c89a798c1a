"""Admin moderation routes; every route requires the admin claim."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_admin_service, require_admin
from schemas.admin import (
    FeedbackStatusUpdate,
    RejectCoachRequest,
    ToggleStatusRequest,
    UserUpdate,
    VerifyCoachRequest,
)
from schemas.enums import FeedbackStatus
from services.admin_service import AdminService
from utils.errors import ValidationFailed, raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard-summary")
async def get_dashboard_summary(
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        return await admin_service.get_dashboard_summary()
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch admin dashboard summary", e)


@router.get("/pending-coaches")
async def get_pending_coaches(
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        return await admin_service.get_pending_coaches()
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch pending coaches", e)


@router.patch("/verify-coach/{coachId}")
async def verify_coach(
    coachId: str,
    request: VerifyCoachRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        message = await admin_service.verify_coach(admin["uid"], coachId, request.verify)
        return {"message": message}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update coach verification", e)


@router.post("/reject-coach/{coachId}")
async def reject_coach(
    coachId: str,
    request: RejectCoachRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    """Soft delete now; the account is purged in the background."""
    try:
        result = await admin_service.reject_coach(admin["uid"], coachId, request.reason)
        return {
            "message": "Coach rejected. Account deletion has been scheduled.",
            **result,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "reject coach", e)


@router.get("/users")
async def list_users(
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        return await admin_service.list_users()
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "list users", e)


@router.get("/users/{userId}")
async def get_user(
    userId: str,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        return await admin_service.get_user(userId)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch user", e)


@router.patch("/users/{userId}")
async def update_user(
    userId: str,
    request: UserUpdate,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        user = await admin_service.update_user(admin["uid"], userId, request.updates)
        return {"message": "User updated successfully.", "user": user}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update user", e)


@router.patch("/users/{userId}/toggle-status")
async def toggle_user_status(
    userId: str,
    request: ToggleStatusRequest,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        message = await admin_service.toggle_user_status(admin["uid"], userId, request.disabled)
        return {"message": message}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "toggle user status", e)


@router.delete("/users/{userId}")
async def delete_user(
    userId: str,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        message = await admin_service.delete_user(admin["uid"], userId)
        return {"message": message}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "delete user", e)


@router.get("/feedbacks")
async def list_feedbacks(
    status: Optional[str] = Query(None, description="New, Read, Archived or All"),
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        valid = {s.value for s in FeedbackStatus} | {"All"}
        if status and status not in valid:
            raise ValidationFailed([f"Invalid status filter. Use one of: {', '.join(sorted(valid))}"])
        return await admin_service.list_feedbacks(status)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "list feedbacks", e)


@router.patch("/feedbacks/{feedbackId}/status")
async def update_feedback_status(
    feedbackId: str,
    request: FeedbackStatusUpdate,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        await admin_service.update_feedback_status(admin["uid"], feedbackId, request.status)
        return {"message": f"Feedback status updated to {request.status.value}."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update feedback status", e)


@router.delete("/feedbacks/{feedbackId}")
async def delete_feedback(
    feedbackId: str,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        await admin_service.delete_feedback(admin["uid"], feedbackId)
        return {"message": "Feedback deleted successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "delete feedback", e)


@router.get("/nutritionists/{coachId}")
async def get_nutritionist(
    coachId: str,
    admin: Dict[str, Any] = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        return await admin_service.get_nutritionist(coachId)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch nutritionist", e)
