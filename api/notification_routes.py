"""Notification inbox and push token routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_notification_service, require_auth
from schemas.notifications import PushTokenRequest
from services.notification_service import NotificationService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/")
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    try:
        return await notifier.list_notifications(user["uid"], limit, offset)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch notifications", e)


@router.get("/unread-count")
async def get_unread_count(
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    try:
        return {"unreadCount": await notifier.unread_count(user["uid"])}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "count unread notifications", e)


@router.put("/mark-read/{notificationId}")
async def mark_read(
    notificationId: str,
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    try:
        await notifier.mark_read(user["uid"], notificationId)
        return {"message": "Notification marked as read."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "mark notification read", e)


@router.patch("/mark-all-read")
async def mark_all_read(
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    try:
        updated = await notifier.mark_all_read(user["uid"])
        return {"message": "All notifications marked as read.", "updated": updated}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "mark all notifications read", e)


@router.delete("/{notificationId}")
async def hide_notification(
    notificationId: str,
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    """Hide the notification from the inbox; the document is kept."""
    try:
        await notifier.hide(user["uid"], notificationId)
        return {"message": "Notification deleted."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "delete notification", e)


@router.post("/push-token")
async def save_push_token(
    request: PushTokenRequest,
    user: Dict[str, Any] = Depends(require_auth),
    notifier: NotificationService = Depends(get_notification_service)
):
    try:
        await notifier.save_push_token(user["uid"], request.token)
        return {"message": "Push token saved."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save push token", e)
