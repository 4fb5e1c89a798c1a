"""Expo push delivery and notification history."""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx
from google.cloud import firestore

from config.notification_messages import (
    MOTIVATION_TITLE,
    get_random_message,
    render_event,
)
from config.settings import settings
from models.database import NUTRITIONISTS, USERS, Database
from utils.errors import NotFound, ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)

RECIPIENT_USER = "user"
RECIPIENT_COACH = "coach"

HISTORY_COLLECTIONS = {
    RECIPIENT_USER: (USERS, "userNotifications"),
    RECIPIENT_COACH: (NUTRITIONISTS, "coachNotifications"),
}


def base_push_token(token: Optional[str]) -> Optional[str]:
    """Strip the per-device suffix; None when the token is not an Expo token."""
    if not token or not isinstance(token, str):
        return None
    base = token.split("_")[0]
    if not base.startswith("ExponentPushToken["):
        return None
    return base


class NotificationService:
    """Fire-and-forget push notifications with persisted history.

    Push failures are logged and swallowed; history is written whether or
    not the push went through.
    """

    def __init__(self, database: Database, push_url: Optional[str] = None):
        self.database = database
        self.push_url = push_url or settings.expo_push_url

    def history_collection(self, recipient_id: str, recipient_type: str):
        parent, sub = HISTORY_COLLECTIONS[recipient_type]
        return self.database.collection(parent).document(recipient_id).collection(sub)

    async def send_push(
        self,
        push_token: Optional[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send one message through the Expo push API."""
        token = base_push_token(push_token)
        if token is None:
            return {"success": False, "error": "Invalid push token format"}

        message = {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
            "priority": "high",
            "channelId": "default",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.push_url,
                    json=message,
                    headers={"Accept": "application/json"},
                    timeout=10.0
                )
                result = response.json()
        except Exception as e:
            logger.error(f"Expo push error: {e}")
            return {"success": False, "error": str(e)}

        ticket = result.get("data") or {}
        if isinstance(ticket, dict) and ticket.get("status") == "ok":
            return {"success": True, "ticketId": ticket.get("id")}
        return {"success": False, "error": result.get("errors") or ticket.get("message") or "Unknown error"}

    async def save_to_history(
        self,
        recipient_id: str,
        recipient_type: str,
        title: str,
        body: str,
        notification_type: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        try:
            _, doc_ref = await self.history_collection(recipient_id, recipient_type).add({
                "title": title,
                "body": body,
                "type": notification_type,
                "isRead": False,
                "isVisible": True,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "data": data or {},
            })
            return doc_ref.id
        except Exception as e:
            logger.error(f"Error saving notification for {recipient_type} {recipient_id}: {e}")
            return None

    async def notify(
        self,
        recipient_id: str,
        recipient_type: str,
        title: str,
        body: str,
        notification_type: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Push to the recipient's stored token and record the notification."""
        payload = dict(data or {})
        payload["type"] = notification_type
        push_result: Dict[str, Any] = {"success": False, "error": "No push token found"}

        try:
            parent, _ = HISTORY_COLLECTIONS[recipient_type]
            snap = await self.database.collection(parent).document(recipient_id).get()
            token = (snap.to_dict() or {}).get("expoPushToken") if snap.exists else None
            if token:
                push_result = await self.send_push(token, title, body, payload)
            if not push_result.get("success"):
                logger.warning(
                    f"Push '{notification_type}' to {recipient_type} {recipient_id} not delivered: "
                    f"{push_result.get('error')}"
                )
        except Exception as e:
            logger.error(f"Error notifying {recipient_type} {recipient_id}: {e}", exc_info=True)
            push_result = {"success": False, "error": str(e)}

        history_id = await self.save_to_history(
            recipient_id, recipient_type, title, body, notification_type, data
        )
        return {**push_result, "historyId": history_id}

    async def notify_event(
        self,
        event_type: str,
        recipient_id: str,
        recipient_type: str,
        data: Optional[Dict[str, Any]] = None,
        **values: Any
    ) -> Dict[str, Any]:
        content = render_event(event_type, **values)
        extra = {"screen": content["screen"], **(data or {})}
        return await self.notify(
            recipient_id, recipient_type, content["title"], content["body"], event_type, extra
        )

    async def invitation_received(self, coach_id: str, user_id: str, user_name: str):
        return await self.notify_event(
            "invitation_received", coach_id, RECIPIENT_COACH,
            {"userId": user_id}, user_name=user_name
        )

    async def invitation_accepted(self, user_id: str, coach_id: str, coach_name: str):
        return await self.notify_event(
            "invitation_accepted", user_id, RECIPIENT_USER,
            {"coachId": coach_id}, coach_name=coach_name
        )

    async def invitation_declined(self, user_id: str, coach_id: str, coach_name: str):
        return await self.notify_event(
            "invitation_declined", user_id, RECIPIENT_USER,
            {"coachId": coach_id}, coach_name=coach_name
        )

    async def coach_selected(self, coach_id: str, user_id: str, user_name: str):
        return await self.notify_event(
            "coach_selected", coach_id, RECIPIENT_COACH,
            {"userId": user_id}, user_name=user_name
        )

    async def new_message(
        self,
        receiver_id: str,
        receiver_type: str,
        sender_id: str,
        sender_name: str,
        chat_id: str,
        preview: str
    ):
        return await self.notify_event(
            "new_message", receiver_id, receiver_type,
            {"senderId": sender_id, "chatId": chat_id, "messagePreview": preview},
            sender_name=sender_name, preview=preview or "You have a new message"
        )

    async def plan_updated(self, client_id: str, coach_id: str, coach_name: str):
        return await self.notify_event(
            "nutrition_plan_updated", client_id, RECIPIENT_USER,
            {"coachId": coach_id, "coachName": coach_name}, coach_name=coach_name
        )

    async def broadcast_motivation(
        self,
        limit: Optional[int] = None,
        delay_seconds: Optional[float] = None
    ) -> int:
        """Send a random motivational message to users holding a push token.

        Sends are spaced by ``delay_seconds`` to stay under Expo's burst limit.
        Returns the number of successful pushes.
        """
        limit = limit or settings.motivation_batch_limit
        delay = settings.motivation_delay_seconds if delay_seconds is None else delay_seconds

        query = self.database.users().where("expoPushToken", "!=", None).limit(limit)
        recipients: List[Any] = [snap async for snap in query.stream()]
        if not recipients:
            logger.info("Daily motivation: no users with a push token")
            return 0

        sent = 0
        for index, snap in enumerate(recipients):
            if index and delay:
                await asyncio.sleep(delay)
            token = (snap.to_dict() or {}).get("expoPushToken")
            if not token:
                continue
            message = get_random_message()
            try:
                result = await self.send_push(token, MOTIVATION_TITLE, message, {
                    "type": "daily_motivation",
                    "source": "system",
                    "timestamp": int(time.time() * 1000),
                })
                if result.get("success"):
                    sent += 1
                else:
                    logger.warning(f"Daily motivation to user {snap.id} failed: {result.get('error')}")
                await self.save_to_history(
                    snap.id, RECIPIENT_USER, MOTIVATION_TITLE, message,
                    "daily_motivation", {"source": "system"}
                )
            except Exception as e:
                logger.error(f"Error sending daily motivation to user {snap.id}: {e}")

        logger.info(f"Daily motivation sent to {sent}/{len(recipients)} users")
        return sent

    async def recipient_type_for(self, uid: str) -> str:
        """``coach`` when ``uid`` has a nutritionist document, else ``user``."""
        snap = await self.database.nutritionist(uid).get()
        return RECIPIENT_COACH if snap.exists else RECIPIENT_USER

    async def count_unread(self, uid: str, recipient_type: str) -> int:
        query = self.history_collection(uid, recipient_type).where(
            "isVisible", "==", True
        ).where("isRead", "==", False)
        results = await query.count().get()
        return int(results[0][0].value)

    async def list_notifications(self, uid: str, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        recipient_type = await self.recipient_type_for(uid)
        query = self.history_collection(uid, recipient_type).where(
            "isVisible", "==", True
        ).order_by("createdAt", direction=firestore.Query.DESCENDING).offset(offset).limit(limit)

        notifications = []
        async for snap in query.stream():
            notifications.append({"id": snap.id, **(snap.to_dict() or {})})

        return {
            "notifications": notifications,
            "unreadCount": await self.count_unread(uid, recipient_type),
            "hasMore": len(notifications) == limit,
        }

    async def unread_count(self, uid: str) -> int:
        return await self.count_unread(uid, await self.recipient_type_for(uid))

    async def _notification_ref(self, uid: str, notification_id: str):
        recipient_type = await self.recipient_type_for(uid)
        ref = self.history_collection(uid, recipient_type).document(notification_id)
        if not (await ref.get()).exists:
            raise NotFound("Notification not found.")
        return ref

    async def mark_read(self, uid: str, notification_id: str):
        ref = await self._notification_ref(uid, notification_id)
        await ref.update({"isRead": True, "readAt": firestore.SERVER_TIMESTAMP})

    async def mark_all_read(self, uid: str) -> int:
        recipient_type = await self.recipient_type_for(uid)
        query = self.history_collection(uid, recipient_type).where("isRead", "==", False)

        batch = self.database.client.batch()
        updated = 0
        async for snap in query.stream():
            batch.update(snap.reference, {"isRead": True, "readAt": firestore.SERVER_TIMESTAMP})
            updated += 1
        if updated:
            await batch.commit()
        logger.info(f"Marked {updated} notifications read for {recipient_type} {uid}")
        return updated

    async def hide(self, uid: str, notification_id: str):
        ref = await self._notification_ref(uid, notification_id)
        await ref.update({"isVisible": False})

    async def save_push_token(self, uid: str, token: str):
        if base_push_token(token) is None:
            raise ValidationFailed(["A valid Expo push token is required."])
        recipient_type = await self.recipient_type_for(uid)
        parent, _ = HISTORY_COLLECTIONS[recipient_type]
        await self.database.collection(parent).document(uid).set({
            "expoPushToken": token,
            "pushTokenUpdatedAt": firestore.SERVER_TIMESTAMP,
        }, merge=True)
        logger.info(f"Stored push token for {recipient_type} {uid}")
