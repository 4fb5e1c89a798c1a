"""One-to-one chats between users and coaches."""

from typing import Any, Dict, List, Tuple

from google.cloud import firestore

from models.database import Database
from services.notification_service import (
    RECIPIENT_COACH,
    RECIPIENT_USER,
    NotificationService,
)
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.helpers import full_name
from utils.logger import setup_logger

logger = setup_logger(__name__)

MESSAGES = "messages"
USER_UNREAD = "userUnreadCount"
COACH_UNREAD = "coachUnreadCount"
PREVIEW_LENGTH = 100


def unread_field(chat: Dict[str, Any], participant_id: str) -> str:
    """Counter belonging to ``participant_id`` in this chat."""
    coach_id = (chat.get("coachDetails") or {}).get("coachId")
    return COACH_UNREAD if coach_id == participant_id else USER_UNREAD


class MessageService:
    def __init__(self, database: Database, notifier: NotificationService):
        self.database = database
        self.notifier = notifier

    async def _participant_chat(self, chat_id: str, uid: str) -> Tuple[Any, Dict[str, Any]]:
        chat_ref = self.database.chats().document(chat_id)
        snap = await chat_ref.get()
        if not snap.exists:
            raise NotFound("Chat not found.")
        chat = snap.to_dict() or {}
        if uid not in (chat.get("participants") or []):
            logger.warning(f"User {uid} denied access to chat {chat_id}")
            raise Forbidden("You are not authorized to view this chat.")
        return chat_ref, chat

    async def get_conversations(self, uid: str) -> List[Dict[str, Any]]:
        query = self.database.chats().where("participants", "array_contains", uid).order_by(
            "lastActivity", direction=firestore.Query.DESCENDING
        )
        return [{"id": snap.id, **(snap.to_dict() or {})} async for snap in query.stream()]

    async def get_messages(self, chat_id: str, uid: str) -> List[Dict[str, Any]]:
        """Messages oldest first; also clears the caller's unread counter."""
        chat_ref, chat = await self._participant_chat(chat_id, uid)
        query = chat_ref.collection(MESSAGES).order_by("timestamp")
        messages = [{"id": snap.id, **(snap.to_dict() or {})} async for snap in query.stream()]

        field = unread_field(chat, uid)
        if (chat.get(field) or 0) > 0:
            await chat_ref.update({field: 0})
        return messages

    async def send_message(self, chat_id: str, sender_id: str, receiver_id: str, text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            raise ValidationFailed(["Message text cannot be empty."])
        if not receiver_id:
            raise ValidationFailed(["Receiver ID is required."])
        if sender_id == receiver_id:
            raise ValidationFailed(["Cannot send message to yourself."])

        chat_ref = self.database.chats().document(chat_id)
        snap = await chat_ref.get()
        if not snap.exists:
            raise NotFound("Chat not found.")
        chat = snap.to_dict() or {}
        participants = chat.get("participants") or []
        if sender_id not in participants or receiver_id not in participants:
            raise Forbidden("Sender or receiver not authorized for this chat.")

        text = text.strip()
        receiver_field = unread_field(chat, receiver_id)
        message_ref = chat_ref.collection(MESSAGES).document()

        batch = self.database.client.batch()
        batch.set(message_ref, {
            "senderId": sender_id,
            "receiverId": receiver_id,
            "text": text,
            "timestamp": firestore.SERVER_TIMESTAMP,
        })
        batch.update(chat_ref, {
            "lastMessage": {
                "text": text,
                "senderId": sender_id,
                "timestamp": firestore.SERVER_TIMESTAMP,
            },
            "lastActivity": firestore.SERVER_TIMESTAMP,
            receiver_field: firestore.Increment(1),
        })
        await batch.commit()
        logger.info(f"Message {message_ref.id} sent in chat {chat_id}, incremented {receiver_field}")

        coach_details = chat.get("coachDetails") or {}
        user_details = chat.get("userDetails") or {}
        if receiver_field == COACH_UNREAD:
            receiver_type, sender_name = RECIPIENT_COACH, user_details.get("userName") or "Your client"
        else:
            receiver_type, sender_name = RECIPIENT_USER, coach_details.get("coachName") or "Your coach"
        await self.notifier.new_message(
            receiver_id, receiver_type, sender_id, sender_name, chat_id, text[:PREVIEW_LENGTH]
        )
        return message_ref.id

    async def mark_read(self, chat_id: str, uid: str) -> bool:
        """Reset the caller's unread counter. False when nothing was unread."""
        chat_ref, chat = await self._participant_chat(chat_id, uid)
        field = unread_field(chat, uid)
        if (chat.get(field) or 0) > 0:
            await chat_ref.update({field: 0})
            return True
        return False

    async def find_or_create_chat(self, requester_id: str, participant_ids: Any) -> Tuple[str, bool]:
        """Return ``(chat_id, created)`` for the chat between two participants."""
        if (
            not isinstance(participant_ids, list)
            or len(participant_ids) != 2
            or not all(isinstance(p, str) and p for p in participant_ids)
            or participant_ids[0] == participant_ids[1]
        ):
            raise ValidationFailed(["Two participant IDs are required."])
        if requester_id not in participant_ids:
            raise Forbidden("Requester is not part of the specified chat participants.")

        participants = sorted(participant_ids)
        query = self.database.chats().where("participants", "==", participants).limit(1)
        async for snap in query.stream():
            return snap.id, False

        other_id = next(p for p in participants if p != requester_id)
        requester_coach = await self.database.nutritionist(requester_id).get()
        if requester_coach.exists:
            coach_id, user_id = requester_id, other_id
        else:
            coach_id, user_id = other_id, requester_id

        user_snap = await self.database.user(user_id).get()
        coach_snap = await self.database.nutritionist(coach_id).get()
        user = user_snap.to_dict() if user_snap.exists else None
        coach = coach_snap.to_dict() if coach_snap.exists else None

        _, chat_ref = await self.database.chats().add({
            "participants": participants,
            "lastMessage": None,
            "userDetails": {
                "userId": user_id,
                "userName": full_name(user, "User"),
                "userPhotoUrl": (user or {}).get("profileImageUrl"),
            },
            "coachDetails": {
                "coachId": coach_id,
                "coachName": full_name(coach, "Coach"),
                "coachPhotoUrl": (coach or {}).get("profileImageUrl"),
            },
            USER_UNREAD: 0,
            COACH_UNREAD: 0,
            "lastActivity": firestore.SERVER_TIMESTAMP,
            "createdAt": firestore.SERVER_TIMESTAMP,
        })
        logger.info(f"Created chat {chat_ref.id} between coach {coach_id} and user {user_id}")
        return chat_ref.id, True
