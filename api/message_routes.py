"""Chat routes between users and their coaches."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies import get_message_service, require_auth
from schemas.messages import FindOrCreateChatRequest, SendMessageRequest
from services.message_service import MessageService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/conversations")
async def get_conversations(
    user: Dict[str, Any] = Depends(require_auth),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        return await message_service.get_conversations(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch conversations", e)


@router.get("/chats/{chatId}/messages")
async def get_messages(
    chatId: str,
    user: Dict[str, Any] = Depends(require_auth),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        return await message_service.get_messages(chatId, user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch messages", e)


@router.post("/chats/{chatId}/messages", status_code=201)
async def send_message(
    chatId: str,
    request: SendMessageRequest,
    user: Dict[str, Any] = Depends(require_auth),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        message_id = await message_service.send_message(chatId, user["uid"], request.receiverId, request.text)
        return {"message": "Message sent successfully.", "messageId": message_id}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "send message", e)


@router.post("/chats/{chatId}/read")
async def mark_chat_read(
    chatId: str,
    user: Dict[str, Any] = Depends(require_auth),
    message_service: MessageService = Depends(get_message_service)
):
    try:
        updated = await message_service.mark_read(chatId, user["uid"])
        return {"message": "Chat marked as read." if updated else "Chat already read."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "mark chat read", e)


@router.post("/find-or-create-chat")
async def find_or_create_chat(
    request: FindOrCreateChatRequest,
    user: Dict[str, Any] = Depends(require_auth),
    message_service: MessageService = Depends(get_message_service)
):
    """Return the chat between two participants, creating it on first contact."""
    try:
        chat_id, created = await message_service.find_or_create_chat(user["uid"], request.participantIds)
        return JSONResponse(
            status_code=201 if created else 200,
            content={
                "message": "Chat created." if created else "Chat found.",
                "chatId": chat_id,
            },
        )
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "find or create chat", e)
