"""Messaging request schemas."""

from pydantic import BaseModel, Field
from typing import Any, List, Optional


class SendMessageRequest(BaseModel):
    text: Optional[str] = Field(None, description="Message text")
    receiverId: Optional[str] = Field(None, description="Other participant")


class FindOrCreateChatRequest(BaseModel):
    participantIds: List[Any] = Field(..., description="Exactly two participant ids")
