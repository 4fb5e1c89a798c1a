"""Notification request schemas."""

from pydantic import BaseModel, Field


class PushTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Expo push token")
