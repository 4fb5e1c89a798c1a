"""Coaching request schemas."""

from pydantic import BaseModel, Field
from typing import Any


class CoachTarget(BaseModel):
    nutritionistId: str = Field(..., min_length=1, description="Coach id")


class SelectCoachRequest(BaseModel):
    requestId: str = Field(..., min_length=1, description="Accepted request id")
    nutritionistId: str = Field(..., min_length=1, description="Coach id")


class RateCoachRequest(BaseModel):
    nutritionistId: str = Field(..., min_length=1, description="Coach id")
    rating: Any = Field(None, description="Integer from 1 to 5")


class RequestAnswer(BaseModel):
    requestId: str = Field(..., min_length=1, description="Request id")
    userId: str = Field(..., min_length=1, description="Requesting user id")


class ClientTarget(BaseModel):
    clientId: str = Field(..., min_length=1, description="Client id")


class ClientNotesRequest(BaseModel):
    notes: str = Field("", description="Free-form notes about the client")
