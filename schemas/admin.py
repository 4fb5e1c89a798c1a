"""Admin request schemas."""

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from .enums import FeedbackStatus


class VerifyCoachRequest(BaseModel):
    verify: bool = Field(..., description="True to approve, False to revoke")


class RejectCoachRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Reason shown in the rejection email")


class ToggleStatusRequest(BaseModel):
    disabled: bool = Field(..., description="Disable (True) or enable (False) the account")


class UserUpdate(BaseModel):
    updates: Dict[str, Any] = Field(..., description="Profile fields to change")


class FeedbackStatusUpdate(BaseModel):
    status: FeedbackStatus = Field(..., description="New, Read or Archived")
