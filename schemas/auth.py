"""Auth request schemas."""

from pydantic import BaseModel, Field
from typing import Optional
from .enums import UserType


class RegisterRequest(BaseModel):
    """Email/password registration for any account type."""
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")
    userType: UserType = Field(..., description="Personal, Professional or Admin")
    firstName: Optional[str] = Field(None, description="Given name")
    lastName: Optional[str] = Field(None, description="Family name")


class SocialAuthRequest(BaseModel):
    """Names offered by the social provider on first sign-in."""
    firstName: Optional[str] = Field(None, description="Given name")
    lastName: Optional[str] = Field(None, description="Family name")
