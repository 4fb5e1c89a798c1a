"""Coach request schemas."""

from pydantic import BaseModel, Field
from typing import Optional, Union


class ExpertRegistration(BaseModel):
    """Coach application; image URLs point at files the client uploaded."""
    firstName: Optional[str] = Field(None, description="Given name")
    lastName: Optional[str] = Field(None, description="Family name")
    email: Optional[str] = Field(None, description="Login email")
    password: Optional[str] = Field(None, description="Password")
    confirmPassword: Optional[str] = Field(None, description="Password confirmation")
    phoneCountryCode: Optional[str] = None
    phoneNumber: Optional[str] = None
    yearsOfExperience: Optional[Union[int, str]] = None
    specialization: Optional[str] = None
    workplace: Optional[str] = None
    shortBio: Optional[str] = None
    profileImageUrl: Optional[str] = None
    professionalCertificateUrl: Optional[str] = None


class ExpertProfileUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phoneCountryCode: Optional[str] = None
    phoneNumber: Optional[str] = None
    yearsOfExperience: Optional[Union[int, str]] = None
    specialization: Optional[str] = None
    workplace: Optional[str] = None
    shortBio: Optional[str] = None
    profileImageUrl: Optional[str] = None
    professionalCertificateUrl: Optional[str] = None
