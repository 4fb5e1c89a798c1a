"""Personal user request schemas."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union

Number = Union[float, str, None]


class NameUpdate(BaseModel):
    firstName: Optional[str] = Field(None, description="Given name")
    lastName: Optional[str] = Field(None, description="Family name")


class GoalUpdate(BaseModel):
    goal: Optional[str] = Field(None, description="Losing, Maintaining or Gaining Weight")


class ProfileDetailsUpdate(BaseModel):
    gender: Optional[str] = Field(None, description="Gender")
    age: Number = Field(None, description="Age in years")
    height: Number = Field(None, description="Height in cm")
    weight: Number = Field(None, description="Weight in kg")
    targetWeight: Number = Field(None, description="Target weight in kg")
    isKg: Optional[bool] = Field(None, description="Whether the client displays kilograms")


class TransformationUpdate(BaseModel):
    transformationGoals: List[str] = Field(..., description="Selected transformation goals")


class DietaryPreferencesUpdate(BaseModel):
    dietaryPreferences: List[str] = Field(..., description="Selected dietary preferences")


class ActivityLevelUpdate(BaseModel):
    activityLevel: Optional[str] = Field(None, description="Activity level label")


class Reminder(BaseModel):
    """One reminder; ``time`` is epoch milliseconds."""
    name: Optional[str] = Field(None, description="Reminder label")
    enabled: bool = Field(False, description="Whether the reminder is active")
    time: Any = Field(None, description="Reminder time in epoch milliseconds")


class RemindersUpdate(BaseModel):
    reminders: List[Reminder] = Field(..., description="Full replacement list")


class FeedbackRequest(BaseModel):
    message: Optional[str] = Field(None, description="Feedback text (at least 5 characters)")


class FullProfileUpdate(BaseModel):
    """Whole-profile edit from the settings screen."""
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    goal: Optional[str] = None
    gender: Optional[str] = None
    activityLevel: Optional[str] = None
    age: Number = None
    height: Number = None
    weight: Number = None
    targetWeight: Number = None
    transformationGoals: Optional[List[str]] = None
    dietaryPreferences: Optional[List[str]] = None
    otherGenderText: Optional[str] = None
    otherTransformationGoalText: Optional[str] = None
    otherDietaryPrefText: Optional[str] = None
    profileImageUrl: Optional[str] = None

