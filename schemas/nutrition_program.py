"""Weekly nutrition program schemas."""

from pydantic import BaseModel, Field, StrictBool
from typing import Any, Dict, Optional


class ProgramMeal(BaseModel):
    """One meal slot of a program day."""
    food: Optional[str] = Field(None, description="What to eat")
    quantity: Optional[Any] = Field(None, description="Amount, stored as text")
    unit: Optional[str] = Field(None, description="Unit of the quantity")
    prepNotes: Optional[str] = Field(None, description="Preparation notes")
    timing: Optional[str] = Field(None, description="When to eat it")
    alternatives: Optional[str] = Field(None, description="Allowed swaps")


class ProgramDay(BaseModel):
    dailyWorkout: Optional[str] = Field(None, description="Workout for the day")
    meals: Dict[str, ProgramMeal] = Field(default_factory=dict, description="Meal slots by meal time")


class SaveProgramRequest(BaseModel):
    """General guidance plus the one day the coach edited."""
    generalNotes: Optional[str] = Field(None, description="Notes for the whole program")
    waterIntake: Optional[Any] = Field(None, description="Daily water intake in litres")
    sleepRecommendation: Optional[str] = Field(None, description="Recommended sleep")
    weeklyPlan: Dict[str, Any] = Field(default_factory=dict, description="Days keyed by weekday name")
    selectedDay: str = Field(..., min_length=1, description="Weekday being saved")


class DayCompletionRequest(BaseModel):
    day: str = Field(..., min_length=1, description="Weekday name")
    completed: StrictBool = Field(..., description="Whether the client followed the day")
