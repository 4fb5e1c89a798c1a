"""Meal log request schemas."""

from pydantic import BaseModel, Field
from typing import Any, Optional


class MealLogRequest(BaseModel):
    """Meal entry; values are checked by the meal log service."""
    uid: Optional[str] = Field(None, description="Owner of the log")
    mealType: Optional[str] = Field(None, description="breakfast, lunch, dinner or snack")
    date: Optional[str] = Field(None, description="Day of the meal (YYYY-MM-DD)")
    title: Optional[str] = Field(None, description="Meal title")
    calories: Any = Field(None, description="Calories (kcal)")
    protein: Any = Field(None, description="Protein (g)")
    carbs: Any = Field(None, description="Carbohydrates (g)")
    fat: Any = Field(None, description="Fat (g)")
    fiber: Any = Field(None, description="Fiber (g)")
    source: Optional[str] = Field(None, description="Where the meal came from")
    recipeId: Optional[Any] = Field(None, description="Spoonacular recipe id")
    imageUrl: Optional[str] = Field(None, description="Meal picture")


class StreakUpdateRequest(BaseModel):
    uid: str = Field(..., description="User id")
    dateOfMealLog: str = Field(..., description="Day a meal was logged (YYYY-MM-DD)")
