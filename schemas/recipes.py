"""Recipe request schemas."""

from pydantic import BaseModel, Field
from typing import Any, List, Optional, Union


class RecipeSearchRequest(BaseModel):
    """Search filters; nutrient goals become Spoonacular maximums."""
    searchQuery: Optional[str] = Field(None, description="Free-text search")
    dietaryPreferences: Union[List[str], str, None] = Field(None, description="Profile dietary preferences")
    otherDietaryText: Optional[str] = Field(None, description="Free-text preferences")
    dailyCalories: Any = Field(None, description="Maximum calories per serving")
    proteinGoal: Any = Field(None, description="Maximum protein per serving")
    carbsGoal: Any = Field(None, description="Maximum carbs per serving")
    fatGoal: Any = Field(None, description="Maximum fat per serving")
    fiberGoal: Any = Field(None, description="Maximum fiber per serving")


class SaveRecipeRequest(BaseModel):
    recipeId: Union[int, str] = Field(..., description="Spoonacular recipe id")
    title: str = Field(..., min_length=1, description="Recipe title")
    imageUrl: Optional[str] = Field(None, description="Recipe image")
