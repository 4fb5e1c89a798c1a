"""Nutrition plan request schemas."""

from pydantic import BaseModel, Field
from typing import Optional


class CoachPlanUpdate(BaseModel):
    """Macros set by a coach for a client."""
    calories: float = Field(..., gt=0, description="Daily calories (kcal)")
    protein: float = Field(..., ge=0, description="Daily protein (g)")
    carbs: float = Field(..., ge=0, description="Daily carbohydrates (g)")
    fat: float = Field(..., ge=0, description="Daily fat (g)")
    fiber: Optional[float] = Field(None, ge=0, description="Daily fiber (g)")
    fiberGoal: Optional[str] = Field(None, description="Fiber range label, e.g. 25-30g")
