"""Profile request schemas."""

from pydantic import BaseModel, Field
from typing import Any, Optional


class WeightLogRequest(BaseModel):
    weight: Any = Field(None, description="Weight in kg (0-500)")
    date: Optional[str] = Field(None, description="Day of the weigh-in (YYYY-MM-DD)")
