"""Nutrition plan routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_nutrition_service, require_auth
from schemas.nutrition import CoachPlanUpdate
from services.nutrition_service import NutritionService
from utils.errors import ensure_owner, raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/nutritionPlan", tags=["nutrition-plan"])


@router.post("/{uid}")
async def calculate_and_save_plan(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    nutrition_service: NutritionService = Depends(get_nutrition_service)
):
    """Recalculate the plan from the stored profile."""
    try:
        ensure_owner(user["uid"], uid)
        plan = await nutrition_service.save_plan(uid)
        return {"message": "Nutrition plan calculated and saved successfully", "nutritionPlan": plan}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "calculate nutrition plan", e)


@router.get("/{uid}")
async def get_plan(
    uid: str,
    user: Dict[str, Any] = Depends(require_auth),
    nutrition_service: NutritionService = Depends(get_nutrition_service)
):
    try:
        ensure_owner(user["uid"], uid)
        return {"nutritionPlan": await nutrition_service.get_plan(uid)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch nutrition plan", e)


@router.put("/{uid}/coach")
async def update_plan_by_coach(
    uid: str,
    request: CoachPlanUpdate,
    user: Dict[str, Any] = Depends(require_auth),
    nutrition_service: NutritionService = Depends(get_nutrition_service)
):
    """Overwrite a client's macros; only the client's active coach may do this."""
    try:
        plan = await nutrition_service.set_plan_by_coach(user["uid"], uid, request.model_dump(exclude_none=True))
        return {"message": "Nutrition plan updated by coach", "nutritionPlan": plan}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update client nutrition plan", e)
