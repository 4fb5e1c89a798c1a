"""Meal logging and streak routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_meal_log_service, require_auth
from schemas.meal_log import MealLogRequest, StreakUpdateRequest
from services.meal_log_service import MealLogService
from utils.errors import ensure_owner, raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/logMeal", tags=["meal-log"])


@router.post("/log-meal", status_code=201)
async def log_meal(
    request: MealLogRequest,
    user: Dict[str, Any] = Depends(require_auth),
    meal_log_service: MealLogService = Depends(get_meal_log_service)
):
    try:
        if request.uid:
            ensure_owner(user["uid"], request.uid)
        return await meal_log_service.log_meal(request.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "log meal", e)


@router.get("/daily-data/{uid}/{date}")
async def get_daily_data(
    uid: str,
    date: str,
    user: Dict[str, Any] = Depends(require_auth),
    meal_log_service: MealLogService = Depends(get_meal_log_service)
):
    """Plan targets, consumed totals and streak for one day."""
    try:
        ensure_owner(user["uid"], uid)
        return await meal_log_service.get_daily_data(uid, date)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch daily data", e)


@router.post("/update-streak")
async def update_streak(
    request: StreakUpdateRequest,
    user: Dict[str, Any] = Depends(require_auth),
    meal_log_service: MealLogService = Depends(get_meal_log_service)
):
    try:
        ensure_owner(user["uid"], request.uid, "Forbidden: Cannot update streak for another user.")
        return await meal_log_service.update_streak(request.uid, request.dateOfMealLog)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update streak", e)
