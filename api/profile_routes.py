"""Profile summary, weight log and calorie history routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_profile_service, require_auth
from schemas.enums import CaloriePeriod
from schemas.profile import WeightLogRequest
from services.profile_service import ProfileService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("/profile")
async def get_profile(
    user: Dict[str, Any] = Depends(require_auth),
    profile_service: ProfileService = Depends(get_profile_service)
):
    try:
        return await profile_service.get_profile(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch profile", e)


@router.post("/log-weight")
async def log_weight(
    request: WeightLogRequest,
    user: Dict[str, Any] = Depends(require_auth),
    profile_service: ProfileService = Depends(get_profile_service)
):
    try:
        await profile_service.log_weight(user["uid"], request.weight, request.date)
        return {"message": "Weight logged successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "log weight", e)


@router.get("/calorie-history")
async def get_calorie_history(
    period: CaloriePeriod = Query(CaloriePeriod.WEEK, description="Week, Month or Year"),
    user: Dict[str, Any] = Depends(require_auth),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Chart data of consumed calories over the chosen period."""
    try:
        return await profile_service.get_calorie_history(user["uid"], period)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch calorie history", e)
