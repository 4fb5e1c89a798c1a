"""Weekly nutrition program routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_nutrition_program_service, require_auth
from schemas.nutrition_program import DayCompletionRequest, SaveProgramRequest
from services.nutrition_program_service import NutritionProgramService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/nutrition-programs", tags=["nutrition-programs"])


@router.get("/{clientId}/summary")
async def get_program_summary(
    clientId: str,
    user: Dict[str, Any] = Depends(require_auth),
    program_service: NutritionProgramService = Depends(get_nutrition_program_service)
):
    """General guidance and the weekdays that have a plan."""
    try:
        return {"summary": await program_service.get_summary(user["uid"], clientId)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch program summary", e)


@router.get("/{clientId}/day/{dayName}")
async def get_program_day(
    clientId: str,
    dayName: str,
    user: Dict[str, Any] = Depends(require_auth),
    program_service: NutritionProgramService = Depends(get_nutrition_program_service)
):
    try:
        return {"planView": await program_service.get_day(user["uid"], clientId, dayName)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch daily program view", e)


@router.get("/{clientId}")
async def get_program(
    clientId: str,
    user: Dict[str, Any] = Depends(require_auth),
    program_service: NutritionProgramService = Depends(get_nutrition_program_service)
):
    try:
        return {"plan": await program_service.get_program(user["uid"], clientId)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch nutrition program", e)


@router.post("/{clientId}")
async def save_program_day(
    clientId: str,
    request: SaveProgramRequest,
    user: Dict[str, Any] = Depends(require_auth),
    program_service: NutritionProgramService = Depends(get_nutrition_program_service)
):
    """Save the general guidance and one day; the client's active coach only."""
    try:
        day = await program_service.save_day(user["uid"], clientId, request.model_dump())
        return {"message": f"Plan updated for {day}."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save nutrition program", e)


@router.patch("/{clientId}/completion")
async def update_day_completion(
    clientId: str,
    request: DayCompletionRequest,
    user: Dict[str, Any] = Depends(require_auth),
    program_service: NutritionProgramService = Depends(get_nutrition_program_service)
):
    try:
        await program_service.set_day_completed(user["uid"], clientId, request.day, request.completed)
        return {"message": f"Completion status for {request.day} updated."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "update day completion", e)
