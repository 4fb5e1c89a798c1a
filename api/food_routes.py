"""Barcode lookup route."""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_food_service
from services.food_service import FoodService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/food", tags=["food"])


@router.get("/{barcode}")
async def get_food_by_barcode(
    barcode: str,
    food_service: FoodService = Depends(get_food_service)
):
    try:
        return await food_service.get_by_barcode(barcode)
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "look up barcode", e)
