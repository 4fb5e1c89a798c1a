"""Recipe search, details and saved recipe routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_recipe_service, require_auth
from schemas.recipes import RecipeSearchRequest, SaveRecipeRequest
from services.recipe_service import RecipeService
from services.spoonacular_service import SpoonacularConfigError
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("/fetch-recipes")
async def fetch_recipes(
    request: RecipeSearchRequest,
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    """Spoonacular search filtered by dietary preferences and nutrient goals."""
    try:
        return await recipe_service.fetch_recipes(request.model_dump())
    except HTTPException:
        raise
    except SpoonacularConfigError as e:
        logger.error(f"Recipe search unavailable: {e}")
        raise HTTPException(status_code=500, detail="Server configuration error.")
    except Exception as e:
        raise_server_error(logger, "fetch recipes", e)


@router.get("/details/{recipeId}")
async def get_recipe_details(
    recipeId: str,
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    try:
        return await recipe_service.get_recipe_details(recipeId)
    except HTTPException:
        raise
    except SpoonacularConfigError as e:
        logger.error(f"Recipe details unavailable: {e}")
        raise HTTPException(status_code=500, detail="Server configuration error.")
    except Exception as e:
        raise_server_error(logger, "fetch recipe details", e)


@router.get("/saved")
async def list_saved_recipes(
    user: Dict[str, Any] = Depends(require_auth),
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    try:
        return await recipe_service.list_saved(user["uid"])
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "fetch saved recipes", e)


@router.get("/{recipeId}/is-saved")
async def is_recipe_saved(
    recipeId: str,
    user: Dict[str, Any] = Depends(require_auth),
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    try:
        return {"isSaved": await recipe_service.is_saved(user["uid"], recipeId)}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "check saved recipe", e)


@router.post("/save", status_code=201)
async def save_recipe(
    request: SaveRecipeRequest,
    user: Dict[str, Any] = Depends(require_auth),
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    try:
        await recipe_service.save(user["uid"], str(request.recipeId), request.title, request.imageUrl)
        return {"message": "Recipe saved successfully."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "save recipe", e)


@router.delete("/{recipeId}/unsave")
async def unsave_recipe(
    recipeId: str,
    user: Dict[str, Any] = Depends(require_auth),
    recipe_service: RecipeService = Depends(get_recipe_service)
):
    try:
        await recipe_service.unsave(user["uid"], recipeId)
        return {"message": "Recipe removed from saved."}
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "unsave recipe", e)
