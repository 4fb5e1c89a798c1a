"""Spoonacular API service client."""

import random
import httpx
from typing import Any, Dict, List, Optional
from config.settings import settings
from utils.errors import QuotaExceeded
from utils.logger import setup_logger

logger = setup_logger(__name__)


class SpoonacularConfigError(RuntimeError):
    """Raised when the Spoonacular API key is missing."""


class SpoonacularService:
    """Client for Spoonacular API."""

    BASE_URL = "https://api.spoonacular.com"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.spoonacular_api_key

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            logger.warning("Spoonacular API key not configured")
            raise SpoonacularConfigError("Server configuration error: Missing Spoonacular API Key.")

        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.BASE_URL}{path}",
                params={"apiKey": self.api_key, **params},
                timeout=10.0
            )
            if response.status_code == 402:
                logger.error("Spoonacular daily quota exhausted")
                raise QuotaExceeded("Spoonacular API quota likely exceeded.")
            response.raise_for_status()
            return response.json()

    async def search_recipes(
        self,
        query: str = "",
        max_nutrients: Optional[Dict[str, float]] = None,
        diet: Optional[List[str]] = None,
        intolerances: Optional[List[str]] = None,
        exclude_ingredients: Optional[List[str]] = None,
        max_results: int = 20,
        offset: Optional[int] = None
    ) -> List[Dict]:
        """Search for recipes matching criteria, starting at a random offset."""
        params: Dict[str, Any] = {
            "number": max_results,
            "addRecipeNutrition": True,
            "instructionsRequired": True,
            "fillIngredients": False,
            "offset": random.randint(0, 99) if offset is None else offset,
        }

        if query:
            params["query"] = query

        for name, value in (max_nutrients or {}).items():
            params[name] = value

        if diet:
            params["diet"] = ",".join(diet)

        if intolerances:
            params["intolerances"] = ",".join(intolerances)

        if exclude_ingredients:
            params["excludeIngredients"] = ",".join(exclude_ingredients)

        data = await self._get("/recipes/complexSearch", params)
        recipes = data.get("results", [])

        # Prefer results that carry nutrition data
        with_nutrition = [r for r in recipes if (r.get("nutrition") or {}).get("nutrients")]
        return with_nutrition or recipes

    async def get_recipe_information(self, recipe_id: int) -> Optional[Dict]:
        """Get full recipe details including nutrition."""
        try:
            return await self._get(f"/recipes/{recipe_id}/information", {"includeNutrition": True})
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
