"""Recipe search, cached recipe details and saved recipes."""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from google.cloud import firestore

from config.settings import settings
from models.database import RECIPES, Database
from services.spoonacular_service import SpoonacularService
from utils.errors import NotFound, ValidationFailed
from utils.logger import setup_logger

logger = setup_logger(__name__)

SAVED_RECIPES = "savedRecipes"

# Request goal field -> Spoonacular max filter
MAX_NUTRIENT_PARAMS = {
    "dailyCalories": "maxCalories",
    "proteinGoal": "maxProtein",
    "carbsGoal": "maxCarbs",
    "fatGoal": "maxFat",
    "fiberGoal": "maxFiber",
}

OTHER_TEXT_INTOLERANCES = (
    ("peanut", "peanut"),
    ("tree nut", "tree nut"),
    ("egg", "egg"),
    ("soy", "soy"),
)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def map_dietary_preferences(
    preferences: Any,
    other_text: Optional[str] = None
) -> Tuple[List[str], List[str], List[str], Dict[str, float]]:
    """Translate profile dietary preferences into Spoonacular filters.

    Returns (diets, intolerances, excluded ingredients, max nutrient filters).
    """
    if isinstance(preferences, str):
        preferences = [p for p in preferences.split(",") if p]
    diets, intolerances, excluded = [], [], []
    nutrients: Dict[str, float] = {}

    for preference in preferences or []:
        if not isinstance(preference, str):
            continue
        clean = re.sub(r"[^\w\s'-]", "", preference).strip().lower()
        if clean in ("vegan", "vegetarian", "pescetarian"):
            diets.append(clean)
        elif clean == "gluten free":
            diets.append("gluten free")
            intolerances.append("gluten")
        elif clean == "lactose intolerance":
            intolerances.append("dairy")
        elif clean == "seafood or shellfish allergy":
            intolerances.extend(["seafood", "shellfish"])
        elif clean == "low-sodium diet":
            nutrients["maxSodium"] = 1500
        elif clean == "diabetic-friendly diet":
            nutrients["maxSugar"] = 25
        elif clean.startswith("religious dietary restrictions"):
            excluded.append("pork")
        elif clean == "other":
            text = (other_text or "").lower()
            for keyword, intolerance in OTHER_TEXT_INTOLERANCES:
                if keyword in text:
                    intolerances.append(intolerance)
            if "fish" in text and "shellfish" not in text:
                intolerances.append("fish")

    return _unique(diets), _unique(intolerances), _unique(excluded), nutrients


def _positive(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class RecipeService:
    """Spoonacular search plus Firestore caching and bookmarks."""

    def __init__(self, database: Database, spoonacular: Optional[SpoonacularService] = None):
        self.database = database
        self.spoonacular = spoonacular or SpoonacularService()

    async def fetch_recipes(self, request: Dict[str, Any]) -> List[Dict]:
        diets, intolerances, excluded, nutrients = map_dietary_preferences(
            request.get("dietaryPreferences"), request.get("otherDietaryText")
        )
        for field, param in MAX_NUTRIENT_PARAMS.items():
            value = _positive(request.get(field))
            if value is not None:
                nutrients[param] = value

        recipes = await self.spoonacular.search_recipes(
            query=request.get("searchQuery") or "",
            max_nutrients=nutrients,
            diet=diets,
            intolerances=intolerances,
            exclude_ingredients=excluded,
            max_results=20,
        )
        logger.info(f"Fetched {len(recipes)} recipes (diets={diets}, intolerances={intolerances})")
        return recipes

    async def get_recipe_details(self, recipe_id: str) -> Dict[str, Any]:
        if not str(recipe_id).isdigit():
            raise ValidationFailed(["Valid Recipe ID required."])

        recipe_ref = self.database.collection(RECIPES).document(str(recipe_id))
        snap = await recipe_ref.get()
        if snap.exists:
            cached = snap.to_dict() or {}
            cached_at = cached.get("cachedAt")
            if isinstance(cached_at, datetime) and cached.get("extendedIngredients") and cached.get("instructions"):
                if cached_at.tzinfo is None:
                    cached_at = cached_at.replace(tzinfo=timezone.utc)
                age = datetime.now(timezone.utc) - cached_at
                if age.days < settings.recipe_cache_days:
                    return {**cached, "id": int(recipe_id)}

        details = await self.spoonacular.get_recipe_information(int(recipe_id))
        if not details or not details.get("id"):
            raise NotFound(f"Recipe not found for ID {recipe_id}.")

        await recipe_ref.set({
            **details,
            "id": str(details["id"]),
            "cachedAt": firestore.SERVER_TIMESTAMP,
            "sourceApi": "spoonacular_recipe_information",
        }, merge=True)
        return details

    def saved_ref(self, uid: str, recipe_id: str):
        return self.database.user(uid).collection(SAVED_RECIPES).document(str(recipe_id))

    async def is_saved(self, uid: str, recipe_id: str) -> bool:
        snap = await self.saved_ref(uid, recipe_id).get()
        return snap.exists

    async def save(self, uid: str, recipe_id: str, title: str, image_url: str):
        await self.saved_ref(uid, recipe_id).set({
            "recipeId": str(recipe_id),
            "title": title,
            "imageUrl": image_url,
            "savedAt": firestore.SERVER_TIMESTAMP,
        })

    async def unsave(self, uid: str, recipe_id: str):
        await self.saved_ref(uid, recipe_id).delete()

    async def list_saved(self, uid: str) -> List[Dict[str, Any]]:
        query = self.database.user(uid).collection(SAVED_RECIPES).order_by(
            "savedAt", direction=firestore.Query.DESCENDING
        )
        return [{"id": snap.id, **(snap.to_dict() or {})} async for snap in query.stream()]
