"""Tests for recipe search, details caching and saved recipes."""

from datetime import datetime, timezone

import pytest

from api.dependencies import get_recipe_service
from api.main import app
from services.recipe_service import RecipeService, map_dietary_preferences
from services.spoonacular_service import SpoonacularService


class FakeSpoonacular:
    def __init__(self, details=None):
        self.details = details or {}
        self.searches = []
        self.lookups = []

    async def search_recipes(self, **kwargs):
        self.searches.append(kwargs)
        return [{"id": 1, "title": "Salad"}]

    async def get_recipe_information(self, recipe_id):
        self.lookups.append(recipe_id)
        return self.details.get(recipe_id)


def test_map_dietary_preferences():
    diets, intolerances, excluded, nutrients = map_dietary_preferences([
        "Vegan 🌱",
        "Gluten Free",
        "Lactose Intolerance",
        "Seafood or Shellfish Allergy",
        "Low-Sodium Diet",
        "Diabetic-Friendly Diet",
        "Religious Dietary Restrictions (Halal)",
    ])

    assert diets == ["vegan", "gluten free"]
    assert intolerances == ["gluten", "dairy", "seafood", "shellfish"]
    assert excluded == ["pork"]
    assert nutrients == {"maxSodium": 1500, "maxSugar": 25}


def test_other_preferences_text():
    _, intolerances, _, _ = map_dietary_preferences("Other", "No peanuts, eggs or fish please")
    assert intolerances == ["peanut", "egg", "fish"]

    _, intolerances, _, _ = map_dietary_preferences(["Other"], "shellfish")
    assert intolerances == []


@pytest.mark.asyncio
async def test_fetch_recipes_builds_filters(database):
    spoonacular = FakeSpoonacular()
    service = RecipeService(database, spoonacular)

    recipes = await service.fetch_recipes({
        "searchQuery": "bowl",
        "dietaryPreferences": ["Vegetarian"],
        "dailyCalories": 600,
        "proteinGoal": "40",
        "fatGoal": 0,
    })

    assert recipes == [{"id": 1, "title": "Salad"}]
    search = spoonacular.searches[0]
    assert search["query"] == "bowl"
    assert search["diet"] == ["vegetarian"]
    assert search["max_nutrients"] == {"maxCalories": 600, "maxProtein": 40}


@pytest.mark.asyncio
async def test_recipe_details_are_cached(database, store):
    details = {"id": 42, "title": "Soup", "extendedIngredients": [{"name": "leek"}], "instructions": "Boil."}
    spoonacular = FakeSpoonacular({42: details})
    service = RecipeService(database, spoonacular)

    first = await service.get_recipe_details("42")
    assert first["title"] == "Soup"
    assert store.get("recipes/42")["sourceApi"] == "spoonacular_recipe_information"

    # Fresh cache entries are served without calling the API
    store.documents["recipes/42"]["cachedAt"] = datetime.now(timezone.utc)
    second = await service.get_recipe_details("42")

    assert second["id"] == 42
    assert spoonacular.lookups == [42]


@pytest.mark.asyncio
async def test_stale_cache_is_refreshed(database, store):
    store.seed("recipes/7", {
        "id": "7", "title": "Old", "extendedIngredients": [{}], "instructions": "x",
        "cachedAt": datetime(2020, 1, 1, tzinfo=timezone.utc),
    })
    spoonacular = FakeSpoonacular({7: {"id": 7, "title": "New"}})

    details = await RecipeService(database, spoonacular).get_recipe_details("7")

    assert details["title"] == "New"
    assert spoonacular.lookups == [7]


@pytest.mark.asyncio
async def test_unknown_recipe(database):
    from utils.errors import NotFound, ValidationFailed

    service = RecipeService(database, FakeSpoonacular())
    with pytest.raises(NotFound):
        await service.get_recipe_details("5")
    with pytest.raises(ValidationFailed):
        await service.get_recipe_details("soup")


def test_missing_api_key_is_a_server_error(client, database):
    app.dependency_overrides[get_recipe_service] = lambda: RecipeService(database, SpoonacularService(api_key=""))

    response = client.post("/recipes/fetch-recipes", json={"searchQuery": "pasta"})

    assert response.status_code == 500


def test_saved_recipes(client, make_user, store):
    headers = make_user("u1")

    saved = client.post("/recipes/save", json={"recipeId": 42, "title": "Soup", "imageUrl": "s.png"}, headers=headers)
    client.post("/recipes/save", json={"recipeId": "7", "title": "Stew"}, headers=headers)

    assert saved.status_code == 201
    assert client.get("/recipes/42/is-saved", headers=headers).json() == {"isSaved": True}
    listing = client.get("/recipes/saved", headers=headers).json()
    assert [r["id"] for r in listing] == ["7", "42"]
    assert listing[1]["recipeId"] == "42"

    client.delete("/recipes/42/unsave", headers=headers)
    assert client.get("/recipes/42/is-saved", headers=headers).json() == {"isSaved": False}
    assert store.get("users/u1/savedRecipes/42") is None


@pytest.mark.asyncio
async def test_spoonacular_quota_is_surfaced(monkeypatch):
    import httpx

    from utils.errors import QuotaExceeded

    transport = httpx.MockTransport(lambda request: httpx.Response(402, json={"message": "quota"}))
    original = httpx.AsyncClient

    class MockedClient(original):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, transport=transport, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", MockedClient)

    with pytest.raises(QuotaExceeded):
        await SpoonacularService(api_key="key").search_recipes(query="pasta", offset=0)
