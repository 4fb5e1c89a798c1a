"""Barcode lookup with a two level cache in front of OpenFoodFacts."""

import re
import time
from typing import Any, Callable, Dict, Optional, Tuple

from config.settings import settings
from models.database import FOODS, Database
from services.openfoodfacts_service import OpenFoodFactsService
from utils.errors import NotFound, ValidationFailed
from utils.helpers import utc_now
from utils.logger import setup_logger

logger = setup_logger(__name__)

BARCODE_PATTERN = re.compile(r'^\d+$')
MIN_BARCODE_LENGTH = 8
NUMERIC_FIELDS = (
    "fat_per_100g",
    "protein_per_100g",
    "carbs_per_100g",
    "fiber_per_100g",
    "calories_only_per_100g",
)


class ProductCache:
    """In-process barcode cache whose entries expire after ``ttl`` seconds.

    Expired entries are swept on write, at most once every ``check_period``
    seconds, so barcodes that are never read again do not pile up.
    """

    def __init__(self, ttl: int, check_period: int = 10800, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.check_period = check_period
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._next_sweep = clock() + check_period

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Dict[str, Any]):
        now = self.clock()
        if now >= self._next_sweep:
            self.sweep(now)
        self._entries[key] = (now + self.ttl, value)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self.clock() if now is None else now
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self.check_period
        if expired:
            logger.debug(f"Swept {len(expired)} expired barcodes from the product cache")
        return len(expired)

    def clear(self):
        self._entries.clear()


# Shared by every request of the process
product_cache = ProductCache(settings.food_cache_ttl_seconds, settings.food_cache_check_period_seconds)


def _to_number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number


def structure_product(barcode: str, product: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten an OpenFoodFacts product into the stored food document."""
    nutriments = product.get("nutriments") or {}
    ingredients = (
        product.get("ingredients_text_fr")
        or product.get("ingredients_text")
        or "Ingredients not available."
    )
    calories = _to_number(nutriments.get("energy-kcal_100g"))
    now = utc_now()

    return {
        "product_name": product.get("product_name") or product.get("product_name_fr") or "Unnamed Product",
        "ingredients_description_with_calories": (
            f"{ingredients} (Nutritional values per 100g - Calories: {calories:g} kcal)"
        ),
        "fat_per_100g": _to_number(nutriments.get("fat_100g")),
        "protein_per_100g": _to_number(nutriments.get("proteins_100g")),
        "carbs_per_100g": _to_number(nutriments.get("carbohydrates_100g")),
        "fiber_per_100g": _to_number(nutriments.get("fiber_100g")),
        "brand": product.get("brands") or "Brand not specified",
        "barcode": barcode,
        "found": True,
        "source": "openfoodfacts-v0",
        "image_url": product.get("image_url") or product.get("image_front_url"),
        "calories_only_per_100g": calories,
        "addedAt": now,
        "lastCheckedAt": now,
    }


class FoodService:
    """Resolve barcodes: memory cache, then Firestore, then OpenFoodFacts."""

    def __init__(
        self,
        database: Database,
        off_client: Optional[OpenFoodFactsService] = None,
        cache: Optional[ProductCache] = None
    ):
        self.database = database
        self.off_client = off_client or OpenFoodFactsService()
        self.cache = cache if cache is not None else product_cache

    async def get_by_barcode(self, barcode: str) -> Dict[str, Any]:
        if not barcode or not BARCODE_PATTERN.match(barcode) or len(barcode) < MIN_BARCODE_LENGTH:
            raise ValidationFailed(["Invalid barcode format provided."])

        cached = self.cache.get(barcode)
        if cached is not None:
            if cached.get("found") is False:
                raise NotFound("Product not found (checked cache).")
            return cached

        food_ref = self.database.collection(FOODS).document(barcode)
        snap = await food_ref.get()
        if snap.exists:
            data = snap.to_dict() or {}
            if data.get("found") is False:
                self.cache.set(barcode, {"found": False})
                raise NotFound("Product not found (checked database).")
            for field in NUMERIC_FIELDS:
                data[field] = _to_number(data.get(field))
            self.cache.set(barcode, data)
            return data

        product = await self.off_client.get_product(barcode)
        if product is None:
            marker = {"found": False, "checkedAt": utc_now()}
            self.cache.set(barcode, marker)
            try:
                await food_ref.set(marker, merge=True)
            except Exception as e:
                logger.error(f"Error saving not-found marker for {barcode}: {e}")
            raise NotFound("Product not found in OpenFoodFacts database.")

        food = structure_product(barcode, product)
        self.cache.set(barcode, food)
        try:
            await food_ref.set(food)
        except Exception as e:
            logger.error(f"Error caching product {barcode} in Firestore: {e}")
        logger.info(f"Fetched product {barcode} from OpenFoodFacts: {food['product_name']}")
        return food
