"""OpenFoodFacts API service client."""

import httpx
from typing import Dict, Optional
from config.settings import settings
from utils.logger import setup_logger

logger = setup_logger(__name__)


class OpenFoodFactsService:
    """Client for the OpenFoodFacts v0 product API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or settings.openfoodfacts_base_url).rstrip("/")
        self.timeout = timeout or settings.openfoodfacts_timeout

    async def get_product(self, barcode: str) -> Optional[Dict]:
        """Return the raw product dict, or None when unknown or unreachable."""
        url = f"{self.base_url}/api/v0/product/{barcode}.json"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"OpenFoodFacts returned {e.response.status_code} for {barcode}")
            return None
        except Exception as e:
            logger.error(f"Error fetching product {barcode} from OpenFoodFacts: {e}")
            return None

        if data.get("status") == 1 and data.get("product"):
            return data["product"]
        logger.info(f"OpenFoodFacts has no product for barcode {barcode}")
        return None
