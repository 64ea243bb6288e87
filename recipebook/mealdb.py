# Async client for TheMealDB (https://www.themealdb.com/api.php)

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import settings

log = logging.getLogger(__name__)


class MealDBError(Exception):
    """TheMealDB could not be reached or answered with something unusable."""


class MealDBClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _meals(self, path: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            r = await self.http.get(path, params=params)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MealDBError(f"GET {path} failed: {e}") from e
        if not isinstance(data, dict):
            raise MealDBError(f"GET {path} returned {type(data).__name__}, not an object")
        # {"meals": null} is how the API says "nothing found"
        meals = data.get("meals")
        if meals is None:
            return []
        if not isinstance(meals, list) or not all(isinstance(m, dict) for m in meals):
            raise MealDBError(f"GET {path} returned malformed meals: {meals!r:.80}")
        return meals

    async def search_by_name(self, name: str) -> List[Dict[str, Any]]:
        return await self._meals("/search.php", {"s": name})

    async def filter_by_ingredient(self, ingredient: str) -> List[Dict[str, Any]]:
        """Return lightweight stubs (idMeal, strMeal, strMealThumb)."""
        return await self._meals("/filter.php", {"i": ingredient})

    async def lookup(self, meal_id: str) -> Optional[Dict[str, Any]]:
        meals = await self._meals("/lookup.php", {"i": meal_id})
        return meals[0] if meals else None


def _base_url() -> str:
    # httpx joins relative paths onto the base only with a trailing slash
    return settings.mealdb_api_url.rstrip("/") + "/"


async def get_mealdb():
    """FastAPI dependency yielding a client bound to one HTTP connection pool."""
    async with httpx.AsyncClient(
        base_url=_base_url(), timeout=settings.mealdb_timeout
    ) as http:
        yield MealDBClient(http)
