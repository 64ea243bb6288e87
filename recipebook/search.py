"""Recipe search across TheMealDB and the local recipe store.

Sources are tried in order and the first one that returns anything wins:

1. TheMealDB name search
2. TheMealDB ingredient filter, expanded with a detail lookup per meal
3. substring match against user-submitted recipes

Failures of the top-level TheMealDB calls propagate (the caller reports
"search failed"); a failed detail lookup only drops that one meal.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from . import crud, schemas
from .mealdb import MealDBClient, MealDBError
from .normalize import meal_to_recipe

log = logging.getLogger(__name__)

# the ingredient filter returns stubs only; each needs its own lookup
MAX_DETAIL_LOOKUPS = 10


class RecipeSource(ABC):
    name: str = "unknown"

    @abstractmethod
    async def search(self, query: str) -> List[schemas.Recipe]:
        """Return matching recipes, or an empty list."""


class NameSearch(RecipeSource):
    name = "mealdb-name"

    def __init__(self, client: MealDBClient):
        self.client = client

    async def search(self, query: str) -> List[schemas.Recipe]:
        meals = await self.client.search_by_name(query)
        try:
            return [meal_to_recipe(m) for m in meals]
        except ValidationError as e:
            raise MealDBError(f"name search returned an unusable meal: {e}") from e


class IngredientSearch(RecipeSource):
    name = "mealdb-ingredient"

    def __init__(self, client: MealDBClient, max_lookups: int = MAX_DETAIL_LOOKUPS):
        self.client = client
        self.max_lookups = max_lookups

    async def _detail(self, stub: dict) -> Optional[schemas.Recipe]:
        meal_id = stub.get("idMeal")
        if not meal_id:
            return None
        try:
            meal = await self.client.lookup(str(meal_id))
        except MealDBError as e:
            log.warning("detail lookup for meal %s failed: %s", meal_id, e)
            return None
        if meal is None:
            log.warning("detail lookup for meal %s returned nothing", meal_id)
            return None
        try:
            return meal_to_recipe(meal)
        except ValidationError as e:
            log.warning("meal %s could not be converted: %s", meal_id, e)
            return None

    async def search(self, query: str) -> List[schemas.Recipe]:
        stubs = (await self.client.filter_by_ingredient(query))[: self.max_lookups]
        # gather keeps argument order, so results line up with the stubs
        details = await asyncio.gather(*(self._detail(s) for s in stubs))
        return [d for d in details if d is not None]


class LocalSearch(RecipeSource):
    name = "local"

    def __init__(self, db: Session):
        self.db = db

    async def search(self, query: str) -> List[schemas.Recipe]:
        def _query():
            rows = crud.search_recipes(self.db, query)
            return [schemas.Recipe.model_validate(r) for r in rows]

        # sqlalchemy sessions are blocking; keep the event loop free
        return await run_in_threadpool(_query)


class SearchOrchestrator:
    def __init__(self, sources: Sequence[RecipeSource]):
        self.sources = list(sources)

    async def search(self, query: str) -> List[schemas.Recipe]:
        if not query or not query.strip():
            raise ValueError("search query must not be empty")
        for source in self.sources:
            results = await source.search(query)
            if results:
                log.info(
                    "search %r answered by %s with %d recipe(s)",
                    query, source.name, len(results),
                )
                return results
        log.info("search %r found nothing", query)
        return []


def build_orchestrator(client: MealDBClient, db: Session) -> SearchOrchestrator:
    return SearchOrchestrator(
        [NameSearch(client), IngredientSearch(client), LocalSearch(db)]
    )
