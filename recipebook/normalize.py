# Conversion of TheMealDB records into the canonical recipe shape

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

# TheMealDB flattens ingredients into strIngredient1..20 / strMeasure1..20
MAX_INGREDIENTS = 20


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def normalize_ingredients(meal: Mapping[str, Any]) -> str:
    """Return the meal's ingredients as newline-separated entries.

    Pairs are read in field order 1..20. A pair with a blank ingredient is
    skipped; otherwise the entry is ``"<measure> <ingredient>"`` when the
    measure is present, else the bare ingredient. The ingredient text is kept
    as-is, only the measure is trimmed.
    """
    entries = []
    for i in range(1, MAX_INGREDIENTS + 1):
        ingredient = meal.get(f"strIngredient{i}")
        if _is_blank(ingredient):
            continue
        measure = meal.get(f"strMeasure{i}")
        if _is_blank(measure):
            entries.append(str(ingredient))
        else:
            entries.append(f"{str(measure).strip()} {ingredient}")
    return "\n".join(entries)


def meal_to_recipe(meal: Mapping[str, Any], now: Optional[datetime] = None):
    """Map a full TheMealDB record onto a :class:`schemas.Recipe`."""
    from .schemas import FALLBACK_CATEGORY, Recipe

    return Recipe(
        id=str(meal.get("idMeal") or ""),
        title=meal.get("strMeal") or "",
        ingredients=normalize_ingredients(meal),
        instructions=meal.get("strInstructions") or "",
        image_url=meal.get("strMealThumb") or "",
        category=meal.get("strCategory") or FALLBACK_CATEGORY,
        created_by=None,
        created_at=now or datetime.now(timezone.utc),
    )


def clean_ingredient_text(text: str) -> str:
    # one ingredient per line, blank lines dropped, order kept
    if not text:
        return ""
    lines = [x.strip() for x in text.split("\n") if x and x.strip()]
    return "\n".join(lines)
