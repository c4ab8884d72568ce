"""
Ingredient normalization and match scoring.

The match percentage is a token-overlap heuristic: exact ingredient matches
count fully, substring matches partially, and short recipes get a bonus.
"""

import math
import re
from typing import Iterable, List, Optional

DESCRIPTIVE_WORDS = (
    "chopped", "diced", "sliced", "minced", "grated",
    "fresh", "dried", "ground", "powdered",
)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_DESCRIPTIVE = re.compile(r"\b(?:" + "|".join(DESCRIPTIVE_WORDS) + r")\b")
_WHITESPACE = re.compile(r"\s+")

EXACT_MATCH_SCORE = 1.0
PARTIAL_MATCH_SCORE = 0.6
SIMPLE_RECIPE_SIZE = 3
SIMPLE_RECIPE_BONUS = 1.2
MIN_MATCH = 15
MAX_MATCH = 98
NO_RECIPE_INGREDIENTS_MATCH = 10
NO_USER_INGREDIENTS_MATCH = 0


def normalize_ingredient(ingredient: Optional[str]) -> str:
    """
    Normalize a free-text ingredient into a comparable token.

    "Chopped Fresh Tomatoes!" -> "tomatoes". Normalizing an already
    normalized token returns it unchanged.
    """
    if not ingredient:
        return ""
    token = _NON_ALNUM.sub("", ingredient.lower())
    token = _DESCRIPTIVE.sub("", token)
    return _WHITESPACE.sub(" ", token).strip()


def parse_ingredient_list(raw: Optional[str]) -> List[str]:
    """Split a comma separated query value, dropping blank entries."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def clamp_match(percentage: float) -> int:
    """Round half up and clamp into the [15, 98] match range."""
    rounded = int(math.floor(percentage + 0.5))
    return min(max(rounded, MIN_MATCH), MAX_MATCH)


def calculate_match_percentage(
    user_ingredients: Iterable[str],
    recipe_ingredients: Optional[List[str]]
) -> int:
    """
    Score how well a recipe's ingredients overlap the user's ingredients.

    Args:
        user_ingredients: Ingredients the user has (raw or normalized)
        recipe_ingredients: Raw ingredient strings of the candidate recipe

    Returns:
        Integer percentage in [15, 98]; 10 when the recipe lists no
        ingredients, 0 when the user supplied none
    """
    if not recipe_ingredients:
        return NO_RECIPE_INGREDIENTS_MATCH

    user_set = {normalize_ingredient(i) for i in user_ingredients or []}
    user_set.discard("")
    if not user_set:
        return NO_USER_INGREDIENTS_MATCH

    score = 0.0
    for recipe_ingredient in recipe_ingredients:
        normalized = normalize_ingredient(recipe_ingredient)
        if normalized in user_set:
            score += EXACT_MATCH_SCORE
            continue
        # Only the first partial match counts
        for user_ingredient in user_set:
            if user_ingredient in normalized or (normalized and normalized in user_ingredient):
                score += PARTIAL_MATCH_SCORE
                break

    percentage = score / len(recipe_ingredients) * 100
    if len(recipe_ingredients) <= SIMPLE_RECIPE_SIZE:
        percentage *= SIMPLE_RECIPE_BONUS

    return clamp_match(percentage)
