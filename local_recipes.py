"""
Hand-curated local recipes and last-resort recipe generators.

Used when every remote provider is unavailable. The table is built once at
import time and never mutated afterwards.
"""

import logging
from typing import Dict, List, Optional, Any

from app_models import Recipe, SIMPLE_IMAGE
from matching import calculate_match_percentage, clamp_match, normalize_ingredient

logger = logging.getLogger(__name__)

PARTIAL_MATCH_THRESHOLD = 0.5

LOCAL_RECIPES: Dict[str, List[Dict[str, Any]]] = {
    "pasta,egg": [{
        "id": 1001,
        "title": "Pasta with Egg",
        "description": "Simple protein pasta",
        "image": "https://images.unsplash.com/photo-1551183053-bf91a1d81141?w=312&h=231&fit=crop",
        "prepTime": 15,
        "servings": 1,
        "ingredients": ["pasta", "egg", "oil", "salt"],
        "instructions": ["Cook pasta", "Fry egg", "Combine", "Season with salt"],
    }],
    "pasta,onion,egg": [{
        "id": 1002,
        "title": "Pasta with Onion and Egg",
        "description": "Hearty pasta dish with onion and egg",
        "image": "https://images.unsplash.com/photo-1563379926898-05f4575a45d8?w=312&h=231&fit=crop",
        "prepTime": 20,
        "servings": 2,
        "ingredients": ["pasta", "onion", "egg", "oil", "salt", "pepper"],
        "instructions": [
            "Cook pasta until al dente",
            "Slice onion and sauté in oil until soft",
            "Fry eggs sunny side up",
            "Combine pasta with onions",
            "Top with fried eggs and season",
        ],
    }],
    "pasta,tomato": [{
        "id": 1003,
        "title": "Simple Tomato Pasta",
        "description": "Quick tomato sauce pasta",
        "image": "https://images.unsplash.com/photo-1598866594230-a7c12756260f?w=312&h=231&fit=crop",
        "prepTime": 25,
        "servings": 2,
        "ingredients": ["pasta", "tomato", "garlic", "olive oil", "basil"],
        "instructions": [
            "Cook pasta",
            "Sauté garlic in olive oil",
            "Add chopped tomatoes",
            "Simmer for 10 minutes",
            "Toss with pasta and basil",
        ],
    }],
    "rice,egg": [{
        "id": 1004,
        "title": "Egg Fried Rice",
        "description": "Quick and easy fried rice",
        "image": "https://images.unsplash.com/photo-1603133872878-684f208fb84b?w=312&h=231&fit=crop",
        "prepTime": 15,
        "servings": 2,
        "ingredients": ["rice", "egg", "oil", "soy sauce"],
        "instructions": ["Heat oil in pan", "Scramble egg", "Add cooked rice", "Stir fry with soy sauce"],
    }],
    "chicken,rice": [{
        "id": 1005,
        "title": "Chicken and Rice",
        "description": "Simple protein and carb combo",
        "image": "https://images.unsplash.com/photo-1532550907401-a500c9a57435?w=312&h=231&fit=crop",
        "prepTime": 30,
        "servings": 2,
        "ingredients": ["chicken", "rice", "salt", "pepper"],
        "instructions": ["Cook rice", "Cook chicken", "Combine", "Season"],
    }],
    "water,lemon,salt,strawberry": [{
        "id": 1006,
        "title": "Lemon-Strawberry Infused Water",
        "description": "Refreshing infused water",
        "image": "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=312&h=231&fit=crop",
        "prepTime": 5,
        "servings": 4,
        "ingredients": ["water", "lemon", "strawberry", "salt"],
        "instructions": [
            "Slice lemon and strawberries",
            "Add to water with pinch of salt",
            "Refrigerate for 1 hour",
            "Serve chilled",
        ],
    }],
    "chicken,garlic": [{
        "id": 1007,
        "title": "Garlic Chicken",
        "description": "Simple garlic flavored chicken",
        "image": "https://images.unsplash.com/photo-1600891964092-4316c288032e?w=312&h=231&fit=crop",
        "prepTime": 25,
        "servings": 2,
        "ingredients": ["chicken", "garlic", "oil", "salt", "pepper"],
        "instructions": [
            "Season chicken",
            "Sauté garlic in oil",
            "Cook chicken with garlic",
            "Season to taste",
            "Serve hot",
        ],
    }],
    "strawberry,soda": [{
        "id": 1008,
        "title": "Strawberry Soda",
        "description": "Refreshing strawberry soda drink",
        "image": "https://images.unsplash.com/photo-1621506289937-a8e4df240d0b?w=312&h=231&fit=crop",
        "prepTime": 5,
        "servings": 1,
        "ingredients": ["strawberry", "soda"],
        "instructions": ["Wash and slice strawberries", "Add to glass", "Pour soda over", "Serve immediately"],
    }],
    "water,lemon": [{
        "id": 1009,
        "title": "Fresh Lemon Water",
        "description": "Hydrating lemon water",
        "image": "https://images.unsplash.com/photo-1523264939339-c89f9dadde2e?w=312&h=231&fit=crop",
        "prepTime": 2,
        "servings": 1,
        "ingredients": ["water", "lemon"],
        "instructions": ["Squeeze lemon into water", "Stir well", "Serve immediately"],
    }],
    "bread,egg": [{
        "id": 1010,
        "title": "Egg Toast",
        "description": "Simple breakfast toast",
        "image": "https://images.unsplash.com/photo-1482049016688-2d3e1b311543?w=312&h=231&fit=crop",
        "prepTime": 10,
        "servings": 1,
        "ingredients": ["bread", "egg", "butter", "salt"],
        "instructions": ["Toast bread", "Fry egg", "Place egg on toast", "Season with salt"],
    }],
    "bread,cheese": [{
        "id": 1011,
        "title": "Grilled Cheese",
        "description": "Simple grilled cheese sandwich",
        "image": "https://images.unsplash.com/photo-1528735602780-2552fd46c7af?w=312&h=231&fit=crop",
        "prepTime": 10,
        "servings": 1,
        "ingredients": ["bread", "cheese", "butter"],
        "instructions": ["Butter bread", "Add cheese", "Grill until golden", "Serve hot"],
    }],
    "potato,onion": [{
        "id": 1012,
        "title": "Potato Onion Fry",
        "description": "Simple vegetable dish",
        "image": "https://images.unsplash.com/photo-1513104890138-7c749659a591?w=312&h=231&fit=crop",
        "prepTime": 25,
        "servings": 2,
        "ingredients": ["potato", "onion", "oil", "salt"],
        "instructions": ["Slice potatoes and onions", "Heat oil", "Fry until golden", "Season with salt"],
    }],
    "tomato,onion": [{
        "id": 1013,
        "title": "Tomato Onion Salad",
        "description": "Fresh vegetable salad",
        "image": "https://images.unsplash.com/photo-1540189549336-e6e99c3679fe?w=312&h=231&fit=crop",
        "prepTime": 10,
        "servings": 2,
        "ingredients": ["tomato", "onion", "salt", "lemon"],
        "instructions": ["Chop tomatoes and onions", "Mix together", "Add salt and lemon juice", "Serve fresh"],
    }],
    "egg,tomato": [{
        "id": 1014,
        "title": "Tomato Egg Scramble",
        "description": "Quick breakfast scramble",
        "image": "https://images.unsplash.com/photo-1490818387583-1baba5e638af?w=312&h=231&fit=crop",
        "prepTime": 15,
        "servings": 1,
        "ingredients": ["egg", "tomato", "oil", "salt"],
        "instructions": ["Chop tomato", "Beat eggs", "Scramble with tomato", "Season with salt"],
    }],
    "milk,chocolate": [{
        "id": 1015,
        "title": "Hot Chocolate",
        "description": "Warm chocolate drink",
        "image": "https://images.unsplash.com/photo-1544787219-7f47ccb76574?w=312&h=231&fit=crop",
        "prepTime": 10,
        "servings": 1,
        "ingredients": ["milk", "chocolate", "sugar"],
        "instructions": ["Heat milk", "Add chocolate", "Stir until melted", "Add sugar to taste"],
    }],
}


def canonical_key(ingredients: List[str]) -> str:
    """Sorted, comma-joined normalized ingredient combination."""
    return ",".join(sorted(normalize_ingredient(i) for i in ingredients if normalize_ingredient(i)))


def _ingredients_overlap(a: str, b: str) -> bool:
    return a in b or b in a


class LocalRecipeTable:
    """Static ingredient-combination -> recipes lookup with fuzzy partial matching."""

    def __init__(self, recipes: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        source = LOCAL_RECIPES if recipes is None else recipes
        self._entries: Dict[str, List[Dict[str, Any]]] = {}
        for key, entries in source.items():
            self._entries.setdefault(canonical_key(key.split(",")), []).extend(entries)
        logger.debug(f"Local recipe table loaded with {len(self._entries)} ingredient combinations")

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, ingredients: List[str]) -> List[Recipe]:
        """
        Find local recipes for the user's ingredients.

        Exact combination matches are scored with the match scorer; other
        combinations are included when at least half of the user's
        ingredients overlap them, scored by that ratio.

        Args:
            ingredients: User ingredients (raw or normalized)

        Returns:
            Unranked list of Recipe objects (possibly empty)
        """
        normalized = [n for n in (normalize_ingredient(i) for i in ingredients) if n]
        if not normalized:
            return []

        matched: List[Recipe] = []
        exact_key = canonical_key(normalized)

        for entry in self._entries.get(exact_key, []):
            score = calculate_match_percentage(normalized, entry["ingredients"])
            matched.append(self._to_recipe(entry, score))

        for key, entries in self._entries.items():
            if key == exact_key:
                continue
            key_ingredients = key.split(",")
            match_count = sum(
                1 for user_ingredient in normalized
                if any(_ingredients_overlap(user_ingredient, k) for k in key_ingredients)
            )
            ratio = match_count / len(normalized)
            if ratio >= PARTIAL_MATCH_THRESHOLD:
                for entry in entries:
                    matched.append(self._to_recipe(entry, clamp_match(ratio * 100)))

        logger.info(f"Local table matched {len(matched)} recipes for {', '.join(normalized)}")
        return matched

    def get_by_id(self, recipe_id: int) -> Optional[Dict[str, Any]]:
        """Return the raw local entry with this id, or None."""
        for entries in self._entries.values():
            for entry in entries:
                if entry["id"] == recipe_id:
                    return entry
        return None

    @staticmethod
    def _to_recipe(entry: Dict[str, Any], match_percentage: int) -> Recipe:
        return Recipe(
            id=entry["id"],
            title=entry["title"],
            image=entry.get("image", SIMPLE_IMAGE),
            ready_in_minutes=entry.get("prepTime") or 20,
            servings=entry.get("servings") or 2,
            match_percentage=match_percentage,
            source="local",
            summary=entry.get("description", ""),
            ingredients=list(entry.get("ingredients", [])),
            instructions=list(entry.get("instructions", [])),
            cheap=True,
        )


def generate_simple_recipes(ingredients: List[str]) -> List[Recipe]:
    """One trivial preparation per ingredient, for when nothing else matched."""
    recipes = []
    for index, ingredient in enumerate(i for i in ingredients if i):
        recipes.append(Recipe(
            id=2000 + index,
            title=f"{ingredient[:1].upper()}{ingredient[1:]} Simple Prep",
            image=SIMPLE_IMAGE,
            ready_in_minutes=10,
            servings=1,
            match_percentage=90,
            source="generated",
            summary=f"Simple preparation using {ingredient}",
            ingredients=[ingredient],
            instructions=[
                f"Prepare {ingredient}",
                "Cook as desired",
                "Season to taste",
                "Serve and enjoy",
            ],
            cheap=True,
        ))
    return recipes


def emergency_recipe() -> Recipe:
    """The hard-coded recipe returned when the chain produced nothing at all."""
    return Recipe(
        id=9999,
        title="Simple Kitchen Creation",
        image=SIMPLE_IMAGE,
        ready_in_minutes=20,
        servings=2,
        match_percentage=70,
        source="emergency",
        summary="Create something delicious with what you have!",
        instructions=[
            "Prepare your ingredients",
            "Combine creatively",
            "Cook using available method",
            "Season and serve",
        ],
        cheap=True,
    )


def emergency_backup_recipes(ingredients: List[str]) -> List[Dict[str, Any]]:
    """Fixed recipes served by the emergency endpoint."""
    ingredients = ingredients or ["food"]
    return [
        {
            "id": 99991,
            "title": "Simple Kitchen Creation",
            "description": "Emergency fallback recipe",
            "image": SIMPLE_IMAGE,
            "prepTime": 15,
            "servings": 2,
            "matchPercentage": 85,
            "ingredients": ingredients,
            "instructions": [
                "Prepare your ingredients",
                "Combine creatively",
                "Season to taste",
                "Cook as needed",
                "Serve and enjoy",
            ],
            "source": "emergency_backup",
        },
        {
            "id": 99992,
            "title": "Quick Ingredient Mix",
            "description": "Simple combination of your items",
            "image": "https://images.unsplash.com/photo-1504674900247-0877df9cc836?w=312&h=231&fit=crop&q=80",
            "prepTime": 10,
            "servings": 1,
            "matchPercentage": 90,
            "ingredients": ingredients[:3],
            "instructions": [
                "Wash and prepare ingredients",
                "Mix together in a bowl",
                "Add basic seasonings",
                "Serve immediately",
            ],
            "source": "emergency_backup",
        },
    ]
