"""
Recipe detail lookup by id range, and serving-size customization.

Id ranges: 1000-1999 local table, 3000-3002 one fixed detail per generative
tier, anything else Spoonacular (when configured) or a generic detail.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from app_models import ExternalAPIError, RecipeNotFoundError, ValidationError

logger = logging.getLogger(__name__)

DETAIL_IMAGE = "https://images.unsplash.com/photo-1490818387583-1baba5e638af?w=556&h=370&fit=crop&q=80"
DEFAULT_DETAIL_INGREDIENTS = ["chicken", "rice", "vegetables"]
MAX_SERVINGS = 50

LOCAL_ID_RANGE = range(1000, 2000)

AI_DETAIL_TEMPLATES: Dict[int, Dict[str, Any]] = {
    3000: {
        "title": "Gemini AI Fusion Dish",
        "prepTime": 25,
        "servings": 2,
        "defaults": ["chicken", "rice", "onion"],
        "ingredients": [
            "{0} - 200g",
            "{1} - 1 cup",
            "{2} - 1 medium",
            "garlic - 2 cloves",
            "olive oil - 2 tbsp",
            "salt - to taste",
            "pepper - to taste",
        ],
        "instructions": [
            "Chop {2} and garlic finely",
            "Heat oil in a pan and sauté {2} until translucent",
            "Add {0} and cook until browned",
            "Add {1} and cook for 2 minutes",
            "Add water, cover and simmer for 15-20 minutes",
            "Season with salt and pepper",
            "Serve hot with garnish",
        ],
    },
    3001: {
        "title": "Cohere AI Quick Meal",
        "prepTime": 20,
        "servings": 2,
        "defaults": ["pasta", "tomato", "cheese"],
        "ingredients": [
            "{0} - 200g",
            "{1} - 2 medium",
            "{2} - 100g",
            "basil leaves - handful",
            "garlic - 2 cloves",
            "olive oil - 3 tbsp",
            "salt - to taste",
        ],
        "instructions": [
            "Boil water with salt and cook {0} according to package",
            "Chop {1} and garlic",
            "Heat olive oil in a pan",
            "Sauté garlic until fragrant",
            "Add {1} and cook until soft",
            "Combine with cooked {0}",
            "Top with {2} and basil before serving",
        ],
    },
    3002: {
        "title": "Mistral AI Smart Creation",
        "prepTime": 30,
        "servings": 2,
        "defaults": ["chicken", "bell pepper", "onion"],
        "ingredients": [
            "{0} - 250g",
            "{1} - 1 large",
            "{2} - 1 medium",
            "soy sauce - 2 tbsp",
            "ginger - 1 inch piece",
            "garlic - 3 cloves",
            "sesame oil - 1 tbsp",
        ],
        "instructions": [
            "Slice {0} and vegetables into thin strips",
            "Mince garlic and ginger",
            "Heat sesame oil in a wok or large pan",
            "Stir-fry {0} until cooked through",
            "Add {1} and {2} and stir-fry for 3-4 minutes",
            "Add soy sauce and cook for 1 more minute",
            "Serve immediately",
        ],
    },
}

GENERIC_TEMPLATE: Dict[str, Any] = {
    "title": "Delicious Recipe Creation",
    "prepTime": 30,
    "servings": 2,
    "defaults": ["chicken", "rice", "onion"],
    "ingredients": [
        "{0} - 200g",
        "{1} - 1 cup",
        "{2} - 1 medium",
        "garlic - 3 cloves",
        "olive oil - 2 tbsp",
        "salt - to taste",
        "pepper - to taste",
        "water - 2 cups",
    ],
    "instructions": [
        "Prepare {0}, {1}, {2} by washing and chopping as needed",
        "Heat oil in a pan over medium heat",
        "Sauté onions and garlic until fragrant",
        "Add {0} and cook until done",
        "Season with salt and pepper to taste",
        "Serve hot and enjoy your meal!",
    ],
}

_AMOUNT = re.compile(r"(\d+(?:\.\d+)?)")


def parse_ingredient_line(line: str, index: int) -> Dict[str, Any]:
    """
    Split "name - amount unit" into an extendedIngredients entry.

    "garlic - 2 cloves" -> name "garlic", amount 2.0, unit "cloves".
    Lines without an amount get amount 1.
    """
    parts = line.split(" - ", 1)
    name = parts[0].strip() or line
    amount_unit = parts[1].strip() if len(parts) > 1 else "as needed"

    match = _AMOUNT.search(amount_unit)
    amount = float(match.group(1)) if match else 1
    unit = _AMOUNT.sub("", amount_unit).strip() or "portion"

    return {
        "id": index + 1,
        "name": name,
        "original": line,
        "amount": amount,
        "unit": unit,
    }


def _steps(instructions: List[str]) -> List[Dict[str, Any]]:
    return [{"steps": [{"number": i + 1, "step": step} for i, step in enumerate(instructions)]}]


def _fill_template(template: Dict[str, Any], ingredients: List[str]) -> Dict[str, Any]:
    slots = [
        ingredients[i] if i < len(ingredients) else default
        for i, default in enumerate(template["defaults"])
    ]
    return {
        "ingredients": [line.format(*slots) for line in template["ingredients"]],
        "instructions": [step.format(*slots) for step in template["instructions"]],
    }


def local_detail(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": entry["id"],
        "title": entry["title"],
        "image": entry.get("image", DETAIL_IMAGE),
        "readyInMinutes": entry.get("prepTime") or 20,
        "servings": entry.get("servings") or 2,
        "summary": entry.get("description", ""),
        "extendedIngredients": [parse_ingredient_line(ing, i) for i, ing in enumerate(entry["ingredients"])],
        "analyzedInstructions": _steps(entry["instructions"]),
        "source": "local",
        "isFree": True,
    }


def template_detail(recipe_id: int, template: Dict[str, Any], ingredients: List[str],
                    source: str, summary: str) -> Dict[str, Any]:
    filled = _fill_template(template, ingredients)
    return {
        "id": recipe_id,
        "title": template["title"],
        "image": DETAIL_IMAGE,
        "readyInMinutes": template["prepTime"],
        "servings": template["servings"],
        "summary": summary,
        "extendedIngredients": [parse_ingredient_line(ing, i) for i, ing in enumerate(filled["ingredients"])],
        "analyzedInstructions": _steps(filled["instructions"]),
        "source": source,
        "isFree": True,
    }


def spoonacular_detail(info: Dict[str, Any]) -> Dict[str, Any]:
    """Reshape a Spoonacular /information payload into the detail format."""
    extended = []
    for i, ing in enumerate(info.get("extendedIngredients") or []):
        extended.append({
            "id": ing.get("id", i + 1),
            "name": ing.get("name", ""),
            "original": ing.get("original", ing.get("name", "")),
            "amount": ing.get("amount", 1),
            "unit": ing.get("unit") or "portion",
        })

    return {
        "id": info.get("id"),
        "title": info.get("title", "Unknown"),
        "image": info.get("image") or DETAIL_IMAGE,
        "readyInMinutes": info.get("readyInMinutes") or 30,
        "servings": info.get("servings") or 2,
        "summary": info.get("summary", ""),
        "extendedIngredients": extended,
        "analyzedInstructions": info.get("analyzedInstructions") or [],
        "source": "spoonacular",
        "isFree": True,
    }


def build_recipe_detail(recipe_id: int, ingredients: Optional[List[str]], local_table,
                        spoonacular=None) -> Dict[str, Any]:
    """
    Full recipe detail for an id.

    Args:
        recipe_id: Recipe id from a search result
        ingredients: Query ingredients used to fill synthesized details
        local_table: LocalRecipeTable for the 1000-1999 range
        spoonacular: Optional SpoonacularService for real recipe ids

    Returns:
        Detail dict with extendedIngredients and analyzedInstructions

    Raises:
        RecipeNotFoundError: Local-range id that is not in the table
    """
    ingredients = ingredients or DEFAULT_DETAIL_INGREDIENTS

    if recipe_id in LOCAL_ID_RANGE:
        entry = local_table.get_by_id(recipe_id)
        if entry is None:
            raise RecipeNotFoundError(f"Local recipe {recipe_id} not found")
        return local_detail(entry)

    if recipe_id in AI_DETAIL_TEMPLATES:
        return template_detail(
            recipe_id,
            AI_DETAIL_TEMPLATES[recipe_id],
            ingredients,
            source="ai_generated",
            summary=f"AI-generated recipe using {', '.join(ingredients[:3])}",
        )

    if spoonacular is not None and spoonacular.is_available:
        try:
            return spoonacular_detail(spoonacular.get_recipe_information(recipe_id))
        except ExternalAPIError as e:
            logger.warning(f"Could not fetch Spoonacular details for {recipe_id}: {e.message}")

    return template_detail(
        recipe_id,
        GENERIC_TEMPLATE,
        ingredients,
        source="custom",
        summary="Custom recipe based on your ingredients",
    )


def scale_recipe(detail: Dict[str, Any], servings: Any) -> Dict[str, Any]:
    """
    Scale ingredient amounts of a recipe detail to a new serving count.

    Raises:
        ValidationError: If servings is not an integer between 1 and 50
    """
    try:
        servings = int(servings)
    except (TypeError, ValueError):
        raise ValidationError("servings must be an integer", "servings")
    if not (1 <= servings <= MAX_SERVINGS):
        raise ValidationError(f"servings must be between 1-{MAX_SERVINGS}", "servings")

    original_servings = detail.get("servings") or 1
    factor = servings / original_servings

    scaled = []
    for ing in detail.get("extendedIngredients", []):
        amount = ing.get("amount") or 0
        scaled.append({
            **ing,
            "amount": round(amount * factor, 2),
        })

    return {
        "recipeId": detail.get("id"),
        "title": detail.get("title"),
        "originalServings": original_servings,
        "servings": servings,
        "scaleFactor": round(factor, 3),
        "scaledIngredients": scaled,
    }
