"""
Service layer for external API calls and business logic.
Handles Spoonacular, Gemini, Cohere and OpenRouter, and the fallback chain
that tries them in order before falling back to local recipes.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Tuple

import requests
from google import genai
from google.genai import types

from app_models import (
    Recipe, ProviderResult, FallbackTrace, RecipeSearchResult, SearchQuery,
    ExternalAPIError, DEFAULT_IMAGE, DEFAULT_RESULT_COUNT, MAX_RESULT_COUNT
)
from config import AppConfig
from local_recipes import LocalRecipeTable, generate_simple_recipes, emergency_recipe
from matching import calculate_match_percentage
import recipe_details

logger = logging.getLogger(__name__)

POPULAR_INGREDIENTS = [
    "chicken", "rice", "pasta", "tomato", "onion", "garlic", "egg", "cheese",
    "potato", "carrot", "broccoli", "spinach", "mushroom", "bell pepper",
    "lemon", "lime", "ginger", "soy sauce", "olive oil", "butter", "milk",
    "flour", "sugar", "honey", "bread", "beans", "lentils", "tofu", "fish",
    "salt", "pepper", "oil", "water", "strawberry", "apple", "banana",
    "chocolate", "yogurt", "cucumber", "avocado", "bacon", "sausage",
]
MAX_SUGGESTIONS = 8
MIN_SUGGESTION_QUERY = 2

RECIPE_JSON_FORMAT = """Required JSON format:
{
  "title": "Recipe Name",
  "description": "Brief description (1 sentence)",
  "prepTime": 25,
  "servings": 2,
  "ingredients": ["ingredient1", "ingredient2"],
  "instructions": ["Step 1", "Step 2", "Step 3"],
  "tips": "Optional cooking tip"
}"""


def extract_recipe_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Best-effort extraction of a JSON object from free model output.

    Takes everything from the first "{" to the last "}" and parses it, so
    prose or markdown fences around the object are tolerated.

    Args:
        text: Raw text returned by a generative model

    Returns:
        Parsed dict, or None if no JSON object could be recovered
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def synthesize_recipe_data(brand: str, ingredients: List[str]) -> Dict[str, Any]:
    """Minimal recipe used when a model answered with unparseable text."""
    return {
        "title": f"{brand} Recipe with {ingredients[0] if ingredients else 'Ingredients'}",
        "description": f"{brand} AI-generated recipe using {', '.join(ingredients)}",
        "prepTime": 25,
        "servings": 2,
        "ingredients": list(ingredients),
        "instructions": [
            f"Prepare {' and '.join(ingredients)}",
            "Combine ingredients creatively",
            "Cook using your preferred method",
            "Season to taste",
            "Serve and enjoy",
        ],
        "tips": "Adjust based on what you have available",
    }


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = int(value)
        return number if number > 0 else default
    match = re.search(r"\d+", str(value or ""))
    return int(match.group()) if match and int(match.group()) > 0 else default


def _string_list(value: Any, default: List[str]) -> List[str]:
    if isinstance(value, list):
        items = [str(v).strip() for v in value if str(v).strip()]
        return items or default
    if isinstance(value, str) and value.strip():
        return [line.strip() for line in value.splitlines() if line.strip()]
    return default


class RecipeProvider(ABC):
    """
    One tier of the fallback chain.

    Subclasses implement _fetch(); fetch_recipes() turns "not configured",
    any failure and an empty answer into an unavailable ProviderResult so the
    caller never sees a provider error.
    """

    key = "provider"
    name = "Provider"
    source = "unknown"

    def __init__(self, api_key: Optional[str], available: Optional[bool] = None):
        self.api_key = api_key
        self.is_available = bool(api_key) if available is None else available

    def fetch_recipes(self, ingredients: List[str], filter_name: Optional[str] = None) -> ProviderResult:
        """
        Fetch recipes for normalized ingredients.

        Args:
            ingredients: Normalized ingredient tokens
            filter_name: Optional "quick", "healthy" or "vegetarian"

        Returns:
            ProviderResult with recipes, or unavailable with a reason
        """
        if not self.is_available:
            logger.info(f"{self.name} not configured, skipping")
            return ProviderResult.unavailable(ProviderResult.NOT_CONFIGURED)

        try:
            recipes = self._fetch(ingredients, filter_name)
        except ExternalAPIError as e:
            logger.warning(f"{self.name} unavailable: {e.message}")
            return ProviderResult.unavailable(ProviderResult.CALL_FAILED)
        except Exception as e:
            logger.error(f"Unexpected {self.name} error: {str(e)}")
            return ProviderResult.unavailable(ProviderResult.CALL_FAILED)

        if not recipes:
            logger.info(f"{self.name} returned no recipes")
            return ProviderResult.unavailable(ProviderResult.EMPTY)
        return ProviderResult.success(recipes)

    @abstractmethod
    def _fetch(self, ingredients: List[str], filter_name: Optional[str]) -> List[Recipe]:
        """Call the provider; raise ExternalAPIError on failure."""


class SpoonacularService(RecipeProvider):
    """Handle all Spoonacular API calls."""

    key = "spoonacular"
    name = "Spoonacular"
    source = "spoonacular"

    BASE_URL = "https://api.spoonacular.com"
    REQUEST_TIMEOUT = 8
    AUTOCOMPLETE_TIMEOUT = 3
    SEARCH_RESULTS = MAX_RESULT_COUNT

    FILTER_PARAMS = {
        "quick": {"maxReadyTime": 30},
        "healthy": {"maxCalories": 500},
        "vegetarian": {"diet": "vegetarian"},
    }

    def search_recipes_by_ingredients(
        self,
        ingredients: List[str],
        filter_name: Optional[str] = None,
        number: int = SEARCH_RESULTS,
        ranking: int = 2
    ) -> List[Dict[str, Any]]:
        """
        Search recipes by ingredients.

        Args:
            ingredients: Normalized ingredient list
            filter_name: Optional dietary/time filter
            number: Number of recipes to return
            ranking: 1 = maximize used ingredients, 2 = minimize missing

        Returns:
            Raw recipe objects from findByIngredients

        Raises:
            ExternalAPIError: If API call fails
        """
        try:
            url = f"{self.BASE_URL}/recipes/findByIngredients"
            params = {
                "ingredients": ",".join(ingredients),
                "number": number,
                "ranking": ranking,
                "ignorePantry": True,
                "apiKey": self.api_key
            }
            params.update(self.FILTER_PARAMS.get(filter_name, {}))

            response = requests.get(url, params=params, timeout=self.REQUEST_TIMEOUT)
            response.raise_for_status()

            recipes = response.json()
            if not isinstance(recipes, list):
                raise ExternalAPIError("Spoonacular returned an unexpected payload")
            logger.info(f"Spoonacular found {len(recipes)} recipes")
            return recipes

        except requests.exceptions.RequestException as e:
            logger.error(f"Spoonacular search error: {str(e)}")
            raise ExternalAPIError(f"Spoonacular search failed: {str(e)}")
        except ValueError as e:
            raise ExternalAPIError(f"Spoonacular returned invalid JSON: {str(e)}")

    def _fetch(self, ingredients: List[str], filter_name: Optional[str]) -> List[Recipe]:
        basic_recipes = self.search_recipes_by_ingredients(ingredients, filter_name)
        recipes = [self._to_recipe(r, ingredients) for r in basic_recipes]
        recipes.sort(key=lambda r: r.match_percentage, reverse=True)
        return recipes

    def _to_recipe(self, basic_recipe: Dict[str, Any], ingredients: List[str]) -> Recipe:
        used = [i.get("name", "").lower() for i in basic_recipe.get("usedIngredients") or []]
        missed = [i.get("name", "").lower() for i in basic_recipe.get("missedIngredients") or []]
        all_ingredients = used + missed
        used_count = basic_recipe.get("usedIngredientCount") or 0

        return Recipe(
            id=basic_recipe.get("id"),
            title=basic_recipe.get("title", "Unknown"),
            image=basic_recipe.get("image") or DEFAULT_IMAGE,
            ready_in_minutes=30,
            servings=4,
            match_percentage=calculate_match_percentage(ingredients, all_ingredients),
            source=self.source,
            summary=f"Uses {used_count} of your ingredients.",
            ingredients=all_ingredients,
            used_ingredient_count=used_count,
            missed_ingredient_count=basic_recipe.get("missedIngredientCount") or 0,
            vegetarian=bool(basic_recipe.get("vegetarian", False)),
        )

    def autocomplete_ingredients(self, query: str, number: int = MAX_SUGGESTIONS) -> List[str]:
        """
        Ingredient name suggestions for a partial query.

        Raises:
            ExternalAPIError: If API call fails
        """
        try:
            url = f"{self.BASE_URL}/food/ingredients/autocomplete"
            params = {
                "query": query,
                "number": number,
                "metaInformation": False,
                "apiKey": self.api_key
            }
            response = requests.get(url, params=params, timeout=self.AUTOCOMPLETE_TIMEOUT)
            response.raise_for_status()
            return [item.get("name", "") for item in response.json() if item.get("name")]

        except requests.exceptions.RequestException as e:
            logger.warning(f"Spoonacular autocomplete error: {str(e)}")
            raise ExternalAPIError(f"Spoonacular autocomplete failed: {str(e)}")
        except (ValueError, AttributeError, TypeError) as e:
            raise ExternalAPIError(f"Spoonacular autocomplete returned bad data: {str(e)}")

    def get_recipe_information(self, recipe_id: int) -> Dict[str, Any]:
        """
        Get detailed information for a recipe.

        Args:
            recipe_id: Spoonacular recipe ID

        Returns:
            Recipe information including extendedIngredients

        Raises:
            ExternalAPIError: If API call fails
        """
        try:
            url = f"{self.BASE_URL}/recipes/{recipe_id}/information"
            params = {
                "includeNutrition": False,
                "apiKey": self.api_key
            }

            response = requests.get(url, params=params, timeout=self.REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            logger.error(f"Spoonacular info error for recipe {recipe_id}: {str(e)}")
            raise ExternalAPIError(f"Failed to fetch recipe details: {str(e)}")
        except ValueError as e:
            raise ExternalAPIError(f"Spoonacular returned invalid JSON: {str(e)}")


class GenerativeRecipeProvider(RecipeProvider):
    """
    Shared behaviour of the text-generation tiers.

    Each tries its models in order, parses the first answer as recipe JSON and
    synthesizes a basic recipe when the answer is not parseable.
    """

    brand = "AI"
    models: Tuple[str, ...] = ()
    recipe_id = 3000
    match_percentage = 90
    REQUEST_TIMEOUT = 5

    PROMPT_INTRO = "Create a simple, practical recipe using ONLY these ingredients: {ingredients}."

    def build_prompt(self, ingredients: List[str], filter_name: Optional[str] = None) -> str:
        prompt = self.PROMPT_INTRO.format(ingredients=", ".join(ingredients))
        if filter_name:
            prompt += f"\nMake it {filter_name} (quick, healthy, vegetarian, etc.)."
        prompt += (
            "\n\nIMPORTANT: Return ONLY valid JSON, no other text.\n\n"
            f"{RECIPE_JSON_FORMAT}\n\n"
            "Make it simple, easy to follow, and practical for home cooking."
        )
        return prompt

    @abstractmethod
    def _complete(self, model: str, prompt: str) -> str:
        """Send the prompt to one model and return the raw text answer."""

    def generate(self, prompt: str) -> Tuple[str, str]:
        """
        Try each model in order until one answers.

        Returns:
            Tuple of (response text, model identifier)

        Raises:
            ExternalAPIError: If every model failed
        """
        for model in self.models:
            try:
                logger.info(f"   Trying {self.name} model: {model}...")
                text = self._complete(model, prompt)
            except Exception as e:
                logger.info(f"   {model} failed: {str(e)}")
                continue

            logger.info(f"{self.name} {model} worked")
            return (text or "").strip(), model

        raise ExternalAPIError(f"All {self.name} models failed")

    def _fetch(self, ingredients: List[str], filter_name: Optional[str]) -> List[Recipe]:
        text, model = self.generate(self.build_prompt(ingredients, filter_name))

        data = extract_recipe_json(text)
        if data is None:
            logger.warning(f"{self.name} JSON parsing failed, synthesizing recipe")
            data = synthesize_recipe_data(self.brand, ingredients)

        return [self._to_recipe(data, ingredients, model)]

    def _to_recipe(self, data: Dict[str, Any], ingredients: List[str], model: str) -> Recipe:
        tips = data.get("tips") or ""
        return Recipe(
            id=self.recipe_id,
            title=str(data.get("title") or f"{self.brand} AI Recipe"),
            image=DEFAULT_IMAGE,
            ready_in_minutes=_positive_int(data.get("prepTime"), 20),
            servings=_positive_int(data.get("servings"), 2),
            match_percentage=self.match_percentage,
            source=self.source,
            summary=str(data.get("description") or f"{self.brand} AI recipe using {', '.join(ingredients)}"),
            ingredients=_string_list(data.get("ingredients"), list(ingredients)),
            instructions=_string_list(data.get("instructions"), []),
            tips=tips if isinstance(tips, str) else " ".join(str(t) for t in tips),
            model_used=model,
            cheap=True,
        )


class GeminiService(GenerativeRecipeProvider):
    """Handle all Gemini AI API calls."""

    key = "gemini"
    name = "Gemini AI"
    source = "gemini_ai"
    brand = "Gemini"
    models = ("gemini-2.0-flash", "gemini-2.5-flash", "gemini-2.0-flash-lite", "gemini-1.5-flash")
    recipe_id = 3000
    match_percentage = 95
    REQUEST_TIMEOUT = 5

    def __init__(self, api_key: Optional[str], available: Optional[bool] = None, client=None):
        """Initialize Gemini client."""
        super().__init__(api_key, available)
        self.client = client
        if self.client is None and self.is_available:
            self.client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=self.REQUEST_TIMEOUT * 1000),
            )

    def _complete(self, model: str, prompt: str) -> str:
        chat = self.client.chats.create(
            model=model,
            config=types.GenerateContentConfig(temperature=0.7, max_output_tokens=500),
        )
        response = chat.send_message(prompt)
        return response.text or ""


class CohereService(GenerativeRecipeProvider):
    """Handle all Cohere chat API calls."""

    key = "cohere"
    name = "Cohere AI"
    source = "cohere_ai"
    brand = "Cohere"
    models = ("command-a-03-2025", "command-r7b-12-2024", "command-r-plus-08-2024", "command-r-08-2024")
    recipe_id = 3001
    match_percentage = 90
    REQUEST_TIMEOUT = 5

    CHAT_URL = "https://api.cohere.com/v1/chat"
    PROMPT_INTRO = (
        "Create a simple, practical, real-life recipe using only these ingredients or some extras. "
        "Include the list of ingredients and step-by-step procedures: {ingredients}."
    )

    def _complete(self, model: str, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        payload = {
            "model": model,
            "message": prompt,
            "temperature": 0.7,
            "max_tokens": 500,
        }
        response = requests.post(self.CHAT_URL, json=payload, headers=headers, timeout=self.REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json().get("text", "")


class OpenRouterService(GenerativeRecipeProvider):
    """Handle OpenRouter (Mistral) chat completion calls."""

    key = "openrouter"
    name = "OpenRouter (Mistral)"
    source = "openrouter_mistral"
    brand = "Mistral"
    models = ("mistralai/mistral-7b-instruct:free", "meta-llama/llama-3.2-3b-instruct:free")
    recipe_id = 3002
    match_percentage = 85
    REQUEST_TIMEOUT = 10

    CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"
    PROMPT_INTRO = CohereService.PROMPT_INTRO
    SYSTEM_PROMPT = "You are a helpful recipe assistant. Always return valid JSON format for recipes."

    def __init__(self, api_key: Optional[str], available: Optional[bool] = None,
                 referer: str = "http://localhost:5001"):
        super().__init__(api_key, available)
        self.referer = referer

    def _complete(self, model: str, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": "FoodGuide Recipe Generator",
        }
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 500,
            "temperature": 0.7,
            "response_format": {"type": "json_object"},
        }
        response = requests.post(self.CHAT_URL, json=payload, headers=headers, timeout=self.REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()["choices"][0]["message"]["content"] or ""


class RecipeService:
    """High-level recipe orchestration."""

    def __init__(
        self,
        providers: List[RecipeProvider],
        local_table: Optional[LocalRecipeTable] = None,
        spoonacular: Optional[SpoonacularService] = None
    ):
        """
        Initialize with dependencies.

        Args:
            providers: Tiers in priority order
            local_table: Local recipe lookup used after every provider
            spoonacular: Structured provider used for suggestions and details
        """
        self.providers = list(providers)
        self.local_table = local_table if local_table is not None else LocalRecipeTable()
        self.spoonacular = spoonacular

    @staticmethod
    def from_config(config: AppConfig) -> "RecipeService":
        """Build the default Spoonacular -> Gemini -> Cohere -> OpenRouter chain."""
        spoonacular = SpoonacularService(config.spoonacular_api_key, config.spoonacular_available)
        providers = [
            spoonacular,
            GeminiService(config.gemini_api_key, config.gemini_available),
            CohereService(config.cohere_api_key, config.cohere_available),
            OpenRouterService(config.openrouter_api_key, config.openrouter_available, referer=config.app_url),
        ]
        return RecipeService(providers, LocalRecipeTable(), spoonacular)

    @property
    def local_level(self) -> int:
        return 2 * len(self.providers)

    def provider_status(self) -> Dict[str, bool]:
        return {p.key: p.is_available for p in self.providers}

    def fallback_order(self) -> List[str]:
        return [p.name for p in self.providers] + ["Local Recipes", "Emergency Recipes"]

    def search_recipes(self, query: SearchQuery) -> RecipeSearchResult:
        result = self.find_recipes(query.ingredients, query.filter_name, query.number)
        result.ingredients = query.raw_ingredients
        return result

    def find_recipes(
        self,
        ingredients: List[str],
        filter_name: Optional[str] = None,
        number: int = DEFAULT_RESULT_COUNT
    ) -> RecipeSearchResult:
        """
        Complete workflow: providers in order → local table → synthesized → emergency.

        Provider i serving the request sets fallback level 2i; provider i
        being unavailable sets 2i+1. The local/synthesized tier is level 2n
        and the emergency recipe 2n+1.

        Args:
            ingredients: Normalized ingredient tokens
            filter_name: Optional search filter
            number: Maximum recipes to return (capped at 15)

        Returns:
            RecipeSearchResult backed by exactly one tier
        """
        logger.info(f"Searching for: {', '.join(ingredients)}")
        trace = FallbackTrace()
        recipes: List[Recipe] = []

        for index, provider in enumerate(self.providers):
            result = provider.fetch_recipes(ingredients, filter_name)
            if result.ok:
                recipes = result.recipes
                trace.advance(2 * index)
                trace.source = provider.source
                trace.record(provider.name, provider.source, "served")
                logger.info(f"{provider.name} successful")
                break
            trace.advance(2 * index + 1)
            trace.record(provider.name, provider.source, "skipped", result.reason)

        if not recipes and ingredients:
            trace.advance(self.local_level)
            recipes = self.local_table.find(ingredients)
            if recipes:
                trace.source = "local"
                trace.record("Local Recipes", "local", "served")
            else:
                trace.record("Local Recipes", "local", "skipped", ProviderResult.EMPTY)
                recipes = generate_simple_recipes(ingredients)
                trace.source = "generated"
                trace.record("Simple Recipes", "generated", "served")

        if not recipes:
            trace.advance(self.local_level + 1)
            recipes = [emergency_recipe()]
            trace.source = "emergency"
            trace.record("Emergency Recipes", "emergency", "served")

        recipes = sorted(recipes, key=lambda r: r.match_percentage, reverse=True)
        final_recipes = recipes[:min(number, MAX_RESULT_COUNT)]

        logger.info(f"Returning {len(final_recipes)} recipes from {trace.source} (fallback: {trace.level})")
        return RecipeSearchResult(ingredients=list(ingredients), recipes=final_recipes, trace=trace)

    def suggest_ingredients(self, query: Optional[str]) -> List[str]:
        """Autocomplete ingredient names; popular list when Spoonacular is unavailable."""
        query = (query or "").strip()
        if len(query) < MIN_SUGGESTION_QUERY:
            return []

        if self.spoonacular is not None and self.spoonacular.is_available:
            try:
                suggestions = self.spoonacular.autocomplete_ingredients(query)
                if suggestions:
                    return suggestions[:MAX_SUGGESTIONS]
            except ExternalAPIError:
                logger.info("Spoonacular suggestions API failed, using popular ingredients")

        lowered = query.lower()
        return [i for i in POPULAR_INGREDIENTS if lowered in i.lower()][:MAX_SUGGESTIONS]

    def get_recipe_details(self, recipe_id: int, ingredients: Optional[List[str]] = None) -> Dict[str, Any]:
        return recipe_details.build_recipe_detail(recipe_id, ingredients, self.local_table, self.spoonacular)

    def customize_recipe(self, recipe_id: int, servings: Any,
                         ingredients: Optional[List[str]] = None) -> Dict[str, Any]:
        detail = self.get_recipe_details(recipe_id, ingredients)
        return recipe_details.scale_recipe(detail, servings)
