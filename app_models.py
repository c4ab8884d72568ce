"""
Data models and validation for the recipe recommendation system.
Handles request validation, the common recipe record and the fallback trace.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any

from matching import normalize_ingredient, parse_ingredient_list

DEFAULT_IMAGE = "https://images.unsplash.com/photo-1504674900247-0877df9cc836?w=312&h=231&fit=crop&q=80"
SIMPLE_IMAGE = "https://images.unsplash.com/photo-1490818387583-1baba5e638af?w=312&h=231&fit=crop&q=80"

SEARCH_FILTERS = ("quick", "healthy", "vegetarian")
DEFAULT_RESULT_COUNT = 10
MAX_RESULT_COUNT = 15


class APIError(Exception):
    """Base exception for API errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ExternalAPIError(APIError):
    """Exception for external API (Spoonacular, Gemini, Cohere, OpenRouter) failures."""
    pass


class RecipeNotFoundError(APIError):
    """Requested recipe id does not exist."""
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class ValidationError(Exception):
    """Custom exception for validation errors."""
    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class NoIngredientsError(ValidationError):
    """The request did not contain any usable ingredient."""
    def __init__(self, message: str = "Ingredients parameter is required"):
        super().__init__(message, "ingredients")


@dataclass
class SearchQuery:
    """Validated search parameters."""
    raw_ingredients: List[str]
    ingredients: List[str]
    filter_name: Optional[str] = None
    number: int = DEFAULT_RESULT_COUNT

    @staticmethod
    def from_args(args: Dict[str, Any]) -> "SearchQuery":
        """
        Create SearchQuery from query-string arguments with full validation.

        Args:
            args: Mapping with "ingredients", optional "filter" and "number"

        Returns:
            SearchQuery with normalized, de-duplicated ingredients

        Raises:
            NoIngredientsError: If no usable ingredient was supplied
            ValidationError: If filter or number is invalid
        """
        raw_ingredients = parse_ingredient_list(args.get("ingredients"))
        ingredients = [normalize_ingredient(i) for i in raw_ingredients]
        # Keep first occurrence order, drop tokens that normalized to nothing
        ingredients = list(dict.fromkeys(i for i in ingredients if i))
        if not ingredients:
            raise NoIngredientsError()

        filter_name = (args.get("filter") or "").strip().lower() or None
        if filter_name and filter_name not in SEARCH_FILTERS:
            raise ValidationError(
                f"filter must be one of: {', '.join(SEARCH_FILTERS)}",
                "filter"
            )

        number_raw = args.get("number")
        if number_raw in (None, ""):
            number = DEFAULT_RESULT_COUNT
        else:
            try:
                number = int(number_raw)
            except (TypeError, ValueError):
                raise ValidationError("number must be an integer", "number")
            if number < 1:
                raise ValidationError("number must be at least 1", "number")

        return SearchQuery(
            raw_ingredients=raw_ingredients,
            ingredients=ingredients,
            filter_name=filter_name,
            number=min(number, MAX_RESULT_COUNT)
        )


@dataclass
class Recipe:
    """A recipe candidate from any tier, in the shape the frontend expects."""
    id: int
    title: str
    image: str = DEFAULT_IMAGE
    ready_in_minutes: int = 20
    servings: int = 2
    match_percentage: int = 0
    source: str = "unknown"
    summary: str = ""
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    tips: str = ""
    model_used: Optional[str] = None
    used_ingredient_count: Optional[int] = None
    missed_ingredient_count: Optional[int] = None
    vegetarian: bool = False
    vegan: bool = False
    gluten_free: bool = False
    dairy_free: bool = False
    cheap: bool = False
    very_healthy: bool = False
    very_popular: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        data = {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "readyInMinutes": self.ready_in_minutes,
            "servings": self.servings,
            "matchPercentage": self.match_percentage,
            "cheap": self.cheap,
            "dairyFree": self.dairy_free,
            "glutenFree": self.gluten_free,
            "vegan": self.vegan,
            "vegetarian": self.vegetarian,
            "veryHealthy": self.very_healthy,
            "veryPopular": self.very_popular,
            "summary": self.summary,
            "source": self.source,
            "isFree": True,
            "ingredients": self.ingredients,
            "instructions": self.instructions,
        }
        if self.tips:
            data["tips"] = self.tips
        if self.model_used:
            data["modelUsed"] = self.model_used
        if self.used_ingredient_count is not None:
            data["usedIngredients"] = self.used_ingredient_count
        if self.missed_ingredient_count is not None:
            data["missedIngredients"] = self.missed_ingredient_count
        return data


@dataclass
class ProviderResult:
    """
    Outcome of one provider tier: a non-empty recipe list, or unavailable.

    The reason is diagnostic only; the orchestrator moves on to the next tier
    for every unavailable result regardless of why.
    """
    recipes: List[Recipe] = field(default_factory=list)
    reason: Optional[str] = None

    NOT_CONFIGURED = "not_configured"
    CALL_FAILED = "call_failed"
    EMPTY = "empty"

    @property
    def ok(self) -> bool:
        return bool(self.recipes)

    @staticmethod
    def success(recipes: List[Recipe]) -> "ProviderResult":
        if not recipes:
            return ProviderResult(reason=ProviderResult.EMPTY)
        return ProviderResult(recipes=list(recipes))

    @staticmethod
    def unavailable(reason: str) -> "ProviderResult":
        return ProviderResult(reason=reason)


@dataclass
class TierAttempt:
    """One tier tried while serving a request."""
    tier: str
    source: str
    outcome: str
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier,
            "source": self.source,
            "outcome": self.outcome,
            "reason": self.reason,
        }


@dataclass
class FallbackTrace:
    """Which tier satisfied a request, and how deep into the chain it went."""
    level: int = 0
    source: str = "unknown"
    attempts: List[TierAttempt] = field(default_factory=list)

    def advance(self, level: int) -> None:
        # Level never decreases within a request
        self.level = max(self.level, level)

    def record(self, tier: str, source: str, outcome: str, reason: Optional[str] = None) -> None:
        self.attempts.append(TierAttempt(tier=tier, source=source, outcome=outcome, reason=reason))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "source": self.source,
            "attempts": [a.to_dict() for a in self.attempts],
        }


def message_for_source(source: str, count: int) -> str:
    """Human readable summary keyed off the source tag."""
    plural = "" if count == 1 else "s"
    messages = {
        "spoonacular": f"Found {count} recipes from Spoonacular",
        "gemini_ai": f"Gemini AI (Google) generated {count} recipe{plural}",
        "cohere_ai": f"Cohere AI generated {count} recipe{plural}",
        "openrouter_mistral": f"Mistral AI generated {count} recipe{plural}",
        "local": f"Found {count} local recipe{plural}",
        "generated": f"Created {count} simple recipe{plural}",
        "emergency": "Emergency recipes provided",
    }
    return messages.get(source, f"Found {count} recipes")


@dataclass
class RecipeSearchResult:
    """Response envelope for a recipe search."""
    ingredients: List[str]
    recipes: List[Recipe]
    trace: FallbackTrace
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def source(self) -> str:
        return self.trace.source

    @property
    def fallback_level(self) -> int:
        return self.trace.level

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "success": True,
            "count": len(self.recipes),
            "ingredients": self.ingredients,
            "source": self.trace.source,
            "isFree": True,
            "usingFallback": self.trace.level > 0,
            "fallbackLevel": self.trace.level,
            "recipes": [r.to_dict() for r in self.recipes],
            "timestamp": self.timestamp,
            "message": message_for_source(self.trace.source, len(self.recipes)),
            "fallbackTrace": self.trace.to_dict(),
        }
