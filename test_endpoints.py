"""
Integration tests for the Food Guide API endpoints.

Tests all endpoints:
- Recipe search (validation, fallback envelope, fatal errors)
- Ingredient suggestions
- Recipe details and serving customization
- Health, fallback test and emergency recipes
- JSON error handlers
"""

from unittest.mock import MagicMock, patch

import pytest

from config import AppConfig
from main import create_app


@pytest.fixture
def app():
    """Flask app with no provider keys, so every search runs offline."""
    app = create_app(AppConfig())
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def broken_client():
    """Client whose recipe service raises on every search."""
    service = MagicMock()
    service.provider_status.return_value = {}
    service.fallback_order.return_value = []
    service.search_recipes.side_effect = RuntimeError("service exploded")
    app = create_app(AppConfig(), recipe_service=service)
    app.config["TESTING"] = True
    return app.test_client()


class TestRecipeSearch:
    """Test the recipe search endpoint."""

    def test_search_local_fallback(self, client):
        """Without keys, a known combination is served from the local table."""
        response = client.get("/api/recipes/search?ingredients=chicken,rice")

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["source"] == "local"
        assert data["fallbackLevel"] == 8
        assert data["usingFallback"] is True
        assert data["isFree"] is True
        assert data["ingredients"] == ["chicken", "rice"]
        assert data["count"] == len(data["recipes"])
        assert 1005 in [r["id"] for r in data["recipes"]]
        assert data["message"].startswith("Found")

    def test_search_recipe_shape(self, client):
        response = client.get("/api/recipes/search?ingredients=pasta,egg")

        recipe = response.get_json()["recipes"][0]
        for key in ("id", "title", "image", "readyInMinutes", "servings",
                    "matchPercentage", "source", "isFree", "ingredients", "instructions"):
            assert key in recipe
        assert 15 <= recipe["matchPercentage"] <= 98

    def test_search_sorted_by_match(self, client):
        response = client.get("/api/recipes/search?ingredients=tomato,onion,extra")

        matches = [r["matchPercentage"] for r in response.get_json()["recipes"]]
        assert matches == sorted(matches, reverse=True)

    def test_search_generated_recipes(self, client):
        response = client.get("/api/recipes/search?ingredients=dragonfruit")

        data = response.get_json()
        assert data["source"] == "generated"
        assert data["recipes"][0]["title"] == "Dragonfruit Simple Prep"

    def test_search_number_limits_results(self, client):
        response = client.get("/api/recipes/search?ingredients=egg&number=1")
        assert response.get_json()["count"] == 1

    def test_search_fallback_trace(self, client):
        response = client.get("/api/recipes/search?ingredients=chicken,rice")

        trace = response.get_json()["fallbackTrace"]
        assert trace["level"] == 8
        assert trace["attempts"][0]["reason"] == "not_configured"

    @pytest.mark.parametrize("query,field", [
        ("", "ingredients"),
        ("?ingredients=", "ingredients"),
        ("?ingredients=fresh,%20,chopped", "ingredients"),
        ("?ingredients=chicken&filter=spicy", "filter"),
        ("?ingredients=chicken&number=abc", "number"),
        ("?ingredients=chicken&number=0", "number"),
    ])
    def test_search_validation(self, client, query, field):
        response = client.get(f"/api/recipes/search{query}")

        assert response.status_code == 400
        data = response.get_json()
        assert data["success"] is False
        assert data["field"] == field

    def test_search_fatal_error(self, broken_client):
        response = broken_client.get("/api/recipes/search?ingredients=chicken,rice")

        assert response.status_code == 500
        data = response.get_json()
        assert data["success"] is False
        assert data["fallback"] is True
        assert data["emergencyEndpoint"] == "/api/emergency-recipes?ingredients=chicken,rice"


class TestIngredientSuggestions:
    """Test ingredient autocomplete."""

    def test_popular_suggestions(self, client):
        response = client.get("/api/recipes/ingredients/suggest?query=ch")

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert "chicken" in data["suggestions"]
        assert len(data["suggestions"]) <= 8

    def test_short_query(self, client):
        response = client.get("/api/recipes/ingredients/suggest?query=c")
        assert response.get_json()["suggestions"] == []

    def test_missing_query(self, client):
        response = client.get("/api/recipes/ingredients/suggest")
        assert response.get_json()["suggestions"] == []


class TestRecipeDetails:
    """Test recipe details by id range."""

    def test_local_recipe(self, client):
        response = client.get("/api/recipes/1005")

        assert response.status_code == 200
        recipe = response.get_json()["recipe"]
        assert recipe["title"] == "Chicken and Rice"
        assert recipe["source"] == "local"
        assert [i["name"] for i in recipe["extendedIngredients"]] == ["chicken", "rice", "salt", "pepper"]
        assert recipe["analyzedInstructions"][0]["steps"][0] == {"number": 1, "step": "Cook rice"}

    def test_ai_template_uses_ingredients(self, client):
        response = client.get("/api/recipes/3000?ingredients=beef,couscous")

        recipe = response.get_json()["recipe"]
        assert recipe["title"] == "Gemini AI Fusion Dish"
        assert recipe["source"] == "ai_generated"
        first = recipe["extendedIngredients"][0]
        assert first["name"] == "beef"
        assert first["amount"] == 200
        assert first["unit"] == "g"
        assert recipe["extendedIngredients"][2]["name"] == "onion"

    def test_generic_recipe(self, client):
        response = client.get("/api/recipes/123456")

        recipe = response.get_json()["recipe"]
        assert recipe["title"] == "Delicious Recipe Creation"
        assert recipe["source"] == "custom"
        assert recipe["id"] == 123456

    def test_unknown_local_recipe(self, client):
        response = client.get("/api/recipes/1999")

        assert response.status_code == 404
        assert response.get_json()["success"] is False


class TestCustomizeRecipe:
    """Test serving-size customization."""

    def test_scale_up(self, client):
        response = client.post("/api/recipes/1005/customize", json={"servings": 4})

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["originalServings"] == 2
        assert data["servings"] == 4
        assert data["scaleFactor"] == 2
        assert data["scaledIngredients"][0]["amount"] == 2

    def test_template_recipe_scaled(self, client):
        response = client.post(
            "/api/recipes/3001/customize",
            json={"servings": 1, "ingredients": ["penne"]},
        )

        data = response.get_json()
        assert data["title"] == "Cohere AI Quick Meal"
        assert data["scaledIngredients"][0]["name"] == "penne"
        assert data["scaledIngredients"][0]["amount"] == 100

    @pytest.mark.parametrize("body", [{}, {"servings": 0}, {"servings": 51}, {"servings": "many"}])
    def test_invalid_servings(self, client, body):
        response = client.post("/api/recipes/1005/customize", json=body)

        assert response.status_code == 400
        assert response.get_json()["field"] == "servings"

    def test_unknown_recipe(self, client):
        response = client.post("/api/recipes/1999/customize", json={"servings": 2})
        assert response.status_code == 404


class TestUtilityEndpoints:
    """Test health, fallback test and emergency endpoints."""

    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_health_check(self, client, path):
        response = client.get(path)

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["apis"] == {
            "spoonacular": False,
            "gemini": False,
            "cohere": False,
            "openrouter": False,
        }
        assert data["fallbackMode"] is True
        assert data["uptime_seconds"] >= 0

    def test_fallback_info(self, client):
        response = client.get("/api/test-fallback")

        data = response.get_json()
        assert data["fallbackOrder"][0] == "Spoonacular"
        assert data["fallbackOrder"][-2:] == ["Local Recipes", "Emergency Recipes"]
        assert data["testIngredients"] == "chicken, rice, egg"

    def test_emergency_recipes(self, client):
        response = client.get("/api/emergency-recipes?ingredients=egg,bread")

        data = response.get_json()
        assert data["success"] is True
        assert data["source"] == "emergency_backup"
        assert [r["id"] for r in data["recipes"]] == [99991, 99992]
        assert data["recipes"][0]["ingredients"] == ["egg", "bread"]

    def test_emergency_recipes_without_ingredients(self, client):
        response = client.get("/api/emergency-recipes")
        assert response.get_json()["ingredients"] == ["food"]


class TestAppFactory:
    """Test app construction."""

    @patch("main.configure_logging")
    def test_logging_configured_from_config(self, mock_configure):
        create_app(AppConfig(log_level="DEBUG"))
        mock_configure.assert_called_once_with("DEBUG")


class TestErrorHandlers:
    """Test JSON error responses."""

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        data = response.get_json()
        assert data["success"] is False
        assert "availableRoutes" in data

    def test_unknown_recipe_route(self, client):
        response = client.get("/api/recipes/not-a-number")

        assert response.status_code == 404
        assert "suggestion" in response.get_json()

    def test_cors_headers(self, client):
        response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://localhost:3000")
