"""Flask app entrypoint for the Food Guide recipe API.

This file wires up the Flask app, CORS, the recipe service built from
startup configuration, and the endpoints used by the frontend. Every recipe
search goes through the fallback chain and always returns something.
"""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

from app_models import APIError, SearchQuery, ValidationError
from app_services import RecipeService
from config import AppConfig
from local_recipes import emergency_backup_recipes
from matching import parse_ingredient_list

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "OPTIONS"]

api = Blueprint("api", __name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_recipe_service() -> RecipeService:
    return current_app.extensions["recipe_service"]


def emergency_endpoint(ingredients: Optional[str]) -> str:
    return f"/api/emergency-recipes?ingredients={quote(ingredients or 'food', safe=',')}"


# --- RECIPE ENDPOINTS ---
@api.route("/api/recipes/search", methods=["GET"])
def search_recipes():
    """
    Main endpoint: find recipes for a comma separated ingredient list.

    Query: ingredients=chicken,rice&filter=quick&number=10

    Response (always success unless the input is invalid):
    {
        "success": true,
        "count": 3,
        "source": "local",
        "usingFallback": true,
        "fallbackLevel": 8,
        "recipes": [...],
        "message": "Found 3 local recipes"
    }
    """
    try:
        query = SearchQuery.from_args(request.args)
    except ValidationError as e:
        logger.warning(f"Validation error: {e.message}")
        return jsonify({
            "success": False,
            "error": e.message,
            "field": e.field
        }), 400

    try:
        result = get_recipe_service().search_recipes(query)
        return jsonify(result.to_dict()), 200

    except Exception as e:
        logger.exception(f"Fatal error in search: {str(e)}")
        return jsonify({
            "success": False,
            "error": "Recipe service error",
            "fallback": True,
            "message": "Using emergency recipes",
            "emergencyEndpoint": emergency_endpoint(request.args.get("ingredients")),
            "timestamp": datetime.now().isoformat()
        }), 500


@api.route("/api/recipes/ingredients/suggest", methods=["GET"])
def suggest_ingredients():
    """Autocomplete ingredient names."""
    try:
        suggestions = get_recipe_service().suggest_ingredients(request.args.get("query"))
    except Exception as e:
        logger.error(f"Suggestions error: {str(e)}")
        suggestions = []

    return jsonify({
        "success": True,
        "suggestions": suggestions
    }), 200


@api.route("/api/recipes/<int:recipe_id>", methods=["GET"])
def get_recipe(recipe_id):
    """Get full recipe details; synthesized ids are filled from ?ingredients=."""
    ingredients = parse_ingredient_list(request.args.get("ingredients"))
    try:
        detail = get_recipe_service().get_recipe_details(recipe_id, ingredients)
    except APIError as e:
        return jsonify({
            "success": False,
            "error": e.message
        }), e.status_code
    except Exception as e:
        logger.exception(f"Error in recipe details: {str(e)}")
        return jsonify({
            "success": False,
            "error": "Failed to fetch recipe details"
        }), 500

    return jsonify({
        "success": True,
        "recipe": detail
    }), 200


@api.route("/api/recipes/<int:recipe_id>/customize", methods=["POST"])
def customize_recipe(recipe_id):
    """
    Scale a recipe's ingredients to a new number of servings.

    Request JSON:
    {
        "servings": 4,
        "ingredients": ["chicken", "rice"]
    }
    """
    data = request.get_json(silent=True) or {}
    ingredients = data.get("ingredients") or []
    if isinstance(ingredients, str):
        ingredients = parse_ingredient_list(ingredients)

    try:
        customized = get_recipe_service().customize_recipe(recipe_id, data.get("servings"), ingredients)
    except ValidationError as e:
        return jsonify({
            "success": False,
            "error": e.message,
            "field": e.field
        }), 400
    except APIError as e:
        return jsonify({
            "success": False,
            "error": e.message
        }), e.status_code

    return jsonify({
        "success": True,
        "message": f"Scaled to {customized['servings']} servings",
        **customized
    }), 200


# --- UTILITY ENDPOINTS ---
@api.route("/health", methods=["GET"])
@api.route("/api/health", methods=["GET"])
def health_check():
    """Health check endpoint for deployment monitoring."""
    apis = get_recipe_service().provider_status()
    uptime_seconds = (datetime.now() - current_app.config["START_TIME"]).total_seconds()
    return jsonify({
        "status": "healthy",
        "message": "API is running",
        "uptime_seconds": int(uptime_seconds),
        "timestamp": datetime.now().isoformat(),
        "apis": apis,
        "fallbackMode": not all(apis.values())
    }), 200


@api.route("/api/test-fallback", methods=["GET"])
def test_fallback():
    """Report which tiers are configured and the order they are tried in."""
    service = get_recipe_service()
    return jsonify({
        "success": True,
        "message": "Fallback test",
        "apis": service.provider_status(),
        "fallbackOrder": service.fallback_order(),
        "testIngredients": request.args.get("ingredient") or "chicken, rice, egg",
        "instructions": "Use /api/recipes/search?ingredients=your_ingredients to test"
    }), 200


@api.route("/api/emergency-recipes", methods=["GET"])
def emergency_recipes():
    """Fixed recipes for when every other path has failed."""
    ingredients = parse_ingredient_list(request.args.get("ingredients")) or ["food"]
    logger.warning("Emergency recipes triggered")
    return jsonify({
        "success": True,
        "message": "Emergency recipes served",
        "source": "emergency_backup",
        "ingredients": ingredients,
        "recipes": emergency_backup_recipes(ingredients),
        "note": "This is a fallback when all other APIs fail"
    }), 200


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(400)
    def handle_bad_request(e):
        """Handle 400 errors."""
        logger.warning(f"Bad request: {str(e)}")
        return jsonify({
            "success": False,
            "error": "Bad request"
        }), 400

    @app.errorhandler(404)
    def handle_not_found(e):
        """Handle 404 errors, pointing recipe-looking requests at the search endpoint."""
        logger.info(f"Route not found: {request.path}")
        if "recipe" in request.path or "ingredient" in request.path:
            return jsonify({
                "success": False,
                "error": "Route not found",
                "suggestion": "Try /api/recipes/search?ingredients=your_ingredients",
                "fallback": "Or use /api/emergency-recipes?ingredients=your_ingredients"
            }), 404

        return jsonify({
            "success": False,
            "error": "Route not found",
            "availableRoutes": {
                "recipes": "/api/recipes/search?ingredients=chicken,rice",
                "health": "/api/health",
                "test": "/api/test-fallback",
                "emergency": "/api/emergency-recipes?ingredients=your_ingredients"
            }
        }), 404

    @app.errorhandler(500)
    def handle_server_error(e):
        """Handle 500 errors."""
        logger.error(f"Server error: {str(e)}")
        if request.path.startswith("/api/recipes"):
            return jsonify({
                "success": False,
                "error": "Recipe service error",
                "fallback": True,
                "message": "Using emergency recipes",
                "emergencyEndpoint": emergency_endpoint(request.args.get("ingredients")),
                "timestamp": datetime.now().isoformat()
            }), 500

        return jsonify({
            "success": False,
            "error": "Internal server error"
        }), 500


def create_app(config: Optional[AppConfig] = None, recipe_service: Optional[RecipeService] = None) -> Flask:
    """
    Build the Flask app.

    Args:
        config: Startup configuration; read from the environment when omitted
        recipe_service: Pre-built service (tests); built from config otherwise
    """
    config = config or AppConfig.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config["START_TIME"] = datetime.now()
    app.config["APP_CONFIG"] = config

    cors_config = {
        "origins": list(config.cors_origins),
        "methods": CORS_METHODS,
        "allow_headers": ["Content-Type", "Authorization"],
        "max_age": 3600,
    }
    CORS(app, resources={r"/api/*": cors_config})

    service = recipe_service or RecipeService.from_config(config)
    app.extensions["recipe_service"] = service

    app.register_blueprint(api)
    register_error_handlers(app)

    for key, available in service.provider_status().items():
        logger.info(f"{key} API: {'configured' if available else 'NOT SET'}")
    logger.info(f"Fallback order: {' -> '.join(service.fallback_order())}")

    return app


if __name__ == "__main__":
    config = AppConfig.from_env()
    app = create_app(config)

    logger.info(f"Starting Flask app on port {config.port} (debug={config.debug})")
    logger.info(f"CORS allowed origins: {', '.join(config.cors_origins)}")

    app.run(host="0.0.0.0", port=config.port, debug=config.debug)
