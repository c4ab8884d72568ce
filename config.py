"""
Application configuration for the Food Guide recipe API.

All settings are read once from the environment (and an optional .env file)
into an immutable AppConfig that is handed to the service layer and the Flask
app. Request handlers never read the environment directly.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

PLACEHOLDER_PREFIX = "YOUR_"

# Minimum key length before a provider is considered configured
MIN_KEY_LENGTH = {
    "spoonacular": 20,
    "gemini": 30,
    "cohere": 20,
    "openrouter": 20,
}


def key_looks_valid(api_key: Optional[str], min_length: int) -> bool:
    """Presence/length heuristic for API secrets (placeholders count as missing)."""
    if not api_key:
        return False
    api_key = api_key.strip()
    if api_key.startswith(PLACEHOLDER_PREFIX) and api_key.endswith("_HERE"):
        return False
    return len(api_key) > min_length


@dataclass(frozen=True)
class AppConfig:
    """Startup configuration. Build with AppConfig.from_env()."""
    spoonacular_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    cohere_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    port: int = 5001
    debug: bool = False
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    app_url: str = "http://localhost:5001"
    availability: Dict[str, bool] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        # Computed once; never re-checked while the process runs
        object.__setattr__(self, "availability", {
            "spoonacular": key_looks_valid(self.spoonacular_api_key, MIN_KEY_LENGTH["spoonacular"]),
            "gemini": key_looks_valid(self.gemini_api_key, MIN_KEY_LENGTH["gemini"]),
            "cohere": key_looks_valid(self.cohere_api_key, MIN_KEY_LENGTH["cohere"]),
            "openrouter": key_looks_valid(self.openrouter_api_key, MIN_KEY_LENGTH["openrouter"]),
        })

    @property
    def spoonacular_available(self) -> bool:
        return self.availability["spoonacular"]

    @property
    def gemini_available(self) -> bool:
        return self.availability["gemini"]

    @property
    def cohere_available(self) -> bool:
        return self.availability["cohere"]

    @property
    def openrouter_available(self) -> bool:
        return self.availability["openrouter"]

    @staticmethod
    def from_env(dotenv: bool = True) -> "AppConfig":
        """
        Build configuration from environment variables.

        Args:
            dotenv: Load a .env file first (python-dotenv)

        Returns:
            AppConfig with provider availability already computed
        """
        if dotenv:
            load_dotenv()

        try:
            port = int(os.getenv("PORT", 5001))
        except ValueError:
            port = 5001

        origins = tuple(
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ) or ("*",)

        return AppConfig(
            spoonacular_api_key=os.getenv("SPOONACULAR_API_KEY"),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
            cohere_api_key=os.getenv("COHERE_API_KEY"),
            openrouter_api_key=os.getenv("OPEN_ROUTER_API_KEY"),
            port=port,
            debug=os.getenv("FLASK_ENV", "production") == "development",
            cors_origins=origins,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            app_url=os.getenv("APP_URL", f"http://localhost:{port}"),
        )
