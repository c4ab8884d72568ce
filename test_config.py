"""
Tests for startup configuration and provider availability.
"""

import pytest

from config import AppConfig, key_looks_valid


class TestKeyValidation:
    @pytest.mark.parametrize("key,min_length,expected", [
        (None, 20, False),
        ("", 20, False),
        ("short", 20, False),
        ("x" * 20, 20, False),
        ("x" * 21, 20, True),
        ("YOUR_SPOONACULAR_KEY_HERE_PLEASE_HERE", 20, False),
        ("  " + "x" * 31 + "  ", 30, True),
    ])
    def test_key_looks_valid(self, key, min_length, expected):
        assert key_looks_valid(key, min_length) is expected


class TestAppConfig:
    def test_defaults(self):
        config = AppConfig()

        assert config.port == 5001
        assert config.cors_origins == ("*",)
        assert not config.spoonacular_available
        assert not config.gemini_available

    def test_availability_thresholds(self):
        config = AppConfig(
            spoonacular_api_key="s" * 25,
            gemini_api_key="g" * 25,
            cohere_api_key="c" * 25,
            openrouter_api_key="o" * 10,
        )

        assert config.spoonacular_available
        assert not config.gemini_available
        assert config.cohere_available
        assert not config.openrouter_available

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SPOONACULAR_API_KEY", "s" * 32)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "g" * 39)
        monkeypatch.delenv("COHERE_API_KEY", raising=False)
        monkeypatch.setenv("OPEN_ROUTER_API_KEY", "YOUR_OPEN_ROUTER_API_KEY_HERE")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("FLASK_ENV", "development")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.delenv("APP_URL", raising=False)

        config = AppConfig.from_env(dotenv=False)

        assert config.spoonacular_available
        assert config.gemini_available
        assert not config.cohere_available
        assert not config.openrouter_available
        assert config.port == 8080
        assert config.debug is True
        assert config.cors_origins == ("http://a.test", "http://b.test")
        assert config.log_level == "DEBUG"
        assert config.app_url == "http://localhost:8080"

    def test_invalid_port_uses_default(self, monkeypatch):
        monkeypatch.setenv("PORT", "not-a-port")
        assert AppConfig.from_env(dotenv=False).port == 5001
