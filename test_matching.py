"""
Unit tests for ingredient normalization and match scoring.
Pure Python, no external services.
"""

import pytest

from matching import (
    normalize_ingredient,
    parse_ingredient_list,
    calculate_match_percentage,
    clamp_match,
)


class TestNormalizeIngredient:
    """Normalization of free-text ingredients."""

    def test_strips_descriptive_words(self):
        assert normalize_ingredient("Chopped Fresh Tomatoes") == "tomatoes"

    def test_removes_punctuation_and_collapses_whitespace(self):
        assert normalize_ingredient("  Red   Bell-Pepper!! ") == "red bellpepper"
        assert normalize_ingredient("basil, fresh chopped leaves") == "basil leaves"

    def test_descriptive_words_only_as_whole_words(self):
        assert normalize_ingredient("groundnut oil") == "groundnut oil"
        assert normalize_ingredient("ground beef") == "beef"

    @pytest.mark.parametrize("raw", [
        "Chopped Fresh Tomatoes",
        "Minced  GARLIC, dried",
        "powdered sugar",
        "Soy-Sauce",
        "",
    ])
    def test_idempotent(self, raw):
        once = normalize_ingredient(raw)
        assert normalize_ingredient(once) == once

    def test_empty_input(self):
        assert normalize_ingredient("") == ""
        assert normalize_ingredient(None) == ""
        assert normalize_ingredient("fresh") == ""


class TestParseIngredientList:
    """Splitting comma separated query values."""

    def test_splits_and_strips(self):
        assert parse_ingredient_list(" chicken, rice ,,egg ") == ["chicken", "rice", "egg"]

    def test_empty(self):
        assert parse_ingredient_list("") == []
        assert parse_ingredient_list(None) == []
        assert parse_ingredient_list(" , , ") == []


class TestMatchPercentage:
    """Token-overlap match scoring."""

    def test_exact_match_small_recipe_is_clamped(self):
        assert calculate_match_percentage({"chicken", "rice"}, ["chicken", "rice"]) == 98

    def test_no_user_ingredients(self):
        assert calculate_match_percentage(set(), ["chicken"]) == 0

    def test_no_recipe_ingredients(self):
        assert calculate_match_percentage({"a"}, []) == 10
        assert calculate_match_percentage(set(), []) == 10

    def test_partial_match_counts_once(self):
        # "chicken breast" partially matches "chicken" (0.6) out of 4 -> 15%
        score = calculate_match_percentage(
            {"chicken", "chick"},
            ["chicken breast", "flour", "salt", "pepper"]
        )
        assert score == 15

    def test_mixed_exact_and_partial(self):
        # (1.0 + 0.6 + 0 + 0 + 0) / 5 * 100 = 32
        score = calculate_match_percentage(
            ["rice", "onion"],
            ["rice", "red onions", "garlic", "oil", "salt"]
        )
        assert score == 32

    def test_small_recipe_bonus(self):
        # (1.0 + 0 + 0) / 3 * 100 * 1.2 = 40
        assert calculate_match_percentage(["egg"], ["egg", "flour", "milk"]) == 40

    def test_recipe_ingredients_are_normalized(self):
        assert calculate_match_percentage(["tomato"], ["Chopped Fresh Tomato"]) == 98

    def test_floor_at_fifteen(self):
        assert calculate_match_percentage(["caviar"], ["flour", "water", "salt", "yeast"]) == 15

    def test_result_always_in_range(self):
        cases = [
            (["a"], ["a", "b", "c", "d", "e", "f"]),
            (["a", "b", "c"], ["a", "b", "c", "d"]),
            (["x"], ["y"]),
        ]
        for user, recipe in cases:
            assert 15 <= calculate_match_percentage(user, recipe) <= 98


class TestClampMatch:
    def test_rounds_half_up(self):
        assert clamp_match(32.5) == 33
        assert clamp_match(32.4) == 32

    def test_bounds(self):
        assert clamp_match(150) == 98
        assert clamp_match(0) == 15
