"""Tests for the deterministic RNG helpers.

Tests cover:
- Determinism (same seed -> same result)
- Dice notation parsing and validation
- Distinct sampling without replacement
- Property-based tests
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from crusade.utils.rng import (
    dice_range,
    fresh_seed,
    generate_seed,
    random_choice,
    roll_dice,
    sample_distinct,
)


class TestGenerateSeed:
    """Tests for generate_seed function."""

    def test_basic_seed_generation(self):
        assert generate_seed(1, 42, "out_of_action:abc") == "1:42:out_of_action:abc"

    def test_negative_campaign_id_rejected(self):
        with pytest.raises(ValueError, match="campaign_id"):
            generate_seed(-1, 0, "ctx")

    def test_negative_sequence_rejected(self):
        with pytest.raises(ValueError, match="sequence"):
            generate_seed(1, -5, "ctx")

    def test_fresh_seeds_differ(self):
        assert fresh_seed("battle_scar") != fresh_seed("battle_scar")
        assert fresh_seed("battle_scar").endswith(":battle_scar")


class TestRollDice:
    """Tests for roll_dice function."""

    def test_same_seed_same_roll(self):
        assert roll_dice("seed-1", "2d6") == roll_dice("seed-1", "2d6")

    def test_result_structure(self):
        result = roll_dice("seed-2", "3d6")
        assert result["notation"] == "3d6"
        assert len(result["rolls"]) == 3
        assert result["total"] == sum(result["rolls"])
        assert result["seed"] == "seed-2"

    def test_default_notation_is_single_d6(self):
        result = roll_dice("seed-3")
        assert len(result["rolls"]) == 1
        assert 1 <= result["total"] <= 6

    @pytest.mark.parametrize("notation", ["d6", "1x6", "0d6", "1d0", "abc", ""])
    def test_invalid_notation(self, notation):
        with pytest.raises(ValueError):
            roll_dice("seed", notation)

    def test_notation_is_case_insensitive(self):
        assert roll_dice("seed", "1D6")["total"] == roll_dice("seed", "1d6")["total"]

    @given(st.text(min_size=1, max_size=40))
    def test_d6_always_in_range(self, seed):
        assert 1 <= roll_dice(seed, "1d6")["total"] <= 6

    @pytest.mark.parametrize(("notation", "bounds"), [("1d6", (1, 6)), ("2d6", (2, 12))])
    def test_dice_range(self, notation, bounds):
        assert dice_range(notation) == bounds


class TestRandomChoice:
    def test_deterministic(self):
        options = ["a", "b", "c", "d"]
        assert random_choice("pick", options) == random_choice("pick", options)

    def test_empty_options_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            random_choice("pick", [])

    @given(st.text(max_size=20), st.lists(st.integers(), min_size=1, max_size=10))
    def test_choice_matches_index(self, seed, options):
        result = random_choice(seed, options)
        assert options[result["index"]] == result["choice"]


class TestSampleDistinct:
    def test_invalid_k(self):
        with pytest.raises(ValueError):
            sample_distinct("s", [1, 2, 3], 4)
        with pytest.raises(ValueError):
            sample_distinct("s", [1, 2, 3], -1)

    def test_zero_draw(self):
        assert sample_distinct("s", [1, 2], 0)["sample"] == []

    @given(st.text(max_size=30), st.integers(min_value=0, max_value=6))
    def test_sample_is_distinct_subset(self, seed, k):
        population = [1, 2, 3, 4, 5, 6]
        sample = sample_distinct(seed, population, k)["sample"]
        assert len(sample) == k
        assert len(set(sample)) == k
        assert set(sample) <= set(population)
