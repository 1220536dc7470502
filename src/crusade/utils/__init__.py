"""Utility functions for the Crusade campaign tracker."""

from crusade.utils.rng import (
    fresh_seed,
    generate_seed,
    random_choice,
    roll_dice,
    sample_distinct,
)

__all__ = [
    "fresh_seed",
    "generate_seed",
    "random_choice",
    "roll_dice",
    "sample_distinct",
]
