"""Deterministic Random Number Generator (RNG) system for Crusade campaigns.

Every random draw in the rules engine is seeded from a seed string, usually
built from campaign state (campaign id, battle number, context).  This gives:
- Reproducibility: Same seed always produces same results
- Bug reproduction: A logged seed replays the exact draw

Examples:
    >>> seed = generate_seed(campaign_id=1, sequence=4, context="ooa:unit-7")
    >>> roll_dice(seed, "1d6")["total"] in range(1, 7)
    True

    >>> result = sample_distinct(seed, [1, 2, 3, 4, 5, 6], 2)
    >>> len(set(result["sample"]))
    2
"""

import hashlib
import random
import re
from typing import Any
from uuid import uuid4


def generate_seed(campaign_id: int, sequence: int, context: str) -> str:
    """Generate deterministic seed from campaign state.

    Format: "campaign_id:sequence:context"

    Args:
        campaign_id: Campaign identifier
        sequence: Monotonic counter within the campaign (e.g. battle number)
        context: What the roll is for (e.g., 'out_of_action:<unit id>')

    Returns:
        Seed string for RNG

    Examples:
        >>> generate_seed(1, 3, "weapon_mods")
        '1:3:weapon_mods'

    Raises:
        ValueError: If campaign_id or sequence is negative
    """
    if campaign_id < 0:
        raise ValueError(f"campaign_id must be non-negative, got {campaign_id}")
    if sequence < 0:
        raise ValueError(f"sequence must be non-negative, got {sequence}")

    return f"{campaign_id}:{sequence}:{context}"


def fresh_seed(context: str) -> str:
    """Seed for an ad-hoc draw with no campaign sequence to anchor it."""

    return f"adhoc:{uuid4().hex}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random()."""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def _parse_dice_notation(notation: str) -> tuple[int, int]:
    """Parse dice notation like '2d6' into (num_dice, num_sides).

    Raises:
        ValueError: If notation is invalid or values are non-positive

    Examples:
        >>> _parse_dice_notation("1d6")
        (1, 6)
    """
    match = re.match(r"^(\d+)d(\d+)$", notation.lower())
    if not match:
        raise ValueError(f"Invalid dice notation: '{notation}'. Expected format: NdM (e.g., '1d6')")

    num_dice = int(match.group(1))
    num_sides = int(match.group(2))

    if num_dice <= 0:
        raise ValueError(f"Number of dice must be positive, got {num_dice}")
    if num_sides <= 0:
        raise ValueError(f"Number of sides must be positive, got {num_sides}")

    return num_dice, num_sides


def dice_range(notation: str = "1d6") -> tuple[int, int]:
    """Lowest and highest total the notation can roll.

    Examples:
        >>> dice_range("2d6")
        (2, 12)
    """
    num_dice, num_sides = _parse_dice_notation(notation)
    return num_dice, num_dice * num_sides


def roll_dice(seed: str, notation: str = "1d6") -> dict[str, Any]:
    """Roll dice with deterministic seed.

    Args:
        seed: Deterministic seed string
        notation: Dice notation (e.g., "1d6", "2d6")

    Returns:
        Dictionary containing:
            - notation: The dice notation used
            - rolls: List of individual die rolls
            - total: Sum of all rolls
            - seed: The seed used

    Raises:
        ValueError: If dice notation is invalid
    """
    num_dice, num_sides = _parse_dice_notation(notation)

    rng = random.Random(_seed_to_int(seed))
    rolls = [rng.randint(1, num_sides) for _ in range(num_dice)]

    return {
        "notation": notation,
        "rolls": rolls,
        "total": sum(rolls),
        "seed": seed,
    }


def random_choice(seed: str, options: list[Any]) -> dict[str, Any]:
    """Choose randomly from options with deterministic seed.

    Returns:
        Dictionary containing:
            - choice: The selected option
            - index: Index of the selected option
            - seed: The seed used

    Raises:
        ValueError: If options list is empty
    """
    if not options:
        raise ValueError("options list cannot be empty")

    rng = random.Random(_seed_to_int(seed))
    index = rng.randint(0, len(options) - 1)

    return {
        "choice": options[index],
        "index": index,
        "seed": seed,
    }


def sample_distinct(seed: str, population: list[Any], k: int) -> dict[str, Any]:
    """Draw ``k`` distinct items without replacement.

    Unlike rolling and re-rolling on duplicates, this always terminates.

    Returns:
        Dictionary containing:
            - sample: The drawn items, in draw order
            - seed: The seed used

    Raises:
        ValueError: If k is negative or larger than the population
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if k > len(population):
        raise ValueError(f"cannot draw {k} distinct items from {len(population)}")

    rng = random.Random(_seed_to_int(seed))
    return {
        "sample": rng.sample(population, k),
        "seed": seed,
    }
