"""Declarative rule configuration for the Crusade progression engine.

All tables here are read-only.  Rule functions accept a ``rules`` keyword
argument defaulting to :data:`DEFAULT_RULES`, so a different edition can be
swapped in without touching the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .enums import RelicTier

logger = logging.getLogger(__name__)


class RulesConfigError(ValueError):
    """Raised when a rules table is malformed."""


@dataclass(frozen=True, slots=True)
class RankThreshold:
    """One row of the rank table."""

    rank: int
    name: str
    min_xp: int
    character_only: bool = False


@dataclass(frozen=True, slots=True)
class ScarDefinition:
    """Battle scar catalog entry."""

    name: str
    effect: str
    blocks_marked_for_greatness: bool = False


@dataclass(frozen=True, slots=True)
class WeaponModDefinition:
    """Weapon modification catalog entry, keyed by its D6 result."""

    id: int
    name: str
    effect: str


@dataclass(frozen=True, slots=True)
class RelicTierRule:
    """Minimum rank and Crusade Point cost of a relic tier."""

    tier: RelicTier
    rank_required: int
    cost: int


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    """Caps and award sizes used by the experience engine."""

    max_honours_non_character: int = 3
    max_honours_character: int = 6
    max_battle_scars: int = 3
    non_character_xp_cap: int = 30
    legendary_veterans_min_xp: int = 30
    battle_experience_xp: int = 1
    kills_per_xp: int = 3
    marked_for_greatness_xp: int = 3
    honour_cost: int = 1
    titanic_honour_cost: int = 2


@dataclass(frozen=True, slots=True)
class OutOfActionRules:
    """Out of Action test parameters."""

    dice: str = "1d6"
    pass_on: int = 2  # roll of this or higher passes


@dataclass(frozen=True, slots=True)
class RequisitionRules:
    """Requisition point economy and per-requisition costs."""

    starting_rp: int = 5
    max_rp: int = 5
    rp_per_battle_win: int = 1
    default_supply_limit: int = 1000
    supply_limit_increase: int = 200
    increase_supply_limit_cost: int = 1
    legendary_veterans_cost: int = 3
    rearm_and_resupply_cost: int = 1
    renowned_heroes_max_cost: int = 3
    repair_and_recuperate_max_cost: int = 5
    fresh_recruits_max_cost: int = 4


DEFAULT_RANKS: tuple[RankThreshold, ...] = (
    RankThreshold(1, "Battle-Ready", 0),
    RankThreshold(2, "Blooded", 6),
    RankThreshold(3, "Battle-Hardened", 16),
    RankThreshold(4, "Heroic", 31, character_only=True),
    RankThreshold(5, "Legendary", 51, character_only=True),
)

DEFAULT_SCARS: tuple[ScarDefinition, ...] = (
    ScarDefinition("Crippling Damage", 'Cannot Advance, -1" Move'),
    ScarDefinition(
        "Battle-Weary",
        "-1 to Battle-shock, Leadership, Desperate Escape, and Out of Action tests",
    ),
    ScarDefinition("Fatigued", "-1 OC, no Charge bonus"),
    ScarDefinition(
        "Disgraced",
        "Cannot use Stratagems, cannot be Marked for Greatness",
        blocks_marked_for_greatness=True,
    ),
    ScarDefinition(
        "Mark of Shame",
        "Cannot attach, unaffected by Auras, cannot be Marked for Greatness",
        blocks_marked_for_greatness=True,
    ),
    ScarDefinition("Deep Scars", "Critical Hits auto-wound"),
)

DEFAULT_WEAPON_MODS: tuple[WeaponModDefinition, ...] = (
    WeaponModDefinition(1, "Finely Balanced", "Improve BS or WS by 1"),
    WeaponModDefinition(2, "Brutal", "Add 1 to Strength"),
    WeaponModDefinition(3, "Armour Piercing", "Improve AP by 1"),
    WeaponModDefinition(4, "Master-Worked", "Add 1 to Damage"),
    WeaponModDefinition(5, "Heirloom", "Add 1 to Attacks"),
    WeaponModDefinition(6, "Precise", "Critical Wounds gain Precision"),
)

DEFAULT_RELIC_TIERS: tuple[RelicTierRule, ...] = (
    RelicTierRule(RelicTier.ARTIFICER, rank_required=1, cost=1),
    RelicTierRule(RelicTier.ANTIQUITY, rank_required=4, cost=2),
    RelicTierRule(RelicTier.LEGENDARY, rank_required=5, cost=3),
)


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for the progression rules."""

    edition: str = "10th"
    ranks: tuple[RankThreshold, ...] = DEFAULT_RANKS
    scars: tuple[ScarDefinition, ...] = DEFAULT_SCARS
    weapon_mods: tuple[WeaponModDefinition, ...] = DEFAULT_WEAPON_MODS
    relic_tiers: tuple[RelicTierRule, ...] = DEFAULT_RELIC_TIERS
    progression: ProgressionRules = ProgressionRules()
    out_of_action: OutOfActionRules = OutOfActionRules()
    requisitions: RequisitionRules = RequisitionRules()

    def scar(self, name: str) -> ScarDefinition | None:
        return next((scar for scar in self.scars if scar.name == name), None)

    def weapon_mod(self, mod_id: int) -> WeaponModDefinition | None:
        return next((mod for mod in self.weapon_mods if mod.id == mod_id), None)

    def relic_tier(self, tier: RelicTier) -> RelicTierRule | None:
        return next((rule for rule in self.relic_tiers if rule.tier == tier), None)


DEFAULT_RULES = RulesConfig()

# Fallback used when a supplied table is malformed: rank 1 only, no honours.
MINIMAL_RULES = RulesConfig(
    edition="minimal",
    ranks=(RankThreshold(1, "Battle-Ready", 0),),
    progression=ProgressionRules(max_honours_non_character=0, max_honours_character=0),
)

EDITIONS: dict[str, RulesConfig] = {DEFAULT_RULES.edition: DEFAULT_RULES}


def validate_rules(rules: RulesConfig) -> None:
    """Raise :class:`RulesConfigError` if any table is unusable."""

    if not rules.ranks:
        raise RulesConfigError("rank table is empty")
    ranks = [threshold.rank for threshold in rules.ranks]
    if ranks != sorted(set(ranks)):
        raise RulesConfigError(f"rank numbers must be unique and ascending, got {ranks}")
    min_xps = [threshold.min_xp for threshold in rules.ranks]
    if min_xps != sorted(min_xps) or min_xps[0] != 0:
        raise RulesConfigError(f"rank XP thresholds must ascend from 0, got {min_xps}")
    if rules.ranks[0].character_only:
        raise RulesConfigError("the first rank must be reachable by every unit")

    scar_names = [scar.name for scar in rules.scars]
    if len(scar_names) != len(set(scar_names)):
        raise RulesConfigError("battle scar names must be unique")
    if len(scar_names) < rules.progression.max_battle_scars:
        raise RulesConfigError("scar catalog is smaller than the per-unit scar cap")

    mod_ids = sorted(mod.id for mod in rules.weapon_mods)
    if len(mod_ids) < 2 or len(mod_ids) != len(set(mod_ids)):
        raise RulesConfigError("weapon modification table needs at least two unique entries")

    tiers = {rule.tier for rule in rules.relic_tiers}
    if tiers != set(RelicTier):
        raise RulesConfigError(f"relic tiers incomplete: {sorted(tiers)}")


def load_rules(rules: RulesConfig) -> RulesConfig:
    """Validate ``rules`` and fall back to :data:`MINIMAL_RULES` on failure."""

    try:
        validate_rules(rules)
    except RulesConfigError as exc:
        logger.error(
            "rules edition %r is malformed (%s); falling back to minimal rules", rules.edition, exc
        )
        return MINIMAL_RULES
    return rules


def rules_for_edition(edition: str) -> RulesConfig:
    """Look up a registered edition, validating it before use."""

    rules = EDITIONS.get(edition)
    if rules is None:
        logger.error("unknown rules edition %r; falling back to minimal rules", edition)
        return MINIMAL_RULES
    return load_rules(rules)
