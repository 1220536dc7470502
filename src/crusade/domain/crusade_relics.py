"""Crusade Relics: tiered wargear honours for CHARACTER units."""

from __future__ import annotations

from dataclasses import dataclass

from . import honours
from .enums import HonourCategory, RelicTier
from .experience import rank_name
from .models import CrusadeRelic, CrusadeRelicHonour, Event, Outcome, Unit, declined, ok
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class RelicDefinition:
    name: str
    tier: RelicTier
    description: str
    effect: str


@dataclass(frozen=True, slots=True)
class RelicSelection:
    name: str


RELICS: tuple[RelicDefinition, ...] = (
    RelicDefinition(
        "Blade of Valor",
        RelicTier.ARTIFICER,
        "Ancient power sword with a storied history",
        "Add 1 to the Strength and Damage of the bearer's melee weapons",
    ),
    RelicDefinition(
        "Mastercrafted Bolter",
        RelicTier.ARTIFICER,
        "Perfectly engineered ranged weapon",
        "The bearer's ranged weapons have [SUSTAINED HITS 1]",
    ),
    RelicDefinition(
        "Armour of Defiance",
        RelicTier.ARTIFICER,
        "Well-crafted protective armour",
        "The bearer has a 4+ invulnerable save",
    ),
    RelicDefinition(
        "Talisman of Warding",
        RelicTier.ARTIFICER,
        "Protective charm against psychic assault",
        "The bearer has Feel No Pain 5+ against Psychic attacks",
    ),
    RelicDefinition(
        "Icon of Leadership",
        RelicTier.ARTIFICER,
        "Banner that inspires nearby warriors",
        'Add 1 to the Leadership of friendly units within 6" of the bearer',
    ),
    RelicDefinition(
        "Relic Blade of Heroes",
        RelicTier.ANTIQUITY,
        "Legendary weapon from a bygone age",
        "Add 2 to melee Strength and Damage; melee weapons gain [DEVASTATING WOUNDS]",
    ),
    RelicDefinition(
        "Plasma Gun of Antiquity",
        RelicTier.ANTIQUITY,
        "Ancient plasma technology of unmatched power",
        "Ranged weapons have [SUSTAINED HITS 2] and [ANTI-INFANTRY 4+]",
    ),
    RelicDefinition(
        "Aegis Eternal",
        RelicTier.ANTIQUITY,
        "Ancient armour of legendary protection",
        "The bearer has a 3+ invulnerable save and Feel No Pain 5+",
    ),
    RelicDefinition(
        "Banner of Ancient Glory",
        RelicTier.ANTIQUITY,
        "Revered standard carried through countless battles",
        'Add 2 to the Leadership of friendly units within 9" of the bearer',
    ),
    RelicDefinition(
        "Sword of the Imperium",
        RelicTier.LEGENDARY,
        "One of the most legendary weapons in existence",
        "Add 3 to melee Strength and Damage; melee weapons gain [DEVASTATING WOUNDS] and [LANCE]",
    ),
    RelicDefinition(
        "Hellfire Arquebus of Legend",
        RelicTier.LEGENDARY,
        "Mythical firearm of immense destructive power",
        "Ranged weapons have [SUSTAINED HITS D3], [ANTI-MONSTER 2+] and [ANTI-VEHICLE 2+]",
    ),
    RelicDefinition(
        "Eternal Aegis",
        RelicTier.LEGENDARY,
        "The ultimate protection, blessed through eons",
        "The bearer has a 2+ invulnerable save and Feel No Pain 4+",
    ),
)


def relics_by_tier(tier: RelicTier) -> list[RelicDefinition]:
    return [relic for relic in RELICS if relic.tier == tier]


def find_relic(name: str) -> RelicDefinition | None:
    return next((relic for relic in RELICS if relic.name == name), None)


def available_relics(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> list[RelicDefinition]:
    """Relics whose tier the unit's rank has unlocked."""

    unlocked = {rule.tier for rule in rules.relic_tiers if unit.rank >= rule.rank_required}
    return [relic for relic in RELICS if relic.tier in unlocked]


class CrusadeRelicCatalog:
    """Catalog of Crusade Relic honours."""

    category = HonourCategory.CRUSADE_RELIC

    def options(
        self, unit: Unit | None, *, rules: RulesConfig = DEFAULT_RULES
    ) -> list[RelicDefinition]:
        if unit is None:
            return []
        if not unit.is_character or not honours.check_capacity(unit, rules=rules):
            return []
        owned = {relic.name for relic in unit.crusade_relics}
        return [relic for relic in available_relics(unit, rules=rules) if relic.name not in owned]

    def check(
        self,
        unit: Unit | None,
        selection: RelicSelection,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        if unit is None:
            return declined("Unit not found")
        if not unit.is_character:
            return declined("Only CHARACTER units can have Crusade Relics")
        capacity = honours.check_capacity(unit, rules=rules)
        if not capacity:
            return capacity
        relic = find_relic(selection.name)
        if relic is None:
            return declined(f"Crusade Relic not found: {selection.name}")
        tier_rule = rules.relic_tier(relic.tier)
        if tier_rule is None:
            return declined(f"Relic tier {relic.tier} is not available in this edition")
        if unit.rank < tier_rule.rank_required:
            return declined(
                f"Requires rank {rank_name(tier_rule.rank_required, rules=rules)} or higher"
            )
        if any(owned.name == selection.name for owned in unit.crusade_relics):
            return declined(f"Unit already has Crusade Relic: {selection.name}")
        return ok(f"{unit.name} can acquire {selection.name}")

    def apply(
        self,
        unit: Unit | None,
        selection: RelicSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        verdict = self.check(unit, selection, rules=rules)
        if not verdict:
            return verdict
        relic = find_relic(selection.name)
        tier_rule = rules.relic_tier(relic.tier) if relic is not None else None
        if relic is None or tier_rule is None:
            return declined(f"Crusade Relic not found: {selection.name}")

        unit.crusade_relics.append(
            CrusadeRelic(
                name=relic.name,
                tier=relic.tier,
                cost=tier_rule.cost,
                rank_required=tier_rule.rank_required,
                description=relic.effect,
            )
        )
        honours.grant_honour(
            unit,
            CrusadeRelicHonour(
                name=relic.name,
                tier=relic.tier,
                cost=tier_rule.cost,
                rank_required=tier_rule.rank_required,
                description=relic.description,
            ),
            events=events,
            rules=rules,
        )
        return ok(
            f"{unit.name} acquired Crusade Relic: {relic.name} "
            f"({relic.tier}, +{tier_rule.cost} CP)"
        )

    def remove(
        self,
        unit: Unit | None,
        selection: RelicSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        """Drop both the relic record and its honour."""

        if unit is None:
            return declined("Unit not found")
        index = honours.find_honour(unit, self.category, selection.name)
        if index is None:
            return declined(f"Crusade Relic not found on unit: {selection.name}")
        return honours.revoke_honour(unit, index, events=events, rules=rules)
