"""Battle Traits: generic and faction-specific honour abilities."""

from __future__ import annotations

from dataclasses import dataclass

from . import honours
from .enums import HonourCategory, TraitCategory
from .models import BattleTrait, Event, Outcome, Unit, declined, ok
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class TraitDefinition:
    name: str
    description: str
    category: TraitCategory


@dataclass(frozen=True, slots=True)
class TraitSelection:
    """Trait chosen by a player; ``faction`` unlocks faction traits."""

    name: str
    faction: str = ""


GENERIC_TRAITS: tuple[TraitDefinition, ...] = (
    TraitDefinition(
        "Inspiring Leader",
        'Units within 6" of this unit can use its Leadership characteristic for Battle-shock tests',
        TraitCategory.LEADERSHIP,
    ),
    TraitDefinition(
        "Lethal Sharpshooter",
        "Ranged weapons equipped by models in this unit have [LETHAL HITS]",
        TraitCategory.SHOOTING,
    ),
    TraitDefinition(
        "Melee Expert",
        "Melee weapons equipped by models in this unit have [LETHAL HITS]",
        TraitCategory.MELEE,
    ),
    TraitDefinition(
        "Tank Hunter",
        "Add 1 to the Wound roll for attacks that target a VEHICLE or MONSTER unit",
        TraitCategory.ANTI_VEHICLE,
    ),
    TraitDefinition(
        "Fortified Position",
        "While within range of an objective marker you control, models have a 5+ invulnerable save",
        TraitCategory.DEFENSIVE,
    ),
    TraitDefinition(
        "Rapid Deployment",
        'Make a Normal move of up to 6" at the start of the first battle round',
        TraitCategory.MOVEMENT,
    ),
    TraitDefinition(
        "Devastating Charge",
        "After a Charge move, melee weapons gain [DEVASTATING WOUNDS] until end of turn",
        TraitCategory.MELEE,
    ),
    TraitDefinition(
        "Marked for Death",
        "Select an enemy unit as this unit's mark; re-roll Wound rolls of 1 against it",
        TraitCategory.SPECIAL,
    ),
    TraitDefinition(
        "Stealth Specialist",
        "Subtract 1 from ranged Hit rolls targeting this unit while it is within terrain",
        TraitCategory.DEFENSIVE,
    ),
    TraitDefinition(
        "Never Give Up",
        "This unit is eligible to shoot in a turn in which it Fell Back",
        TraitCategory.MOVEMENT,
    ),
    TraitDefinition(
        "Chem-enhanced",
        "Add 1 to the Strength characteristic of weapons equipped by models in this unit",
        TraitCategory.ENHANCEMENT,
    ),
    TraitDefinition(
        "Tenacious Survivor",
        "Each time a model would lose a wound, roll one D6: on a 6, that wound is not lost",
        TraitCategory.DEFENSIVE,
    ),
)

FACTION_TRAITS: dict[str, tuple[TraitDefinition, ...]] = {
    "Space Marines": (
        TraitDefinition(
            "Tactical Precision",
            "Once per battle, re-roll all failed Hit rolls when shooting",
            TraitCategory.SHOOTING,
        ),
        TraitDefinition(
            "And They Shall Know No Fear",
            "Automatically pass Battle-shock tests and re-roll Advance and Charge rolls",
            TraitCategory.LEADERSHIP,
        ),
    ),
    "Necrons": (
        TraitDefinition(
            "Reanimation Protocols",
            "Re-roll one Reanimation roll each time this unit uses Reanimation Protocols",
            TraitCategory.SPECIAL,
        ),
        TraitDefinition(
            "Quantum Shielding",
            "Improve Save by 1 (to a maximum of 2+) against Damage 1 attacks",
            TraitCategory.DEFENSIVE,
        ),
    ),
    "Orks": (
        TraitDefinition(
            "Mob Rule",
            "While this unit contains 10 or more models, add 1 to its Leadership",
            TraitCategory.LEADERSHIP,
        ),
        TraitDefinition(
            "Dakka Dakka Dakka",
            "If this unit remained stationary, add 1 to its ranged weapons' Attacks",
            TraitCategory.SHOOTING,
        ),
    ),
}


def all_traits(faction: str = "") -> list[TraitDefinition]:
    return [*GENERIC_TRAITS, *FACTION_TRAITS.get(faction, ())]


def traits_by_category(category: TraitCategory, faction: str = "") -> list[TraitDefinition]:
    return [trait for trait in all_traits(faction) if trait.category == category]


def find_trait(name: str, faction: str = "") -> TraitDefinition | None:
    return next((trait for trait in all_traits(faction) if trait.name == name), None)


class BattleTraitCatalog:
    """Catalog of Battle Traits; only the shared honour cap applies."""

    category = HonourCategory.BATTLE_TRAIT

    def __init__(self, faction: str = "") -> None:
        self.faction = faction

    def options(
        self, unit: Unit | None, *, rules: RulesConfig = DEFAULT_RULES
    ) -> list[TraitDefinition]:
        if unit is None:
            return []
        if not honours.check_capacity(unit, rules=rules):
            return []
        owned = {honour.name for honour in honours.honours_of(unit, self.category)}
        return [trait for trait in all_traits(self.faction) if trait.name not in owned]

    def check(
        self,
        unit: Unit | None,
        selection: TraitSelection,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        if unit is None:
            return declined("Unit not found")
        capacity = honours.check_capacity(unit, rules=rules)
        if not capacity:
            return capacity
        if find_trait(selection.name, selection.faction or self.faction) is None:
            return declined(f"Battle Trait not found: {selection.name}")
        if honours.find_honour(unit, self.category, selection.name) is not None:
            return declined(f"Unit already has Battle Trait: {selection.name}")
        return ok(f"{unit.name} can gain {selection.name}")

    def apply(
        self,
        unit: Unit | None,
        selection: TraitSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        verdict = self.check(unit, selection, rules=rules)
        trait = find_trait(selection.name, selection.faction or self.faction)
        if not verdict or trait is None:
            return verdict
        honours.grant_honour(
            unit,
            BattleTrait(
                name=trait.name,
                description=trait.description,
                trait_category=str(trait.category),
            ),
            events=events,
            rules=rules,
        )
        return ok(
            f"{unit.name} gained Battle Trait: {trait.name} "
            f"({len(unit.battle_honours)} honours total)"
        )

    def remove(
        self,
        unit: Unit | None,
        selection: TraitSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        if unit is None:
            return declined("Unit not found")
        index = honours.find_honour(unit, self.category, selection.name)
        if index is None:
            return declined(f"Battle Trait not found on unit: {selection.name}")
        return honours.revoke_honour(unit, index, events=events, rules=rules)
