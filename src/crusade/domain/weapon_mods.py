"""Weapon Modifications: two distinct modifications rolled onto one weapon."""

from __future__ import annotations

from dataclasses import dataclass

from crusade.utils.rng import fresh_seed, sample_distinct

from . import honours
from .enums import HonourCategory
from .models import (
    Event,
    Outcome,
    Unit,
    WeaponModification,
    WeaponModificationHonour,
    declined,
    ok,
)
from .rules_config import DEFAULT_RULES, RulesConfig, WeaponModDefinition

MODS_PER_WEAPON = 2


@dataclass(frozen=True, slots=True)
class WeaponModSelection:
    """Weapon to modify plus optional pre-rolled modification ids."""

    weapon_name: str
    mod_ids: tuple[int, ...] | None = None
    model_index: int = 1
    seed: str | None = None


def roll_modifications(seed: str, *, rules: RulesConfig = DEFAULT_RULES) -> tuple[int, int]:
    """Draw two distinct modification ids uniformly, without replacement."""

    ids = [mod.id for mod in rules.weapon_mods]
    first, second = sample_distinct(seed, ids, MODS_PER_WEAPON)["sample"]
    return first, second


def modification_names(
    mod_ids: tuple[int, ...], *, rules: RulesConfig = DEFAULT_RULES
) -> list[WeaponModDefinition]:
    found = [rules.weapon_mod(mod_id) for mod_id in mod_ids]
    return [mod for mod in found if mod is not None]


def validate_mod_ids(mod_ids: tuple[int, ...], *, rules: RulesConfig = DEFAULT_RULES) -> Outcome:
    if len(mod_ids) != MODS_PER_WEAPON:
        return declined(f"Must have exactly {MODS_PER_WEAPON} weapon modifications")
    if len(set(mod_ids)) != len(mod_ids):
        return declined("Modifications must be different")
    for mod_id in mod_ids:
        if rules.weapon_mod(mod_id) is None:
            return declined(f"Invalid modification ID: {mod_id}")
    return ok("Modification ids are valid")


def weapon_ineligibility(unit: Unit, weapon_name: str) -> str | None:
    """Reason this weapon cannot take modifications, or ``None``."""

    if any(record.weapon_name == weapon_name for record in unit.weapon_modifications):
        return f"Weapon already has modifications: {weapon_name}"
    if unit.enhancement is not None and unit.enhancement.replaced_weapon == weapon_name:
        return "Cannot modify Enhancement weapons"
    if any(relic.name == weapon_name for relic in unit.crusade_relics):
        return "Cannot modify Crusade Relics"
    return None


def modifiable_weapons(unit: Unit) -> list[str]:
    return [weapon for weapon in unit.equipment if weapon_ineligibility(unit, weapon) is None]


class WeaponModCatalog:
    """Catalog of Weapon Modification honours."""

    category = HonourCategory.WEAPON_MODIFICATION

    def options(
        self, unit: Unit | None, *, rules: RulesConfig = DEFAULT_RULES
    ) -> list[str]:
        """Weapons on the unit that could be modified right now."""

        if unit is None:
            return []
        if not honours.check_capacity(unit, rules=rules):
            return []
        return modifiable_weapons(unit)

    def check(
        self,
        unit: Unit | None,
        selection: WeaponModSelection,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        if unit is None:
            return declined("Unit not found")
        capacity = honours.check_capacity(unit, rules=rules)
        if not capacity:
            return capacity
        if not selection.weapon_name:
            return declined("A weapon must be selected")
        reason = weapon_ineligibility(unit, selection.weapon_name)
        if reason is not None:
            return declined(reason)
        if selection.mod_ids is not None:
            return validate_mod_ids(selection.mod_ids, rules=rules)
        return ok(f"{selection.weapon_name} can be modified")

    def apply(
        self,
        unit: Unit | None,
        selection: WeaponModSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        verdict = self.check(unit, selection, rules=rules)
        if not verdict:
            return verdict

        mod_ids = selection.mod_ids
        if mod_ids is None:
            mod_ids = roll_modifications(
                selection.seed or fresh_seed(f"weapon_mods:{unit.id}"), rules=rules
            )
        mods = modification_names(mod_ids, rules=rules)
        names = [mod.name for mod in mods]

        unit.weapon_modifications.append(
            WeaponModification(
                weapon_name=selection.weapon_name,
                modifications=names,
                model_index=selection.model_index,
            )
        )
        honours.grant_honour(
            unit,
            WeaponModificationHonour(
                name=f"{selection.weapon_name} ({', '.join(names)})",
                weapon_name=selection.weapon_name,
                modifications=names,
                model_index=selection.model_index,
                description=" | ".join(f"{mod.name}: {mod.effect}" for mod in mods),
            ),
            events=events,
            rules=rules,
        )
        return ok(f"{unit.name} modified {selection.weapon_name} with {' and '.join(names)}")

    def remove(
        self,
        unit: Unit | None,
        selection: WeaponModSelection,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> Outcome:
        """Drop both modifications and the honour in one step."""

        if unit is None:
            return declined("Unit not found")
        for index, honour in enumerate(unit.battle_honours):
            if (
                honour.category == HonourCategory.WEAPON_MODIFICATION
                and honour.weapon_name == selection.weapon_name
            ):
                return honours.revoke_honour(unit, index, events=events, rules=rules)
        return declined(f"Weapon Modifications not found for weapon: {selection.weapon_name}")
