"""Requisitions: spending Requisition Points on roster upgrades.

Three requisitions have a variable cost that depends on the roster or the
target unit.  Requisition Points are deducted only once the effect has been
applied; a declined effect leaves the player untouched.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

from . import out_of_action
from .enums import EventType, RequisitionType
from .events import emit
from .experience import apply_legendary_veterans
from .models import (
    Campaign,
    Enhancement,
    Event,
    Outcome,
    Player,
    PlayerID,
    Unit,
    UnitID,
    declined,
    ok,
    utcnow,
)
from .rules_config import DEFAULT_RULES, RulesConfig
from .weapon_mods import WeaponModCatalog, WeaponModSelection

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RequisitionDefinition:
    type: RequisitionType
    name: str
    timing: str
    description: str
    needs_unit: bool = False
    character_only: bool = False
    non_character_only: bool = False


@dataclass(slots=True)
class RequisitionParams:
    """Target and choice details for a purchase."""

    unit_id: UnitID | None = None
    enhancement: Enhancement | None = None
    old_weapon: str | None = None
    new_weapon: str | None = None
    scar_index: int | None = None


REQUISITIONS: dict[RequisitionType, RequisitionDefinition] = {
    RequisitionType.INCREASE_SUPPLY_LIMIT: RequisitionDefinition(
        RequisitionType.INCREASE_SUPPLY_LIMIT,
        "Increase Supply Limit",
        "any time",
        "Increase your Supply Limit by 200 points",
    ),
    RequisitionType.RENOWNED_HEROES: RequisitionDefinition(
        RequisitionType.RENOWNED_HEROES,
        "Renowned Heroes",
        "on unit creation or on rank up",
        "Add an Enhancement to a CHARACTER unit",
        needs_unit=True,
        character_only=True,
    ),
    RequisitionType.LEGENDARY_VETERANS: RequisitionDefinition(
        RequisitionType.LEGENDARY_VETERANS,
        "Legendary Veterans",
        "when a unit reaches 30 XP",
        "Remove the XP cap, allow Heroic and Legendary ranks, raise max honours to 6",
        needs_unit=True,
        non_character_only=True,
    ),
    RequisitionType.REARM_AND_RESUPPLY: RequisitionDefinition(
        RequisitionType.REARM_AND_RESUPPLY,
        "Rearm and Resupply",
        "before a battle",
        "Change unit wargear; modifications on a replaced weapon are lost",
        needs_unit=True,
    ),
    RequisitionType.REPAIR_AND_RECUPERATE: RequisitionDefinition(
        RequisitionType.REPAIR_AND_RECUPERATE,
        "Repair and Recuperate",
        "after a battle",
        "Remove one Battle Scar",
        needs_unit=True,
    ),
    RequisitionType.FRESH_RECRUITS: RequisitionDefinition(
        RequisitionType.FRESH_RECRUITS,
        "Fresh Recruits",
        "any time",
        "Add models to a unit up to its datasheet maximum",
        needs_unit=True,
    ),
}


# --- Costs ----------------------------------------------------------------------


def renowned_heroes_cost(
    campaign: Campaign, player: Player, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """1 RP plus one per Enhancement already in the Order of Battle."""

    enhancements = sum(
        1
        for unit_id in player.order_of_battle
        if unit_id in campaign.units and campaign.units[unit_id].enhancement is not None
    )
    return min(1 + enhancements, rules.requisitions.renowned_heroes_max_cost)


def repair_and_recuperate_cost(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    return min(1 + len(unit.battle_honours), rules.requisitions.repair_and_recuperate_max_cost)


def fresh_recruits_cost(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    honours = math.ceil(len(unit.battle_honours) / 2)
    return min(1 + honours, rules.requisitions.fresh_recruits_max_cost)


def requisition_cost(
    campaign: Campaign,
    player: Player,
    kind: RequisitionType,
    unit: Unit | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> int | None:
    """RP cost of ``kind``; ``None`` when it depends on a unit that wasn't given."""

    costs = rules.requisitions
    if kind == RequisitionType.INCREASE_SUPPLY_LIMIT:
        return costs.increase_supply_limit_cost
    if kind == RequisitionType.RENOWNED_HEROES:
        return renowned_heroes_cost(campaign, player, rules=rules)
    if kind == RequisitionType.LEGENDARY_VETERANS:
        return costs.legendary_veterans_cost
    if kind == RequisitionType.REARM_AND_RESUPPLY:
        return costs.rearm_and_resupply_cost
    if unit is None:
        return None
    if kind == RequisitionType.REPAIR_AND_RECUPERATE:
        return repair_and_recuperate_cost(unit, rules=rules)
    return fresh_recruits_cost(unit, rules=rules)


# --- Effects --------------------------------------------------------------------

Effect = Callable[
    [Player, Unit | None, RequisitionParams, list[Event] | None, RulesConfig], Outcome
]


def _increase_supply_limit(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    player.supply_limit += rules.requisitions.supply_limit_increase
    return ok(f"Supply Limit increased to {player.supply_limit}")


def _renowned_heroes(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    if params.enhancement is None:
        return ok(f"Enhancement can now be added to {unit.name}")
    if unit.enhancement is not None:
        return declined(f"{unit.name} already has Enhancement: {unit.enhancement.name}")
    unit.enhancement = params.enhancement
    unit.last_modified = utcnow()
    return ok(f"{unit.name} gained Enhancement: {params.enhancement.name}")


def _legendary_veterans(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    return apply_legendary_veterans(unit, events=events, rules=rules)


def _rearm_and_resupply(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    old, new = params.old_weapon, params.new_weapon
    if not old or not new or old == new:
        return ok(f"Wargear can now be changed for {unit.name}")
    if old not in unit.equipment:
        return declined(f"{unit.name} is not equipped with {old}")

    unit.equipment[unit.equipment.index(old)] = new
    unit.last_modified = utcnow()
    lost = WeaponModCatalog().remove(
        unit, WeaponModSelection(weapon_name=old), events=events, rules=rules
    )
    message = f"{unit.name} replaced {old} with {new}"
    if lost:
        message += f"; modifications on {old} were lost"
    return ok(message)


def _repair_and_recuperate(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    if not unit.battle_scars:
        return declined("Unit has no Battle Scars")
    if params.scar_index is None:
        return declined("A Battle Scar must be selected")
    return out_of_action.remove_battle_scar(
        unit, params.scar_index, events=events, rules=rules
    )


def _fresh_recruits(
    player: Player,
    unit: Unit | None,
    params: RequisitionParams,
    events: list[Event] | None,
    rules: RulesConfig,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    return ok(f"Models can now be added to {unit.name}")


_EFFECTS: dict[RequisitionType, Effect] = {
    RequisitionType.INCREASE_SUPPLY_LIMIT: _increase_supply_limit,
    RequisitionType.RENOWNED_HEROES: _renowned_heroes,
    RequisitionType.LEGENDARY_VETERANS: _legendary_veterans,
    RequisitionType.REARM_AND_RESUPPLY: _rearm_and_resupply,
    RequisitionType.REPAIR_AND_RECUPERATE: _repair_and_recuperate,
    RequisitionType.FRESH_RECRUITS: _fresh_recruits,
}


# --- Purchase -------------------------------------------------------------------


def _resolve(
    campaign: Campaign,
    player_id: PlayerID,
    kind: RequisitionType | str,
    params: RequisitionParams,
    rules: RulesConfig,
) -> tuple[Player, RequisitionDefinition, Unit | None, int] | Outcome:
    player = campaign.players.get(player_id)
    if player is None:
        return declined("Player not found")
    try:
        definition = REQUISITIONS[RequisitionType(kind)]
    except ValueError:
        return declined(f"Requisition not found: {kind}")

    unit = None
    if definition.needs_unit:
        unit = campaign.units.get(params.unit_id) if params.unit_id else None
        if unit is None:
            return declined("Unit not found")
        if unit.owner_id != player.id:
            return declined(f"{unit.name} is not in {player.name}'s Order of Battle")
        if definition.character_only and not unit.is_character:
            return declined("Requisition requires a CHARACTER unit")
        if definition.non_character_only and unit.is_character:
            return declined("Requisition requires a non-CHARACTER unit")

    cost = requisition_cost(campaign, player, definition.type, unit, rules=rules)
    if cost is None:
        return declined("Cannot calculate cost")
    if player.requisition_points < cost:
        return declined(
            f"Insufficient RP: {cost} required, {player.requisition_points} available"
        )
    return player, definition, unit, cost


def can_purchase(
    campaign: Campaign,
    player_id: PlayerID,
    kind: RequisitionType | str,
    params: RequisitionParams | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Check ownership, unit restrictions and affordability without side effects."""

    resolved = _resolve(campaign, player_id, kind, params or RequisitionParams(), rules)
    if isinstance(resolved, Outcome):
        return resolved
    _, definition, _, cost = resolved
    return ok(f"{definition.name} can be purchased for {cost} RP")


def purchase(
    campaign: Campaign,
    player_id: PlayerID,
    kind: RequisitionType | str,
    params: RequisitionParams | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Buy a requisition for ``player_id``."""

    params = params or RequisitionParams()
    resolved = _resolve(campaign, player_id, kind, params, rules)
    if isinstance(resolved, Outcome):
        return resolved
    player, definition, unit, cost = resolved

    effect = _EFFECTS[definition.type](player, unit, params, campaign.events, rules)
    if not effect:
        return effect

    player.requisition_points -= cost
    message = (
        f"{player.name} purchased {definition.name} for {cost} RP. {effect.message} "
        f"(Remaining RP: {player.requisition_points})"
    )
    emit(
        campaign.events,
        EventType.REQUISITION_PURCHASED,
        message,
        unit=unit,
        player_id=player.id,
        requisition=str(definition.type),
        cost=cost,
        remaining_rp=player.requisition_points,
    )
    return ok(message)
