"""Players, units and the Order of Battle."""

from __future__ import annotations

import logging

from . import crusade_points, experience
from .models import (
    Campaign,
    Enhancement,
    HexID,
    Outcome,
    Player,
    PlayerID,
    TerritoryHex,
    Unit,
    UnitID,
    declined,
    new_id,
    ok,
)
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def create_player(
    campaign: Campaign,
    name: str,
    faction: str = "",
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Player:
    player = Player(
        id=PlayerID(new_id()),
        name=name,
        faction=faction,
        requisition_points=rules.requisitions.starting_rp,
        supply_limit=rules.requisitions.default_supply_limit,
    )
    campaign.players[player.id] = player
    logger.info("player %s (%s) joined campaign %s", name, faction or "no faction", campaign.id)
    return player


def create_unit(
    campaign: Campaign,
    owner_id: PlayerID,
    name: str,
    *,
    unit_type: str = "",
    points_cost: int = 0,
    is_character: bool = False,
    is_titanic: bool = False,
    is_epic_hero: bool = False,
    can_gain_xp: bool | None = None,
    equipment: list[str] | None = None,
    enhancement: Enhancement | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Unit:
    """Add a fresh unit to ``owner_id``'s Order of Battle.

    Epic Heroes cannot gain XP unless told otherwise.  Raises ``KeyError``
    when the owner is not part of the campaign.
    """

    player = campaign.players[owner_id]
    if can_gain_xp is None:
        can_gain_xp = not is_epic_hero

    unit = Unit(
        id=UnitID(new_id()),
        owner_id=owner_id,
        name=name,
        unit_type=unit_type,
        points_cost=points_cost,
        is_character=is_character,
        is_titanic=is_titanic,
        is_epic_hero=is_epic_hero,
        can_gain_xp=can_gain_xp,
        equipment=list(equipment or []),
        enhancement=enhancement if is_character else None,
    )
    unit.rank, _ = experience.calculate_rank(0, is_character, False, rules=rules)
    crusade_points.update_unit_crusade_points(unit, "unit_created", rules=rules)

    campaign.units[unit.id] = unit
    player.order_of_battle.append(unit.id)
    crusade_points.check_supply_limit(player, campaign.units)
    logger.info("unit %s added to %s's Order of Battle", name, player.name)
    return unit


def get_unit(campaign: Campaign, unit_id: UnitID) -> Unit | None:
    return campaign.units.get(unit_id)


def remove_unit(campaign: Campaign, unit_id: UnitID) -> Unit | None:
    """Drop ``unit_id`` from the roster and from its owner's Order of Battle."""

    unit = campaign.units.pop(unit_id, None)
    if unit is None:
        return None
    owner = campaign.players.get(unit.owner_id)
    if owner is not None and unit_id in owner.order_of_battle:
        owner.order_of_battle.remove(unit_id)
    return unit


def retire_unit(campaign: Campaign, unit_id: UnitID) -> Outcome:
    unit = remove_unit(campaign, unit_id)
    if unit is None:
        return declined("Unit not found")
    logger.info("unit %s retired from the Crusade", unit.name)
    return ok(f"{unit.name} retired")


def add_territory(campaign: Campaign, name: str, q: int = 0, r: int = 0) -> TerritoryHex:
    territory = TerritoryHex(id=HexID(new_id()), name=name, q=q, r=r)
    campaign.territories[territory.id] = territory
    return territory
