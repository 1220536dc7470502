"""Crusade Points: honour costs minus battle scars.

XP does not contribute to Crusade Points in the current edition.  The result
may be negative and is never clamped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .enums import HonourCategory
from .models import BattleHonour, Player, Unit, UnitID, utcnow
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

SIGNIFICANT_CHANGE = 2


@dataclass(slots=True)
class CrusadePointsBreakdown:
    """Itemised view of a unit's Crusade Points."""

    total: int
    from_honours: int
    from_scars: int
    honour_costs: list[tuple[str, str, int]] = field(default_factory=list)
    scar_names: list[str] = field(default_factory=list)

    @property
    def formula(self) -> str:
        return f"CP = {self.from_honours} - {self.from_scars} = {self.total}"


@dataclass(slots=True)
class SupplyStatus:
    """Supply usage for a player's Order of Battle."""

    used: int
    limit: int

    @property
    def over_limit(self) -> bool:
        return self.used > self.limit

    @property
    def remaining(self) -> int:
        return self.limit - self.used


def honour_cost(unit: Unit, honour: BattleHonour, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Crusade Point value of a single honour on ``unit``."""

    if honour.category == HonourCategory.CRUSADE_RELIC:
        return honour.cost
    if unit.is_titanic:
        return rules.progression.titanic_honour_cost
    return rules.progression.honour_cost


def calculate(unit: Unit | None, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Return the unit's Crusade Points without mutating it; a missing unit scores 0."""

    if unit is None:
        return 0
    honours = sum(honour_cost(unit, honour, rules=rules) for honour in unit.battle_honours)
    return honours - len(unit.battle_scars)


def update_unit_crusade_points(
    unit: Unit | None, reason: str = "unknown", *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """Recompute and cache Crusade Points on ``unit``."""

    if unit is None:
        return 0
    old = unit.crusade_points
    new = calculate(unit, rules=rules)
    unit.crusade_points = new
    unit.last_modified = utcnow()
    if abs(new - old) >= SIGNIFICANT_CHANGE:
        logger.info("unit %s CP changed %d -> %d (%s)", unit.name, old, new, reason)
    return new


def breakdown(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> CrusadePointsBreakdown:
    costs = [
        (honour.name, honour.category, honour_cost(unit, honour, rules=rules))
        for honour in unit.battle_honours
    ]
    from_honours = sum(cost for _, _, cost in costs)
    from_scars = len(unit.battle_scars)
    return CrusadePointsBreakdown(
        total=from_honours - from_scars,
        from_honours=from_honours,
        from_scars=from_scars,
        honour_costs=costs,
        scar_names=[scar.name for scar in unit.battle_scars],
    )


def validate(unit: Unit | None, *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    """Check that the cached value matches a fresh calculation."""

    if unit is None:
        return False
    expected = calculate(unit, rules=rules)
    if expected != unit.crusade_points:
        logger.warning(
            "CP mismatch for unit %s: calculated=%d stored=%d",
            unit.name,
            expected,
            unit.crusade_points,
        )
        return False
    return True


def _roster(player: Player, units: Mapping[UnitID, Unit]) -> list[Unit]:
    return [units[unit_id] for unit_id in player.order_of_battle if unit_id in units]


def player_total(player: Player, units: Mapping[UnitID, Unit]) -> int:
    """Sum of the stored Crusade Points across the Order of Battle."""

    return sum(unit.crusade_points for unit in _roster(player, units))


def recalculate_player(
    player: Player, units: Mapping[UnitID, Unit], *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    """Refresh every unit in the Order of Battle and return the player's total."""

    return sum(
        update_unit_crusade_points(unit, "player_recalculation", rules=rules)
        for unit in _roster(player, units)
    )


def sort_units_by_crusade_points(units: Iterable[Unit], *, descending: bool = True) -> list[Unit]:
    return sorted(units, key=lambda unit: unit.crusade_points, reverse=descending)


def supply_used(player: Player, units: Mapping[UnitID, Unit]) -> int:
    """Supply is points cost plus enhancement cost; Crusade Points play no part."""

    total = 0
    for unit in _roster(player, units):
        total += unit.points_cost
        if unit.enhancement is not None:
            total += unit.enhancement.points_cost
    return total


def check_supply_limit(player: Player, units: Mapping[UnitID, Unit]) -> SupplyStatus:
    status = SupplyStatus(used=supply_used(player, units), limit=player.supply_limit)
    if status.over_limit:
        logger.warning(
            "player %s is over supply limit: %d / %d", player.name, status.used, status.limit
        )
    return status
