"""Rules shared by every battle-honour category.

The per-category catalogs (:mod:`battle_traits`, :mod:`weapon_mods`,
:mod:`crusade_relics`) build honours and defer to these helpers for the
honour cap, granting and removal, so bookkeeping stays identical across
categories.
"""

from __future__ import annotations

import logging

from . import crusade_points
from .enums import EventType, HonourCategory
from .events import emit
from .models import BattleHonour, Event, Outcome, Unit, declined, ok
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def max_honours(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """3 for ordinary units, 6 for CHARACTERs and Legendary Veterans."""

    if unit.is_character or unit.has_legendary_veterans:
        return rules.progression.max_honours_character
    return rules.progression.max_honours_non_character


def check_capacity(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> Outcome:
    limit = max_honours(unit, rules=rules)
    if len(unit.battle_honours) >= limit:
        return declined(f"Unit has maximum Battle Honours ({limit})")
    return ok("Unit can gain a Battle Honour")


def honours_of(unit: Unit, category: HonourCategory) -> list[BattleHonour]:
    return [honour for honour in unit.battle_honours if honour.category == category]


def find_honour(unit: Unit, category: HonourCategory, name: str) -> int | None:
    """Index of the first honour with this category and name, if any."""

    for index, honour in enumerate(unit.battle_honours):
        if honour.category == category and honour.name == name:
            return index
    return None


def grant_honour(
    unit: Unit,
    honour: BattleHonour,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> None:
    """Append ``honour``, clear the pending selection and refresh CP."""

    unit.battle_honours.append(honour)
    unit.pending_honour_selection = False
    crusade_points.update_unit_crusade_points(unit, f"{honour.category}_gained", rules=rules)
    emit(
        events,
        EventType.HONOUR_GAINED,
        f"{unit.name} gained {honour.name} ({len(unit.battle_honours)} honours total)",
        unit=unit,
        category=str(honour.category),
        honour=honour.name,
    )


def _drop_linked_record(unit: Unit, honour: BattleHonour) -> None:
    if honour.category == HonourCategory.WEAPON_MODIFICATION:
        unit.weapon_modifications = [
            record
            for record in unit.weapon_modifications
            if record.weapon_name != honour.weapon_name
        ]
    elif honour.category == HonourCategory.CRUSADE_RELIC:
        for index, relic in enumerate(unit.crusade_relics):
            if relic.name == honour.name:
                del unit.crusade_relics[index]
                break


def revoke_honour(
    unit: Unit,
    index: int,
    *,
    reason: str = "removed",
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Remove the honour at ``index`` together with its weapon-mod or relic record."""

    if not 0 <= index < len(unit.battle_honours):
        return declined(
            f"Invalid honour index {index}; unit has {len(unit.battle_honours)} Battle Honours"
        )

    honour = unit.battle_honours.pop(index)
    _drop_linked_record(unit, honour)
    crusade_points.update_unit_crusade_points(unit, f"{honour.category}_{reason}", rules=rules)
    message = f"{unit.name} lost {honour.name}"
    emit(
        events,
        EventType.HONOUR_REMOVED,
        message,
        unit=unit,
        category=str(honour.category),
        honour=honour.name,
        reason=reason,
    )
    return ok(message)
