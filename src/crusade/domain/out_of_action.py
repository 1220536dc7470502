"""Out of Action tests and their consequences.

Each destroyed unit ends its test at ``PASSED`` or
``FAILED_PENDING_CHOICE``; the latter becomes ``RESOLVED`` once
:func:`apply_consequence` succeeds with a valid choice.  The state is kept on
``Unit.out_of_action_state`` until the unit is tested again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from crusade.utils.rng import dice_range, fresh_seed, random_choice, roll_dice

from . import crusade_points, honours
from .enums import ConsequenceType, EventType, OutOfActionState
from .events import emit
from .models import BattleRecord, BattleScar, Event, Outcome, Unit, UnitID, declined, ok, utcnow
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConsequenceOption:
    """One consequence a failed unit may choose."""

    type: ConsequenceType
    allowed: bool
    mandatory: bool
    description: str
    warning: str | None = None


@dataclass(slots=True)
class OutOfActionResult:
    """Outcome of a single unit's test."""

    unit_id: UnitID
    passed: bool
    roll: int
    state: OutOfActionState
    consequences: list[ConsequenceOption] = field(default_factory=list)


@dataclass(slots=True)
class ConsequenceParams:
    """Caller's choice details for :func:`apply_consequence`."""

    honour_index: int | None = None
    scar_name: str | None = None
    seed: str | None = None


@dataclass(slots=True)
class OutOfActionStatus:
    has_pending_choice: bool
    can_choose_scar: bool
    current_scars: int
    max_scars: int
    current_honours: int
    will_be_destroyed: bool
    state: OutOfActionState | None = None


# --- Test -----------------------------------------------------------------------


def is_valid_roll(roll: int, *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    low, high = dice_range(rules.out_of_action.dice)
    return low <= roll <= high


def conduct_test(
    unit: Unit,
    *,
    seed: str,
    roll: int | None = None,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> OutOfActionResult:
    """Roll the Out of Action test for ``unit``.

    Units that cannot gain XP pass automatically with a roll of 0.  ``roll``
    overrides the die for replaying a physical roll; an override outside the
    die's faces is ignored with a warning.  A failed unit is flagged
    as pending a consequence choice; it is never resolved here.
    """

    if not unit.can_gain_xp:
        emit(
            events,
            EventType.OUT_OF_ACTION_AUTO_PASS,
            f"{unit.name} automatically passes Out of Action test (cannot gain XP)",
            unit=unit,
        )
        unit.out_of_action_state = OutOfActionState.PASSED
        return OutOfActionResult(unit.id, True, 0, OutOfActionState.PASSED)

    if roll is not None and not is_valid_roll(roll, rules=rules):
        logger.warning("ignoring out-of-range roll %r for %s", roll, unit.name)
        roll = None
    if roll is None:
        roll = roll_dice(seed, rules.out_of_action.dice)["total"]

    if roll >= rules.out_of_action.pass_on:
        emit(
            events,
            EventType.OUT_OF_ACTION_PASS,
            f"{unit.name} passed Out of Action test (rolled {roll})",
            unit=unit,
            roll=roll,
        )
        unit.out_of_action_state = OutOfActionState.PASSED
        return OutOfActionResult(unit.id, True, roll, OutOfActionState.PASSED)

    unit.pending_out_of_action_choice = True
    unit.out_of_action_state = OutOfActionState.FAILED_PENDING_CHOICE
    unit.last_modified = utcnow()
    emit(
        events,
        EventType.OUT_OF_ACTION_FAIL,
        f"{unit.name} FAILED Out of Action test (rolled {roll}); "
        "must choose Devastating Blow or Battle Scar",
        unit=unit,
        roll=roll,
    )
    return OutOfActionResult(
        unit.id,
        False,
        roll,
        OutOfActionState.FAILED_PENDING_CHOICE,
        available_consequences(unit, rules=rules),
    )


def can_choose_battle_scar(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> Outcome:
    limit = rules.progression.max_battle_scars
    if len(unit.battle_scars) >= limit:
        return declined(
            f"Unit already has {limit} Battle Scars (maximum); "
            "only Devastating Blow is available"
        )
    return ok("Battle Scar available")


def available_consequences(
    unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> list[ConsequenceOption]:
    scar_check = can_choose_battle_scar(unit, rules=rules)
    blow_warning = None
    if not unit.battle_honours:
        blow_warning = (
            "Unit has no Battle Honours. Choosing Devastating Blow will permanently destroy it."
        )
    return [
        ConsequenceOption(
            type=ConsequenceType.DEVASTATING_BLOW,
            allowed=True,
            mandatory=not scar_check.success,
            description="Remove one Battle Honour from this unit",
            warning=blow_warning,
        ),
        ConsequenceOption(
            type=ConsequenceType.BATTLE_SCAR,
            allowed=scar_check.success,
            mandatory=False,
            description="Gain one Battle Scar",
            warning=None if scar_check.success else scar_check.message,
        ),
    ]


# --- Consequences ---------------------------------------------------------------


def destroy_unit_permanently(
    unit: Unit | None, *, events: list[Event] | None = None
) -> Outcome:
    """Flag the unit for removal from the roster."""

    if unit is None:
        return declined("Unit not found")
    unit.marked_for_deletion = True
    unit.last_modified = utcnow()
    message = f"{unit.name} has been PERMANENTLY DESTROYED (no Battle Honours remaining)"
    emit(
        events,
        EventType.UNIT_PERMANENTLY_DESTROYED,
        message,
        unit=unit,
        xp=unit.experience_points,
        rank=unit.rank,
        scars=len(unit.battle_scars),
    )
    return ok(message)


def apply_devastating_blow(
    unit: Unit | None,
    honour_index: int | None,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Lose one honour, or the whole unit when it has none left."""

    if unit is None:
        return declined("Unit not found")
    if not unit.battle_honours:
        return destroy_unit_permanently(unit, events=events)
    if honour_index is None:
        return declined("A Battle Honour must be selected for Devastating Blow")
    if not 0 <= honour_index < len(unit.battle_honours):
        return declined("Invalid honour index")

    honour = unit.battle_honours[honour_index]
    removal = honours.revoke_honour(
        unit, honour_index, reason="devastating_blow", events=events, rules=rules
    )
    if not removal:
        return removal
    message = (
        f"{unit.name} suffered Devastating Blow: Lost {honour.name} ({honour.category}). "
        f"Remaining honours: {len(unit.battle_honours)}"
    )
    emit(
        events,
        EventType.DEVASTATING_BLOW,
        message,
        unit=unit,
        honour=honour.name,
        category=str(honour.category),
    )
    return ok(message)


def apply_battle_scar(
    unit: Unit | None,
    scar_name: str | None = None,
    *,
    seed: str | None = None,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Give the unit a scar, named or drawn at random.

    A random scar, or a named scar the unit already carries, is drawn from
    the catalog entries not yet on the unit.
    """

    if unit is None:
        return declined("Unit not found")
    verdict = can_choose_battle_scar(unit, rules=rules)
    if not verdict:
        return verdict

    owned = {scar.name for scar in unit.battle_scars}
    definition = None
    if scar_name is not None:
        definition = rules.scar(scar_name)
        if definition is None:
            return declined(f"Invalid Battle Scar: {scar_name}")
        if definition.name in owned:
            logger.warning("%s already has Battle Scar %r; drawing another", unit.name, scar_name)
            definition = None

    if definition is None:
        remaining = [scar for scar in rules.scars if scar.name not in owned]
        if not remaining:
            return declined("All Battle Scars are already present on this unit")
        draw_seed = seed or fresh_seed(f"battle_scar:{unit.id}")
        definition = random_choice(draw_seed, remaining)["choice"]

    unit.battle_scars.append(BattleScar(name=definition.name, effect=definition.effect))
    crusade_points.update_unit_crusade_points(unit, "battle_scar_gained", rules=rules)

    limit = rules.progression.max_battle_scars
    message = (
        f"{unit.name} gained Battle Scar: {definition.name} "
        f"({len(unit.battle_scars)}/{limit} scars)"
    )
    emit(
        events,
        EventType.SCAR_GAINED,
        message,
        unit=unit,
        scar=definition.name,
        scar_count=len(unit.battle_scars),
    )
    if len(unit.battle_scars) >= limit:
        message += (
            f"\nWARNING: {unit.name} now has {limit} Battle Scars! "
            "Next Out of Action failure MUST choose Devastating Blow."
        )
    return ok(message)


def remove_battle_scar(
    unit: Unit | None,
    scar_index: int,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    if unit is None:
        return declined("Unit not found")
    if not 0 <= scar_index < len(unit.battle_scars):
        return declined("Invalid scar index")

    scar = unit.battle_scars.pop(scar_index)
    crusade_points.update_unit_crusade_points(unit, "battle_scar_removed", rules=rules)
    message = (
        f"{unit.name} had Battle Scar '{scar.name}' removed. "
        f"Remaining scars: {len(unit.battle_scars)}"
    )
    emit(events, EventType.SCAR_REMOVED, message, unit=unit, scar=scar.name)
    return ok(message)


Handler = Callable[[Unit, ConsequenceParams, list[Event] | None, RulesConfig], Outcome]


def _handle_devastating_blow(
    unit: Unit, params: ConsequenceParams, events: list[Event] | None, rules: RulesConfig
) -> Outcome:
    return apply_devastating_blow(unit, params.honour_index, events=events, rules=rules)


def _handle_battle_scar(
    unit: Unit, params: ConsequenceParams, events: list[Event] | None, rules: RulesConfig
) -> Outcome:
    return apply_battle_scar(unit, params.scar_name, seed=params.seed, events=events, rules=rules)


_CONSEQUENCE_HANDLERS: dict[ConsequenceType, Handler] = {
    ConsequenceType.DEVASTATING_BLOW: _handle_devastating_blow,
    ConsequenceType.BATTLE_SCAR: _handle_battle_scar,
}


def apply_consequence(
    unit: Unit | None,
    consequence_type: ConsequenceType | str,
    params: ConsequenceParams | None = None,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Outcome:
    """Resolve a failed test with the player's chosen consequence.

    The pending flag is cleared, and the state set to ``RESOLVED``, only
    when the consequence is applied.
    """

    if unit is None:
        return declined("Unit not found")
    try:
        kind = ConsequenceType(consequence_type)
    except ValueError:
        return declined(f"Invalid consequence type: {consequence_type}")

    outcome = _CONSEQUENCE_HANDLERS[kind](unit, params or ConsequenceParams(), events, rules)
    if outcome.success:
        unit.pending_out_of_action_choice = False
        unit.out_of_action_state = OutOfActionState.RESOLVED
    return outcome


# --- Battle-level processing ----------------------------------------------------


def process_out_of_action_tests(
    record: BattleRecord,
    units: Mapping[UnitID, Unit],
    *,
    seed_prefix: str,
    fixed_rolls: Mapping[UnitID, int] | None = None,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[UnitID, OutOfActionResult]:
    """Test every destroyed unit in the record; failures stay pending."""

    results: dict[UnitID, OutOfActionResult] = {}
    for unit_ids in record.destroyed_units.values():
        for unit_id in unit_ids:
            unit = units.get(unit_id)
            if unit is None or unit_id in results:
                continue
            results[unit_id] = conduct_test(
                unit,
                seed=f"{seed_prefix}:out_of_action:{unit_id}",
                roll=(fixed_rolls or {}).get(unit_id),
                events=events,
                rules=rules,
            )
    return results


def status(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> OutOfActionStatus:
    return OutOfActionStatus(
        has_pending_choice=unit.pending_out_of_action_choice,
        can_choose_scar=can_choose_battle_scar(unit, rules=rules).success,
        current_scars=len(unit.battle_scars),
        max_scars=rules.progression.max_battle_scars,
        current_honours=len(unit.battle_honours),
        will_be_destroyed=not unit.battle_honours,
        state=unit.out_of_action_state,
    )
