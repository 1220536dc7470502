"""Experience awards, rank progression, and the non-CHARACTER XP cap."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from . import crusade_points
from .enums import EventType
from .events import emit
from .models import BattleRecord, Event, Outcome, Unit, UnitID, declined, ok, utcnow
from .rules_config import DEFAULT_RULES, RankThreshold, RulesConfig

logger = logging.getLogger(__name__)

FALLBACK_RANK = (1, "Battle-Ready")


@dataclass(slots=True)
class XPAward:
    """Result of a single XP award."""

    accepted: bool
    amount: int
    message: str
    ranked_up: bool = False


@dataclass(slots=True)
class XPSummary:
    """All XP handed out for one battle, keyed by unit."""

    battle_experience: dict[UnitID, XPAward] = field(default_factory=dict)
    every_third_kill: dict[UnitID, int] = field(default_factory=dict)
    marked_for_greatness: dict[UnitID, XPAward] = field(default_factory=dict)

    def total_for(self, unit_id: UnitID) -> int:
        total = 0
        if unit_id in self.battle_experience:
            total += self.battle_experience[unit_id].amount
        total += self.every_third_kill.get(unit_id, 0)
        if unit_id in self.marked_for_greatness:
            total += self.marked_for_greatness[unit_id].amount
        return total


# --- Ranks ----------------------------------------------------------------------


def _rank_reachable(threshold: RankThreshold, is_character: bool, legendary: bool) -> bool:
    return not threshold.character_only or is_character or legendary


def calculate_rank(
    xp: int,
    is_character: bool,
    has_legendary_veterans: bool,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[int, str]:
    """Return ``(rank, name)`` for the given XP total.

    Thresholds are walked in ascending order.  The walk stops at the first
    CHARACTER-only threshold when the unit is neither a CHARACTER nor a
    Legendary Veteran, so such units cap at the last reachable rank.
    """

    if not rules.ranks:
        logger.error("rank table is empty; defaulting to rank 1")
        return FALLBACK_RANK

    rank, name = rules.ranks[0].rank, rules.ranks[0].name
    for threshold in rules.ranks:
        if xp < threshold.min_xp:
            break
        if not _rank_reachable(threshold, is_character, has_legendary_veterans):
            break
        rank, name = threshold.rank, threshold.name
    return rank, name


def get_rank_details(rank: int, *, rules: RulesConfig = DEFAULT_RULES) -> RankThreshold | None:
    return next((threshold for threshold in rules.ranks if threshold.rank == rank), None)


def rank_name(rank: int, *, rules: RulesConfig = DEFAULT_RULES) -> str:
    details = get_rank_details(rank, rules=rules)
    return details.name if details is not None else FALLBACK_RANK[1]


def next_rank_requirements(
    unit: Unit, *, rules: RulesConfig = DEFAULT_RULES
) -> RankThreshold | None:
    """Threshold for the unit's next rank, or ``None`` if it cannot advance."""

    upcoming = get_rank_details(unit.rank + 1, rules=rules)
    if upcoming is None:
        return None
    if not _rank_reachable(upcoming, unit.is_character, unit.has_legendary_veterans):
        return None
    return upcoming


def xp_for_next_rank(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> int | None:
    upcoming = next_rank_requirements(unit, rules=rules)
    if upcoming is None:
        return None
    return max(0, upcoming.min_xp - unit.experience_points)


def is_xp_capped(unit: Unit) -> bool:
    """Whether the unit is subject to the non-CHARACTER XP cap."""

    return not unit.is_character and not unit.has_legendary_veterans


# --- XP awards ------------------------------------------------------------------


def add_xp(
    unit: Unit | None,
    amount: int,
    reason: str,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> XPAward:
    """Award XP, enforcing the cap, detecting rank-ups and refreshing CP."""

    if unit is None:
        return XPAward(False, 0, "Unit not found")
    if not unit.can_gain_xp:
        return XPAward(False, 0, f"{unit.name} cannot gain XP")
    if amount <= 0:
        return XPAward(False, 0, f"XP award must be positive, got {amount}")

    old_xp = unit.experience_points
    old_rank = unit.rank

    if is_xp_capped(unit):
        cap = rules.progression.non_character_xp_cap
        if old_xp >= cap:
            message = (
                f"{unit.name} is at max XP ({cap}). "
                "Purchase Legendary Veterans to continue gaining XP."
            )
            emit(events, EventType.XP_CAP_REACHED, message, unit=unit, xp=old_xp)
            return XPAward(False, 0, message)
        if old_xp + amount > cap:
            requested = amount
            amount = cap - old_xp
            emit(
                events,
                EventType.XP_CAPPED,
                f"{unit.name}: XP capped at {cap} for non-CHARACTER ({requested} -> {amount})",
                unit=unit,
                requested=requested,
                awarded=amount,
            )

    unit.experience_points = old_xp + amount
    unit.last_modified = utcnow()

    new_rank, new_name = calculate_rank(
        unit.experience_points, unit.is_character, unit.has_legendary_veterans, rules=rules
    )
    ranked_up = new_rank > old_rank
    if ranked_up:
        unit.rank = new_rank
        unit.pending_honour_selection = True
        emit(
            events,
            EventType.RANK_UP,
            f"{unit.name} ranked up: {rank_name(old_rank, rules=rules)} -> {new_name}",
            unit=unit,
            old_rank=old_rank,
            new_rank=new_rank,
            xp=unit.experience_points,
        )

    crusade_points.update_unit_crusade_points(unit, "xp_gain", rules=rules)

    message = f"{unit.name} gained {amount} XP ({reason}): {old_xp} -> {unit.experience_points}"
    if ranked_up:
        message += f" | RANK UP: {new_name}!"
    emit(
        events,
        EventType.XP_GAINED,
        message,
        unit=unit,
        amount=amount,
        reason=reason,
        old_xp=old_xp,
        new_xp=unit.experience_points,
    )
    return XPAward(True, amount, message, ranked_up=ranked_up)


def award_battle_experience(
    unit: Unit, *, events: list[Event] | None = None, rules: RulesConfig = DEFAULT_RULES
) -> XPAward:
    amount = rules.progression.battle_experience_xp
    return add_xp(unit, amount, "Battle Experience", events=events, rules=rules)


def award_every_third_kill(
    unit: Unit,
    kills: int,
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> int:
    """Add this battle's kills to the lifetime tally and award threshold XP.

    One XP per complete block of kills crossed, not per kill.  The tally is
    updated even when no XP results.
    """

    per_xp = rules.progression.kills_per_xp
    old_total = unit.combat_tallies.units_destroyed
    new_total = old_total + max(0, kills)
    unit.combat_tallies.units_destroyed = new_total

    crossed = new_total // per_xp - old_total // per_xp
    if crossed <= 0:
        return 0
    award = add_xp(unit, crossed, f"Every Third Kill (x{crossed})", events=events, rules=rules)
    return award.amount


def next_third_kill_threshold(current_kills: int, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    per_xp = rules.progression.kills_per_xp
    return (current_kills // per_xp + 1) * per_xp


def blocking_scar(unit: Unit, *, rules: RulesConfig = DEFAULT_RULES) -> str | None:
    """Name of a scar that rules the unit out of Marked for Greatness."""

    for scar in unit.battle_scars:
        definition = rules.scar(scar.name)
        if definition is not None and definition.blocks_marked_for_greatness:
            return scar.name
    return None


def award_marked_for_greatness(
    unit: Unit, *, events: list[Event] | None = None, rules: RulesConfig = DEFAULT_RULES
) -> XPAward:
    scar = blocking_scar(unit, rules=rules)
    if scar is not None:
        message = f"{unit.name} cannot be Marked for Greatness due to Battle Scar: {scar}"
        emit(events, EventType.MARKED_FOR_GREATNESS_DECLINED, message, unit=unit, scar=scar)
        return XPAward(False, 0, message)
    return add_xp(
        unit,
        rules.progression.marked_for_greatness_xp,
        "Marked for Greatness",
        events=events,
        rules=rules,
    )


def increment_battles_participated(unit: Unit) -> None:
    unit.combat_tallies.battles_participated += 1


def process_post_battle_xp(
    record: BattleRecord,
    units: Mapping[UnitID, Unit],
    *,
    events: list[Event] | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> XPSummary:
    """Run the three XP awards for a battle in order.

    Unknown unit ids are skipped; an empty record yields an empty summary.
    A Marked for Greatness nominee must belong to, and have been deployed by,
    the nominating player.
    """

    summary = XPSummary()
    fielded = record.fielded_units()

    for participant in record.participants:
        for unit_id in participant.units_deployed:
            unit = units.get(unit_id)
            if unit is not None and unit_id not in summary.battle_experience:
                summary.battle_experience[unit_id] = award_battle_experience(
                    unit, events=events, rules=rules
                )

    for unit_id, kills in record.kills.items():
        unit = units.get(unit_id)
        if unit is None:
            continue
        gained = award_every_third_kill(unit, kills, events=events, rules=rules)
        if gained > 0:
            summary.every_third_kill[unit_id] = gained

    for player_id, unit_id in record.marked_for_greatness.items():
        unit = units.get(unit_id) if unit_id else None
        if unit is None:
            continue
        if unit.owner_id != player_id:
            summary.marked_for_greatness[unit_id] = XPAward(
                False, 0, f"{unit.name} does not belong to the nominating player"
            )
            continue
        if unit_id not in fielded.get(player_id, ()):
            summary.marked_for_greatness[unit_id] = XPAward(
                False, 0, f"{unit.name} did not take part in the battle"
            )
            continue
        summary.marked_for_greatness[unit_id] = award_marked_for_greatness(
            unit, events=events, rules=rules
        )

    return summary


def apply_legendary_veterans(
    unit: Unit, *, events: list[Event] | None = None, rules: RulesConfig = DEFAULT_RULES
) -> Outcome:
    """One-way unlock lifting the XP cap, rank cap and honour cap."""

    required = rules.progression.legendary_veterans_min_xp
    if unit.is_character:
        return declined("CHARACTER units don't need Legendary Veterans")
    if unit.experience_points < required:
        return declined(f"Unit must be at {required} XP to purchase Legendary Veterans")
    if unit.has_legendary_veterans:
        return declined("Unit already has Legendary Veterans")

    unit.has_legendary_veterans = True
    unit.rank, new_name = calculate_rank(
        unit.experience_points, unit.is_character, True, rules=rules
    )
    unit.last_modified = utcnow()
    emit(
        events,
        EventType.LEGENDARY_VETERANS,
        f"{unit.name} became Legendary Veterans (rank {new_name})",
        unit=unit,
        xp=unit.experience_points,
        rank=unit.rank,
    )
    return ok("Legendary Veterans applied successfully")
