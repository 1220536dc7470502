"""Post-battle sequence.

Applies a finished :class:`BattleRecord` to the campaign in a fixed order:

1. battle tallies for every deployed unit,
2. XP awards (Battle Experience, Every Third Kill, Marked for Greatness),
3. Out of Action tests for destroyed units,
4. player tallies, requisition points for the winner and territory capture,
5. the record is appended to the campaign history.

Partial records are accepted; unknown players and units are skipped, and only
units that were deployed take Out of Action tests.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from crusade.utils.rng import generate_seed

from . import agendas, experience, out_of_action, roster
from .enums import EventType
from .events import emit
from .models import BattleRecord, Campaign, PlayerID, Unit, UnitID
from .out_of_action import OutOfActionResult
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PostBattleSummary:
    """Everything the post-battle sequence changed."""

    battle_id: str
    xp: experience.XPSummary
    out_of_action: dict[UnitID, OutOfActionResult] = field(default_factory=dict)
    rp_awarded: dict[PlayerID, int] = field(default_factory=dict)
    territory_captured: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def pending_choices(self) -> list[UnitID]:
        return [unit_id for unit_id, result in self.out_of_action.items() if not result.passed]


def validate_battle_record(record: BattleRecord, campaign: Campaign) -> list[str]:
    """Return human-readable problems with ``record``; empty when consistent."""

    problems: list[str] = []
    fielded = record.fielded_units()

    for participant in record.participants:
        if participant.player_id not in campaign.players:
            problems.append(f"unknown player {participant.player_id}")
        for unit_id in participant.units_deployed:
            unit = campaign.units.get(unit_id)
            if unit is None:
                problems.append(f"unknown unit {unit_id}")
            elif unit.owner_id != participant.player_id:
                problems.append(f"unit {unit.name} deployed by a player who does not own it")

    if record.winner is not None and record.is_draw:
        problems.append("a drawn battle cannot have a winner")
    if record.winner is not None and record.winner not in fielded:
        problems.append(f"winner {record.winner} did not take part in the battle")
    if record.hex_id is not None and record.hex_id not in campaign.territories:
        problems.append(f"unknown territory {record.hex_id}")

    for player_id, unit_ids in record.destroyed_units.items():
        if player_id not in campaign.players:
            problems.append(f"unknown player {player_id} in destroyed units")
        for unit_id in unit_ids:
            if unit_id not in campaign.units:
                problems.append(f"unknown destroyed unit {unit_id}")
            elif unit_id not in fielded.get(player_id, ()):
                name = campaign.units[unit_id].name
                problems.append(f"destroyed unit {name} was not deployed by {player_id}")

    for unit_id, kills in record.kills.items():
        if kills < 0:
            problems.append(f"negative kill count for unit {unit_id}")

    for player_id, unit_id in record.marked_for_greatness.items():
        if player_id not in campaign.players:
            problems.append(f"unknown player {player_id} in Marked for Greatness")
        unit = campaign.units.get(unit_id)
        if unit is None:
            problems.append(f"unknown unit {unit_id} marked for greatness")
        elif unit.owner_id != player_id:
            problems.append(f"{unit.name} marked for greatness by a player who does not own it")
        elif unit_id not in fielded.get(player_id, ()):
            problems.append(f"{unit.name} marked for greatness but did not take part")
        elif not unit.can_gain_xp:
            problems.append(f"{unit.name} marked for greatness but cannot gain XP")

    for player_id, points in record.victory_points.items():
        if player_id not in fielded:
            problems.append(f"victory points for {player_id}, who did not take part")
        if points < 0:
            problems.append(f"negative victory points for {player_id}")

    for player_id, player_agendas in record.agendas.items():
        for agenda in player_agendas:
            verdict = agendas.validate_agenda(agenda, campaign.units)
            if not verdict:
                problems.append(f"agenda {agenda.name!r} for {player_id}: {verdict.message}")
    return problems


def _deployed_units(record: BattleRecord, units: Mapping[UnitID, Unit]) -> list[Unit]:
    seen: dict[UnitID, Unit] = {}
    for participant in record.participants:
        for unit_id in participant.units_deployed:
            if unit_id in units and unit_id not in seen:
                seen[unit_id] = units[unit_id]
    return list(seen.values())


def _award_requisition(
    campaign: Campaign, player_id: PlayerID, rules: RulesConfig
) -> int:
    player = campaign.players.get(player_id)
    if player is None:
        return 0
    cap = rules.requisitions.max_rp
    gained = max(0, min(rules.requisitions.rp_per_battle_win, cap - player.requisition_points))
    if gained:
        player.requisition_points += gained
        emit(
            campaign.events,
            EventType.RP_AWARDED,
            f"{player.name} earned {gained} RP for winning ({player.requisition_points}/{cap})",
            player_id=player.id,
            amount=gained,
        )
    return gained


def _capture_territory(campaign: Campaign, record: BattleRecord) -> bool:
    if record.hex_id is None or record.winner is None or record.is_draw:
        return False
    territory = campaign.territories.get(record.hex_id)
    if territory is None or territory.controlled_by == record.winner:
        return False
    previous = territory.controlled_by
    territory.controlled_by = record.winner
    winner = campaign.players.get(record.winner)
    emit(
        campaign.events,
        EventType.TERRITORY_CAPTURED,
        f"{winner.name if winner else record.winner} captured {territory.name}",
        player_id=record.winner,
        hex_id=territory.id,
        previous_owner=previous,
    )
    return True


def process_post_battle(
    record: BattleRecord,
    campaign: Campaign,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    seed: str | None = None,
    fixed_rolls: Mapping[UnitID, int] | None = None,
) -> PostBattleSummary:
    """Apply ``record`` to ``campaign`` and return what changed.

    ``seed`` prefixes every Out of Action roll; by default it is derived from
    the campaign id and the battle's position in the history, so replaying
    the same history reproduces the same rolls.
    """

    warnings = validate_battle_record(record, campaign)
    for warning in warnings:
        logger.warning("battle %s: %s", record.id, warning)

    events = campaign.events
    deployed = {unit.id: unit for unit in _deployed_units(record, campaign.units)}
    for unit in deployed.values():
        experience.increment_battles_participated(unit)

    xp_summary = experience.process_post_battle_xp(
        record, campaign.units, events=events, rules=rules
    )

    seed_prefix = seed or generate_seed(campaign.id, len(campaign.battles), f"battle:{record.id}")
    ooa_results = out_of_action.process_out_of_action_tests(
        record,
        deployed,
        seed_prefix=seed_prefix,
        fixed_rolls=fixed_rolls,
        events=events,
        rules=rules,
    )

    summary = PostBattleSummary(
        battle_id=record.id, xp=xp_summary, out_of_action=ooa_results, warnings=warnings
    )

    for participant in record.participants:
        player = campaign.players.get(participant.player_id)
        if player is not None:
            player.battle_tally += 1
    if record.winner is not None and not record.is_draw:
        winner = campaign.players.get(record.winner)
        if winner is not None:
            winner.victories += 1
        summary.rp_awarded[record.winner] = _award_requisition(campaign, record.winner, rules)
        summary.territory_captured = _capture_territory(campaign, record)

    campaign.battles.append(record)
    emit(
        events,
        EventType.BATTLE_RECORDED,
        battle_summary(record, campaign),
        battle_id=record.id,
        pending_choices=len(summary.pending_choices),
    )
    return summary


def battle_summary(record: BattleRecord, campaign: Campaign) -> str:
    """One-line description of a battle for the campaign log."""

    names = []
    for participant in record.participants:
        player = campaign.players.get(participant.player_id)
        names.append(player.name if player else participant.player_id)
    versus = " vs ".join(names) or "unknown forces"
    if record.is_draw:
        result = "draw"
    elif record.winner is not None:
        winner = campaign.players.get(record.winner)
        result = f"{winner.name if winner else record.winner} victorious"
    else:
        result = "no result"
    destroyed = sum(len(unit_ids) for unit_ids in record.destroyed_units.values())
    label = record.mission or "Battle"
    return f"{label}: {versus} ({result}, {destroyed} units destroyed)"


def purge_destroyed_units(campaign: Campaign) -> list[Unit]:
    """Remove units flagged by a Devastating Blow from the roster.

    Units still waiting on an Out of Action choice are kept.
    """

    doomed = [
        unit
        for unit in campaign.units.values()
        if unit.marked_for_deletion and not unit.pending_out_of_action_choice
    ]
    for unit in doomed:
        roster.remove_unit(campaign, unit.id)
        logger.warning("unit %s removed from the roster", unit.name)
    return doomed
