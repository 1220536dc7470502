"""Read-only campaign statistics: overview, per-player and per-unit figures.

Nothing here mutates the campaign.  Percentages are floats in ``0..100``;
averages over an empty collection are ``0.0``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from . import crusade_points
from .enums import PlayerMetric, UnitMetric
from .models import Campaign, PlayerID, Unit, UnitID, utcnow


@dataclass(slots=True)
class CampaignOverview:
    name: str
    total_players: int
    total_units: int
    total_battles: int
    active_players: int
    total_supply_used: int
    average_rp: float
    duration: timedelta


@dataclass(slots=True)
class PlayerStatistics:
    """Force composition, campaign progress and roster totals for one player."""

    player_id: PlayerID
    name: str
    faction: str
    total_units: int
    supply_used: int
    supply_limit: int
    supply_utilization: float
    requisition_points: int
    battle_tally: int
    victories: int
    win_rate: float
    total_xp: int
    average_xp: float
    total_crusade_points: int
    average_crusade_points: float
    highest_ranked_unit: str | None
    total_battle_honours: int
    total_battle_scars: int
    total_crusade_relics: int
    territories_controlled: int


@dataclass(slots=True)
class UnitStatistics:
    unit_id: UnitID
    name: str
    experience_points: int
    rank: int
    can_gain_xp: bool
    has_legendary_veterans: bool
    crusade_points: int
    battles_participated: int
    units_destroyed: int
    kills_per_battle: float
    battle_honours: int
    battle_scars: int
    crusade_relics: int
    weapon_modifications: int
    pending_honour_selection: bool
    pending_out_of_action: bool


@dataclass(slots=True)
class BattleStatistics:
    """Aggregates over the campaign's battle history."""

    total_battles: int
    battles_by_size: dict[str, int] = field(default_factory=dict)
    average_units_per_battle: float = 0.0
    total_units_destroyed: int = 0
    average_units_destroyed: float = 0.0
    most_common_mission: str | None = None
    victory_points: dict[PlayerID, int] = field(default_factory=dict)


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _average(total: int, count: int) -> float:
    return total / count if count > 0 else 0.0


def overview(campaign: Campaign, *, now: datetime | None = None) -> CampaignOverview:
    players = list(campaign.players.values())
    total_rp = sum(player.requisition_points for player in players)
    return CampaignOverview(
        name=campaign.name,
        total_players=len(players),
        total_units=len(campaign.units),
        total_battles=len(campaign.battles),
        active_players=sum(1 for player in players if player.order_of_battle),
        total_supply_used=sum(
            crusade_points.supply_used(player, campaign.units) for player in players
        ),
        average_rp=_average(total_rp, len(players)),
        duration=(now or utcnow()) - campaign.created_at,
    )


def player_statistics(campaign: Campaign, player_id: PlayerID) -> PlayerStatistics | None:
    """Figures for one player, or ``None`` when the player is unknown."""

    player = campaign.players.get(player_id)
    if player is None:
        return None
    roster = [campaign.units[uid] for uid in player.order_of_battle if uid in campaign.units]
    supply_used = crusade_points.supply_used(player, campaign.units)
    total_xp = sum(unit.experience_points for unit in roster)
    total_cp = sum(unit.crusade_points for unit in roster)

    highest: Unit | None = None
    for unit in roster:
        if highest is None or unit.rank > highest.rank:
            highest = unit

    return PlayerStatistics(
        player_id=player.id,
        name=player.name,
        faction=player.faction,
        total_units=len(player.order_of_battle),
        supply_used=supply_used,
        supply_limit=player.supply_limit,
        supply_utilization=_percent(supply_used, player.supply_limit),
        requisition_points=player.requisition_points,
        battle_tally=player.battle_tally,
        victories=player.victories,
        win_rate=_percent(player.victories, player.battle_tally),
        total_xp=total_xp,
        average_xp=_average(total_xp, len(player.order_of_battle)),
        total_crusade_points=total_cp,
        average_crusade_points=_average(total_cp, len(player.order_of_battle)),
        highest_ranked_unit=highest.name if highest is not None else None,
        total_battle_honours=sum(len(unit.battle_honours) for unit in roster),
        total_battle_scars=sum(len(unit.battle_scars) for unit in roster),
        total_crusade_relics=sum(len(unit.crusade_relics) for unit in roster),
        territories_controlled=sum(
            1 for territory in campaign.territories.values() if territory.controlled_by == player.id
        ),
    )


def all_player_statistics(campaign: Campaign) -> list[PlayerStatistics]:
    return [
        stats
        for player_id in campaign.players
        if (stats := player_statistics(campaign, player_id)) is not None
    ]


def unit_statistics(unit: Unit) -> UnitStatistics:
    tallies = unit.combat_tallies
    return UnitStatistics(
        unit_id=unit.id,
        name=unit.name,
        experience_points=unit.experience_points,
        rank=unit.rank,
        can_gain_xp=unit.can_gain_xp,
        has_legendary_veterans=unit.has_legendary_veterans,
        crusade_points=unit.crusade_points,
        battles_participated=tallies.battles_participated,
        units_destroyed=tallies.units_destroyed,
        kills_per_battle=_average(tallies.units_destroyed, tallies.battles_participated),
        battle_honours=len(unit.battle_honours),
        battle_scars=len(unit.battle_scars),
        crusade_relics=len(unit.crusade_relics),
        weapon_modifications=len(unit.weapon_modifications),
        pending_honour_selection=unit.pending_honour_selection,
        pending_out_of_action=unit.pending_out_of_action_choice,
    )


_UNIT_KEYS: dict[UnitMetric, Callable[[UnitStatistics], int]] = {
    UnitMetric.XP: lambda stats: stats.experience_points,
    UnitMetric.KILLS: lambda stats: stats.units_destroyed,
    UnitMetric.CRUSADE_POINTS: lambda stats: stats.crusade_points,
    UnitMetric.BATTLES: lambda stats: stats.battles_participated,
}


def top_units(
    campaign: Campaign, metric: UnitMetric = UnitMetric.XP, limit: int = 10
) -> list[UnitStatistics]:
    """Best ``limit`` units by ``metric``; ties keep roster order."""

    stats = [unit_statistics(unit) for unit in campaign.units.values()]
    stats.sort(key=_UNIT_KEYS[metric], reverse=True)
    return stats[: max(limit, 0)]


def _player_key(metric: PlayerMetric) -> Callable[[PlayerStatistics], tuple[int, float]]:
    if metric == PlayerMetric.VICTORIES:
        return lambda stats: (1, stats.victories)
    if metric == PlayerMetric.TOTAL_XP:
        return lambda stats: (1, stats.total_xp)
    if metric == PlayerMetric.TERRITORY:
        return lambda stats: (1, stats.territories_controlled)
    # players without a battle rank below everyone who has played
    return lambda stats: (1 if stats.battle_tally else 0, stats.win_rate)


def leaderboard(
    campaign: Campaign, metric: PlayerMetric = PlayerMetric.VICTORIES
) -> list[PlayerStatistics]:
    players = all_player_statistics(campaign)
    players.sort(key=_player_key(metric), reverse=True)
    return players


def battle_statistics(campaign: Campaign) -> BattleStatistics:
    battles = campaign.battles
    stats = BattleStatistics(total_battles=len(battles))
    sizes: Counter[str] = Counter()
    missions: Counter[str] = Counter()
    deployed = 0
    victory_points: Counter[PlayerID] = Counter()

    for record in battles:
        if record.battle_size:
            sizes[record.battle_size] += 1
        if record.mission:
            missions[record.mission] += 1
        deployed += sum(len(p.units_deployed) for p in record.participants)
        stats.total_units_destroyed += sum(len(ids) for ids in record.destroyed_units.values())
        victory_points.update(record.victory_points)

    stats.battles_by_size = dict(sizes)
    stats.average_units_per_battle = _average(deployed, len(battles))
    stats.average_units_destroyed = _average(stats.total_units_destroyed, len(battles))
    if missions:
        stats.most_common_mission = missions.most_common(1)[0][0]
    stats.victory_points = dict(victory_points)
    return stats
