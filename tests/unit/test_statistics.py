"""Tests for campaign statistics and leaderboards."""

from __future__ import annotations

from datetime import timedelta

import pytest

from crusade.domain import battle, roster, statistics
from crusade.domain import models as dm
from crusade.domain.battle_traits import BattleTraitCatalog, TraitSelection
from crusade.domain.enums import PlayerMetric, UnitMetric


@pytest.fixture
def campaign() -> dm.Campaign:
    campaign = dm.Campaign(name="Statistics Crusade")
    alice = roster.create_player(campaign, "Alice", "Space Marines")
    bob = roster.create_player(campaign, "Bob", "Orks")
    roster.create_player(campaign, "Carol", "Necrons")
    roster.create_unit(campaign, alice.id, "Intercessors", points_cost=80)
    captain = roster.create_unit(
        campaign, alice.id, "Captain", points_cost=100, is_character=True
    )
    roster.create_unit(campaign, bob.id, "Boyz", points_cost=85)
    BattleTraitCatalog().apply(captain, TraitSelection("Inspiring Leader"))
    roster.add_territory(campaign, "Hive Primus")

    record = dm.BattleRecord(
        participants=[
            dm.BattleParticipant(alice.id, list(alice.order_of_battle)),
            dm.BattleParticipant(bob.id, list(bob.order_of_battle)),
        ],
        destroyed_units={bob.id: list(bob.order_of_battle)},
        kills={captain.id: 3},
        victory_points={alice.id: 80, bob.id: 45},
        winner=alice.id,
        hex_id=next(iter(campaign.territories)),
        battle_size="Incursion",
        mission="Supply Drop",
    )
    battle.process_post_battle(record, campaign, fixed_rolls={bob.order_of_battle[0]: 4})
    return campaign


def _player(campaign: dm.Campaign, name: str) -> dm.Player:
    return next(player for player in campaign.players.values() if player.name == name)


def test_overview(campaign):
    later = campaign.created_at + timedelta(days=3)
    overview = statistics.overview(campaign, now=later)
    assert overview.name == "Statistics Crusade"
    assert (overview.total_players, overview.total_units, overview.total_battles) == (3, 3, 1)
    assert overview.active_players == 2
    assert overview.total_supply_used == 80 + 100 + 85
    assert overview.duration == timedelta(days=3)
    assert overview.average_rp == pytest.approx(5.0)


def test_player_statistics(campaign):
    alice = _player(campaign, "Alice")
    stats = statistics.player_statistics(campaign, alice.id)
    assert stats.total_units == 2
    assert stats.supply_used == 180
    assert stats.supply_utilization == pytest.approx(18.0)
    assert (stats.battle_tally, stats.victories, stats.win_rate) == (1, 1, 100.0)
    assert stats.total_xp == 1 + 1 + 1
    assert stats.average_xp == pytest.approx(1.5)
    assert stats.total_crusade_points == 1
    assert stats.highest_ranked_unit == "Intercessors"
    assert stats.total_battle_honours == 1
    assert stats.territories_controlled == 1

    assert statistics.player_statistics(campaign, dm.PlayerID("ghost")) is None


def test_player_without_units_or_battles(campaign):
    stats = statistics.player_statistics(campaign, _player(campaign, "Carol").id)
    assert (stats.total_units, stats.average_xp, stats.win_rate) == (0, 0.0, 0.0)
    assert stats.highest_ranked_unit is None


def test_unit_statistics(campaign):
    captain = next(unit for unit in campaign.units.values() if unit.name == "Captain")
    stats = statistics.unit_statistics(captain)
    assert stats.battles_participated == 1
    assert stats.units_destroyed == 3
    assert stats.kills_per_battle == pytest.approx(3.0)
    assert stats.battle_honours == 1
    assert not stats.pending_out_of_action


def test_top_units(campaign):
    by_kills = statistics.top_units(campaign, UnitMetric.KILLS, limit=1)
    assert [stats.name for stats in by_kills] == ["Captain"]
    by_cp = statistics.top_units(campaign, UnitMetric.CRUSADE_POINTS)
    assert by_cp[0].name == "Captain"
    assert len(by_cp) == 3
    assert statistics.top_units(campaign, UnitMetric.BATTLES, limit=0) == []


def test_leaderboard(campaign):
    by_wins = statistics.leaderboard(campaign, PlayerMetric.VICTORIES)
    assert by_wins[0].name == "Alice"
    by_rate = statistics.leaderboard(campaign, PlayerMetric.WIN_RATE)
    assert [stats.name for stats in by_rate] == ["Alice", "Bob", "Carol"]
    by_territory = statistics.leaderboard(campaign, PlayerMetric.TERRITORY)
    assert by_territory[0].territories_controlled == 1


def test_battle_statistics(campaign):
    stats = statistics.battle_statistics(campaign)
    assert stats.total_battles == 1
    assert stats.battles_by_size == {"Incursion": 1}
    assert stats.average_units_per_battle == pytest.approx(3.0)
    assert stats.total_units_destroyed == 1
    assert stats.most_common_mission == "Supply Drop"
    alice, bob = _player(campaign, "Alice"), _player(campaign, "Bob")
    assert stats.victory_points == {alice.id: 80, bob.id: 45}


def test_empty_campaign():
    empty = dm.Campaign()
    assert statistics.battle_statistics(empty).most_common_mission is None
    assert statistics.leaderboard(empty) == []
    assert statistics.overview(empty).average_rp == 0.0
