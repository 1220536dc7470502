"""Tests for the JSON campaign repository."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from crusade.domain import models as dm
from crusade.domain import roster
from crusade.domain.battle_traits import BattleTraitCatalog, TraitSelection
from crusade.domain.crusade_relics import CrusadeRelicCatalog, RelicSelection
from crusade.domain.enums import EventType, OutOfActionState
from crusade.domain.out_of_action import apply_battle_scar
from crusade.domain.weapon_mods import WeaponModCatalog, WeaponModSelection


def _campaign() -> dm.Campaign:
    campaign = dm.Campaign(id=dm.CampaignID(1), name="Test")
    player = roster.create_player(campaign, "Alice", "Space Marines")
    captain = roster.create_unit(
        campaign, player.id, "Captain", is_character=True, equipment=["Bolt rifle"]
    )
    BattleTraitCatalog().apply(captain, TraitSelection("Inspiring Leader"), events=campaign.events)
    WeaponModCatalog().apply(captain, WeaponModSelection("Bolt rifle", mod_ids=(1, 3)))
    CrusadeRelicCatalog().apply(captain, RelicSelection("Blade of Valor"))
    apply_battle_scar(captain, "Fatigued")
    roster.add_territory(campaign, "Hive Primus")
    return campaign


def test_save_and_load_campaign(repo):
    campaign = _campaign()

    path = repo.save(campaign)
    assert path.exists()

    loaded = repo.load(dm.CampaignID(1))
    assert loaded == campaign


def test_honour_variants_survive_round_trip(repo):
    repo.save(_campaign())

    loaded = repo.load(dm.CampaignID(1))
    (captain,) = loaded.units.values()
    assert [type(honour) for honour in captain.battle_honours] == [
        dm.BattleTrait,
        dm.WeaponModificationHonour,
        dm.CrusadeRelicHonour,
    ]
    assert captain.crusade_points == 3 - 1
    assert loaded.events[0].event_type == EventType.HONOUR_GAINED


def test_battle_extras_survive_round_trip(repo):
    campaign = _campaign()
    (player,) = campaign.players.values()
    (captain,) = campaign.units.values()
    captain.out_of_action_state = OutOfActionState.RESOLVED
    campaign.battles.append(
        dm.BattleRecord(
            participants=[dm.BattleParticipant(player.id, [captain.id])],
            victory_points={player.id: 90},
            agendas={player.id: [dm.Agenda(unit_id=captain.id, name="Survivor", completed=True)]},
        )
    )
    repo.save(campaign)

    loaded = repo.load(dm.CampaignID(1))
    assert loaded == campaign
    assert loaded.battles[0].agendas[player.id][0].completed
    assert loaded.units[captain.id].out_of_action_state == OutOfActionState.RESOLVED


def test_empty_campaign_round_trip(repo):
    empty = dm.Campaign()
    repo.save(empty)
    assert repo.load(dm.CampaignID(1)) == empty


def test_list_and_delete(repo):
    first = _campaign()
    second = _campaign()
    second.id = dm.CampaignID(2)

    repo.save(first)
    repo.save(second)

    ids = repo.list_campaigns()
    assert ids == [dm.CampaignID(1), dm.CampaignID(2)]

    assert repo.delete(dm.CampaignID(1))
    assert not repo.delete(dm.CampaignID(1))
    assert repo.list_campaigns() == [dm.CampaignID(2)]
    assert not repo.exists(dm.CampaignID(1))


def test_missing_campaign(repo):
    with pytest.raises(FileNotFoundError):
        repo.load(dm.CampaignID(9))


def test_load_or_create(repo):
    fresh = repo.load_or_create(dm.CampaignID(3), name="Fresh")
    assert fresh.id == 3
    assert fresh.name == "Fresh"
    assert fresh.units == {}

    repo.save(_campaign())
    assert repo.load_or_create(dm.CampaignID(1)).name == "Test"


def test_corrupt_snapshot(repo):
    (repo.base_path / "campaign_4.json").write_text('{"id": "not a number"}')
    with pytest.raises(ValidationError):
        repo.load(dm.CampaignID(4))


def test_stray_files_are_not_listed(repo):
    repo.save(_campaign())
    (repo.base_path / "notes.txt").write_text("hello")
    (repo.base_path / "campaign_x.json").write_text("{}")
    assert repo.list_campaigns() == [dm.CampaignID(1)]
    assert not list(repo.base_path.glob("*.tmp"))
