"""Unit tests for the campaign dataclasses and their JSON schema."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from crusade.domain import models as dm
from crusade.domain.enums import RelicTier

HONOUR_ADAPTER: TypeAdapter[dm.BattleHonour] = TypeAdapter(dm.BattleHonour)
CAMPAIGN_ADAPTER: TypeAdapter[dm.Campaign] = TypeAdapter(dm.Campaign)


def test_empty_campaign_defaults():
    campaign = dm.Campaign()
    assert campaign.id == 1
    assert campaign.rules_edition == "10th"
    assert campaign.players == {}
    assert campaign.units == {}
    assert campaign.battles == []
    assert campaign.events == []


def test_new_player_starting_resources():
    player = dm.Player(id=dm.PlayerID("p1"), name="Alice")
    assert player.requisition_points == 5
    assert player.supply_limit == 1000
    assert player.order_of_battle == []


def test_battle_records_get_unique_ids():
    assert dm.BattleRecord().id != dm.BattleRecord().id


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"category": "battle_trait", "name": "Tank Hunter"}, dm.BattleTrait),
        (
            {
                "category": "weapon_modification",
                "name": "Bolter (Brutal, Heirloom)",
                "weapon_name": "Bolter",
                "modifications": ["Brutal", "Heirloom"],
            },
            dm.WeaponModificationHonour,
        ),
        (
            {"category": "crusade_relic", "name": "Aegis Eternal", "tier": "legendary", "cost": 3},
            dm.CrusadeRelicHonour,
        ),
    ],
)
def test_honour_discriminator(payload, expected):
    honour = HONOUR_ADAPTER.validate_python(payload)
    assert isinstance(honour, expected)


def test_relic_tier_is_parsed_as_enum():
    honour = HONOUR_ADAPTER.validate_python(
        {"category": "crusade_relic", "name": "Blade of Valor", "tier": "artificer", "cost": 1}
    )
    assert honour.tier is RelicTier.ARTIFICER


def test_unknown_honour_category_rejected():
    with pytest.raises(ValidationError):
        HONOUR_ADAPTER.validate_python({"category": "medal", "name": "Shiny"})


def test_unit_dump_tags_honours():
    unit = dm.Unit(
        id=dm.UnitID("u1"),
        owner_id=dm.PlayerID("p1"),
        name="Captain",
        battle_honours=[dm.BattleTrait(name="Inspiring Leader")],
    )
    data = TypeAdapter(dm.Unit).dump_python(unit, mode="json")
    assert data["battle_honours"][0]["category"] == "battle_trait"
    assert data["combat_tallies"] == {"battles_participated": 0, "units_destroyed": 0}


def test_campaign_json_round_trip_keeps_nested_records():
    campaign = dm.Campaign(name="Round Trip")
    player = dm.Player(id=dm.PlayerID("p1"), name="Alice", order_of_battle=[dm.UnitID("u1")])
    campaign.players[player.id] = player
    campaign.units[dm.UnitID("u1")] = dm.Unit(
        id=dm.UnitID("u1"),
        owner_id=player.id,
        name="Intercessors",
        battle_scars=[dm.BattleScar(name="Fatigued", effect="-1 OC")],
    )
    campaign.battles.append(
        dm.BattleRecord(
            participants=[dm.BattleParticipant(player.id, [dm.UnitID("u1")])],
            kills={dm.UnitID("u1"): 2},
            winner=player.id,
        )
    )

    restored = CAMPAIGN_ADAPTER.validate_json(CAMPAIGN_ADAPTER.dump_json(campaign))
    assert restored == campaign
    assert isinstance(restored.units[dm.UnitID("u1")].battle_scars[0], dm.BattleScar)


def test_outcome_truthiness():
    assert dm.ok("fine")
    assert not dm.declined("nope")
    assert dm.declined("nope").message == "nope"
