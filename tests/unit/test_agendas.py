"""Tests for per-battle agenda tracking."""

from __future__ import annotations

import pytest

from crusade.domain import agendas, roster
from crusade.domain import models as dm
from crusade.domain.enums import AgendaCategory


@pytest.fixture
def campaign() -> dm.Campaign:
    campaign = dm.Campaign()
    alice = roster.create_player(campaign, "Alice", "Space Marines")
    roster.create_unit(campaign, alice.id, "Intercessors")
    roster.create_unit(campaign, alice.id, "Captain", is_character=True)
    return campaign


def _setup(campaign: dm.Campaign) -> tuple[dm.BattleRecord, dm.PlayerID, list[dm.UnitID]]:
    (alice,) = campaign.players.values()
    return dm.BattleRecord(), alice.id, list(alice.order_of_battle)


def test_templates_by_category():
    combat = agendas.agendas_by_category(AgendaCategory.COMBAT)
    assert {template.name for template in combat} >= {"Reaper", "Assassinate", "Titan Slayer"}
    assert all(template.category == AgendaCategory.COMBAT for template in combat)
    assert agendas.find_template("Survivor").category == AgendaCategory.SURVIVAL
    assert agendas.find_template("Nonexistent") is None


def test_add_and_query(campaign):
    record, alice, (squad, captain) = _setup(campaign)
    reaper = agendas.from_template(squad, agendas.find_template("Reaper"))
    survivor = agendas.from_template(captain, agendas.find_template("Survivor"))

    assert agendas.add_agenda(record, alice, reaper, campaign.units).success
    assert agendas.add_agenda(record, alice, survivor, campaign.units).success

    assert agendas.player_agendas(record, alice) == [reaper, survivor]
    assert agendas.unit_agendas(record, alice, squad) == [reaper]
    assert agendas.player_agendas(record, dm.PlayerID("bob")) == []
    assert reaper.description == "Destroy 3+ enemy units with this unit"


@pytest.mark.parametrize(
    ("unit_id", "name", "message"),
    [("ghost", "Reaper", "Unit not found"), (None, "   ", "Agenda name cannot be empty")],
)
def test_invalid_agendas_are_declined(campaign, unit_id, name, message):
    record, alice, (squad, _) = _setup(campaign)
    agenda = dm.Agenda(unit_id=dm.UnitID(unit_id) if unit_id else squad, name=name)
    outcome = agendas.add_agenda(record, alice, agenda, campaign.units)
    assert not outcome.success
    assert outcome.message == message
    assert record.agendas == {}


def test_completion_and_notes(campaign):
    record, alice, (squad, captain) = _setup(campaign)
    first = dm.Agenda(unit_id=squad, name="Reaper")
    second = dm.Agenda(unit_id=captain, name="Assassinate")
    third = dm.Agenda(unit_id=captain, name="Hold the Line")
    for agenda in (first, second, third):
        agendas.add_agenda(record, alice, agenda, campaign.units)

    assert agendas.set_completed(record, alice, first.id, notes="Three squads down").success
    assert first.completed
    assert first.notes == "Three squads down"
    assert agendas.set_completed(record, alice, second.id).success
    assert agendas.set_completed(record, alice, second.id, False).success
    assert not second.completed
    assert agendas.update_notes(record, alice, third.id, "Held for two turns").success

    summary = agendas.summary(record, alice)
    assert (summary.total, summary.completed, summary.completion_rate) == (3, 1, 33)

    missing = dm.AgendaID("missing")
    assert not agendas.set_completed(record, alice, missing).success
    assert not agendas.update_notes(record, alice, missing, "x").success
    assert not agendas.remove_agenda(record, alice, missing).success

    assert agendas.remove_agenda(record, alice, second.id).success
    assert agendas.player_agendas(record, alice) == [first, third]


def test_empty_summary_has_zero_rate():
    summary = agendas.summary(dm.BattleRecord(), dm.PlayerID("p1"))
    assert (summary.total, summary.completed, summary.completion_rate) == (0, 0, 0)
