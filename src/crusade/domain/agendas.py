"""Per-battle agendas: objectives a player assigns to individual units.

Agendas live on the :class:`BattleRecord` keyed by player and are tracked for
narrative purposes only; completing one grants nothing by itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .enums import AgendaCategory
from .models import Agenda, AgendaID, BattleRecord, Outcome, PlayerID, Unit, UnitID, declined, ok


@dataclass(frozen=True, slots=True)
class AgendaTemplate:
    name: str
    description: str
    category: AgendaCategory


@dataclass(slots=True)
class AgendaSummary:
    """Completion figures for one player's agendas in a battle."""

    total: int
    completed: int
    agendas: list[Agenda]

    @property
    def completion_rate(self) -> int:
        """Whole-number percentage of completed agendas; 0 when none were set."""

        if self.total == 0:
            return 0
        return self.completed * 100 // self.total


COMMON_AGENDAS: tuple[AgendaTemplate, ...] = (
    AgendaTemplate(
        "Domination",
        "Control objective marker in enemy deployment zone at end of battle",
        AgendaCategory.TERRITORIAL,
    ),
    AgendaTemplate("Reaper", "Destroy 3+ enemy units with this unit", AgendaCategory.COMBAT),
    AgendaTemplate(
        "Survivor",
        "Unit survives entire battle without being destroyed",
        AgendaCategory.SURVIVAL,
    ),
    AgendaTemplate(
        "Assassinate", "Destroy enemy CHARACTER unit with this unit", AgendaCategory.COMBAT
    ),
    AgendaTemplate(
        "No Mercy", "Destroy enemy BATTLELINE unit with this unit", AgendaCategory.COMBAT
    ),
    AgendaTemplate(
        "First Strike", "Destroy enemy unit in first battle round", AgendaCategory.COMBAT
    ),
    AgendaTemplate(
        "Big Game Hunter",
        "Destroy enemy MONSTER or VEHICLE unit with this unit",
        AgendaCategory.COMBAT,
    ),
    AgendaTemplate(
        "Defiant to the Last",
        "Unit makes an attack while at or below half strength",
        AgendaCategory.SURVIVAL,
    ),
    AgendaTemplate(
        "Titan Slayer", "Destroy enemy TITANIC unit with this unit", AgendaCategory.COMBAT
    ),
    AgendaTemplate(
        "Hold the Line",
        "Control same objective marker for 2+ consecutive turns",
        AgendaCategory.TERRITORIAL,
    ),
    AgendaTemplate(
        "Seize Ground",
        "Control objective marker in No Man's Land at end of battle",
        AgendaCategory.TERRITORIAL,
    ),
    AgendaTemplate(
        "Marked for Death",
        "Destroy specific enemy unit (nominated before battle)",
        AgendaCategory.COMBAT,
    ),
)


def agendas_by_category(category: AgendaCategory) -> list[AgendaTemplate]:
    return [template for template in COMMON_AGENDAS if template.category == category]


def find_template(name: str) -> AgendaTemplate | None:
    return next((template for template in COMMON_AGENDAS if template.name == name), None)


def from_template(unit_id: UnitID, template: AgendaTemplate) -> Agenda:
    return Agenda(unit_id=unit_id, name=template.name, description=template.description)


def validate_agenda(agenda: Agenda, units: Mapping[UnitID, Unit]) -> Outcome:
    if agenda.unit_id not in units:
        return declined("Unit not found")
    if not agenda.name.strip():
        return declined("Agenda name cannot be empty")
    return ok(f"{agenda.name} is a valid agenda")


def add_agenda(
    record: BattleRecord, player_id: PlayerID, agenda: Agenda, units: Mapping[UnitID, Unit]
) -> Outcome:
    """Attach ``agenda`` to the player's list after checking unit and name."""

    verdict = validate_agenda(agenda, units)
    if not verdict:
        return verdict
    record.agendas.setdefault(player_id, []).append(agenda)
    return ok(f"Agenda {agenda.name} added for {units[agenda.unit_id].name}")


def player_agendas(record: BattleRecord, player_id: PlayerID) -> list[Agenda]:
    return record.agendas.get(player_id, [])


def unit_agendas(record: BattleRecord, player_id: PlayerID, unit_id: UnitID) -> list[Agenda]:
    return [agenda for agenda in player_agendas(record, player_id) if agenda.unit_id == unit_id]


def _find(record: BattleRecord, player_id: PlayerID, agenda_id: AgendaID) -> Agenda | None:
    return next(
        (agenda for agenda in player_agendas(record, player_id) if agenda.id == agenda_id), None
    )


def remove_agenda(record: BattleRecord, player_id: PlayerID, agenda_id: AgendaID) -> Outcome:
    agenda = _find(record, player_id, agenda_id)
    if agenda is None:
        return declined(f"Agenda not found: {agenda_id}")
    record.agendas[player_id].remove(agenda)
    return ok(f"Agenda {agenda.name} removed")


def set_completed(
    record: BattleRecord,
    player_id: PlayerID,
    agenda_id: AgendaID,
    completed: bool = True,
    *,
    notes: str | None = None,
) -> Outcome:
    """Mark an agenda complete (or incomplete again), optionally replacing its notes."""

    agenda = _find(record, player_id, agenda_id)
    if agenda is None:
        return declined(f"Agenda not found: {agenda_id}")
    agenda.completed = completed
    if notes is not None:
        agenda.notes = notes
    state = "completed" if completed else "not completed"
    return ok(f"Agenda {agenda.name} marked {state}")


def update_notes(
    record: BattleRecord, player_id: PlayerID, agenda_id: AgendaID, notes: str
) -> Outcome:
    agenda = _find(record, player_id, agenda_id)
    if agenda is None:
        return declined(f"Agenda not found: {agenda_id}")
    agenda.notes = notes
    return ok(f"Notes updated for {agenda.name}")


def summary(record: BattleRecord, player_id: PlayerID) -> AgendaSummary:
    agendas = player_agendas(record, player_id)
    return AgendaSummary(
        total=len(agendas),
        completed=sum(1 for agenda in agendas if agenda.completed),
        agendas=list(agendas),
    )
