"""Dataclasses describing every Crusade campaign entity.

The rules layer operates on these plain records only.  The campaign aggregate
is passed explicitly to every operation and owns exactly one :class:`Unit`
per identifier, so callers always mutate the authoritative record.

Battle honours form a closed tagged variant: each honour class carries a
``category`` literal which pydantic uses as the discriminator when a
campaign snapshot is read back from JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Annotated, Literal, NewType
from uuid import uuid4

from pydantic import Field

from .enums import EventType, OutOfActionState, RelicTier

# --- Strongly typed identifiers -------------------------------------------------

CampaignID = NewType("CampaignID", int)
PlayerID = NewType("PlayerID", str)
UnitID = NewType("UnitID", str)
BattleID = NewType("BattleID", str)
HexID = NewType("HexID", str)
AgendaID = NewType("AgendaID", str)


def new_id() -> str:
    """Return a fresh opaque identifier."""

    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Battle honours -------------------------------------------------------------


@dataclass(slots=True)
class BattleTrait:
    """Battle Trait honour."""

    name: str
    description: str = ""
    trait_category: str = ""
    acquired_by: str = "choice"
    acquired_at: datetime = field(default_factory=utcnow)
    category: Literal["battle_trait"] = "battle_trait"


@dataclass(slots=True)
class WeaponModificationHonour:
    """Weapon Modification honour: two modifications on one weapon."""

    name: str
    weapon_name: str
    modifications: list[str]
    model_index: int = 1
    description: str = ""
    acquired_by: str = "choice"
    acquired_at: datetime = field(default_factory=utcnow)
    category: Literal["weapon_modification"] = "weapon_modification"


@dataclass(slots=True)
class CrusadeRelicHonour:
    """Crusade Relic honour with its tier-specific Crusade Point cost."""

    name: str
    tier: RelicTier
    cost: int
    rank_required: int = 1
    description: str = ""
    acquired_by: str = "choice"
    acquired_at: datetime = field(default_factory=utcnow)
    category: Literal["crusade_relic"] = "crusade_relic"


BattleHonour = Annotated[
    BattleTrait | WeaponModificationHonour | CrusadeRelicHonour,
    Field(discriminator="category"),
]


# --- Unit equipment records -----------------------------------------------------


@dataclass(slots=True)
class BattleScar:
    """Battle scar carried by a unit."""

    name: str
    effect: str
    acquired_by: str = "out_of_action"
    acquired_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Enhancement:
    """Detachment enhancement (CHARACTER only, at most one)."""

    name: str
    description: str = ""
    points_cost: int = 0
    replaced_weapon: str | None = None


@dataclass(slots=True)
class WeaponModification:
    """Modifications applied to a single named weapon."""

    weapon_name: str
    modifications: list[str]
    model_index: int = 1
    acquired_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class CrusadeRelic:
    """Relic wargear carried by a CHARACTER."""

    name: str
    tier: RelicTier
    cost: int
    rank_required: int = 1
    description: str = ""
    acquired_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class CombatTallies:
    """Lifetime statistics for a unit."""

    battles_participated: int = 0
    units_destroyed: int = 0


# --- Core aggregates ------------------------------------------------------------


@dataclass(slots=True)
class Unit:
    """One Crusade card."""

    id: UnitID
    owner_id: PlayerID
    name: str
    unit_type: str = ""
    points_cost: int = 0
    is_character: bool = False
    is_titanic: bool = False
    is_epic_hero: bool = False
    can_gain_xp: bool = True
    experience_points: int = 0
    rank: int = 1
    crusade_points: int = 0
    has_legendary_veterans: bool = False
    battle_honours: list[BattleHonour] = field(default_factory=list)
    battle_scars: list[BattleScar] = field(default_factory=list)
    enhancement: Enhancement | None = None
    crusade_relics: list[CrusadeRelic] = field(default_factory=list)
    weapon_modifications: list[WeaponModification] = field(default_factory=list)
    equipment: list[str] = field(default_factory=list)
    combat_tallies: CombatTallies = field(default_factory=CombatTallies)
    pending_honour_selection: bool = False
    pending_out_of_action_choice: bool = False
    out_of_action_state: OutOfActionState | None = None
    marked_for_deletion: bool = False
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)
    last_modified: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Player:
    """Player commanding a Crusade force."""

    id: PlayerID
    name: str
    faction: str = ""
    requisition_points: int = 5
    supply_limit: int = 1000
    battle_tally: int = 0
    victories: int = 0
    order_of_battle: list[UnitID] = field(default_factory=list)


@dataclass(slots=True)
class BattleParticipant:
    """A player's contribution to a battle."""

    player_id: PlayerID
    units_deployed: list[UnitID] = field(default_factory=list)


@dataclass(slots=True)
class Agenda:
    """A unit's attempt at one battle agenda."""

    unit_id: UnitID
    name: str
    description: str = ""
    completed: bool = False
    notes: str = ""
    id: AgendaID = field(default_factory=lambda: AgendaID(new_id()))


@dataclass(slots=True)
class BattleRecord:
    """Everything the post-battle sequence needs to know about a game."""

    id: BattleID = field(default_factory=lambda: BattleID(new_id()))
    participants: list[BattleParticipant] = field(default_factory=list)
    destroyed_units: dict[PlayerID, list[UnitID]] = field(default_factory=dict)
    kills: dict[UnitID, int] = field(default_factory=dict)
    marked_for_greatness: dict[PlayerID, UnitID] = field(default_factory=dict)
    victory_points: dict[PlayerID, int] = field(default_factory=dict)
    agendas: dict[PlayerID, list[Agenda]] = field(default_factory=dict)
    winner: PlayerID | None = None
    is_draw: bool = False
    hex_id: HexID | None = None
    battle_size: str = ""
    mission: str = ""
    notes: str = ""
    recorded_at: datetime = field(default_factory=utcnow)

    def fielded_units(self) -> dict[PlayerID, set[UnitID]]:
        """Unit ids each participating player deployed."""

        fielded: dict[PlayerID, set[UnitID]] = {}
        for participant in self.participants:
            fielded.setdefault(participant.player_id, set()).update(participant.units_deployed)
        return fielded


@dataclass(slots=True)
class TerritoryHex:
    """Map territory that can change hands after a battle."""

    id: HexID
    name: str
    q: int = 0
    r: int = 0
    controlled_by: PlayerID | None = None


@dataclass(slots=True)
class Event:
    """Campaign log entry."""

    event_type: EventType
    summary: str
    unit_id: UnitID | None = None
    player_id: PlayerID | None = None
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Campaign:
    """Root aggregate representing an entire Crusade campaign.

    Every field has a default, so ``Campaign()`` is a valid empty campaign.
    """

    id: CampaignID = CampaignID(1)
    name: str = "New Crusade"
    rules_edition: str = "10th"
    players: dict[PlayerID, Player] = field(default_factory=dict)
    units: dict[UnitID, Unit] = field(default_factory=dict)
    territories: dict[HexID, TerritoryHex] = field(default_factory=dict)
    battles: list[BattleRecord] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)


# --- Operation results ----------------------------------------------------------


@dataclass(slots=True)
class Outcome:
    """Success flag plus a reason string; declines never raise."""

    success: bool
    message: str

    def __bool__(self) -> bool:
        return self.success


def ok(message: str) -> Outcome:
    return Outcome(True, message)


def declined(message: str) -> Outcome:
    return Outcome(False, message)
