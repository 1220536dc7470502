"""Enumerations and type tags used across the Crusade rules layer."""

from __future__ import annotations

from enum import StrEnum


class HonourCategory(StrEnum):
    """The three categories of battle honour."""

    BATTLE_TRAIT = "battle_trait"
    WEAPON_MODIFICATION = "weapon_modification"
    CRUSADE_RELIC = "crusade_relic"


class RelicTier(StrEnum):
    """Crusade relic tiers, from least to most prestigious."""

    ARTIFICER = "artificer"
    ANTIQUITY = "antiquity"
    LEGENDARY = "legendary"


class TraitCategory(StrEnum):
    """Grouping used when browsing the battle-trait catalog."""

    LEADERSHIP = "leadership"
    SHOOTING = "shooting"
    MELEE = "melee"
    ANTI_VEHICLE = "anti_vehicle"
    DEFENSIVE = "defensive"
    MOVEMENT = "movement"
    SPECIAL = "special"
    ENHANCEMENT = "enhancement"
    FACTION = "faction"


class ConsequenceType(StrEnum):
    """Choices available to a unit that failed its Out of Action test."""

    DEVASTATING_BLOW = "devastating_blow"
    BATTLE_SCAR = "battle_scar"


class OutOfActionState(StrEnum):
    """Per-unit, per-battle Out of Action lifecycle.

    The roll and its verdict happen together, so a tested unit starts at
    ``PASSED`` or ``FAILED_PENDING_CHOICE``.
    """

    PASSED = "passed"
    FAILED_PENDING_CHOICE = "failed_pending_choice"
    RESOLVED = "resolved"


class RequisitionType(StrEnum):
    """Requisitions a player may spend Requisition Points on."""

    INCREASE_SUPPLY_LIMIT = "increase_supply_limit"
    RENOWNED_HEROES = "renowned_heroes"
    LEGENDARY_VETERANS = "legendary_veterans"
    REARM_AND_RESUPPLY = "rearm_and_resupply"
    REPAIR_AND_RECUPERATE = "repair_and_recuperate"
    FRESH_RECRUITS = "fresh_recruits"


class AgendaCategory(StrEnum):
    """Grouping used when browsing the common agenda list."""

    COMBAT = "combat"
    TERRITORIAL = "territorial"
    SURVIVAL = "survival"


class UnitMetric(StrEnum):
    """Orderings for the top-units table."""

    XP = "xp"
    KILLS = "kills"
    CRUSADE_POINTS = "cp"
    BATTLES = "battles"


class PlayerMetric(StrEnum):
    """Orderings for the player leaderboard."""

    VICTORIES = "victories"
    WIN_RATE = "win_rate"
    TOTAL_XP = "total_xp"
    TERRITORY = "territory"


class EventType(StrEnum):
    """Machine-checkable tags for events appended to the campaign log."""

    XP_GAINED = "xp_gained"
    XP_CAPPED = "xp_capped"
    XP_CAP_REACHED = "xp_cap_reached"
    RANK_UP = "rank_up"
    LEGENDARY_VETERANS = "legendary_veterans"
    HONOUR_GAINED = "honour_gained"
    HONOUR_REMOVED = "honour_removed"
    SCAR_GAINED = "scar_gained"
    SCAR_REMOVED = "scar_removed"
    OUT_OF_ACTION_PASS = "out_of_action_pass"
    OUT_OF_ACTION_AUTO_PASS = "out_of_action_auto_pass"
    OUT_OF_ACTION_FAIL = "out_of_action_fail"
    DEVASTATING_BLOW = "devastating_blow"
    UNIT_PERMANENTLY_DESTROYED = "unit_permanently_destroyed"
    MARKED_FOR_GREATNESS_DECLINED = "marked_for_greatness_declined"
    REQUISITION_PURCHASED = "requisition_purchased"
    RP_AWARDED = "rp_awarded"
    TERRITORY_CAPTURED = "territory_captured"
    BATTLE_RECORDED = "battle_recorded"
