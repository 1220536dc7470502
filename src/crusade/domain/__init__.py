"""Crusade progression rules engine.

This package holds every campaign rule in one place.  It exposes:

* Dataclasses describing every campaign entity (see :mod:`models`).
* Enumerations and strongly-typed identifiers used across the rules layer.
* Rule configuration objects (see :mod:`rules_config`).
* Pure rule functions for experience, Crusade Points, honours, Out of Action,
  requisitions, agendas and the post-battle sequence.
* Read-only campaign statistics and leaderboards (see :mod:`statistics`).

All operations run in-memory on a :class:`models.Campaign` and are persisted
through a thin repository adapter.
"""

from . import (
    agendas,
    battle,
    battle_traits,
    catalogs,
    crusade_points,
    crusade_relics,
    enums,
    events,
    experience,
    honours,
    models,
    out_of_action,
    requisitions,
    roster,
    rules_config,
    statistics,
    weapon_mods,
)

__all__ = [
    "agendas",
    "battle",
    "battle_traits",
    "catalogs",
    "crusade_points",
    "crusade_relics",
    "enums",
    "events",
    "experience",
    "honours",
    "models",
    "out_of_action",
    "requisitions",
    "roster",
    "rules_config",
    "statistics",
    "weapon_mods",
]
