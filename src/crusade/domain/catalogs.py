"""Registry of the three honour catalogs keyed by category."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .battle_traits import BattleTraitCatalog, TraitSelection
from .crusade_relics import CrusadeRelicCatalog, RelicSelection
from .enums import HonourCategory
from .weapon_mods import WeaponModCatalog, WeaponModSelection

if TYPE_CHECKING:
    from crusade.interfaces.honours import IHonourCatalog


def catalog_for(category: HonourCategory, *, faction: str = "") -> IHonourCatalog:
    """Return the catalog implementing ``category``.

    Battle traits are faction-aware, so the catalog is built per call.
    """

    if category == HonourCategory.BATTLE_TRAIT:
        return BattleTraitCatalog(faction)
    return _STATIC_CATALOGS[category]


_STATIC_CATALOGS: dict[HonourCategory, IHonourCatalog] = {
    HonourCategory.WEAPON_MODIFICATION: WeaponModCatalog(),
    HonourCategory.CRUSADE_RELIC: CrusadeRelicCatalog(),
}

__all__ = [
    "BattleTraitCatalog",
    "CrusadeRelicCatalog",
    "RelicSelection",
    "TraitSelection",
    "WeaponModCatalog",
    "WeaponModSelection",
    "catalog_for",
]
