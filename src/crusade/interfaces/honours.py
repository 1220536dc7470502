"""Honour Catalog Protocol Interface.

This module defines the contract shared by the three battle-honour catalogs
(Battle Traits, Weapon Modifications, Crusade Relics).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

from crusade.domain.enums import HonourCategory
from crusade.domain.models import Event, Outcome, Unit
from crusade.domain.rules_config import RulesConfig

SelectionT = TypeVar("SelectionT", contravariant=True)


class IHonourCatalog(Protocol[SelectionT]):
    """Protocol for a catalog of acquirable battle honours.

    Every mutating operation reports policy declines through the returned
    :class:`Outcome` and leaves the unit untouched when declined.
    """

    category: HonourCategory

    def options(self, unit: Unit, *, rules: RulesConfig = ...) -> Sequence[object]:
        """List the catalog entries this unit could currently take.

        Args:
            unit: Unit choosing an honour
            rules: Active rules configuration

        Returns:
            Catalog entries, in catalog order
        """
        ...

    def check(self, unit: Unit, selection: SelectionT, *, rules: RulesConfig = ...) -> Outcome:
        """Check whether ``selection`` may be applied to ``unit``."""
        ...

    def apply(
        self,
        unit: Unit,
        selection: SelectionT,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = ...,
    ) -> Outcome:
        """Grant the honour, clear the pending selection and refresh Crusade Points."""
        ...

    def remove(
        self,
        unit: Unit,
        selection: SelectionT,
        *,
        events: list[Event] | None = None,
        rules: RulesConfig = ...,
    ) -> Outcome:
        """Remove a previously granted honour and any record linked to it."""
        ...
