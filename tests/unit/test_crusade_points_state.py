"""Stateful checks that a unit's cached Crusade Points never drift.

Random sequences of XP awards, honour changes, scars and requisitions are run
against one unit; after every step the stored value must equal a fresh
calculation and the scar and honour caps must hold.
"""

from __future__ import annotations

from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, initialize, invariant, rule

from crusade.domain import crusade_points, experience, honours, out_of_action, requisitions, roster
from crusade.domain import models as dm
from crusade.domain.battle_traits import GENERIC_TRAITS, BattleTraitCatalog, TraitSelection
from crusade.domain.crusade_relics import RELICS, CrusadeRelicCatalog, RelicSelection
from crusade.domain.enums import RequisitionType
from crusade.domain.requisitions import RequisitionParams
from crusade.domain.rules_config import DEFAULT_RULES
from crusade.domain.weapon_mods import WeaponModCatalog, WeaponModSelection

TRAIT_NAMES = [trait.name for trait in GENERIC_TRAITS]
RELIC_NAMES = [relic.name for relic in RELICS]
SCAR_NAMES = [scar.name for scar in DEFAULT_RULES.scars]
MOD_PAIRS = st.lists(st.integers(1, 6), min_size=2, max_size=2, unique=True).map(tuple)


class CrusadeCardMachine(RuleBasedStateMachine):
    @initialize(is_character=st.booleans(), is_titanic=st.booleans())
    def create_unit(self, is_character, is_titanic):
        self.campaign = dm.Campaign()
        self.player = roster.create_player(self.campaign, "Alice", "Space Marines")
        self.unit = roster.create_unit(
            self.campaign,
            self.player.id,
            "Veteran Squad",
            is_character=is_character,
            is_titanic=is_titanic,
            equipment=["Bolt rifle", "Bolt pistol", "Power sword"],
        )
        self.rearms = 0

    def _weapon(self, index: int) -> str | None:
        if not self.unit.equipment:
            return None
        return self.unit.equipment[index % len(self.unit.equipment)]

    def _requisition(self, kind: RequisitionType, params: RequisitionParams) -> None:
        self.player.requisition_points = DEFAULT_RULES.requisitions.max_rp
        requisitions.purchase(self.campaign, self.player.id, kind, params)

    @rule(amount=st.integers(1, 12))
    def add_xp(self, amount):
        experience.add_xp(self.unit, amount, "Objective secured")

    @rule(name=st.sampled_from(TRAIT_NAMES))
    def apply_trait(self, name):
        BattleTraitCatalog().apply(self.unit, TraitSelection(name))

    @rule(name=st.sampled_from(TRAIT_NAMES))
    def remove_trait(self, name):
        BattleTraitCatalog().remove(self.unit, TraitSelection(name))

    @rule(index=st.integers(0, 5), mod_ids=MOD_PAIRS)
    def apply_weapon_mod(self, index, mod_ids):
        weapon = self._weapon(index)
        if weapon is not None:
            WeaponModCatalog().apply(self.unit, WeaponModSelection(weapon, mod_ids=mod_ids))

    @rule(index=st.integers(0, 5))
    def remove_weapon_mod(self, index):
        weapon = self._weapon(index)
        if weapon is not None:
            WeaponModCatalog().remove(self.unit, WeaponModSelection(weapon))

    @rule(name=st.sampled_from(RELIC_NAMES))
    def apply_relic(self, name):
        CrusadeRelicCatalog().apply(self.unit, RelicSelection(name))

    @rule(name=st.sampled_from(RELIC_NAMES))
    def remove_relic(self, name):
        CrusadeRelicCatalog().remove(self.unit, RelicSelection(name))

    @rule(name=st.none() | st.sampled_from(SCAR_NAMES), seed=st.text(min_size=1, max_size=8))
    def battle_scar(self, name, seed):
        out_of_action.apply_battle_scar(self.unit, name, seed=seed)

    @rule(index=st.none() | st.integers(-1, 6))
    def devastating_blow(self, index):
        out_of_action.apply_devastating_blow(self.unit, index)

    @rule(index=st.integers(-1, 3))
    def remove_battle_scar(self, index):
        out_of_action.remove_battle_scar(self.unit, index)

    @rule(index=st.integers(0, 5))
    def rearm(self, index):
        weapon = self._weapon(index)
        if weapon is None:
            return
        self.rearms += 1
        self._requisition(
            RequisitionType.REARM_AND_RESUPPLY,
            RequisitionParams(
                unit_id=self.unit.id, old_weapon=weapon, new_weapon=f"Wargear {self.rearms}"
            ),
        )

    @rule(index=st.integers(0, 3))
    def repair(self, index):
        self._requisition(
            RequisitionType.REPAIR_AND_RECUPERATE,
            RequisitionParams(unit_id=self.unit.id, scar_index=index),
        )

    @invariant()
    def cached_points_match(self):
        assert crusade_points.validate(self.unit)
        assert self.unit.crusade_points == crusade_points.calculate(self.unit)

    @invariant()
    def caps_hold(self):
        assert len(self.unit.battle_scars) <= DEFAULT_RULES.progression.max_battle_scars
        assert len(self.unit.battle_honours) <= honours.max_honours(self.unit)

    @invariant()
    def linked_records_follow_honours(self):
        modified = {record.weapon_name for record in self.unit.weapon_modifications}
        honoured = {
            honour.weapon_name
            for honour in self.unit.battle_honours
            if isinstance(honour, dm.WeaponModificationHonour)
        }
        assert modified == honoured
        relic_names = {relic.name for relic in self.unit.crusade_relics}
        assert relic_names == {
            honour.name
            for honour in self.unit.battle_honours
            if isinstance(honour, dm.CrusadeRelicHonour)
        }


CrusadeCardMachine.TestCase.settings = settings(stateful_step_count=30, deadline=None)
TestCrusadeCardMachine = CrusadeCardMachine.TestCase
