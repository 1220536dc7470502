"""Tests for Weapon Modification rolls and the weapon-mod catalog."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from crusade.domain import models as dm
from crusade.domain import weapon_mods
from crusade.domain.weapon_mods import WeaponModCatalog, WeaponModSelection


def _unit(**overrides) -> dm.Unit:
    fields = {
        "id": dm.UnitID("u1"),
        "owner_id": dm.PlayerID("p1"),
        "name": "Hellblasters",
        "equipment": ["Plasma incinerator", "Bolt pistol"],
    }
    fields.update(overrides)
    return dm.Unit(**fields)


@given(st.text(max_size=40))
def test_rolls_are_two_distinct_ids(seed):
    first, second = weapon_mods.roll_modifications(seed)
    assert first != second
    assert {first, second} <= {1, 2, 3, 4, 5, 6}


def test_roll_is_deterministic():
    assert weapon_mods.roll_modifications("s") == weapon_mods.roll_modifications("s")


class TestValidateModIds:
    def test_valid(self):
        assert weapon_mods.validate_mod_ids((1, 4))

    def test_wrong_count(self):
        assert not weapon_mods.validate_mod_ids((1,))
        assert not weapon_mods.validate_mod_ids((1, 2, 3))

    def test_duplicates(self):
        assert not weapon_mods.validate_mod_ids((2, 2))

    def test_out_of_range(self):
        assert not weapon_mods.validate_mod_ids((0, 7))


class TestCatalog:
    def test_apply_with_pre_rolled_ids(self):
        unit = _unit()
        outcome = WeaponModCatalog().apply(
            unit, WeaponModSelection("Plasma incinerator", mod_ids=(2, 4))
        )
        assert outcome.success
        honour = unit.battle_honours[0]
        assert honour.category == "weapon_modification"
        assert honour.modifications == ["Brutal", "Master-Worked"]
        assert unit.weapon_modifications[0].weapon_name == "Plasma incinerator"
        assert unit.crusade_points == 1

    def test_apply_rolls_when_no_ids(self):
        unit = _unit()
        outcome = WeaponModCatalog().apply(unit, WeaponModSelection("Bolt pistol", seed="x"))
        assert outcome.success
        mods = unit.weapon_modifications[0].modifications
        assert len(mods) == 2
        assert len(set(mods)) == 2

    def test_invalid_ids_leave_unit_unchanged(self):
        unit = _unit()
        outcome = WeaponModCatalog().apply(unit, WeaponModSelection("Bolt pistol", mod_ids=(3, 3)))
        assert not outcome.success
        assert unit.battle_honours == []
        assert unit.weapon_modifications == []

    def test_weapon_cannot_be_modified_twice(self):
        unit = _unit()
        catalog = WeaponModCatalog()
        catalog.apply(unit, WeaponModSelection("Bolt pistol", mod_ids=(1, 2)))
        assert not catalog.apply(unit, WeaponModSelection("Bolt pistol", mod_ids=(3, 4))).success
        assert catalog.options(unit) == ["Plasma incinerator"]

    def test_enhancement_and_relic_weapons_ineligible(self):
        unit = _unit(
            is_character=True,
            equipment=["Master-crafted power sword", "Blade of Valor", "Bolt pistol"],
            enhancement=dm.Enhancement(
                name="Artificer Blade", replaced_weapon="Master-crafted power sword"
            ),
            crusade_relics=[
                dm.CrusadeRelic(name="Blade of Valor", tier="artificer", cost=1),
            ],
        )
        assert weapon_mods.modifiable_weapons(unit) == ["Bolt pistol"]
        assert "Enhancement" in weapon_mods.weapon_ineligibility(
            unit, "Master-crafted power sword"
        )
        assert "Relic" in weapon_mods.weapon_ineligibility(unit, "Blade of Valor")

    def test_remove_drops_record_and_honour(self):
        unit = _unit()
        catalog = WeaponModCatalog()
        catalog.apply(unit, WeaponModSelection("Bolt pistol", mod_ids=(5, 6)))
        assert catalog.remove(unit, WeaponModSelection("Bolt pistol")).success
        assert unit.weapon_modifications == []
        assert unit.battle_honours == []
        assert unit.crusade_points == 0
        assert not catalog.remove(unit, WeaponModSelection("Bolt pistol")).success
