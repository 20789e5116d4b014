"""Unit tests for the weapon catalog."""

import pytest

from pewstats_match_reports.config.weapon_catalog import (
    REVIEW_FLAGGED_WEAPON_IDS,
    UNKNOWN_WEAPON_NAME,
    WEAPON_CATALOG,
    WeaponCategory,
    canonicalize,
    get_category_display_name,
    get_weapon_category,
    get_weapon_name,
    get_weapons_by_category,
    strip_decorations,
)


class TestExactLookup:
    """Ids present in the catalog."""

    @pytest.mark.parametrize(
        "raw_id,name,category",
        [
            ("WeapHK416_C", "M416", WeaponCategory.AR),
            ("WeapAK47_C", "AKM", WeaponCategory.AR),
            ("WeapKar98k_C", "Kar98k", WeaponCategory.SR),
            ("WeapMini14_C", "Mini 14", WeaponCategory.DMR),
            ("BP_Mirado_A_03_C", "Mirado", WeaponCategory.VEHICLE),
            ("Bluezonebomb_EffectActor_C", "Bluezone", WeaponCategory.ENVIRONMENT),
        ],
    )
    def test_known_ids(self, raw_id, name, category):
        info = canonicalize(raw_id)
        assert info.name == name
        assert info.category == category
        assert info.raw_id == raw_id

    def test_surrounding_whitespace_is_ignored(self):
        assert canonicalize("  WeapHK416_C ").name == "M416"


class TestConflictResolution:
    """Ids on which older weapon tables disagreed."""

    def test_current_names_win(self):
        assert canonicalize("WeapUMP_C").name == "UMP45"
        assert canonicalize("WeapL6_C").name == "Lynx AMR"
        assert canonicalize("WeapMG3_C").name == "MG3"

    def test_flagged_ids_are_marked_for_review(self):
        assert canonicalize("WeapUMP_C").needs_review is True
        assert canonicalize("WeapHK416_C").needs_review is False

    def test_every_flagged_id_is_in_catalog(self):
        assert set(REVIEW_FLAGGED_WEAPON_IDS) <= set(WEAPON_CATALOG)


class TestFallbacks:
    """Ids missing from the catalog."""

    def test_non_weapon_markers(self):
        assert canonicalize("SomeNewVehicle_C").name == "Vehicle"
        assert canonicalize("SomeNewVehicle_C").category == WeaponCategory.VEHICLE
        assert canonicalize("ProjDecoyGrenade_C").name == "Grenade"
        assert canonicalize("ProjMolotovV2_C").name == "Molotov"
        assert canonicalize("PunchAttack").category == WeaponCategory.MELEE

    def test_prefixed_alias_resolves_to_catalog_entry(self):
        info = canonicalize("Item_Weapon_AK47_C")
        assert info.name == "AKM"
        assert info.category == WeaponCategory.AR
        assert info.raw_id == "Item_Weapon_AK47_C"

    def test_unknown_weapon_uses_residual_token(self):
        info = canonicalize("WeapName_NewGun")
        assert info.name == "NewGun"
        assert info.category == WeaponCategory.OTHER

    def test_empty_residual_is_unknown(self):
        assert canonicalize("BP__C").name == UNKNOWN_WEAPON_NAME

    @pytest.mark.parametrize("raw_id", [None, "", "   ", 42])
    def test_missing_ids_never_raise(self, raw_id):
        info = canonicalize(raw_id)
        assert info.name == UNKNOWN_WEAPON_NAME
        assert info.category == WeaponCategory.OTHER

    def test_placeholder_ids_are_unknown(self):
        assert canonicalize("None").name == UNKNOWN_WEAPON_NAME


class TestHelpers:
    def test_strip_decorations(self):
        assert strip_decorations("Item_Weapon_HK416_C") == "HK416"
        assert strip_decorations("WeapName_Groza") == "Groza"
        assert strip_decorations("BP_Dirtbike_C") == "Dirtbike"

    def test_shorthands(self):
        assert get_weapon_name("WeapHK416_C") == "M416"
        assert get_weapon_category(None) == WeaponCategory.OTHER

    def test_category_display_name(self):
        assert get_category_display_name(WeaponCategory.AR) == "Assault Rifles"

    def test_weapons_by_category(self):
        vehicles = get_weapons_by_category(WeaponCategory.VEHICLE)
        assert "BP_Mirado_A_03_C" in vehicles
        assert "WeapHK416_C" not in vehicles
