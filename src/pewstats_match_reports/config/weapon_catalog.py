"""
Weapon Catalog for PUBG Telemetry Data

Maps raw damage causer identifiers from telemetry (e.g. 'WeapHK416_C',
'Item_Weapon_HK416_C', 'BP_Mirado_A_03_C') to one canonical display name and
category. Several historical naming schemes are in circulation, so lookups go
through four steps:

    1. Exact match against WEAPON_CATALOG
    2. Substring match against non-weapon markers (vehicle, grenade, molotov, punch)
    3. Strip known prefixes/suffixes and retry as 'Weap<token>_C', else use the token
    4. Nothing left -> UNKNOWN_WEAPON_NAME

Categories:
    - AR, DMR, SR, SMG, Shotgun, LMG, Pistol
    - Melee: Melee weapons and fists
    - Throwable: Grenades and throwables
    - Special: Crossbow, mortar
    - Vehicle: All vehicles
    - Environment: Blue zone, red zone, drowning, explosions
    - Other: Unknown or unmapped causers

Usage:
    >>> from pewstats_match_reports.config.weapon_catalog import canonicalize
    >>> canonicalize('WeapHK416_C').name
    'M416'
    >>> canonicalize('Item_Weapon_AK47_C').name
    'AKM'
    >>> canonicalize('BP_Mirado_A_03_C').category
    <WeaponCategory.VEHICLE: 'Vehicle'>
    >>> canonicalize(None).name
    'Unknown'
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class WeaponCategory(str, Enum):
    AR = "AR"
    DMR = "DMR"
    SR = "SR"
    SMG = "SMG"
    SHOTGUN = "Shotgun"
    LMG = "LMG"
    PISTOL = "Pistol"
    MELEE = "Melee"
    THROWABLE = "Throwable"
    SPECIAL = "Special"
    VEHICLE = "Vehicle"
    ENVIRONMENT = "Environment"
    OTHER = "Other"


UNKNOWN_WEAPON_NAME = "Unknown"


@dataclass(frozen=True)
class WeaponInfo:
    """Canonical weapon identity.

    Attributes:
        name: Display name (e.g. 'M416')
        category: Weapon category
        raw_id: Identifier as it appeared in telemetry
        needs_review: True when historical tables disagreed on this id
    """

    name: str
    category: WeaponCategory
    raw_id: Optional[str] = None
    needs_review: bool = False


_AR = WeaponCategory.AR
_DMR = WeaponCategory.DMR
_SR = WeaponCategory.SR
_SMG = WeaponCategory.SMG
_SG = WeaponCategory.SHOTGUN
_LMG = WeaponCategory.LMG
_PISTOL = WeaponCategory.PISTOL
_MELEE = WeaponCategory.MELEE
_THROW = WeaponCategory.THROWABLE
_SPECIAL = WeaponCategory.SPECIAL
_VEH = WeaponCategory.VEHICLE
_ENV = WeaponCategory.ENVIRONMENT
_OTHER = WeaponCategory.OTHER

# ============================================================================
# WEAPON CATALOG: raw id -> (display name, category)
# ============================================================================

WEAPON_CATALOG: Dict[str, Tuple[str, WeaponCategory]] = {
    # ========================================
    # ASSAULT RIFLES (AR)
    # ========================================
    "WeapACE32_C": ("ACE32", _AR),
    "WeapAK47_C": ("AKM", _AR),
    "WeapLunchmeatsAK47_C": ("AKM", _AR),  # Skin variant
    "WeapAUG_C": ("AUG", _AR),
    "WeapBerylM762_C": ("Beryl M762", _AR),
    "WeapFamasG2_C": ("FAMAS", _AR),
    "WeapFamas_C": ("FAMAS", _AR),  # Legacy id
    "WeapG36C_C": ("G36C", _AR),
    "WeapGroza_C": ("Groza", _AR),
    "WeapHK416_C": ("M416", _AR),
    "WeapDuncansHK416_C": ("M416", _AR),  # Skin variant
    "WeapK2_C": ("K2", _AR),
    "WeapM16A4_C": ("M16A4", _AR),
    "WeapMk47Mutant_C": ("Mk47 Mutant", _AR),
    "WeapQBZ95_C": ("QBZ95", _AR),
    "WeapSCAR-L_C": ("SCAR-L", _AR),
    # ========================================
    # DESIGNATED MARKSMAN RIFLES (DMR)
    # ========================================
    "WeapDragunov_C": ("Dragunov", _DMR),
    "WeapFNFal_C": ("SLR", _DMR),
    "WeapSLR_C": ("SLR", _DMR),  # Legacy id
    "WeapMini14_C": ("Mini 14", _DMR),
    "WeapMk12_C": ("Mk12", _DMR),
    "WeapMk14_C": ("Mk14 EBR", _DMR),
    "WeapSKS_C": ("SKS", _DMR),
    "WeapVSS_C": ("VSS", _DMR),
    "WeapQBU88_C": ("QBU", _DMR),
    "WeapMadsQBU88_C": ("QBU", _DMR),  # Skin variant
    # ========================================
    # SNIPER RIFLES (SR)
    # ========================================
    "WeapAWM_C": ("AWM", _SR),
    "WeapKar98k_C": ("Kar98k", _SR),
    "WeapJuliesKar98k_C": ("Kar98k", _SR),  # Skin variant
    "WeapM24_C": ("M24", _SR),
    "WeapMosinNagant_C": ("Mosin Nagant", _SR),
    "WeapL6_C": ("Lynx AMR", _SR),
    "WeapLynx_C": ("Lynx AMR", _SR),  # Legacy id
    "WeapWin94_C": ("Win94", _SR),
    # ========================================
    # SUBMACHINE GUNS (SMG)
    # ========================================
    "WeapBizonPP19_C": ("PP-19 Bizon", _SMG),
    "WeapJS9_C": ("JS9", _SMG),
    "WeapMP5K_C": ("MP5K", _SMG),
    "WeapMP9_C": ("MP9", _SMG),
    "WeapP90_C": ("P90", _SMG),
    "WeapThompson_C": ("Tommy Gun", _SMG),
    "WeapUMP_C": ("UMP45", _SMG),
    "WeapUMP9_C": ("UMP45", _SMG),  # Renamed from UMP9
    "WeapUZI_C": ("Micro UZI", _SMG),
    "WeapVector_C": ("Vector", _SMG),
    # ========================================
    # SHOTGUNS
    # ========================================
    "WeapBerreta686_C": ("S686", _SG),
    "WeapS686_C": ("S686", _SG),  # Legacy id
    "WeapDP12_C": ("DBS", _SG),
    "WeapDBS_C": ("DBS", _SG),  # Legacy id
    "WeapOriginS12_C": ("O12", _SG),
    "WeapSaiga12_C": ("S12K", _SG),
    "WeapS12K_C": ("S12K", _SG),  # Legacy id
    "WeapSaiga_C": ("S12K", _SG),  # Legacy id
    "WeapSawnoff_C": ("Sawed-off", _SG),
    "WeapSawedoff_C": ("Sawed-off", _SG),  # Legacy id
    "WeapWinchester_C": ("S1897", _SG),
    "WeapS1897_C": ("S1897", _SG),  # Legacy id
    # ========================================
    # LIGHT MACHINE GUNS (LMG)
    # ========================================
    "WeapDP28_C": ("DP-28", _LMG),
    "WeapM249_C": ("M249", _LMG),
    "WeapMG3_C": ("MG3", _LMG),
    # ========================================
    # PISTOLS
    # ========================================
    "WeapDesertEagle_C": ("Deagle", _PISTOL),
    "WeapG18_C": ("P18C", _PISTOL),
    "WeapM1911_C": ("P1911", _PISTOL),
    "WeapM9_C": ("P92", _PISTOL),
    "WeapP92_C": ("P92", _PISTOL),  # Legacy id
    "WeapNagantM1895_C": ("R1895", _PISTOL),
    "WeapR1895_C": ("R1895", _PISTOL),  # Legacy id
    "WeapRhino_C": ("R45", _PISTOL),
    "Weapvz61Skorpion_C": ("Skorpion", _PISTOL),
    # ========================================
    # MELEE
    # ========================================
    "WeapCowbar_C": ("Crowbar", _MELEE),
    "WeapCowbarProjectile_C": ("Crowbar", _MELEE),
    "WeapMachete_C": ("Machete", _MELEE),
    "WeapMacheteProjectile_C": ("Machete", _MELEE),
    "WeapPan_C": ("Pan", _MELEE),
    "WeapPanProjectile_C": ("Pan", _MELEE),
    "WeapPickaxe_C": ("Pickaxe", _MELEE),
    "WeapPickaxeProjectile_C": ("Pickaxe", _MELEE),
    "WeapSickle_C": ("Sickle", _MELEE),
    "WeapSickleProjectile_C": ("Sickle", _MELEE),
    # Fists
    "PlayerFemale_A_C": ("Punch", _MELEE),
    "PlayerMale_A_C": ("Punch", _MELEE),
    # ========================================
    # THROWABLES
    # ========================================
    "ProjGrenade_C": ("Frag Grenade", _THROW),
    "WeapGrenade_C": ("Frag Grenade", _THROW),
    "ProjMolotov_C": ("Molotov", _THROW),
    "WeapMolotov_C": ("Molotov", _THROW),
    "BP_MolotovFireDebuff_C": ("Molotov", _THROW),  # Fire effect
    "ProjSmokeGrenade_C": ("Smoke Grenade", _THROW),
    "WeapSmokeBomb_C": ("Smoke Grenade", _THROW),
    "ProjFlashBang_C": ("Flashbang", _THROW),
    "WeapFlashBang_C": ("Flashbang", _THROW),
    "ProjStickyGrenade_C": ("Sticky Bomb", _THROW),
    "WeapStickyGrenade_C": ("Sticky Bomb", _THROW),
    "ProjC4_C": ("C4", _THROW),
    "WeapDecoyGrenade_C": ("Decoy Grenade", _THROW),
    "WeapBluezoneGrenade_C": ("Bluezone Grenade", _THROW),
    "WeapPanzerFaust100M1_C": ("Panzerfaust", _THROW),
    "PanzerFaust100M_Projectile_C": ("Panzerfaust", _THROW),
    "Jerrycan": ("Jerrycan", _THROW),
    "JerrycanFire": ("Jerrycan", _THROW),
    "WeapJerryCan_C": ("Jerrycan", _THROW),
    # ========================================
    # SPECIAL
    # ========================================
    "WeapCrossbow_1_C": ("Crossbow", _SPECIAL),
    "WeapCrossbow_C": ("Crossbow", _SPECIAL),
    "Mortar_Projectile_C": ("Mortar", _SPECIAL),
    # ========================================
    # VEHICLES
    # ========================================
    "BP_CoupeRB_C": ("Coupe RB", _VEH),
    "BP_PonyCoupe_C": ("Pony Coupe", _VEH),
    "Dacia_A_01_C": ("Dacia", _VEH),
    "Dacia_A_02_C": ("Dacia", _VEH),
    "Dacia_A_03_v2_C": ("Dacia", _VEH),
    "Dacia_A_03_v2_Esports_C": ("Dacia", _VEH),
    "Dacia_A_04_v2_C": ("Dacia", _VEH),
    "BP_Mirado_A_01_C": ("Mirado", _VEH),
    "BP_Mirado_A_02_C": ("Mirado", _VEH),
    "BP_Mirado_A_03_C": ("Mirado", _VEH),
    "BP_Mirado_A_03_Esports_C": ("Mirado", _VEH),
    "BP_Mirado_A_04_C": ("Mirado", _VEH),
    "BP_Mirado_Open_05_C": ("Mirado", _VEH),
    "BP_PickupTruck_A_01_C": ("Pickup", _VEH),
    "BP_PickupTruck_A_02_C": ("Pickup", _VEH),
    "BP_PickupTruck_A_03_C": ("Pickup", _VEH),
    "BP_PickupTruck_A_04_C": ("Pickup", _VEH),
    "BP_PickupTruck_A_05_C": ("Pickup", _VEH),
    "BP_PickupTruck_A_esports_C": ("Pickup", _VEH),
    "Uaz_A_01_C": ("UAZ", _VEH),
    "Uaz_B_01_C": ("UAZ", _VEH),
    "Uaz_B_01_esports_C": ("UAZ", _VEH),
    "Uaz_C_01_C": ("UAZ", _VEH),
    "BP_Niva_04_C": ("Zima", _VEH),
    "BP_Niva_05_C": ("Zima", _VEH),
    "BP_Niva_06_C": ("Zima", _VEH),
    "BP_Niva_07_C": ("Zima", _VEH),
    "BP_Niva_Esports_C": ("Zima", _VEH),
    "BP_M_Rony_A_01_C": ("Rony", _VEH),
    "BP_M_Rony_A_02_C": ("Rony", _VEH),
    "BP_Pillar_Car_C": ("Pillar Car", _VEH),
    "BP_Porter_C": ("Porter", _VEH),
    "BP_Blanc_C": ("Blanc", _VEH),
    "BP_Blanc_Esports_C": ("Blanc", _VEH),
    "BP_Motorbike_04_C": ("Motorbike", _VEH),
    "BP_Motorbike_04_Desert_C": ("Motorbike", _VEH),
    "BP_Motorbike_04_SideCar_C": ("Motorbike (Sidecar)", _VEH),
    "BP_Motorbike_04_SideCar_Desert_C": ("Motorbike (Sidecar)", _VEH),
    "BP_Dirtbike_C": ("Dirt Bike", _VEH),
    "AquaRail_A_01_C": ("Aquarail", _VEH),
    "BP_ATV_C": ("Quad", _VEH),
    "BP_BRDM_C": ("BRDM-2", _VEH),
    "BP_PicoBus_C": ("Bus", _VEH),
    "BP_Food_Truck_C": ("Food Truck", _VEH),
    "BP_LootTruck_C": ("Loot Truck", _VEH),
    "Boat_PG117_C": ("PG-117", _VEH),
    "BP_BearV2_C": ("Airboat", _VEH),
    "BP_Motorglider_C": ("Motor Glider", _VEH),
    "BP_Motorglider_Blue_C": ("Motor Glider", _VEH),
    "BP_Motorglider_Green_C": ("Motor Glider", _VEH),
    "BP_Motorglider_Orange_C": ("Motor Glider", _VEH),
    "BP_Motorglider_Red_C": ("Motor Glider", _VEH),
    "BP_Motorglider_Teal_C": ("Motor Glider", _VEH),
    # ========================================
    # ENVIRONMENT
    # ========================================
    "Bluezonebomb_EffectActor_C": ("Bluezone", _ENV),
    "BlackZoneBombingField_Def_C": ("Red Zone", _ENV),
    "BP_FireEffectController_C": ("Fire", _ENV),
    "TslGameModeBase_BattleRoyaleBP_C": ("Zone", _ENV),
    "Buff_DecreaseBreathInApnea_C": ("Drowning", _ENV),
    "BP_Eragel_CargoShip01_C": ("Cargo Ship", _ENV),
    "BP_Baltic_GasPump_C": ("Gas Pump", _ENV),
    "BP_DesertTslGasPump_C": ("Gas Pump", _ENV),
    "BP_NE_GasPump_C": ("Gas Pump", _ENV),
    # ========================================
    # PLACEHOLDERS
    # ========================================
    "None": (UNKNOWN_WEAPON_NAME, _OTHER),
    "Undefined": (UNKNOWN_WEAPON_NAME, _OTHER),
    "Default": (UNKNOWN_WEAPON_NAME, _OTHER),
}

# Ids on which older weapon tables disagreed. The catalog entry wins, the
# alternatives are kept here so the collision can be reviewed by hand.
REVIEW_FLAGGED_WEAPON_IDS: Dict[str, Tuple[str, ...]] = {
    "WeapUMP_C": ("UMP45", "UMP9"),
    "WeapUMP9_C": ("UMP45", "UMP9"),
    "WeapL6_C": ("Lynx AMR", "MG3"),
    "WeapSaiga_C": ("S12K", "Skorpion"),
    "WeapStickyGrenade_C": ("Sticky Bomb", "C4"),
    "WeapFNFal_C": ("SLR (DMR)", "SLR (AR)"),
    "WeapWin94_C": ("Win94 (SR)", "Win94 (DMR)"),
    "WeapCrossbow_C": ("Crossbow (Special)", "Crossbow (Melee)"),
}

# ============================================================================
# FALLBACK RULES
# ============================================================================

# Checked in order, case-insensitively, against ids missing from the catalog
NON_WEAPON_MARKERS: List[Tuple[str, str, WeaponCategory]] = [
    ("vehicle", "Vehicle", _VEH),
    ("molotov", "Molotov", _THROW),
    ("grenade", "Grenade", _THROW),
    ("punch", "Punch", _MELEE),
]

# Longest first so 'Item_Weapon_' is not eaten by 'Weap'
STRIP_PREFIXES: Tuple[str, ...] = (
    "Item_Weapon_",
    "WeapName_",
    "Weapon_",
    "Weap",
    "BP_",
)

STRIP_SUFFIXES: Tuple[str, ...] = ("_C",)

# ============================================================================
# CATEGORY DISPLAY NAMES
# ============================================================================

CATEGORY_DISPLAY_NAMES: Dict[WeaponCategory, str] = {
    _AR: "Assault Rifles",
    _DMR: "Designated Marksman Rifles",
    _SR: "Sniper Rifles",
    _SMG: "Submachine Guns",
    _SG: "Shotguns",
    _LMG: "Light Machine Guns",
    _PISTOL: "Pistols",
    _MELEE: "Melee Weapons",
    _THROW: "Throwables",
    _SPECIAL: "Special Weapons",
    _VEH: "Vehicles",
    _ENV: "Environment",
    _OTHER: "Other",
}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def canonicalize(raw_id: Optional[str]) -> WeaponInfo:
    """
    Resolve a raw damage causer id to its canonical weapon.

    Never raises: missing, blank or unrecognised ids resolve to a best-effort
    name, and to UNKNOWN_WEAPON_NAME when nothing usable is left.

    Args:
        raw_id: Damage causer id from telemetry (e.g. 'WeapHK416_C'), may be None

    Returns:
        WeaponInfo with display name and category

    Examples:
        >>> canonicalize('WeapSCAR-L_C').name
        'SCAR-L'
        >>> canonicalize('WeapName_NewGun').name
        'NewGun'
        >>> canonicalize('ProjDecoyGrenade_C').name
        'Grenade'
        >>> canonicalize('').name
        'Unknown'
    """
    if not isinstance(raw_id, str) or not raw_id.strip():
        return WeaponInfo(UNKNOWN_WEAPON_NAME, _OTHER, raw_id)

    raw_id = raw_id.strip()

    # (a) exact match
    entry = WEAPON_CATALOG.get(raw_id)
    if entry is not None:
        return _catalog_info(raw_id, raw_id)

    # (b) non-weapon markers
    lowered = raw_id.lower()
    for marker, name, category in NON_WEAPON_MARKERS:
        if marker in lowered:
            return WeaponInfo(name, category, raw_id)

    # (c) strip naming-scheme decorations
    token = strip_decorations(raw_id)
    if not token:
        # (d) nothing left
        return WeaponInfo(UNKNOWN_WEAPON_NAME, _OTHER, raw_id)

    alias = f"Weap{token}_C"
    if alias in WEAPON_CATALOG:
        return _catalog_info(alias, raw_id)

    return WeaponInfo(token, _OTHER, raw_id)


def strip_decorations(raw_id: str) -> str:
    """
    Remove known prefixes and suffixes from a raw weapon id.

    Args:
        raw_id: Raw id (e.g. 'Item_Weapon_HK416_C')

    Returns:
        Residual token (e.g. 'HK416'), possibly empty

    Examples:
        >>> strip_decorations('WeapName_Groza')
        'Groza'
        >>> strip_decorations('BP__C')
        ''
    """
    token = raw_id
    changed = True
    while changed and token:
        changed = False
        for prefix in STRIP_PREFIXES:
            if token.startswith(prefix):
                token = token[len(prefix):]
                changed = True
                break
        for suffix in STRIP_SUFFIXES:
            if token.endswith(suffix):
                token = token[: -len(suffix)]
                changed = True
    return token.strip("_ ")


def get_weapon_name(raw_id: Optional[str]) -> str:
    """Shorthand for canonicalize(raw_id).name."""
    return canonicalize(raw_id).name


def get_weapon_category(raw_id: Optional[str]) -> WeaponCategory:
    """
    Get category for a raw weapon id.

    Examples:
        >>> get_weapon_category('WeapAK47_C')
        <WeaponCategory.AR: 'AR'>
        >>> get_weapon_category(None)
        <WeaponCategory.OTHER: 'Other'>
    """
    return canonicalize(raw_id).category


def get_category_display_name(category: WeaponCategory) -> str:
    """
    Get human-readable display name for category.

    Examples:
        >>> get_category_display_name(WeaponCategory.AR)
        'Assault Rifles'
    """
    return CATEGORY_DISPLAY_NAMES.get(category, str(category))


def get_weapons_by_category(category: WeaponCategory) -> List[str]:
    """Get raw ids of every catalog entry in a category."""
    return [raw_id for raw_id, (_, cat) in WEAPON_CATALOG.items() if cat == category]


def _catalog_info(catalog_id: str, raw_id: str) -> WeaponInfo:
    name, category = WEAPON_CATALOG[catalog_id]
    return WeaponInfo(
        name=name,
        category=category,
        raw_id=raw_id,
        needs_review=catalog_id in REVIEW_FLAGGED_WEAPON_IDS,
    )


# ============================================================================
# MODULE EXPORTS
# ============================================================================

__all__ = [
    "WeaponCategory",
    "WeaponInfo",
    "WEAPON_CATALOG",
    "REVIEW_FLAGGED_WEAPON_IDS",
    "NON_WEAPON_MARKERS",
    "CATEGORY_DISPLAY_NAMES",
    "UNKNOWN_WEAPON_NAME",
    "canonicalize",
    "strip_decorations",
    "get_weapon_name",
    "get_weapon_category",
    "get_category_display_name",
    "get_weapons_by_category",
]
