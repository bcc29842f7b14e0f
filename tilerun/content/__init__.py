"""
Content module - Catalogs for the run.

Provides:
- Items and monsters
- Spells
- Permanent upgrades
- Characters and their traits
- The level table
"""

from .items import (
    ItemDefinition,
    MonsterDefinition,
    ALL_ITEMS,
    SHOP_ITEMS,
    MONSTERS,
    get_item,
    create_item,
    create_monster,
    guaranteed_new_monster,
)
from .spells import ALL_SPELLS, get_spell
from .upgrades import ALL_UPGRADES, UpgradeDefinition, get_upgrade, available_upgrades
from .characters import Character, CharacterTrait, CHARACTERS, get_character
from .levels import LevelSpec, LEVEL_SPECS, MAX_LEVEL, get_level_spec

__all__ = [
    "ItemDefinition",
    "MonsterDefinition",
    "ALL_ITEMS",
    "SHOP_ITEMS",
    "MONSTERS",
    "get_item",
    "create_item",
    "create_monster",
    "guaranteed_new_monster",
    "ALL_SPELLS",
    "get_spell",
    "ALL_UPGRADES",
    "UpgradeDefinition",
    "get_upgrade",
    "available_upgrades",
    "Character",
    "CharacterTrait",
    "CHARACTERS",
    "get_character",
    "LevelSpec",
    "LEVEL_SPECS",
    "MAX_LEVEL",
    "get_level_spec",
]
