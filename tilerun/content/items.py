"""
Items and Monsters - Catalog definitions.

Item structure:
- id, name, description
- immediate: applied on pickup instead of stored in the inventory
- max_uses: multi-use items start with full charges

Monster structure:
- Tier order matters: level L draws from the first min((L+1)//2, 10) kinds
"""

from __future__ import annotations
from dataclasses import dataclass
import random

from ..engine_core.state import ItemData, MonsterData


# Effect magnitudes
FIRST_AID_HEAL = 10
HEALTH_POTION_HEAL = 8
MANA_POTION_RESTORE = 3
CHEST_GOLD = 2
WARD_DEFENSE = 4
BLAZE_ATTACK = 5
FIREBALL_DAMAGE = 6


@dataclass
class ItemDefinition:
    """Catalog entry. create() returns a fresh instance with full charges."""
    id: str
    name: str
    description: str
    immediate: bool = False
    max_uses: int | None = None

    def create(self) -> ItemData:
        return ItemData(
            item_id=self.id,
            name=self.name,
            description=self.description,
            immediate=self.immediate,
            uses=self.max_uses,
            max_uses=self.max_uses,
        )


@dataclass
class MonsterDefinition:
    id: str
    name: str
    attack: int
    defense: int
    hp: int

    def spawn(self, level: int) -> MonsterData:
        return MonsterData(
            monster_id=f"{self.id}-{level}",
            name=self.name,
            attack=self.attack,
            defense=self.defense,
            hp=self.hp,
        )


# ============================================================================
# Items
# ============================================================================

FIRST_AID = ItemDefinition("first-aid", "First Aid", f"Heal {FIRST_AID_HEAL} HP", immediate=True)
CHEST = ItemDefinition("chest", "Treasure Chest", f"Gain {CHEST_GOLD} gold", immediate=True)
HEALTH_POTION = ItemDefinition("health-potion", "Health Potion", f"Heal {HEALTH_POTION_HEAL} HP")
MANA_POTION = ItemDefinition("mana-potion", "Mana Potion", f"Restore {MANA_POTION_RESTORE} mana")
CRYSTAL_BALL = ItemDefinition("crystal-ball", "Crystal Ball", "Reveal a random tile of yours")
DETECTOR = ItemDefinition("detector", "Detector", "Scan a 3x3 area for tile owners")
TRANSMUTE = ItemDefinition("transmute", "Transmute", "Turn a tile into one of yours")
WARD = ItemDefinition("ward", "Ward", f"+{WARD_DEFENSE} defense for your next fight")
BLAZE = ItemDefinition("blaze", "Blaze", f"+{BLAZE_ATTACK} attack for your next fight")
WHISTLE = ItemDefinition("whistle", "Whistle", "Scatter all hidden monsters")
KEY = ItemDefinition("key", "Key", "Unlock a chained tile")
PROTECTION = ItemDefinition("protection", "Protection", "Your next reveal keeps your turn")
CLUE = ItemDefinition("clue", "Clue", "Receive an extra clue")
STAFF_OF_FIREBALLS = ItemDefinition(
    "staff-of-fireballs", "Staff of Fireballs",
    f"Deal {FIREBALL_DAMAGE} damage to a monster", max_uses=3,
)
RING_OF_TRUE_SEEING = ItemDefinition(
    "ring-of-true-seeing", "Ring of True Seeing", "Clear fog from a tile", max_uses=6,
)

ALL_ITEMS: list[ItemDefinition] = [
    FIRST_AID,
    CHEST,
    HEALTH_POTION,
    MANA_POTION,
    CRYSTAL_BALL,
    DETECTOR,
    TRANSMUTE,
    WARD,
    BLAZE,
    WHISTLE,
    KEY,
    PROTECTION,
    CLUE,
    STAFF_OF_FIREBALLS,
    RING_OF_TRUE_SEEING,
]

SHOP_ITEMS: list[ItemDefinition] = [
    FIRST_AID,
    MANA_POTION,
    CRYSTAL_BALL,
    DETECTOR,
    TRANSMUTE,
    WARD,
    BLAZE,
    WHISTLE,
    KEY,
    PROTECTION,
    CLUE,
]

# Items that apply themselves when there is no room to store them
AUTO_APPLY_WHEN_FULL = {"health-potion", "mana-potion", "ward", "blaze"}

_ITEMS_BY_ID = {item.id: item for item in ALL_ITEMS}


def get_item(item_id: str) -> ItemDefinition:
    """Look up an item definition. Raises ValueError for unknown ids."""
    try:
        return _ITEMS_BY_ID[item_id]
    except KeyError:
        raise ValueError(f"Unknown item: {item_id}")


def create_item(item_id: str) -> ItemData:
    return get_item(item_id).create()


# ============================================================================
# Monsters
# ============================================================================

MONSTERS: list[MonsterDefinition] = [
    MonsterDefinition("rat", "Rat", 3, 0, 6),
    MonsterDefinition("spider", "Spider", 4, 1, 8),
    MonsterDefinition("goblin", "Goblin", 5, 1, 11),
    MonsterDefinition("orc", "Orc", 6, 2, 16),
    MonsterDefinition("demon", "Demon", 8, 3, 23),
    MonsterDefinition("skeleton", "Skeleton", 10, 2, 26),
    MonsterDefinition("dragon", "Dragon", 15, 4, 42),
    MonsterDefinition("lich", "Lich", 18, 5, 48),
    MonsterDefinition("titan", "Titan", 22, 6, 59),
    MonsterDefinition("void-lord", "Void Lord", 28, 8, 70),
]


def monster_pool(level: int) -> list[MonsterDefinition]:
    """Monster kinds available at a level."""
    return MONSTERS[:max(1, min((level + 1) // 2, len(MONSTERS)))]


def create_monster(level: int, rng: random.Random) -> MonsterData:
    """Spawn a random monster from the level's pool."""
    return rng.choice(monster_pool(level)).spawn(level)


def guaranteed_new_monster(level: int, seen: set[str] | None = None) -> MonsterData | None:
    """
    The monster kind this level introduces, if the run has not met it yet.

    Falls back to the first unseen kind in the level's pool. Returns None
    when every kind in the pool has been seen.
    """
    seen = seen or set()
    pool = monster_pool(level)
    newest = pool[-1]
    if newest.id not in seen:
        return newest.spawn(level)
    for definition in pool:
        if definition.id not in seen:
            return definition.spawn(level)
    return None
