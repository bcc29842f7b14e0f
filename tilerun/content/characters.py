"""
Characters - Starting kits and rule modifiers.

A character adjusts:
- Starting upgrades and items
- Which upgrades may be taken (blocks, limits, extra repeatables)
- Numeric bonuses (stat upgrades, item effects, spell damage, resting)
- Special rules (first strike, no spellcasting, shop on every level)
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class CharacterTrait:
    """Rule modifiers for a character. Defaults are the neutral rules."""
    blocked_upgrades: set[str] = field(default_factory=set)
    upgrade_limits: dict[str, int] = field(default_factory=dict)
    extra_repeatable: set[str] = field(default_factory=set)

    # Extra points granted on top of a stat upgrade
    upgrade_stat_bonus: dict[str, int] = field(default_factory=dict)
    upgrade_max_hp_bonus: dict[str, int] = field(default_factory=dict)

    # Extra magnitude on item effects, keyed by item id
    item_bonus: dict[str, int] = field(default_factory=dict)
    resting_bonus: int = 0

    can_cast_spells: bool = True
    can_use_transmute: bool = True
    spell_damage_bonus: int = 0
    spell_levels: tuple[int, ...] = ()

    attacks_first: bool = False

    shop_every_level: bool = False
    # (from_level, surcharge) tiers, highest matching tier wins
    shop_surcharge: tuple[tuple[int, int], ...] = ()


@dataclass
class Character:
    id: str
    name: str
    description: str = ""
    starting_upgrades: list[str] = field(default_factory=list)
    starting_items: list[str] = field(default_factory=list)
    trait: CharacterTrait = field(default_factory=CharacterTrait)


# ============================================================================
# Predefined Characters
# ============================================================================

FIGHTER = Character(
    id="fighter",
    name="Fighter",
    description="Hits harder with every attack and defense upgrade, but cannot cast spells",
    starting_upgrades=["attack", "defense", "healthy"],
    starting_items=["protection"],
    trait=CharacterTrait(
        upgrade_stat_bonus={"attack": 1, "defense": 1},
        item_bonus={"ward": 1, "blaze": 1},
        can_cast_spells=False,
    ),
)

CLERIC = Character(
    id="cleric",
    name="Cleric",
    description="Heals more from rest and potions, starts well protected",
    starting_upgrades=["resting", "defense"],
    starting_items=["protection", "protection", "protection"],
    trait=CharacterTrait(
        blocked_upgrades={"rich"},
        upgrade_limits={"income": 1},
        upgrade_max_hp_bonus={"resting": 1},
        item_bonus={"health-potion": 1},
        resting_bonus=1,
    ),
)

WIZARD = Character(
    id="wizard",
    name="Wizard",
    description="Stronger spells and new ones as the run goes deeper",
    starting_upgrades=["wisdom"],
    starting_items=["staff-of-fireballs", "transmute", "transmute", "transmute"],
    trait=CharacterTrait(
        blocked_upgrades={"defense"},
        spell_damage_bonus=1,
        spell_levels=(6, 11, 16),
    ),
)

RANGER = Character(
    id="ranger",
    name="Ranger",
    description="Strikes first and takes no damage from a one-blow kill",
    starting_upgrades=["attack", "attack", "quick"],
    starting_items=["protection"],
    trait=CharacterTrait(
        blocked_upgrades={"resting"},
        attacks_first=True,
    ),
)

TOURIST = Character(
    id="tourist",
    name="Tourist",
    description="Finds a shop on every level but pays tourist prices",
    starting_upgrades=["rich", "income", "traders"],
    starting_items=["protection"],
    trait=CharacterTrait(
        shop_every_level=True,
        shop_surcharge=((1, 2), (6, 3), (11, 4), (16, 5)),
    ),
)

BELOW = Character(
    id="below",
    name="Below",
    description="Sees more in every clue, cannot transmute",
    starting_upgrades=["right-hand", "left-hand", "bag"],
    starting_items=["protection"],
    trait=CharacterTrait(
        extra_repeatable={"left-hand", "right-hand"},
        can_use_transmute=False,
    ),
)


CHARACTERS: dict[str, Character] = {
    "fighter": FIGHTER,
    "cleric": CLERIC,
    "wizard": WIZARD,
    "ranger": RANGER,
    "tourist": TOURIST,
    "below": BELOW,
}


def get_character(character_id: str) -> Character:
    """Look up a character. Raises ValueError for unknown ids."""
    try:
        return CHARACTERS[character_id]
    except KeyError:
        raise ValueError(f"Unknown character: {character_id}")


def modify_shop_price(character: Character | None, cost: int, level: int) -> int:
    """Apply a character's shop surcharge for the given level."""
    if character is None:
        return cost
    surcharge = 0
    for from_level, amount in character.trait.shop_surcharge:
        if level >= from_level:
            surcharge = amount
    return cost + surcharge
