"""
Spell definitions.
"""

from __future__ import annotations
from dataclasses import replace

from ..engine_core.state import SpellData, SpellTarget


STINKING_CLOUD_DAMAGE = 2

MAGIC_MISSILE = SpellData(
    spell_id="magic-missile",
    name="Magic Missile",
    description="Deal damage equal to half the level (rounded up) to a monster",
    mana_cost=1,
    target=SpellTarget.MONSTER,
)
MAGE_HAND = SpellData(
    spell_id="mage-hand",
    name="Mage Hand",
    description="Interact with any tile as if you revealed it",
    mana_cost=2,
    target=SpellTarget.TILE,
)
STINKING_CLOUD = SpellData(
    spell_id="stinking-cloud",
    name="Stinking Cloud",
    description=f"Deal {STINKING_CLOUD_DAMAGE} damage to monsters around a tile every turn",
    mana_cost=2,
    target=SpellTarget.TILE,
)
GLIMPSE = SpellData(
    spell_id="glimpse",
    name="Glimpse",
    description="Receive a small clue",
    mana_cost=2,
    target=SpellTarget.NONE,
)

ALL_SPELLS: list[SpellData] = [MAGIC_MISSILE, MAGE_HAND, STINKING_CLOUD, GLIMPSE]

_SPELLS_BY_ID = {spell.spell_id: spell for spell in ALL_SPELLS}


def get_spell(spell_id: str) -> SpellData:
    """Return a fresh copy of a spell. Raises ValueError for unknown ids."""
    try:
        return replace(_SPELLS_BY_ID[spell_id])
    except KeyError:
        raise ValueError(f"Unknown spell: {spell_id}")
