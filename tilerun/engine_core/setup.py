"""
Run Setup - Creates the run state for a chosen character.

This module handles:
- Base stats for a new run
- Starting upgrades (applied through the normal upgrade rules)
- Starting items
- Learning spells at character milestones
"""

from __future__ import annotations
import logging
import random

from .state import RunState, SpellData
from .reveal import store_item
from .upgrade_effects import apply_upgrade
from ..content.characters import Character
from ..content.items import create_item
from ..content.levels import MAX_LEVEL
from ..content.spells import ALL_SPELLS, get_spell

logger = logging.getLogger(__name__)

MANA_PER_SPELL = 2


def create_run(character: Character | None = None, max_level: int = MAX_LEVEL) -> RunState:
    """
    Create a run for a character.

    Starting upgrades go through apply_upgrade so character bonuses and
    limits apply to them as to any later upgrade.
    """
    run = RunState(max_level=max_level, character=character)
    if character is None:
        return run

    for upgrade_id in character.starting_upgrades:
        result = apply_upgrade(run, upgrade_id)
        if not result.success:
            logger.warning("Starting upgrade %s rejected: %s", upgrade_id, result.message)
    for item_id in character.starting_items:
        store_item(run, create_item(item_id))

    logger.info("Created run for %s", character.name)
    return run


def learns_spell_at(run: RunState, level: int) -> bool:
    if run.character is None:
        return False
    trait = run.character.trait
    return trait.can_cast_spells and level in trait.spell_levels


def learn_random_spell(run: RunState, rng: random.Random) -> SpellData | None:
    """Teach the run a spell it does not know yet. Each spell adds mana capacity."""
    known = {spell.spell_id for spell in run.spells}
    unknown = [spell for spell in ALL_SPELLS if spell.spell_id not in known]
    if not unknown:
        return None
    spell = get_spell(rng.choice(unknown).spell_id)
    run.spells.append(spell)
    run.max_mana += MANA_PER_SPELL
    run.mana += MANA_PER_SPELL
    logger.info("Learned spell %s", spell.spell_id)
    return spell
