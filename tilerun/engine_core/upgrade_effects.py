"""
Upgrade Effects - Applying permanent upgrades and their passive triggers.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random

from .state import Board, RunState, Tile, TileContent, UpgradeChoice
from ..content import upgrades as catalog
from ..content.items import create_item

logger = logging.getLogger(__name__)

UPGRADE_CHOICE_SIZE = 3


@dataclass
class UpgradeResult:
    success: bool
    message: str


def apply_upgrade(run: RunState, upgrade_id: str) -> UpgradeResult:
    """
    Record an upgrade and apply its stat changes.

    Fails without mutation when the upgrade is unknown, blocked for the
    character, at its limit, or non-repeatable and already owned.
    """
    error = catalog.availability_error(upgrade_id, run.upgrades, run.character)
    if error:
        return UpgradeResult(False, error)

    definition = catalog.get_upgrade(upgrade_id)
    trait = run.character.trait if run.character else None
    stat_bonus = trait.upgrade_stat_bonus.get(upgrade_id, 0) if trait else 0
    hp_bonus = trait.upgrade_max_hp_bonus.get(upgrade_id, 0) if trait else 0

    run.upgrades.append(upgrade_id)

    if upgrade_id == "attack":
        run.attack += catalog.ATTACK_BONUS + stat_bonus
    elif upgrade_id == "defense":
        run.defense += catalog.DEFENSE_BONUS + stat_bonus
    elif upgrade_id == "healthy":
        hp_bonus += catalog.HEALTHY_BONUS
    elif upgrade_id == "income":
        run.loot += catalog.INCOME_BONUS
    elif upgrade_id == "bag":
        run.inventory.extend([None] * catalog.BAG_SLOTS)
    elif upgrade_id == "meditation":
        run.max_mana += catalog.MEDITATION_MANA
        run.mana += catalog.MEDITATION_MANA

    if hp_bonus:
        run.max_hp += hp_bonus
        run.hp += hp_bonus

    logger.info("Upgrade applied: %s", upgrade_id)
    return UpgradeResult(True, f"Gained {definition.name} upgrade")


def generate_upgrade_choice(
    run: RunState,
    rng: random.Random,
    size: int = UPGRADE_CHOICE_SIZE,
) -> UpgradeChoice | None:
    """Offer up to `size` random upgrades the run can still take."""
    available = catalog.available_upgrades(run.upgrades, run.character)
    if not available:
        return None
    picks = rng.sample(available, min(size, len(available)))
    return UpgradeChoice(options=[p.create() for p in picks])


def place_rich_chest(board: Board, x: int, y: int, rng: random.Random) -> Tile | None:
    """Rich: drop a treasure chest on a random adjacent unrevealed empty tile."""
    candidates = [
        t for t in board.neighbours(x, y)
        if not t.revealed and t.is_empty
    ]
    if not candidates:
        return None
    tile = rng.choice(candidates)
    tile.place(TileContent.ITEM, create_item("chest"))
    logger.debug("Rich placed a chest at (%d, %d)", tile.x, tile.y)
    return tile
