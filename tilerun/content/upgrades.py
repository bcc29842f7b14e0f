"""
Permanent upgrade definitions.

Stat upgrades change RunState numbers when applied. Passive upgrades are
only recorded and consulted by the rules that care about them (Quick at
board start, Rich on monster defeat, Resting on neutral reveals, etc.).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.state import UpgradeData

if TYPE_CHECKING:
    from .characters import Character


@dataclass
class UpgradeDefinition:
    id: str
    name: str
    description: str
    repeatable: bool = False

    def create(self) -> UpgradeData:
        return UpgradeData(
            upgrade_id=self.id,
            name=self.name,
            description=self.description,
            repeatable=self.repeatable,
        )


# Stat magnitudes
ATTACK_BONUS = 2
DEFENSE_BONUS = 1
HEALTHY_BONUS = 25
INCOME_BONUS = 1
BAG_SLOTS = 2
MEDITATION_MANA = 2
RESTING_HEAL = 3


ALL_UPGRADES: list[UpgradeDefinition] = [
    UpgradeDefinition("attack", "Attack", f"+{ATTACK_BONUS} attack", repeatable=True),
    UpgradeDefinition("defense", "Defense", f"+{DEFENSE_BONUS} defense", repeatable=True),
    UpgradeDefinition("healthy", "Healthy", f"+{HEALTHY_BONUS} max HP", repeatable=True),
    UpgradeDefinition("income", "Income", f"+{INCOME_BONUS} loot per opponent tile and kill", repeatable=True),
    UpgradeDefinition("quick", "Quick", "Reveal one of your tiles at the start of each board"),
    UpgradeDefinition("rich", "Rich", "Defeated monsters may leave a treasure chest"),
    UpgradeDefinition("wisdom", "Wisdom", "Scan a random tile at the start of each board"),
    UpgradeDefinition("traders", "Traders", "One more item and one more upgrade offer in shops", repeatable=True),
    UpgradeDefinition("left-hand", "Left Hand", "Clue hand A shows one more of your tiles"),
    UpgradeDefinition("right-hand", "Right Hand", "Clue hand B shows one more of your tiles"),
    UpgradeDefinition("resting", "Resting", f"Heal {RESTING_HEAL} HP on revealing a neutral tile", repeatable=True),
    UpgradeDefinition("bag", "Bag", f"+{BAG_SLOTS} inventory slots", repeatable=True),
    UpgradeDefinition("meditation", "Meditation", f"+{MEDITATION_MANA} max mana", repeatable=True),
]

_UPGRADES_BY_ID = {upgrade.id: upgrade for upgrade in ALL_UPGRADES}


def get_upgrade(upgrade_id: str) -> UpgradeDefinition | None:
    return _UPGRADES_BY_ID.get(upgrade_id)


def is_repeatable(upgrade_id: str, character: Character | None = None) -> bool:
    definition = get_upgrade(upgrade_id)
    if definition is None:
        return False
    if character is not None and upgrade_id in character.trait.extra_repeatable:
        return True
    return definition.repeatable


def availability_error(
    upgrade_id: str,
    owned: list[str],
    character: Character | None = None,
) -> str | None:
    """
    Why an upgrade cannot be taken, or None if it can.

    Checks character blocks, character limits and repeatability.
    """
    definition = get_upgrade(upgrade_id)
    if definition is None:
        return "Unknown upgrade"
    if character is not None:
        if upgrade_id in character.trait.blocked_upgrades:
            return f"{definition.name} upgrade is not available for {character.name}"
        limit = character.trait.upgrade_limits.get(upgrade_id)
        if limit is not None and owned.count(upgrade_id) >= limit:
            return f"{character.name} can only have {limit} {definition.name} upgrade"
    if upgrade_id in owned and not is_repeatable(upgrade_id, character):
        return f"Already have {definition.name} upgrade (non-repeatable)"
    return None


def available_upgrades(
    owned: list[str],
    character: Character | None = None,
) -> list[UpgradeDefinition]:
    """All upgrades that can still be taken."""
    return [
        upgrade for upgrade in ALL_UPGRADES
        if availability_error(upgrade.id, owned, character) is None
    ]
