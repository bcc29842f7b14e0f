"""
Effect Resolver - Spell and item rules keyed by id.

This module handles:
- Spell casting (magic missile, mage hand, stinking cloud, glimpse)
- Persistent area effects, processed once per opponent turn
- Inventory items, instant and targeted

Every rule works on (RunState, Board, target?). Resolvers never deduct
mana; the caller does so after a successful cast.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import math
import random

from .state import (
    Board,
    ChainLink,
    Clue,
    ItemData,
    RunState,
    SpellData,
    SpellEffect,
    SpellTarget,
    TargetingMode,
    Tile,
    TileContent,
    TileOwner,
)
from .clues import ClueBonus, ClueGenerator
from .reveal import (
    DefeatOutcome,
    RevealOutcome,
    apply_item_effect,
    player_reveal,
    remove_item_from_inventory,
    resolve_monster_defeat,
    resolve_tile_content,
)
from ..content.items import FIREBALL_DAMAGE
from ..content.spells import STINKING_CLOUD_DAMAGE

logger = logging.getLogger(__name__)

ITEM_TARGETING = {
    "transmute": TargetingMode.TRANSMUTE,
    "detector": TargetingMode.DETECTOR,
    "key": TargetingMode.KEY,
    "staff-of-fireballs": TargetingMode.STAFF,
    "ring-of-true-seeing": TargetingMode.RING,
}


@dataclass
class EffectResult:
    """
    Result of resolving a spell or item.

    requires_targeting is set when a targeted effect was triggered without
    a target; targeting_mode says which mode the caller should enter.
    consumed says whether a targeted item was used up even though the
    target was invalid.
    """
    success: bool
    message: str = ""
    requires_targeting: bool = False
    targeting_mode: TargetingMode | None = None
    consumed: bool = False
    clue: Clue | None = None
    reveal: RevealOutcome | None = None
    defeat: DefeatOutcome | None = None
    damage: int = 0

    @classmethod
    def failure(cls, message: str, consumed: bool = False) -> EffectResult:
        return cls(success=False, message=message, consumed=consumed)


def can_cast_spell(spell: SpellData, run: RunState) -> tuple[bool, str | None]:
    """Whether the run can pay for and is allowed to cast a spell."""
    if run.character is not None and not run.character.trait.can_cast_spells:
        return False, f"{run.character.name} cannot cast spells"
    if run.mana < spell.mana_cost:
        return False, f"Not enough mana! Need {spell.mana_cost}, have {run.mana}"
    return True, None


def _spell_bonus(run: RunState) -> int:
    return run.character.trait.spell_damage_bonus if run.character else 0


def _damage_monster(run: RunState, board: Board, tile: Tile, damage: int, rng: random.Random) -> DefeatOutcome | None:
    monster = tile.monster
    monster.hp -= damage
    if monster.hp <= 0:
        monster.hp = 0
        return resolve_monster_defeat(run, board, tile, rng)
    return None


# =============================================================================
# Spells
# =============================================================================

@dataclass
class SpellResolver:
    rng: random.Random = field(default_factory=random.Random)
    clue_generator: ClueGenerator = field(default_factory=ClueGenerator)

    def cast(
        self,
        spell: SpellData,
        run: RunState,
        board: Board,
        x: int | None = None,
        y: int | None = None,
    ) -> EffectResult:
        """Resolve a spell. A targeted spell without a target asks for targeting."""
        if spell.target != SpellTarget.NONE and (x is None or y is None):
            return EffectResult(
                success=False,
                message=f"Choose a target for {spell.name}",
                requires_targeting=True,
                targeting_mode=TargetingMode.SPELL,
            )
        handler = self._get_handler(spell.spell_id)
        if handler is None:
            return EffectResult.failure(f"Unknown spell: {spell.spell_id}")
        return handler(spell, run, board, x, y)

    def _get_handler(self, spell_id: str):
        handlers = {
            "magic-missile": self._magic_missile,
            "mage-hand": self._mage_hand,
            "stinking-cloud": self._stinking_cloud,
            "glimpse": self._glimpse,
        }
        return handlers.get(spell_id)

    def _magic_missile(self, spell, run, board, x, y) -> EffectResult:
        tile = board.get_tile(x, y)
        if tile is None or tile.monster is None:
            return EffectResult.failure("Magic Missile needs a monster target")
        damage = math.ceil(run.current_level / 2) + _spell_bonus(run)
        name = tile.monster.name
        defeat = _damage_monster(run, board, tile, damage, self.rng)
        if defeat:
            message = f"Magic Missile defeated {name}"
        else:
            message = f"Magic Missile hit {name} for {damage} damage"
        return EffectResult(success=True, message=message, defeat=defeat, damage=damage)

    def _mage_hand(self, spell, run, board, x, y) -> EffectResult:
        tile = board.get_tile(x, y)
        if tile is None or tile.revealed or tile.is_empty:
            return EffectResult.failure("Mage Hand needs a hidden tile with something on it")
        if board.is_blocked(tile):
            return EffectResult.failure("Mage Hand cannot reach a chained tile")
        outcome = resolve_tile_content(run, board, tile, self.rng)
        message = "; ".join(outcome.messages) or "Mage Hand touched the tile"
        return EffectResult(success=True, message=message, reveal=outcome, defeat=outcome.defeat)

    def _stinking_cloud(self, spell, run, board, x, y) -> EffectResult:
        if not board.in_bounds(x, y):
            return EffectResult.failure("Stinking Cloud needs a tile on the board")
        damage = STINKING_CLOUD_DAMAGE + _spell_bonus(run)
        run.spell_effects.append(SpellEffect(spell_id=spell.spell_id, x=x, y=y, damage=damage))
        return EffectResult(success=True, message=f"A stinking cloud settles at ({x}, {y})", damage=damage)

    def _glimpse(self, spell, run, board, x, y) -> EffectResult:
        clue = self.clue_generator.generate(board, glimpse=True)
        return EffectResult(success=True, message="You glimpse the board", clue=clue)


def process_spell_effects(run: RunState, board: Board, rng: random.Random) -> list[str]:
    """
    Apply every persistent effect once.

    Damages monsters on unrevealed tiles in the 3x3 area, runs the defeat
    path for the ones that die, then ticks finite counters and prunes
    expired effects.
    """
    messages = []
    for effect in run.spell_effects:
        for tile in board.neighbours(effect.x, effect.y, include_center=True):
            if tile.revealed or tile.monster is None:
                continue
            name = tile.monster.name
            if _damage_monster(run, board, tile, effect.damage, rng):
                messages.append(f"{name} succumbed to the {effect.spell_id}")
        if effect.remaining_turns > 0:
            effect.remaining_turns -= 1
    run.spell_effects[:] = [e for e in run.spell_effects if e.remaining_turns != 0]
    return messages


# =============================================================================
# Items
# =============================================================================

@dataclass
class ItemResolver:
    rng: random.Random = field(default_factory=random.Random)
    clue_generator: ClueGenerator = field(default_factory=ClueGenerator)

    def use(self, run: RunState, board: Board, index: int) -> EffectResult:
        """Use the item in an inventory slot. Targeted items ask for targeting."""
        if not 0 <= index < len(run.inventory) or run.inventory[index] is None:
            return EffectResult.failure("No item in that slot")
        item = run.inventory[index]

        mode = ITEM_TARGETING.get(item.item_id)
        if mode is not None:
            if mode == TargetingMode.TRANSMUTE and run.character and not run.character.trait.can_use_transmute:
                return EffectResult.failure(f"{run.character.name} cannot use Transmute")
            return EffectResult(
                success=False,
                message=f"Choose a target for {item.name}",
                requires_targeting=True,
                targeting_mode=mode,
            )

        handler = self._get_instant_handler(item.item_id)
        if handler is not None:
            return handler(run, board, index, item)

        message = apply_item_effect(run, item)
        if message is None:
            return EffectResult.failure(f"{item.name} cannot be used")
        remove_item_from_inventory(run, index)
        return EffectResult(success=True, message=message)

    def _get_instant_handler(self, item_id: str):
        handlers = {
            "crystal-ball": self._crystal_ball,
            "clue": self._clue,
            "whistle": self._whistle,
        }
        return handlers.get(item_id)

    def _crystal_ball(self, run, board, index, item) -> EffectResult:
        candidates = [
            t for t in board.unrevealed_tiles(TileOwner.PLAYER)
            if not board.is_blocked(t)
        ]
        if not candidates:
            return EffectResult.failure("The crystal ball shows nothing")
        remove_item_from_inventory(run, index)
        tile = self.rng.choice(candidates)
        outcome = player_reveal(run, board, tile.x, tile.y, self.rng)
        return EffectResult(
            success=True,
            message=f"The crystal ball revealed ({tile.x}, {tile.y})",
            reveal=outcome,
            defeat=outcome.defeat if outcome else None,
        )

    def _clue(self, run, board, index, item) -> EffectResult:
        remove_item_from_inventory(run, index)
        clue = self.clue_generator.generate(board, ClueBonus.from_upgrades(run.upgrades))
        return EffectResult(success=True, message="You found a clue", clue=clue)

    def _whistle(self, run, board, index, item) -> EffectResult:
        remove_item_from_inventory(run, index)
        moved = scatter_monsters(board, self.rng)
        return EffectResult(success=True, message=f"The whistle scattered {moved} monsters")

    # -------------------------------------------------------------------------
    # Targeted items
    # -------------------------------------------------------------------------

    def apply_targeted(self, run: RunState, board: Board, mode: TargetingMode, index: int, x: int, y: int) -> EffectResult:
        """Resolve the targeted item in slot `index` on (x, y)."""
        item = run.inventory[index] if 0 <= index < len(run.inventory) else None
        if item is None or ITEM_TARGETING.get(item.item_id) != mode:
            return EffectResult.failure("The targeting item is no longer available")
        tile = board.get_tile(x, y)
        if tile is None:
            return EffectResult.failure("Target is off the board")
        handlers = {
            TargetingMode.TRANSMUTE: self._transmute,
            TargetingMode.DETECTOR: self._detector,
            TargetingMode.KEY: self._key,
            TargetingMode.STAFF: self._staff,
            TargetingMode.RING: self._ring,
        }
        return handlers[mode](run, board, index, item, tile)

    def _transmute(self, run, board, index, item, tile) -> EffectResult:
        remove_item_from_inventory(run, index)
        if tile.revealed or tile.owner == TileOwner.PLAYER:
            return EffectResult.failure("Transmute fizzled", consumed=True)
        board.set_owner(tile, TileOwner.PLAYER)
        refresh_detector_scans(board)
        return EffectResult(success=True, message=f"({tile.x}, {tile.y}) is now yours")

    def _detector(self, run, board, index, item, tile) -> EffectResult:
        remove_item_from_inventory(run, index)
        tile.detector_scan = board.scan_area(tile.x, tile.y)
        scan = tile.detector_scan
        return EffectResult(
            success=True,
            message=f"Scan: {scan.player} yours, {scan.opponent} theirs, {scan.neutral} neutral",
        )

    def _key(self, run, board, index, item, tile) -> EffectResult:
        remove_item_from_inventory(run, index)
        if tile.revealed or not board.is_blocked(tile):
            return EffectResult.failure("The key fits no lock there", consumed=True)
        unlock_tile(board, tile)
        return EffectResult(success=True, message=f"Unlocked ({tile.x}, {tile.y})")

    def _staff(self, run, board, index, item, tile) -> EffectResult:
        if tile.monster is None:
            return EffectResult.failure("The staff needs a monster target")
        name = tile.monster.name
        defeat = _damage_monster(run, board, tile, FIREBALL_DAMAGE, self.rng)
        _use_charge(run, index, item)
        if defeat:
            message = f"Fireball defeated {name}"
        else:
            message = f"Fireball hit {name} for {FIREBALL_DAMAGE} damage"
        return EffectResult(success=True, message=message, defeat=defeat, damage=FIREBALL_DAMAGE)

    def _ring(self, run, board, index, item, tile) -> EffectResult:
        if not tile.fogged:
            return EffectResult.failure("There is no fog there")
        tile.fogged = False
        _use_charge(run, index, item)
        return EffectResult(success=True, message=f"The fog lifts from ({tile.x}, {tile.y})")


def _use_charge(run: RunState, index: int, item: ItemData):
    item.uses = (item.uses or 0) - 1
    if item.uses <= 0:
        remove_item_from_inventory(run, index)


def refresh_detector_scans(board: Board):
    for tile in board.iter_tiles():
        if tile.detector_scan is not None:
            tile.detector_scan = board.scan_area(tile.x, tile.y)


def unlock_tile(board: Board, tile: Tile):
    """
    Remove the lock on a blocked tile and the key data that pointed at it.

    The middle tile of a three-tile chain keeps its own key role for the
    last tile; when the last tile is unlocked only the middle tile's
    secondary link is stripped.
    """
    link = tile.chain
    key = board.get_tile(link.required_x, link.required_y)
    if key is not None and key.chain is not None:
        if key.chain.secondary_chain_id == link.chain_id:
            key.chain.secondary_chain_id = None
            key.chain.secondary_x = None
            key.chain.secondary_y = None
        elif key.chain.chain_id == link.chain_id and not key.chain.is_blocked:
            key.chain = None

    if link.has_secondary_key:
        tile.chain = ChainLink(
            link.secondary_chain_id,
            is_blocked=False,
            required_x=link.secondary_x,
            required_y=link.secondary_y,
        )
    else:
        tile.chain = None


def scatter_monsters(board: Board, rng: random.Random) -> int:
    """Move every hidden monster to a random hidden empty tile."""
    monsters = []
    for tile in board.unrevealed_tiles():
        if tile.content == TileContent.MONSTER:
            monsters.append(tile.payload)
            tile.clear_content()
    destinations = [t for t in board.unrevealed_tiles() if t.is_empty]
    for tile, monster in zip(rng.sample(destinations, min(len(monsters), len(destinations))), monsters):
        tile.place(TileContent.MONSTER, monster)
    return len(monsters)
