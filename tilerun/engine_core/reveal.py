"""
Reveal and Combat - The single reveal operation and everything it triggers.

Order of a player reveal:
1. Reject out-of-bounds, revealed and chained tiles
2. Note whether protection was active
3. Mark the tile revealed and move the owner's counter
4. Evaluate board status
5. Opponent tile: gain loot as gold
6. Neutral tile: Resting heal
7. Resolve content (upgrade, item, gold, trap, shop, monster)
8. Consume one protection charge
9. Decide whether the player keeps the turn

Opponent reveals only perform steps 1, 3 and 4.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .state import (
    Annotation,
    Board,
    BoardStatus,
    ItemData,
    MonsterData,
    RunState,
    Tile,
    TileContent,
    TileOwner,
)
from .trophies import steal_gold_trophy
from .upgrade_effects import place_rich_chest
from ..content import items as catalog
from ..content.upgrades import RESTING_HEAL

logger = logging.getLogger(__name__)

ROUND_CEILING = 1000


# =============================================================================
# Reveal
# =============================================================================

def reveal_tile(board: Board, x: int, y: int, revealed_by: TileOwner) -> bool:
    """
    Reveal a tile and move the owner's reveal counter.

    Returns False without mutating anything when the tile is out of
    bounds, already revealed or chained.
    """
    tile = board.get_tile(x, y)
    if tile is None or tile.revealed or board.is_blocked(tile):
        return False

    tile.revealed = True
    tile.revealed_by = revealed_by
    tile.annotation = Annotation.NONE
    if tile.owner == TileOwner.PLAYER:
        board.player_tiles_revealed += 1
    elif tile.owner == TileOwner.OPPONENT:
        board.opponent_tiles_revealed += 1
    return True


def check_board_status(board: Board) -> BoardStatus:
    """Won takes precedence over lost when both hold."""
    if board.player_tiles_revealed >= board.player_tiles_total:
        return BoardStatus.WON
    if board.opponent_tiles_revealed >= board.opponent_tiles_total:
        return BoardStatus.LOST
    return BoardStatus.IN_PROGRESS


# =============================================================================
# Combat
# =============================================================================

@dataclass
class CombatResult:
    damage: int
    rounds: int
    monster_defeated: bool
    ceiling_hit: bool = False


def fight_monster(run: RunState, monster: MonsterData) -> CombatResult:
    """
    Simulate a fight to the monster's death.

    The monster strikes first each round for max(1, atk - defense), then
    the player for max(1, attack - def). A character with first strike
    swings first and takes nothing if that blow kills. Ward and blaze are
    added for this fight and then consumed. Player HP is not touched; the
    caller applies the returned damage once.
    """
    buffs = run.temporary_buffs
    attack = run.attack + buffs.blaze
    defense = run.defense + buffs.ward
    buffs.blaze = 0
    buffs.ward = 0

    attacks_first = bool(run.character and run.character.trait.attacks_first)
    player_hit = max(1, attack - monster.defense)
    monster_hit = max(1, monster.attack - defense)

    monster_hp = monster.hp
    damage = 0
    rounds = 0
    while monster_hp > 0 and rounds < ROUND_CEILING:
        rounds += 1
        if attacks_first:
            monster_hp -= player_hit
            if monster_hp <= 0:
                break
            damage += monster_hit
        else:
            damage += monster_hit
            monster_hp -= player_hit

    ceiling_hit = monster_hp > 0
    if ceiling_hit:
        logger.warning(
            "Combat with %s stopped at the %d round ceiling", monster.monster_id, ROUND_CEILING
        )
    monster.hp = max(0, monster_hp)
    return CombatResult(
        damage=damage,
        rounds=rounds,
        monster_defeated=not ceiling_hit,
        ceiling_hit=ceiling_hit,
    )


@dataclass
class DefeatOutcome:
    gold_gained: int
    chest_at: tuple[int, int] | None = None


def resolve_monster_defeat(run: RunState, board: Board, tile: Tile, rng: random.Random) -> DefeatOutcome:
    """Shared defeat path for melee, spells and items."""
    name = tile.monster.name if tile.monster else "monster"
    tile.clear_content()
    run.gold += run.loot
    outcome = DefeatOutcome(gold_gained=run.loot)
    if run.has_upgrade("rich"):
        chest = place_rich_chest(board, tile.x, tile.y, rng)
        if chest is not None:
            outcome.chest_at = chest.position
    logger.info("Defeated %s at (%d, %d)", name, tile.x, tile.y)
    return outcome


def apply_player_damage(run: RunState, amount: int, source: str) -> tuple[bool, bool]:
    """
    Apply damage that may be lethal.

    A lethal hit steals a gold trophy instead when one is available and
    leaves the player at 1 HP. Returns (died, trophy_stolen).
    """
    if run.hp - amount > 0:
        run.take_damage(amount)
        return False, False
    if steal_gold_trophy(run.trophies, source):
        run.hp = 1
        return False, True
    run.hp = 0
    return True, False


# =============================================================================
# Items
# =============================================================================

def _item_bonus(run: RunState, item_id: str) -> int:
    if run.character is None:
        return 0
    return run.character.trait.item_bonus.get(item_id, 0)


def apply_item_effect(run: RunState, item: ItemData) -> str | None:
    """
    Apply a self-contained item effect.

    Returns a message, or None when the item has no self-contained effect
    (targeted or board-level items are resolved elsewhere).
    """
    item_id = item.item_id
    bonus = _item_bonus(run, item_id)
    if item_id == "first-aid":
        gained = run.heal(catalog.FIRST_AID_HEAL + bonus)
        return f"Healed {gained} HP"
    if item_id == "health-potion":
        gained = run.heal(catalog.HEALTH_POTION_HEAL + bonus)
        return f"Healed {gained} HP"
    if item_id == "mana-potion":
        gained = run.restore_mana(catalog.MANA_POTION_RESTORE + bonus)
        return f"Restored {gained} mana"
    if item_id == "chest":
        run.gold += catalog.CHEST_GOLD + bonus
        return f"Found {catalog.CHEST_GOLD + bonus} gold in a chest"
    if item_id == "ward":
        run.temporary_buffs.ward += catalog.WARD_DEFENSE + bonus
        return f"+{catalog.WARD_DEFENSE + bonus} defense for the next fight"
    if item_id == "blaze":
        run.temporary_buffs.blaze += catalog.BLAZE_ATTACK + bonus
        return f"+{catalog.BLAZE_ATTACK + bonus} attack for the next fight"
    if item_id == "protection":
        run.temporary_buffs.protection += 1
        return "Protected: your next reveal keeps your turn"
    return None


def add_item_to_inventory(run: RunState, item: ItemData) -> bool:
    slot = run.first_empty_slot()
    if slot is None:
        return False
    run.inventory[slot] = item
    return True


def remove_item_from_inventory(run: RunState, index: int) -> ItemData | None:
    if not 0 <= index < len(run.inventory):
        return None
    item = run.inventory[index]
    run.inventory[index] = None
    return item


def store_item(run: RunState, item: ItemData) -> str:
    """Put an item in the inventory; when full, apply it if possible, else lose it."""
    if add_item_to_inventory(run, item):
        return f"Picked up {item.name}"
    if item.item_id in catalog.AUTO_APPLY_WHEN_FULL:
        message = apply_item_effect(run, item)
        return f"Inventory full, used {item.name}: {message}"
    logger.warning("Inventory full, %s was lost", item.item_id)
    return f"Inventory full, {item.name} was lost"


# =============================================================================
# Content resolution
# =============================================================================

@dataclass
class RevealOutcome:
    """What a reveal (or a remote interaction) triggered."""
    messages: list[str] = field(default_factory=list)
    board_status: BoardStatus = BoardStatus.IN_PROGRESS
    keeps_turn: bool = True
    upgrade_choice: bool = False
    shop_opened: bool = False
    player_died: bool = False
    trophy_stolen: bool = False
    combat: CombatResult | None = None
    defeat: DefeatOutcome | None = None


def resolve_tile_content(
    run: RunState,
    board: Board,
    tile: Tile,
    rng: random.Random,
    outcome: RevealOutcome | None = None,
) -> RevealOutcome:
    """Resolve a tile's content for the player."""
    outcome = outcome or RevealOutcome()
    content = tile.content

    if content == TileContent.PERMANENT_UPGRADE:
        tile.clear_content()
        outcome.upgrade_choice = True
        outcome.messages.append("Found a permanent upgrade")

    elif content == TileContent.ITEM:
        item = tile.payload
        tile.clear_content()
        if item.immediate:
            outcome.messages.append(apply_item_effect(run, item) or f"Used {item.name}")
        else:
            outcome.messages.append(store_item(run, item))

    elif content == TileContent.GOLD:
        run.gold += tile.payload.amount
        outcome.messages.append(f"Found {tile.payload.amount} gold")
        tile.clear_content()

    elif content == TileContent.TRAP:
        died, stolen = apply_player_damage(run, tile.payload.damage, "Trap")
        outcome.player_died = died
        outcome.trophy_stolen = stolen
        outcome.messages.append(f"A trap dealt {tile.payload.damage} damage")

    elif content == TileContent.SHOP:
        outcome.shop_opened = True
        outcome.messages.append("Found a shop")

    elif content == TileContent.MONSTER:
        _resolve_fight(run, board, tile, rng, outcome)

    return outcome


def _resolve_fight(run: RunState, board: Board, tile: Tile, rng: random.Random, outcome: RevealOutcome):
    monster = tile.monster
    combat = fight_monster(run, monster)
    outcome.combat = combat
    died, stolen = apply_player_damage(run, combat.damage, monster.name)
    outcome.trophy_stolen = stolen
    if died:
        outcome.player_died = True
        outcome.messages.append(f"Killed by {monster.name}")
        logger.info("Player killed by %s", monster.monster_id)
        return
    outcome.messages.append(f"Fought {monster.name}: took {combat.damage} damage")
    if stolen:
        outcome.messages.append(f"{monster.name} stole a gold trophy")
    if combat.monster_defeated:
        outcome.defeat = resolve_monster_defeat(run, board, tile, rng)


def player_reveal(run: RunState, board: Board, x: int, y: int, rng: random.Random) -> RevealOutcome | None:
    """
    Reveal a tile for the player and resolve everything it triggers.

    Returns None when the reveal was rejected.
    """
    tile = board.get_tile(x, y)
    protected = run.temporary_buffs.protection > 0
    if not reveal_tile(board, x, y, TileOwner.PLAYER):
        return None

    outcome = RevealOutcome()
    outcome.board_status = check_board_status(board)

    if tile.owner == TileOwner.OPPONENT and run.loot:
        run.gold += run.loot
        outcome.messages.append(f"Looted {run.loot} gold")

    if tile.owner == TileOwner.NEUTRAL:
        resting = run.upgrade_count("resting")
        if resting:
            bonus = run.character.trait.resting_bonus if run.character else 0
            gained = run.heal(resting * RESTING_HEAL + bonus)
            if gained:
                outcome.messages.append(f"Rested for {gained} HP")

    resolve_tile_content(run, board, tile, rng, outcome)

    if protected:
        run.temporary_buffs.protection -= 1

    outcome.keeps_turn = (
        outcome.board_status != BoardStatus.IN_PROGRESS
        or tile.owner == TileOwner.PLAYER
        or protected
    )
    return outcome
