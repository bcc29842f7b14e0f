"""
Board Generator - Builds a fresh board for a level.

Steps:
1. Allocate ownership (player/opponent counts from the level ratios)
2. Create chains (two-tile locks, some three-tile locks)
3. Place permanent upgrades, preferring chained tiles
4. Place monsters (player tiles weighted 4:1), the level's new monster first
5. Place gold, items, shop, protections, clues, staffs, rings
6. Fog tiles on deeper levels

Placement never overwrites content. A unit that cannot find a free tile
within the attempt budget is dropped and logged.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Iterable
import logging
import random

from .state import Board, ChainLink, GoldData, Tile, TileContent, TileOwner, TilePayload
from ..content.characters import Character
from ..content.items import create_item, create_monster, guaranteed_new_monster
from ..content.levels import LevelSpec, fog_tile_count
from ..content.upgrades import available_upgrades

logger = logging.getLogger(__name__)

PLAYER_MONSTER_WEIGHT = 4
OTHER_MONSTER_WEIGHT = 1
LONG_CHAIN_SHARE = 0.2
LONG_CHAIN_CHANCE = 0.5

# (level spec field, item id), in placement order
ITEM_SPAWNS = [
    ("health_potions", "health-potion"),
    ("mana_potions", "mana-potion"),
    ("crystal_balls", "crystal-ball"),
    ("detectors", "detector"),
    ("transmutes", "transmute"),
    ("wards", "ward"),
    ("blazes", "blaze"),
    ("keys", "key"),
]

LATE_ITEM_SPAWNS = [
    ("clues", "clue"),
    ("staffs", "staff-of-fireballs"),
    ("rings", "ring-of-true-seeing"),
]


@dataclass
class BoardGenerator:
    """
    Procedural board generator.

    All randomness comes from `rng`, so a seeded generator is
    reproducible.
    """
    rng: random.Random = field(default_factory=random.Random)
    placement_attempts: int = 100

    def generate(
        self,
        spec: LevelSpec,
        carried_gold: int = 0,
        owned_upgrades: Iterable[str] = (),
        character: Character | None = None,
        seen_monsters: set[str] | None = None,
    ) -> Board:
        """Generate a board for `spec`. No tile starts revealed."""
        logger.debug("Generating level %d board (carried gold %d)", spec.level, carried_gold)
        board = Board.blank(spec.width, spec.height, level=spec.level)

        self._allocate_ownership(board, spec)
        self._generate_chains(board, self._draw(spec.chains))
        self._place_upgrades(board, spec, list(owned_upgrades), character)
        self._place_monsters(board, spec, seen_monsters or set())
        self._place_items(board, spec)
        self._apply_fog(board, fog_tile_count(spec.level))
        return board

    def _draw(self, count_range: tuple[int, int]) -> int:
        low, high = count_range
        return self.rng.randint(low, high)

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def _allocate_ownership(self, board: Board, spec: LevelSpec):
        area = spec.area
        player_count = spec.player_count
        opponent_count = spec.opponent_count
        if player_count + opponent_count > area:
            opponent_count = max(1, area - player_count)
            player_count = area - opponent_count

        owners = (
            [TileOwner.PLAYER] * player_count
            + [TileOwner.OPPONENT] * opponent_count
            + [TileOwner.NEUTRAL] * (area - player_count - opponent_count)
        )
        self.rng.shuffle(owners)
        for tile, owner in zip(board.iter_tiles(), owners):
            tile.owner = owner

        board.player_tiles_total = player_count
        board.opponent_tiles_total = opponent_count

    # -------------------------------------------------------------------------
    # Chains
    # -------------------------------------------------------------------------

    def _generate_chains(self, board: Board, count: int):
        long_target = int(count * LONG_CHAIN_SHARE)
        long_made = 0
        made = 0
        for index in range(count):
            chain_id = f"chain-{index}"
            if long_made < long_target and self.rng.random() < LONG_CHAIN_CHANCE:
                if self._create_long_chain(board, chain_id):
                    long_made += 1
                    made += 1
                    continue
            if self._create_chain(board, chain_id):
                made += 1
        if made < count:
            logger.info("Placed %d of %d chains on level %d", made, count, board.level)

    def _free_neighbour(self, board: Board, tile: Tile, exclude: Tile | None = None) -> Tile | None:
        options = [
            t for t in board.orthogonal_neighbours(tile.x, tile.y)
            if t.chain is None and t is not exclude
        ]
        return self.rng.choice(options) if options else None

    def _create_chain(self, board: Board, chain_id: str) -> bool:
        tiles = list(board.iter_tiles())
        for _ in range(self.placement_attempts):
            first = self.rng.choice(tiles)
            if first.chain is not None:
                continue
            second = self._free_neighbour(board, first)
            if second is None:
                continue

            first_is_player = first.owner == TileOwner.PLAYER
            second_is_player = second.owner == TileOwner.PLAYER
            if first_is_player != second_is_player:
                blocked = first if first_is_player else second
            else:
                blocked = self.rng.choice([first, second])
            key = second if blocked is first else first

            key.chain = ChainLink(chain_id, is_blocked=False, required_x=blocked.x, required_y=blocked.y)
            blocked.chain = ChainLink(chain_id, is_blocked=True, required_x=key.x, required_y=key.y)
            return True
        return False

    def _create_long_chain(self, board: Board, chain_id: str) -> bool:
        """A unlocks B, B unlocks C."""
        tiles = list(board.iter_tiles())
        for _ in range(self.placement_attempts):
            a = self.rng.choice(tiles)
            if a.chain is not None:
                continue
            b = self._free_neighbour(board, a)
            if b is None:
                continue
            c = self._free_neighbour(board, b, exclude=a)
            if c is None:
                continue

            secondary_id = f"{chain_id}-b"
            a.chain = ChainLink(chain_id, is_blocked=False, required_x=b.x, required_y=b.y)
            b.chain = ChainLink(
                chain_id,
                is_blocked=True,
                required_x=a.x,
                required_y=a.y,
                secondary_chain_id=secondary_id,
                secondary_x=c.x,
                secondary_y=c.y,
            )
            c.chain = ChainLink(secondary_id, is_blocked=True, required_x=b.x, required_y=b.y)
            return True
        return False

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    def _place(
        self,
        board: Board,
        content: TileContent,
        payload: TilePayload = None,
        allow: Callable[[Tile], bool] | None = None,
        weight: Callable[[Tile], float] | None = None,
    ) -> Tile | None:
        tiles = list(board.iter_tiles())
        weights = [weight(t) for t in tiles] if weight else None
        for _ in range(self.placement_attempts):
            if weights:
                tile = self.rng.choices(tiles, weights=weights)[0]
            else:
                tile = self.rng.choice(tiles)
            if tile.is_empty and (allow is None or allow(tile)):
                tile.place(content, payload)
                return tile
        logger.warning(
            "Dropped %s on level %d: no free tile after %d attempts",
            content.value, board.level, self.placement_attempts,
        )
        return None

    def _place_upgrades(
        self,
        board: Board,
        spec: LevelSpec,
        owned: list[str],
        character: Character | None,
    ):
        pool = available_upgrades(owned, character)
        if not pool:
            return
        for _ in range(self._draw(spec.upgrades)):
            payload = self.rng.choice(pool).create()
            chained = [t for t in board.iter_tiles() if board.is_blocked(t) and t.is_empty]
            if chained:
                self.rng.choice(chained).place(TileContent.PERMANENT_UPGRADE, payload)
            else:
                self._place(board, TileContent.PERMANENT_UPGRADE, payload)

    def _place_monsters(self, board: Board, spec: LevelSpec, seen: set[str]):
        def weight(tile: Tile) -> float:
            return PLAYER_MONSTER_WEIGHT if tile.owner == TileOwner.PLAYER else OTHER_MONSTER_WEIGHT

        count = self._draw(spec.monsters)
        if spec.guaranteed_new_monster and count > 0:
            monster = guaranteed_new_monster(spec.level, seen)
            if monster is not None:
                self._place(board, TileContent.MONSTER, monster, weight=weight)
                count -= 1
        for _ in range(count):
            self._place(board, TileContent.MONSTER, create_monster(spec.level, self.rng), weight=weight)

    def _place_items(self, board: Board, spec: LevelSpec):
        def neutral(tile: Tile) -> bool:
            return tile.owner == TileOwner.NEUTRAL

        for _ in range(self._draw(spec.gold)):
            self._place(board, TileContent.GOLD, GoldData(amount=1))

        for field_name, item_id in ITEM_SPAWNS:
            for _ in range(self._draw(getattr(spec, field_name))):
                self._place(board, TileContent.ITEM, create_item(item_id))

        if spec.has_shop:
            self._place(board, TileContent.SHOP, allow=neutral)

        for _ in range(self._draw(spec.protections)):
            self._place(board, TileContent.ITEM, create_item("protection"), allow=neutral)

        for field_name, item_id in LATE_ITEM_SPAWNS:
            for _ in range(self._draw(getattr(spec, field_name))):
                self._place(board, TileContent.ITEM, create_item(item_id))

    # -------------------------------------------------------------------------
    # Fog
    # -------------------------------------------------------------------------

    def _apply_fog(self, board: Board, count: int):
        if count <= 0:
            return
        tiles = list(board.iter_tiles())
        for tile in self.rng.sample(tiles, min(count, len(tiles))):
            tile.fogged = True


def generate_board(
    spec: LevelSpec,
    carried_gold: int = 0,
    seed: int | None = None,
    **kwargs,
) -> Board:
    """Convenience function to generate a board with a fresh seeded generator."""
    return BoardGenerator(rng=random.Random(seed)).generate(spec, carried_gold, **kwargs)


def monster_kinds(board: Board) -> set[str]:
    """Kinds of every monster on a board."""
    return {t.monster.kind for t in board.iter_tiles() if t.monster is not None}
