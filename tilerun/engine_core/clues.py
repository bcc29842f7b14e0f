"""
Clue Generator - Two hands of unrevealed tiles, one favouring the player.

One hand holds more player tiles than the other; which of A or B it is
gets drawn per clue. Non-player slots are filled from neutral tiles first,
then opponent tiles. Left Hand and Right Hand upgrades add player tiles to
hands A and B respectively, whatever the orientation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
import string

from .state import Board, Clue, ClueHand, Tile, TileOwner

logger = logging.getLogger(__name__)

NO_CLUES_HINT = "No clues available"

# (player tiles, other tiles) per hand
STANDARD_HANDS = ((2, 1), (1, 2))
GLIMPSE_HANDS = ((1, 1), (0, 2))


@dataclass
class ClueBonus:
    """Extra player tiles per hand."""
    hand_a: int = 0
    hand_b: int = 0

    @classmethod
    def from_upgrades(cls, upgrades: list[str]) -> ClueBonus:
        return cls(hand_a=upgrades.count("left-hand"), hand_b=upgrades.count("right-hand"))


@dataclass
class ClueGenerator:
    rng: random.Random = field(default_factory=random.Random)

    def generate(self, board: Board, bonus: ClueBonus | None = None, glimpse: bool = False) -> Clue:
        """
        Build a clue from unrevealed tiles.

        Returns two empty hands when there are no unrevealed player tiles
        or no unrevealed non-player tiles.
        """
        bonus = bonus or ClueBonus()
        player_pool = board.unrevealed_tiles(TileOwner.PLAYER)
        neutral_pool = board.unrevealed_tiles(TileOwner.NEUTRAL)
        opponent_pool = board.unrevealed_tiles(TileOwner.OPPONENT)
        if not player_pool or not (neutral_pool or opponent_pool):
            return Clue(hand_a=ClueHand(), hand_b=ClueHand(), hint=NO_CLUES_HINT)

        self.rng.shuffle(player_pool)
        self.rng.shuffle(neutral_pool)
        self.rng.shuffle(opponent_pool)
        other_pool = neutral_pool + opponent_pool

        shapes = GLIMPSE_HANDS if glimpse else STANDARD_HANDS
        if self.rng.random() < 0.5:
            shapes = shapes[::-1]
        (a_player, a_other), (b_player, b_other) = shapes
        if not glimpse:
            a_player += bonus.hand_a
            b_player += bonus.hand_b

        hand_a = self._deal(player_pool, a_player) + self._deal(other_pool, a_other)
        hand_b = self._deal(player_pool, b_player) + self._deal(other_pool, b_other)
        self.rng.shuffle(hand_a)
        self.rng.shuffle(hand_b)

        return Clue(
            hand_a=ClueHand(tiles=[t.position for t in hand_a]),
            hand_b=ClueHand(tiles=[t.position for t in hand_b]),
            hint=self._hint(),
        )

    @staticmethod
    def _deal(pool: list[Tile], count: int) -> list[Tile]:
        dealt = pool[:count]
        del pool[:count]
        return dealt

    def _hint(self) -> str:
        alphabet = string.ascii_uppercase + string.digits
        return "Clue " + "".join(self.rng.choice(alphabet) for _ in range(4))
