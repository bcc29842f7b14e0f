"""
Opponent Policy - Interface for opponent tile selection.

An OpponentPolicy looks at the board and picks one of the opponent's own
unrevealed, unblocked tiles to reveal, or None when there is nothing to
reveal. Policies are substitutable; the coordinator only depends on the
interface.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..engine_core.state import TileOwner

if TYPE_CHECKING:
    from ..engine_core.state import Board, Tile


@dataclass
class TileChoice:
    """
    A tile chosen by a policy.

    Contains:
    - The position to reveal
    - Explanation (for UI/debugging)
    - How many candidates were considered
    """
    x: int
    y: int
    explanation: str = ""
    confidence: float = 1.0

    evaluated_tiles: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


def legal_moves(board: Board) -> list[Tile]:
    """Unrevealed opponent tiles that are not chained."""
    return [
        tile for tile in board.unrevealed_tiles(TileOwner.OPPONENT)
        if not board.is_blocked(tile)
    ]


class OpponentPolicy(ABC):
    """
    Abstract base class for opponent policies.

    Implementations can range from uniform random to weighted heuristics.
    """

    @abstractmethod
    def choose_move(self, board: Board) -> TileChoice | None:
        """
        Choose a tile to reveal.

        Returns None when no legal tile remains.
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(OpponentPolicy):
    """
    Random policy - picks a legal tile uniformly at random.

    The baseline opponent.
    """

    def __init__(self, seed: int | None = None):
        import random
        self.rng = random.Random(seed)

    def choose_move(self, board: Board) -> TileChoice | None:
        moves = legal_moves(board)
        if not moves:
            return None
        tile = self.rng.choice(moves)
        return TileChoice(
            x=tile.x,
            y=tile.y,
            explanation="Selected randomly",
            confidence=1.0 / len(moves),
            evaluated_tiles=len(moves),
        )


class FirstAvailablePolicy(OpponentPolicy):
    """
    First-available policy - always picks the first legal tile in row order.

    Used for deterministic testing.
    """

    def choose_move(self, board: Board) -> TileChoice | None:
        moves = legal_moves(board)
        if not moves:
            return None
        return TileChoice(
            x=moves[0].x,
            y=moves[0].y,
            explanation="Selected first available tile",
            evaluated_tiles=1,
        )
