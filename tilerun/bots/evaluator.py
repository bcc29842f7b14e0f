"""
Tile Evaluator - Scores candidate tiles for the opponent.

Features:
- Unlocking: revealing the tile frees a chained opponent tile
- Frontier: neighbouring tiles the opponent already revealed
- Fog: fogged tiles are slightly less attractive

Weights can be adjusted to create different opponents.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import random

from .policy import OpponentPolicy, TileChoice, legal_moves
from ..engine_core.state import TileOwner

if TYPE_CHECKING:
    from ..engine_core.state import Board, Tile


@dataclass
class EvaluationWeights:
    """
    Weights for the tile evaluator.

    Higher values = more importance.
    """
    unlocks_own_tile: float = 3.0
    unlocks_other_tile: float = 0.5
    revealed_neighbour: float = 1.0
    fogged: float = -0.5


@dataclass
class TileEvaluation:
    total_score: float
    feature_breakdown: dict[str, float] = field(default_factory=dict)


class TileEvaluator:
    """Evaluates a single tile from the opponent's perspective."""

    def __init__(self, weights: EvaluationWeights | None = None):
        self.weights = weights or EvaluationWeights()

    def evaluate(self, board: Board, tile: Tile) -> TileEvaluation:
        features: dict[str, float] = {}

        unlocked = self._unlocked_tiles(board, tile)
        own = sum(1 for t in unlocked if t.owner == TileOwner.OPPONENT)
        features["unlocks_own_tile"] = own * self.weights.unlocks_own_tile
        features["unlocks_other_tile"] = (len(unlocked) - own) * self.weights.unlocks_other_tile

        revealed = sum(
            1 for t in board.neighbours(tile.x, tile.y)
            if t.revealed and t.revealed_by == TileOwner.OPPONENT
        )
        features["revealed_neighbour"] = revealed * self.weights.revealed_neighbour

        features["fogged"] = self.weights.fogged if tile.fogged else 0.0

        return TileEvaluation(total_score=sum(features.values()), feature_breakdown=features)

    @staticmethod
    def _unlocked_tiles(board: Board, tile: Tile) -> list[Tile]:
        """Blocked tiles that wait on this one."""
        return [
            t for t in board.iter_tiles()
            if t.chain is not None
            and t.chain.is_blocked
            and (t.chain.required_x, t.chain.required_y) == tile.position
            and not t.revealed
        ]


class HeuristicPolicy(OpponentPolicy):
    """
    Picks the best-scoring legal tile, breaking ties at random.
    """

    def __init__(self, weights: EvaluationWeights | None = None, seed: int | None = None):
        self.evaluator = TileEvaluator(weights)
        self.rng = random.Random(seed)

    def choose_move(self, board: Board) -> TileChoice | None:
        moves = legal_moves(board)
        if not moves:
            return None

        scored = [(self.evaluator.evaluate(board, tile), tile) for tile in moves]
        best_score = max(evaluation.total_score for evaluation, _ in scored)
        best = [(e, t) for e, t in scored if e.total_score == best_score]
        evaluation, tile = self.rng.choice(best)

        return TileChoice(
            x=tile.x,
            y=tile.y,
            explanation=f"Best of {len(moves)} tiles (score {best_score:.1f})",
            evaluated_tiles=len(moves),
            best_score=best_score,
            evaluation_details=evaluation.feature_breakdown,
        )
