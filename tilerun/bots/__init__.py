"""
Bots module - Opponent AI implementations.

Provides:
- OpponentPolicy: Interface for opponent tile selection
- RandomPolicy: The baseline opponent
- FirstAvailablePolicy: Deterministic opponent for tests
- HeuristicPolicy: Weighted tile scoring
"""

from .policy import OpponentPolicy, TileChoice, RandomPolicy, FirstAvailablePolicy, legal_moves
from .evaluator import TileEvaluator, EvaluationWeights, HeuristicPolicy

__all__ = [
    "OpponentPolicy",
    "TileChoice",
    "RandomPolicy",
    "FirstAvailablePolicy",
    "legal_moves",
    "TileEvaluator",
    "EvaluationWeights",
    "HeuristicPolicy",
]
