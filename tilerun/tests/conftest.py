"""
Pytest fixtures for Tilerun tests.
"""

import random
import pytest
from typing import Callable

from ..bots.policy import FirstAvailablePolicy
from ..config import EngineConfig
from ..engine_core.coordinator import RunCoordinator
from ..engine_core.state import Board, GameState, GameStatus, RunState, TileOwner


OWNER_CODES = {
    "P": TileOwner.PLAYER,
    "O": TileOwner.OPPONENT,
    "N": TileOwner.NEUTRAL,
    "W": TileOwner.WALL,
}


def build_board(rows: list[str], level: int = 1) -> Board:
    """
    Build a board from rows of owner codes.

    P = player, O = opponent, N = neutral, W = wall. Row 0 is y = 0.
    """
    board = Board.blank(len(rows[0]), len(rows), level=level)
    for y, row in enumerate(rows):
        for x, code in enumerate(row):
            board.tiles[y][x].owner = OWNER_CODES[code]
    board.player_tiles_total = sum(row.count("P") for row in rows)
    board.opponent_tiles_total = sum(row.count("O") for row in rows)
    return board


# Layout used by most rule tests:
#   y=0  P P O
#   y=1  N O N
#   y=2  P N O
STANDARD_ROWS = ["PPO", "NON", "PNO"]


@pytest.fixture
def board_factory() -> Callable[..., Board]:
    """Access to the row-code board builder."""
    return build_board


@pytest.fixture
def small_board() -> Board:
    """A 3x3 board with three tiles per owner."""
    return build_board(STANDARD_ROWS)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(0)


@pytest.fixture
def run() -> RunState:
    """A fresh run with no character."""
    return RunState()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(seed=7, ai_turn_delay_ms=1000, next_board_delay_ms=2000)


@pytest.fixture
def coordinator(config: EngineConfig) -> RunCoordinator:
    """A seeded coordinator with a deterministic opponent."""
    return RunCoordinator.seeded(7, policy=FirstAvailablePolicy(), config=config)


@pytest.fixture
def playing_state(small_board: Board) -> GameState:
    """A run in progress on the standard 3x3 board, player to move."""
    state = GameState(board=small_board, run=RunState())
    state.game_status = GameStatus.PLAYING
    return state
