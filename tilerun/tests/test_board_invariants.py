"""
Randomized checks over generated boards.

Tests:
- Reveal counters track revealed tiles through any reveal sequence
- Chain links never form a cycle or point at their own tile
- Every generated board can be cleared
"""

import random
import pytest

from ..content.levels import get_level_spec
from ..engine_core.board_generator import BoardGenerator
from ..engine_core.reveal import check_board_status, player_reveal, reveal_tile
from ..engine_core.state import BoardStatus, RunState, TileOwner


LEVELS = [1, 4, 8, 12, 16, 20]
SEEDS = range(4)


def generate(level, seed):
    return BoardGenerator(rng=random.Random(seed)).generate(get_level_spec(level))


def assert_counters_match(board):
    player = len(board.tiles_where(lambda t: t.revealed and t.owner == TileOwner.PLAYER))
    opponent = len(board.tiles_where(lambda t: t.revealed and t.owner == TileOwner.OPPONENT))
    assert board.player_tiles_revealed == player
    assert board.opponent_tiles_revealed == opponent
    assert board.player_tiles_revealed <= board.player_tiles_total
    assert board.opponent_tiles_revealed <= board.opponent_tiles_total


def sturdy_run():
    """A run that survives every fight so reveals never stop early."""
    return RunState(hp=100000, max_hp=100000, attack=50)


def open_tiles(board):
    return [t for t in board.unrevealed_tiles() if not board.is_blocked(t)]


class TestRevealCounters:
    """Counters stay equal to the revealed tiles of each owner."""

    @pytest.mark.parametrize("level", LEVELS)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_random_reveal_sequence(self, level, seed):
        board = generate(level, seed)
        run = sturdy_run()
        rng = random.Random(seed)
        tiles = list(board.iter_tiles())

        for _ in range(3 * len(tiles)):
            tile = rng.choice(tiles)
            before = (board.player_tiles_revealed, board.opponent_tiles_revealed)
            was_revealed, was_blocked = tile.revealed, board.is_blocked(tile)

            if rng.random() < 0.5:
                accepted = player_reveal(run, board, tile.x, tile.y, rng) is not None
            else:
                accepted = reveal_tile(board, tile.x, tile.y, TileOwner.OPPONENT)

            if was_revealed or was_blocked:
                assert not accepted
                assert (board.player_tiles_revealed, board.opponent_tiles_revealed) == before
            else:
                assert accepted
            assert_counters_match(board)

    @pytest.mark.parametrize("level", LEVELS)
    def test_status_follows_counters(self, level):
        """Board status is decided by the counters alone, player first."""
        board = generate(level, 11)
        rng = random.Random(11)
        while open_tiles(board):
            tile = rng.choice(open_tiles(board))
            revealer = rng.choice([TileOwner.PLAYER, TileOwner.OPPONENT])
            reveal_tile(board, tile.x, tile.y, revealer)

            status = check_board_status(board)
            if board.player_tiles_revealed >= board.player_tiles_total:
                assert status == BoardStatus.WON
            elif board.opponent_tiles_revealed >= board.opponent_tiles_total:
                assert status == BoardStatus.LOST
            else:
                assert status == BoardStatus.IN_PROGRESS


class TestChainGraph:
    """Chains form short acyclic paths."""

    @pytest.mark.parametrize("level", LEVELS)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_chains_are_acyclic(self, level, seed):
        board = generate(level, seed)
        for start in board.iter_tiles():
            tile = start
            visited = set()
            while tile.chain is not None and tile.chain.is_blocked:
                required = (tile.chain.required_x, tile.chain.required_y)
                assert required != tile.position
                assert tile.position not in visited
                visited.add(tile.position)
                tile = board.get_tile(*required)
                assert tile is not None

    @pytest.mark.parametrize("level", LEVELS)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_secondary_links_point_elsewhere(self, level, seed):
        board = generate(level, seed)
        for tile in board.iter_tiles():
            if tile.chain is not None and tile.chain.has_secondary_key:
                assert (tile.chain.secondary_x, tile.chain.secondary_y) != tile.position
                assert tile.chain.secondary_chain_id != tile.chain.chain_id

    @pytest.mark.parametrize("level", LEVELS)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_board_can_be_cleared(self, level, seed):
        """Revealing any open tile until none remain reveals the whole board."""
        board = generate(level, seed)
        rng = random.Random(seed)
        while open_tiles(board):
            tile = rng.choice(open_tiles(board))
            assert reveal_tile(board, tile.x, tile.y, TileOwner.PLAYER)

        assert board.unrevealed_tiles() == []
        assert board.player_tiles_revealed == board.player_tiles_total
        assert board.opponent_tiles_revealed == board.opponent_tiles_total
