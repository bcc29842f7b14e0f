"""
Tests for clue generation.

Tests:
- One hand holds more player tiles, in either orientation
- Non-player slots prefer neutral tiles
- Left Hand / Right Hand bonuses and glimpse clues
"""

import random

from ..engine_core.clues import NO_CLUES_HINT, ClueBonus, ClueGenerator
from ..engine_core.state import TileOwner


def owners_in(board, positions):
    return [board.get_tile(x, y).owner for x, y in positions]


def player_counts(board, clue):
    return (
        owners_in(board, clue.hand_a.tiles).count(TileOwner.PLAYER),
        owners_in(board, clue.hand_b.tiles).count(TileOwner.PLAYER),
    )


class TestStandardClue:
    """Tests for the per-turn clue."""

    def test_hand_shapes(self, board_factory):
        """One hand has 2 player tiles and 1 other; the other has 1 and 2."""
        board = board_factory(["PPPP", "NNOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board)
            assert len(clue.hand_a.tiles) == 3
            assert len(clue.hand_b.tiles) == 3
            assert sorted(player_counts(board, clue)) == [1, 2]

    def test_both_orientations_occur(self, board_factory):
        """The favoured hand is not always hand A."""
        board = board_factory(["PPPP", "NNOO"])
        seen = {
            player_counts(board, ClueGenerator(rng=random.Random(seed)).generate(board))
            for seed in range(40)
        }
        assert seen == {(2, 1), (1, 2)}

    def test_neutral_tiles_first(self, board_factory):
        """With two neutrals and three other slots, both neutrals are used."""
        board = board_factory(["PPPP", "NNOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board)
            dealt = owners_in(board, clue.hand_a.tiles + clue.hand_b.tiles)
            assert dealt.count(TileOwner.NEUTRAL) == 2
            assert dealt.count(TileOwner.OPPONENT) == 1

    def test_hands_do_not_overlap(self, board_factory):
        board = board_factory(["PPPP", "NNOO"])
        clue = ClueGenerator(rng=random.Random(2)).generate(board)
        assert not set(clue.hand_a.tiles) & set(clue.hand_b.tiles)

    def test_only_unrevealed_tiles(self, board_factory):
        """Revealed tiles never appear in a clue."""
        board = board_factory(["PPPP", "NNOO"])
        board.get_tile(0, 0).revealed = True
        board.get_tile(0, 1).revealed = True
        clue = ClueGenerator(rng=random.Random(3)).generate(board)
        assert (0, 0) not in clue.hand_a.tiles + clue.hand_b.tiles
        assert (0, 1) not in clue.hand_a.tiles + clue.hand_b.tiles

    def test_small_pools_shrink_hands(self, board_factory):
        """With one player tile only hand A gets it."""
        board = board_factory(["PNOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board)
            assert player_counts(board, clue) == (1, 0)

    def test_hint_format(self, small_board):
        clue = ClueGenerator(rng=random.Random(5)).generate(small_board)
        assert clue.hint.startswith("Clue ")
        assert len(clue.hint) == len("Clue ") + 4


class TestEmptyClue:
    """Tests for boards with nothing to hint at."""

    def test_no_player_tiles(self, board_factory):
        board = board_factory(["NNOO"])
        clue = ClueGenerator().generate(board)
        assert clue.hint == NO_CLUES_HINT
        assert clue.hand_a.tiles == []
        assert clue.hand_b.tiles == []

    def test_no_other_tiles(self, board_factory):
        board = board_factory(["PPP"])
        assert ClueGenerator().generate(board).hint == NO_CLUES_HINT


class TestClueBonus:
    """Tests for hand upgrades."""

    def test_from_upgrades(self):
        bonus = ClueBonus.from_upgrades(["left-hand", "left-hand", "right-hand", "attack"])
        assert (bonus.hand_a, bonus.hand_b) == (2, 1)

    def test_left_hand_adds_player_tile(self, board_factory):
        """Left Hand always lands on hand A."""
        board = board_factory(["PPPPP", "NNOOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board, ClueBonus(hand_a=1))
            assert player_counts(board, clue) in {(3, 1), (2, 2)}

    def test_right_hand_adds_player_tile(self, board_factory):
        """Right Hand always lands on hand B."""
        board = board_factory(["PPPPP", "NNOOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board, ClueBonus(hand_b=1))
            assert player_counts(board, clue) in {(2, 2), (1, 3)}


class TestGlimpse:
    """Tests for glimpse clues."""

    def test_glimpse_shape(self, board_factory):
        """Glimpse: one hand has 1 player + 1 other, the other has 2 others."""
        board = board_factory(["PPPP", "NNOO"])
        for seed in range(10):
            clue = ClueGenerator(rng=random.Random(seed)).generate(board, ClueBonus(hand_a=3), glimpse=True)
            assert len(clue.hand_a.tiles) == 2
            assert len(clue.hand_b.tiles) == 2
            assert sorted(player_counts(board, clue)) == [0, 1]
