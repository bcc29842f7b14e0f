"""
Tests for reveals, combat and content resolution.

Tests:
- reveal_tile bookkeeping and rejections
- Board status precedence
- Combat simulation, buffs and first strike
- Lethal damage and trophy theft
- Player reveal side effects and turn keeping
"""

import logging
import random

from ..content.characters import RANGER
from ..content.items import create_item
from ..engine_core.reveal import (
    ROUND_CEILING,
    apply_player_damage,
    check_board_status,
    fight_monster,
    player_reveal,
    reveal_tile,
    store_item,
)
from ..engine_core.state import (
    Annotation,
    BoardStatus,
    ChainLink,
    GoldData,
    MonsterData,
    TileContent,
    TileOwner,
    TrapData,
    Trophy,
    TrophyKind,
    UpgradeData,
)
from ..engine_core.upgrade_effects import place_rich_chest


def rat():
    return MonsterData("rat-1", "Rat", attack=3, defense=0, hp=6)


class TestRevealTile:
    """Tests for the single reveal operation."""

    def test_reveal_moves_owner_counter(self, small_board):
        assert reveal_tile(small_board, 0, 0, TileOwner.PLAYER)
        assert reveal_tile(small_board, 2, 0, TileOwner.OPPONENT)
        assert reveal_tile(small_board, 0, 1, TileOwner.PLAYER)
        assert small_board.player_tiles_revealed == 1
        assert small_board.opponent_tiles_revealed == 1

    def test_reveal_records_revealer_and_clears_annotation(self, small_board):
        tile = small_board.get_tile(2, 0)
        tile.annotation = Annotation.SLASH
        reveal_tile(small_board, 2, 0, TileOwner.PLAYER)
        assert tile.revealed
        assert tile.revealed_by == TileOwner.PLAYER
        assert tile.annotation == Annotation.NONE

    def test_rejections_do_not_mutate(self, small_board):
        """Revealed, out-of-bounds and chained tiles are refused."""
        reveal_tile(small_board, 0, 0, TileOwner.PLAYER)
        assert not reveal_tile(small_board, 0, 0, TileOwner.PLAYER)
        assert not reveal_tile(small_board, 5, 5, TileOwner.PLAYER)

        small_board.get_tile(1, 0).chain = ChainLink("c", is_blocked=True, required_x=1, required_y=1)
        small_board.get_tile(1, 1).chain = ChainLink("c", is_blocked=False, required_x=1, required_y=0)
        assert not reveal_tile(small_board, 1, 0, TileOwner.PLAYER)
        assert small_board.player_tiles_revealed == 1

    def test_won_beats_lost(self, board_factory):
        """When both sides are complete the board is won."""
        board = board_factory(["PO"])
        reveal_tile(board, 0, 0, TileOwner.PLAYER)
        reveal_tile(board, 1, 0, TileOwner.OPPONENT)
        assert check_board_status(board) == BoardStatus.WON

    def test_lost(self, board_factory):
        board = board_factory(["PPO"])
        reveal_tile(board, 2, 0, TileOwner.OPPONENT)
        assert check_board_status(board) == BoardStatus.LOST

    def test_in_progress(self, small_board):
        assert check_board_status(small_board) == BoardStatus.IN_PROGRESS


class TestCombat:
    """Tests for fight simulation."""

    def test_monster_strikes_first(self, run):
        """5 attack vs a 6 HP rat takes two rounds and 6 damage."""
        result = fight_monster(run, rat())
        assert result.monster_defeated
        assert result.rounds == 2
        assert result.damage == 6

    def test_first_strike(self, run):
        """A first-striker takes nothing in the killing round."""
        run.character = RANGER
        result = fight_monster(run, rat())
        assert result.damage == 3

    def test_minimum_hit_is_one(self, run):
        run.defense = 50
        result = fight_monster(run, rat())
        assert result.damage == result.rounds

    def test_buffs_apply_once(self, run):
        """Blaze adds attack for one fight and is then used up."""
        run.temporary_buffs.blaze = 5
        run.temporary_buffs.ward = 4
        result = fight_monster(run, rat())
        assert result.rounds == 1
        assert result.damage == 1
        assert run.temporary_buffs.blaze == 0
        assert run.temporary_buffs.ward == 0

    def test_does_not_touch_hp(self, run):
        fight_monster(run, rat())
        assert run.hp == run.max_hp

    def test_round_ceiling(self, run):
        """Unwinnable fights stop at the ceiling."""
        wall = MonsterData("golem-1", "Golem", attack=0, defense=100, hp=5000)
        result = fight_monster(run, wall)
        assert result.ceiling_hit
        assert not result.monster_defeated
        assert result.rounds == ROUND_CEILING

    def test_stalemate_is_reported(self, run, caplog):
        """Neither side can hurt the other: the fight stops at the ceiling and warns."""
        run.defense = 100
        wall = MonsterData("golem-2", "Golem", attack=0, defense=100, hp=ROUND_CEILING * 10)
        with caplog.at_level(logging.WARNING, logger="tilerun.engine_core.reveal"):
            result = fight_monster(run, wall)

        assert result.ceiling_hit
        assert not result.monster_defeated
        assert result.rounds == ROUND_CEILING
        assert result.damage == ROUND_CEILING
        assert wall.hp == ROUND_CEILING * 9
        assert "round ceiling" in caplog.text


class TestPlayerDamage:
    """Tests for lethal damage handling."""

    def test_survivable(self, run):
        assert apply_player_damage(run, 10, "Rat") == (False, False)
        assert run.hp == 65

    def test_lethal_without_trophy(self, run):
        run.hp = 5
        assert apply_player_damage(run, 5, "Rat") == (True, False)
        assert run.hp == 0

    def test_gold_trophy_saves_player(self, run):
        """A gold trophy is stolen instead of the player dying."""
        run.hp = 5
        run.trophies.append(Trophy("t1", TrophyKind.GOLD))
        assert apply_player_damage(run, 50, "Orc") == (False, True)
        assert run.hp == 1
        assert run.trophies[0].stolen
        assert run.trophies[0].stolen_by == "Orc"


class TestPlayerReveal:
    """Tests for the player's reveal and its side effects."""

    def test_rejected_reveal_returns_none(self, run, small_board, rng):
        small_board.get_tile(0, 0).revealed = True
        assert player_reveal(run, small_board, 0, 0, rng) is None

    def test_player_tile_keeps_turn(self, run, small_board, rng):
        outcome = player_reveal(run, small_board, 0, 0, rng)
        assert outcome.keeps_turn
        assert outcome.board_status == BoardStatus.IN_PROGRESS

    def test_neutral_tile_passes_turn(self, run, small_board, rng):
        assert not player_reveal(run, small_board, 0, 1, rng).keeps_turn

    def test_opponent_tile_loot(self, run, small_board, rng):
        """Revealing an opponent tile pays loot."""
        run.loot = 2
        outcome = player_reveal(run, small_board, 2, 0, rng)
        assert run.gold == 2
        assert not outcome.keeps_turn

    def test_protection_keeps_turn_once(self, run, small_board, rng):
        run.temporary_buffs.protection = 1
        assert player_reveal(run, small_board, 0, 1, rng).keeps_turn
        assert run.temporary_buffs.protection == 0
        assert not player_reveal(run, small_board, 2, 1, rng).keeps_turn

    def test_resting_heals_on_neutral(self, run, small_board, rng):
        run.upgrades = ["resting", "resting"]
        run.hp = 50
        player_reveal(run, small_board, 0, 1, rng)
        assert run.hp == 56

    def test_winning_reveal_keeps_turn(self, board_factory, run, rng):
        board = board_factory(["PNO"])
        outcome = player_reveal(run, board, 0, 0, rng)
        assert outcome.board_status == BoardStatus.WON
        assert outcome.keeps_turn


class TestContentResolution:
    """Tests for what revealed content does."""

    def test_gold(self, run, small_board, rng):
        small_board.get_tile(0, 0).place(TileContent.GOLD, GoldData(amount=3))
        player_reveal(run, small_board, 0, 0, rng)
        assert run.gold == 3
        assert small_board.get_tile(0, 0).is_empty

    def test_item_is_stored(self, run, small_board, rng):
        small_board.get_tile(0, 0).place(TileContent.ITEM, create_item("key"))
        player_reveal(run, small_board, 0, 0, rng)
        assert run.inventory[0].item_id == "key"

    def test_immediate_item_applies(self, run, small_board, rng):
        run.hp = 40
        small_board.get_tile(0, 0).place(TileContent.ITEM, create_item("first-aid"))
        player_reveal(run, small_board, 0, 0, rng)
        assert run.hp == 50
        assert run.inventory == [None] * 4

    def test_upgrade_requests_choice(self, run, small_board, rng):
        small_board.get_tile(0, 0).place(TileContent.PERMANENT_UPGRADE, UpgradeData("attack", "Attack"))
        assert player_reveal(run, small_board, 0, 0, rng).upgrade_choice

    def test_shop_opens(self, run, small_board, rng):
        small_board.get_tile(0, 1).place(TileContent.SHOP)
        assert player_reveal(run, small_board, 0, 1, rng).shop_opened

    def test_trap(self, run, small_board, rng):
        small_board.get_tile(0, 0).place(TileContent.TRAP, TrapData(damage=3))
        player_reveal(run, small_board, 0, 0, rng)
        assert run.hp == run.max_hp - 3

    def test_monster_fight(self, run, small_board, rng):
        """A defeated monster is removed and pays loot."""
        run.loot = 1
        small_board.get_tile(0, 0).place(TileContent.MONSTER, rat())
        outcome = player_reveal(run, small_board, 0, 0, rng)
        assert outcome.combat.damage == 6
        assert outcome.defeat.gold_gained == 1
        assert run.hp == run.max_hp - 6
        assert run.gold == 1
        assert small_board.get_tile(0, 0).is_empty

    def test_monster_kills_player(self, run, small_board, rng):
        run.hp = 2
        small_board.get_tile(0, 0).place(TileContent.MONSTER, rat())
        outcome = player_reveal(run, small_board, 0, 0, rng)
        assert outcome.player_died
        assert run.hp == 0

    def test_rich_places_chest(self, run, small_board, rng):
        """Rich drops a chest next to a defeated monster."""
        run.upgrades = ["rich"]
        small_board.get_tile(0, 0).place(TileContent.MONSTER, rat())
        outcome = player_reveal(run, small_board, 0, 0, rng)
        chest = small_board.get_tile(*outcome.defeat.chest_at)
        assert chest.item.item_id == "chest"
        assert not chest.revealed


class TestInventory:
    """Tests for storing items."""

    def test_full_inventory_auto_applies_potion(self, run):
        run.inventory = [create_item("key") for _ in range(4)]
        run.hp = 50
        store_item(run, create_item("health-potion"))
        assert run.hp == 58

    def test_full_inventory_loses_other_items(self, run):
        run.inventory = [create_item("key") for _ in range(4)]
        message = store_item(run, create_item("detector"))
        assert "lost" in message
        assert all(item.item_id == "key" for item in run.inventory)

    def test_rich_chest_needs_room(self, board_factory):
        """No chest when every neighbour is revealed or occupied."""
        board = board_factory(["PO"])
        board.get_tile(1, 0).revealed = True
        assert place_rich_chest(board, 0, 0, random.Random(0)) is None
