"""
Tests for upgrades, run setup and trophies.

Tests:
- apply_upgrade stat changes and character bonuses
- Starting kits per character
- Upgrade choices
- Trophy awards, collapse and theft
- Spell learning
"""

import random
import pytest

from ..content.characters import BELOW, CLERIC, FIGHTER, RANGER, TOURIST, WIZARD
from ..engine_core.setup import create_run, learn_random_spell, learns_spell_at
from ..engine_core.state import RunState, Trophy, TrophyKind
from ..engine_core.trophies import (
    award_board_trophies,
    collapse_silver_trophies,
    count_trophies,
    steal_gold_trophy,
)
from ..engine_core.upgrade_effects import apply_upgrade, generate_upgrade_choice


class TestApplyUpgrade:
    """Tests for upgrade effects."""

    def test_attack(self, run):
        result = apply_upgrade(run, "attack")
        assert result.success
        assert result.message == "Gained Attack upgrade"
        assert run.attack == 7
        assert run.upgrades == ["attack"]

    def test_healthy_raises_current_hp(self, run):
        run.hp = 50
        apply_upgrade(run, "healthy")
        assert run.max_hp == 100
        assert run.hp == 75

    def test_income(self, run):
        apply_upgrade(run, "income")
        apply_upgrade(run, "income")
        assert run.loot == 2

    def test_bag_adds_slots(self, run):
        apply_upgrade(run, "bag")
        assert run.max_inventory == 6

    def test_meditation(self, run):
        apply_upgrade(run, "meditation")
        assert (run.mana, run.max_mana) == (2, 2)

    def test_rejected_without_mutation(self, run):
        run.upgrades = ["quick"]
        result = apply_upgrade(run, "quick")
        assert not result.success
        assert run.upgrades == ["quick"]

    def test_unknown(self, run):
        assert not apply_upgrade(run, "flight").success

    def test_fighter_stat_bonus(self):
        run = RunState(character=FIGHTER)
        apply_upgrade(run, "attack")
        apply_upgrade(run, "defense")
        assert (run.attack, run.defense) == (8, 2)


class TestCreateRun:
    """Tests for starting kits."""

    def test_no_character(self):
        run = create_run()
        assert run.upgrades == []
        assert run.inventory == [None] * 4

    def test_fighter(self):
        run = create_run(FIGHTER)
        assert run.attack == 8
        assert run.defense == 2
        assert run.max_hp == 100
        assert run.hp == 100
        assert run.inventory[0].item_id == "protection"

    def test_cleric(self):
        """Cleric's Resting also raises max HP by one."""
        run = create_run(CLERIC)
        assert run.max_hp == 76
        assert run.defense == 1
        assert [i.item_id for i in run.inventory if i] == ["protection"] * 3

    def test_wizard_kit(self):
        run = create_run(WIZARD)
        assert [i.item_id for i in run.inventory] == [
            "staff-of-fireballs", "transmute", "transmute", "transmute",
        ]
        assert run.has_upgrade("wisdom")

    def test_ranger(self):
        assert create_run(RANGER).attack == 9

    def test_tourist(self):
        run = create_run(TOURIST)
        assert run.loot == 1
        assert set(run.upgrades) == {"rich", "income", "traders"}

    def test_below_has_bigger_bag(self):
        run = create_run(BELOW)
        assert run.max_inventory == 6

    def test_max_level(self):
        assert create_run(max_level=5).max_level == 5


class TestUpgradeChoice:
    """Tests for upgrade choices."""

    def test_three_distinct_options(self, run):
        choice = generate_upgrade_choice(run, random.Random(0))
        ids = [o.upgrade_id for o in choice.options]
        assert len(ids) == 3
        assert len(set(ids)) == 3

    def test_excludes_unavailable(self):
        run = RunState(character=WIZARD, upgrades=["quick", "rich"])
        for seed in range(20):
            choice = generate_upgrade_choice(run, random.Random(seed))
            ids = {o.upgrade_id for o in choice.options}
            assert not ids & {"quick", "rich", "defense"}


class TestTrophies:
    """Tests for trophy bookkeeping."""

    def test_award(self):
        trophies = []
        assert award_board_trophies(trophies, opponent_tiles_left=4, opponent_tiles_revealed=2) == 3
        assert count_trophies(trophies, TrophyKind.SILVER) == 3

    def test_last_opponent_tile_earns_nothing(self):
        trophies = []
        assert award_board_trophies(trophies, opponent_tiles_left=1, opponent_tiles_revealed=5) == 0
        assert trophies == []

    def test_perfect_board_collapses(self):
        """Twelve silvers become one gold and two silvers."""
        trophies = []
        assert award_board_trophies(trophies, opponent_tiles_left=3, opponent_tiles_revealed=0) == 12
        assert count_trophies(trophies, TrophyKind.GOLD) == 1
        assert count_trophies(trophies, TrophyKind.SILVER) == 2

    def test_stolen_silvers_do_not_collapse(self):
        trophies = [Trophy(f"s{i}", TrophyKind.SILVER, stolen=(i == 0)) for i in range(10)]
        collapse_silver_trophies(trophies)
        assert count_trophies(trophies, TrophyKind.GOLD) == 0

    def test_steal(self):
        trophies = [Trophy("g", TrophyKind.GOLD)]
        assert steal_gold_trophy(trophies, "Orc")
        assert not steal_gold_trophy(trophies, "Orc")
        assert count_trophies(trophies, TrophyKind.GOLD) == 0
        assert count_trophies(trophies, TrophyKind.GOLD, include_stolen=True) == 1


class TestSpellLearning:
    """Tests for spell milestones."""

    @pytest.mark.parametrize("level,expected", [(5, False), (6, True), (11, True), (16, True)])
    def test_wizard_milestones(self, level, expected):
        assert learns_spell_at(RunState(character=WIZARD), level) == expected

    def test_fighter_never_learns(self):
        assert not learns_spell_at(RunState(character=FIGHTER), 6)

    def test_learn_adds_mana(self, run):
        spell = learn_random_spell(run, random.Random(0))
        assert run.spells == [spell]
        assert (run.mana, run.max_mana) == (2, 2)

    def test_learns_each_spell_once(self, run):
        rng = random.Random(1)
        learned = [learn_random_spell(run, rng) for _ in range(4)]
        assert len({s.spell_id for s in learned}) == 4
        assert learn_random_spell(run, rng) is None
