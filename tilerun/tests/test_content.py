"""
Tests for the content catalogs.

Tests:
- Level table lookups and fog schedule
- Characters and shop surcharges
- Upgrade availability rules
- Item, monster and spell catalogs
"""

import pytest

from ..content.characters import BELOW, CLERIC, TOURIST, WIZARD, get_character, modify_shop_price
from ..content.items import (
    ALL_ITEMS,
    SHOP_ITEMS,
    create_item,
    get_item,
    guaranteed_new_monster,
    monster_pool,
)
from ..content.levels import LEVEL_SPECS, MAX_LEVEL, SHOP_LEVELS, fog_tile_count, get_level_spec, without_shop
from ..content.spells import ALL_SPELLS, get_spell
from ..content.upgrades import ALL_UPGRADES, availability_error, available_upgrades, is_repeatable


class TestLevels:
    """Tests for the level table."""

    def test_table_covers_every_level(self):
        """There is one spec per level, numbered from 1."""
        assert len(LEVEL_SPECS) == MAX_LEVEL
        assert [spec.level for spec in LEVEL_SPECS] == list(range(1, MAX_LEVEL + 1))

    def test_invalid_level_raises(self):
        """Levels outside 1..20 raise ValueError."""
        with pytest.raises(ValueError):
            get_level_spec(0)
        with pytest.raises(ValueError):
            get_level_spec(MAX_LEVEL + 1)

    def test_shop_levels(self):
        """Only every third level has a shop."""
        for spec in LEVEL_SPECS:
            assert spec.has_shop == (spec.level in SHOP_LEVELS)

    def test_without_shop(self):
        spec = without_shop(get_level_spec(3))
        assert not spec.has_shop
        assert spec.level == 3

    def test_tile_counts_fit_board(self):
        """Player and opponent tiles always fit with room to spare."""
        for spec in LEVEL_SPECS:
            assert spec.player_count >= 1
            assert spec.opponent_count >= 1
            assert spec.player_count + spec.opponent_count < spec.area

    def test_fog_schedule(self):
        """Fog starts at level 8 and grows to six tiles."""
        assert fog_tile_count(1) == 0
        assert fog_tile_count(7) == 0
        assert fog_tile_count(8) == 2
        assert fog_tile_count(12) == 3
        assert fog_tile_count(20) == 6

    def test_boards_grow(self):
        """Boards never shrink as levels go up."""
        areas = [spec.area for spec in LEVEL_SPECS]
        assert areas == sorted(areas)


class TestCharacters:
    """Tests for characters and their traits."""

    def test_unknown_character_raises(self):
        with pytest.raises(ValueError):
            get_character("bard")

    def test_lookup(self):
        assert get_character("wizard") is WIZARD

    def test_tourist_surcharge(self):
        """Tourist prices rise in tiers."""
        assert modify_shop_price(TOURIST, 5, 1) == 7
        assert modify_shop_price(TOURIST, 5, 6) == 8
        assert modify_shop_price(TOURIST, 5, 16) == 10

    def test_no_surcharge_without_trait(self):
        assert modify_shop_price(None, 5, 10) == 5
        assert modify_shop_price(CLERIC, 5, 10) == 5


class TestUpgradeAvailability:
    """Tests for upgrade availability rules."""

    def test_catalog_size(self):
        assert len(ALL_UPGRADES) == 13

    def test_unknown_upgrade(self):
        assert availability_error("flight", []) == "Unknown upgrade"

    def test_blocked_for_character(self):
        """Wizards cannot take Defense."""
        assert availability_error("defense", [], WIZARD) == "Defense upgrade is not available for Wizard"

    def test_character_limit(self):
        """Clerics can only hold one Income."""
        assert availability_error("income", [], CLERIC) is None
        assert availability_error("income", ["income"], CLERIC) is not None

    def test_non_repeatable(self):
        assert availability_error("quick", ["quick"]) == "Already have Quick upgrade (non-repeatable)"

    def test_extra_repeatable(self):
        """Below may stack hand upgrades."""
        assert not is_repeatable("left-hand")
        assert is_repeatable("left-hand", BELOW)
        assert availability_error("left-hand", ["left-hand"], BELOW) is None

    def test_available_upgrades_excludes_owned(self):
        ids = {u.id for u in available_upgrades(["quick", "rich", "attack"])}
        assert "quick" not in ids
        assert "rich" not in ids
        assert "attack" in ids


class TestItemCatalog:
    """Tests for the item and monster catalogs."""

    def test_unknown_item_raises(self):
        with pytest.raises(ValueError):
            get_item("wand")

    def test_multi_use_items_start_full(self):
        staff = create_item("staff-of-fireballs")
        assert staff.uses == 3
        assert staff.is_multi_use
        assert create_item("ring-of-true-seeing").uses == 6
        assert not create_item("key").is_multi_use

    def test_create_returns_fresh_instances(self):
        assert create_item("key") is not create_item("key")

    def test_shop_items_are_catalog_items(self):
        assert {i.id for i in SHOP_ITEMS} <= {i.id for i in ALL_ITEMS}
        assert "health-potion" not in {i.id for i in SHOP_ITEMS}

    def test_monster_pool_grows(self):
        """Level 1 only has rats; deeper levels add kinds in order."""
        assert [m.id for m in monster_pool(1)] == ["rat"]
        assert [m.id for m in monster_pool(3)] == ["rat", "spider"]
        assert len(monster_pool(40)) == 10

    def test_guaranteed_new_monster(self):
        """The newest unseen kind is guaranteed; None once all are seen."""
        assert guaranteed_new_monster(3).kind == "spider"
        assert guaranteed_new_monster(3, {"spider"}).kind == "rat"
        assert guaranteed_new_monster(3, {"rat", "spider"}) is None


class TestSpells:
    """Tests for the spell catalog."""

    def test_catalog(self):
        assert [s.spell_id for s in ALL_SPELLS] == ["magic-missile", "mage-hand", "stinking-cloud", "glimpse"]

    def test_get_spell_returns_copy(self):
        spell = get_spell("glimpse")
        assert spell == ALL_SPELLS[3]
        assert spell is not ALL_SPELLS[3]

    def test_unknown_spell_raises(self):
        with pytest.raises(ValueError):
            get_spell("wish")
