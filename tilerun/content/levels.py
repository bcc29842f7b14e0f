"""
Level table - Board size, ownership ratios and spawn ranges for each level.

Every range is an inclusive (min, max) pair; the generator draws a count
uniformly from it.
"""

from __future__ import annotations
from dataclasses import dataclass, replace


MAX_LEVEL = 20
SHOP_LEVELS = {3, 6, 9, 12, 15, 18}

Range = tuple[int, int]


@dataclass(frozen=True)
class LevelSpec:
    level: int
    width: int
    height: int
    player_ratio: float
    opponent_ratio: float
    chains: Range = (0, 0)
    upgrades: Range = (1, 1)
    monsters: Range = (0, 0)
    gold: Range = (0, 0)
    health_potions: Range = (0, 1)
    mana_potions: Range = (0, 0)
    crystal_balls: Range = (0, 0)
    detectors: Range = (0, 0)
    transmutes: Range = (0, 0)
    wards: Range = (0, 0)
    blazes: Range = (0, 0)
    keys: Range = (0, 0)
    protections: Range = (1, 1)
    clues: Range = (0, 0)
    staffs: Range = (0, 0)
    rings: Range = (0, 0)
    has_shop: bool = False
    guaranteed_new_monster: bool = True

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def player_count(self) -> int:
        return max(1, round(self.player_ratio * self.area))

    @property
    def opponent_count(self) -> int:
        return max(1, round(self.opponent_ratio * self.area))


def _build_table() -> list[LevelSpec]:
    # (width, height, player_ratio, opponent_ratio, chains, monsters, gold)
    shapes = {
        1: (4, 3, 0.40, 0.34, (0, 0), (2, 2), (0, 1)),
        2: (4, 3, 0.38, 0.34, (0, 1), (2, 3), (0, 1)),
        3: (5, 3, 0.36, 0.33, (1, 2), (3, 4), (1, 2)),
        4: (5, 4, 0.35, 0.32, (1, 3), (4, 5), (1, 2)),
        5: (5, 4, 0.35, 0.32, (2, 4), (4, 6), (1, 2)),
        6: (6, 4, 0.34, 0.31, (3, 5), (5, 7), (1, 2)),
        7: (6, 4, 0.34, 0.31, (4, 6), (5, 8), (1, 2)),
        8: (6, 5, 0.33, 0.30, (5, 8), (6, 9), (1, 3)),
        9: (7, 5, 0.33, 0.30, (6, 10), (7, 10), (1, 3)),
        10: (7, 5, 0.32, 0.30, (7, 12), (8, 11), (2, 3)),
        11: (7, 6, 0.32, 0.30, (8, 14), (9, 12), (2, 4)),
        12: (8, 6, 0.31, 0.30, (9, 16), (10, 13), (2, 4)),
        13: (8, 6, 0.31, 0.30, (10, 18), (11, 14), (2, 5)),
        14: (8, 6, 0.31, 0.30, (11, 20), (12, 15), (3, 5)),
        15: (8, 6, 0.30, 0.30, (12, 22), (13, 16), (3, 5)),
        16: (8, 6, 0.30, 0.30, (13, 24), (14, 17), (3, 6)),
        17: (8, 6, 0.30, 0.30, (14, 26), (15, 18), (4, 6)),
        18: (8, 6, 0.30, 0.30, (15, 28), (16, 19), (4, 7)),
        19: (8, 6, 0.30, 0.30, (16, 30), (17, 20), (4, 7)),
        20: (8, 6, 0.30, 0.30, (18, 32), (18, 22), (5, 8)),
    }
    items = {
        1: dict(),
        2: dict(crystal_balls=(1, 1)),
        3: dict(crystal_balls=(1, 1), detectors=(1, 1)),
        4: dict(crystal_balls=(0, 1), detectors=(1, 1), wards=(1, 1), blazes=(1, 1), clues=(1, 1)),
        5: dict(
            mana_potions=(0, 1), crystal_balls=(0, 1), detectors=(0, 1),
            wards=(1, 1), blazes=(1, 1), clues=(1, 1),
        ),
        6: dict(
            mana_potions=(0, 1), crystal_balls=(0, 1), detectors=(0, 1), transmutes=(0, 1),
            wards=(0, 1), blazes=(0, 1), keys=(1, 1), clues=(1, 2), staffs=(0, 1),
        ),
    }
    late = dict(
        mana_potions=(0, 1), crystal_balls=(0, 1), detectors=(1, 2), transmutes=(1, 1),
        wards=(1, 2), blazes=(1, 2), keys=(1, 1), clues=(1, 2), staffs=(0, 1), rings=(0, 1),
    )

    table = []
    for level in range(1, MAX_LEVEL + 1):
        width, height, player_ratio, opponent_ratio, chains, monsters, gold = shapes[level]
        if level in items:
            ranges = dict(items[level])
        else:
            ranges = dict(late)
            if level >= 9:
                ranges["transmutes"] = (1, 2)
            if level >= 10:
                ranges["keys"] = (1, 2)
            if level >= 11:
                ranges["mana_potions"] = (0, 2)
        table.append(LevelSpec(
            level=level,
            width=width,
            height=height,
            player_ratio=player_ratio,
            opponent_ratio=opponent_ratio,
            chains=chains,
            monsters=monsters,
            gold=gold,
            has_shop=level in SHOP_LEVELS,
            **ranges,
        ))
    return table


LEVEL_SPECS: list[LevelSpec] = _build_table()


def get_level_spec(level: int) -> LevelSpec:
    """Spec for a 1-based level. Raises ValueError outside 1..MAX_LEVEL."""
    if level < 1 or level > len(LEVEL_SPECS):
        raise ValueError(f"Invalid level: {level} (levels run 1-{len(LEVEL_SPECS)})")
    return LEVEL_SPECS[level - 1]


def without_shop(spec: LevelSpec) -> LevelSpec:
    return replace(spec, has_shop=False)


def fog_tile_count(level: int) -> int:
    """Number of fogged tiles on a level's board."""
    if level >= 20:
        return 6
    if level >= 18:
        return 5
    if level >= 16:
        return 4
    if level >= 12:
        return 3
    if level >= 8:
        return 2
    return 0
