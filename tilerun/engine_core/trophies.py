"""
Trophies - Rewards for winning boards, and the last line of defence.

Silver trophies are earned per board win. Ten unstolen silvers collapse
into one gold. A gold trophy can be stolen by a monster instead of the
player dying.
"""

from __future__ import annotations
import logging
import uuid

from .state import Trophy, TrophyKind

logger = logging.getLogger(__name__)

SILVERS_PER_GOLD = 10
PERFECT_BOARD_BONUS = 10


def _new_trophy(kind: TrophyKind) -> Trophy:
    return Trophy(trophy_id=uuid.uuid4().hex[:8], kind=kind)


def award_board_trophies(
    trophies: list[Trophy],
    opponent_tiles_left: int,
    opponent_tiles_revealed: int,
) -> int:
    """
    Award silver trophies for a won board and collapse them into gold.

    The player earns one silver per opponent tile left beyond the first,
    plus a bonus when the opponent revealed nothing. Returns silvers earned.
    """
    earned = max(0, opponent_tiles_left - 1)
    if opponent_tiles_revealed == 0:
        earned += PERFECT_BOARD_BONUS
    for _ in range(earned):
        trophies.append(_new_trophy(TrophyKind.SILVER))
    collapse_silver_trophies(trophies)
    return earned


def collapse_silver_trophies(trophies: list[Trophy]):
    """Replace every group of ten unstolen silvers with one gold, in place."""
    silvers = [t for t in trophies if t.kind == TrophyKind.SILVER and not t.stolen]
    groups = len(silvers) // SILVERS_PER_GOLD
    if groups == 0:
        return
    spent = {id(t) for t in silvers[:groups * SILVERS_PER_GOLD]}
    trophies[:] = [t for t in trophies if id(t) not in spent]
    for _ in range(groups):
        trophies.append(_new_trophy(TrophyKind.GOLD))
    logger.info("Collapsed %d silver trophies into %d gold", groups * SILVERS_PER_GOLD, groups)


def steal_gold_trophy(trophies: list[Trophy], thief: str) -> bool:
    """Mark the first unstolen gold trophy as stolen. Returns False if none."""
    for trophy in trophies:
        if trophy.kind == TrophyKind.GOLD and not trophy.stolen:
            trophy.stolen = True
            trophy.stolen_by = thief
            logger.info("%s stole a gold trophy", thief)
            return True
    return False


def count_trophies(trophies: list[Trophy], kind: TrophyKind, include_stolen: bool = False) -> int:
    return sum(
        1 for t in trophies
        if t.kind == kind and (include_stolen or not t.stolen)
    )
