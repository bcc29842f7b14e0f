"""
Engine Core - Run state and intents.

Rules modules (reveal, board_generator, clues, effect_resolver, shop,
coordinator) are imported from their own modules; this package only
re-exports the data model and the intent types.
"""

from .state import (
    Annotation,
    Board,
    BoardStatus,
    ChainLink,
    Clue,
    ClueHand,
    DetectorScan,
    GameState,
    GameStatus,
    GoldData,
    ItemData,
    MonsterData,
    RunState,
    ShopOffer,
    SpellData,
    SpellEffect,
    SpellTarget,
    Targeting,
    TargetingMode,
    TemporaryBuffs,
    Tile,
    TileContent,
    TileOwner,
    TrapData,
    Trophy,
    TrophyKind,
    Turn,
    UpgradeChoice,
    UpgradeData,
)
from .action import EngineEvent, Intent, IntentPayload, IntentResult, IntentType, RejectionCode

__all__ = [
    "Annotation",
    "Board",
    "BoardStatus",
    "ChainLink",
    "Clue",
    "ClueHand",
    "DetectorScan",
    "GameState",
    "GameStatus",
    "GoldData",
    "ItemData",
    "MonsterData",
    "RunState",
    "ShopOffer",
    "SpellData",
    "SpellEffect",
    "SpellTarget",
    "Targeting",
    "TargetingMode",
    "TemporaryBuffs",
    "Tile",
    "TileContent",
    "TileOwner",
    "TrapData",
    "Trophy",
    "TrophyKind",
    "Turn",
    "UpgradeChoice",
    "UpgradeData",
    "EngineEvent",
    "Intent",
    "IntentPayload",
    "IntentResult",
    "IntentType",
    "RejectionCode",
]
