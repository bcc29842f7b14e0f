"""
Intent System - Intents, payloads, events and results.

Intents represent:
1. Player commands (reveal, use item, cast spell, buy, choose upgrade)
2. Turn flow (end turn, opponent turn, progress to next board, reset)
3. Debug commands (routed through the same validation as everything else)

All state changes flow through intents. A rejected intent is a no-op that
returns a failure result; it never raises.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IntentType(Enum):
    """Types of intents the coordinator accepts."""
    # Run lifecycle
    SELECT_CHARACTER = "select_character"
    RESET = "reset"

    # Player commands
    REVEAL_TILE = "reveal_tile"
    USE_ITEM = "use_item"
    DISCARD_ITEM = "discard_item"
    CAST_SPELL = "cast_spell"
    CANCEL_TARGETING = "cancel_targeting"
    CHOOSE_UPGRADE = "choose_upgrade"
    BUY_SHOP_ITEM = "buy_shop_item"
    CLOSE_SHOP = "close_shop"
    TOGGLE_ANNOTATION = "toggle_annotation"

    # Turn flow
    END_TURN = "end_turn"
    OPPONENT_TURN = "opponent_turn"
    PROGRESS_BOARD = "progress_board"

    # Debug
    DEBUG_ADD_GOLD = "debug_add_gold"
    DEBUG_ADD_HEALTH = "debug_add_health"
    DEBUG_FORCE_UPGRADE_CHOICE = "debug_force_upgrade_choice"
    DEBUG_REVEAL_PLAYER_TILES = "debug_reveal_player_tiles"


class EngineEvent(Enum):
    """Notable transitions, reported alongside results."""
    CHARACTER_SELECTED = "character-selected"
    TURN_ENDED = "turn-ended"
    BOARD_WON = "board-won"
    BOARD_LOST = "board-lost"
    NEXT_BOARD = "next-board"
    RUN_COMPLETE = "run-complete"
    PLAYER_DIED = "player-died"
    GAME_RESET = "game-reset"


class RejectionCode(str, Enum):
    """Why an intent was rejected."""
    INVALID_PHASE = "INVALID_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_TARGET = "INVALID_TARGET"
    TILE_BLOCKED = "TILE_BLOCKED"
    INSUFFICIENT_MANA = "INSUFFICIENT_MANA"
    INSUFFICIENT_GOLD = "INSUFFICIENT_GOLD"
    TARGETING_REQUIRED = "TARGETING_REQUIRED"
    TARGETING_ACTIVE = "TARGETING_ACTIVE"
    NOT_ALLOWED = "NOT_ALLOWED"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"


@dataclass
class IntentPayload:
    """
    Parameters for an intent.

    Different intent types use different fields.
    Validation happens in the coordinator.
    """
    x: int | None = None
    y: int | None = None
    index: int | None = None
    character_id: str | None = None
    upgrade_id: str | None = None
    amount: int | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Intent:
    intent_type: IntentType
    payload: IntentPayload = field(default_factory=IntentPayload)

    @classmethod
    def select_character(cls, character_id: str) -> Intent:
        return cls(IntentType.SELECT_CHARACTER, IntentPayload(character_id=character_id))

    @classmethod
    def reset(cls) -> Intent:
        return cls(IntentType.RESET)

    @classmethod
    def reveal_tile(cls, x: int, y: int) -> Intent:
        return cls(IntentType.REVEAL_TILE, IntentPayload(x=x, y=y))

    @classmethod
    def use_item(cls, index: int) -> Intent:
        return cls(IntentType.USE_ITEM, IntentPayload(index=index))

    @classmethod
    def discard_item(cls, index: int) -> Intent:
        return cls(IntentType.DISCARD_ITEM, IntentPayload(index=index))

    @classmethod
    def cast_spell(cls, index: int, x: int | None = None, y: int | None = None) -> Intent:
        """Cast the spell at `index`. Targeted spells without x/y enter targeting mode."""
        return cls(IntentType.CAST_SPELL, IntentPayload(index=index, x=x, y=y))

    @classmethod
    def cancel_targeting(cls) -> Intent:
        return cls(IntentType.CANCEL_TARGETING)

    @classmethod
    def choose_upgrade(cls, upgrade_id: str) -> Intent:
        return cls(IntentType.CHOOSE_UPGRADE, IntentPayload(upgrade_id=upgrade_id))

    @classmethod
    def buy_shop_item(cls, index: int) -> Intent:
        return cls(IntentType.BUY_SHOP_ITEM, IntentPayload(index=index))

    @classmethod
    def close_shop(cls) -> Intent:
        return cls(IntentType.CLOSE_SHOP)

    @classmethod
    def toggle_annotation(cls, x: int, y: int) -> Intent:
        return cls(IntentType.TOGGLE_ANNOTATION, IntentPayload(x=x, y=y))

    @classmethod
    def end_turn(cls) -> Intent:
        return cls(IntentType.END_TURN)

    @classmethod
    def opponent_turn(cls) -> Intent:
        return cls(IntentType.OPPONENT_TURN)

    @classmethod
    def progress_board(cls) -> Intent:
        return cls(IntentType.PROGRESS_BOARD)

    @classmethod
    def debug_add_gold(cls, amount: int = 1) -> Intent:
        return cls(IntentType.DEBUG_ADD_GOLD, IntentPayload(amount=amount))

    @classmethod
    def debug_add_health(cls, amount: int = 10) -> Intent:
        return cls(IntentType.DEBUG_ADD_HEALTH, IntentPayload(amount=amount))

    @classmethod
    def debug_force_upgrade_choice(cls) -> Intent:
        return cls(IntentType.DEBUG_FORCE_UPGRADE_CHOICE)

    @classmethod
    def debug_reveal_player_tiles(cls) -> Intent:
        return cls(IntentType.DEBUG_REVEAL_PLAYER_TILES)


@dataclass
class IntentResult:
    """
    Result of applying an intent.

    Contains:
    - Whether the intent succeeded, and why not
    - Events raised while resolving it
    - Human-readable messages
    - Scheduling hints for the host: should_trigger_ai asks for an
      opponent turn after ai_turn_delay_ms, next_board_delay asks for
      progress_board after that many milliseconds
    """
    success: bool
    error: str | None = None
    error_code: str | None = None

    events: list[EngineEvent] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    should_trigger_ai: bool = False
    next_board_delay: int | None = None
    requires_targeting: bool = False

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> IntentResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, messages: list[str] | None = None, events: list[EngineEvent] | None = None) -> IntentResult:
        """Create a success result."""
        return cls(success=True, messages=messages or [], events=events or [])
