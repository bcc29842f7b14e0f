"""
Game Loop - A synchronous host that plays a run to the end.

The loop:
1. If the previous result asked for an opponent turn, run it
2. If it asked for a level transition, progress the board
3. Otherwise resolve any prompt (upgrade choice, shop)
4. Otherwise let the player strategy reveal a tile
5. Repeat until the run ends or the step budget runs out

Delays are skipped; the loop honours the scheduling flags immediately.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING
import random

from ..engine_core.action import EngineEvent, IntentResult
from ..engine_core.state import BoardStatus, GameStatus, Turn

if TYPE_CHECKING:
    from .engine import RunEngine
    from ..engine_core.state import GameState, Tile


class LoopState(Enum):
    """State of the game loop."""
    PLAYER_TURN = "player_turn"
    OPPONENT_TURN = "opponent_turn"
    AWAITING_PROMPT = "awaiting_prompt"
    BOARD_TRANSITION = "board_transition"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """Result of one loop step."""
    success: bool
    loop_state: LoopState
    messages: list[str] = field(default_factory=list)
    events: list[EngineEvent] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    status: GameStatus
    level_reached: int
    steps: int
    gold: int
    hp: int
    boards_won: int = 0


class GameLoop:
    """
    Auto-play driver.

    Usage:
        engine = RunEngine(seed=3)
        engine.select_character("fighter")
        summary = GameLoop(engine, seed=3).run()
    """

    def __init__(self, engine: RunEngine, seed: int | None = None):
        self.engine = engine
        self.rng = random.Random(seed)
        self._pending_ai = False
        self._pending_board = False
        self.boards_won = 0

    @property
    def loop_state(self) -> LoopState:
        state = self.engine.get_state()
        if state.game_status != GameStatus.PLAYING:
            return LoopState.GAME_OVER
        if state.is_awaiting_input:
            return LoopState.AWAITING_PROMPT
        if state.board_status == BoardStatus.WON:
            return LoopState.BOARD_TRANSITION
        if state.current_turn == Turn.OPPONENT:
            return LoopState.OPPONENT_TURN
        return LoopState.PLAYER_TURN

    def step(self) -> TurnResult:
        """Advance the run by one intent."""
        state = self.engine.get_state()
        if state.game_status != GameStatus.PLAYING:
            return TurnResult(success=False, loop_state=LoopState.GAME_OVER, errors=["Run is over"])

        if self._pending_ai:
            self._pending_ai = False
            result = self.engine.run_opponent_turn()
        elif self._pending_board:
            self._pending_board = False
            result = self.engine.progress_board()
        elif state.upgrade_choice is not None:
            result = self.engine.choose_upgrade(self.rng.choice(state.upgrade_choice.options).upgrade_id)
        elif state.shop_open:
            result = self._shop(state)
        elif state.board_status == BoardStatus.WON:
            result = self.engine.progress_board()
        elif state.current_turn == Turn.OPPONENT:
            result = self.engine.run_opponent_turn()
        else:
            result = self._player_move(state)

        return self._record(result)

    def run(self, max_steps: int = 10000) -> RunSummary:
        """Step until the run ends or max_steps is reached."""
        steps = 0
        while steps < max_steps and self.engine.get_state().game_status == GameStatus.PLAYING:
            self.step()
            steps += 1
        state = self.engine.get_state()
        return RunSummary(
            status=state.game_status,
            level_reached=state.run.current_level,
            steps=steps,
            gold=state.run.gold,
            hp=state.run.hp,
            boards_won=self.boards_won,
        )

    def _record(self, result: IntentResult) -> TurnResult:
        if result.should_trigger_ai:
            self._pending_ai = True
        if result.next_board_delay is not None:
            self._pending_board = True
        if EngineEvent.BOARD_WON in result.events:
            self.boards_won += 1
        return TurnResult(
            success=result.success,
            loop_state=self.loop_state,
            messages=list(result.messages),
            events=list(result.events),
            errors=[result.error] if result.error else [],
        )

    def _shop(self, state: GameState) -> IntentResult:
        run = state.run
        wants_healing = run.hp < run.max_hp // 2
        for index, offer in enumerate(state.shop_offers):
            if offer.cost > run.gold:
                continue
            if offer.is_upgrade or (wants_healing and offer.offer.item_id == "health-potion"):
                return self.engine.buy_shop_item(index)
        return self.engine.close_shop()

    def _player_move(self, state: GameState) -> IntentResult:
        tile = self._pick_tile(state)
        if tile is None:
            return self.engine.end_turn()
        return self.engine.reveal_tile(tile.x, tile.y)

    def _pick_tile(self, state: GameState) -> Tile | None:
        """Prefer tiles named by the latest clue."""
        board = state.board

        def open_tile(x: int, y: int) -> bool:
            tile = board.get_tile(x, y)
            return tile is not None and not tile.revealed and not board.is_blocked(tile)

        if state.clues:
            clue = state.clues[-1]
            hinted = [pos for pos in clue.hand_a.tiles + clue.hand_b.tiles if open_tile(*pos)]
            if hinted:
                return board.get_tile(*self.rng.choice(hinted))

        options = [t for t in board.unrevealed_tiles() if not board.is_blocked(t)]
        return self.rng.choice(options) if options else None
