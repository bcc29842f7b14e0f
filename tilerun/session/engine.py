"""
Run Engine - The object hosts talk to.

An engine owns one GameState and one RunCoordinator. Hosts:
- read the live state with get_state() (no copy; do not mutate it)
- send intents through the named methods or dispatch()
- subscribe() to be called after every committed change

The engine never schedules anything. When a result carries
should_trigger_ai the host calls run_opponent_turn() after
config.ai_turn_delay_ms; when it carries next_board_delay the host calls
progress_board() after that many milliseconds.
"""

from __future__ import annotations
from typing import Callable
import logging

from ..bots.policy import OpponentPolicy
from ..config import EngineConfig
from ..engine_core.action import Intent, IntentResult
from ..engine_core.coordinator import RunCoordinator
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class _Subscription:
    def __init__(self, listener: Listener):
        self.listener = listener


class RunEngine:
    """
    Explicit engine instance.

    Usage:
        engine = RunEngine(seed=7)
        unsubscribe = engine.subscribe(redraw)
        engine.select_character("fighter")
        result = engine.reveal_tile(0, 0)
        if result.should_trigger_ai:
            schedule(engine.config.ai_turn_delay_ms, engine.run_opponent_turn)
    """

    def __init__(
        self,
        seed: int | None = None,
        policy: OpponentPolicy | None = None,
        config: EngineConfig | None = None,
        coordinator: RunCoordinator | None = None,
    ):
        self.config = config or EngineConfig(seed=seed)
        self.coordinator = coordinator or RunCoordinator.seeded(
            seed if seed is not None else self.config.seed,
            policy=policy,
            config=self.config,
        )
        self._state = GameState.initial()
        self._subscriptions: list[_Subscription] = []
        self.last_result: IntentResult | None = None

    # -------------------------------------------------------------------------
    # State and notifications
    # -------------------------------------------------------------------------

    def get_state(self) -> GameState:
        """The live state. Read-only by contract."""
        return self._state

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a no-argument callback fired after every committed change.

        Returns an unsubscribe function that is safe to call more than once.
        """
        subscription = _Subscription(listener)
        self._subscriptions.append(subscription)

        def unsubscribe():
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _notify(self):
        for subscription in list(self._subscriptions):
            subscription.listener()

    def dispatch(self, intent: Intent) -> IntentResult:
        """Apply an intent and notify subscribers if it changed anything."""
        result = self.coordinator.apply(self._state, intent)
        self.last_result = result
        if result.success:
            self._notify()
        return result

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    def select_character(self, character_id: str) -> IntentResult:
        return self.dispatch(Intent.select_character(character_id))

    def reset(self) -> IntentResult:
        return self.dispatch(Intent.reset())

    def reveal_tile(self, x: int, y: int) -> IntentResult:
        return self.dispatch(Intent.reveal_tile(x, y))

    def use_item(self, index: int) -> IntentResult:
        return self.dispatch(Intent.use_item(index))

    def discard_item(self, index: int) -> IntentResult:
        return self.dispatch(Intent.discard_item(index))

    def cast_spell(self, index: int, x: int | None = None, y: int | None = None) -> IntentResult:
        return self.dispatch(Intent.cast_spell(index, x, y))

    def cancel_targeting(self) -> IntentResult:
        return self.dispatch(Intent.cancel_targeting())

    def choose_upgrade(self, upgrade_id: str) -> IntentResult:
        return self.dispatch(Intent.choose_upgrade(upgrade_id))

    def buy_shop_item(self, index: int) -> IntentResult:
        return self.dispatch(Intent.buy_shop_item(index))

    def close_shop(self) -> IntentResult:
        return self.dispatch(Intent.close_shop())

    def toggle_annotation(self, x: int, y: int) -> IntentResult:
        return self.dispatch(Intent.toggle_annotation(x, y))

    def end_turn(self) -> IntentResult:
        return self.dispatch(Intent.end_turn())

    def run_opponent_turn(self) -> IntentResult:
        return self.dispatch(Intent.opponent_turn())

    def progress_board(self) -> IntentResult:
        return self.dispatch(Intent.progress_board())

    # -------------------------------------------------------------------------
    # Debug
    # -------------------------------------------------------------------------

    def debug_add_gold(self, amount: int = 1) -> IntentResult:
        return self.dispatch(Intent.debug_add_gold(amount))

    def debug_add_health(self, amount: int = 10) -> IntentResult:
        return self.dispatch(Intent.debug_add_health(amount))

    def debug_force_upgrade_choice(self) -> IntentResult:
        return self.dispatch(Intent.debug_force_upgrade_choice())

    def debug_reveal_player_tiles(self) -> IntentResult:
        return self.dispatch(Intent.debug_reveal_player_tiles())
