"""
Run Coordinator - Applies intents to the game state.

The coordinator is the single point of state mutation.
All changes go through apply().

Design principles:
- Validates before applying; a rejected intent is a no-op
- Mutates the live GameState in place
- Returns IntentResult with events and scheduling hints
- Delegates rules to the reveal, effect, shop and upgrade modules
- Never waits: opponent turns and level transitions are separate intents
  the host triggers when the result asks for them
- A handler that raises is reported as HANDLER_ERROR and the state is
  restored to what it was before the intent
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
import copy
import logging
import random

from .state import (
    BoardStatus,
    Clue,
    GameState,
    GameStatus,
    TargetingMode,
    Targeting,
    TileOwner,
    Turn,
)
from .action import EngineEvent, Intent, IntentResult, IntentType, RejectionCode
from .board_generator import BoardGenerator, monster_kinds
from .clues import ClueBonus, ClueGenerator
from .effect_resolver import (
    EffectResult,
    ItemResolver,
    SpellResolver,
    can_cast_spell,
    process_spell_effects,
    unlock_tile,
)
from .reveal import RevealOutcome, check_board_status, player_reveal, reveal_tile
from .setup import create_run, learn_random_spell, learns_spell_at
from .shop import ShopEngine
from .trophies import award_board_trophies
from .upgrade_effects import apply_upgrade, generate_upgrade_choice
from ..bots.policy import OpponentPolicy, RandomPolicy
from ..config import EngineConfig
from ..content.characters import get_character
from ..content.levels import MAX_LEVEL, get_level_spec, without_shop

logger = logging.getLogger(__name__)

# Intents that act on the board during the player's turn
PLAYER_BOARD_INTENTS = {
    IntentType.REVEAL_TILE,
    IntentType.USE_ITEM,
    IntentType.CAST_SPELL,
    IntentType.END_TURN,
}


@dataclass
class RunCoordinator:
    """
    Applies intents to a GameState.

    Holds no game state of its own; the generators and resolvers it owns
    share one random source so a seeded coordinator is reproducible.
    """
    policy: OpponentPolicy = field(default_factory=RandomPolicy)
    config: EngineConfig = field(default_factory=EngineConfig)
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self):
        self.board_generator = BoardGenerator(rng=self.rng)
        self.clue_generator = ClueGenerator(rng=self.rng)
        self.spell_resolver = SpellResolver(rng=self.rng, clue_generator=self.clue_generator)
        self.item_resolver = ItemResolver(rng=self.rng, clue_generator=self.clue_generator)
        self.shop = ShopEngine(rng=self.rng)

    @classmethod
    def seeded(
        cls,
        seed: int | None,
        policy: OpponentPolicy | None = None,
        config: EngineConfig | None = None,
    ) -> RunCoordinator:
        return cls(
            policy=policy or RandomPolicy(seed),
            config=config or EngineConfig(seed=seed),
            rng=random.Random(seed),
        )

    def apply(self, state: GameState, intent: Intent) -> IntentResult:
        """
        Apply an intent to the game state.

        Returns IntentResult describing what happened, or why nothing did.
        """
        rejection = self._validate_intent(state, intent)
        if rejection:
            message, code = rejection
            logger.debug("Rejected %s: %s", intent.intent_type.value, message)
            return IntentResult.failure(message, error_code=code)

        handler = self._get_handler(intent.intent_type)
        if not handler:
            return IntentResult.failure(
                f"No handler for intent type: {intent.intent_type}",
                error_code=RejectionCode.NO_HANDLER,
            )

        snapshot = copy.deepcopy(state)
        try:
            return handler(state, intent)
        except Exception as e:
            logger.exception("Handler for %s failed", intent.intent_type.value)
            for state_field in fields(state):
                setattr(state, state_field.name, getattr(snapshot, state_field.name))
            return IntentResult.failure(str(e), error_code=RejectionCode.HANDLER_ERROR)

    def _validate_intent(self, state: GameState, intent: Intent) -> tuple[str, RejectionCode] | None:
        """
        Validate that an intent is legal in the current state.

        Returns (message, code) if invalid, None if valid.
        """
        intent_type = intent.intent_type
        if intent_type == IntentType.RESET:
            return None

        if intent_type == IntentType.SELECT_CHARACTER:
            if state.game_status != GameStatus.CHARACTER_SELECT:
                return "A character has already been chosen", RejectionCode.INVALID_PHASE
            return None

        if not state.is_playing:
            return f"Run is not in progress ({state.game_status.value})", RejectionCode.INVALID_PHASE

        if intent_type in PLAYER_BOARD_INTENTS:
            if state.current_turn != Turn.PLAYER:
                return "Not the player's turn", RejectionCode.NOT_YOUR_TURN
            if state.board_status != BoardStatus.IN_PROGRESS:
                return "The board is already decided", RejectionCode.INVALID_PHASE
            if state.is_awaiting_input:
                return "Close the shop or choose an upgrade first", RejectionCode.NOT_ALLOWED

        if intent_type == IntentType.OPPONENT_TURN:
            if state.current_turn != Turn.OPPONENT:
                return "Not the opponent's turn", RejectionCode.NOT_YOUR_TURN
            if state.board_status != BoardStatus.IN_PROGRESS:
                return "The board is already decided", RejectionCode.INVALID_PHASE
            if state.is_awaiting_input:
                return "Waiting for the player", RejectionCode.NOT_ALLOWED

        if intent_type == IntentType.PROGRESS_BOARD:
            if state.board_status != BoardStatus.WON:
                return "The board has not been won", RejectionCode.INVALID_PHASE
            if state.is_awaiting_input:
                return "Close the shop or choose an upgrade first", RejectionCode.NOT_ALLOWED

        if intent_type in {IntentType.USE_ITEM, IntentType.CAST_SPELL} and state.targeting:
            return "Finish or cancel the current targeting first", RejectionCode.TARGETING_ACTIVE

        if intent_type in {IntentType.REVEAL_TILE, IntentType.TOGGLE_ANNOTATION}:
            if intent.payload.x is None or intent.payload.y is None:
                return "A tile position is required", RejectionCode.INVALID_TARGET

        if intent_type == IntentType.CHOOSE_UPGRADE and state.upgrade_choice is None:
            return "No upgrade choice is pending", RejectionCode.INVALID_PHASE

        if intent_type in {IntentType.BUY_SHOP_ITEM, IntentType.CLOSE_SHOP} and not state.shop_open:
            return "The shop is not open", RejectionCode.INVALID_PHASE

        if intent_type == IntentType.DEBUG_REVEAL_PLAYER_TILES:
            if state.board_status != BoardStatus.IN_PROGRESS:
                return "The board is already decided", RejectionCode.INVALID_PHASE

        return None

    def _get_handler(self, intent_type: IntentType):
        """Get the handler function for an intent type."""
        handlers = {
            IntentType.SELECT_CHARACTER: self._handle_select_character,
            IntentType.RESET: self._handle_reset,
            IntentType.REVEAL_TILE: self._handle_reveal_tile,
            IntentType.USE_ITEM: self._handle_use_item,
            IntentType.DISCARD_ITEM: self._handle_discard_item,
            IntentType.CAST_SPELL: self._handle_cast_spell,
            IntentType.CANCEL_TARGETING: self._handle_cancel_targeting,
            IntentType.CHOOSE_UPGRADE: self._handle_choose_upgrade,
            IntentType.BUY_SHOP_ITEM: self._handle_buy_shop_item,
            IntentType.CLOSE_SHOP: self._handle_close_shop,
            IntentType.TOGGLE_ANNOTATION: self._handle_toggle_annotation,
            IntentType.END_TURN: self._handle_end_turn,
            IntentType.OPPONENT_TURN: self._handle_opponent_turn,
            IntentType.PROGRESS_BOARD: self._handle_progress_board,
            IntentType.DEBUG_ADD_GOLD: self._handle_debug_add_gold,
            IntentType.DEBUG_ADD_HEALTH: self._handle_debug_add_health,
            IntentType.DEBUG_FORCE_UPGRADE_CHOICE: self._handle_debug_force_upgrade_choice,
            IntentType.DEBUG_REVEAL_PLAYER_TILES: self._handle_debug_reveal_player_tiles,
        }
        return handlers.get(intent_type)

    # =========================================================================
    # Run lifecycle
    # =========================================================================

    def _handle_select_character(self, state: GameState, intent: Intent) -> IntentResult:
        try:
            character = get_character(intent.payload.character_id)
        except ValueError as e:
            return IntentResult.failure(str(e), error_code=RejectionCode.INVALID_TARGET)

        state.run = create_run(character, max_level=min(self.config.max_level, MAX_LEVEL))
        state.game_status = GameStatus.PLAYING
        result = IntentResult.ok([f"Playing as {character.name}"], [EngineEvent.CHARACTER_SELECTED])
        self._start_board(state, 1, result)
        return result

    def _handle_reset(self, state: GameState, intent: Intent) -> IntentResult:
        fresh = GameState.initial()
        for f in fields(GameState):
            setattr(state, f.name, getattr(fresh, f.name))
        return IntentResult.ok(["Game reset"], [EngineEvent.GAME_RESET])

    def _handle_progress_board(self, state: GameState, intent: Intent) -> IntentResult:
        run = state.run
        next_level = run.current_level + 1
        if next_level > run.max_level:
            state.game_status = GameStatus.RUN_COMPLETE
            logger.info("Run complete after level %d", run.current_level)
            return IntentResult.ok(["Run complete!"], [EngineEvent.RUN_COMPLETE])

        result = IntentResult.ok([f"Level {next_level}"], [EngineEvent.NEXT_BOARD])
        self._start_board(state, next_level, result)
        return result

    def _start_board(self, state: GameState, level: int, result: IntentResult):
        """Generate a board for `level` and apply start-of-board effects."""
        run = state.run
        spec = get_level_spec(level)
        shop_every_level = bool(run.character and run.character.trait.shop_every_level)
        if shop_every_level:
            spec = without_shop(spec)

        run.current_level = level
        run.spell_effects.clear()
        state.board = self.board_generator.generate(
            spec,
            carried_gold=run.gold,
            owned_upgrades=run.upgrades,
            character=run.character,
            seen_monsters=run.seen_monsters,
        )
        run.seen_monsters |= monster_kinds(state.board)
        state.current_turn = Turn.PLAYER
        state.board_status = BoardStatus.IN_PROGRESS
        state.targeting = None
        state.upgrade_choice = None
        state.shop_open = False
        state.shop_offers = []
        state.clues = [self._new_clue(state)]
        logger.info("Started level %d (%dx%d)", level, spec.width, spec.height)

        if learns_spell_at(run, level):
            spell = learn_random_spell(run, self.rng)
            if spell:
                result.messages.append(f"Learned {spell.name}")

        if run.has_upgrade("quick"):
            self._quick_reveal(state, result)

        if run.has_upgrade("wisdom") and state.is_playing:
            tile = self.rng.choice(list(state.board.iter_tiles()))
            tile.detector_scan = state.board.scan_area(tile.x, tile.y)
            result.messages.append(f"Wisdom scanned ({tile.x}, {tile.y})")

        if shop_every_level and state.is_playing:
            self._open_shop(state)

    def _quick_reveal(self, state: GameState, result: IntentResult):
        board = state.board
        candidates = [t for t in board.unrevealed_tiles(TileOwner.PLAYER) if not board.is_blocked(t)]
        if not candidates:
            return
        tile = self.rng.choice(candidates)
        outcome = player_reveal(state.run, board, tile.x, tile.y, self.rng)
        if outcome is not None:
            result.messages.append(f"Quick revealed ({tile.x}, {tile.y})")
            self._apply_reveal_outcome(state, outcome, result)

    def _new_clue(self, state: GameState) -> Clue:
        return self.clue_generator.generate(state.board, ClueBonus.from_upgrades(state.run.upgrades))

    # =========================================================================
    # Reveal and turn flow
    # =========================================================================

    def _handle_reveal_tile(self, state: GameState, intent: Intent) -> IntentResult:
        x, y = intent.payload.x, intent.payload.y
        if state.targeting:
            return self._resolve_targeting(state, x, y)

        board = state.board
        tile = board.get_tile(x, y)
        if tile is None:
            return IntentResult.failure(f"({x}, {y}) is off the board", error_code=RejectionCode.INVALID_TARGET)
        if tile.revealed:
            return IntentResult.failure(f"({x}, {y}) is already revealed", error_code=RejectionCode.INVALID_TARGET)
        if board.is_blocked(tile):
            return IntentResult.failure(
                f"({x}, {y}) is chained until ({tile.chain.required_x}, {tile.chain.required_y}) is revealed",
                error_code=RejectionCode.TILE_BLOCKED,
            )

        outcome = player_reveal(state.run, board, x, y, self.rng)
        result = IntentResult.ok(outcome.messages)
        self._apply_reveal_outcome(state, outcome, result)

        if state.is_playing and state.board_status == BoardStatus.IN_PROGRESS and not outcome.keeps_turn:
            self._end_player_turn(state, result)
        return result

    def _apply_reveal_outcome(self, state: GameState, outcome: RevealOutcome, result: IntentResult):
        """Turn a reveal outcome into state transitions."""
        if outcome.player_died:
            state.game_status = GameStatus.PLAYER_DIED
            state.targeting = None
            result.events.append(EngineEvent.PLAYER_DIED)
            return
        if outcome.upgrade_choice:
            state.upgrade_choice = generate_upgrade_choice(state.run, self.rng)
            if state.upgrade_choice is None:
                result.messages.append("No upgrades left to choose from")
        if outcome.shop_opened:
            self._open_shop(state)
        self._check_board(state, result)

    def _check_board(self, state: GameState, result: IntentResult):
        if state.board_status != BoardStatus.IN_PROGRESS:
            return
        status = check_board_status(state.board)
        board = state.board
        if status == BoardStatus.WON:
            state.board_status = BoardStatus.WON
            state.targeting = None
            earned = award_board_trophies(
                state.run.trophies, board.opponent_tiles_left, board.opponent_tiles_revealed
            )
            result.events.append(EngineEvent.BOARD_WON)
            result.messages.append(f"Board won! Earned {earned} silver trophies")
            self._schedule_next_board(state, result)
        elif status == BoardStatus.LOST:
            state.board_status = BoardStatus.LOST
            state.game_status = GameStatus.OPPONENT_WON
            state.targeting = None
            result.events.append(EngineEvent.BOARD_LOST)
            result.messages.append("The opponent revealed all their tiles")

    def _schedule_next_board(self, state: GameState, result: IntentResult):
        if state.board_status == BoardStatus.WON and state.is_playing and not state.is_awaiting_input:
            result.next_board_delay = self.config.next_board_delay_ms

    def _resume_after_prompt(self, state: GameState, result: IntentResult):
        """After the shop closes or an upgrade is chosen, continue whatever was waiting."""
        if state.is_awaiting_input or not state.is_playing:
            return
        if state.board_status == BoardStatus.WON:
            self._schedule_next_board(state, result)
        elif state.board_status == BoardStatus.IN_PROGRESS and state.current_turn == Turn.OPPONENT:
            result.should_trigger_ai = True

    def _end_player_turn(self, state: GameState, result: IntentResult):
        state.current_turn = Turn.OPPONENT
        state.targeting = None
        result.events.append(EngineEvent.TURN_ENDED)
        result.should_trigger_ai = not state.is_awaiting_input

    def _handle_end_turn(self, state: GameState, intent: Intent) -> IntentResult:
        result = IntentResult.ok(["Turn ended"])
        self._end_player_turn(state, result)
        return result

    def _handle_opponent_turn(self, state: GameState, intent: Intent) -> IntentResult:
        board = state.board
        result = IntentResult.ok()
        choice = self.policy.choose_move(board)
        if choice is None:
            result.messages.append("The opponent has no tile to reveal")
        elif reveal_tile(board, choice.x, choice.y, TileOwner.OPPONENT):
            result.messages.append(f"The opponent revealed ({choice.x}, {choice.y})")
            logger.debug("%s revealed (%d, %d)", self.policy.get_name(), choice.x, choice.y)
        else:
            logger.warning("%s chose an illegal tile (%d, %d)", self.policy.get_name(), choice.x, choice.y)

        result.messages.extend(process_spell_effects(state.run, board, self.rng))
        self._check_board(state, result)

        if state.board_status == BoardStatus.IN_PROGRESS:
            state.clues.append(self._new_clue(state))
            state.current_turn = Turn.PLAYER
            result.events.append(EngineEvent.TURN_ENDED)
        return result

    # =========================================================================
    # Items, spells and targeting
    # =========================================================================

    def _handle_use_item(self, state: GameState, intent: Intent) -> IntentResult:
        index = intent.payload.index
        if index is None:
            return IntentResult.failure("An inventory slot is required", error_code=RejectionCode.INVALID_TARGET)
        effect = self.item_resolver.use(state.run, state.board, index)
        if effect.requires_targeting:
            state.targeting = Targeting(mode=effect.targeting_mode, item_index=index)
            result = IntentResult.ok([effect.message])
            result.requires_targeting = True
            return result
        if not effect.success:
            return IntentResult.failure(effect.message, error_code=RejectionCode.NOT_ALLOWED)
        result = IntentResult.ok([effect.message])
        self._apply_effect_result(state, effect, result)
        return result

    def _handle_discard_item(self, state: GameState, intent: Intent) -> IntentResult:
        index = intent.payload.index
        run = state.run
        if index is None or not 0 <= index < len(run.inventory) or run.inventory[index] is None:
            return IntentResult.failure("No item in that slot", error_code=RejectionCode.INVALID_TARGET)
        item = run.inventory[index]
        run.inventory[index] = None
        if state.targeting and state.targeting.item_index == index:
            state.targeting = None
        return IntentResult.ok([f"Discarded {item.name}"])

    def _handle_cast_spell(self, state: GameState, intent: Intent) -> IntentResult:
        run = state.run
        index = intent.payload.index
        if index is None or not 0 <= index < len(run.spells):
            return IntentResult.failure("No spell in that slot", error_code=RejectionCode.INVALID_TARGET)
        spell = run.spells[index]

        rejection = self._spell_rejection(state, index)
        if rejection:
            return rejection

        effect = self.spell_resolver.cast(spell, run, state.board, intent.payload.x, intent.payload.y)
        if effect.requires_targeting:
            state.targeting = Targeting(mode=TargetingMode.SPELL, spell_index=index)
            result = IntentResult.ok([effect.message])
            result.requires_targeting = True
            return result
        return self._finish_spell(state, spell, effect)

    def _spell_rejection(self, state: GameState, index: int) -> IntentResult | None:
        run = state.run
        allowed, reason = can_cast_spell(run.spells[index], run)
        if allowed:
            return None
        code = RejectionCode.INSUFFICIENT_MANA
        if run.character is not None and not run.character.trait.can_cast_spells:
            code = RejectionCode.NOT_ALLOWED
        return IntentResult.failure(reason, error_code=code)

    def _finish_spell(self, state: GameState, spell, effect: EffectResult) -> IntentResult:
        if not effect.success:
            return IntentResult.failure(effect.message, error_code=RejectionCode.INVALID_TARGET)
        state.run.mana -= spell.mana_cost
        state.targeting = None
        result = IntentResult.ok([effect.message])
        self._apply_effect_result(state, effect, result)
        return result

    def _resolve_targeting(self, state: GameState, x: int, y: int) -> IntentResult:
        """Route a tile intent to the active targeting mode."""
        targeting = state.targeting
        run = state.run

        if targeting.mode == TargetingMode.SPELL:
            index = targeting.spell_index
            if index is None or not 0 <= index < len(run.spells):
                state.targeting = None
                return IntentResult.failure("The spell is no longer available", error_code=RejectionCode.INVALID_TARGET)
            rejection = self._spell_rejection(state, index)
            if rejection:
                return rejection
            spell = run.spells[index]
            effect = self.spell_resolver.cast(spell, run, state.board, x, y)
            return self._finish_spell(state, spell, effect)

        effect = self.item_resolver.apply_targeted(run, state.board, targeting.mode, targeting.item_index, x, y)
        if not (effect.success or effect.consumed):
            return IntentResult.failure(effect.message, error_code=RejectionCode.INVALID_TARGET)
        state.targeting = None
        result = IntentResult.ok([effect.message])
        self._apply_effect_result(state, effect, result)
        return result

    def _apply_effect_result(self, state: GameState, effect: EffectResult, result: IntentResult):
        if effect.clue is not None:
            state.clues.append(effect.clue)
        if effect.reveal is not None:
            result.messages.extend(m for m in effect.reveal.messages if m not in result.messages)
            self._apply_reveal_outcome(state, effect.reveal, result)
        else:
            self._check_board(state, result)

    def _handle_cancel_targeting(self, state: GameState, intent: Intent) -> IntentResult:
        if state.targeting is None:
            return IntentResult.failure("Nothing to cancel", error_code=RejectionCode.NOT_ALLOWED)
        mode = state.targeting.mode
        state.targeting = None
        return IntentResult.ok([f"Cancelled {mode.value} targeting"])

    def _handle_toggle_annotation(self, state: GameState, intent: Intent) -> IntentResult:
        tile = state.board.get_tile(intent.payload.x, intent.payload.y)
        if tile is None or tile.revealed:
            return IntentResult.failure("Only hidden tiles can be annotated", error_code=RejectionCode.INVALID_TARGET)
        tile.annotation = tile.annotation.next()
        return IntentResult.ok([f"Annotation: {tile.annotation.value}"])

    # =========================================================================
    # Upgrades and shop
    # =========================================================================

    def _handle_choose_upgrade(self, state: GameState, intent: Intent) -> IntentResult:
        upgrade_id = intent.payload.upgrade_id
        options = {option.upgrade_id for option in state.upgrade_choice.options}
        if upgrade_id not in options:
            return IntentResult.failure(f"{upgrade_id} is not on offer", error_code=RejectionCode.INVALID_TARGET)

        applied = apply_upgrade(state.run, upgrade_id)
        if not applied.success:
            return IntentResult.failure(applied.message, error_code=RejectionCode.NOT_ALLOWED)

        state.upgrade_choice = None
        result = IntentResult.ok([applied.message])
        self._resume_after_prompt(state, result)
        return result

    def _open_shop(self, state: GameState):
        state.shop_offers = self.shop.open(state.run)
        state.shop_open = True

    def _handle_buy_shop_item(self, state: GameState, intent: Intent) -> IntentResult:
        index = intent.payload.index
        if index is None:
            return IntentResult.failure("Invalid item index", error_code=RejectionCode.INVALID_TARGET)
        purchase = self.shop.buy(state.run, state.shop_offers, index)
        if not purchase.success:
            return IntentResult.failure(purchase.message, error_code=purchase.error_code)
        return IntentResult.ok([purchase.message])

    def _handle_close_shop(self, state: GameState, intent: Intent) -> IntentResult:
        state.shop_open = False
        state.shop_offers = []
        result = IntentResult.ok(["Shop closed"])
        self._resume_after_prompt(state, result)
        return result

    # =========================================================================
    # Debug
    # =========================================================================

    def _handle_debug_add_gold(self, state: GameState, intent: Intent) -> IntentResult:
        amount = intent.payload.amount if intent.payload.amount is not None else 1
        state.run.gold += amount
        return IntentResult.ok([f"Added {amount} gold"])

    def _handle_debug_add_health(self, state: GameState, intent: Intent) -> IntentResult:
        amount = intent.payload.amount if intent.payload.amount is not None else 10
        gained = state.run.heal(amount)
        return IntentResult.ok([f"Healed {gained} HP"])

    def _handle_debug_force_upgrade_choice(self, state: GameState, intent: Intent) -> IntentResult:
        choice = generate_upgrade_choice(state.run, self.rng)
        if choice is None:
            return IntentResult.failure("No upgrades left to choose from", error_code=RejectionCode.NOT_ALLOWED)
        state.upgrade_choice = choice
        return IntentResult.ok(["Upgrade choice offered"])

    def _handle_debug_reveal_player_tiles(self, state: GameState, intent: Intent) -> IntentResult:
        board = state.board
        revealed = 0
        for tile in board.unrevealed_tiles(TileOwner.PLAYER):
            if board.is_blocked(tile):
                unlock_tile(board, tile)
            if reveal_tile(board, tile.x, tile.y, TileOwner.PLAYER):
                revealed += 1
        result = IntentResult.ok([f"Revealed {revealed} player tiles"])
        self._check_board(state, result)
        return result


def apply_intent(state: GameState, intent: Intent, coordinator: RunCoordinator | None = None) -> IntentResult:
    """
    Convenience function to apply an intent.

    Creates a coordinator if not provided.
    """
    if coordinator is None:
        coordinator = RunCoordinator()
    return coordinator.apply(state, intent)
