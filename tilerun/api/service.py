"""
API Service - Business logic layer between the HTTP app and the engine.

The service:
1. Creates and ends runs through the SessionManager
2. Translates intent requests into engine intents
3. Builds state snapshots for display

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    BoardView,
    BuffsView,
    ChainView,
    ClueView,
    CreateRunRequest,
    DetectorScanView,
    GameStateView,
    IntentRequest,
    IntentResponse,
    ItemView,
    LevelInfo,
    MonsterView,
    RunResponse,
    RunView,
    ShopOfferView,
    SpellView,
    TileView,
    TrophyView,
    UpgradeView,
)
from ..config import TILERUN_ENV
from ..content.levels import LEVEL_SPECS, fog_tile_count
from ..engine_core.action import Intent, IntentPayload, IntentResult, IntentType
from ..engine_core.state import Board, GameState, RunState, Tile, TileContent
from ..session import Session, SessionManager

logger = logging.getLogger(__name__)


class DebugDisabledError(Exception):
    """Raised when a debug intent is sent while debug intents are disabled."""


# =============================================================================
# State conversion
# =============================================================================

def tile_view(board: Board, tile: Tile) -> TileView:
    """Snapshot one tile. Fogged, unrevealed tiles only show their scan."""
    scan = DetectorScanView.model_validate(tile.detector_scan) if tile.detector_scan else None
    if tile.fogged and not tile.revealed:
        return TileView(x=tile.x, y=tile.y, fogged=True, detector_scan=scan)

    view = TileView(
        x=tile.x,
        y=tile.y,
        owner=tile.owner.value if tile.revealed else None,
        revealed=tile.revealed,
        revealed_by=tile.revealed_by.value if tile.revealed_by else None,
        annotation=tile.annotation.value,
        fogged=tile.fogged,
        blocked=board.is_blocked(tile),
        content=tile.content.value,
        detector_scan=scan,
    )
    if tile.monster:
        view.monster = MonsterView.model_validate(tile.monster)
    elif tile.item:
        view.item = ItemView.model_validate(tile.item)
    elif tile.upgrade:
        view.upgrade = UpgradeView.model_validate(tile.upgrade)
    elif tile.content == TileContent.GOLD:
        view.gold = tile.payload.amount
    if tile.chain:
        view.chain = ChainView(
            chain_id=tile.chain.chain_id,
            is_blocked=tile.chain.is_blocked,
            required_x=tile.chain.required_x,
            required_y=tile.chain.required_y,
        )
    return view


def board_view(board: Board) -> BoardView:
    return BoardView(
        width=board.width,
        height=board.height,
        level=board.level,
        player_tiles_total=board.player_tiles_total,
        opponent_tiles_total=board.opponent_tiles_total,
        player_tiles_revealed=board.player_tiles_revealed,
        opponent_tiles_revealed=board.opponent_tiles_revealed,
        tiles=[[tile_view(board, tile) for tile in row] for row in board.tiles],
    )


def run_view(run: RunState) -> RunView:
    return RunView(
        character_id=run.character.id if run.character else None,
        current_level=run.current_level,
        max_level=run.max_level,
        hp=run.hp,
        max_hp=run.max_hp,
        gold=run.gold,
        attack=run.attack,
        defense=run.defense,
        loot=run.loot,
        mana=run.mana,
        max_mana=run.max_mana,
        upgrades=list(run.upgrades),
        inventory=[ItemView.model_validate(item) if item else None for item in run.inventory],
        spells=[
            SpellView(
                spell_id=spell.spell_id,
                name=spell.name,
                description=spell.description,
                mana_cost=spell.mana_cost,
                target=spell.target.value,
            )
            for spell in run.spells
        ],
        trophies=[
            TrophyView(
                trophy_id=trophy.trophy_id,
                kind=trophy.kind.value,
                stolen=trophy.stolen,
                stolen_by=trophy.stolen_by,
            )
            for trophy in run.trophies
        ],
        buffs=BuffsView.model_validate(run.temporary_buffs),
    )


def state_view(state: GameState) -> GameStateView:
    """Build a complete snapshot of a game state."""
    return GameStateView(
        game_status=state.game_status.value,
        board_status=state.board_status.value,
        current_turn=state.current_turn.value,
        awaiting_input=state.is_awaiting_input,
        board=board_view(state.board),
        run=run_view(state.run),
        clues=[
            ClueView(hand_a=list(clue.hand_a.tiles), hand_b=list(clue.hand_b.tiles), hint=clue.hint)
            for clue in state.clues
        ],
        shop_open=state.shop_open,
        shop_offers=[
            ShopOfferView(
                kind="upgrade" if offer.is_upgrade else "item",
                offer_id=offer.offer.upgrade_id if offer.is_upgrade else offer.offer.item_id,
                name=offer.offer.name,
                description=offer.offer.description,
                cost=offer.cost,
            )
            for offer in state.shop_offers
        ],
        targeting=state.targeting.mode.value if state.targeting else None,
        upgrade_choice=[
            UpgradeView.model_validate(option)
            for option in (state.upgrade_choice.options if state.upgrade_choice else [])
        ],
    )


def build_intent(request: IntentRequest) -> Intent:
    """Translate an HTTP intent request into an engine intent."""
    return Intent(
        intent_type=IntentType(request.intent_type.value),
        payload=IntentPayload(
            x=request.x,
            y=request.y,
            index=request.index,
            character_id=request.character_id,
            upgrade_id=request.upgrade_id,
            amount=request.amount,
        ),
    )


def intent_response(result: IntentResult, state: GameState) -> IntentResponse:
    return IntentResponse(
        success=result.success,
        error=result.error,
        error_code=result.error_code.value if result.error_code else None,
        events=[event.value for event in result.events],
        messages=list(result.messages),
        should_trigger_ai=result.should_trigger_ai,
        next_board_delay=result.next_board_delay,
        requires_targeting=result.requires_targeting,
        state=state_view(state),
    )


# =============================================================================
# Service
# =============================================================================

@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        run = service.create_run(CreateRunRequest(seed=1, character_id="fighter"))
        response = service.apply_intent(run.run_id, IntentRequest(intent_type="reveal_tile", x=0, y=0))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    allow_debug: bool = TILERUN_ENV != "production"

    def create_run(self, request: CreateRunRequest) -> RunResponse:
        """
        Start a new run.

        Raises ValueError for an unknown policy or character.
        """
        session = self.session_manager.create_session(
            seed=request.seed,
            policy=request.policy,
            character_id=request.character_id,
        )
        return self._run_response(session)

    def get_run(self, run_id: str) -> RunResponse | None:
        session = self.session_manager.get_session(run_id)
        if session is None:
            return None
        return self._run_response(session)

    def end_run(self, run_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(run_id, reason) is not None

    def list_runs(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def apply_intent(self, run_id: str, request: IntentRequest) -> IntentResponse | None:
        """
        Apply an intent to a run.

        Returns None if the run does not exist. Engine rejections come back
        as a response with success=False.
        """
        session = self.session_manager.get_session(run_id)
        if session is None:
            return None
        if request.intent_type.is_debug and not self.allow_debug:
            raise DebugDisabledError(f"{request.intent_type.value} is disabled in {TILERUN_ENV}")

        result = session.engine.dispatch(build_intent(request))
        if not result.success:
            logger.debug("Run %s rejected %s: %s", run_id, request.intent_type.value, result.error)
        return intent_response(result, session.engine.get_state())

    def list_levels(self) -> list[LevelInfo]:
        return [
            LevelInfo(
                level=spec.level,
                width=spec.width,
                height=spec.height,
                player_tiles=spec.player_count,
                opponent_tiles=spec.opponent_count,
                has_shop=spec.has_shop,
                fogged_tiles=fog_tile_count(spec.level),
            )
            for spec in LEVEL_SPECS[:self.session_manager.config.max_level]
        ]

    def _run_response(self, session: Session) -> RunResponse:
        return RunResponse(
            run_id=session.session_id,
            policy=session.policy_name,
            seed=session.seed,
            created_at=session.created_at,
            state=state_view(session.engine.get_state()),
            ai_turn_delay_ms=session.engine.config.ai_turn_delay_ms,
        )
