"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- Run lifecycle via API
- Fog hiding in state views
- Error handling
"""

import pytest

from ..api.schemas import CreateRunRequest, IntentName, IntentRequest, ErrorCode, ErrorResponse
from ..api.service import APIService, DebugDisabledError, build_intent, state_view, tile_view
from ..config import EngineConfig
from ..engine_core.action import IntentType
from ..engine_core.state import GameState, GameStatus, GoldData, MonsterData, TileContent
from ..session import SessionManager


@pytest.fixture
def service():
    """Create a fresh API service with deterministic delays."""
    return APIService(session_manager=SessionManager(EngineConfig(ai_turn_delay_ms=500)))


def start(service, character="fighter", seed=3):
    return service.create_run(CreateRunRequest(seed=seed, policy="first", character_id=character))


class TestAPIService:
    """Tests for APIService."""

    def test_create_run_waits_for_character(self, service):
        """Without a character the run sits in character select."""
        response = service.create_run(CreateRunRequest(seed=1))
        assert response.run_id
        assert response.policy == "random"
        assert response.state.game_status == "character-select"
        assert response.ai_turn_delay_ms == 500

    def test_create_run_with_character(self, service):
        response = start(service)
        assert response.state.game_status == "playing"
        assert response.state.run.character_id == "fighter"
        assert response.state.run.attack == 8
        assert response.seed == 3

    def test_invalid_character(self, service):
        with pytest.raises(ValueError):
            start(service, character="bard")
        assert service.list_runs() == []

    def test_invalid_policy(self, service):
        with pytest.raises(ValueError, match="policy"):
            service.create_run(CreateRunRequest(policy="genius"))

    def test_get_run(self, service):
        created = start(service)
        fetched = service.get_run(created.run_id)
        assert fetched.run_id == created.run_id
        assert fetched.state.board.level == 1

    def test_get_nonexistent_run(self, service):
        assert service.get_run("nonexistent-id") is None

    def test_end_run(self, service):
        created = start(service)
        assert service.end_run(created.run_id)
        assert service.get_run(created.run_id) is None
        assert not service.end_run(created.run_id)

    def test_list_runs(self, service):
        for seed in range(3):
            start(service, seed=seed)
        assert len(service.list_runs()) == 3

    def test_list_levels(self, service):
        levels = service.list_levels()
        assert len(levels) == 20
        assert levels[0].width == 4
        assert levels[2].has_shop
        assert levels[7].fogged_tiles == 2

    def test_list_levels_respects_max_level(self):
        service = APIService(session_manager=SessionManager(EngineConfig(max_level=5)))
        assert len(service.list_levels()) == 5


class TestIntents:
    """Tests for intents over the service."""

    def test_apply_intent(self, service):
        created = start(service)
        response = service.apply_intent(created.run_id, IntentRequest(intent_type=IntentName.END_TURN))
        assert response.success
        assert response.should_trigger_ai
        assert response.events == ["turn-ended"]
        assert response.state.current_turn == "opponent"

        follow_up = service.apply_intent(created.run_id, IntentRequest(intent_type="opponent_turn"))
        assert follow_up.success
        assert follow_up.state.current_turn == "player"

    def test_rejection_is_not_an_exception(self, service):
        """Engine rejections come back with success=False and a code."""
        created = start(service)
        response = service.apply_intent(created.run_id, IntentRequest(intent_type="opponent_turn"))
        assert not response.success
        assert response.error_code == "NOT_YOUR_TURN"
        assert response.state is not None

    def test_unknown_run(self, service):
        assert service.apply_intent("missing", IntentRequest(intent_type="end_turn")) is None

    def test_debug_allowed_outside_production(self, service):
        created = start(service)
        response = service.apply_intent(
            created.run_id, IntentRequest(intent_type="debug_add_gold", amount=7)
        )
        assert response.state.run.gold == 7

    def test_debug_disabled(self):
        service = APIService(allow_debug=False)
        created = start(service)
        with pytest.raises(DebugDisabledError):
            service.apply_intent(created.run_id, IntentRequest(intent_type="debug_add_gold"))

    def test_build_intent(self):
        intent = build_intent(IntentRequest(intent_type="reveal_tile", x=2, y=1))
        assert intent.intent_type == IntentType.REVEAL_TILE
        assert (intent.payload.x, intent.payload.y) == (2, 1)

    def test_request_validation(self):
        with pytest.raises(ValueError):
            IntentRequest(intent_type="fly")
        with pytest.raises(ValueError):
            IntentRequest(intent_type="use_item", index=-1)

    def test_every_intent_type_is_exposed(self):
        assert {name.value for name in IntentName} == {t.value for t in IntentType}
        assert IntentName.DEBUG_ADD_GOLD.is_debug
        assert not IntentName.REVEAL_TILE.is_debug


class TestStateViews:
    """Tests for state snapshots."""

    def test_hidden_owner(self, small_board):
        view = tile_view(small_board, small_board.get_tile(0, 0))
        assert view.owner is None
        small_board.get_tile(0, 0).revealed = True
        assert tile_view(small_board, small_board.get_tile(0, 0)).owner == "player"

    def test_fogged_tile_hides_content(self, small_board):
        """Fogged, unrevealed tiles show only their position and scan."""
        tile = small_board.get_tile(2, 0)
        tile.place(TileContent.MONSTER, MonsterData("rat-1", "Rat", 3, 0, 6))
        tile.fogged = True
        tile.detector_scan = small_board.scan_area(2, 0)

        view = tile_view(small_board, tile)
        assert view.fogged
        assert view.content is None
        assert view.monster is None
        assert (view.detector_scan.player, view.detector_scan.opponent) == (1, 2)

    def test_payload_views(self, small_board):
        small_board.get_tile(0, 1).place(TileContent.GOLD, GoldData(amount=2))
        small_board.get_tile(2, 0).place(TileContent.MONSTER, MonsterData("rat-1", "Rat", 3, 0, 6))
        assert tile_view(small_board, small_board.get_tile(0, 1)).gold == 2
        assert tile_view(small_board, small_board.get_tile(2, 0)).monster.max_hp == 6

    def test_state_view_serializes(self, playing_state):
        view = state_view(playing_state)
        data = view.model_dump(mode="json")
        assert data["game_status"] == "playing"
        assert len(data["board"]["tiles"]) == 3
        assert data["run"]["inventory"] == [None] * 4

    def test_initial_state_view(self):
        view = state_view(GameState.initial())
        assert view.game_status == GameStatus.CHARACTER_SELECT.value
        assert view.board.tiles == []

    def test_error_response(self):
        error = ErrorResponse(error="Run x not found", error_code=ErrorCode.RUN_NOT_FOUND)
        assert error.model_dump(mode="json")["error_code"] == "RUN_NOT_FOUND"


class TestApp:
    """Tests for the FastAPI application factory."""

    def test_routes(self, service):
        from ..api.app import create_app

        app = create_app(service)
        paths = {route.path for route in app.routes}
        assert {
            "/health",
            "/api/v1/runs",
            "/api/v1/runs/{run_id}",
            "/api/v1/runs/{run_id}/intents",
            "/api/v1/levels",
        } <= paths
