"""
Tests for session management.

Tests:
- Policy lookup by name
- Session creation, selection and teardown
- Active and stale session bookkeeping
"""

import pytest

from ..bots import FirstAvailablePolicy, HeuristicPolicy, RandomPolicy
from ..config import EngineConfig
from ..engine_core.state import GameStatus
from ..session import SessionManager, SessionState, create_policy


class TestCreatePolicy:
    """Tests for policy lookup."""

    def test_known_policies(self):
        assert isinstance(create_policy("random", 1), RandomPolicy)
        assert isinstance(create_policy("first"), FirstAvailablePolicy)
        assert isinstance(create_policy("heuristic", 1), HeuristicPolicy)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown policy"):
            create_policy("genius")


class TestSessionManager:
    """Tests for SessionManager."""

    @pytest.fixture
    def manager(self):
        return SessionManager(EngineConfig(seed=9, max_level=5, next_board_delay_ms=10))

    def test_create_session(self, manager):
        session = manager.create_session(policy="first")
        assert session.seed == 9
        assert session.policy_name == "first"
        assert session.engine.get_state().game_status == GameStatus.CHARACTER_SELECT
        assert session.session_id in manager.list_active_sessions()

    def test_config_is_inherited(self, manager):
        session = manager.create_session(seed=2, character_id="cleric")
        assert session.engine.config.next_board_delay_ms == 10
        assert session.engine.get_state().run.max_level == 5

    def test_bad_character_leaves_nothing_behind(self, manager):
        with pytest.raises(ValueError):
            manager.create_session(character_id="bard")
        assert manager.list_sessions() == []

    def test_end_session(self, manager):
        session = manager.create_session()
        ended = manager.end_session(session.session_id)
        assert ended is session
        assert ended.state == SessionState.FINISHED
        assert manager.get_session(session.session_id) is None
        assert manager.end_session(session.session_id) is None

    def test_abandon(self, manager):
        session = manager.create_session()
        assert manager.end_session(session.session_id, reason="user_ended").state == SessionState.ABANDONED

    def test_finished_runs_are_not_active(self, manager):
        session = manager.create_session(character_id="fighter")
        session.engine.get_state().game_status = GameStatus.PLAYER_DIED
        assert not session.is_active()
        assert manager.list_active_sessions() == []

    def test_cleanup_stale_sessions(self, manager):
        live = manager.create_session(character_id="fighter")
        done = manager.create_session(character_id="fighter")
        done.engine.get_state().game_status = GameStatus.OPPONENT_WON
        live.created_at -= 7200
        done.created_at -= 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.get_session(live.session_id) is live
        assert manager.get_session(done.session_id) is None
