"""
Session Manager - Creates and manages run sessions.

LIFECYCLE:
1. Host creates a session -> a fresh RunEngine in character select
2. Host sends intents to the session's engine
3. Run ends (death, loss, completion) or host abandons it
4. Session is ended -> engine dropped, nothing is persisted
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import time
import uuid

from .engine import RunEngine
from ..bots import FirstAvailablePolicy, HeuristicPolicy, OpponentPolicy, RandomPolicy
from ..config import EngineConfig
from ..engine_core.state import GameStatus

logger = logging.getLogger(__name__)


POLICY_FACTORIES: dict[str, Callable[[int | None], OpponentPolicy]] = {
    "random": lambda seed: RandomPolicy(seed),
    "first": lambda seed: FirstAvailablePolicy(),
    "heuristic": lambda seed: HeuristicPolicy(seed=seed),
}


def create_policy(name: str, seed: int | None = None) -> OpponentPolicy:
    """Build an opponent policy by name. Raises ValueError for unknown names."""
    try:
        return POLICY_FACTORIES[name](seed)
    except KeyError:
        raise ValueError(f"Unknown policy: {name} (choose from {', '.join(POLICY_FACTORIES)})")


class SessionState(Enum):
    """State of a run session."""
    ACTIVE = "active"
    FINISHED = "finished"
    ABANDONED = "abandoned"


@dataclass
class Session:
    """
    An ephemeral run session.

    The session is destroyed when the run ends. State is NOT persisted.
    """
    session_id: str
    engine: RunEngine
    created_at: float
    policy_name: str = "random"
    seed: int | None = None

    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Active until the run reaches a terminal status."""
        if self.state != SessionState.ACTIVE:
            return False
        return self.engine.get_state().game_status in {
            GameStatus.CHARACTER_SELECT,
            GameStatus.PLAYING,
        }


class SessionManager:
    """
    Manages run sessions.

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        seed: int | None = None,
        policy: str = "random",
        character_id: str | None = None,
    ) -> Session:
        """
        Create a new session.

        Args:
            seed: Seed for all randomness in the run
            policy: Opponent policy name
            character_id: Optional character to select immediately

        Returns:
            New Session, in character select unless character_id was given
        """
        session_id = str(uuid.uuid4())
        if seed is None:
            seed = self.config.seed
        config = EngineConfig(
            seed=seed,
            max_level=self.config.max_level,
            ai_turn_delay_ms=self.config.ai_turn_delay_ms,
            next_board_delay_ms=self.config.next_board_delay_ms,
        )
        engine = RunEngine(seed=seed, policy=create_policy(policy, seed), config=config)

        session = Session(
            session_id=session_id,
            engine=engine,
            created_at=time.time(),
            policy_name=policy,
            seed=seed,
        )
        self._sessions[session_id] = session

        if character_id is not None:
            result = engine.select_character(character_id)
            if not result.success:
                self._sessions.pop(session_id)
                raise ValueError(result.error)

        logger.info("Created session %s (policy=%s, seed=%s)", session_id, policy, seed)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> Session | None:
        """
        End a session and remove it from memory.

        Returns the ended session, or None if it did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if reason == "completed":
                session.state = SessionState.FINISHED
            else:
                session.state = SessionState.ABANDONED
            logger.info("Ended session %s (%s)", session_id, reason)
        return session

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove finished sessions older than max_age.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
