"""
Session Module - Engine instances and ephemeral run sessions.

A session represents one run:
- Created when a host starts a run
- Holds one RunEngine
- Destroyed when the run ends

Sessions are EPHEMERAL: nothing is persisted.
"""

from .engine import RunEngine
from .manager import SessionManager, Session, SessionState, create_policy
from .game_loop import GameLoop, LoopState, TurnResult, RunSummary

__all__ = [
    "RunEngine",
    "SessionManager",
    "Session",
    "SessionState",
    "create_policy",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "RunSummary",
]
