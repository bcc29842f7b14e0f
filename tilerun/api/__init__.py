"""
API Module - HTTP interface for run hosts.

Exposes the engine via REST API. A host:
1. Starts a run (optionally picking a character)
2. Sends intents and renders the returned state
3. Schedules opponent turns and level transitions from the returned flags

All state is session-scoped and in memory. Nothing is persisted.
"""

from .schemas import (
    # Requests
    CreateRunRequest,
    IntentRequest,
    # Responses
    RunResponse,
    IntentResponse,
    RunListResponse,
    EndRunResponse,
    LevelListResponse,
    ErrorResponse,
    HealthResponse,
    # Views
    GameStateView,
    BoardView,
    TileView,
    RunView,
    # Enums
    ErrorCode,
    IntentName,
)
from .service import APIService, DebugDisabledError, state_view
from .app import create_app

__all__ = [
    # Requests
    "CreateRunRequest",
    "IntentRequest",
    # Responses
    "RunResponse",
    "IntentResponse",
    "RunListResponse",
    "EndRunResponse",
    "LevelListResponse",
    "ErrorResponse",
    "HealthResponse",
    # Views
    "GameStateView",
    "BoardView",
    "TileView",
    "RunView",
    # Enums
    "ErrorCode",
    "IntentName",
    # Service
    "APIService",
    "DebugDisabledError",
    "state_view",
    "create_app",
]
