"""
FastAPI Application - REST API for run hosts.

Endpoints:
    GET    /health                       Health check
    POST   /api/v1/runs                  Start a run
    GET    /api/v1/runs                  List active runs
    GET    /api/v1/runs/{id}             Get run state
    DELETE /api/v1/runs/{id}             End a run
    POST   /api/v1/runs/{id}/intents     Apply an intent
    GET    /api/v1/levels                Level table

Scheduling Flow:
    1. POST /intents returns the new state and scheduling flags
    2. If should_trigger_ai is true, wait ai_turn_delay_ms and
       POST {"intent_type": "opponent_turn"}
    3. If next_board_delay is set, wait that long and
       POST {"intent_type": "progress_board"}

The server never schedules anything itself. All responses are JSON with
explicit Pydantic schemas.
"""

from typing import Annotated, Union
import logging

from ..config import ALLOWED_ORIGINS, EngineConfig

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..session import SessionManager
    from .service import APIService, DebugDisabledError
    from .schemas import (
        # Request models
        CreateRunRequest,
        IntentRequest,
        # Response models
        RunResponse,
        IntentResponse,
        RunListResponse,
        EndRunResponse,
        LevelListResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Tile Run Engine API",
        description="""
Roguelike tile-reveal run engine.

## Scheduling

Intent responses carry two flags the client must honour:

1. `should_trigger_ai`: send `opponent_turn` after `ai_turn_delay_ms`
2. `next_board_delay`: send `progress_board` after that many milliseconds

## Error Codes

| Code | Description |
|------|-------------|
| `RUN_NOT_FOUND` | Run does not exist or has ended |
| `INVALID_CHARACTER` | Unknown character id |
| `INVALID_POLICY` | Unknown opponent policy |
| `DEBUG_DISABLED` | Debug intents are disabled |

Rejected intents are not HTTP errors: they return `success=false` with an
engine `error_code`.
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(session_manager=SessionManager(EngineConfig.from_env()))

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict | None = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def run_not_found(run_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.RUN_NOT_FOUND,
            f"Run {run_id} not found",
            status_code=404,
        )

    # =========================================================================
    # Run Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/runs",
        response_model=RunResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid character or policy"}},
        tags=["Runs"],
        summary="Start a new run",
    )
    async def create_run(body: CreateRunRequest) -> Union[RunResponse, JSONResponse]:
        """
        Start a new run.

        Without `character_id` the run waits in character select; send a
        `select_character` intent to begin.
        """
        try:
            return api_service.create_run(body)
        except ValueError as e:
            error_msg = str(e)
            if "policy" in error_msg.lower():
                return make_error_response(ErrorCode.INVALID_POLICY, error_msg)
            return make_error_response(ErrorCode.INVALID_CHARACTER, error_msg)

    @app.get(
        "/api/v1/runs",
        response_model=RunListResponse,
        tags=["Runs"],
        summary="List active runs",
    )
    async def list_runs() -> RunListResponse:
        """List all active run IDs."""
        runs = api_service.list_runs()
        return RunListResponse(runs=runs, count=len(runs))

    @app.get(
        "/api/v1/runs/{run_id}",
        response_model=RunResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Runs"],
        summary="Get a run and its state",
    )
    async def get_run(run_id: str) -> Union[RunResponse, JSONResponse]:
        response = api_service.get_run(run_id)
        if response is None:
            return run_not_found(run_id)
        return response

    @app.delete(
        "/api/v1/runs/{run_id}",
        response_model=EndRunResponse,
        tags=["Runs"],
        summary="End a run",
    )
    async def end_run(
        run_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndRunResponse:
        """End a run and release its engine."""
        success = api_service.end_run(run_id, reason)
        return EndRunResponse(success=success, run_id=run_id)

    # =========================================================================
    # Intent Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/runs/{run_id}/intents",
        response_model=IntentResponse,
        responses={
            403: {"model": ErrorResponse, "description": "Debug intents disabled"},
            404: {"model": ErrorResponse, "description": "Run not found"},
        },
        tags=["Game Loop"],
        summary="Apply an intent to a run",
    )
    async def apply_intent(run_id: str, body: IntentRequest) -> Union[IntentResponse, JSONResponse]:
        """
        Apply an intent.

        **Request Body:**
        ```json
        {"intent_type": "reveal_tile", "x": 2, "y": 1}
        ```
        """
        try:
            response = api_service.apply_intent(run_id, body)
        except DebugDisabledError as e:
            return make_error_response(ErrorCode.DEBUG_DISABLED, str(e), status_code=403)
        if response is None:
            return run_not_found(run_id)
        return response

    # =========================================================================
    # Content
    # =========================================================================

    @app.get(
        "/api/v1/levels",
        response_model=LevelListResponse,
        tags=["Content"],
        summary="Level table",
    )
    async def list_levels() -> LevelListResponse:
        levels = api_service.list_levels()
        return LevelListResponse(levels=levels, count=len(levels))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="tilerun-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Tile Run Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn tilerun.api.app:app
app = create_app()
