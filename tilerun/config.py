"""
Configuration - Environment-driven settings for the engine and its hosts.

All values are read from the environment once at import time and can be
overridden per engine instance through EngineConfig.

Variables:
    TILERUN_ENV                   development | production
    TILERUN_LOG_LEVEL             Logging level name (default INFO)
    TILERUN_SEED                  Optional integer seed for all randomness
    TILERUN_MAX_LEVEL             Number of levels in a run (default 20)
    TILERUN_AI_TURN_DELAY_MS      Host delay before an opponent turn (default 1000)
    TILERUN_NEXT_BOARD_DELAY_MS   Host delay before level transition (default 2000)
    ALLOWED_ORIGINS               Comma separated CORS origins (default *)
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os


TILERUN_ENV = os.getenv("TILERUN_ENV", "development")
TILERUN_LOG_LEVEL = os.getenv("TILERUN_LOG_LEVEL", "INFO")
TILERUN_SEED = os.getenv("TILERUN_SEED", None)
TILERUN_MAX_LEVEL = int(os.getenv("TILERUN_MAX_LEVEL", "20"))
AI_TURN_DELAY_MS = int(os.getenv("TILERUN_AI_TURN_DELAY_MS", "1000"))
NEXT_BOARD_DELAY_MS = int(os.getenv("TILERUN_NEXT_BOARD_DELAY_MS", "2000"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineConfig:
    """
    Per-engine settings.

    The delays are advisory: the engine never sleeps, it only reports
    them so the host can schedule the follow-up intent.
    """
    seed: int | None = None
    max_level: int = 20
    ai_turn_delay_ms: int = 1000
    next_board_delay_ms: int = 2000

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from the module-level environment values."""
        return cls(
            seed=int(TILERUN_SEED) if TILERUN_SEED else None,
            max_level=TILERUN_MAX_LEVEL,
            ai_turn_delay_ms=AI_TURN_DELAY_MS,
            next_board_delay_ms=NEXT_BOARD_DELAY_MS,
        )


def configure_logging(level: str | int | None = None):
    """Configure root logging for CLI and server entry points."""
    if level is None:
        level = TILERUN_LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
