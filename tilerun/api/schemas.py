"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a host UI and the engine.
State views are snapshots built from the live GameState; fogged tiles
that have not been revealed never expose their content.

Error Codes:
- RUN_NOT_FOUND: Run does not exist or has ended
- INVALID_CHARACTER: Character id is unknown
- INVALID_POLICY: Opponent policy name is unknown
- DEBUG_DISABLED: Debug intents are disabled in this environment
- VALIDATION_ERROR: Request body failed validation
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    RUN_NOT_FOUND = "RUN_NOT_FOUND"
    INVALID_CHARACTER = "INVALID_CHARACTER"
    INVALID_POLICY = "INVALID_POLICY"
    DEBUG_DISABLED = "DEBUG_DISABLED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class IntentName(str, Enum):
    """Intents accepted over HTTP."""
    SELECT_CHARACTER = "select_character"
    RESET = "reset"
    REVEAL_TILE = "reveal_tile"
    USE_ITEM = "use_item"
    DISCARD_ITEM = "discard_item"
    CAST_SPELL = "cast_spell"
    CANCEL_TARGETING = "cancel_targeting"
    CHOOSE_UPGRADE = "choose_upgrade"
    BUY_SHOP_ITEM = "buy_shop_item"
    CLOSE_SHOP = "close_shop"
    TOGGLE_ANNOTATION = "toggle_annotation"
    END_TURN = "end_turn"
    OPPONENT_TURN = "opponent_turn"
    PROGRESS_BOARD = "progress_board"
    DEBUG_ADD_GOLD = "debug_add_gold"
    DEBUG_ADD_HEALTH = "debug_add_health"
    DEBUG_FORCE_UPGRADE_CHOICE = "debug_force_upgrade_choice"
    DEBUG_REVEAL_PLAYER_TILES = "debug_reveal_player_tiles"

    @property
    def is_debug(self) -> bool:
        return self.value.startswith("debug_")


# =============================================================================
# Content Views
# =============================================================================

class MonsterView(BaseModel):
    """A monster on a tile."""
    monster_id: str
    name: str
    attack: int
    defense: int
    hp: int
    max_hp: int

    model_config = {"from_attributes": True}


class ItemView(BaseModel):
    """An item on a tile, in the inventory, or in the shop."""
    item_id: str
    name: str
    description: str = ""
    immediate: bool = False
    uses: Optional[int] = None
    max_uses: Optional[int] = None

    model_config = {"from_attributes": True}


class UpgradeView(BaseModel):
    """A permanent upgrade."""
    upgrade_id: str
    name: str
    description: str = ""
    repeatable: bool = False

    model_config = {"from_attributes": True}


class SpellView(BaseModel):
    spell_id: str
    name: str
    description: str
    mana_cost: int
    target: str


class TrophyView(BaseModel):
    trophy_id: str
    kind: str
    stolen: bool = False
    stolen_by: Optional[str] = None


# =============================================================================
# State Views
# =============================================================================

class ChainView(BaseModel):
    """Chain information visible on a tile."""
    chain_id: str
    is_blocked: bool
    required_x: int
    required_y: int


class DetectorScanView(BaseModel):
    player: int = 0
    opponent: int = 0
    neutral: int = 0

    model_config = {"from_attributes": True}


class TileView(BaseModel):
    """
    A tile as a host may render it.

    `content` and the payload fields are None for fogged, unrevealed tiles.
    """
    x: int
    y: int
    owner: Optional[str] = Field(None, description="Hidden until revealed")
    revealed: bool = False
    revealed_by: Optional[str] = None
    annotation: str = "none"
    fogged: bool = False
    blocked: bool = False
    content: Optional[str] = None
    monster: Optional[MonsterView] = None
    item: Optional[ItemView] = None
    upgrade: Optional[UpgradeView] = None
    gold: Optional[int] = None
    chain: Optional[ChainView] = None
    detector_scan: Optional[DetectorScanView] = None


class BoardView(BaseModel):
    width: int
    height: int
    level: int
    player_tiles_total: int
    opponent_tiles_total: int
    player_tiles_revealed: int
    opponent_tiles_revealed: int
    tiles: list[list[TileView]] = Field(default_factory=list, description="Indexed [y][x]")


class BuffsView(BaseModel):
    ward: int = 0
    blaze: int = 0
    protection: int = 0

    model_config = {"from_attributes": True}


class RunView(BaseModel):
    """Run-level statistics carried between boards."""
    character_id: Optional[str] = None
    current_level: int
    max_level: int
    hp: int
    max_hp: int
    gold: int
    attack: int
    defense: int
    loot: int
    mana: int
    max_mana: int
    upgrades: list[str] = Field(default_factory=list)
    inventory: list[Optional[ItemView]] = Field(default_factory=list)
    spells: list[SpellView] = Field(default_factory=list)
    trophies: list[TrophyView] = Field(default_factory=list)
    buffs: BuffsView = Field(default_factory=BuffsView)


class ClueView(BaseModel):
    hand_a: list[tuple[int, int]] = Field(default_factory=list)
    hand_b: list[tuple[int, int]] = Field(default_factory=list)
    hint: str = ""


class ShopOfferView(BaseModel):
    kind: str = Field(description="item or upgrade")
    offer_id: str
    name: str
    description: str = ""
    cost: int


class GameStateView(BaseModel):
    """Complete snapshot for display."""
    game_status: str
    board_status: str
    current_turn: str
    awaiting_input: bool = False
    board: BoardView
    run: RunView
    clues: list[ClueView] = Field(default_factory=list)
    shop_open: bool = False
    shop_offers: list[ShopOfferView] = Field(default_factory=list)
    targeting: Optional[str] = None
    upgrade_choice: list[UpgradeView] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class CreateRunRequest(BaseModel):
    """Request to start a new run."""
    seed: Optional[int] = Field(None, description="Seed for reproducible runs")
    policy: str = Field("random", description="Opponent policy: random, first, heuristic")
    character_id: Optional[str] = Field(
        None, description="Select this character immediately"
    )


class IntentRequest(BaseModel):
    """An intent sent to a run."""
    intent_type: IntentName
    x: Optional[int] = None
    y: Optional[int] = None
    index: Optional[int] = Field(None, ge=0, description="Inventory, spell or shop slot")
    character_id: Optional[str] = None
    upgrade_id: Optional[str] = None
    amount: Optional[int] = Field(None, ge=0)


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class RunResponse(BaseModel):
    """A run and its current state."""
    run_id: str
    policy: str
    seed: Optional[int] = None
    created_at: float = 0.0
    state: GameStateView
    ai_turn_delay_ms: int = 1000
    api_version: str = "v1"


class IntentResponse(BaseModel):
    """Result of an intent, with the state after it."""
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    events: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    should_trigger_ai: bool = False
    next_board_delay: Optional[int] = None
    requires_targeting: bool = False
    state: Optional[GameStateView] = None
    api_version: str = "v1"


class RunListResponse(BaseModel):
    """Response listing active runs."""
    runs: list[str]
    count: int


class EndRunResponse(BaseModel):
    """Response after ending a run."""
    success: bool
    run_id: str


class LevelInfo(BaseModel):
    """One row of the level table."""
    level: int
    width: int
    height: int
    player_tiles: int
    opponent_tiles: int
    has_shop: bool
    fogged_tiles: int


class LevelListResponse(BaseModel):
    levels: list[LevelInfo]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
