"""
Run State - Tiles, boards, run progress and the top-level game state.

Design principles:
- Mutable in place: a run is one long-lived object mutated by intents
- Tagged content: a tile's payload always matches its content kind
- Counters are derived facts: only reveal_tile() moves the reveal counters
- Readable without copies: hosts get the live state and must not mutate it
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Union

if TYPE_CHECKING:
    from ..content.characters import Character


DEFAULT_INVENTORY_SIZE = 4


# =============================================================================
# Enums
# =============================================================================

class TileOwner(Enum):
    """Who a tile counts for."""
    PLAYER = "player"
    OPPONENT = "opponent"
    NEUTRAL = "neutral"
    WALL = "wall"


class TileContent(Enum):
    """What sits on a tile. Each kind has exactly one payload type."""
    EMPTY = "empty"
    MONSTER = "monster"
    TRAP = "trap"
    GOLD = "gold"
    ITEM = "item"
    PERMANENT_UPGRADE = "permanent-upgrade"
    SHOP = "shop"


class Annotation(Enum):
    """Advisory marks a player can cycle on unrevealed tiles."""
    NONE = "none"
    SLASH = "slash"
    DOG_EAR = "dog-ear"

    def next(self) -> Annotation:
        order = [Annotation.NONE, Annotation.SLASH, Annotation.DOG_EAR]
        return order[(order.index(self) + 1) % len(order)]


class Turn(Enum):
    PLAYER = "player"
    OPPONENT = "opponent"


class GameStatus(Enum):
    """Run-level lifecycle."""
    CHARACTER_SELECT = "character-select"
    PLAYING = "playing"
    OPPONENT_WON = "opponent-won"
    PLAYER_DIED = "player-died"
    RUN_COMPLETE = "run-complete"


class BoardStatus(Enum):
    IN_PROGRESS = "in-progress"
    WON = "won"
    LOST = "lost"


class TargetingMode(Enum):
    """Modes that redirect the next tile intent to an item or spell."""
    TRANSMUTE = "transmute"
    DETECTOR = "detector"
    KEY = "key"
    STAFF = "staff"
    RING = "ring"
    SPELL = "spell"


class SpellTarget(Enum):
    MONSTER = "monster"
    TILE = "tile"
    NONE = "none"


class TrophyKind(Enum):
    SILVER = "silver"
    GOLD = "gold"


# =============================================================================
# Tile payloads
# =============================================================================

@dataclass
class MonsterData:
    """A monster instance. hp is mutated by damage."""
    monster_id: str
    name: str
    attack: int
    defense: int
    hp: int
    max_hp: int = 0

    def __post_init__(self):
        if not self.max_hp:
            self.max_hp = self.hp

    @property
    def kind(self) -> str:
        """Catalog id without the level suffix."""
        base, _, suffix = self.monster_id.rpartition("-")
        return base if base and suffix.isdigit() else self.monster_id


@dataclass
class ItemData:
    """An item instance. Multi-use items carry remaining charges."""
    item_id: str
    name: str
    description: str = ""
    immediate: bool = False
    uses: int | None = None
    max_uses: int | None = None

    @property
    def is_multi_use(self) -> bool:
        return self.max_uses is not None


@dataclass
class UpgradeData:
    upgrade_id: str
    name: str
    description: str = ""
    repeatable: bool = False


@dataclass
class GoldData:
    amount: int = 1


@dataclass
class TrapData:
    damage: int = 3


TilePayload = Union[MonsterData, ItemData, UpgradeData, GoldData, TrapData, None]

CONTENT_PAYLOAD_TYPES: dict[TileContent, type | None] = {
    TileContent.EMPTY: None,
    TileContent.MONSTER: MonsterData,
    TileContent.TRAP: TrapData,
    TileContent.GOLD: GoldData,
    TileContent.ITEM: ItemData,
    TileContent.PERMANENT_UPGRADE: UpgradeData,
    TileContent.SHOP: None,
}


# =============================================================================
# Tiles and boards
# =============================================================================

@dataclass
class ChainLink:
    """
    Lock relation between tiles.

    A blocked tile cannot be revealed until the tile at
    (required_x, required_y) is revealed. The unblocked side of a chain
    points at the tile it unlocks. The middle tile of a three-tile chain
    also carries a secondary link to the tile it unlocks.
    """
    chain_id: str
    is_blocked: bool
    required_x: int
    required_y: int
    secondary_chain_id: str | None = None
    secondary_x: int | None = None
    secondary_y: int | None = None

    @property
    def has_secondary_key(self) -> bool:
        return self.secondary_chain_id is not None


@dataclass
class DetectorScan:
    """Ownership counts in the 3x3 area centred on a tile."""
    player: int = 0
    opponent: int = 0
    neutral: int = 0


@dataclass
class Tile:
    x: int
    y: int
    owner: TileOwner = TileOwner.NEUTRAL
    content: TileContent = TileContent.EMPTY
    payload: TilePayload = None
    revealed: bool = False
    revealed_by: TileOwner | None = None
    annotation: Annotation = Annotation.NONE
    fogged: bool = False
    detector_scan: DetectorScan | None = None
    chain: ChainLink | None = None

    def __post_init__(self):
        _check_payload(self.content, self.payload)

    def place(self, content: TileContent, payload: TilePayload = None):
        """Set content and payload together. Raises ValueError on mismatch."""
        _check_payload(content, payload)
        self.content = content
        self.payload = payload

    def clear_content(self):
        self.content = TileContent.EMPTY
        self.payload = None

    @property
    def is_empty(self) -> bool:
        return self.content == TileContent.EMPTY

    @property
    def monster(self) -> MonsterData | None:
        return self.payload if self.content == TileContent.MONSTER else None

    @property
    def item(self) -> ItemData | None:
        return self.payload if self.content == TileContent.ITEM else None

    @property
    def upgrade(self) -> UpgradeData | None:
        return self.payload if self.content == TileContent.PERMANENT_UPGRADE else None

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)


def _check_payload(content: TileContent, payload: TilePayload):
    expected = CONTENT_PAYLOAD_TYPES[content]
    if expected is None:
        if payload is not None:
            raise ValueError(f"{content.value} tiles carry no payload")
    elif not isinstance(payload, expected):
        raise ValueError(
            f"{content.value} tiles require {expected.__name__}, got {type(payload).__name__}"
        )


@dataclass
class Board:
    """
    A rectangular grid of tiles, indexed tiles[y][x].

    The four counters are only moved by reveal_tile() and by ownership
    changes through set_owner().
    """
    width: int
    height: int
    tiles: list[list[Tile]]
    level: int = 1
    player_tiles_total: int = 0
    opponent_tiles_total: int = 0
    player_tiles_revealed: int = 0
    opponent_tiles_revealed: int = 0

    @classmethod
    def blank(cls, width: int, height: int, level: int = 1) -> Board:
        """Create an all-neutral, all-empty board."""
        tiles = [[Tile(x=x, y=y) for x in range(width)] for y in range(height)]
        return cls(width=width, height=height, tiles=tiles, level=level)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Tile | None:
        if not self.in_bounds(x, y):
            return None
        return self.tiles[y][x]

    def iter_tiles(self) -> Iterator[Tile]:
        for row in self.tiles:
            yield from row

    def tiles_where(self, predicate) -> list[Tile]:
        return [t for t in self.iter_tiles() if predicate(t)]

    def unrevealed_tiles(self, owner: TileOwner | None = None) -> list[Tile]:
        return self.tiles_where(
            lambda t: not t.revealed and (owner is None or t.owner == owner)
        )

    def neighbours(self, x: int, y: int, include_center: bool = False) -> list[Tile]:
        """Tiles in the 3x3 area around (x, y)."""
        result = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0 and not include_center:
                    continue
                tile = self.get_tile(x + dx, y + dy)
                if tile is not None:
                    result.append(tile)
        return result

    def orthogonal_neighbours(self, x: int, y: int) -> list[Tile]:
        result = []
        for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
            tile = self.get_tile(x + dx, y + dy)
            if tile is not None:
                result.append(tile)
        return result

    def is_blocked(self, tile: Tile) -> bool:
        """A tile is blocked while its chain's required tile is unrevealed."""
        if tile.chain is None or not tile.chain.is_blocked:
            return False
        required = self.get_tile(tile.chain.required_x, tile.chain.required_y)
        return required is not None and not required.revealed

    def scan_area(self, x: int, y: int) -> DetectorScan:
        scan = DetectorScan()
        for tile in self.neighbours(x, y, include_center=True):
            if tile.owner == TileOwner.PLAYER:
                scan.player += 1
            elif tile.owner == TileOwner.OPPONENT:
                scan.opponent += 1
            elif tile.owner == TileOwner.NEUTRAL:
                scan.neutral += 1
        return scan

    def set_owner(self, tile: Tile, owner: TileOwner):
        """Change ownership and keep totals and revealed counters consistent."""
        if tile.owner == owner:
            return
        self._adjust_counts(tile, -1)
        tile.owner = owner
        self._adjust_counts(tile, +1)

    def _adjust_counts(self, tile: Tile, delta: int):
        if tile.owner == TileOwner.PLAYER:
            self.player_tiles_total += delta
            if tile.revealed:
                self.player_tiles_revealed += delta
        elif tile.owner == TileOwner.OPPONENT:
            self.opponent_tiles_total += delta
            if tile.revealed:
                self.opponent_tiles_revealed += delta

    @property
    def player_tiles_left(self) -> int:
        return self.player_tiles_total - self.player_tiles_revealed

    @property
    def opponent_tiles_left(self) -> int:
        return self.opponent_tiles_total - self.opponent_tiles_revealed


# =============================================================================
# Run progress
# =============================================================================

@dataclass
class SpellData:
    spell_id: str
    name: str
    description: str
    mana_cost: int
    target: SpellTarget = SpellTarget.NONE


@dataclass
class SpellEffect:
    """Persistent area effect. remaining_turns == -1 means permanent."""
    spell_id: str
    x: int
    y: int
    damage: int
    remaining_turns: int = -1


@dataclass
class TemporaryBuffs:
    """Bonuses consumed by the next fight (ward, blaze) or next reveal (protection)."""
    ward: int = 0
    blaze: int = 0
    protection: int = 0


@dataclass
class Trophy:
    trophy_id: str
    kind: TrophyKind
    stolen: bool = False
    stolen_by: str | None = None


@dataclass
class RunState:
    """
    Per-run progress, carried across boards.

    hp is kept within [0, max_hp] by heal() and take_damage().
    """
    current_level: int = 1
    max_level: int = 20
    hp: int = 75
    max_hp: int = 75
    gold: int = 0
    attack: int = 5
    defense: int = 0
    loot: int = 0
    inventory: list[ItemData | None] = field(
        default_factory=lambda: [None] * DEFAULT_INVENTORY_SIZE
    )
    upgrades: list[str] = field(default_factory=list)
    trophies: list[Trophy] = field(default_factory=list)
    mana: int = 0
    max_mana: int = 0
    spells: list[SpellData] = field(default_factory=list)
    spell_effects: list[SpellEffect] = field(default_factory=list)
    temporary_buffs: TemporaryBuffs = field(default_factory=TemporaryBuffs)
    character: Character | None = None
    seen_monsters: set[str] = field(default_factory=set)

    @property
    def max_inventory(self) -> int:
        return len(self.inventory)

    def upgrade_count(self, upgrade_id: str) -> int:
        return self.upgrades.count(upgrade_id)

    def has_upgrade(self, upgrade_id: str) -> bool:
        return upgrade_id in self.upgrades

    def heal(self, amount: int) -> int:
        """Heal up to max_hp. Returns the HP actually gained."""
        before = self.hp
        self.hp = max(0, min(self.max_hp, self.hp + amount))
        return self.hp - before

    def take_damage(self, amount: int):
        self.hp = max(0, min(self.max_hp, self.hp - amount))

    def restore_mana(self, amount: int) -> int:
        before = self.mana
        self.mana = max(0, min(self.max_mana, self.mana + amount))
        return self.mana - before

    def first_empty_slot(self) -> int | None:
        for index, slot in enumerate(self.inventory):
            if slot is None:
                return index
        return None


# =============================================================================
# Game state
# =============================================================================

@dataclass
class ClueHand:
    tiles: list[tuple[int, int]] = field(default_factory=list)


@dataclass
class Clue:
    """Two hands of tile positions, exactly one of which favours the player."""
    hand_a: ClueHand
    hand_b: ClueHand
    hint: str


@dataclass
class ShopOffer:
    offer: ItemData | UpgradeData
    cost: int

    @property
    def is_upgrade(self) -> bool:
        return isinstance(self.offer, UpgradeData)


@dataclass
class UpgradeChoice:
    options: list[UpgradeData] = field(default_factory=list)


@dataclass
class Targeting:
    """The single active targeting mode and what triggered it."""
    mode: TargetingMode
    item_index: int | None = None
    spell_index: int | None = None


@dataclass
class GameState:
    """
    Top-level engine state.

    At most one targeting mode is active at a time. The clue list is
    append-only within a board.
    """
    board: Board
    run: RunState = field(default_factory=RunState)
    current_turn: Turn = Turn.PLAYER
    game_status: GameStatus = GameStatus.CHARACTER_SELECT
    board_status: BoardStatus = BoardStatus.IN_PROGRESS
    clues: list[Clue] = field(default_factory=list)
    shop_open: bool = False
    shop_offers: list[ShopOffer] = field(default_factory=list)
    targeting: Targeting | None = None
    upgrade_choice: UpgradeChoice | None = None

    @classmethod
    def initial(cls) -> GameState:
        """A fresh state waiting for character selection."""
        return cls(board=Board.blank(0, 0))

    @property
    def is_playing(self) -> bool:
        return self.game_status == GameStatus.PLAYING

    @property
    def is_awaiting_input(self) -> bool:
        """True while the player must resolve a prompt before play resumes."""
        return self.shop_open or self.upgrade_choice is not None
