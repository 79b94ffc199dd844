"""
Pydantic Schemas - Read-only snapshots for the presentation layer.

These models define the contract between the engine and the UI shell.
A snapshot is produced after every state-changing operation; the shell
decides how and when to render or animate it.

Animation is derived from `last_merges`, `last_moves` and `spawned`,
never from flags on live engine objects.

Error Codes:
- INVALID_DIRECTION: Direction string is not up/down/left/right
- INVALID_LIFECYCLE_EVENT: Lifecycle kind is not backgrounded/foregrounded
- INVALID_SWIPE: Swipe delta is not a finite number
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Session lifecycle state."""
    IDLE = "idle"
    COUNTDOWN = "countdown"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    INVALID_DIRECTION = "INVALID_DIRECTION"
    INVALID_LIFECYCLE_EVENT = "INVALID_LIFECYCLE_EVENT"
    INVALID_SWIPE = "INVALID_SWIPE"


# =============================================================================
# Board Models
# =============================================================================

class TileInfo(BaseModel):
    """A tile as the renderer sees it."""
    tile_id: int
    value: int = Field(ge=2)
    row: int = Field(ge=0)
    col: int = Field(ge=0)
    just_merged: bool = False

    model_config = {"frozen": True}


class BoardSnapshot(BaseModel):
    """The grid, as a value matrix plus a tile list."""
    size: int
    values: list[list[int]] = Field(description="Row-major values, 0 for empty cells")
    tiles: list[TileInfo] = Field(default_factory=list)

    model_config = {"frozen": True}


class MergeInfo(BaseModel):
    """One merge of the last move."""
    tile_id: int
    absorbed_id: int
    source_value: int
    result_value: int
    row: int
    col: int

    model_config = {"frozen": True}


class TileMoveInfo(BaseModel):
    """One tile slide of the last move."""
    tile_id: int
    from_row: int
    from_col: int
    to_row: int
    to_col: int
    merged_into: Optional[int] = None

    model_config = {"frozen": True}


# =============================================================================
# Session Models
# =============================================================================

class SessionSnapshot(BaseModel):
    """Score and timers."""
    status: GameStatus
    score: int = Field(ge=0)
    high_score: int = Field(ge=0)
    time_left: int = Field(ge=0)
    countdown: int = Field(ge=0)
    merge_streak: int = Field(ge=0)
    combo_multiplier: float = 1.0
    last_award: int = 0
    paused: bool = False
    game_over_reason: Optional[str] = None
    moves_made: int = 0
    best_tile: int = 0

    model_config = {"frozen": True}


class GameSnapshot(BaseModel):
    """Everything the shell needs to draw one frame."""
    board: BoardSnapshot
    session: SessionSnapshot
    last_merges: list[MergeInfo] = Field(default_factory=list)
    last_moves: list[TileMoveInfo] = Field(default_factory=list)
    spawned: Optional[TileInfo] = None
    can_move: bool = False

    model_config = {"frozen": True}


# =============================================================================
# Errors
# =============================================================================

class ErrorResponse(BaseModel):
    """Returned instead of a snapshot for malformed host input."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None
