"""
API Module - In-process interface for the UI shell.

The shell:
1. Starts a countdown
2. Forwards swipes, timer ticks and lifecycle events
3. Renders the snapshot returned after each call

There is no network surface; the shell calls GameService directly.
"""

from .schemas import (
    # Snapshots
    GameSnapshot,
    BoardSnapshot,
    SessionSnapshot,
    TileInfo,
    MergeInfo,
    TileMoveInfo,
    # Errors
    ErrorResponse,
    # Enums
    ErrorCode,
    GameStatus,
)
from .service import GameService, build_snapshot

__all__ = [
    # Snapshots
    "GameSnapshot",
    "BoardSnapshot",
    "SessionSnapshot",
    "TileInfo",
    "MergeInfo",
    "TileMoveInfo",
    # Errors
    "ErrorResponse",
    # Enums
    "ErrorCode",
    "GameStatus",
    # Service
    "GameService",
    "build_snapshot",
]
