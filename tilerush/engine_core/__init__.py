"""
Engine Core - Deterministic board transformation, spawning and scoring.

The engine is the runtime that:
1. Holds immutable Board snapshots of Tiles
2. Applies a direction via one compact-left algorithm
3. Spawns weighted random tiles into empty cells
4. Scores merges with a time-windowed combo streak
"""

from .state import Board, Direction, MergeEvent, MoveResult, Position, Tile, TileMove
from .grid import apply_move, available_directions, compact_row, has_available_moves
from .tiles import TileFactory
from .scoring import ScoringEngine

__all__ = [
    "Board",
    "Direction",
    "MergeEvent",
    "MoveResult",
    "Position",
    "Tile",
    "TileMove",
    "apply_move",
    "available_directions",
    "compact_row",
    "has_available_moves",
    "TileFactory",
    "ScoringEngine",
]
