"""
Board State - Tiles, boards and the events a move produces.

Design principles:
- Immutable: every change returns a new Board
- Identity-preserving: a tile keeps its id while it slides
- Single source of truth: positions are derived from the cells,
  never stored in a second index
- Event-based: moves report what happened (merges, slides) so the
  presentation layer never reads flags off shared objects
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator

from ..config import BOARD_SIZE
from ..errors import BoardInvariantError, CellOccupiedError, InvalidTileValueError


Position = tuple[int, int]  # (row, col)


def is_tile_value(value) -> bool:
    """True for powers of two >= 2."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value >= 2 and value & (value - 1) == 0


class Direction(Enum):
    """Swipe directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Tile:
    """
    A numbered piece on the board.

    `just_merged` is only meaningful for the move that produced it; the
    grid engine clears it before resolving the next move.
    """
    tile_id: int
    value: int
    just_merged: bool = False

    def __post_init__(self):
        if not is_tile_value(self.value):
            raise InvalidTileValueError(self.value)

    def doubled(self) -> Tile:
        """Return the absorbing tile after a merge."""
        return replace(self, value=self.value * 2, just_merged=True)


@dataclass(frozen=True)
class Board:
    """
    A fixed 4x4 grid of optional tiles.

    Rows are stored top to bottom, cells left to right.
    """
    cells: tuple[tuple[Tile | None, ...], ...]

    def __post_init__(self):
        if len(self.cells) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in self.cells):
            raise BoardInvariantError(f"Board must be {BOARD_SIZE}x{BOARD_SIZE}")

    @classmethod
    def empty(cls) -> Board:
        return cls(cells=tuple((None,) * BOARD_SIZE for _ in range(BOARD_SIZE)))

    @classmethod
    def from_rows(cls, rows) -> Board:
        """Build a board from any nested iterable of tiles / None."""
        return cls(cells=tuple(tuple(row) for row in rows))

    @property
    def size(self) -> int:
        return BOARD_SIZE

    def get(self, position: Position) -> Tile | None:
        row, col = position
        return self.cells[row][col]

    def is_empty_at(self, position: Position) -> bool:
        return self.get(position) is None

    def with_tile(self, position: Position, tile: Tile) -> Board:
        """Return new board with tile placed at an empty cell."""
        if not self.is_empty_at(position):
            raise CellOccupiedError(position)
        row, col = position
        new_row = self.cells[row][:col] + (tile,) + self.cells[row][col + 1:]
        return Board(cells=self.cells[:row] + (new_row,) + self.cells[row + 1:])

    def tiles(self) -> Iterator[tuple[Position, Tile]]:
        """Iterate over (position, tile) in row-major order."""
        for r, row in enumerate(self.cells):
            for c, tile in enumerate(row):
                if tile is not None:
                    yield (r, c), tile

    def empty_cells(self) -> list[Position]:
        return [
            (r, c)
            for r, row in enumerate(self.cells)
            for c, tile in enumerate(row)
            if tile is None
        ]

    def positions(self) -> dict[int, Position]:
        """Map of tile id -> position, derived from the cells."""
        return {tile.tile_id: pos for pos, tile in self.tiles()}

    def position_of(self, tile_id: int) -> Position | None:
        for pos, tile in self.tiles():
            if tile.tile_id == tile_id:
                return pos
        return None

    @property
    def tile_count(self) -> int:
        return sum(1 for _ in self.tiles())

    @property
    def is_full(self) -> bool:
        return not self.empty_cells()

    @property
    def value_sum(self) -> int:
        return sum(tile.value for _, tile in self.tiles())

    @property
    def max_value(self) -> int:
        return max((tile.value for _, tile in self.tiles()), default=0)

    def values(self) -> list[list[int]]:
        """Plain value grid, 0 for empty cells."""
        return [[tile.value if tile else 0 for tile in row] for row in self.cells]

    # Orientation helpers used to normalize moves to a left pass

    def transpose(self) -> Board:
        return Board(cells=tuple(zip(*self.cells)))

    def reverse_rows(self) -> Board:
        return Board(cells=tuple(row[::-1] for row in self.cells))

    def clear_merge_flags(self) -> Board:
        """Return board with every `just_merged` flag cleared."""
        if not any(tile.just_merged for _, tile in self.tiles()):
            return self
        return Board(cells=tuple(
            tuple(replace(tile, just_merged=False) if tile and tile.just_merged else tile for tile in row)
            for row in self.cells
        ))

    def validate(self) -> None:
        """Raise BoardInvariantError if tile ids repeat or values are invalid."""
        seen: set[int] = set()
        for pos, tile in self.tiles():
            if tile.tile_id in seen:
                raise BoardInvariantError(f"Duplicate tile id {tile.tile_id} at {pos}")
            if not is_tile_value(tile.value):
                raise BoardInvariantError(f"Invalid value {tile.value} at {pos}")
            seen.add(tile.tile_id)


@dataclass(frozen=True)
class MergeEvent:
    """Two equal tiles combined into one of double value."""
    result_value: int
    tile_id: int  # Absorbing tile, survives the merge
    absorbed_id: int  # Identity ends here
    position: Position  # Final cell of the merged tile
    streak_eligible: bool = True

    @property
    def source_value(self) -> int:
        return self.result_value // 2


@dataclass(frozen=True)
class TileMove:
    """A tile slid from one cell to another (into its absorber when merged)."""
    tile_id: int
    from_position: Position
    to_position: Position
    merged_into: int | None = None


@dataclass(frozen=True)
class MoveResult:
    """
    Result of applying a direction to a board.

    When `changed` is False, `board` is the very object that was passed in
    and both event lists are empty.
    """
    board: Board
    changed: bool
    merges: tuple[MergeEvent, ...] = field(default_factory=tuple)
    moves: tuple[TileMove, ...] = field(default_factory=tuple)

    @property
    def merged_value(self) -> int:
        return sum(m.result_value for m in self.merges)
