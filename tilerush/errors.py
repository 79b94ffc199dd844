"""Exception hierarchy for the engine.

Gameplay never raises these for ordinary input: ignored moves and
rejected spawns degrade to no-ops. They signal malformed data handed
to the engine by its caller.
"""


class TileRushError(Exception):
    """Base class for engine errors."""


class InvalidTileValueError(TileRushError, ValueError):
    """A tile value is not a power of two >= 2."""

    def __init__(self, value):
        super().__init__(f"Tile value must be a power of two >= 2, got {value!r}")
        self.value = value


class CellOccupiedError(TileRushError):
    """Placement targeted a cell that already holds a tile."""

    def __init__(self, position: tuple[int, int]):
        super().__init__(f"Cell {position} is already occupied")
        self.position = position


class BoardInvariantError(TileRushError):
    """A board violates one of its structural invariants."""
