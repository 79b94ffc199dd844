"""
Tile Factory - Tile identities and random spawning.

Ids come from one process-wide counter so they are never reused, even
across factories or games. Spawning picks a uniformly random empty cell
and a weighted value (2 with probability 0.9, 4 with probability 0.1).
"""

from __future__ import annotations
from itertools import count
import logging
import random

from ..errors import CellOccupiedError
from .state import Board, Position, Tile


logger = logging.getLogger(__name__)

_tile_ids = count(1)

DEFAULT_FOUR_PROBABILITY = 0.1


class TileFactory:
    """
    Creates tiles and places them on boards.

    Pass a seeded `random.Random` (or `seed`) for reproducible games.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        seed: int | None = None,
        four_probability: float = DEFAULT_FOUR_PROBABILITY,
    ):
        self.rng = rng or random.Random(seed)
        self.four_probability = four_probability

    def create_tile(self, value: int) -> Tile:
        """Create a tile with a fresh id. Raises InvalidTileValueError for bad values."""
        return Tile(tile_id=next(_tile_ids), value=value)

    def random_value(self) -> int:
        return 4 if self.rng.random() < self.four_probability else 2

    def spawn(
        self,
        board: Board,
        candidates: list[Position] | None = None,
    ) -> tuple[Board, Tile | None]:
        """
        Spawn one tile into a random empty cell.

        `candidates` are the empty cells the choice is made from; they
        default to the board's current empty cells. Returns the new board
        and the spawned tile, or the unchanged board and None when there is
        nowhere to spawn or the chosen cell turned out to be occupied.
        """
        if candidates is None:
            candidates = board.empty_cells()
        if not candidates:
            return board, None

        position = self.rng.choice(candidates)
        tile = self.create_tile(self.random_value())
        return self.place(board, position, tile)

    def place(self, board: Board, position: Position, tile: Tile) -> tuple[Board, Tile | None]:
        """Place `tile` at `position` if the cell is still empty."""
        try:
            return board.with_tile(position, tile), tile
        except CellOccupiedError:
            logger.warning(
                "Spawn rejected: cell %s already holds tile %s",
                position, board.get(position),
            )
            return board, None

    def populate(self, board: Board, tiles: int) -> Board:
        """Spawn `tiles` tiles, stopping early if the board fills up."""
        for _ in range(tiles):
            board, tile = self.spawn(board)
            if tile is None:
                break
        return board
