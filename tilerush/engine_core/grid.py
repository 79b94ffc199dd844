"""
Grid Engine - Applies a swipe direction to a board.

All four directions run through one row algorithm. The board is first
turned so the requested direction becomes "compact to the left"
(transpose for vertical moves, reverse rows for right/down), every row
is compacted, and the board is turned back.

Design principles:
- Pure function: (board, direction) -> MoveResult
- One row algorithm for every direction
- Merges are pairwise and left-greedy: [2,2,2,2] -> [4,4,_,_]
- A no-change move hands back the original board untouched
"""

from __future__ import annotations

from .state import Board, Direction, MergeEvent, MoveResult, Tile, TileMove


def compact_row(row: tuple[Tile | None, ...]) -> tuple[tuple[Tile | None, ...], list[tuple[Tile, Tile]]]:
    """
    Compact one row to the left, merging equal neighbours.

    Returns the new row and a list of (merged tile, absorbed tile) pairs.
    A tile that merged this pass is flagged `just_merged` and never takes
    part in a second merge.
    """
    retained: list[Tile] = []
    merged: list[tuple[Tile, Tile]] = []

    for tile in row:
        if tile is None:
            continue
        previous = retained[-1] if retained else None
        if previous is not None and previous.value == tile.value and not previous.just_merged:
            result = previous.doubled()
            retained[-1] = result
            merged.append((result, tile))
        else:
            retained.append(tile)

    padding = (None,) * (len(row) - len(retained))
    return tuple(retained) + padding, merged


def _to_canonical(board: Board, direction: Direction) -> Board:
    if direction in (Direction.UP, Direction.DOWN):
        board = board.transpose()
    if direction in (Direction.RIGHT, Direction.DOWN):
        board = board.reverse_rows()
    return board


def _from_canonical(board: Board, direction: Direction) -> Board:
    # Inverse of _to_canonical, applied in reverse order
    if direction in (Direction.RIGHT, Direction.DOWN):
        board = board.reverse_rows()
    if direction in (Direction.UP, Direction.DOWN):
        board = board.transpose()
    return board


def apply_move(board: Board, direction: Direction | str) -> MoveResult:
    """
    Slide every tile on the board towards `direction`.

    Returns a MoveResult holding the new board, one MergeEvent per merge,
    one TileMove per relocated tile, and whether anything changed.
    """
    direction = Direction(direction)
    start = board.clear_merge_flags()

    rows = []
    pairs: list[tuple[Tile, Tile]] = []
    for row in _to_canonical(start, direction).cells:
        new_row, row_pairs = compact_row(row)
        rows.append(new_row)
        pairs.extend(row_pairs)

    new_board = _from_canonical(Board.from_rows(rows), direction)

    before = start.positions()
    after = new_board.positions()
    absorbed_by = {absorbed.tile_id: result.tile_id for result, absorbed in pairs}

    moves = []
    for tile_id, origin in before.items():
        merged_into = absorbed_by.get(tile_id)
        target = after[merged_into] if merged_into is not None else after[tile_id]
        if target != origin:
            moves.append(TileMove(
                tile_id=tile_id,
                from_position=origin,
                to_position=target,
                merged_into=merged_into,
            ))

    merges = tuple(
        MergeEvent(
            result_value=result.value,
            tile_id=result.tile_id,
            absorbed_id=absorbed.tile_id,
            position=after[result.tile_id],
        )
        for result, absorbed in pairs
    )

    if not moves and not merges:
        return MoveResult(board=board, changed=False)

    return MoveResult(board=new_board, changed=True, merges=merges, moves=tuple(moves))


def has_available_moves(board: Board) -> bool:
    """True if any cell is empty or two orthogonal neighbours are equal."""
    if not board.is_full:
        return True

    values = board.values()
    size = board.size
    for r in range(size):
        for c in range(size):
            value = values[r][c]
            if c + 1 < size and values[r][c + 1] == value:
                return True
            if r + 1 < size and values[r + 1][c] == value:
                return True
    return False


def available_directions(board: Board) -> list[Direction]:
    """Directions that would change the board."""
    return [d for d in Direction if apply_move(board, d).changed]
