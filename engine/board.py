"""Pure grid helpers for connect-N boards: create, drop, win and draw checks."""

from __future__ import annotations

from dataclasses import dataclass

Cell = int | None
Grid = list[list[Cell]]

# (row_step, col_step) for horizontal, vertical, diagonal down-right, diagonal down-left.
_AXES: tuple[tuple[int, int], ...] = ((0, 1), (1, 0), (1, 1), (1, -1))


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    """Result of one placement attempt. ``row`` is set only when ``ok``."""

    ok: bool
    row: int | None = None


REJECTED = MoveOutcome(ok=False)


def create_grid(rows: int, cols: int) -> Grid:
    if rows <= 0 or cols <= 0:
        raise ValueError("rows and cols must be > 0")
    return [[None] * cols for _ in range(rows)]


def copy_grid(grid: Grid) -> Grid:
    return [list(row) for row in grid]


def count_pieces(grid: Grid) -> int:
    return sum(1 for row in grid for cell in row if cell is not None)


def _in_bounds(grid: Grid, row: int, col: int) -> bool:
    return 0 <= row < len(grid) and 0 <= col < len(grid[0])


def apply_move(
    grid: Grid,
    column: int,
    player_number: int,
    *,
    row: int | None = None,
    gravity: bool = True,
) -> MoveOutcome:
    """Place ``player_number`` into ``grid`` in place.

    With gravity the piece lands in the bottom-most empty cell of ``column``
    and ``row`` is ignored. Without gravity the caller names the target
    ``row`` and the cell must be empty. Out-of-range coordinates and
    occupied targets are ordinary rejections, never exceptions.
    """
    if not grid or not 0 <= column < len(grid[0]):
        return REJECTED

    if not gravity:
        if row is None or not _in_bounds(grid, row, column):
            return REJECTED
        if grid[row][column] is not None:
            return REJECTED
        grid[row][column] = player_number
        return MoveOutcome(ok=True, row=row)

    for target_row in range(len(grid) - 1, -1, -1):
        if grid[target_row][column] is None:
            grid[target_row][column] = player_number
            return MoveOutcome(ok=True, row=target_row)
    return REJECTED


def _run_length(grid: Grid, row: int, col: int, player_number: int, row_step: int, col_step: int) -> int:
    count = 1
    for direction in (1, -1):
        r = row + row_step * direction
        c = col + col_step * direction
        while _in_bounds(grid, r, c) and grid[r][c] == player_number:
            count += 1
            r += row_step * direction
            c += col_step * direction
    return count


def detect_win(grid: Grid, row: int, col: int, player_number: int, winning_length: int) -> bool:
    """Return True when the cell just filled at (row, col) completes a line.

    Only runs passing through (row, col) are counted; lines elsewhere on the
    board are ignored.
    """
    if not _in_bounds(grid, row, col) or grid[row][col] != player_number:
        return False
    return any(
        _run_length(grid, row, col, player_number, row_step, col_step) >= winning_length
        for row_step, col_step in _AXES
    )


def is_full(grid: Grid, *, gravity: bool = True) -> bool:
    # With gravity a column is full iff its top cell is filled.
    if gravity:
        return all(cell is not None for cell in grid[0])
    return all(cell is not None for row in grid for cell in row)


__all__ = [
    "Cell",
    "Grid",
    "MoveOutcome",
    "apply_move",
    "copy_grid",
    "count_pieces",
    "create_grid",
    "detect_win",
    "is_full",
]
