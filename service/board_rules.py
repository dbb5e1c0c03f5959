"""Side-effect-free 2048 move simulation over detached value matrices."""

from typing import List, Sequence, Tuple, Union

import numpy as np

from directions import DIRECTION_NAMES, Cell, Direction, parse_direction
from move_engine import moves_available as _moves_available
from move_engine import slide


class ValueBoard:
    """A numpy copy of a value matrix (``[y][x]``, 0 = empty) plus a merged mask."""

    def __init__(self, grid: Union[Sequence[Sequence[int]], np.ndarray]) -> None:
        self.values = as_matrix(grid).copy()
        self.size = self.values.shape[0]
        self.merged = np.zeros_like(self.values, dtype=bool)

    def within_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.x < self.size and 0 <= cell.y < self.size

    def cells_available(self) -> bool:
        return bool((self.values == 0).any())

    def cell_value(self, cell: Cell) -> int:
        if self.within_bounds(cell):
            return int(self.values[cell.y, cell.x])
        return 0

    def merged_at(self, cell: Cell) -> bool:
        return bool(self.merged[cell.y, cell.x])

    def move_tile(self, source: Cell, target: Cell) -> None:
        if source == target:
            return
        self.values[target.y, target.x] = self.values[source.y, source.x]
        self.values[source.y, source.x] = 0

    def merge_tile(self, source: Cell, target: Cell) -> int:
        merged = int(self.values[source.y, source.x]) * 2
        self.values[target.y, target.x] = merged
        self.values[source.y, source.x] = 0
        self.merged[target.y, target.x] = True
        return merged


def as_matrix(grid: Union[Sequence[Sequence[int]], np.ndarray]) -> np.ndarray:
    board = np.asarray(grid, dtype=np.int64)
    if board.ndim != 2 or board.shape[0] != board.shape[1] or board.shape[0] < 2:
        raise ValueError(f"Expected a square grid, received shape {board.shape}")
    return board


def _run(grid, direction) -> Tuple[ValueBoard, bool, int]:
    board = ValueBoard(grid)
    outcome = slide(board, parse_direction(direction))
    return board, outcome.moved, outcome.score


def simulate_move(
    grid: Sequence[Sequence[int]], direction: Union[int, str, Direction]
) -> Tuple[np.ndarray, bool]:
    """Return the board ``direction`` would produce (no spawn) and whether it changed."""
    board, changed, _ = _run(grid, direction)
    return board.values, changed


def simulate_score(grid: Sequence[Sequence[int]], direction: Union[int, str, Direction]) -> int:
    """Score a move would earn on ``grid`` without touching it."""
    _, _, score = _run(grid, direction)
    return score


def valid_moves(grid: Sequence[Sequence[int]]) -> List[str]:
    allowed: List[str] = []
    for direction in DIRECTION_NAMES:
        _, changed = simulate_move(grid, direction)
        if changed:
            allowed.append(direction)
    return allowed


def moves_available(grid: Sequence[Sequence[int]]) -> bool:
    return _moves_available(ValueBoard(grid))


def is_terminal(grid: Sequence[Sequence[int]]) -> bool:
    return not moves_available(grid)


__all__ = [
    "DIRECTION_NAMES",
    "ValueBoard",
    "as_matrix",
    "is_terminal",
    "moves_available",
    "simulate_move",
    "simulate_score",
    "valid_moves",
]
