"""Board scoring used by the autoplay lookahead."""

from functools import lru_cache
from typing import Sequence

import numpy as np

from board_rules import as_matrix


@lru_cache(maxsize=None)
def _weights(size: int) -> np.ndarray:
    table = np.zeros((size, size), dtype=np.float64)
    # row 0: 2N .. N+1, row 1: 1 .. N, everything below: 0
    table[0] = np.arange(2 * size, size, -1)
    table[1] = np.arange(1, size + 1)
    table.setflags(write=False)
    return table


def position_weights(size: int = 4) -> np.ndarray:
    return _weights(size)


POSITION_WEIGHTS = position_weights(4)


def score_board(grid: Sequence[Sequence[int]]) -> float:
    """Positional bias plus the mean value of the occupied cells.

    The weight table is summed over every cell whether or not it holds a
    tile, so for a given size it contributes a constant; the mean tile value
    is what separates candidate boards. Raises ValueError on an empty board.
    """
    board = as_matrix(grid)
    occupied = board[board != 0]
    if occupied.size == 0:
        raise ValueError("Cannot score a board with no tiles")

    score = float(position_weights(board.shape[0]).sum())

    # Values are added and then divided by the number of cells,
    # so higher values are weighted more
    score += float(occupied.sum()) / occupied.size
    return score


__all__ = ["POSITION_WEIGHTS", "position_weights", "score_board"]
