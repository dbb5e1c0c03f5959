"""Autoplay move policies.

Each strategy runs one autoplay iteration: it reads a snapshot of the live
board, picks directions and issues them as real AI moves through
``GameManager.move(direction, is_ai=True)``. ``play`` returns the direction
that changed the board, or ``None`` when nothing moved.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

import numpy as np

from board_rules import as_matrix, simulate_move
from directions import Cell, Direction, vector
from evaluator import score_board

logger = logging.getLogger(__name__)

# If nothing happened, try moving left, right, up, and then, the worst: down
FALLBACK_ORDER: Sequence[Direction] = (
    Direction.LEFT,
    Direction.RIGHT,
    Direction.UP,
    Direction.DOWN,
)
LOOKAHEAD_DIRECTIONS: Sequence[Direction] = (Direction.UP, Direction.RIGHT, Direction.LEFT)


def try_moves(manager, candidates: Iterable[Direction]) -> Optional[Direction]:
    """Issue ``candidates`` as AI moves in order until one changes the board."""
    tried = set()
    for direction in candidates:
        if direction in tried:
            continue
        tried.add(direction)
        if manager.move(direction, is_ai=True):
            return direction
    return None


class Decision(NamedTuple):
    direction: Direction
    scores: Dict[Direction, float]


class ScoreStrategy:
    """Greedy one-ply lookahead over UP, RIGHT and LEFT scored by ``score_board``."""

    name = "score"

    def choose(self, board) -> Decision:
        scores = {
            direction: score_board(simulate_move(board, direction)[0])
            for direction in LOOKAHEAD_DIRECTIONS
        }
        up = scores[Direction.UP]
        right = scores[Direction.RIGHT]
        left = scores[Direction.LEFT]

        # Left is compared to Right, the winner to Up; ties keep the earlier one
        direction, best = (Direction.LEFT, left) if left >= right else (Direction.RIGHT, right)
        if up > best:
            direction = Direction.UP

        return Decision(direction, scores)

    def play(self, manager) -> Optional[Direction]:
        board = manager.load_board()
        decision = self.choose(board)
        logger.debug(
            "up=%.3f right=%.3f left=%.3f -> %s",
            decision.scores[Direction.UP],
            decision.scores[Direction.RIGHT],
            decision.scores[Direction.LEFT],
            decision.direction.name,
        )
        return try_moves(manager, [decision.direction, *FALLBACK_ORDER])


class CellState(Enum):
    EMPTY = "empty"
    GROWABLE = "growable"
    BLOCKED = "blocked"
    TRAPPED = "trapped"


def snake_path(size: int) -> List[Cell]:
    """Row 0 left to right, row 1 right to left, and so on."""
    path = []
    for y in range(size):
        xs = range(size) if y % 2 == 0 else range(size - 1, -1, -1)
        path.extend(Cell(x, y) for x in xs)
    return path


def _neighbours(board: np.ndarray, cell: Cell):
    size = board.shape[0]
    for direction in Direction:
        vec = vector(direction)
        x, y = cell.x + vec.x, cell.y + vec.y
        if 0 <= x < size and 0 <= y < size:
            yield direction, Cell(x, y), int(board[y, x])


def classify(board: np.ndarray, cell: Cell) -> CellState:
    value = int(board[cell.y, cell.x])
    if value == 0:
        return CellState.EMPTY

    neighbours = [v for _, _, v in _neighbours(board, cell)]
    if value in neighbours:
        return CellState.GROWABLE
    if all(v > value for v in neighbours):
        return CellState.TRAPPED
    return CellState.BLOCKED


def count_trapped(board: np.ndarray) -> int:
    return sum(
        1 for cell in snake_path(board.shape[0]) if classify(board, cell) is CellState.TRAPPED
    )


def untrap_candidates(board: np.ndarray, cell: Cell) -> List[Direction]:
    """Directions worth trying to free a trapped cell, in order.

    Rows running left to right check RIGHT, LEFT then UP; rows running right
    to left only ever check LEFT then UP.
    """
    size = board.shape[0]
    candidates = []
    if cell.y % 2 == 0:
        if cell.x < size - 1:
            candidates.append(Direction.RIGHT)
        if cell.x > 0:
            candidates.append(Direction.LEFT)
    elif cell.x > 0:
        candidates.append(Direction.LEFT)
    if cell.y > 0:
        candidates.append(Direction.UP)
    return candidates


def growth_direction(board: np.ndarray, cell: Cell) -> Optional[Direction]:
    """Direction merging ``cell`` with an equal neighbour, toward the head of the snake."""
    value = int(board[cell.y, cell.x])
    for direction, _, neighbour in _neighbours(board, cell):
        if neighbour != value:
            continue
        if direction in (Direction.UP, Direction.DOWN):
            return Direction.UP
        return Direction.LEFT if cell.y % 2 == 0 else Direction.RIGHT
    return None


class SnakeStrategy:
    """Cell-by-cell scan along the snake path with trapped-cell resolution.

    Per iteration: free the first trapped cell when a candidate move lowers
    the trapped count, else merge the first growable cell, else fall back to
    LEFT, RIGHT, UP, DOWN.
    """

    name = "snake"

    def free_trapped(self, manager, board: np.ndarray) -> Optional[Direction]:
        before = count_trapped(board)
        for cell in snake_path(board.shape[0]):
            if classify(board, cell) is not CellState.TRAPPED:
                continue
            for direction in untrap_candidates(board, cell):
                simulated, changed = simulate_move(board, direction)
                if changed and count_trapped(simulated) < before:
                    if manager.move(direction, is_ai=True):
                        logger.debug("freed trapped cell %s with %s", cell, direction.name)
                        return direction
            # Only the first trapped cell along the path is worked on
            break
        return None

    def grow(self, manager, board: np.ndarray) -> Optional[Direction]:
        for cell in snake_path(board.shape[0]):
            if classify(board, cell) is not CellState.GROWABLE:
                continue
            direction = growth_direction(board, cell)
            if direction is not None and manager.move(direction, is_ai=True):
                logger.debug("grew cell %s with %s", cell, direction.name)
                return direction
        return None

    def play(self, manager) -> Optional[Direction]:
        board = as_matrix(manager.load_board())
        # Direction.UP is 0, so compare against None rather than chaining with `or`
        for attempt in (self.free_trapped, self.grow):
            direction = attempt(manager, board)
            if direction is not None:
                return direction
        return try_moves(manager, FALLBACK_ORDER)


class CornerStrategy:
    """Push toward the upper corners: RIGHT once the top row is full, else LEFT; UP if stuck."""

    name = "corner"

    def play(self, manager) -> Optional[Direction]:
        board = as_matrix(manager.load_board())
        first = Direction.RIGHT if (board[0] != 0).all() else Direction.LEFT
        return try_moves(manager, [first, Direction.UP])


class CycleStrategy:
    """Rotate through DOWN, LEFT, UP, RIGHT, one successful move per iteration."""

    name = "cycle"
    ORDER: Sequence[Direction] = (Direction.DOWN, Direction.LEFT, Direction.UP, Direction.RIGHT)

    def __init__(self) -> None:
        self.position = 0

    def play(self, manager) -> Optional[Direction]:
        count = len(self.ORDER)
        for offset in range(count):
            index = (self.position + offset) % count
            direction = self.ORDER[index]
            if manager.move(direction, is_ai=True):
                self.position = (index + 1) % count
                return direction
        return None


STRATEGIES = {
    ScoreStrategy.name: ScoreStrategy,
    SnakeStrategy.name: SnakeStrategy,
    CornerStrategy.name: CornerStrategy,
    CycleStrategy.name: CycleStrategy,
}


def create_strategy(name: str):
    try:
        return STRATEGIES[name.strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown strategy: {name}") from None


__all__ = [
    "CellState",
    "CornerStrategy",
    "CycleStrategy",
    "Decision",
    "FALLBACK_ORDER",
    "LOOKAHEAD_DIRECTIONS",
    "STRATEGIES",
    "ScoreStrategy",
    "SnakeStrategy",
    "classify",
    "count_trapped",
    "create_strategy",
    "growth_direction",
    "snake_path",
    "try_moves",
    "untrap_candidates",
]
