"""Slide/merge rules shared by the live grid and detached value boards.

``slide`` is the only implementation of the traversal, farthest-position
search and merge rule. It runs over any board exposing ``size``,
``within_bounds``, ``cell_value``, ``merged_at``, ``move_tile`` and
``merge_tile``; ``grid.Grid`` is one such board and
``board_rules.ValueBoard`` is the other, so real and simulated moves cannot
drift apart.
"""

import logging
import random
from typing import NamedTuple, Optional, Tuple

from directions import Cell, Direction, build_traversals, parse_direction, vector
from grid import Grid
from tile import Tile

logger = logging.getLogger(__name__)

WIN_VALUE = 2048
SPAWN_TWO_PROBABILITY = 0.9


class SlideOutcome(NamedTuple):
    moved: bool
    score: int
    merged_values: Tuple[int, ...]


class MoveResult(NamedTuple):
    moved: bool
    score: int
    won: bool
    over: bool


def find_farthest_position(board, cell: Cell, vec: Cell) -> Tuple[Cell, Cell]:
    # Progress towards the vector direction until an obstacle is found
    while True:
        previous = cell
        cell = Cell(previous.x + vec.x, previous.y + vec.y)
        if not (board.within_bounds(cell) and board.cell_value(cell) == 0):
            break

    # "next" is used to check if a merge is required
    return previous, cell


def slide(board, direction) -> SlideOutcome:
    direction = parse_direction(direction)
    vec = vector(direction)
    traversals = build_traversals(board.size, direction)

    moved = False
    score = 0
    merged_values = []

    for x in traversals.x:
        for y in traversals.y:
            cell = Cell(x, y)
            value = board.cell_value(cell)
            if not value:
                continue

            farthest, next_cell = find_farthest_position(board, cell, vec)

            # At most one merge per resulting tile
            if (
                board.within_bounds(next_cell)
                and board.cell_value(next_cell) == value
                and not board.merged_at(next_cell)
            ):
                merged = board.merge_tile(cell, next_cell)
                score += merged
                merged_values.append(merged)
                target = next_cell
            else:
                board.move_tile(cell, farthest)
                target = farthest

            if target != cell:
                moved = True

    return SlideOutcome(moved, score, tuple(merged_values))


def prepare_tiles(grid: Grid) -> None:
    """Save all tile positions and remove merger info."""
    for tile in grid.tiles():
        tile.merged_from = None
        tile.save_position()


def spawn_tile(grid: Grid, rng: Optional[random.Random] = None) -> Optional[Tile]:
    rng = rng or random
    cell = grid.random_available_cell(rng)
    if cell is None:
        return None

    value = 2 if rng.random() < SPAWN_TWO_PROBABILITY else 4
    tile = Tile(cell, value)
    grid.insert_tile(tile)
    return tile


def tile_matches_available(board) -> bool:
    """Check for two equal 4-neighbours (the more expensive terminal check)."""
    for x in range(board.size):
        for y in range(board.size):
            value = board.cell_value(Cell(x, y))
            if not value:
                continue
            for direction in Direction:
                vec = vector(direction)
                neighbour = Cell(x + vec.x, y + vec.y)
                if board.within_bounds(neighbour) and board.cell_value(neighbour) == value:
                    return True
    return False


def moves_available(board) -> bool:
    return board.cells_available() or tile_matches_available(board)


def apply_move(
    grid: Grid,
    direction,
    rng: Optional[random.Random] = None,
    win_value: int = WIN_VALUE,
) -> MoveResult:
    """Slide ``grid`` in ``direction``; spawn a tile and recheck for game over if anything moved.

    The caller owns score and flags: the returned ``score`` is the delta to add,
    ``won`` reports whether this move produced a ``win_value`` tile and ``over``
    whether no move is left afterwards.
    """
    prepare_tiles(grid)
    outcome = slide(grid, direction)

    if not outcome.moved:
        return MoveResult(False, 0, False, False)

    spawned = spawn_tile(grid, rng)
    logger.debug(
        "moved %s: +%d, merged %s, spawned %r",
        parse_direction(direction).name,
        outcome.score,
        list(outcome.merged_values),
        spawned,
    )

    won = win_value in outcome.merged_values
    over = not moves_available(grid)
    return MoveResult(True, outcome.score, won, over)


__all__ = [
    "MoveResult",
    "SlideOutcome",
    "WIN_VALUE",
    "apply_move",
    "find_farthest_position",
    "moves_available",
    "prepare_tiles",
    "slide",
    "spawn_tile",
    "tile_matches_available",
]
