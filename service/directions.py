"""Move directions, unit vectors and traversal order shared by every board."""

from enum import IntEnum
from functools import lru_cache
from typing import NamedTuple, Sequence, Tuple, Union


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3


class Cell(NamedTuple):
    x: int
    y: int


class Traversals(NamedTuple):
    x: Tuple[int, ...]
    y: Tuple[int, ...]


DIRECTION_NAMES: Sequence[str] = tuple(d.name for d in Direction)

_VECTORS = {
    Direction.UP: Cell(0, -1),
    Direction.RIGHT: Cell(1, 0),
    Direction.DOWN: Cell(0, 1),
    Direction.LEFT: Cell(-1, 0),
}


def parse_direction(value: Union[int, str, Direction]) -> Direction:
    """Coerce a wire value (0..3, enum or name) into a Direction."""
    if isinstance(value, Direction):
        return value
    if isinstance(value, str):
        try:
            return Direction[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown direction: {value}") from None
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Direction(value)
        except ValueError:
            raise ValueError(f"Unknown direction: {value}") from None
    raise ValueError(f"Unknown direction: {value!r}")


def vector(direction: Union[int, str, Direction]) -> Cell:
    return _VECTORS[parse_direction(direction)]


@lru_cache(maxsize=None)
def _traversals(size: int, direction: Direction) -> Traversals:
    xs = list(range(size))
    ys = list(range(size))
    vec = _VECTORS[direction]

    # Always traverse from the farthest cell in the chosen direction
    if vec.x == 1:
        xs.reverse()
    if vec.y == 1:
        ys.reverse()

    return Traversals(tuple(xs), tuple(ys))


def build_traversals(size: int, direction: Union[int, str, Direction]) -> Traversals:
    return _traversals(size, parse_direction(direction))


__all__ = [
    "Cell",
    "DIRECTION_NAMES",
    "Direction",
    "Traversals",
    "build_traversals",
    "parse_direction",
    "vector",
]
