"""The live board: an N x N matrix of optional Tile references."""

import random
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from directions import Cell
from tile import Tile


def _is_tile_value(value: int) -> bool:
    return value >= 2 and value & (value - 1) == 0


class Grid:
    def __init__(self, size: int, previous_state: Optional[Sequence] = None) -> None:
        if size < 2:
            raise ValueError(f"Grid size must be at least 2, received {size}")
        self.size = size
        self.cells: List[List[Optional[Tile]]] = (
            self.from_state(previous_state) if previous_state else self.empty()
        )

    # Build a grid of the specified size
    def empty(self) -> List[List[Optional[Tile]]]:
        return [[None] * self.size for _ in range(self.size)]

    def from_state(self, state: Sequence) -> List[List[Optional[Tile]]]:
        if len(state) != self.size or any(len(column) != self.size for column in state):
            raise ValueError(f"Serialized cells do not match grid size {self.size}")

        cells = self.empty()
        for x, column in enumerate(state):
            for y, entry in enumerate(column):
                if entry:
                    cells[x][y] = Tile(Cell(x, y), int(entry["value"]))
        return cells

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[int]]) -> "Grid":
        """Build a grid from a raw value matrix indexed ``[y][x]`` (0 = empty)."""
        arr = np.asarray(matrix, dtype=np.int64)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise ValueError(f"Expected a square grid, received shape {arr.shape}")

        grid = cls(arr.shape[0])
        for (y, x), value in np.ndenumerate(arr):
            if value == 0:
                continue
            if not _is_tile_value(int(value)):
                raise ValueError(f"Tile values must be powers of two, received {value}")
            grid.insert_tile(Tile(Cell(x, y), int(value)))
        return grid

    # Find the first available random position
    def random_available_cell(self, rng: Optional[random.Random] = None) -> Optional[Cell]:
        cells = self.available_cells()
        if cells:
            return (rng or random).choice(cells)
        return None

    def available_cells(self) -> List[Cell]:
        return [Cell(x, y) for x, y, tile in self.each_cell() if tile is None]

    def each_cell(self) -> Iterator[Tuple[int, int, Optional[Tile]]]:
        for x in range(self.size):
            for y in range(self.size):
                yield x, y, self.cells[x][y]

    def tiles(self) -> List[Tile]:
        return [tile for _, _, tile in self.each_cell() if tile is not None]

    def cells_available(self) -> bool:
        return any(tile is None for _, _, tile in self.each_cell())

    def cell_available(self, cell: Cell) -> bool:
        return not self.cell_occupied(cell)

    def cell_occupied(self, cell: Cell) -> bool:
        return self.cell_content(cell) is not None

    def cell_content(self, cell: Cell) -> Optional[Tile]:
        if self.within_bounds(cell):
            return self.cells[cell.x][cell.y]
        return None

    def insert_tile(self, tile: Tile) -> None:
        self.cells[tile.x][tile.y] = tile

    def remove_tile(self, tile: Tile) -> None:
        self.cells[tile.x][tile.y] = None

    def within_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.x < self.size and 0 <= cell.y < self.size

    # Board interface consumed by move_engine.slide

    def cell_value(self, cell: Cell) -> int:
        tile = self.cell_content(cell)
        return tile.value if tile else 0

    def merged_at(self, cell: Cell) -> bool:
        tile = self.cell_content(cell)
        return bool(tile and tile.merged_from)

    def move_tile(self, source: Cell, target: Cell) -> None:
        tile = self.cells[source.x][source.y]
        self.cells[source.x][source.y] = None
        self.cells[target.x][target.y] = tile
        tile.update_position(target)

    def merge_tile(self, source: Cell, target: Cell) -> int:
        tile = self.cells[source.x][source.y]
        next_tile = self.cells[target.x][target.y]

        merged = Tile(target, tile.value * 2)
        merged.merged_from = (tile, next_tile)

        self.insert_tile(merged)
        self.remove_tile(tile)

        # Converge the two tiles' positions
        tile.update_position(target)
        return merged.value

    def to_matrix(self) -> np.ndarray:
        """Detached value snapshot indexed ``[y][x]``; no Tile references escape."""
        board = np.zeros((self.size, self.size), dtype=np.int64)
        for x, y, tile in self.each_cell():
            if tile:
                board[y, x] = tile.value
        return board

    def serialize(self) -> dict:
        cells = [
            [tile.serialize() if tile else None for tile in column]
            for column in self.cells
        ]
        return {"size": self.size, "cells": cells}
