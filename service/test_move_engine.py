"""Tests for the slide/merge rules on the live tile grid."""

import random
import unittest

import numpy as np

from board_rules import simulate_move
from directions import Cell, Direction, build_traversals, parse_direction, vector
from grid import Grid
from move_engine import apply_move, moves_available, prepare_tiles, slide, spawn_tile
from tile import Tile


class FirstChoiceRandom:
    """Always picks the first empty cell and spawns a 2."""

    def choice(self, seq):
        return seq[0]

    def random(self):
        return 0.0


def _reference_left(row):
    filtered = [v for v in row if v != 0]
    merged = []
    skip = False
    for idx, value in enumerate(filtered):
        if skip:
            skip = False
            continue
        if idx + 1 < len(filtered) and filtered[idx + 1] == value:
            merged.append(value * 2)
            skip = True
        else:
            merged.append(value)
    return merged + [0] * (len(row) - len(merged))


def _reference_move(board: np.ndarray, direction: Direction) -> np.ndarray:
    if direction is Direction.LEFT:
        return np.array([_reference_left(row) for row in board.tolist()])
    if direction is Direction.RIGHT:
        return np.fliplr(_reference_move(np.fliplr(board), Direction.LEFT))
    if direction is Direction.UP:
        return _reference_move(board.T, Direction.LEFT).T
    return _reference_move(board.T, Direction.RIGHT).T


class DirectionTests(unittest.TestCase):
    def test_vectors(self) -> None:
        self.assertEqual(vector(Direction.UP), Cell(0, -1))
        self.assertEqual(vector(Direction.RIGHT), Cell(1, 0))
        self.assertEqual(vector(Direction.DOWN), Cell(0, 1))
        self.assertEqual(vector(Direction.LEFT), Cell(-1, 0))

    def test_traversals_start_from_the_far_side(self) -> None:
        self.assertEqual(build_traversals(4, Direction.RIGHT).x, (3, 2, 1, 0))
        self.assertEqual(build_traversals(4, Direction.RIGHT).y, (0, 1, 2, 3))
        self.assertEqual(build_traversals(4, Direction.DOWN).y, (3, 2, 1, 0))
        self.assertEqual(build_traversals(4, Direction.LEFT).x, (0, 1, 2, 3))

    def test_parse_direction(self) -> None:
        self.assertIs(parse_direction(3), Direction.LEFT)
        self.assertIs(parse_direction("up"), Direction.UP)
        for bad in (4, -1, "diagonal", None, True):
            with self.assertRaises(ValueError):
                parse_direction(bad)


class SlideTests(unittest.TestCase):
    def _slide(self, matrix, direction):
        grid = Grid.from_matrix(matrix)
        prepare_tiles(grid)
        outcome = slide(grid, direction)
        return grid, outcome

    def test_no_chained_merges(self) -> None:
        grid, outcome = self._slide([[2, 2, 2, 2], [0] * 4, [0] * 4, [0] * 4], Direction.LEFT)
        self.assertEqual(grid.to_matrix()[0].tolist(), [4, 4, 0, 0])
        self.assertEqual(outcome.score, 8)
        self.assertEqual(outcome.merged_values, (4, 4))

    def test_merged_tile_does_not_merge_again(self) -> None:
        grid, outcome = self._slide([[2, 2, 4, 0], [0] * 4, [0] * 4, [0] * 4], Direction.LEFT)
        self.assertEqual(grid.to_matrix()[0].tolist(), [4, 4, 0, 0])
        self.assertEqual(outcome.score, 4)

    def test_merge_records_sources_and_positions(self) -> None:
        grid, _ = self._slide([[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [8, 0, 0, 8]], Direction.RIGHT)
        merged = grid.cell_content(Cell(3, 3))
        self.assertEqual(merged.value, 16)
        self.assertEqual([t.value for t in merged.merged_from], [8, 8])
        self.assertEqual(merged.merged_from[1].previous_position, Cell(3, 3))
        self.assertEqual(merged.merged_from[0].previous_position, Cell(0, 3))
        self.assertIsNone(grid.cell_content(Cell(0, 3)))

    def test_positions_stay_consistent(self) -> None:
        grid, _ = self._slide([[2, 0, 4, 4], [0, 8, 0, 8], [2, 2, 2, 0], [0, 0, 0, 16]], Direction.UP)
        for x, y, tile in grid.each_cell():
            if tile:
                self.assertEqual((tile.x, tile.y), (x, y))

    def test_blocked_board_does_not_move(self) -> None:
        grid, outcome = self._slide([[2, 4, 0, 0], [0] * 4, [0] * 4, [0] * 4], Direction.LEFT)
        self.assertFalse(outcome.moved)
        self.assertEqual(outcome.score, 0)

    def test_simulation_matches_engine_on_random_boards(self) -> None:
        rng = np.random.default_rng(2048)
        values = np.array([0, 0, 0, 2, 4, 8, 16, 32])
        for _ in range(1000):
            board = rng.choice(values, size=(4, 4))
            for direction in Direction:
                grid, outcome = self._slide(board, direction)
                simulated, changed = simulate_move(board, direction)
                np.testing.assert_array_equal(grid.to_matrix(), simulated)
                np.testing.assert_array_equal(simulated, _reference_move(board, direction))
                self.assertEqual(outcome.moved, changed)

    def test_random_boards_keep_power_of_two_values(self) -> None:
        rng = np.random.default_rng(7)
        values = np.array([0, 2, 4, 8, 16])
        for _ in range(200):
            board = rng.choice(values, size=(4, 4))
            before = int((board != 0).sum())
            for direction in Direction:
                grid, _ = self._slide(board, direction)
                after = grid.to_matrix()
                occupied = after[after != 0]
                self.assertGreaterEqual(occupied.size * 2, before)
                for value in occupied.tolist():
                    self.assertEqual(value & (value - 1), 0)
                self.assertEqual(int(after.sum()), int(board.sum()))


class ApplyMoveTests(unittest.TestCase):
    def test_left_merge_scores_and_spawns(self) -> None:
        grid = Grid.from_matrix([[2, 2, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        result = apply_move(grid, Direction.LEFT, FirstChoiceRandom())

        self.assertTrue(result.moved)
        self.assertEqual(result.score, 4)
        self.assertFalse(result.won)
        self.assertFalse(result.over)
        board = grid.to_matrix()
        self.assertEqual(board[0].tolist(), [4, 0, 0, 0])
        # first empty cell in column-major order receives the spawn
        self.assertEqual(board[1, 0], 2)
        self.assertEqual(int(board.sum()), 6)

    def test_no_op_move_leaves_grid_untouched(self) -> None:
        grid = Grid.from_matrix([[2, 4, 8, 16], [0] * 4, [0] * 4, [0] * 4])
        before = grid.serialize()
        result = apply_move(grid, Direction.UP, FirstChoiceRandom())
        self.assertFalse(result.moved)
        self.assertEqual(result.score, 0)
        self.assertEqual(grid.serialize(), before)

    def test_merge_into_2048_wins(self) -> None:
        grid = Grid.from_matrix([[1024, 1024, 0, 0], [0] * 4, [0] * 4, [0] * 4])
        result = apply_move(grid, Direction.RIGHT, FirstChoiceRandom())
        self.assertTrue(result.won)
        self.assertEqual(grid.to_matrix()[0, 3], 2048)
        self.assertEqual(result.score, 2048)

    def test_filling_last_cell_without_matches_is_over(self) -> None:
        grid = Grid.from_matrix(
            [[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [0, 8, 16, 32]]
        )
        result = apply_move(grid, Direction.LEFT, FirstChoiceRandom())
        self.assertTrue(result.moved)
        self.assertTrue(result.over)
        self.assertEqual(grid.to_matrix()[3].tolist(), [8, 16, 32, 2])


class SpawnTests(unittest.TestCase):
    def test_spawn_values_follow_probability(self) -> None:
        rng = random.Random(1)
        values = []
        for _ in range(2000):
            grid = Grid(4)
            values.append(spawn_tile(grid, rng).value)
        fours = values.count(4) / len(values)
        self.assertTrue(set(values) <= {2, 4})
        self.assertGreater(fours, 0.05)
        self.assertLess(fours, 0.15)

    def test_spawn_on_full_grid_is_silent(self) -> None:
        grid = Grid.from_matrix([[2, 4], [4, 2]])
        self.assertIsNone(spawn_tile(grid, random.Random(0)))
        self.assertEqual(grid.to_matrix().tolist(), [[2, 4], [4, 2]])

    def test_moves_available(self) -> None:
        self.assertTrue(moves_available(Grid.from_matrix([[2, 4], [4, 0]])))
        self.assertTrue(moves_available(Grid.from_matrix([[2, 2], [4, 8]])))
        self.assertFalse(moves_available(Grid.from_matrix([[2, 4], [4, 2]])))


class GridTests(unittest.TestCase):
    def test_serialize_round_trip(self) -> None:
        grid = Grid.from_matrix([[0, 2, 0], [4, 0, 0], [0, 0, 8]])
        restored = Grid(3, grid.serialize()["cells"])
        np.testing.assert_array_equal(restored.to_matrix(), grid.to_matrix())
        self.assertEqual(restored.cell_content(Cell(1, 0)).value, 2)

    def test_snapshot_is_detached(self) -> None:
        grid = Grid(4)
        grid.insert_tile(Tile(Cell(1, 2), 8))
        board = grid.to_matrix()
        board[2, 1] = 0
        self.assertEqual(grid.cell_content(Cell(1, 2)).value, 8)
        self.assertEqual(grid.cell_content(Cell(1, 2)).position, Cell(1, 2))
        self.assertTrue(grid.cell_occupied(Cell(1, 2)))
        self.assertTrue(grid.cell_available(Cell(2, 1)))
        self.assertIsNone(grid.cell_content(Cell(4, 0)))

    def test_rejects_bad_shapes_and_values(self) -> None:
        with self.assertRaises(ValueError):
            Grid(1)
        with self.assertRaises(ValueError):
            Grid.from_matrix([[2, 2, 2], [0, 0, 0]])
        with self.assertRaises(ValueError):
            Grid.from_matrix([[3, 0], [0, 0]])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
