import numpy as np
import pytest

from room_packer.core.exceptions import PlacementError
from room_packer.core.occupancy_grid import (
    OUT_OF_BOUNDS,
    OVERLAP,
    CellState,
    OccupancyGrid,
)


def test_new_grid_is_empty():
    grid = OccupancyGrid(4, 3)
    assert grid.cells.shape == (3, 4)
    assert grid.cell_count == 12
    assert grid.count(CellState.EMPTY) == 12


@pytest.mark.parametrize("width,height", [(0, 3), (3, 0), (-1, 2)])
def test_invalid_dimensions(width, height):
    with pytest.raises(ValueError):
        OccupancyGrid(width, height)


def test_index_is_row_major():
    grid = OccupancyGrid(4, 3)
    assert grid.index(0, 0) == 0
    assert grid.index(3, 0) == 3
    assert grid.index(1, 2) == 9
    with pytest.raises(IndexError):
        grid.index(4, 0)


def test_perimeter():
    grid = OccupancyGrid(3, 3)
    ring = [c for c in grid.iter_cells() if grid.is_perimeter(*c)]
    assert len(ring) == 8
    assert not grid.is_perimeter(1, 1)


def test_reserve_only_empty_in_bounds_cells():
    grid = OccupancyGrid(3, 3)
    assert grid.reserve(1, 1)
    assert grid.get(1, 1) == CellState.RESERVED
    assert not grid.reserve(1, 1)
    assert not grid.reserve(5, 5)
    assert grid.count(CellState.RESERVED) == 1


def test_find_conflict_bounds():
    grid = OccupancyGrid(3, 3)
    assert grid.find_conflict(0, 0, (3, 3)) is None
    assert grid.find_conflict(2, 2, (2, 1)) == OUT_OF_BOUNDS
    assert grid.find_conflict(-1, 0, (1, 1)) == OUT_OF_BOUNDS


def test_reserved_and_occupied_both_block():
    grid = OccupancyGrid(3, 3)
    grid.reserve(0, 0)
    grid.occupy(2, 2, (1, 1))
    assert grid.find_conflict(0, 0, (1, 1)) == OVERLAP
    assert grid.find_conflict(1, 1, (2, 2)) == OVERLAP
    assert grid.find_conflict(1, 0, (2, 2)) is None


def test_occupy_returns_covered_cells():
    grid = OccupancyGrid(4, 4)
    cells = grid.occupy(1, 1, (2, 2))
    assert cells == [(1, 1), (2, 1), (1, 2), (2, 2)]
    assert grid.count(CellState.OCCUPIED) == 4


def test_failed_occupy_changes_nothing():
    grid = OccupancyGrid(3, 3)
    grid.occupy(2, 1, (1, 1))
    before = grid.cells.copy()

    with pytest.raises(PlacementError) as exc_info:
        grid.occupy(1, 1, (2, 2))

    assert exc_info.value.reason == OVERLAP
    assert exc_info.value.footprint == (2, 2)
    np.testing.assert_array_equal(grid.cells, before)


def test_iter_cells_sees_updates_during_scan():
    grid = OccupancyGrid(3, 1)
    visited = []
    for x, y in grid.iter_cells(CellState.EMPTY):
        visited.append((x, y))
        if x == 0:
            grid.occupy(1, 0, (1, 1))
    assert visited == [(0, 0), (2, 0)]


def test_snapshot_is_read_only_copy():
    grid = OccupancyGrid(2, 2)
    snap = grid.snapshot()
    with pytest.raises(ValueError):
        snap[0, 0] = CellState.OCCUPIED
    grid.occupy(0, 0, (1, 1))
    assert snap[0, 0] == CellState.EMPTY


def test_dict_round_trip_keeps_states():
    grid = OccupancyGrid(3, 2)
    grid.reserve(0, 1)
    grid.occupy(1, 0, (2, 1))
    restored = OccupancyGrid.from_dict(grid.to_dict())
    np.testing.assert_array_equal(restored.cells, grid.cells)
    assert restored.state_counts() == {"empty": 2, "occupied": 2, "reserved": 1}


def test_from_dict_rejects_shape_mismatch():
    with pytest.raises(ValueError):
        OccupancyGrid.from_dict({"width": 2, "height": 2, "cells": [[0, 0, 0]]})
