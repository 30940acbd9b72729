import numpy as np
from enum import IntEnum
from typing import Tuple, List, Dict, Iterator, Optional, Any

from room_packer.core.exceptions import PlacementError

OUT_OF_BOUNDS = "out_of_bounds"
OVERLAP = "overlap"


class CellState(IntEnum):
    """State of one grid cell"""

    EMPTY = 0
    OCCUPIED = 1
    RESERVED = 2


class OccupancyGrid:
    """
    2D cell-state array for one room.

    Cells are stored in a (height, width) numpy array, so the flattened
    array is row-major and cell (x, y) sits at index y * width + x.
    """

    def __init__(self, width: int, height: int):
        """
        Initialize an all-empty grid.

        Args:
            width: Number of cells along X
            height: Number of cells along Y
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)

        # 0 = empty, 1 = occupied, 2 = reserved
        self.cells = np.zeros((self.height, self.width), dtype=np.uint8)

    @property
    def cell_count(self) -> int:
        return self.width * self.height

    def reset(self):
        """Mark every cell empty"""
        self.cells.fill(CellState.EMPTY)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index(self, x: int, y: int) -> int:
        """
        Row-major index of a cell.

        Raises:
            IndexError: If the cell lies outside the grid
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.width}x{self.height} grid")
        return y * self.width + x

    def get(self, x: int, y: int) -> CellState:
        self.index(x, y)
        return CellState(int(self.cells[y, x]))

    def is_perimeter(self, x: int, y: int) -> bool:
        """Check if a cell lies on the outer ring of the grid"""
        return x == 0 or y == 0 or x == self.width - 1 or y == self.height - 1

    def reserve(self, x: int, y: int) -> bool:
        """
        Reserve an empty cell.

        Returns:
            bool: True if the cell was empty and is now reserved. Cells
            outside the grid or already non-empty are left alone.
        """
        if not self.in_bounds(x, y):
            return False
        if self.cells[y, x] != CellState.EMPTY:
            return False

        self.cells[y, x] = CellState.RESERVED
        return True

    def find_conflict(
        self, x: int, y: int, footprint: Tuple[int, int]
    ) -> Optional[str]:
        """
        Check whether a footprint can be placed with its origin at (x, y).

        Args:
            x, y: Origin cell (lowest x, lowest y corner of the footprint)
            footprint: (fx, fy) size in cells, already rotated

        Returns:
            None if the placement fits, otherwise OUT_OF_BOUNDS or OVERLAP
        """
        fx, fy = footprint

        # Check bounds
        if x < 0 or y < 0 or x + fx > self.width or y + fy > self.height:
            return OUT_OF_BOUNDS

        # Reserved and occupied cells both block
        target_region = self.cells[y : y + fy, x : x + fx]
        if not np.all(target_region == CellState.EMPTY):
            return OVERLAP

        return None

    def occupy(self, x: int, y: int, footprint: Tuple[int, int]) -> List[Tuple[int, int]]:
        """
        Mark every cell of a footprint occupied.

        The whole region is validated first, so either every covered cell
        changes state or none does.

        Returns:
            List of (x, y) cells that were occupied, in row-major order

        Raises:
            PlacementError: If the footprint does not fit
        """
        conflict = self.find_conflict(x, y, footprint)
        if conflict is not None:
            raise PlacementError((x, y), tuple(footprint), conflict)

        fx, fy = footprint
        self.cells[y : y + fy, x : x + fx] = CellState.OCCUPIED

        return [(cx, cy) for cy in range(y, y + fy) for cx in range(x, x + fx)]

    def iter_cells(self, state: Optional[CellState] = None) -> Iterator[Tuple[int, int]]:
        """
        Iterate cells in row-major order.

        The state is read as each cell is reached, so callers that place
        footprints during iteration see their own updates.

        Args:
            state: Only yield cells currently in this state
        """
        for y in range(self.height):
            for x in range(self.width):
                if state is None or self.cells[y, x] == state:
                    yield x, y

    def count(self, state: CellState) -> int:
        return int(np.count_nonzero(self.cells == state))

    def state_counts(self) -> Dict[str, int]:
        return {s.name.lower(): self.count(s) for s in CellState}

    def snapshot(self) -> np.ndarray:
        """Return a read-only copy of the cell array"""
        frozen = self.cells.copy()
        frozen.setflags(write=False)
        return frozen

    def to_dict(self) -> Dict[str, Any]:
        """Convert the grid to a serializable dictionary"""
        return {
            "width": self.width,
            "height": self.height,
            "cells": self.cells.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OccupancyGrid":
        """Create an OccupancyGrid from a dictionary"""
        grid = cls(width=data["width"], height=data["height"])
        cells = np.array(data["cells"], dtype=np.uint8)
        if cells.shape != grid.cells.shape:
            raise ValueError(
                f"Cell array shape {cells.shape} does not match "
                f"{grid.height}x{grid.width} grid"
            )
        grid.cells = cells
        return grid

    def __repr__(self) -> str:
        counts = self.state_counts()
        return (
            f"OccupancyGrid({self.width}x{self.height}, "
            f"empty={counts['empty']}, occupied={counts['occupied']}, "
            f"reserved={counts['reserved']})"
        )
