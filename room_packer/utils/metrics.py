"""
Evaluation metrics for generated room layouts.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from room_packer.core.occupancy_grid import CellState
from room_packer.models.placeable import PlacedInstance


class LayoutMetrics:
    """
    Class for evaluating a generated room.
    """

    def __init__(self, grid_state: Dict[str, Any], placements: List[PlacedInstance]):
        """
        Initialize with a grid snapshot and the recorded placements.

        Args:
            grid_state: Output of RoomGenerator.describe_grid_state()
            placements: Instances recorded during the run, in emission order
        """
        self.grid_state = grid_state
        self.cells = np.asarray(grid_state["cells"])
        self.width = grid_state["width"]
        self.height = grid_state["height"]
        self.placements = placements

    def _floor_placements(self) -> List[PlacedInstance]:
        return [p for p in self.placements if p.layer == "floor"]

    def coverage_map(self) -> np.ndarray:
        """
        Count how many floor footprints cover each cell.

        Returns:
            np.ndarray: (height, width) array of cover counts
        """
        cover = np.zeros((self.height, self.width), dtype=int)
        for instance in self._floor_placements():
            x, y = instance.origin
            fx, fy = instance.footprint
            cover[y : y + fy, x : x + fx] += 1
        return cover

    def overlapping_cells(self) -> List[Tuple[int, int]]:
        """Cells covered by more than one floor footprint"""
        ys, xs = np.nonzero(self.coverage_map() > 1)
        return [(int(x), int(y)) for x, y in zip(xs, ys)]

    def coverage_ratio(self) -> float:
        """
        Share of non-reserved cells that ended up occupied.

        Returns:
            float: Coverage ratio (0.0 to 1.0)
        """
        placeable = np.count_nonzero(self.cells != CellState.RESERVED)
        if placeable == 0:
            return 0.0
        return np.count_nonzero(self.cells == CellState.OCCUPIED) / placeable

    def state_counts(self) -> Dict[str, int]:
        return {s.name.lower(): int(np.count_nonzero(self.cells == s)) for s in CellState}

    def placements_by_source(self) -> Dict[str, int]:
        return dict(Counter(p.source.value for p in self.placements))

    def placements_by_asset(self) -> Dict[str, int]:
        return dict(Counter(p.descriptor_id for p in self.placements))

    def rotation_histogram(self, asset: Optional[str] = None) -> Dict[int, int]:
        """Number of placements per rotation, optionally for one asset"""
        return dict(
            Counter(
                p.rotation
                for p in self.placements
                if asset is None or p.descriptor_id == asset
            )
        )

    def evaluate_all(self) -> Dict[str, Any]:
        """
        Evaluate all metrics.

        Returns:
            Dict: Metric name to value
        """
        return {
            "coverage_ratio": float(self.coverage_ratio()),
            "state_counts": self.state_counts(),
            "placements_by_source": self.placements_by_source(),
            "placements_by_asset": self.placements_by_asset(),
            "overlapping_cells": [list(c) for c in self.overlapping_cells()],
        }
