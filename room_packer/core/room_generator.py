"""
Room generator: runs the placement passes for one room grid.
The generator owns the occupancy grid and rebuilds it from scratch on every
regeneration request; placed instances go to the sink and are not kept.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from room_packer.core.asset_resolver import AssetResolver, CatalogAssetResolver
from room_packer.core.diagnostics import DiagnosticKind, GenerationReport
from room_packer.core.exceptions import ConfigurationMissing, GenerationInProgress
from room_packer.core.occupancy_grid import CellState, OccupancyGrid
from room_packer.core.passes import (
    ClutterPass,
    ForcedPlacementPass,
    GapFillPass,
    LayoutPass,
    PassContext,
    RandomizedPackingPass,
    ReservedCellsPass,
)
from room_packer.core.placement_sink import InstanceBatchSink, PlacementSink
from room_packer.core.random_stream import RandomStream
from room_packer.models.room_config import RoomConfig

logger = logging.getLogger(__name__)


class GenerationPhase(str, Enum):
    IDLE = "idle"
    RESETTING = "resetting"
    RESERVING_CELLS = "reserving_cells"
    PLACING_FORCED = "placing_forced"
    PACKING_RANDOM = "packing_random"
    FILLING_GAPS = "filling_gaps"
    SCATTERING_CLUTTER = "scattering_clutter"
    FINALIZING = "finalizing"


class RoomGenerator:
    """
    Runs reserved cells, forced placement, randomized packing, gap filling
    and clutter passes in strict order for one room.

    Runs are synchronous and must not overlap; a second trigger while a run
    is active raises GenerationInProgress.
    """

    def __init__(
        self,
        config: RoomConfig,
        sink: Optional[PlacementSink] = None,
        resolver: Optional[AssetResolver] = None,
    ):
        """
        Initialize the generator.

        Args:
            config: Room configuration
            sink: Receiver for placements (defaults to per-asset batches)
            resolver: Asset resolver (defaults to the config's asset catalog)
        """
        self.config = config
        self.sink = sink or InstanceBatchSink(cell_size=config.cell_size)
        self.resolver = resolver

        self.phase = GenerationPhase.IDLE
        self.grid: Optional[OccupancyGrid] = None
        self.last_report: Optional[GenerationReport] = None
        self.grid_seed: Optional[int] = None

        self.passes: List[Tuple[GenerationPhase, LayoutPass]] = [
            (GenerationPhase.RESERVING_CELLS, ReservedCellsPass()),
            (GenerationPhase.PLACING_FORCED, ForcedPlacementPass()),
            (GenerationPhase.PACKING_RANDOM, RandomizedPackingPass()),
            (GenerationPhase.FILLING_GAPS, GapFillPass()),
            (GenerationPhase.SCATTERING_CLUTTER, ClutterPass()),
        ]

    def update_config(self, config: RoomConfig):
        """Swap the configuration used by the next run"""
        if self.phase != GenerationPhase.IDLE:
            raise GenerationInProgress(f"Cannot change configuration during {self.phase.value}")
        self.config = config

    def validate_configuration(self):
        """
        Check that the configuration can drive a run.

        Raises:
            ConfigurationMissing: If grid size, floor style or filler is absent
        """
        missing = self.config.missing_fields()
        if missing:
            raise ConfigurationMissing(f"missing {', '.join(missing)}")

    def trigger_regeneration(self, seed: Optional[int] = None) -> GenerationReport:
        """
        Regenerate the room from scratch.

        Args:
            seed: Overrides the configured seed for this run

        Returns:
            GenerationReport: Counts and diagnostics for the run. If the
            configuration is incomplete the report has completed=False and
            the previous grid is left as it was.

        Raises:
            GenerationInProgress: If called while a run is active
        """
        if self.phase != GenerationPhase.IDLE:
            raise GenerationInProgress(
                f"Room '{self.config.name}' is already generating ({self.phase.value})"
            )

        seed = self.config.seed if seed is None else int(seed)
        report = GenerationReport(room=self.config.name, seed=seed)

        try:
            self.validate_configuration()
        except ConfigurationMissing as e:
            report.warn(
                DiagnosticKind.CONFIGURATION_MISSING,
                f"Room '{self.config.name}': {e}. Cannot generate.",
            )
            self.last_report = report
            return report

        try:
            self._run(seed, report)
        finally:
            self.phase = GenerationPhase.IDLE

        self.last_report = report
        logger.info(
            f"Generated room '{self.config.name}' (seed {seed}): "
            f"{report.total_placements} placements, {report.deferred} deferred, "
            f"{len(report.warnings())} warnings"
        )
        return report

    def _run(self, seed: int, report: GenerationReport):
        # Resetting
        self.phase = GenerationPhase.RESETTING
        self.grid = OccupancyGrid(self.config.width, self.config.height)
        self.grid_seed = seed
        stream = RandomStream(seed)
        resolver = self.resolver or CatalogAssetResolver(self.config.assets)
        self.sink.begin()

        context = PassContext(
            config=self.config,
            grid=self.grid,
            stream=stream,
            sink=self.sink,
            resolver=resolver,
            report=report,
        )

        for phase, layout_pass in self.passes:
            self.phase = phase
            layout_pass.run(context)

        self.phase = GenerationPhase.FINALIZING
        self.sink.finalize()

        report.draws = stream.draw_count
        report.completed = True

    def describe_grid_state(self) -> Dict[str, Any]:
        """
        Read-only view of the grid for visualization layers.

        Returns:
            Dictionary with the grid size, current phase, the cell-state
            array (read-only numpy array of CellState values, indexed
            [y, x]) and per-state counts. "cells" is None before the first
            completed reset.
        """
        state = {
            "room": self.config.name,
            "width": self.config.width,
            "height": self.config.height,
            "cell_size": self.config.cell_size,
            "phase": self.phase.value,
            "seed": self.grid_seed,
            "cells": None,
            "counts": {},
        }

        if self.grid is not None:
            state["width"] = self.grid.width
            state["height"] = self.grid.height
            state["cells"] = self.grid.snapshot()
            state["counts"] = self.grid.state_counts()

        return state

    def is_fully_covered(self) -> bool:
        """True when the last run left no empty cells"""
        return self.grid is not None and self.grid.count(CellState.EMPTY) == 0
