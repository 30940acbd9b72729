"""
Placement passes for room generation.

Each pass reads the cumulative occupancy left by the passes before it, so
they run strictly in order: reserved cells, forced placements, randomized
packing, gap filling, clutter.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from room_packer.core.asset_resolver import AssetResolver
from room_packer.core.diagnostics import DiagnosticKind, GenerationReport
from room_packer.core.exceptions import (
    AssetUnresolved,
    PlacementDeferred,
    PlacementRejected,
)
from room_packer.core.occupancy_grid import CellState, OccupancyGrid
from room_packer.core.placement_sink import PlacementSink
from room_packer.core.random_stream import RandomStream
from room_packer.core.selection import select_weighted
from room_packer.models.placeable import (
    PlaceableDescriptor,
    PlacedInstance,
    PlacementSource,
    WorldTransform,
)
from room_packer.models.room_config import RoomConfig

logger = logging.getLogger(__name__)

UNIT_FOOTPRINT = (1, 1)


@dataclass
class PassContext:
    """
    Everything a pass reads or mutates during one run.

    Attributes:
        config: Room configuration (read-only during the run)
        grid: Occupancy grid shared by all passes
        stream: Random stream shared by all passes
        sink: Receiver for emitted placements
        resolver: Asset resolver
        report: Run report collecting counts and diagnostics
        floor_tiles: Cells covered by a 1x1 random tile or filler, the
            only cells clutter may land on
    """

    config: RoomConfig
    grid: OccupancyGrid
    stream: RandomStream
    sink: PlacementSink
    resolver: AssetResolver
    report: GenerationReport
    floor_tiles: Set[Tuple[int, int]] = field(default_factory=set)


class LayoutPass(ABC):
    """
    Base class for placement passes.
    """

    name = "pass"

    @abstractmethod
    def run(self, context: PassContext):
        """Execute this pass against the context"""
        pass

    @staticmethod
    def draw_rotation(descriptor: PlaceableDescriptor, stream: RandomStream) -> int:
        """Pick one allowed rotation uniformly (one integer draw)"""
        index = stream.draw_int_range(0, len(descriptor.rotations) - 1)
        return descriptor.rotations[index]

    @staticmethod
    def commit(
        context: PassContext,
        cell: Tuple[int, int],
        descriptor_id: str,
        rotation: int,
        footprint: Tuple[int, int],
        source: PlacementSource,
    ) -> PlacedInstance:
        """
        Occupy the footprint and emit one instance.

        OccupancyGrid.occupy validates the whole footprint before writing,
        so a failure here leaves the grid untouched and emits nothing.
        """
        context.grid.occupy(cell[0], cell[1], footprint)
        if tuple(footprint) == UNIT_FOOTPRINT and source is not PlacementSource.FORCED:
            context.floor_tiles.add(tuple(cell))
        return LayoutPass.emit(context, cell, descriptor_id, rotation, footprint, source)

    @staticmethod
    def emit(
        context: PassContext,
        cell: Tuple[int, int],
        descriptor_id: str,
        rotation: int,
        footprint: Tuple[int, int],
        source: PlacementSource,
    ) -> PlacedInstance:
        transform = WorldTransform.for_footprint(
            cell,
            footprint,
            context.config.cell_size,
            yaw=rotation,
            grid_origin=context.config.origin,
        )
        instance = PlacedInstance(
            descriptor_id=descriptor_id,
            origin=tuple(cell),
            footprint=tuple(footprint),
            rotation=rotation,
            transform=transform,
            source=source,
        )
        context.sink.emit(instance)
        context.report.count_placement(source.value)
        return instance

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ReservedCellsPass(LayoutPass):
    """Marks designer-excluded cells before any placement"""

    name = "reserved_cells"

    def run(self, context: PassContext):
        grid = context.grid
        for x, y in context.config.reserved_cells:
            if not grid.in_bounds(x, y):
                logger.debug(f"Ignoring reserved cell ({x}, {y}) outside the grid")
                continue
            grid.reserve(x, y)


class ForcedPlacementPass(LayoutPass):
    """
    Places designer-pinned pieces at exact cells.

    A failed entry is reported as a warning and skipped; the rest of the
    entries still run.
    """

    name = "forced_placement"

    @staticmethod
    def canonical_order(
        forced_placements: Dict[Tuple[int, int], PlaceableDescriptor]
    ) -> List[Tuple[Tuple[int, int], PlaceableDescriptor]]:
        """Sort entries row-major (by y, then x) whatever the mapping order"""
        return sorted(forced_placements.items(), key=lambda item: (item[0][1], item[0][0]))

    def run(self, context: PassContext):
        for cell, descriptor in self.canonical_order(context.config.forced_placements):
            try:
                self.place_forced(context, cell, descriptor)
            except AssetUnresolved as e:
                context.report.warn(
                    DiagnosticKind.ASSET_UNRESOLVED,
                    f"Forced placement at {cell} skipped: {e}",
                    cell,
                )
            except PlacementRejected as e:
                context.report.warn(
                    DiagnosticKind.PLACEMENT_REJECTED,
                    f"Forced placement of '{descriptor.asset}' failed: {e}",
                    cell,
                )

    def place_forced(
        self,
        context: PassContext,
        cell: Tuple[int, int],
        descriptor: PlaceableDescriptor,
    ) -> PlacedInstance:
        """
        Place a single forced entry.

        Raises:
            AssetUnresolved: Asset missing; no draw is consumed
            PlacementRejected: Out of bounds or overlapping a non-empty cell
        """
        context.resolver.require(descriptor.asset, cell)

        rotation = self.draw_rotation(descriptor, context.stream)
        footprint = descriptor.rotated_footprint(rotation)

        conflict = context.grid.find_conflict(cell[0], cell[1], footprint)
        if conflict is not None:
            raise PlacementRejected(cell, footprint, conflict)

        return self.commit(
            context, cell, descriptor.asset, rotation, footprint, PlacementSource.FORCED
        )


class RandomizedPackingPass(LayoutPass):
    """
    Scans the grid row-major and packs weighted picks into empty cells.

    Cells on the perimeter draw from the edge pool when it has entries.
    A pick that does not fit leaves its cell empty for the gap filler; no
    second candidate is tried.
    """

    name = "randomized_packing"

    @staticmethod
    def active_pool(
        context: PassContext, x: int, y: int
    ) -> List[PlaceableDescriptor]:
        style = context.config.floor_style
        if style.edge_pool and context.grid.is_perimeter(x, y):
            return style.edge_pool
        return style.tile_pool

    def run(self, context: PassContext):
        # iter_cells re-reads state per cell, so footprints placed earlier
        # in the scan are skipped without jumping ahead
        for x, y in context.grid.iter_cells(CellState.EMPTY):
            descriptor = select_weighted(self.active_pool(context, x, y), context.stream)
            if descriptor is None:
                continue

            try:
                self.place_random(context, (x, y), descriptor)
            except AssetUnresolved as e:
                context.report.defer(f"Random placement deferred: {e}", (x, y))
            except PlacementDeferred as e:
                context.report.defer(f"Random placement deferred: {e}", (x, y))

    def place_random(
        self,
        context: PassContext,
        cell: Tuple[int, int],
        descriptor: PlaceableDescriptor,
    ) -> PlacedInstance:
        """
        Try one selected descriptor at a scan cell.

        Raises:
            AssetUnresolved: Asset missing; the rotation draw is skipped
            PlacementDeferred: Out of bounds or overlapping
        """
        context.resolver.require(descriptor.asset, cell)

        rotation = self.draw_rotation(descriptor, context.stream)
        footprint = descriptor.rotated_footprint(rotation)

        conflict = context.grid.find_conflict(cell[0], cell[1], footprint)
        if conflict is not None:
            raise PlacementDeferred(cell, footprint, conflict)

        return self.commit(
            context, cell, descriptor.asset, rotation, footprint, PlacementSource.RANDOM
        )


class GapFillPass(LayoutPass):
    """
    Covers every cell still empty with the 1x1 filler at rotation 0.
    Consumes no random draws.
    """

    name = "gap_fill"

    def run(self, context: PassContext):
        filler = context.config.floor_style.filler

        try:
            context.resolver.require(filler.asset)
        except AssetUnresolved as e:
            context.report.warn(
                DiagnosticKind.ASSET_UNRESOLVED, f"Gap filling skipped: {e}"
            )
            return

        for x, y in context.grid.iter_cells(CellState.EMPTY):
            self.commit(
                context, (x, y), filler.asset, 0, UNIT_FOOTPRINT, PlacementSource.FILLER
            )


class ClutterPass(LayoutPass):
    """
    Scatters small details on top of plain floor tiles.

    Only cells under a 1x1 random tile or filler take clutter; forced pieces
    and larger objects stay bare and consume no draws. Clutter is emitted
    on its own layer and never changes cell state. With no clutter pool or
    a zero chance the pass draws nothing.
    """

    name = "clutter"

    def run(self, context: PassContext):
        style = context.config.floor_style
        if not style.clutter_pool or style.clutter_chance <= 0.0:
            return

        stream = context.stream
        for x, y in context.grid.iter_cells(CellState.OCCUPIED):
            if (x, y) not in context.floor_tiles:
                continue
            if stream.draw_uniform_float() >= style.clutter_chance:
                continue

            descriptor = select_weighted(style.clutter_pool, stream)

            try:
                context.resolver.require(descriptor.asset, (x, y))
            except AssetUnresolved as e:
                context.report.defer(f"Clutter skipped: {e}", (x, y))
                continue

            rotation = self.draw_rotation(descriptor, stream)
            self.emit(
                context, (x, y), descriptor.asset, rotation, UNIT_FOOTPRINT, PlacementSource.CLUTTER
            )
