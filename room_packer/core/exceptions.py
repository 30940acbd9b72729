"""
Error kinds raised while generating a room layout.
"""

from typing import Optional, Tuple


class RoomPackerError(Exception):
    """Base class for all room generation errors"""


class ConfigurationMissing(RoomPackerError):
    """Grid dimensions or a required pool/style source is absent."""


class GenerationInProgress(RoomPackerError):
    """A regeneration was requested while another run is active."""


class AssetUnresolved(RoomPackerError):
    """A descriptor's asset reference could not be resolved."""

    def __init__(self, asset_id: str, cell: Optional[Tuple[int, int]] = None):
        self.asset_id = asset_id
        self.cell = cell
        where = f" at {cell}" if cell is not None else ""
        super().__init__(f"Asset '{asset_id}'{where} could not be resolved")


class PlacementError(RoomPackerError):
    """
    A footprint could not be placed.

    Attributes:
        cell: Origin cell of the attempted placement
        footprint: Post-rotation footprint (fx, fy)
        reason: "out_of_bounds" or "overlap"
    """

    def __init__(
        self,
        cell: Tuple[int, int],
        footprint: Tuple[int, int],
        reason: str,
    ):
        self.cell = cell
        self.footprint = footprint
        self.reason = reason
        super().__init__(
            f"Footprint {footprint[0]}x{footprint[1]} at {cell} rejected: {reason}"
        )


class PlacementRejected(PlacementError):
    """A forced placement failed its bounds or overlap check."""


class PlacementDeferred(PlacementError):
    """A random candidate did not fit; the cell is left for gap filling."""
