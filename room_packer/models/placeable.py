from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional, Sequence, Tuple
import math

import numpy as np

VALID_ROTATIONS = (0, 90, 180, 270)


class PlaceableDescriptor:
    """
    A piece that can be placed on the room grid (floor tile, interior
    object, clutter or filler).
    """

    def __init__(
        self,
        asset: str,
        footprint: Tuple[int, int] = (1, 1),
        weight: float = 1.0,
        rotations: Optional[Sequence[int]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a descriptor.

        Args:
            asset: Opaque asset reference, resolved by the host
            footprint: (fx, fy) size in grid cells before rotation
            weight: Relative selection weight (higher is more likely)
            rotations: Allowed yaw rotations in degrees, from 0/90/180/270.
                Order matters, since the rotation draw indexes into it.
            metadata: Additional information passed through to exports
        """
        if not asset:
            raise ValueError("Placeable asset reference must not be empty")

        fx, fy = (int(v) for v in footprint)
        if fx < 1 or fy < 1:
            raise ValueError(f"Footprint must be at least 1x1, got {fx}x{fy}")

        if weight < 0:
            raise ValueError(f"Placement weight must be non-negative, got {weight}")

        rotations = tuple(int(r) for r in (rotations if rotations is not None else (0,)))
        if not rotations:
            raise ValueError(f"Placeable '{asset}' needs at least one rotation")
        invalid = [r for r in rotations if r not in VALID_ROTATIONS]
        if invalid:
            raise ValueError(f"Unsupported rotations {invalid} for '{asset}'")

        self.asset = asset
        self.footprint = (fx, fy)
        self.weight = float(weight)
        self.rotations = rotations
        self.metadata = metadata or {}

    @property
    def descriptor_id(self) -> str:
        return self.asset

    def rotated_footprint(self, rotation: int) -> Tuple[int, int]:
        """Footprint after a yaw rotation; quarter turns swap the axes"""
        fx, fy = self.footprint
        if rotation in (90, 270):
            return fy, fx
        return fx, fy

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation"""
        data = {
            "asset": self.asset,
            "footprint": list(self.footprint),
            "weight": self.weight,
            "rotations": list(self.rotations),
        }
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaceableDescriptor":
        """Create a descriptor from dictionary representation"""
        return cls(
            asset=data["asset"],
            footprint=tuple(data.get("footprint", (1, 1))),
            weight=data.get("weight", 1.0),
            rotations=data.get("rotations"),
            metadata=data.get("metadata"),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, PlaceableDescriptor):
            return NotImplemented
        return (
            self.asset == other.asset
            and self.footprint == other.footprint
            and self.weight == other.weight
            and self.rotations == other.rotations
        )

    def __hash__(self) -> int:
        return hash((self.asset, self.footprint, self.weight, self.rotations))

    def __repr__(self) -> str:
        return (
            f"PlaceableDescriptor(asset={self.asset}, "
            f"footprint={self.footprint[0]}x{self.footprint[1]}, "
            f"weight={self.weight}, rotations={list(self.rotations)})"
        )


def pool_from_list(items: Optional[List[Dict[str, Any]]]) -> List[PlaceableDescriptor]:
    """Build an ordered pool from a list of descriptor dictionaries"""
    return [PlaceableDescriptor.from_dict(item) for item in items or []]


class PlacementSource(str, Enum):
    """Pass that emitted a placement"""

    FORCED = "forced"
    RANDOM = "random"
    FILLER = "filler"
    CLUTTER = "clutter"

    @property
    def layer(self) -> str:
        # Clutter sits on top of the floor and never claims cells
        return "clutter" if self is PlacementSource.CLUTTER else "floor"


@dataclass(frozen=True)
class WorldTransform:
    """
    World placement of an instance: footprint centre plus yaw about the
    vertical axis, in degrees.
    """

    location: Tuple[float, float, float]
    yaw: float = 0.0

    @classmethod
    def for_footprint(
        cls,
        origin_cell: Tuple[int, int],
        footprint: Tuple[int, int],
        cell_size: float,
        yaw: float = 0.0,
        grid_origin: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "WorldTransform":
        """Centre a footprint anchored at origin_cell in world space"""
        x, y = origin_cell
        fx, fy = footprint
        ox, oy, oz = grid_origin
        return cls(
            location=(
                ox + (x + fx / 2.0) * cell_size,
                oy + (y + fy / 2.0) * cell_size,
                oz,
            ),
            yaw=float(yaw),
        )

    def as_matrix(self) -> np.ndarray:
        """4x4 homogeneous transform (rotation about Z, then translation)"""
        theta = math.radians(self.yaw)
        c, s = math.cos(theta), math.sin(theta)
        matrix = np.identity(4)
        matrix[0, 0], matrix[0, 1] = c, -s
        matrix[1, 0], matrix[1, 1] = s, c
        matrix[:3, 3] = self.location
        return matrix

    def to_dict(self) -> Dict[str, Any]:
        return {"location": list(self.location), "yaw": self.yaw}


@dataclass(frozen=True)
class PlacedInstance:
    """One placement emitted to the sink"""

    descriptor_id: str
    origin: Tuple[int, int]
    footprint: Tuple[int, int]
    rotation: int
    transform: WorldTransform
    source: PlacementSource

    @property
    def layer(self) -> str:
        return self.source.layer

    def covered_cells(self) -> List[Tuple[int, int]]:
        """Cells under the footprint, row-major"""
        x, y = self.origin
        fx, fy = self.footprint
        return [(cx, cy) for cy in range(y, y + fy) for cx in range(x, x + fx)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "descriptor_id": self.descriptor_id,
            "origin": list(self.origin),
            "footprint": list(self.footprint),
            "rotation": self.rotation,
            "transform": self.transform.to_dict(),
            "source": self.source.value,
            "layer": self.layer,
        }
