"""
Placement sinks receive every instance the generator emits.
The generator never owns render resources; a sink decides how instances
are batched, drawn or stored.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Dict, List, Tuple, Any, Optional

import numpy as np

from room_packer.models.placeable import PlacedInstance, WorldTransform


class PlacementSink(ABC):
    """
    Receiver for placement events.
    """

    def emit(self, instance: PlacedInstance):
        """
        Hook called by the generator for each successful placement.
        Subclasses that need the full instance record override this.
        """
        self.place(instance.descriptor_id, instance.footprint, instance.transform)

    @abstractmethod
    def place(
        self,
        descriptor_id: str,
        footprint: Tuple[int, int],
        world_transform: WorldTransform,
    ):
        """Receive one placement"""
        pass

    def begin(self):
        """Called when a regeneration starts, before any placement"""
        pass

    @abstractmethod
    def finalize(self):
        """Called once after all passes complete"""
        pass


class RecordingSink(PlacementSink):
    """
    Keeps every placement in order.

    `placed` holds one (descriptor_id, footprint, transform) record per
    place() call; `instances` additionally keeps the full records of
    placements that arrived through emit().
    """

    def __init__(self):
        self.instances: List[PlacedInstance] = []
        self.placed: List[Tuple[str, Tuple[int, int], WorldTransform]] = []
        self.finalize_calls = 0

    def begin(self):
        self.instances = []
        self.placed = []

    def emit(self, instance: PlacedInstance):
        self.instances.append(instance)
        super().emit(instance)

    def place(self, descriptor_id, footprint, world_transform):
        self.placed.append((descriptor_id, tuple(footprint), world_transform))

    def finalize(self):
        self.finalize_calls += 1

    def floor_instances(self) -> List[PlacedInstance]:
        return [i for i in self.instances if i.layer == "floor"]


class InstanceBatch:
    """
    All instances of one asset, with cached world bounds.
    """

    def __init__(self, descriptor_id: str):
        self.descriptor_id = descriptor_id
        self.transforms: List[WorldTransform] = []
        self.footprints: List[Tuple[int, int]] = []
        self.bounds: Optional[Tuple[np.ndarray, np.ndarray]] = None

    def add(self, footprint: Tuple[int, int], transform: WorldTransform):
        self.footprints.append(footprint)
        self.transforms.append(transform)
        # Stale until the next recompute
        self.bounds = None

    def clear(self):
        self.transforms = []
        self.footprints = []
        self.bounds = None

    def recompute_bounds(self, cell_size: float):
        """
        Recompute the axis-aligned XY bounds covering every footprint.

        Args:
            cell_size: World units per cell, used to size the footprints
        """
        if not self.transforms:
            self.bounds = None
            return

        centers = np.array([t.location for t in self.transforms], dtype=float)
        half_extents = np.zeros_like(centers)
        half_extents[:, :2] = np.array(self.footprints, dtype=float) * cell_size / 2.0

        self.bounds = (
            (centers - half_extents).min(axis=0),
            (centers + half_extents).max(axis=0),
        )

    def __len__(self) -> int:
        return len(self.transforms)


class InstanceBatchSink(PlacementSink):
    """
    Groups placements into one batch per asset, the way instanced meshes
    are batched for rendering.
    """

    def __init__(self, cell_size: float = 100.0):
        self.cell_size = cell_size
        self.batches: "OrderedDict[str, InstanceBatch]" = OrderedDict()
        self.finalized = False

    def begin(self):
        # Batches survive between runs; their instances do not
        for batch in self.batches.values():
            batch.clear()
        self.finalized = False

    def get_or_create_batch(self, descriptor_id: str) -> InstanceBatch:
        batch = self.batches.get(descriptor_id)
        if batch is None:
            batch = InstanceBatch(descriptor_id)
            self.batches[descriptor_id] = batch
        return batch

    def place(self, descriptor_id, footprint, world_transform):
        self.get_or_create_batch(descriptor_id).add(tuple(footprint), world_transform)

    def finalize(self):
        for batch in self.batches.values():
            batch.recompute_bounds(self.cell_size)
        self.finalized = True

    def instance_counts(self) -> Dict[str, int]:
        return {name: len(batch) for name, batch in self.batches.items() if len(batch)}

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for name, batch in self.batches.items():
            bounds = None
            if batch.bounds is not None:
                bounds = [batch.bounds[0].tolist(), batch.bounds[1].tolist()]
            result[name] = {
                "count": len(batch),
                "bounds": bounds,
                "transforms": [t.to_dict() for t in batch.transforms],
            }
        return result
