from typing import Optional, Sequence

from room_packer.core.random_stream import RandomStream
from room_packer.models.placeable import PlaceableDescriptor


def select_weighted(
    pool: Sequence[PlaceableDescriptor], stream: RandomStream
) -> Optional[PlaceableDescriptor]:
    """
    Pick one descriptor with probability proportional to its weight.

    Consumes exactly one draw from the stream for a non-empty pool,
    whichever branch is taken, and none for an empty pool.

    Args:
        pool: Ordered candidates; order decides ties and the overrun fallback
        stream: Random stream to draw from

    Returns:
        The chosen descriptor, or None if the pool is empty
    """
    if not pool:
        return None

    total_weight = sum(descriptor.weight for descriptor in pool)

    # No usable weights, fall back to a uniform pick
    if total_weight <= 0.0:
        return pool[stream.draw_int_range(0, len(pool) - 1)]

    target = stream.draw_uniform_float() * total_weight

    running = 0.0
    for descriptor in pool:
        running += descriptor.weight
        if target <= running:
            return descriptor

    # Rounding can leave the running sum just short of the target
    return pool[-1]
