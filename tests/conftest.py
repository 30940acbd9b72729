import matplotlib

matplotlib.use("Agg")

import pytest

from room_packer.core.placement_sink import RecordingSink
from room_packer.models.placeable import PlaceableDescriptor
from room_packer.models.room_config import FloorStyle, RoomConfig


class FakeStream:
    """
    Scripted stand-in for RandomStream.

    Floats and integers are served from separate queues; once a queue runs
    dry, floats return 0.0 and integers return lo.
    """

    def __init__(self, floats=None, ints=None):
        self.floats = list(floats or [])
        self.ints = list(ints or [])
        self.calls = []

    @property
    def draw_count(self):
        return len(self.calls)

    def draw_uniform_float(self):
        self.calls.append("float")
        return self.floats.pop(0) if self.floats else 0.0

    def draw_int_range(self, lo, hi):
        self.calls.append(("int", lo, hi))
        value = self.ints.pop(0) if self.ints else lo
        assert lo <= value <= hi
        return value


def make_style(tiles=None, edge=None, filler="floor_filler", clutter=None, chance=0.0):
    return FloorStyle(
        name="test_style",
        tile_pool=tiles or [],
        edge_pool=edge or [],
        filler=PlaceableDescriptor(filler) if filler else None,
        clutter_pool=clutter or [],
        clutter_chance=chance,
    )


def make_config(width=3, height=3, style=None, **kwargs):
    return RoomConfig(
        width=width,
        height=height,
        floor_style=style if style is not None else make_style(),
        name=kwargs.pop("name", "test_room"),
        **kwargs,
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fake_stream():
    return FakeStream()
