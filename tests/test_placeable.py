import numpy as np
import pytest

from room_packer.models.placeable import (
    PlaceableDescriptor,
    PlacedInstance,
    PlacementSource,
    WorldTransform,
    pool_from_list,
)


def test_defaults():
    descriptor = PlaceableDescriptor("floor_stone")
    assert descriptor.footprint == (1, 1)
    assert descriptor.weight == 1.0
    assert descriptor.rotations == (0,)
    assert descriptor.descriptor_id == "floor_stone"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"asset": ""},
        {"asset": "a", "footprint": (0, 1)},
        {"asset": "a", "weight": -1.0},
        {"asset": "a", "rotations": []},
        {"asset": "a", "rotations": [45]},
    ],
)
def test_invalid_descriptors(kwargs):
    with pytest.raises(ValueError):
        PlaceableDescriptor(**kwargs)


@pytest.mark.parametrize(
    "rotation,expected", [(0, (2, 1)), (90, (1, 2)), (180, (2, 1)), (270, (1, 2))]
)
def test_rotated_footprint(rotation, expected):
    assert PlaceableDescriptor("table", footprint=(2, 1)).rotated_footprint(rotation) == expected


def test_pool_from_list_keeps_order():
    descriptors = pool_from_list(
        [
            {"asset": "b", "weight": 2},
            {"asset": "a", "footprint": [2, 2], "rotations": [0, 90]},
        ]
    )
    assert [d.asset for d in descriptors] == ["b", "a"]
    assert descriptors[1].footprint == (2, 2)
    assert descriptors[1].rotations == (0, 90)
    assert pool_from_list(None) == []


def test_transform_centres_footprint():
    transform = WorldTransform.for_footprint(
        (1, 2), (2, 1), 100.0, yaw=90, grid_origin=(1000.0, 0.0, 50.0)
    )
    assert transform.location == (1200.0, 250.0, 50.0)
    assert transform.yaw == 90.0


def test_transform_matrix():
    matrix = WorldTransform((10.0, 20.0, 0.0), yaw=90.0).as_matrix()
    np.testing.assert_allclose(matrix[:3, 3], [10.0, 20.0, 0.0])
    np.testing.assert_allclose(matrix[:2, :2], [[0.0, -1.0], [1.0, 0.0]], atol=1e-12)


def test_instance_layers_and_cells():
    transform = WorldTransform((0.0, 0.0, 0.0))
    floor = PlacedInstance("a", (1, 1), (2, 1), 0, transform, PlacementSource.RANDOM)
    clutter = PlacedInstance("b", (1, 1), (1, 1), 0, transform, PlacementSource.CLUTTER)
    assert floor.layer == "floor"
    assert clutter.layer == "clutter"
    assert floor.covered_cells() == [(1, 1), (2, 1)]
    assert floor.to_dict()["source"] == "random"
