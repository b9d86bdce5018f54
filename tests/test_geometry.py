import pytest

from expressway_map.edit.geometry import GeometryStore
from expressway_map.errors import ConstraintViolation, MalformedInput


@pytest.fixture
def store():
    return GeometryStore([[105.0, 21.0], [106.0, 20.5], [107.0, 20.0], [108.0, 19.5]])


def test_set_coordinate_replaces_in_place(store):
    store.set_coordinate(1, [106.2, 20.7])

    assert len(store) == 4
    assert store[1] == [106.2, 20.7]
    assert store[0] == [105.0, 21.0]


def test_insert_coordinate_shifts_following_points(store):
    store.insert_coordinate(1, [105.5, 20.8])

    assert len(store) == 5
    assert store.coordinates[:3] == [[105.0, 21.0], [105.5, 20.8], [106.0, 20.5]]


@pytest.mark.parametrize("index", [0, 1, 2, 3])
def test_remove_reduces_length_by_one_and_keeps_order(store, index):
    before = store.coordinates

    store.remove_coordinate(index)

    expected = before[:index] + before[index + 1:]
    assert store.coordinates == expected


def test_remove_at_minimum_length_is_rejected():
    store = GeometryStore([[105.0, 21.0], [106.0, 20.5]])

    with pytest.raises(ConstraintViolation):
        store.remove_coordinate(0)

    assert store.coordinates == [[105.0, 21.0], [106.0, 20.5]]


def test_coordinates_are_copies(store):
    coords = store.coordinates
    coords[0][0] = 0.0
    assert store[0] == [105.0, 21.0]


def test_invalid_points_are_rejected(store):
    with pytest.raises(MalformedInput):
        store.set_coordinate(0, [200.0, 10.0])
    with pytest.raises(MalformedInput):
        store.insert_coordinate(0, [float('nan'), 10.0])
    assert len(store) == 4
