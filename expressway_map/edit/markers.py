"""
Vertex Marker Set - one interactive handle per vertex of the edited line.

Markers carry a cached index into the GeometryStore. The index is only
ever rewritten by _reindex(), which runs after every structural change
(insert/remove), so markers[i].index == i always holds between calls.
"""

import uuid
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from expressway_map.edit.geometry import GeometryStore
from expressway_map.features import Coordinate


@dataclass
class VertexMarker:
    """A draggable handle bound to one coordinate index."""
    key: str
    index: int
    position: Coordinate
    released: bool = False

    def to_dict(self) -> dict:
        return {'key': self.key, 'index': self.index, 'position': list(self.position)}


class MarkerDrift(RuntimeError):
    """Markers and store disagree on length or indices."""


def _new_key() -> str:
    return uuid.uuid4().hex[:12]


class VertexMarkerSet:
    """Ordered marker collection kept 1:1 with a GeometryStore."""

    def __init__(self, store: GeometryStore):
        self._store = store
        self._markers: List[VertexMarker] = []

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[VertexMarker]:
        return iter(self._markers)

    def __getitem__(self, index: int) -> VertexMarker:
        return self._markers[index]

    @property
    def markers(self) -> List[VertexMarker]:
        return list(self._markers)

    def build(self, coordinates: Sequence[Sequence[float]]) -> List[VertexMarker]:
        """Create one marker per coordinate, tagged 0..n-1. Replaces existing markers."""
        self.release_all()
        self._markers = [
            VertexMarker(key=_new_key(), index=i, position=list(p))
            for i, p in enumerate(coordinates)
        ]
        return self.markers

    def find(self, key: str) -> Optional[VertexMarker]:
        for marker in self._markers:
            if marker.key == key:
                return marker
        return None

    def on_drag(self, marker: VertexMarker, position: Sequence[float]) -> None:
        """Move one vertex. No other marker's index changes."""
        self._store.set_coordinate(marker.index, position)
        marker.position = self._store[marker.index]

    def on_remove_requested(self, marker: VertexMarker) -> None:
        """
        Remove a vertex and its marker.

        The store is asked first; if it refuses (ConstraintViolation) the
        exception propagates and the marker set is left untouched.
        """
        self._store.remove_coordinate(marker.index)
        del self._markers[marker.index]
        marker.released = True
        self._reindex()

    def insert_at(self, index: int, position: Sequence[float]) -> VertexMarker:
        """Insert a vertex into the store and a marker into the set at index."""
        self._store.insert_coordinate(index, position)
        marker = VertexMarker(key=_new_key(), index=index, position=self._store[index])
        self._markers.insert(index, marker)
        self._reindex()
        return marker

    def release_all(self) -> None:
        for marker in self._markers:
            marker.released = True
        self._markers = []

    def check_invariants(self) -> None:
        """Raise MarkerDrift if markers and store have drifted apart."""
        if len(self._markers) != len(self._store):
            raise MarkerDrift(f"{len(self._markers)} markers for {len(self._store)} coordinates")
        for i, marker in enumerate(self._markers):
            if marker.index != i:
                raise MarkerDrift(f"marker {marker.key} holds index {marker.index} at position {i}")

    def _reindex(self):
        for i, marker in enumerate(self._markers):
            marker.index = i
