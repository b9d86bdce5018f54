"""
Edit and drawing sessions.

An EditSession owns one feature's in-progress edits: the GeometryStore,
the VertexMarkerSet built 1:1 from it, and the pending name. It is created
when a feature is selected and closed when edit mode ends; it never holds
state from two features.
"""

from typing import Callable, List, Optional, Sequence

from expressway_map.edit.constants import MIN_VERTICES
from expressway_map.edit.geometry import GeometryStore
from expressway_map.edit.insertion import nearest_segment_index
from expressway_map.edit.markers import VertexMarker, VertexMarkerSet
from expressway_map.errors import ConstraintViolation, MalformedInput
from expressway_map.features import DEFAULT_STATUS, Coordinate, Feature, validate_coordinate


class EditSession:
    """In-progress edits of a single feature."""

    def __init__(self, feature: Feature,
                 on_change: Optional[Callable[['EditSession'], None]] = None):
        self.feature = feature
        self.name = feature.name
        self.closed = False
        self._on_change = on_change

        coords = feature.editable_coordinates()
        if len(coords) < MIN_VERTICES:
            raise ConstraintViolation(f"Cannot edit a line with fewer than {MIN_VERTICES} points")

        self.store = GeometryStore(coords)
        self.markers = VertexMarkerSet(self.store)
        self.markers.build(self.store.coordinates)

    @property
    def coordinates(self) -> List[Coordinate]:
        return self.store.coordinates

    def drag(self, key: str, position: Sequence[float]) -> VertexMarker:
        marker = self._marker(key)
        self.markers.on_drag(marker, position)
        self._notify_change()
        return marker

    def insert(self, position: Sequence[float]) -> VertexMarker:
        """Split the segment nearest to position with a new vertex."""
        index = nearest_segment_index(position, self.store.coordinates)
        marker = self.markers.insert_at(index, position)
        self._notify_change()
        return marker

    def remove(self, key: str) -> None:
        """
        Remove the vertex behind a marker.

        Raises:
            ConstraintViolation: the line is already at its minimum length.
        """
        self.markers.on_remove_requested(self._marker(key))
        self._notify_change()

    def rename(self, name: str) -> None:
        name = (name or '').strip()
        if not name:
            raise MalformedInput("Name cannot be empty")
        self.name = name
        self._notify_change()

    def to_feature(self) -> Feature:
        """Snapshot of the feature with the edited geometry and name."""
        edited = self.feature.with_coordinates(self.store.coordinates)
        edited.name = self.name
        return edited

    def close(self) -> None:
        self.markers.release_all()
        self.closed = True

    def _marker(self, key: str) -> VertexMarker:
        marker = self.markers.find(key)
        if marker is None:
            raise KeyError(f"No vertex marker with key {key!r}")
        return marker

    def _notify_change(self):
        if self._on_change and not self.closed:
            self._on_change(self)


class DrawingSession:
    """Draft vertex list for a new expressway, built click by click."""

    def __init__(self, on_change: Optional[Callable[['DrawingSession'], None]] = None):
        self._points: List[Coordinate] = []
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> List[Coordinate]:
        return [list(p) for p in self._points]

    def add_point(self, point: Sequence[float]) -> None:
        self._points.append(validate_coordinate(point))
        if self._on_change:
            self._on_change(self)

    def to_feature(self, name: str, status: str = DEFAULT_STATUS) -> Feature:
        """
        Build a new feature from the draft.

        Raises:
            ConstraintViolation: fewer than MIN_VERTICES points drawn.
            MalformedInput: empty name.
        """
        if len(self._points) < MIN_VERTICES:
            raise ConstraintViolation(f"Draw at least {MIN_VERTICES} points before saving")
        name = (name or '').strip()
        if not name:
            raise MalformedInput("Name cannot be empty")
        feature = Feature(name=name, coordinates=self.points, status=status)
        feature.ensure_id()
        return feature
