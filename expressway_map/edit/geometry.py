"""
Geometry Store - authoritative vertex list of the feature under edit.

The store only holds and validates coordinates. Redrawing is driven by
EditSession once the marker set has caught up with a mutation, and always
uses the full sequence rather than a patch.
"""

from typing import List, Sequence

from expressway_map.edit.constants import MIN_VERTICES
from expressway_map.errors import ConstraintViolation
from expressway_map.features import Coordinate, validate_coordinate


class GeometryStore:
    """Ordered [lon, lat] sequence with a minimum-length constraint."""

    def __init__(self, coordinates: Sequence[Sequence[float]]):
        self._coords: List[Coordinate] = [validate_coordinate(p) for p in coordinates]

    def __len__(self) -> int:
        return len(self._coords)

    def __getitem__(self, index: int) -> Coordinate:
        return list(self._coords[index])

    @property
    def coordinates(self) -> List[Coordinate]:
        return [list(p) for p in self._coords]

    def set_coordinate(self, index: int, point: Sequence[float]) -> None:
        """Replace the vertex at index in place."""
        self._coords[index] = validate_coordinate(point)

    def insert_coordinate(self, index: int, point: Sequence[float]) -> None:
        self._coords.insert(index, validate_coordinate(point))

    def remove_coordinate(self, index: int) -> None:
        """
        Remove the vertex at index.

        Raises:
            ConstraintViolation: the line is already at MIN_VERTICES points.
        """
        if len(self._coords) <= MIN_VERTICES:
            raise ConstraintViolation(
                f"A line needs at least {MIN_VERTICES} points; cannot remove more"
            )
        del self._coords[index]
