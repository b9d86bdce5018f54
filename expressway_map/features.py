"""
Expressway feature model and GeoJSON conversion.

Wire/storage format:
{
    "type": "Feature",
    "properties": {"id": str, "name": str, "status": str, "length_km": float?},
    "geometry": {"type": "LineString" | "MultiLineString", "coordinates": [...]}
}

For MultiLineString only the first sub-line is editable; the remaining
sub-lines are carried through unchanged.
"""

import copy
import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from expressway_map.errors import MalformedInput

logger = logging.getLogger(__name__)

Coordinate = List[float]

STATUSES = ('operational', 'construction', 'planning')
DEFAULT_STATUS = 'planning'
SUPPORTED_GEOMETRIES = ('LineString', 'MultiLineString')

EARTH_RADIUS_KM = 6371.0088

# Properties owned by the model; everything else is preserved as-is.
_OWN_PROPERTIES = ('id', 'name', 'status', 'length_km')


def validate_coordinate(point: Sequence[Any]) -> Coordinate:
    """Return point as a [lon, lat] float pair, or raise MalformedInput."""
    if isinstance(point, (str, bytes)) or not isinstance(point, Sequence) or len(point) < 2:
        raise MalformedInput(f"Coordinate must be a [lon, lat] pair, got {point!r}")

    try:
        lon, lat = float(point[0]), float(point[1])
    except (TypeError, ValueError):
        raise MalformedInput(f"Coordinate values must be numbers, got {point!r}")

    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise MalformedInput(f"Coordinate values must be finite, got {point!r}")
    if not -180.0 <= lon <= 180.0:
        raise MalformedInput(f"Longitude {lon} outside [-180, 180]")
    if not -90.0 <= lat <= 90.0:
        raise MalformedInput(f"Latitude {lat} outside [-90, 90]")
    return [lon, lat]


def validate_line(coords: Any, min_points: int = 2) -> List[Coordinate]:
    if not isinstance(coords, list):
        raise MalformedInput("Line coordinates must be a list")
    line = [validate_coordinate(p) for p in coords]
    if len(line) < min_points:
        raise MalformedInput(f"A line needs at least {min_points} points, got {len(line)}")
    return line


def line_length_km(coords: Sequence[Sequence[float]]) -> float:
    """Great-circle length of a polyline in kilometres (haversine)."""
    total = 0.0
    for (lon1, lat1), (lon2, lat2) in zip(coords, coords[1:]):
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi = phi2 - phi1
        dlmb = math.radians(lon2 - lon1)
        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
        total += 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
    return total


def new_feature_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Feature:
    """One expressway: identity, metadata and an editable line."""
    name: str
    coordinates: List[Coordinate]
    status: str = DEFAULT_STATUS
    id: Optional[str] = None
    geometry_type: str = 'LineString'
    extra_lines: List[List[Coordinate]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_geojson(cls, data: Any) -> 'Feature':
        """
        Parse a GeoJSON feature dict.

        Raises:
            MalformedInput: missing properties/geometry/name, unsupported
                geometry type or invalid coordinates.
        """
        if not isinstance(data, dict):
            raise MalformedInput("Feature must be an object")

        props = data.get('properties')
        if not isinstance(props, dict):
            raise MalformedInput("Feature is missing 'properties'")

        name = props.get('name')
        if not isinstance(name, str) or not name.strip():
            raise MalformedInput("Feature is missing a 'name'")

        geometry = data.get('geometry')
        if not isinstance(geometry, dict):
            raise MalformedInput("Feature is missing 'geometry'")

        geom_type = geometry.get('type')
        if geom_type not in SUPPORTED_GEOMETRIES:
            raise MalformedInput(f"Unsupported geometry type: {geom_type!r}")

        raw = geometry.get('coordinates')
        if geom_type == 'LineString':
            coords = validate_line(raw)
            extra = []
        else:
            if not isinstance(raw, list) or not raw:
                raise MalformedInput("MultiLineString needs at least one line")
            coords = validate_line(raw[0])
            extra = [validate_line(line, min_points=0) for line in raw[1:]]

        raw_id = props.get('id')
        status = props.get('status') or DEFAULT_STATUS

        return cls(
            name=name,
            coordinates=coords,
            status=str(status),
            id=str(raw_id) if raw_id not in (None, '') else None,
            geometry_type=geom_type,
            extra_lines=extra,
            properties={k: v for k, v in props.items() if k not in _OWN_PROPERTIES},
        )

    def editable_coordinates(self) -> List[Coordinate]:
        """Copy of the line that edit mode operates on."""
        return [list(p) for p in self.coordinates]

    def with_coordinates(self, coords: Sequence[Sequence[float]]) -> 'Feature':
        """Return a copy of this feature with its editable line replaced."""
        clone = copy.deepcopy(self)
        clone.coordinates = [list(p) for p in coords]
        return clone

    def ensure_id(self) -> str:
        if not self.id:
            self.id = new_feature_id()
        return self.id

    @property
    def length_km(self) -> float:
        return line_length_km(self.coordinates) + sum(line_length_km(l) for l in self.extra_lines)

    def to_geojson(self) -> Dict[str, Any]:
        props = dict(self.properties)
        if self.id:
            props['id'] = self.id
        props['name'] = self.name
        props['status'] = self.status
        props['length_km'] = round(self.length_km, 2)

        if self.geometry_type == 'MultiLineString':
            coordinates: list = [self.editable_coordinates()] + copy.deepcopy(self.extra_lines)
        else:
            coordinates = self.editable_coordinates()

        return {
            'type': 'Feature',
            'properties': props,
            'geometry': {'type': self.geometry_type, 'coordinates': coordinates},
        }


def feature_collection(features: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    return {'type': 'FeatureCollection', 'features': list(features)}


def parse_collection(collection: Dict[str, Any]) -> List[Feature]:
    """
    Parse every well-formed feature of a FeatureCollection.

    Malformed entries are skipped with a warning so one bad record does not
    hide the whole layer.
    """
    parsed = []
    for raw in collection.get('features', []):
        try:
            parsed.append(Feature.from_geojson(raw))
        except MalformedInput as e:
            logger.warning(f"Skipping malformed feature: {e}")
    return parsed
