"""
Nearest-segment insertion and line hit testing.

Distances are planar in lon/lat degrees, which is close enough to the
Web Mercator map for picking the right segment at city/province scale.
"""

import math
from typing import Sequence, Tuple

from expressway_map.edit.constants import TILE_SIZE

Point = Sequence[float]


def point_to_segment_distance(point: Point, seg_start: Point, seg_end: Point) -> Tuple[float, float]:
    """
    Distance from point to the segment seg_start-seg_end.

    Returns:
        (distance, t) where t in [0, 1] is the clamped projection parameter
        along the segment (0 at seg_start, 1 at seg_end).
    """
    px, py = point[0], point[1]
    x1, y1 = seg_start[0], seg_start[1]
    x2, y2 = seg_end[0], seg_end[1]
    dx, dy = x2 - x1, y2 - y1

    if dx == 0 and dy == 0:
        return math.hypot(px - x1, py - y1), 0.0

    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy)))
    closest_x, closest_y = x1 + t * dx, y1 + t * dy
    return math.hypot(px - closest_x, py - closest_y), t


def nearest_segment_index(point: Point, coordinates: Sequence[Point]) -> int:
    """
    Index at which a vertex for point should be inserted.

    Scans segments (i, i+1) left to right and returns i + 1 for the closest
    one. On exact ties the first segment wins. Falls back to 1 if no segment
    is strictly closer than infinity (e.g. NaN distances).
    """
    if len(coordinates) < 2:
        raise ValueError("Nearest-segment insertion needs at least 2 coordinates")

    best_index = 1
    best_dist = float('inf')
    for i in range(len(coordinates) - 1):
        dist, _ = point_to_segment_distance(point, coordinates[i], coordinates[i + 1])
        if dist < best_dist:
            best_dist = dist
            best_index = i + 1
    return best_index


def distance_to_line(point: Point, coordinates: Sequence[Point]) -> float:
    """Smallest distance from point to any segment (or the lone vertex) of a line."""
    if not coordinates:
        return float('inf')
    if len(coordinates) == 1:
        return math.hypot(point[0] - coordinates[0][0], point[1] - coordinates[0][1])
    return min(
        point_to_segment_distance(point, coordinates[i], coordinates[i + 1])[0]
        for i in range(len(coordinates) - 1)
    )


def pixel_tolerance_degrees(pixels: float, zoom: float) -> float:
    """Approximate width in degrees of `pixels` screen pixels at a map zoom level."""
    return pixels * 360.0 / (TILE_SIZE * 2 ** zoom)
