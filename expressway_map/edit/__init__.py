"""
Interactive geometry editor for expressway lines.

This package provides vertex editing of one feature at a time:
- GeometryStore: the authoritative vertex list of the edited line
- VertexMarkerSet: one draggable handle per vertex, kept index-aligned
- EditController: Idle / Drawing / Editing mode state machine
- PersistenceBridge: save / add through the feature service, then reload
- EditOverlay: Leaflet rendering of the editable line and handles
- edit_handlers: Event handlers for app.py integration

Usage:
    from expressway_map.edit import EditController, EditOverlay, PersistenceBridge
    from expressway_map.edit.handlers import setup_edit_handlers
"""

from expressway_map.edit.constants import (
    MIN_VERTICES,
    DIM_OPACITY,
    FULL_OPACITY,
    EXPRESSWAY_LAYER,
    LINE_HIT_TOLERANCE,
)
from expressway_map.edit.geometry import GeometryStore
from expressway_map.edit.markers import VertexMarker, VertexMarkerSet
from expressway_map.edit.insertion import nearest_segment_index, point_to_segment_distance
from expressway_map.edit.session import EditSession, DrawingSession
from expressway_map.edit.controller import EditController, Idle, Drawing, Editing
from expressway_map.edit.bridge import PersistenceBridge
from expressway_map.edit.overlay import EditOverlay
from expressway_map.edit.handlers import setup_edit_handlers

__all__ = [
    'GeometryStore',
    'VertexMarker',
    'VertexMarkerSet',
    'nearest_segment_index',
    'point_to_segment_distance',
    'EditSession',
    'DrawingSession',
    'EditController',
    'Idle',
    'Drawing',
    'Editing',
    'PersistenceBridge',
    'EditOverlay',
    'setup_edit_handlers',
    'MIN_VERTICES',
    'DIM_OPACITY',
    'FULL_OPACITY',
    'EXPRESSWAY_LAYER',
    'LINE_HIT_TOLERANCE',
]
