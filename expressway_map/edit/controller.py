"""
Edit Controller - single source of truth for the map's interaction mode.

The mode is a tagged value: Idle, Drawing(session) or Editing(session).
Only one can be active, so edit mode and drawing mode exclude each other
by construction. The controller coordinates between:
- Pointer events from the map (clicks, vertex drags, vertex removals)
- The static map display (dimming the expressway layer while editing)
- The edit overlay (editable polyline, vertex handles, drawing draft)
- The status channel (user-facing messages)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from expressway_map.edit.constants import (
    DIM_OPACITY,
    EXPRESSWAY_LAYER,
    FULL_OPACITY,
    LINE_HIT_TOLERANCE,
)
from expressway_map.edit.insertion import distance_to_line, pixel_tolerance_degrees
from expressway_map.edit.session import DrawingSession, EditSession
from expressway_map.errors import ConstraintViolation, MalformedInput
from expressway_map.features import DEFAULT_STATUS, Feature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Drawing:
    session: DrawingSession


@dataclass(frozen=True)
class Editing:
    session: EditSession


InteractionMode = Union[Idle, Drawing, Editing]


class EditController:
    """Owns the current interaction mode and the session inside it."""

    def __init__(self, display: Any, overlay: Any, status: Any,
                 on_name_change: Optional[Callable[[str], None]] = None):
        self._display = display
        self._overlay = overlay
        self._status = status
        self._on_name_change = on_name_change
        self._mode: InteractionMode = Idle()

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def is_editing(self) -> bool:
        return isinstance(self._mode, Editing)

    @property
    def is_drawing(self) -> bool:
        return isinstance(self._mode, Drawing)

    @property
    def session(self) -> Optional[EditSession]:
        """The active edit session, or None outside edit mode."""
        return self._mode.session if isinstance(self._mode, Editing) else None

    @property
    def draft(self) -> Optional[DrawingSession]:
        return self._mode.session if isinstance(self._mode, Drawing) else None

    # --- Mode transitions ---

    def select(self, feature: Feature) -> EditSession:
        """Enter edit mode for feature, leaving whatever mode was active first."""
        if self.is_drawing:
            self.cancel_drawing()
        if self.is_editing:
            self.exit()

        session = EditSession(feature, on_change=self._render_session)
        self._mode = Editing(session)
        self._display.set_layer_opacity(EXPRESSWAY_LAYER, DIM_OPACITY)
        self._render_session(session)
        self._set_name(feature.name)
        logger.info(f"Editing '{feature.name}' ({len(session.store)} points)")
        return session

    def exit(self) -> None:
        """Leave edit mode, releasing every marker. No-op when not editing."""
        session = self.session
        if session is None:
            return
        session.close()
        self._overlay.clear()
        self._display.set_layer_opacity(EXPRESSWAY_LAYER, FULL_OPACITY)
        self._mode = Idle()
        self._set_name('')
        logger.info(f"Left edit mode for '{session.feature.name}'")

    def start_drawing(self) -> DrawingSession:
        if self.is_editing:
            self.exit()
        if self.is_drawing:
            return self.draft

        draft = DrawingSession(on_change=self._render_draft)
        self._mode = Drawing(draft)
        self._status.show('Click on the map to draw a new expressway', 'info')
        return draft

    def cancel_drawing(self) -> None:
        if not self.is_drawing:
            return
        self._overlay.clear()
        self._mode = Idle()

    def finish_drawing(self, name: str, status: str = DEFAULT_STATUS) -> Optional[Feature]:
        """
        Turn the current draft into a new feature.

        The drawing mode stays active so a failed submit can be retried;
        the caller ends it once the feature has been stored.
        """
        draft = self.draft
        if draft is None:
            return None
        try:
            return draft.to_feature(name, status)
        except (ConstraintViolation, MalformedInput) as e:
            self._status.show(str(e), 'error')
            return None

    # --- Vertex operations ---

    def drag_vertex(self, key: str, position: Sequence[float]) -> bool:
        session = self.session
        if session is None:
            return False
        try:
            session.drag(key, position)
        except (KeyError, MalformedInput) as e:
            logger.warning(f"Ignoring vertex drag: {e}")
            return False
        return True

    def insert_vertex(self, position: Sequence[float]) -> bool:
        session = self.session
        if session is None:
            return False
        try:
            session.insert(position)
        except MalformedInput as e:
            self._status.show(str(e), 'error')
            return False
        return True

    def remove_vertex(self, key: str) -> bool:
        """Remove a vertex; reports and ignores removals below the minimum."""
        session = self.session
        if session is None:
            return False
        try:
            session.remove(key)
        except ConstraintViolation as e:
            self._status.show(str(e), 'error')
            return False
        except KeyError as e:
            logger.warning(f"Ignoring vertex removal: {e}")
            return False
        return True

    def rename(self, name: str) -> bool:
        session = self.session
        if session is None:
            return False
        try:
            session.rename(name)
        except MalformedInput as e:
            self._status.show(str(e), 'error')
            return False
        return True

    # --- Pointer events ---

    def handle_map_click(self, point: Sequence[float], zoom: float,
                         features: List[Feature]) -> Optional[str]:
        """
        Route a map click according to the current mode.

        Returns the action taken ('add_draft_point', 'insert_vertex',
        'select') or None if the click was ignored.
        """
        if self.is_drawing:
            try:
                self.draft.add_point(point)
            except MalformedInput as e:
                self._status.show(str(e), 'error')
                return None
            return 'add_draft_point'

        tolerance = pixel_tolerance_degrees(LINE_HIT_TOLERANCE, zoom)
        session = self.session
        if session is not None and distance_to_line(point, session.coordinates) <= tolerance:
            return 'insert_vertex' if self.insert_vertex(point) else None

        hit = self.feature_at(point, tolerance, features)
        if hit is None:
            return None
        if session is not None and self._same_feature(hit, session.feature):
            return None
        self.select(hit)
        return 'select'

    @staticmethod
    def feature_at(point: Sequence[float], tolerance: float,
                   features: List[Feature]) -> Optional[Feature]:
        """Closest feature whose line passes within tolerance of point."""
        closest = None
        closest_dist = float('inf')
        for feature in features:
            lines = [feature.coordinates] + feature.extra_lines
            dist = min(distance_to_line(point, line) for line in lines)
            if dist <= tolerance and dist < closest_dist:
                closest_dist = dist
                closest = feature
        return closest

    # --- Internals ---

    @staticmethod
    def _same_feature(a: Feature, b: Feature) -> bool:
        if a.id and b.id:
            return a.id == b.id
        return a.name == b.name

    def _render_session(self, session: EditSession):
        self._overlay.render_edit(
            session.coordinates,
            [marker.to_dict() for marker in session.markers],
        )

    def _render_draft(self, draft: DrawingSession):
        self._overlay.render_draft(draft.points)

    def _set_name(self, name: str):
        if self._on_name_change:
            self._on_name_change(name)
