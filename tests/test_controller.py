"""
Tests for the interaction-mode state machine.

Display, overlay and name control are MagicMocks; the status channel is real
so the single-slot message can be inspected.
"""

from unittest.mock import MagicMock

import pytest

from expressway_map.edit.constants import DIM_OPACITY, EXPRESSWAY_LAYER, FULL_OPACITY
from expressway_map.edit.controller import Drawing, EditController, Editing, Idle
from expressway_map.features import Feature
from expressway_map.status import StatusChannel

# At zoom 6 the click tolerance is ~0.18 degrees
ZOOM = 6


@pytest.fixture
def feature_a():
    return Feature(id="a", name="Expressway A", coordinates=[[105.0, 21.0], [106.0, 21.0], [107.0, 21.0]])


@pytest.fixture
def feature_b():
    return Feature(id="b", name="Expressway B", coordinates=[[105.0, 10.0], [106.0, 10.0]])


@pytest.fixture
def display():
    return MagicMock()


@pytest.fixture
def overlay():
    return MagicMock()


@pytest.fixture
def name_control():
    return MagicMock()


@pytest.fixture
def status():
    return StatusChannel()


@pytest.fixture
def controller(display, overlay, status, name_control):
    return EditController(display, overlay, status, on_name_change=name_control)


class TestModeTransitions:

    def test_starts_idle(self, controller):
        assert isinstance(controller.mode, Idle)
        assert controller.session is None

    def test_select_enters_edit_mode(self, controller, feature_a, display, overlay, name_control):
        session = controller.select(feature_a)

        assert isinstance(controller.mode, Editing)
        assert controller.session is session
        display.set_layer_opacity.assert_called_with(EXPRESSWAY_LAYER, DIM_OPACITY)
        coords, markers = overlay.render_edit.call_args[0]
        assert coords == feature_a.coordinates
        assert [m['index'] for m in markers] == [0, 1, 2]
        name_control.assert_called_with("Expressway A")

    def test_exit_restores_everything(self, controller, feature_a, display, overlay, name_control):
        session = controller.select(feature_a)
        handles = session.markers.markers

        controller.exit()

        assert isinstance(controller.mode, Idle)
        assert session.closed
        assert all(m.released for m in handles)
        overlay.clear.assert_called()
        display.set_layer_opacity.assert_called_with(EXPRESSWAY_LAYER, FULL_OPACITY)
        name_control.assert_called_with("")

    def test_exit_when_idle_is_a_no_op(self, controller, overlay):
        controller.exit()
        overlay.clear.assert_not_called()

    def test_selecting_again_does_not_leak_markers(self, controller, feature_a, feature_b):
        first = controller.select(feature_a)
        first_handles = first.markers.markers

        second = controller.select(feature_b)

        assert first.closed
        assert all(m.released for m in first_handles)
        assert controller.session is second
        assert second.feature is feature_b
        assert len(second.markers) == 2

    def test_drawing_cancels_edit_mode(self, controller, feature_a):
        session = controller.select(feature_a)

        controller.start_drawing()

        assert session.closed
        assert isinstance(controller.mode, Drawing)

    def test_select_cancels_drawing(self, controller, feature_a):
        controller.start_drawing()
        controller.select(feature_a)

        assert isinstance(controller.mode, Editing)
        assert controller.draft is None


class TestVertexOperations:

    def test_drag_updates_the_store(self, controller, feature_a):
        session = controller.select(feature_a)

        assert controller.drag_vertex(session.markers[1].key, [106.0, 21.5])
        assert session.coordinates[1] == [106.0, 21.5]

    def test_remove_on_two_point_line_is_rejected(self, controller, feature_b, status):
        session = controller.select(feature_b)
        handles = session.markers.markers

        for marker in handles:
            assert controller.remove_vertex(marker.key) is False

        assert len(session.store) == 2
        assert not any(m.released for m in handles)
        assert status.current.severity == 'error'

    def test_stale_marker_events_are_ignored(self, controller, feature_a):
        session = controller.select(feature_a)
        key = session.markers[0].key
        controller.exit()

        assert controller.drag_vertex(key, [105.0, 22.0]) is False
        assert controller.remove_vertex(key) is False

    def test_rename_reports_blank_names(self, controller, feature_a, status):
        controller.select(feature_a)
        assert controller.rename("") is False
        assert status.current.severity == 'error'
        assert controller.rename("Cao tốc A") is True
        assert controller.session.to_feature().name == "Cao tốc A"


class TestMapClicks:

    def test_click_on_line_in_idle_selects_it(self, controller, feature_a, feature_b):
        action = controller.handle_map_click([105.5, 21.05], ZOOM, [feature_a, feature_b])

        assert action == 'select'
        assert controller.session.feature is feature_a

    def test_click_on_empty_map_is_ignored(self, controller, feature_a):
        assert controller.handle_map_click([100.0, 15.0], ZOOM, [feature_a]) is None
        assert isinstance(controller.mode, Idle)

    def test_click_on_edited_line_inserts_a_vertex(self, controller, feature_b):
        session = controller.select(feature_b)
        end = session.markers[1]

        action = controller.handle_map_click([105.5, 10.05], ZOOM, [feature_b])

        assert action == 'insert_vertex'
        assert len(session.store) == 3
        assert session.markers[1].position == [105.5, 10.05]
        assert end.index == 2
        session.markers.check_invariants()

    def test_click_on_other_line_switches_feature(self, controller, feature_a, feature_b):
        first = controller.select(feature_b)

        action = controller.handle_map_click([106.5, 21.0], ZOOM, [feature_a, feature_b])

        assert action == 'select'
        assert first.closed
        assert controller.session.feature is feature_a

    def test_drawing_collects_points(self, controller):
        controller.start_drawing()

        controller.handle_map_click([105.0, 21.0], ZOOM, [])
        controller.handle_map_click([106.0, 21.0], ZOOM, [])

        assert controller.draft.points == [[105.0, 21.0], [106.0, 21.0]]

    def test_finish_drawing_needs_two_points(self, controller, status):
        controller.start_drawing()
        controller.handle_map_click([105.0, 21.0], ZOOM, [])

        assert controller.finish_drawing("New road") is None
        assert status.current.severity == 'error'
        assert controller.is_drawing
