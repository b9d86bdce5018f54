"""
Edit Handlers - Event handlers for the geometry editor in app.py

This module keeps the map/UI event plumbing out of app.py so the page
function stays focused on layout.
"""

import logging
from typing import Any, Dict

from nicegui import ui

from expressway_map.edit.bridge import PersistenceBridge
from expressway_map.edit.controller import EditController
from expressway_map.features import DEFAULT_STATUS

logger = logging.getLogger(__name__)


def setup_edit_handlers(
    state: Dict[str, Any],
    controller: EditController,
    bridge: PersistenceBridge,
    display: Any,
):
    """
    Set up all edit mode event handlers.

    Args:
        state: Page state dictionary; state['features'] holds the parsed
            expressways from the last refresh
        controller: EditController instance
        bridge: PersistenceBridge instance
        display: MapDisplay wrapping the page's ui.leaflet

    Returns:
        Dict with handler functions for binding to UI events
    """

    def handle_map_click(event):
        latlng = event.args.get('latlng') if isinstance(event.args, dict) else None
        if not latlng:
            return
        point = [latlng['lng'], latlng['lat']]
        action = controller.handle_map_click(point, display.zoom, state.get('features', []))
        if action:
            logger.debug(f"Map click -> {action} at {point}")

    def handle_vertex_drag(event):
        args = event.args or {}
        controller.drag_vertex(args.get('key'), [args.get('lng'), args.get('lat')])

    def handle_vertex_remove(event):
        args = event.args or {}
        controller.remove_vertex(args.get('key'))

    def handle_rename(name: str) -> bool:
        """Apply a changed name. False when the new name was rejected."""
        if controller.is_editing and controller.session.name != (name or '').strip():
            return controller.rename(name)
        return True

    async def handle_save():
        session = controller.session
        if session is not None and state.get('name_input') is not None:
            # Pick up a name typed but not yet confirmed with Enter
            if not handle_rename(state['name_input'].value):
                return False
        return await bridge.save()

    def handle_exit():
        controller.exit()
        controller.cancel_drawing()

    def handle_start_drawing():
        controller.start_drawing()

    async def handle_finish_drawing(name: str, status: str = DEFAULT_STATUS):
        feature = controller.finish_drawing(name, status)
        if feature is not None:
            await bridge.add_new(feature)

    def handle_keyboard(e):
        """Escape leaves edit/drawing mode."""
        if e.key == 'Escape' and e.action.keydown:
            handle_exit()

    display.leaflet.on('map-click', handle_map_click)
    ui.on('vertex_drag', handle_vertex_drag)
    ui.on('vertex_remove', handle_vertex_remove)

    return {
        'handle_map_click': handle_map_click,
        'handle_vertex_drag': handle_vertex_drag,
        'handle_vertex_remove': handle_vertex_remove,
        'handle_rename': handle_rename,
        'handle_save': handle_save,
        'handle_exit': handle_exit,
        'handle_start_drawing': handle_start_drawing,
        'handle_finish_drawing': handle_finish_drawing,
        'handle_keyboard': handle_keyboard,
    }
