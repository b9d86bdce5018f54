"""
Main NiceGUI application for the Vietnam expressway map.

Renders province boundaries and expressways on a ui.leaflet map, serves the
JSON API used to persist edits, and wires the geometry editor (edit mode
for existing lines, drawing mode for new ones) into the page.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import Client, app, run, ui

load_dotenv()

from expressway_map.api import create_api_router
from expressway_map.config import (
    get_api_base_url,
    get_geojson_path,
    get_port,
    get_provinces_url,
    get_storage_secret,
)
from expressway_map.edit import EditController, EditOverlay, PersistenceBridge, setup_edit_handlers
from expressway_map.errors import ExpresswayMapError
from expressway_map.features import STATUSES, DEFAULT_STATUS, feature_collection, parse_collection
from expressway_map.map_display import DEFAULT_ZOOM, VIETNAM_CENTER, MapDisplay, load_provinces
from expressway_map.paths import ensure_data_dir
from expressway_map.services import HttpFeatureService, LocalFeatureService
from expressway_map.status import StatusChannel, notify_renderer
from expressway_map.store import ExpresswayStore

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('expressway_map')

# Ensure required directories exist on startup
data_dir = ensure_data_dir()

store = ExpresswayStore(get_geojson_path())
store.seed_demo_data()

api_base_url = get_api_base_url()
if api_base_url:
    logger.info(f"Using remote expressway API at {api_base_url}")
    feature_service = HttpFeatureService(api_base_url)
else:
    feature_service = LocalFeatureService(store)

app.include_router(create_api_router(store))
app.add_static_files('/data', str(data_dir))


@ui.page('/')
async def index(client: Client):
    state = {'features': []}

    ui.add_head_html('''
        <style>
            .nicegui-content { padding: 0; }
        </style>
    ''')

    leaflet = ui.leaflet(center=VIETNAM_CENTER, zoom=DEFAULT_ZOOM).classes('w-full h-screen')
    display = MapDisplay(leaflet)
    overlay = EditOverlay()
    overlay.setup(leaflet.id)

    # --- Control panel ---
    with ui.card().classes('fixed left-4 top-4 w-80 z-[1000] gap-3 shadow-2xl'):
        ui.label('Vietnam Expressways').classes('text-lg font-bold')

        ui.toggle({'none': 'No tiles', 'osm': 'OpenStreetMap'}, value='none',
                  on_change=lambda e: display.set_base_layer(e.value)).props('dense')

        status_label = ui.label('').classes('text-sm text-gray-300')

        with ui.column().classes('w-full gap-2') as idle_panel:
            ui.label('Click an expressway to edit it.').classes('text-xs text-gray-400')
            new_btn = ui.button('New expressway', icon='timeline').props('outline')

        with ui.column().classes('w-full gap-2') as edit_panel:
            name_input = ui.input('Name').classes('w-full')
            ui.label('Drag points to move them, click the line to add one, '
                     'right-click a point to remove it.').classes('text-xs text-gray-400')
            with ui.row().classes('gap-2'):
                save_btn = ui.button('Save', icon='save').props('color=positive')
                exit_btn = ui.button('Exit', icon='close').props('flat')

        with ui.column().classes('w-full gap-2') as draw_panel:
            draft_name = ui.input('Name of new expressway').classes('w-full')
            draft_status = ui.select(list(STATUSES), value=DEFAULT_STATUS, label='Status').classes('w-full')
            ui.label('Click on the map to add points.').classes('text-xs text-gray-400')
            with ui.row().classes('gap-2'):
                finish_btn = ui.button('Add', icon='add').props('color=positive')
                cancel_btn = ui.button('Cancel', icon='close').props('flat')

    state['name_input'] = name_input
    status = StatusChannel(notify_renderer(status_label))
    controller = EditController(display, overlay, status, on_name_change=name_input.set_value)

    async def refresh():
        """Reload the expressway layer from the feature service."""
        try:
            features = await run.io_bound(feature_service.list_features)
        except ExpresswayMapError as e:
            logger.error(f"Error loading expressways: {e}")
            raise
        state['features'] = parse_collection(feature_collection(features))
        display.render(feature_collection(features))

    bridge = PersistenceBridge(feature_service, controller, status, refresh)
    handlers = setup_edit_handlers(state, controller, bridge, display)

    new_btn.on_click(handlers['handle_start_drawing'])
    save_btn.on_click(handlers['handle_save'])
    exit_btn.on_click(handlers['handle_exit'])
    cancel_btn.on_click(handlers['handle_exit'])
    finish_btn.on_click(lambda: handlers['handle_finish_drawing'](draft_name.value, draft_status.value))
    name_input.on('keydown.enter', lambda: handlers['handle_rename'](name_input.value))
    name_input.on('blur', lambda: handlers['handle_rename'](name_input.value))
    ui.keyboard(on_key=handlers['handle_keyboard'])

    def sync_panels():
        idle_panel.set_visibility(not controller.is_editing and not controller.is_drawing)
        edit_panel.set_visibility(controller.is_editing)
        draw_panel.set_visibility(controller.is_drawing)

    sync_panels()
    ui.timer(0.25, sync_panels)

    await client.connected()
    await leaflet.initialized()

    provinces = await run.io_bound(load_provinces, get_provinces_url(), data_dir / 'vietnam_provinces.geojson')
    display.show_provinces(provinces)

    try:
        await refresh()
    except ExpresswayMapError as e:
        status.show(f'Could not load expressways: {e}', 'error')


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Vietnam Expressways',
        port=get_port(),
        reload=not getattr(sys, 'frozen', False),
        storage_secret=get_storage_secret(),
    )
