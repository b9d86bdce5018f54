"""
Edit Overlay - browser-side drawing of the editable line and its handles.

The overlay holds no state of its own: every call redraws the polyline and
all vertex handles from the Python-side session. Handles report back through
NiceGUI's emitEvent:
- vertex_drag   {key, lat, lng}   when a handle is dropped
- vertex_remove {key}             on right-click / long-press of a handle
"""

import json
from typing import Any, Dict, List, Sequence

from nicegui import ui

from expressway_map.edit.constants import DRAFT_LINE_COLOR, EDIT_LINE_COLOR


def _latlngs(coordinates: Sequence[Sequence[float]]) -> List[List[float]]:
    """GeoJSON [lon, lat] -> Leaflet [lat, lng]."""
    return [[p[1], p[0]] for p in coordinates]


class EditOverlay:
    """
    Renders the editable overlay on top of a ui.leaflet map.

    Call setup() once after the map element exists.
    """

    def __init__(self):
        self._map_id = None
        self._is_setup = False

    def setup(self, map_element_id: int):
        """Inject the overlay helper script. Call once per page."""
        if self._is_setup:
            return
        self._map_id = map_element_id

        ui.add_head_html('''
            <style>
                .vertex-handle {
                    background: #ffffff;
                    border: 2px solid ''' + EDIT_LINE_COLOR + ''';
                    border-radius: 50%;
                    box-shadow: 0 0 3px rgba(0,0,0,0.6);
                }
                .draft-handle {
                    background: ''' + DRAFT_LINE_COLOR + ''';
                    border-radius: 50%;
                }
            </style>
        ''')

        ui.add_body_html(f'''
            <script>
                window.expresswayEditor = {{
                    mapId: {json.dumps(map_element_id)},
                    layers: [],

                    getMap: function() {{
                        if (typeof getElement !== 'function') return null;
                        const component = getElement(this.mapId);
                        return component ? component.map : null;
                    }},

                    clear: function() {{
                        const map = this.getMap();
                        if (map) this.layers.forEach(l => map.removeLayer(l));
                        this.layers = [];
                    }},

                    renderEdit: function(latlngs, markers) {{
                        this.clear();
                        const map = this.getMap();
                        if (!map) return;

                        const line = L.polyline(latlngs, {{
                            color: '{EDIT_LINE_COLOR}', weight: 5, dashArray: '8,6'
                        }}).addTo(map);
                        this.layers.push(line);

                        markers.forEach(m => {{
                            const handle = L.marker([m.position[1], m.position[0]], {{
                                draggable: true,
                                title: 'Point ' + (m.index + 1) + ' (right-click to remove)',
                                icon: L.divIcon({{className: 'vertex-handle', iconSize: [14, 14]}})
                            }});
                            handle.on('dragend', e => {{
                                const ll = e.target.getLatLng();
                                emitEvent('vertex_drag', {{key: m.key, lat: ll.lat, lng: ll.lng}});
                            }});
                            handle.on('contextmenu', () => emitEvent('vertex_remove', {{key: m.key}}));
                            handle.addTo(map);
                            this.layers.push(handle);
                        }});
                    }},

                    renderDraft: function(latlngs) {{
                        this.clear();
                        const map = this.getMap();
                        if (!map) return;

                        if (latlngs.length > 1) {{
                            this.layers.push(L.polyline(latlngs, {{
                                color: '{DRAFT_LINE_COLOR}', weight: 4
                            }}).addTo(map));
                        }}
                        latlngs.forEach(ll => {{
                            this.layers.push(L.marker(ll, {{
                                interactive: false,
                                icon: L.divIcon({{className: 'draft-handle', iconSize: [10, 10]}})
                            }}).addTo(map));
                        }});
                    }}
                }};
            </script>
        ''')

        self._is_setup = True

    def render_edit(self, coordinates: Sequence[Sequence[float]], markers: List[Dict[str, Any]]):
        """Redraw the edited line and one handle per marker."""
        ui.run_javascript(
            f'window.expresswayEditor && window.expresswayEditor.renderEdit('
            f'{json.dumps(_latlngs(coordinates))}, {json.dumps(markers)});'
        )

    def render_draft(self, points: Sequence[Sequence[float]]):
        ui.run_javascript(
            f'window.expresswayEditor && window.expresswayEditor.renderDraft({json.dumps(_latlngs(points))});'
        )

    def clear(self):
        ui.run_javascript('window.expresswayEditor && window.expresswayEditor.clear();')
