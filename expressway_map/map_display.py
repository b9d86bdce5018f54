"""
Map display - the static layers of the Leaflet map.

Province boundaries are drawn once; the expressway layer is redrawn in
full from the feature service after every save. Leaflet style functions
cannot cross the Python/JS boundary, so expressways are split into one
geoJSON layer per status, each with its own static style.
"""

import html
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import requests
from nicegui import ui

from expressway_map.edit.constants import (
    DEFAULT_LINE_COLOR,
    EXPRESSWAY_LAYER,
    FULL_OPACITY,
    PROVINCE_LAYER,
    STATUS_COLORS,
)
from expressway_map.features import feature_collection

logger = logging.getLogger(__name__)

VIETNAM_CENTER = (16.0, 107.0)
DEFAULT_ZOOM = 6

PROVINCE_STYLE = {
    'color': '#2c3e50',
    'weight': 0.2,
    'fillColor': '#ecf0f1',
    'fillOpacity': 0.1,
}

# Province name keys in the boundary file, most preferred first
PROVINCE_NAME_KEYS = ('Name', 'name', 'Name_VI', 'Name_EN')
POPUP_PROPERTY = '_popup'

# Runs once per province inside the geoJSON layer
BIND_POPUP_JS = (
    f"(layer) => {{ const p = layer.feature && layer.feature.properties; "
    f"if (p && p.{POPUP_PROPERTY}) layer.bindPopup(p.{POPUP_PROPERTY}); }}"
)

BASE_LAYERS = {
    'none': None,
    'osm': {
        'url_template': 'https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png',
        'options': {
            'attribution': '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors',
            'maxZoom': 19,
        },
    },
}


def load_provinces(url: str, cache_path: Path) -> Dict[str, Any]:
    """
    Load the Vietnam province boundaries.

    The download is cached next to the expressway data; later starts read
    the cache. Returns an empty collection if neither source works.
    """
    if cache_path.exists():
        try:
            with open(cache_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable province cache {cache_path}: {e}")

    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Error loading Vietnam boundaries: {e}")
        return feature_collection([])

    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        with open(cache_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False)
    except IOError as e:
        logger.warning(f"Could not cache province boundaries: {e}")
    return data


def province_name(properties: Dict[str, Any]) -> str:
    """First non-empty name among PROVINCE_NAME_KEYS, else 'Unknown'."""
    for key in PROVINCE_NAME_KEYS:
        if properties.get(key):
            return str(properties[key])
    return 'Unknown'


def with_province_popups(collection: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the collection with escaped popup HTML on every feature that has properties."""
    features = []
    for feature in collection.get('features', []):
        properties = feature.get('properties')
        if isinstance(properties, dict):
            popup = f"<b>{html.escape(province_name(properties))}</b>"
            feature = {**feature, 'properties': {**properties, POPUP_PROPERTY: popup}}
        features.append(feature)
    return {**collection, 'features': features}


def split_by_status(collection: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Group features by status; unknown statuses share the default colour."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for feature in collection.get('features', []):
        status = (feature.get('properties') or {}).get('status')
        key = status if status in STATUS_COLORS else 'other'
        groups.setdefault(key, []).append(feature)
    return groups


def line_style(status: str, opacity: float = FULL_OPACITY) -> Dict[str, Any]:
    return {
        'color': STATUS_COLORS.get(status, DEFAULT_LINE_COLOR),
        'weight': 4,
        'opacity': opacity,
    }


class MapDisplay:
    """Static province and expressway layers on a ui.leaflet map."""

    def __init__(self, leaflet: ui.leaflet, base_layer: str = 'none'):
        self.leaflet = leaflet
        self._layers: Dict[str, List[Any]] = {EXPRESSWAY_LAYER: [], PROVINCE_LAYER: []}
        self._opacity: Dict[str, float] = {EXPRESSWAY_LAYER: FULL_OPACITY, PROVINCE_LAYER: FULL_OPACITY}
        self._base = None
        # ui.leaflet starts with an OSM tile layer; we manage tiles ourselves
        self.leaflet.clear_layers()
        self.set_base_layer(base_layer)

    @property
    def zoom(self) -> float:
        return self.leaflet.zoom

    def set_base_layer(self, name: str) -> None:
        if name not in BASE_LAYERS:
            raise ValueError(f"Unknown base layer {name!r}")
        if self._base is not None:
            self.leaflet.remove_layer(self._base)
            self._base = None
        tiles = BASE_LAYERS[name]
        if tiles:
            self._base = self.leaflet.tile_layer(**tiles)

    def show_provinces(self, collection: Dict[str, Any]) -> None:
        self._remove(PROVINCE_LAYER)
        if collection.get('features'):
            layer = self.leaflet.generic_layer(
                name='geoJSON', args=[with_province_popups(collection), {'style': PROVINCE_STYLE}])
            # A leading colon makes NiceGUI evaluate the argument as JavaScript
            layer.run_method(':eachLayer', BIND_POPUP_JS)
            self._layers[PROVINCE_LAYER].append(layer)

    def render(self, collection: Dict[str, Any]) -> None:
        """Redraw the expressway layer from a full FeatureCollection."""
        self.clear()
        opacity = self._opacity[EXPRESSWAY_LAYER]
        for status, features in split_by_status(collection).items():
            layer = self.leaflet.generic_layer(
                name='geoJSON',
                args=[feature_collection(features), {'style': line_style(status, opacity)}],
            )
            self._layers[EXPRESSWAY_LAYER].append(layer)

    def clear(self) -> None:
        self._remove(EXPRESSWAY_LAYER)

    def set_layer_opacity(self, layer: str, value: float) -> None:
        if layer not in self._layers:
            raise ValueError(f"Unknown layer {layer!r}")
        self._opacity[layer] = value
        for item in self._layers[layer]:
            item.run_method('setStyle', {'opacity': value})

    def _remove(self, layer: str):
        for item in self._layers[layer]:
            self.leaflet.remove_layer(item)
        self._layers[layer] = []
