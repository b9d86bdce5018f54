import json
from unittest.mock import MagicMock

import pytest
import requests

from expressway_map import map_display
from expressway_map.edit.constants import EXPRESSWAY_LAYER, STATUS_COLORS
from expressway_map.features import feature_collection
from expressway_map.map_display import (
    BIND_POPUP_JS,
    MapDisplay,
    load_provinces,
    province_name,
    split_by_status,
    with_province_popups,
)


def line(name, status):
    return {
        "type": "Feature",
        "properties": {"name": name, "status": status},
        "geometry": {"type": "LineString", "coordinates": [[105.0, 21.0], [106.0, 21.0]]},
    }


COLLECTION = feature_collection([
    line("A", "operational"),
    line("B", "planning"),
    line("C", "operational"),
    line("D", "abandoned"),
])


@pytest.fixture
def leaflet():
    return MagicMock()


@pytest.fixture
def display(leaflet):
    return MapDisplay(leaflet)


def test_split_by_status_groups_unknown_statuses():
    groups = split_by_status(COLLECTION)
    assert [f["properties"]["name"] for f in groups["operational"]] == ["A", "C"]
    assert [f["properties"]["name"] for f in groups["other"]] == ["D"]


def test_starts_without_tiles(leaflet):
    MapDisplay(leaflet)
    leaflet.clear_layers.assert_called_once()
    leaflet.tile_layer.assert_not_called()


def test_base_layer_toggle(display, leaflet):
    display.set_base_layer("osm")
    tiles = leaflet.tile_layer.return_value

    display.set_base_layer("none")

    leaflet.remove_layer.assert_called_with(tiles)
    with pytest.raises(ValueError):
        display.set_base_layer("satellite")


def test_render_draws_one_layer_per_status(display, leaflet):
    display.render(COLLECTION)

    calls = leaflet.generic_layer.call_args_list
    assert len(calls) == 3
    styles = [c.kwargs["args"][1]["style"]["color"] for c in calls]
    assert STATUS_COLORS["operational"] in styles


def test_render_replaces_previous_layers(display, leaflet):
    display.render(COLLECTION)
    first_layer = leaflet.generic_layer.return_value

    display.render(feature_collection([line("A", "operational")]))

    leaflet.remove_layer.assert_any_call(first_layer)


def test_opacity_applies_to_current_and_future_layers(display, leaflet):
    display.render(COLLECTION)
    layer = leaflet.generic_layer.return_value

    display.set_layer_opacity(EXPRESSWAY_LAYER, 0.25)

    layer.run_method.assert_called_with("setStyle", {"opacity": 0.25})
    display.render(COLLECTION)
    assert leaflet.generic_layer.call_args.kwargs["args"][1]["style"]["opacity"] == 0.25


def test_load_provinces_downloads_and_caches(tmp_path, monkeypatch):
    data = feature_collection([{"type": "Feature", "properties": {"Name": "Hà Nội"}, "geometry": None}])
    response = MagicMock()
    response.json.return_value = data
    get = MagicMock(return_value=response)
    monkeypatch.setattr(map_display.requests, "get", get)
    cache = tmp_path / "provinces.geojson"

    assert load_provinces("http://example/provinces", cache) == data
    assert json.loads(cache.read_text(encoding="utf-8")) == data

    # Second call is served from the cache
    assert load_provinces("http://example/provinces", cache) == data
    get.assert_called_once()


def test_load_provinces_failure_returns_empty(tmp_path, monkeypatch):
    monkeypatch.setattr(map_display.requests, "get",
                        MagicMock(side_effect=requests.ConnectionError("offline")))

    result = load_provinces("http://example/provinces", tmp_path / "p.geojson")

    assert result == {"type": "FeatureCollection", "features": []}


@pytest.mark.parametrize("properties, expected", [
    ({"Name": "Hà Nội", "name": "ha noi", "Name_EN": "Hanoi"}, "Hà Nội"),
    ({"name": "Đà Nẵng", "Name_VI": "Thành phố Đà Nẵng"}, "Đà Nẵng"),
    ({"Name": "", "Name_VI": "Cần Thơ"}, "Cần Thơ"),
    ({"Name_EN": "Ho Chi Minh City"}, "Ho Chi Minh City"),
    ({"code": "HN"}, "Unknown"),
])
def test_province_name_fallback_order(properties, expected):
    assert province_name(properties) == expected


def test_with_province_popups_escapes_names_and_leaves_input_alone():
    provinces = feature_collection([
        {"type": "Feature", "properties": {"Name": "Bà Rịa <Vũng Tàu>"}, "geometry": None},
        {"type": "Feature", "properties": None, "geometry": None},
    ])

    annotated = with_province_popups(provinces)

    assert annotated["features"][0]["properties"]["_popup"] == "<b>Bà Rịa &lt;Vũng Tàu&gt;</b>"
    assert annotated["features"][1]["properties"] is None
    assert "_popup" not in provinces["features"][0]["properties"]


def test_show_provinces_binds_popups(display, leaflet):
    provinces = feature_collection([{"type": "Feature", "properties": {"Name": "Huế"}, "geometry": None}])

    display.show_provinces(provinces)

    args = leaflet.generic_layer.call_args.kwargs["args"]
    assert args[0]["features"][0]["properties"]["_popup"] == "<b>Huế</b>"
    leaflet.generic_layer.return_value.run_method.assert_called_once_with(":eachLayer", BIND_POPUP_JS)


def test_show_provinces_skips_empty_collection(display, leaflet):
    display.show_provinces(feature_collection([]))
    leaflet.generic_layer.assert_not_called()
