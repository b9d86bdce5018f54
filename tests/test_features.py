import pytest

from expressway_map.errors import MalformedInput
from expressway_map.features import (
    Feature,
    feature_collection,
    line_length_km,
    parse_collection,
    validate_coordinate,
)


def make_geojson(**overrides):
    data = {
        "type": "Feature",
        "properties": {"id": "hn-hp", "name": "Cao tốc Hà Nội - Hải Phòng", "status": "operational"},
        "geometry": {"type": "LineString", "coordinates": [[105.85, 21.03], [106.69, 20.84]]},
    }
    data.update(overrides)
    return data


def test_from_geojson_reads_identity_and_line():
    feature = Feature.from_geojson(make_geojson())

    assert feature.id == "hn-hp"
    assert feature.name == "Cao tốc Hà Nội - Hải Phòng"
    assert feature.status == "operational"
    assert feature.editable_coordinates() == [[105.85, 21.03], [106.69, 20.84]]


def test_numeric_id_is_kept_as_string():
    data = make_geojson()
    data["properties"]["id"] = 7
    assert Feature.from_geojson(data).id == "7"


def test_missing_status_defaults_to_planning():
    data = make_geojson()
    del data["properties"]["status"]
    assert Feature.from_geojson(data).status == "planning"


@pytest.mark.parametrize("broken", [
    {"properties": None},
    {"properties": {"id": "x"}},
    {"geometry": None},
    {"geometry": {"type": "Point", "coordinates": [105.0, 21.0]}},
    {"geometry": {"type": "LineString", "coordinates": [[105.0, 21.0]]}},
    {"geometry": {"type": "LineString", "coordinates": [[105.0, 95.0], [106.0, 21.0]]}},
    {"geometry": {"type": "LineString", "coordinates": [["a", 21.0], [106.0, 21.0]]}},
    {"geometry": {"type": "MultiLineString", "coordinates": []}},
])
def test_malformed_features_are_rejected(broken):
    with pytest.raises(MalformedInput):
        Feature.from_geojson(make_geojson(**broken))


def test_multilinestring_edits_first_line_and_keeps_the_rest():
    data = make_geojson(geometry={
        "type": "MultiLineString",
        "coordinates": [
            [[105.0, 21.0], [105.5, 20.8]],
            [[106.0, 20.5], [106.5, 20.3]],
        ],
    })
    feature = Feature.from_geojson(data)

    edited = feature.with_coordinates([[105.0, 21.0], [105.2, 20.9], [105.5, 20.8]])
    geometry = edited.to_geojson()["geometry"]

    assert geometry["type"] == "MultiLineString"
    assert geometry["coordinates"][0] == [[105.0, 21.0], [105.2, 20.9], [105.5, 20.8]]
    assert geometry["coordinates"][1] == [[106.0, 20.5], [106.5, 20.3]]
    # Original is untouched
    assert len(feature.coordinates) == 2


def test_to_geojson_keeps_unknown_properties_and_sets_length():
    data = make_geojson()
    data["properties"]["lanes"] = 6
    out = Feature.from_geojson(data).to_geojson()

    assert out["type"] == "Feature"
    assert out["properties"]["lanes"] == 6
    assert out["properties"]["length_km"] > 0


def test_line_length_of_one_degree_at_equator():
    assert line_length_km([[0.0, 0.0], [1.0, 0.0]]) == pytest.approx(111.19, abs=0.05)
    assert line_length_km([[0.0, 0.0]]) == 0.0


def test_ensure_id_is_stable():
    feature = Feature(name="New road", coordinates=[[105.0, 21.0], [106.0, 21.0]])
    first = feature.ensure_id()
    assert feature.ensure_id() == first


def test_validate_coordinate_accepts_tuples_and_ints():
    assert validate_coordinate((105, 21)) == [105.0, 21.0]
    with pytest.raises(MalformedInput):
        validate_coordinate("105,21")


def test_parse_collection_skips_malformed_entries():
    collection = feature_collection([make_geojson(), {"type": "Feature"}])
    features = parse_collection(collection)
    assert [f.id for f in features] == ["hn-hp"]
