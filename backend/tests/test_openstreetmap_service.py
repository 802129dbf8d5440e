from unittest.mock import patch

import pytest

from core.errors import OverpassServiceError
from services.data_sources.openstreetmap import (
    OpenStreetMapService,
    OverpassQueryBuilder,
    bbox_string,
    calculate_road_length,
    find_intersections,
)
from services.roi import geodesic_area_m2

ROADS_PAYLOAD = {
    "elements": [
        {
            "type": "way",
            "id": 1,
            "tags": {"highway": "primary", "name": "Broadway"},
            "geometry": [{"lat": 40.749, "lon": -73.985}, {"lat": 40.751, "lon": -73.982}],
        },
        {
            "type": "way",
            "id": 2,
            "tags": {"highway": "residential"},
            "geometry": [{"lat": 40.751, "lon": -73.982}, {"lat": 40.753, "lon": -73.980}],
        },
        {"type": "way", "id": 3, "tags": {"highway": "primary"}},
        {"type": "node", "id": 4, "lat": 40.75, "lon": -73.98},
    ]
}

TRANSPORT_PAYLOAD = {
    "elements": [
        {
            "type": "node",
            "id": 10,
            "lat": 40.75,
            "lon": -73.981,
            "tags": {"highway": "bus_stop", "name": "5 Av/W 34 St", "wheelchair": "yes"},
        },
        {"type": "node", "id": 11, "lat": 40.751, "lon": -73.983, "tags": {"railway": "station"}},
        {
            "type": "node",
            "id": 12,
            "lat": 40.752,
            "lon": -73.984,
            "tags": {"public_transport": "stop_position"},
        },
        {"type": "node", "id": 13, "tags": {"highway": "bus_stop"}},
        {"type": "way", "id": 14, "tags": {"public_transport": "platform"}},
    ]
}


def test_bbox_string_is_south_west_north_east(manhattan_roi):
    assert bbox_string(manhattan_roi) == "40.7484,-73.9857,40.7544,-73.9787"


def test_query_builder_unions_requested_features():
    query = OverpassQueryBuilder(timeout=30).build("1,2,3,4", ["roads", "transport", "bogus"])
    lines = query.split("\n")

    assert lines[0] == "[out:json][timeout:30];"
    assert lines[1] == "("
    assert lines[-2:] == [");", "out geom;"]
    assert 'node["highway"="bus_stop"](1,2,3,4);' in lines
    assert any(line.startswith('way["highway"~"^(motorway|') for line in lines)
    # 1 road statement and 5 transport statements; unknown types add nothing
    assert len(lines) == 2 + 6 + 2


def test_road_length_of_single_point_is_zero():
    assert calculate_road_length([{"lat": 1, "lng": 1}]) == 0


def test_intersections_are_shared_endpoints():
    roads = [
        {"id": 1, "coordinates": [{"lat": 0, "lng": 0}, {"lat": 1, "lng": 1}]},
        {"id": 2, "coordinates": [{"lat": 1, "lng": 1}, {"lat": 2, "lng": 2}]},
        {"id": 3, "coordinates": [{"lat": 5, "lng": 5}]},
    ]
    intersections = find_intersections(roads)
    assert intersections == [{"id": 1, "location": {"lat": 1.0, "lng": 1.0}, "roads": [1, 2]}]


def test_features_are_posted_as_form_data(manhattan_roi):
    service = OpenStreetMapService(api_url="https://overpass.example/api", timeout=20)
    with patch(
        "services.data_sources.openstreetmap.request_json", return_value={"elements": []}
    ) as mock_request:
        service.get_features(manhattan_roi, ["buildings"])

    args, kwargs = mock_request.call_args
    assert args == ("POST", "https://overpass.example/api")
    assert kwargs["timeout"] == 30
    assert kwargs["error_cls"] is OverpassServiceError
    assert 'way["building"](40.7484,-73.9857,40.7544,-73.9787);' in kwargs["data"]["data"]


def test_road_network(manhattan_roi):
    with patch(
        "services.data_sources.openstreetmap.request_json", return_value=ROADS_PAYLOAD
    ):
        network = OpenStreetMapService().get_road_network(manhattan_roi)

    assert [road["id"] for road in network["roads"]] == [1, 2]
    assert network["roads"][0]["name"] == "Broadway"
    assert network["roads"][1]["name"] == "Road 2"
    total_length = sum(road["length"] for road in network["roads"])
    assert network["totalLength"] == pytest.approx(total_length, abs=0.01)
    area_km2 = geodesic_area_m2(manhattan_roi) / 1_000_000
    assert network["networkDensity"] == pytest.approx(total_length / 1000 / area_km2, abs=0.01)
    assert len(network["intersections"]) == 1


def test_road_network_failure_returns_empty_network(manhattan_roi):
    with patch(
        "services.data_sources.openstreetmap.request_json",
        side_effect=OverpassServiceError("Overpass API error: 504 Gateway Timeout", 504),
    ):
        network = OpenStreetMapService().get_road_network(manhattan_roi)
    assert network == {"roads": [], "totalLength": 0, "networkDensity": 0, "intersections": []}


def test_public_transport(manhattan_roi):
    with patch(
        "services.data_sources.openstreetmap.request_json", return_value=TRANSPORT_PAYLOAD
    ):
        transport = OpenStreetMapService().get_public_transport(manhattan_roi)

    assert [stop["type"] for stop in transport["stops"]] == [
        "bus_stop",
        "station",
        "stop_position",
    ]
    assert transport["stops"][1]["name"] == "Stop 11"
    area_km2 = geodesic_area_m2(manhattan_roi) / 1_000_000
    coverage = transport["coverage"]
    assert coverage["totalStops"] == 3
    assert coverage["stopsPerKm2"] == pytest.approx(3 / area_km2, abs=0.01)
    assert coverage["accessibilityScore"] == pytest.approx(min(1, 3 / area_km2 / 10), abs=0.01)


def test_public_transport_failure_returns_zero_coverage(manhattan_roi):
    with patch(
        "services.data_sources.openstreetmap.request_json",
        side_effect=OverpassServiceError("Overpass request timed out"),
    ):
        transport = OpenStreetMapService().get_public_transport(manhattan_roi)
    assert transport["stops"] == []
    assert transport["coverage"]["accessibilityScore"] == 0


def test_buildings(manhattan_roi):
    payload = {
        "elements": [
            {
                "type": "way",
                "id": 20,
                "tags": {"building": "commercial"},
                "geometry": [
                    {"lat": 40.750, "lon": -73.984},
                    {"lat": 40.750, "lon": -73.983},
                    {"lat": 40.751, "lon": -73.983},
                    {"lat": 40.751, "lon": -73.984},
                ],
            },
            {"type": "way", "id": 21, "geometry": [{"lat": 40.75, "lon": -73.98}]},
        ]
    }
    with patch("services.data_sources.openstreetmap.request_json", return_value=payload):
        result = OpenStreetMapService().get_buildings(manhattan_roi)

    first, second = result["buildings"]
    assert first["type"] == "commercial"
    assert first["area"] > 0
    assert second["type"] == "yes"
    assert second["area"] == 0
    assert result["density"]["totalBuildings"] == 2
    assert 0 < result["density"]["buildingCoverage"] < 100
