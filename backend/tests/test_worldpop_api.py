import asyncio
import json
from urllib.parse import quote

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.errors import WorldPopError, WorldPopTaskError

URL = "/worldpop/request-population-analysis"


@pytest.fixture
def api_client():
    from api.worldpop import router as worldpop_router

    app = FastAPI()
    app.include_router(worldpop_router)
    return TestClient(app)


def _population_result(population=5000, density=250.0):
    return {
        "success": True,
        "data": {"population": population, "populationDensity": density, "area": 20.0},
        "taskid": None,
    }


def test_requires_analysis_type_and_country(api_client):
    response = api_client.post(URL, json={"analysisType": "Population Data"})
    assert response.status_code == 400
    assert response.json() == {"error": "Analysis type and country are required parameters."}


def test_rejects_malformed_body(api_client):
    response = api_client.post(URL, content="{", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


def test_population_data(api_client, monkeypatch, manhattan_roi):
    seen = {}

    def fake_population(country, year, resolution, format, geojson):
        seen.update(country=country, year=year, geojson=geojson)
        return _population_result()

    monkeypatch.setattr("api.worldpop.get_population_data", fake_population)
    response = api_client.post(
        URL,
        json={
            "analysisType": "Population Data",
            "country": "USA",
            "year1": "2020",
            "selectedRoiGeometry": manhattan_roi,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert seen == {"country": "USA", "year": "2020", "geojson": manhattan_roi}
    assert data["year1"] == 2020
    assert data["year2"] is None
    assert data["data"]["data"]["population"] == 5000
    assert data["metadata"]["dataset"] == "wpgppop"
    assert data["metadata"]["dataAvailability"] == "2000-2020"


def test_url_encoded_geometry(api_client, monkeypatch, manhattan_roi):
    seen = {}

    def fake_population(country, year, resolution, format, geojson):
        seen["geojson"] = geojson
        return _population_result()

    monkeypatch.setattr("api.worldpop.get_population_data", fake_population)
    response = api_client.post(
        URL,
        json={
            "analysisType": "Population Data",
            "country": "USA",
            "year1": 2020,
            "selectedRoiGeometry": quote(json.dumps(manhattan_roi)),
        },
    )

    assert response.status_code == 200
    assert seen["geojson"] == manhattan_roi


def test_invalid_geometry_string(api_client):
    response = api_client.post(
        URL,
        json={
            "analysisType": "Population Data",
            "country": "USA",
            "year1": 2020,
            "selectedRoiGeometry": "%7Bnot-json",
        },
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid geometry JSON"}


def test_missing_geometry_uses_sample(api_client, monkeypatch):
    seen = {}

    def fake_population(country, year, resolution, format, geojson):
        seen["geojson"] = geojson
        return _population_result()

    monkeypatch.setattr("api.worldpop.get_population_data", fake_population)
    response = api_client.post(
        URL, json={"analysisType": "Population Data", "country": "GBR", "year1": 2010}
    )

    assert response.status_code == 200
    assert seen["geojson"]["type"] == "FeatureCollection"


def test_population_density_adds_primary_metric(api_client, monkeypatch):
    monkeypatch.setattr(
        "api.worldpop.get_population_data", lambda *args: _population_result(density=812.5)
    )
    response = api_client.post(
        URL, json={"analysisType": "Population Density", "country": "GBR", "year1": 2015}
    )
    data = response.json()["data"]["data"]
    assert data["analysisType"] == "Population Density"
    assert data["primaryMetric"] == 812.5


def test_age_gender_uses_age_dataset(api_client, monkeypatch):
    monkeypatch.setattr(
        "api.worldpop.get_age_gender_data", lambda *args: _population_result()
    )
    response = api_client.post(
        URL, json={"analysisType": "Age Gender Data", "country": "GBR", "year1": 2015}
    )
    assert response.status_code == 200
    assert response.json()["metadata"]["dataset"] == "wpgpas"


def test_year_is_required(api_client):
    response = api_client.post(URL, json={"analysisType": "Age Gender Data", "country": "GBR"})
    assert response.status_code == 400
    assert response.json() == {"error": "Year is required for age/gender data analysis"}


def test_year_outside_coverage(api_client):
    response = api_client.post(
        URL, json={"analysisType": "Population Data", "country": "GBR", "year1": 2023}
    )
    assert response.status_code == 400
    assert "Year must be between 2000 and 2020" in response.json()["error"]
    assert response.json()["apiInfo"]["dataAvailability"] == "2000-2020"


def test_failed_lookup(api_client, monkeypatch):
    monkeypatch.setattr(
        "api.worldpop.get_population_data",
        lambda *args: {"success": False, "error": "No population data returned from API"},
    )
    response = api_client.post(
        URL, json={"analysisType": "Population Data", "country": "GBR", "year1": 2015}
    )
    assert response.status_code == 500
    assert response.json() == {"error": "No population data returned from API"}


def test_population_change_requires_both_years(api_client):
    response = api_client.post(
        URL, json={"analysisType": "Population Change", "country": "GBR", "year1": 2010}
    )
    assert response.status_code == 400
    assert "Both year1 and year2" in response.json()["error"]


def test_population_change_year_order(api_client):
    response = api_client.post(
        URL,
        json={"analysisType": "Population Change", "country": "GBR", "year1": 2015, "year2": 2010},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Year1 must be less than Year2"}


def test_population_change(api_client, monkeypatch):
    monkeypatch.setattr(
        "api.worldpop.get_population_change",
        lambda *args: {"absoluteChange": 100, "percentageChange": 10.0},
    )
    response = api_client.post(
        URL,
        json={"analysisType": "Population Change", "country": "GBR", "year1": 2010, "year2": 2020},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["year2"] == 2020
    assert data["data"]["absoluteChange"] == 100


def test_invalid_analysis_type(api_client):
    response = api_client.post(URL, json={"analysisType": "Migration", "country": "GBR"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid analysis type. Must be one of:")


@pytest.mark.parametrize(
    "error, status_code, message",
    [
        (WorldPopError("not allowed", 405), 502, "WorldPop API method not allowed"),
        (WorldPopTaskError("Task failed: bad polygon"), 502, "WorldPop processing task failed"),
        (WorldPopError("WorldPop request timed out"), 500, "WorldPop request timed out"),
    ],
)
def test_change_failures_are_mapped(api_client, monkeypatch, error, status_code, message):
    def failing(*args):
        raise error

    monkeypatch.setattr("api.worldpop.get_population_change", failing)
    response = api_client.post(
        URL,
        json={"analysisType": "Population Change", "country": "GBR", "year1": 2010, "year2": 2020},
    )
    assert response.status_code == status_code
    assert response.json()["error"].startswith(message)


def test_multipolygon_feature_is_accepted(api_client, monkeypatch):
    monkeypatch.setattr(
        "services.data_sources.worldpop.request_json",
        lambda *args, **kwargs: {"status": "finished", "data": {"total_population": 900}},
    )
    geometry = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [
                        [[[2.30, 48.85], [2.32, 48.85], [2.32, 48.87], [2.30, 48.87], [2.30, 48.85]]],
                        [[[2.35, 48.86], [2.36, 48.86], [2.36, 48.87], [2.35, 48.87], [2.35, 48.86]]],
                    ],
                },
            }
        ],
    }
    response = api_client.post(
        URL,
        json={
            "analysisType": "Population Data",
            "country": "FRA",
            "year1": "2020",
            "selectedRoiGeometry": geometry,
        },
    )

    assert response.status_code == 200
    data = response.json()["data"]["data"]
    assert data["population"] == 900
    assert data["geospatial"]["bounds"]["east"] == pytest.approx(2.36)


def test_population_lookup_runs_off_the_event_loop(api_client, monkeypatch, manhattan_roi):
    def fake_population(country, year, resolution, format, geojson):
        # Task polling sleeps, so it must run in a worker thread without a loop
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        return _population_result()

    monkeypatch.setattr("api.worldpop.get_population_data", fake_population)
    response = api_client.post(
        URL,
        json={
            "analysisType": "Population Data",
            "country": "USA",
            "year1": "2020",
            "selectedRoiGeometry": manhattan_roi,
        },
    )
    assert response.status_code == 200
