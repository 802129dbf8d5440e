import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def api_client():
    from api.urban_planning import router as urban_planning_router

    app = FastAPI()
    app.include_router(urban_planning_router)
    return TestClient(app)


@pytest.fixture
def green_space_body(manhattan_roi):
    return {
        "analysisType": "Tree Canopy Analysis",
        "vegetationIndex": "SAVI",
        "selectedRoiGeometry": manhattan_roi,
    }


@pytest.fixture
def infrastructure_body(manhattan_roi):
    return {
        "analysisType": "Traffic Congestion Hotspots",
        "infrastructureType": "Roads and Highways",
        "selectedRoiGeometry": manhattan_roi,
    }


def test_green_space_envelope(api_client, green_space_body, monkeypatch, manhattan_roi):
    seen = {}

    def fake_analysis(analysis_type, geometry, vegetation_index, seasonal, strategy):
        seen.update(analysis_type=analysis_type, geometry=geometry, index=vegetation_index)
        return {"canopyMetrics": {"totalCanopyCover": "12.0%"}, "summary": {}}

    monkeypatch.setattr("api.urban_planning.run_green_space_analysis", fake_analysis)
    response = api_client.post(
        "/urban-planning/request-green-space-analysis", json=green_space_body
    )

    assert response.status_code == 200
    data = response.json()
    assert seen == {
        "analysis_type": "Tree Canopy Analysis",
        "geometry": manhattan_roi,
        "index": "SAVI",
    }
    assert data["success"] is True
    assert data["analysisType"] == "Tree Canopy Analysis"
    assert data["vegetationIndex"] == "SAVI"
    assert data["seasonalComparison"] == "Annual Trend"
    assert data["apiStatus"] == {"openWeatherMap": False, "googleEarthEngine": True}
    assert data["canopyMetrics"]["totalCanopyCover"] == "12.0%"


@pytest.mark.parametrize(
    "changes",
    [
        {"analysisType": "Flood Risk Assessment"},
        {"vegetationIndex": "GNDVI"},
        {"selectedRoiGeometry": None},
    ],
)
def test_green_space_invalid_input(api_client, green_space_body, changes):
    green_space_body.update(changes)
    response = api_client.post(
        "/urban-planning/request-green-space-analysis", json=green_space_body
    )
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Invalid input parameters"
    assert data["details"]


def test_green_space_malformed_json(api_client):
    response = api_client.post(
        "/urban-planning/request-green-space-analysis",
        content="{",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid input parameters"


def test_green_space_earth_engine_failure(api_client, green_space_body):
    # Without GCP_SERVICE_ACCOUNT_KEY, Earth Engine authentication fails
    response = api_client.post(
        "/urban-planning/request-green-space-analysis", json=green_space_body
    )
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Failed to perform green space analysis"
    assert "GCP_SERVICE_ACCOUNT_KEY" in data["details"]


def test_infrastructure_without_tomtom_key(api_client, infrastructure_body):
    response = api_client.post(
        "/urban-planning/request-infrastructure-analysis", json=infrastructure_body
    )
    assert response.status_code == 500
    data = response.json()
    assert data == {
        "success": False,
        "error": "Failed to perform infrastructure analysis",
        "details": "TOMTOM_API_KEY is not configured",
    }


def test_infrastructure_envelope(api_client, infrastructure_body, monkeypatch):
    monkeypatch.setenv("TOMTOM_API_KEY", "tt-key")
    monkeypatch.setattr(
        "api.urban_planning.run_infrastructure_analysis",
        lambda analysis_type, geometry: {"congestionHotspots": [], "overallCongestionScore": 3},
    )

    response = api_client.post(
        "/urban-planning/request-infrastructure-analysis", json=infrastructure_body
    )

    assert response.status_code == 200
    data = response.json()
    assert data["infrastructureType"] == "Roads and Highways"
    assert data["apiStatus"] == {
        "tomtomTraffic": True,
        "openWeatherMap": False,
        "openStreetMap": True,
    }
    assert data["overallCongestionScore"] == 3


def test_infrastructure_requires_type(api_client, infrastructure_body):
    del infrastructure_body["infrastructureType"]
    response = api_client.post(
        "/urban-planning/request-infrastructure-analysis", json=infrastructure_body
    )
    assert response.status_code == 400


def test_green_space_fails_when_land_cover_is_empty(api_client, green_space_body, monkeypatch):
    monkeypatch.setattr("services.gee.dynamic_world.gee_authenticate", lambda: None)
    monkeypatch.setattr("services.gee.dynamic_world.to_ee_geometry", lambda geometry: "region")
    monkeypatch.setattr(
        "services.gee.dynamic_world._land_cover_image", lambda region, start, end: "image"
    )
    monkeypatch.setattr("services.gee.dynamic_world._class_histogram", lambda image, region: {})

    response = api_client.post(
        "/urban-planning/request-green-space-analysis", json=green_space_body
    )

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Failed to perform green space analysis"
    assert "No Dynamic World land cover data" in data["details"]


def test_infrastructure_analysis_runs_off_the_event_loop(
    api_client, infrastructure_body, monkeypatch
):
    def fake_analysis(analysis_type, geometry):
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        return {"congestionHotspots": [], "overallCongestionScore": 3}

    monkeypatch.setattr("api.urban_planning.run_infrastructure_analysis", fake_analysis)
    response = api_client.post(
        "/urban-planning/request-infrastructure-analysis", json=infrastructure_body
    )
    assert response.status_code == 200
