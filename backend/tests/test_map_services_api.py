import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.errors import EsriError


@pytest.fixture
def api_client():
    from api.map_services import router as map_services_router

    app = FastAPI()
    app.include_router(map_services_router)
    return TestClient(app)


def test_satellite_tile_without_key(api_client):
    response = api_client.get("/services/google-maps/basemaps/satellite?x=1&y=2&z=3")
    assert response.status_code == 500
    assert response.json() == {"error": "API key is not configured"}


def test_satellite_tile_missing_parameters(api_client, monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "maps-key")
    response = api_client.get("/services/google-maps/basemaps/satellite?x=1&y=2")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing parameters"}


def test_satellite_tile_redirects_to_google(api_client, monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "maps-key")
    response = api_client.get(
        "/services/google-maps/basemaps/satellite?x=10&y=20&z=5", follow_redirects=False
    )
    assert response.status_code == 307
    assert response.headers["location"] == (
        "https://maps.googleapis.com/maps/vt?lyrs=s&x=10&y=20&z=5&key=maps-key"
    )


def test_satellite_tile_encodes_coordinates(api_client, monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "maps-key")
    response = api_client.get(
        "/services/google-maps/basemaps/satellite",
        params={"x": "1&key=other", "y": "2", "z": "3 4"},
        follow_redirects=False,
    )
    assert response.status_code == 307
    assert response.headers["location"] == (
        "https://maps.googleapis.com/maps/vt?lyrs=s&x=1%26key%3Dother&y=2&z=3+4&key=maps-key"
    )


def test_layers_list_requires_arcgis_token(api_client):
    response = api_client.get("/services/esri/fetch-layers-list")
    assert response.status_code == 401
    assert "authenticate with ArcGIS" in response.json()["error"]


def test_layers_list_returns_search_result(api_client, monkeypatch):
    seen = {}

    def fake_fetch(token):
        seen["token"] = token
        return {"total": 1, "results": [{"title": "Parcels"}]}

    monkeypatch.setattr("api.map_services.fetch_feature_services", fake_fetch)
    api_client.cookies.set("arcgis_access_token", "token-abc")

    response = api_client.get("/services/esri/fetch-layers-list")

    assert response.status_code == 200
    assert response.json()["results"][0]["title"] == "Parcels"
    assert seen["token"] == "token-abc"


def test_layers_list_arcgis_failure(api_client, monkeypatch):
    def fake_fetch(token):
        raise EsriError("Organization ID not found in portal data")

    monkeypatch.setattr("api.map_services.fetch_feature_services", fake_fetch)
    api_client.cookies.set("arcgis_access_token", "token-abc")

    response = api_client.get("/services/esri/fetch-layers-list")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to retrieve services or organization information"}
