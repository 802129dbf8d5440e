from datetime import date

import pytest

from core.errors import WeatherServiceError
from services.urban_planning import green_space
from services.urban_planning.green_space import (
    WEATHER_UNAVAILABLE,
    analysis_period,
    get_health_status,
    heat_island_intensity,
    run_green_space_analysis,
    vegetation_density,
)

TODAY = date(2025, 6, 30)

COVERAGE = {
    "Water": 3.0,
    "Trees": 10.0,
    "Grass": 5.0,
    "Flooded Vegetation": 0.0,
    "Crops": 0.0,
    "Shrub & Scrub": 2.0,
    "Built Area": 76.0,
    "Bare Ground": 4.0,
    "Snow & Ice": 0.0,
}

CURRENT_WEATHER = {
    "temperature": 33.0,
    "humidity": 50,
    "pressure": 1010,
    "windSpeed": 3.0,
    "windDirection": 90,
    "cloudCover": 0,
    "visibility": 10000,
    "weatherCondition": "Clear",
    "description": "clear sky",
}


class FakeWeatherService:
    def get_weather_for_region(self, geometry):
        return {"centerWeather": dict(CURRENT_WEATHER), "forecast": {"forecasts": []}}

    def analyze_climate_for_green_infrastructure(self, geometry, region_weather=None):
        assert region_weather is not None
        return {"suitability": "Good", "recommendations": ["Consider shade trees"]}


class FailingWeatherService(FakeWeatherService):
    def get_weather_for_region(self, geometry):
        raise WeatherServiceError("OpenWeatherMap API error: 500 Internal Server Error", 500)


@pytest.fixture
def earth_engine(monkeypatch):
    """Replace the Earth Engine lookups with fixed values and record their periods."""
    calls = []

    def fake_coverage(geometry, start, end):
        calls.append(("coverage", start, end))
        return dict(COVERAGE)

    def fake_index(geometry, start, end, index="NDVI"):
        calls.append((index, start, end))
        return 0.42 if start.startswith("2024") else 0.5

    monkeypatch.setattr("services.urban_planning.green_space.class_coverage", fake_coverage)
    monkeypatch.setattr("services.urban_planning.green_space.mean_vegetation_index", fake_index)
    return calls


def test_analysis_period():
    assert analysis_period(TODAY) == ("2024-06-30", "2025-06-30")
    assert analysis_period(TODAY, years_back=1) == ("2023-07-01", "2024-06-30")


@pytest.mark.parametrize(
    "value, status",
    [(None, "Unknown"), (0.7, "Excellent"), (0.5, "Good"), (0.35, "Fair"), (0.2, "Poor"), (0.1, "Very Poor")],
)
def test_health_status(value, status):
    assert get_health_status(value) == status


@pytest.mark.parametrize("green, density", [(45, "High"), (25, "Medium"), (20, "Low")])
def test_vegetation_density(green, density):
    assert vegetation_density(green) == density


def test_heat_island_intensity():
    assert heat_island_intensity(COVERAGE) == 3.5
    assert heat_island_intensity({"Trees": 50.0, "Built Area": 10.0}) == 0.0


def test_coverage_assessment_without_weather(earth_engine, manhattan_roi):
    result = run_green_space_analysis(
        "Green Space Coverage Assessment", manhattan_roi, "EVI", today=TODAY
    )

    assert ("coverage", "2024-06-30", "2025-06-30") in earth_engine
    assert ("EVI", "2024-06-30", "2025-06-30") in earth_engine
    metrics = result["overallMetrics"]
    assert metrics["totalGreenSpace"] == "17.0%"
    assert metrics["treeCanopyCover"] == "10.0%"
    assert metrics["vegetationDensity"] == "Low"
    assert metrics["vegetationHealth"] == "Fair"
    assert result["vegetationIndex"]["type"] == "EVI"
    assert result["vegetationIndex"]["averageValue"] == 0.42
    assert result["weatherIntegration"] == WEATHER_UNAVAILABLE
    assert result["summary"]["gap"] == "13.0% deficit"


def test_coverage_assessment_with_weather(earth_engine, manhattan_roi, monkeypatch):
    monkeypatch.setattr(
        "services.urban_planning.green_space.OpenWeatherMapService", FakeWeatherService
    )
    result = run_green_space_analysis("Green Space Coverage Assessment", manhattan_roi, today=TODAY)

    weather = result["weatherIntegration"]
    assert weather["currentConditions"]["temperature"] == "33.0°C"
    assert weather["climateRecommendations"] == ["Consider shade trees"]
    assert weather["heatStressIndicators"] == green_space.HEAT_STRESS_INDICATORS
    assert weather["dataSource"] == "OpenWeatherMap API"


def test_weather_failure_is_not_fatal(earth_engine, manhattan_roi, monkeypatch):
    monkeypatch.setattr(
        "services.urban_planning.green_space.OpenWeatherMapService", FailingWeatherService
    )
    result = run_green_space_analysis("Green Space Coverage Assessment", manhattan_roi, today=TODAY)
    assert result["weatherIntegration"] == WEATHER_UNAVAILABLE


def test_urban_heat_island(earth_engine, manhattan_roi, monkeypatch):
    monkeypatch.setattr(
        "services.urban_planning.green_space.OpenWeatherMapService", FakeWeatherService
    )
    result = run_green_space_analysis("Urban Heat Island Mapping", manhattan_roi, today=TODAY)

    profile = result["temperatureProfile"]
    assert profile["heatIslandIntensity"] == "3.5°C"
    assert profile["builtAreaShare"] == "76.0%"
    assert profile["currentTemperature"] == 33.0
    # 33 + 0.5 * (50 - 40)
    assert profile["heatStress"]["level"] == "Very High"
    assert result["summary"]["mitigationPriority"] == "High"


def test_urban_heat_island_without_weather(earth_engine, manhattan_roi):
    result = run_green_space_analysis("Urban Heat Island Mapping", manhattan_roi, today=TODAY)
    assert result["temperatureProfile"]["heatStress"] is None
    assert result["summary"]["heatStressLevel"] is None


def test_tree_canopy(earth_engine, manhattan_roi):
    result = run_green_space_analysis("Tree Canopy Analysis", manhattan_roi, today=TODAY)
    assert result["canopyMetrics"] == {
        "totalCanopyCover": "10.0%",
        "canopyTarget": "30.0%",
        "deficit": "20.0%",
        "plantableArea": "9.0%",
    }


def test_heat_mitigation_plan(earth_engine, manhattan_roi):
    result = run_green_space_analysis(
        "Heat Mitigation Planning",
        manhattan_roi,
        heat_mitigation_strategy="Cool Pavements",
        today=TODAY,
    )
    assert result["strategy"] == "Cool Pavements"
    assert result["summary"]["interventions"] == ["Reflective Pavement Program"]
    assert result["currentVegetation"]["vegetationHealth"] == "Fair"


def test_heat_mitigation_defaults_to_tree_planting(earth_engine, manhattan_roi):
    result = run_green_space_analysis("Heat Mitigation Planning", manhattan_roi, today=TODAY)
    assert result["strategy"] == "Tree Planting"
    assert len(result["implementation"]["interventions"]) == 2


def test_vegetation_health_compares_two_years(earth_engine, manhattan_roi):
    result = run_green_space_analysis(
        "Vegetation Health Monitoring", manhattan_roi, "NDVI", today=TODAY
    )

    previous, current = result["timeSeriesAnalysis"]
    assert previous == {"start": "2023-07-01", "end": "2024-06-30", "value": 0.5}
    assert current == {"start": "2024-06-30", "end": "2025-06-30", "value": 0.42}
    status = result["currentStatus"]
    assert status["change"] == -0.08
    assert status["trendDirection"] == "declining"
    assert result["alertSystem"]["activeAlerts"] == []


def test_vegetation_health_raises_stress_alert(monkeypatch, manhattan_roi):
    monkeypatch.setattr(
        "services.urban_planning.green_space.mean_vegetation_index",
        lambda geometry, start, end, index: 0.15,
    )
    result = run_green_space_analysis("Vegetation Health Monitoring", manhattan_roi, today=TODAY)

    assert result["currentStatus"]["trendDirection"] == "stable"
    (alert,) = result["alertSystem"]["activeAlerts"]
    assert alert["severity"] == "High"
    assert result["summary"]["activeAlerts"] == 1


def test_vegetation_health_without_imagery(monkeypatch, manhattan_roi):
    monkeypatch.setattr(
        "services.urban_planning.green_space.mean_vegetation_index",
        lambda geometry, start, end, index: None,
    )
    result = run_green_space_analysis("Vegetation Health Monitoring", manhattan_roi, today=TODAY)
    assert result["currentStatus"]["trendDirection"] == "insufficient data"
    assert result["currentStatus"]["overallHealth"] == "Unknown"


def test_unknown_analysis_type(manhattan_roi):
    with pytest.raises(ValueError, match="Unsupported green space analysis type"):
        run_green_space_analysis("Flood Risk", manhattan_roi)
