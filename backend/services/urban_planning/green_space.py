"""
Green infrastructure analyses.

Land cover shares come from Dynamic World, vegetation indices from Sentinel-2
and, where OpenWeatherMap is configured, current conditions from the weather
service. Every analysis looks at the 12 months ending on ``today``.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.errors import MissingApiKeyError, WeatherServiceError
from services.data_sources.weather import OpenWeatherMapService, calculate_heat_stress_index
from services.gee.dynamic_world import class_coverage, green_space_percentage
from services.gee.vegetation import VEGETATION_INDICES, mean_vegetation_index

logger = logging.getLogger(__name__)

ANALYSIS_WINDOW_DAYS = 365
TARGET_GREEN_SPACE_PERCENT = 30.0
TARGET_CANOPY_PERCENT = 30.0
# Change in mean index between two years that counts as a trend
TREND_THRESHOLD = 0.02
HOT_TEMPERATURE_C = 30

WEATHER_UNAVAILABLE = {
    "status": "Weather data unavailable - API not configured",
    "fallback": "Using climate-neutral analysis",
}

HEAT_STRESS_INDICATORS = [
    "High temperature stress on vegetation",
    "Increased irrigation requirements",
    "Risk of heat damage to sensitive species",
]

MITIGATION_STRATEGIES: Dict[str, Dict[str, Any]] = {
    "Tree Planting": {
        "interventions": [
            {
                "type": "Strategic Tree Planting",
                "focus": "Streets and open spaces with the lowest canopy share",
                "temperatureReduction": "2-4°C in shaded areas",
                "maturityTime": "15-20 years for significant cooling",
            },
            {
                "type": "Community Tree Program",
                "focus": "Subsidized trees for private property owners",
                "temperatureReduction": "1-2°C in residential areas",
            },
        ],
        "cobenefits": ["Carbon sequestration", "Stormwater interception", "Habitat"],
    },
    "Green Roofs": {
        "interventions": [
            {
                "type": "Commercial Green Roof Initiative",
                "focus": "Large flat-roofed commercial buildings",
                "temperatureReduction": "1-3°C building surface temperature",
            }
        ],
        "cobenefits": ["25-30% cooling cost reduction", "60% runoff reduction"],
    },
    "Urban Parks": {
        "interventions": [
            {
                "type": "Cool Zone Parks",
                "focus": "High heat zones with limited green space",
                "temperatureReduction": "3-5°C within parks",
                "coolingRadius": "200-300 meters",
            }
        ],
        "cobenefits": ["Recreation", "Property values", "Biodiversity"],
    },
    "Cool Pavements": {
        "interventions": [
            {
                "type": "Reflective Pavement Program",
                "focus": "Roads and parking lots",
                "temperatureReduction": "1-2°C ambient, 8-15°C surface",
            }
        ],
        "cobenefits": ["Longer pavement life", "Improved nighttime visibility"],
    },
    "Shade Structures": {
        "interventions": [
            {
                "type": "Public Space Shade Installation",
                "focus": "Bus stops, playgrounds, transit stations and markets",
                "temperatureReduction": "5-8°C under structures",
            }
        ],
        "cobenefits": ["Immediate relief for pedestrians", "Solar generation on canopies"],
    },
}
DEFAULT_STRATEGY = "Tree Planting"


def analysis_period(today: Optional[date] = None, years_back: int = 0) -> Tuple[str, str]:
    """ISO start and end dates of a 12 month window ``years_back`` years before ``today``."""
    end = (today or date.today()) - timedelta(days=ANALYSIS_WINDOW_DAYS * years_back)
    start = end - timedelta(days=ANALYSIS_WINDOW_DAYS)
    return start.isoformat(), end.isoformat()


def get_health_status(value: Optional[float]) -> str:
    if value is None:
        return "Unknown"
    if value > 0.6:
        return "Excellent"
    if value > 0.45:
        return "Good"
    if value > 0.3:
        return "Fair"
    if value > 0.15:
        return "Poor"
    return "Very Poor"


def vegetation_density(green_percent: float) -> str:
    if green_percent > 40:
        return "High"
    if green_percent > 20:
        return "Medium"
    return "Low"


def heat_island_intensity(coverage: Mapping[str, float]) -> float:
    """Estimated °C above rural surroundings; built-up area warms, trees cool."""
    intensity = coverage.get("Built Area", 0.0) * 0.05 - coverage.get("Trees", 0.0) * 0.03
    return round(max(0.0, intensity), 1)


def _percent(value: float) -> str:
    return f"{value:.1f}%"


def _fetch_weather(geometry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Current weather and climate assessment at the ROI, or None when unavailable."""
    try:
        service = OpenWeatherMapService()
    except MissingApiKeyError:
        logger.info("OpenWeatherMap not configured, skipping weather integration")
        return None

    try:
        region = service.get_weather_for_region(geometry)
        climate = service.analyze_climate_for_green_infrastructure(geometry, region)
    except WeatherServiceError as e:
        logger.warning(f"Weather integration failed: {e}")
        return None

    current = region["centerWeather"]
    logger.info(f"Weather integrated: {current['description']}, {current['temperature']}°C")
    return {"current": current, "climate": climate}


def _weather_integration(weather: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if weather is None:
        return dict(WEATHER_UNAVAILABLE)

    current = weather["current"]
    return {
        "currentConditions": {
            "temperature": f"{current['temperature']}°C",
            "humidity": f"{current['humidity']}%",
            "conditions": current["description"],
            "windSpeed": f"{current['windSpeed']} m/s",
        },
        "climateRecommendations": weather["climate"]["recommendations"],
        "heatStressIndicators": (
            list(HEAT_STRESS_INDICATORS) if current["temperature"] > HOT_TEMPERATURE_C else []
        ),
        "dataSource": "OpenWeatherMap API",
    }


def _vegetation_index_summary(index: str, value: Optional[float]) -> Dict[str, Any]:
    definition = VEGETATION_INDICES[index]
    low, high = definition["range"]
    return {
        "type": index,
        "averageValue": value,
        "range": f"{low} to {high}",
        "interpretation": definition["interpretation"],
    }


def _coverage_metrics(coverage: Mapping[str, float], index_value: Optional[float]) -> Dict[str, Any]:
    green = green_space_percentage(coverage)
    return {
        "totalGreenSpace": _percent(green),
        "treeCanopyCover": _percent(coverage.get("Trees", 0.0)),
        "grasslands": _percent(coverage.get("Grass", 0.0)),
        "shrublands": _percent(coverage.get("Shrub & Scrub", 0.0)),
        "vegetationDensity": vegetation_density(green),
        "vegetationHealth": get_health_status(index_value),
    }


def _temperature_profile(
    coverage: Mapping[str, float], weather: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    current = weather["current"] if weather else None
    return {
        "currentTemperature": current["temperature"] if current else None,
        "heatIslandIntensity": f"{heat_island_intensity(coverage)}°C",
        "builtAreaShare": _percent(coverage.get("Built Area", 0.0)),
        "treeShare": _percent(coverage.get("Trees", 0.0)),
        "waterShare": _percent(coverage.get("Water", 0.0)),
        "heatStress": (
            calculate_heat_stress_index(current["temperature"], current["humidity"])
            if current
            else None
        ),
    }


def analyze_green_space_coverage(
    geometry: Dict[str, Any], vegetation_index: str = "NDVI", today: Optional[date] = None
) -> Dict[str, Any]:
    start, end = analysis_period(today)
    coverage = class_coverage(geometry, start, end)
    index_value = mean_vegetation_index(geometry, start, end, vegetation_index)
    weather = _fetch_weather(geometry)

    green = green_space_percentage(coverage)
    deficit = TARGET_GREEN_SPACE_PERCENT - green
    return {
        "overallMetrics": _coverage_metrics(coverage, index_value),
        "landCover": coverage,
        "vegetationIndex": _vegetation_index_summary(vegetation_index, index_value),
        "weatherIntegration": _weather_integration(weather),
        "summary": {
            "currentCoverage": _percent(green),
            "targetCoverage": "30% (WHO recommendation)",
            "gap": f"{deficit:.1f}% deficit" if deficit > 0 else "Target met",
            "priority": (
                "Increase green space in dense built-up areas"
                if deficit > 0
                else "Protect and maintain existing green space"
            ),
        },
    }


def analyze_urban_heat_island(
    geometry: Dict[str, Any], today: Optional[date] = None
) -> Dict[str, Any]:
    start, end = analysis_period(today)
    coverage = class_coverage(geometry, start, end)
    weather = _fetch_weather(geometry)

    intensity = heat_island_intensity(coverage)
    if intensity > 2:
        priority = "High"
    elif intensity > 1:
        priority = "Medium"
    else:
        priority = "Low"

    profile = _temperature_profile(coverage, weather)
    return {
        "temperatureProfile": profile,
        "weatherIntegration": _weather_integration(weather),
        "summary": {
            "heatIslandIntensity": profile["heatIslandIntensity"],
            "heatStressLevel": profile["heatStress"]["level"] if profile["heatStress"] else None,
            "builtAreaShare": profile["builtAreaShare"],
            "mitigationPriority": priority,
        },
    }


def analyze_tree_canopy(geometry: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    start, end = analysis_period(today)
    coverage = class_coverage(geometry, start, end)

    canopy = coverage.get("Trees", 0.0)
    deficit = max(0.0, TARGET_CANOPY_PERCENT - canopy)
    return {
        "canopyMetrics": {
            "totalCanopyCover": _percent(canopy),
            "canopyTarget": _percent(TARGET_CANOPY_PERCENT),
            "deficit": _percent(deficit),
            "plantableArea": _percent(coverage.get("Grass", 0.0) + coverage.get("Bare Ground", 0.0)),
        },
        "landCover": coverage,
        "summary": {
            "currentCanopy": _percent(canopy),
            "targetCanopy": _percent(TARGET_CANOPY_PERCENT),
            "deficit": _percent(deficit),
        },
    }


def develop_heat_mitigation_plan(
    geometry: Dict[str, Any],
    strategy: Optional[str] = None,
    vegetation_index: str = "NDVI",
    today: Optional[date] = None,
) -> Dict[str, Any]:
    strategy = strategy or DEFAULT_STRATEGY
    logger.info(f"Developing heat mitigation plan focused on {strategy}")

    start, end = analysis_period(today)
    coverage = class_coverage(geometry, start, end)
    index_value = mean_vegetation_index(geometry, start, end, vegetation_index)
    weather = _fetch_weather(geometry)

    intensity = heat_island_intensity(coverage)
    implementation = MITIGATION_STRATEGIES.get(strategy, MITIGATION_STRATEGIES[DEFAULT_STRATEGY])
    return {
        "strategy": strategy,
        "heatIslandData": _temperature_profile(coverage, weather),
        "currentVegetation": _coverage_metrics(coverage, index_value),
        "implementation": implementation,
        "summary": {
            "strategy": strategy,
            "heatIslandIntensity": f"{intensity}°C",
            "interventions": [item["type"] for item in implementation["interventions"]],
        },
    }


def _health_alerts(index: str, value: Optional[float]) -> List[Dict[str, Any]]:
    threshold = VEGETATION_INDICES[index]["stressThreshold"]
    if value is None or value >= threshold:
        return []
    return [
        {
            "type": "Vegetation Stress",
            "severity": "High" if value < threshold - 0.1 else "Medium",
            "message": f"Mean {index} {value} is below the stress threshold of {threshold}",
            "recommendation": "Investigate irrigation, pests and recent land clearing",
        }
    ]


def monitor_vegetation_health(
    geometry: Dict[str, Any],
    vegetation_index: str = "NDVI",
    seasonal_comparison: str = "Annual Trend",
    today: Optional[date] = None,
) -> Dict[str, Any]:
    logger.info(
        f"Monitoring vegetation health using {vegetation_index} with {seasonal_comparison}"
    )
    current_period = analysis_period(today)
    previous_period = analysis_period(today, years_back=1)
    current = mean_vegetation_index(geometry, *current_period, vegetation_index)
    previous = mean_vegetation_index(geometry, *previous_period, vegetation_index)

    if current is None or previous is None:
        trend = "insufficient data"
        change = None
    else:
        change = round(current - previous, 4)
        if change > TREND_THRESHOLD:
            trend = "improving"
        elif change < -TREND_THRESHOLD:
            trend = "declining"
        else:
            trend = "stable"

    alerts = _health_alerts(vegetation_index, current)
    return {
        "timeSeriesAnalysis": [
            {"start": previous_period[0], "end": previous_period[1], "value": previous},
            {"start": current_period[0], "end": current_period[1], "value": current},
        ],
        "currentStatus": {
            "overallHealth": get_health_status(current),
            "indexValue": current,
            "change": change,
            "trendDirection": trend,
        },
        "alertSystem": {
            "activeAlerts": alerts,
            "stressThreshold": VEGETATION_INDICES[vegetation_index]["stressThreshold"],
        },
        "summary": {
            "overallHealth": get_health_status(current),
            "trend": trend,
            "activeAlerts": len(alerts),
            "monitoring": "Monthly analysis recommended",
        },
    }


def run_green_space_analysis(
    analysis_type: str,
    geometry: Dict[str, Any],
    vegetation_index: Optional[str] = None,
    seasonal_comparison: Optional[str] = None,
    heat_mitigation_strategy: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    vegetation_index = vegetation_index or "NDVI"
    if analysis_type == "Green Space Coverage Assessment":
        return analyze_green_space_coverage(geometry, vegetation_index, today)
    if analysis_type == "Urban Heat Island Mapping":
        return analyze_urban_heat_island(geometry, today)
    if analysis_type == "Tree Canopy Analysis":
        return analyze_tree_canopy(geometry, today)
    if analysis_type == "Heat Mitigation Planning":
        return develop_heat_mitigation_plan(
            geometry, heat_mitigation_strategy, vegetation_index, today
        )
    if analysis_type == "Vegetation Health Monitoring":
        return monitor_vegetation_health(
            geometry, vegetation_index, seasonal_comparison or "Annual Trend", today
        )
    raise ValueError(f"Unsupported green space analysis type: {analysis_type}")
