"""Pure helpers for the Flask urban-analysis integration."""

import re
from typing import Any, Dict, List, Optional

FLASK_ANALYSIS_TYPES = [
    "Comprehensive Urban Analysis",
    "Infrastructure Analysis",
    "Demographic Analysis",
    "Real-time Urban Data",
    "Urban Planning Intelligence",
]

FLASK_KEYWORDS = [
    "infrastructure",
    "demographics",
    "real-time",
    "current",
    "recent",
    "osm",
    "openstreetmap",
    "population",
    "comprehensive",
    "urban planning",
    "satellite availability",
    "data sources",
    "amenities",
    "buildings",
    "roads",
    "land use classification",
]

# Checked in order, the first intent with a matching phrase wins
INTENT_PATTERNS: Dict[str, List[str]] = {
    "Comprehensive Urban Analysis": [
        "comprehensive analysis",
        "complete analysis",
        "full analysis",
        "urban intelligence",
        "planning analysis",
        "analyze everything",
    ],
    "Infrastructure Analysis": [
        "infrastructure",
        "buildings",
        "roads",
        "amenities",
        "facilities",
        "osm data",
        "openstreetmap",
        "built environment",
    ],
    "Demographic Analysis": [
        "demographics",
        "population",
        "people",
        "residents",
        "inhabitants",
        "population density",
        "urban population",
        "growth rate",
    ],
    "Real-time Urban Data": [
        "real-time",
        "current",
        "recent",
        "latest",
        "up-to-date",
        "live data",
        "current status",
    ],
    "Urban Heat Island (UHI) Analysis": [
        "heat island",
        "uhi",
        "temperature",
        "thermal",
        "heat",
        "urban heat",
        "surface temperature",
    ],
    "Land Use/Land Cover Maps": [
        "land cover",
        "land use",
        "landcover",
        "landuse",
        "classification",
        "mapping",
        "cover types",
    ],
    "Land Use/Land Cover Change Maps": [
        "land change",
        "change detection",
        "temporal analysis",
        "before after",
        "land cover change",
        "land use change",
        "urban growth",
    ],
}

_CITY_PATTERNS = [
    re.compile(r"(?:in|for|of|at)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)"),
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(?:city|area|region)", re.IGNORECASE),
]


def should_use_flask_api(function_type: str, user_query: Optional[str] = None) -> bool:
    if function_type in FLASK_ANALYSIS_TYPES:
        return True
    if user_query:
        query = user_query.lower()
        return any(keyword in query for keyword in FLASK_KEYWORDS)
    return False


def recognize_flask_api_intent(user_query: str) -> Optional[str]:
    query = user_query.lower()
    for intent, patterns in INTENT_PATTERNS.items():
        if any(pattern in query for pattern in patterns):
            return intent
    return None


def extract_city_from_query(user_query: str) -> Optional[str]:
    """Pull a capitalized place name out of phrases like "in Paris" or "Lagos city"."""
    for pattern in _CITY_PATTERNS:
        match = pattern.search(user_query)
        if match:
            city = re.sub(r"^(?:in|for|of|at)\s+", "", match.group(0), flags=re.IGNORECASE)
            city = re.sub(r"\s+(?:city|area|region)$", "", city, flags=re.IGNORECASE)
            return city.strip()
    return None


def _format_score(value: Any) -> str:
    if value is None:
        return "N/A"
    return f"{value:.1f}"


def create_uhi_metrics_from_flask_data(flask_data: Dict[str, Any]) -> List[Dict[str, str]]:
    urban_metrics = flask_data.get("urban_metrics")
    if not urban_metrics:
        return []

    quality = urban_metrics.get("quality_scores") or {}
    development = urban_metrics.get("development") or {}
    summary = flask_data.get("summary") or {}

    return [
        {
            "Metric": "Infrastructure Score",
            "Value": _format_score(quality.get("infrastructure_score")),
            "Unit": "score",
            "Description": (
                "Overall infrastructure density and accessibility score based on "
                "real-time OSM data."
            ),
        },
        {
            "Metric": "Environmental Score",
            "Value": _format_score(quality.get("environmental_score")),
            "Unit": "score",
            "Description": (
                "Environmental quality score including green space ratio and natural features."
            ),
        },
        {
            "Metric": "Development Pressure",
            "Value": f"{development.get('population_growth') or 0:.2f}",
            "Unit": "%/year",
            "Description": "Annual population growth rate indicating urban development pressure.",
        },
        {
            "Metric": "Data Quality Score",
            "Value": _format_score(summary.get("overall_score")),
            "Unit": "score",
            "Description": (
                "Overall data availability and quality assessment for analysis confidence."
            ),
        },
    ]


def extract_center_coordinates(geometry: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Return ``{"lat", "lon"}`` for a Polygon (vertex mean of the outer ring) or a Point."""
    if not geometry or not geometry.get("coordinates"):
        raise ValueError("Invalid geometry provided")

    if geometry.get("type") == "Polygon":
        ring = geometry["coordinates"][0]
        return {
            "lat": sum(coord[1] for coord in ring) / len(ring),
            "lon": sum(coord[0] for coord in ring) / len(ring),
        }
    if geometry.get("type") == "Point":
        return {"lat": geometry["coordinates"][1], "lon": geometry["coordinates"][0]}

    raise ValueError("Unsupported geometry type")


def _feature_count(osm_data: Dict[str, Any], key: str) -> float:
    return (osm_data.get("feature_counts") or {}).get(key) or 0


def _indicator(demographic_data: Dict[str, Any], key: str) -> float:
    return ((demographic_data.get("indicators") or {}).get(key) or {}).get("value") or 0


def calculate_impervious_surface_ratio(osm_data: Dict[str, Any]) -> float:
    buildings = _feature_count(osm_data, "buildings")
    roads = _feature_count(osm_data, "highways")
    total = osm_data.get("total_features") or 1
    return (buildings + roads) / total * 100


def calculate_heat_vulnerability_score(
    osm_data: Dict[str, Any], demographic_data: Dict[str, Any]
) -> float:
    building_density = _feature_count(osm_data, "buildings")
    green_space = _feature_count(osm_data, "natural_features")
    population_density = _indicator(demographic_data, "population_density")

    building_factor = min(building_density / 100, 1) * 40
    green_factor = max(0, 30 - green_space * 2)
    population_factor = min(population_density / 500, 1) * 30
    return building_factor + green_factor + population_factor


def calculate_urban_expansion_pressure(
    demographic_data: Dict[str, Any], osm_data: Dict[str, Any]
) -> float:
    growth_rate = _indicator(demographic_data, "population_growth_rate")
    urban_percent = _indicator(demographic_data, "urban_population_percent")
    current_density = _feature_count(osm_data, "buildings")
    return growth_rate * 10 + urban_percent / 10 + current_density / 50


def calculate_development_intensity(osm_data: Dict[str, Any]) -> float:
    buildings = _feature_count(osm_data, "buildings")
    amenities = _feature_count(osm_data, "amenities")
    shops = _feature_count(osm_data, "shops")
    return buildings + amenities * 2 + shops * 1.5


def calculate_temporal_coverage(sat_data1: Dict[str, Any], sat_data2: Dict[str, Any]) -> str:
    total = (sat_data1.get("total_images") or 0) + (sat_data2.get("total_images") or 0)
    if total > 100:
        return "excellent"
    if total > 50:
        return "good"
    if total > 20:
        return "moderate"
    return "limited"


def calculate_analysis_confidence(
    sat_data1: Dict[str, Any], sat_data2: Dict[str, Any], osm_data: Dict[str, Any]
) -> float:
    sat_quality = ((sat_data1.get("total_images") or 0) + (sat_data2.get("total_images") or 0)) / 100
    osm_quality = 1 if (osm_data.get("data_quality") or {}).get("completeness") == "high" else 0.5
    cloud_average = (sat_data1.get("cloud_coverage") or {}).get("average") or 50
    cloud_quality = 1 - cloud_average / 100
    return min((sat_quality + osm_quality + cloud_quality) / 3 * 100, 100)


def get_growth_pressure_level(growth_rate: float) -> str:
    if growth_rate > 2:
        return "high"
    if growth_rate > 1:
        return "moderate"
    if growth_rate > 0:
        return "low"
    return "declining"
