"""Client for the Flask urban-analysis sidecar and the analyses built on it."""

import logging
from typing import Any, Dict

from core.config import FLASK_API_BASE_URL
from core.errors import FlaskAPIError
from services.data_sources.http_client import request_json
from services.flask_api.utils import (
    calculate_analysis_confidence,
    calculate_development_intensity,
    calculate_heat_vulnerability_score,
    calculate_impervious_surface_ratio,
    calculate_temporal_coverage,
    calculate_urban_expansion_pressure,
    extract_center_coordinates,
    get_growth_pressure_level,
)

logger = logging.getLogger(__name__)

URBAN_LEGEND = {
    "labelNames": ["Infrastructure", "Environment", "Development", "Data Quality"],
    "palette": ["#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4"],
}

LAND_COVER_LEGEND = {
    "labelNames": ["Residential", "Commercial", "Industrial", "Green Space", "Retail", "Other"],
    "palette": ["#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD"],
}

LAND_CHANGE_LEGEND = {
    "labelNames": ["No Change", "Urban Expansion", "Infrastructure Growth", "Green Space Loss"],
    "palette": ["#90EE90", "#FFD700", "#FF6347", "#8B0000"],
}


def make_flask_api_request(endpoint: str, data: Dict[str, Any]) -> Dict[str, Any]:
    url = f"{FLASK_API_BASE_URL}{endpoint}"
    logger.info(f"Flask API request to {url}")
    logger.debug(f"Flask API request data: {data}")
    result = request_json("POST", url, error_cls=FlaskAPIError, json=data)
    logger.debug(f"Flask API response: {result}")
    return result


def geocode_city(city_name: str) -> Dict[str, Any]:
    return make_flask_api_request("/api/geocode", {"city": city_name})


def get_osm_data(lat: float, lon: float, bbox_size: float = 0.05) -> Dict[str, Any]:
    return make_flask_api_request("/api/osm-data", {"lat": lat, "lon": lon, "bbox_size": bbox_size})


def get_satellite_data(
    lat: float, lon: float, time_range: str = "2years", cloud_cover: int = 30
) -> Dict[str, Any]:
    return make_flask_api_request(
        "/api/satellite-data",
        {"lat": lat, "lon": lon, "time_range": time_range, "cloud_cover": cloud_cover},
    )


def get_demographic_data(country_code: str) -> Dict[str, Any]:
    return make_flask_api_request("/api/demographic-data", {"country_code": country_code})


def _section(data: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    for key in keys:
        data = data.get(key) or {}
    return data


def comprehensive_urban_analysis(
    city: str, time_range: str = "2years", cloud_cover: int = 25, bbox_size: float = 0.05
) -> Dict[str, Any]:
    """Run the sidecar's full urban analysis and flatten its metrics into ``mapStats``."""
    response = make_flask_api_request(
        "/api/analyze",
        {"city": city, "time_range": time_range, "cloud_cover": cloud_cover, "bbox_size": bbox_size},
    )
    if response.get("status") != "success":
        raise FlaskAPIError(f"Analysis failed: {response.get('error') or 'Unknown error'}")

    urban_metrics = response.get("urban_metrics") or {}
    quality = _section(urban_metrics, "quality_scores")
    infrastructure = _section(urban_metrics, "infrastructure")
    development = _section(urban_metrics, "development")
    environment = _section(urban_metrics, "environment")
    availability = _section(urban_metrics, "data_availability")
    location = response.get("location") or {}

    map_stats = {
        "infrastructure_score": quality.get("infrastructure_score") or 0,
        "satellite_quality_score": quality.get("satellite_quality_score") or 0,
        "environmental_score": quality.get("environmental_score") or 0,
        "overall_score": quality.get("overall_score") or 0,
        "building_density": infrastructure.get("building_density") or 0,
        "road_network_density": infrastructure.get("road_network_density") or 0,
        "amenity_accessibility": infrastructure.get("amenity_accessibility") or 0,
        "population_density": development.get("population_density") or 0,
        "urbanization_rate": development.get("urbanization_rate") or 0,
        "satellite_coverage": development.get("satellite_coverage") or 0,
        "green_space_ratio": environment.get("green_space_ratio") or 0,
        "natural_features_count": environment.get("natural_features_count") or 0,
        "osm_data_available": availability.get("osm_data") or False,
        "satellite_data_available": availability.get("satellite_data") or False,
        "demographic_data_available": availability.get("demographic_data") or False,
    }

    return {
        "mapStats": map_stats,
        "insights": response.get("insights") or [],
        "summary": response.get("summary") or {},
        "urban_metrics": urban_metrics,
        "recommendations": response.get("recommendations") or {},
        "extraDescription": (
            f"Comprehensive urban planning analysis for {city} using multiple data sources "
            "including OpenStreetMap, Copernicus Sentinel-2, and World Bank demographic data."
        ),
        # The sidecar serves no tiles
        "urlFormat": None,
        "geojson": {
            "type": "Point",
            "coordinates": [location.get("lon") or 0, location.get("lat") or 0],
        },
        "legendConfig": URBAN_LEGEND,
    }


def enhanced_uhi_analysis(
    city: str, geometry: Dict[str, Any], time_range: str = "2years"
) -> Dict[str, Any]:
    flask_data = comprehensive_urban_analysis(city, time_range)
    coords = extract_center_coordinates(geometry)

    country_code = _section(flask_data["urban_metrics"], "location").get("country_code") or "GB"
    osm_data = get_osm_data(coords["lat"], coords["lon"])
    demographic_data = get_demographic_data(country_code)

    counts = osm_data.get("feature_counts") or {}
    indicators = demographic_data.get("indicators") or {}
    map_stats = {
        **flask_data["mapStats"],
        "built_area_density": counts.get("buildings") or 0,
        "road_density": counts.get("highways") or 0,
        "green_infrastructure": counts.get("natural_features") or 0,
        "population_density": (indicators.get("population_density") or {}).get("value") or 0,
        "urban_population_percent": (
            (indicators.get("urban_population_percent") or {}).get("value") or 0
        ),
        "impervious_surface_ratio": calculate_impervious_surface_ratio(osm_data),
        "heat_vulnerability_score": calculate_heat_vulnerability_score(osm_data, demographic_data),
    }

    return {
        **flask_data,
        "mapStats": map_stats,
        "extraDescription": (
            f"Enhanced Urban Heat Island analysis for {city} combining satellite thermal data "
            "with real-time infrastructure and demographic indicators."
        ),
    }


def enhanced_land_cover_analysis(
    city: str, geometry: Dict[str, Any], time_range: str = "2years"
) -> Dict[str, Any]:
    flask_data = comprehensive_urban_analysis(city, time_range)
    coords = extract_center_coordinates(geometry)
    osm_data = get_osm_data(coords["lat"], coords["lon"])

    landuse = osm_data.get("landuse_breakdown") or {}
    counts = osm_data.get("feature_counts") or {}
    quality = osm_data.get("data_quality") or {}
    map_stats = {
        **flask_data["mapStats"],
        "residential_area": landuse.get("residential") or 0,
        "commercial_area": landuse.get("commercial") or 0,
        "industrial_area": landuse.get("industrial") or 0,
        "green_space": landuse.get("grass") or 0,
        "retail_area": landuse.get("retail") or 0,
        "total_buildings": counts.get("buildings") or 0,
        "total_amenities": counts.get("amenities") or 0,
        "total_shops": counts.get("shops") or 0,
        "data_completeness": quality.get("completeness") or "unknown",
        "last_updated": quality.get("last_updated") or "unknown",
    }

    return {
        **flask_data,
        "mapStats": map_stats,
        "legendConfig": LAND_COVER_LEGEND,
        "extraDescription": (
            f"Enhanced Land Cover analysis for {city} using real-time OpenStreetMap data "
            "for detailed urban land use classification."
        ),
    }


def enhanced_land_change_analysis(
    city: str,
    geometry: Dict[str, Any],
    start_date1: str,
    end_date1: str,
    start_date2: str,
    end_date2: str,
) -> Dict[str, Any]:
    """Compare satellite availability over two windows with current development indicators.

    The sidecar only knows relative windows, so the recent and longer periods are
    requested as ``2years`` and ``5years`` whatever the requested dates are.
    """
    coords = extract_center_coordinates(geometry)
    logger.info(
        f"Land change analysis for {city}: {start_date1}..{end_date1} vs {start_date2}..{end_date2}"
    )
    sat_data1 = get_satellite_data(coords["lat"], coords["lon"], "2years")
    sat_data2 = get_satellite_data(coords["lat"], coords["lon"], "5years")
    osm_data = get_osm_data(coords["lat"], coords["lon"])
    # TODO: derive the country code from the ROI once the sidecar geocoder reports it
    demographic_data = get_demographic_data("GB")

    counts = osm_data.get("feature_counts") or {}
    growth_rate = (
        ((demographic_data.get("indicators") or {}).get("population_growth_rate") or {}).get("value")
        or 0
    )
    recent_images = sat_data1.get("total_images") or 0
    recent_cloud = (sat_data1.get("cloud_coverage") or {}).get("average") or 0

    map_stats = {
        "period1_images": recent_images,
        "period2_images": sat_data2.get("total_images") or 0,
        "period1_cloud_cover": recent_cloud,
        "period2_cloud_cover": (sat_data2.get("cloud_coverage") or {}).get("average") or 0,
        "population_growth_rate": growth_rate,
        "urban_expansion_pressure": calculate_urban_expansion_pressure(demographic_data, osm_data),
        "current_building_density": counts.get("buildings") or 0,
        "current_road_density": counts.get("highways") or 0,
        "development_intensity": calculate_development_intensity(osm_data),
        "data_temporal_coverage": calculate_temporal_coverage(sat_data1, sat_data2),
        "analysis_confidence": calculate_analysis_confidence(sat_data1, sat_data2, osm_data),
    }

    return {
        "mapStats": map_stats,
        "legendConfig": LAND_CHANGE_LEGEND,
        "extraDescription": (
            f"Enhanced Land Change analysis for {city} integrating satellite monitoring "
            "capabilities with real-time infrastructure development indicators."
        ),
        "insights": [
            {
                "title": "Satellite Monitoring Capability",
                "content": (
                    f"Analysis shows {recent_images} available images for recent period with "
                    f"{recent_cloud}% average cloud cover."
                ),
                "category": "monitoring",
                "priority": "medium",
            },
            {
                "title": "Development Pressure Assessment",
                "content": (
                    f"Population growth rate of {growth_rate}% indicates "
                    f"{get_growth_pressure_level(growth_rate)} development pressure."
                ),
                "category": "development",
                "priority": "high",
            },
        ],
    }
