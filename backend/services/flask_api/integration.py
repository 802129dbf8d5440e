"""Dispatch analyses to the Flask sidecar, alone or combined with satellite context."""

import logging
from typing import Any, Dict, Optional

from core.config import FLASK_API_BASE_URL
from core.errors import Chat2GeoError, DataSourceError, FlaskIntegrationError
from services.data_sources.http_client import request_json
from services.flask_api.client import (
    comprehensive_urban_analysis,
    enhanced_land_change_analysis,
    enhanced_land_cover_analysis,
    enhanced_uhi_analysis,
)
from services.flask_api.utils import FLASK_ANALYSIS_TYPES

logger = logging.getLogger(__name__)

DEFAULT_CITY = "London"

HYBRID_ANALYSIS_TYPES = [
    "Urban Heat Island (UHI) Analysis",
    "Land Use/Land Cover Maps",
    "Land Use/Land Cover Change Maps",
]


def _run_analysis(
    function_type: str,
    city_name: str,
    geometry: Dict[str, Any],
    start_date1: str,
    end_date1: str,
    start_date2: Optional[str],
    end_date2: Optional[str],
) -> Dict[str, Any]:
    if function_type == "Urban Heat Island (UHI) Analysis":
        return {**enhanced_uhi_analysis(city_name, geometry), "dataSource": "hybrid"}
    if function_type == "Land Use/Land Cover Maps":
        return {**enhanced_land_cover_analysis(city_name, geometry), "dataSource": "hybrid"}
    if function_type == "Land Use/Land Cover Change Maps":
        result = enhanced_land_change_analysis(
            city_name,
            geometry,
            start_date1,
            end_date1,
            start_date2 or start_date1,
            end_date2 or end_date1,
        )
        return {**result, "dataSource": "hybrid"}
    if function_type in FLASK_ANALYSIS_TYPES:
        return {**comprehensive_urban_analysis(city_name), "dataSource": "flask-api"}
    raise FlaskIntegrationError(f"Unsupported Flask API analysis type: {function_type}")


def integrated_analysis(
    function_type: str,
    geometry: Dict[str, Any],
    start_date1: str,
    end_date1: str,
    start_date2: Optional[str] = None,
    end_date2: Optional[str] = None,
    city_name: Optional[str] = None,
    aggregation_method: Optional[str] = None,
) -> Dict[str, Any]:
    """Run ``function_type`` through the sidecar and tag the result with its data source.

    Raises:
        FlaskIntegrationError: For unsupported types and any sidecar failure
    """
    city_name = city_name or DEFAULT_CITY
    logger.info(
        f"Integrated analysis {function_type} for {city_name} "
        f"({start_date1} to {end_date1}, aggregation={aggregation_method})"
    )

    try:
        result = _run_analysis(
            function_type, city_name, geometry, start_date1, end_date1, start_date2, end_date2
        )
    except (Chat2GeoError, ValueError) as e:
        logger.error(f"Flask integration analysis failed: {e}")
        raise FlaskIntegrationError(f"Flask API integration failed: {e}") from e

    sources = (
        "Flask API services"
        if result["dataSource"] == "flask-api"
        else "Google Earth Engine and Flask API services"
    )
    result["functionType"] = function_type
    result["extraDescription"] = (
        f"{result.get('extraDescription') or ''}\n\nData Integration: This analysis combines "
        f"multiple data sources including {sources} for comprehensive urban intelligence."
    )

    logger.info(
        f"Integrated analysis completed: {function_type} via {result['dataSource']} "
        f"({len(result.get('mapStats') or {})} stats)"
    )
    return result


def validate_flask_api_availability() -> bool:
    try:
        data = request_json("GET", f"{FLASK_API_BASE_URL}/", timeout=5)
    except DataSourceError as e:
        logger.warning(f"Flask API not available: {e}")
        return False
    return isinstance(data, dict) and data.get("status") == "healthy"
