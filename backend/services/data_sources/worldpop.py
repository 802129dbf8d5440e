"""
WorldPop population statistics.

Uses the v1 ``services/stats`` endpoint of the WorldPop Global Project
(2000-2020). Long-running requests come back as a task that is polled
until it finishes.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import WORLDPOP_API_BASE
from core.errors import WorldPopError, WorldPopTaskError
from services.data_sources.http_client import request_json
from services.roi import roi_to_shape

logger = logging.getLogger(__name__)

POPULATION_DATASET = "wpgppop"
AGE_GENDER_DATASET = "wpgpas"

MIN_YEAR = 2000
MAX_YEAR = 2020
SOURCE = "WorldPop Global Project"

# Kilometres per degree, for the bounding-box area approximation
KM_PER_DEGREE = 111.32

MAX_TASK_ATTEMPTS = 10


def validate_year(year: Any) -> int:
    """Parse ``year`` and check it is within the Global Project's coverage."""
    try:
        year_num = int(str(year))
    except ValueError as e:
        raise ValueError(f"Invalid year: {year}") from e
    if year_num < MIN_YEAR or year_num > MAX_YEAR:
        raise ValueError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}. WorldPop Global Project data is "
            f"only available for this range. Provided: {year}"
        )
    return year_num


def calculate_bounds(geojson: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Bounding box of every polygon in the ROI, zeros when it holds none."""
    if not (geojson or {}).get("features") and not (geojson or {}).get("coordinates"):
        return {"north": 0, "south": 0, "east": 0, "west": 0}

    west, south, east, north = roi_to_shape(geojson).bounds
    return {"north": north, "south": south, "east": east, "west": west}


def calculate_centroid(geojson: Optional[Dict[str, Any]]) -> Dict[str, float]:
    bounds = calculate_bounds(geojson)
    return {
        "lat": (bounds["north"] + bounds["south"]) / 2,
        "lng": (bounds["east"] + bounds["west"]) / 2,
    }


def _bbox_area_km2(bounds: Dict[str, float]) -> float:
    return (
        abs((bounds["east"] - bounds["west"]) * (bounds["north"] - bounds["south"]))
        * KM_PER_DEGREE
        * KM_PER_DEGREE
    )


def wait_for_task_completion(task_id: str, max_attempts: int = MAX_TASK_ATTEMPTS) -> Dict[str, Any]:
    """Poll a WorldPop task, backing off 2**attempt seconds between checks."""
    task_url = f"{WORLDPOP_API_BASE}/tasks/{task_id}"

    for attempt in range(max_attempts):
        try:
            task = request_json("GET", task_url, error_cls=WorldPopError)
        except WorldPopError as e:
            logger.error(f"Task check attempt {attempt + 1} failed: {e}")
            if attempt == max_attempts - 1:
                raise
        else:
            if task.get("status") == "finished":
                return task
            if task.get("status") == "error" or task.get("error"):
                raise WorldPopTaskError(
                    f"Task failed: {task.get('error_message') or 'Unknown error'}"
                )
        time.sleep(2**attempt)

    raise WorldPopTaskError(f"Task {task_id} did not complete within expected time")


def _run_stats(dataset: str, year: str, geojson: Dict[str, Any]) -> Dict[str, Any]:
    result = request_json(
        "GET",
        f"{WORLDPOP_API_BASE}/services/stats",
        error_cls=WorldPopError,
        params={
            "dataset": dataset,
            "year": str(year),
            "geojson": json.dumps(geojson),
            "runasync": "false",
        },
    )
    if result.get("status") == "created" and result.get("taskid"):
        logger.info(f"WorldPop task created with ID: {result['taskid']}. Waiting for completion...")
        result = wait_for_task_completion(result["taskid"])
    return result


def _metadata(country: str, year: str, resolution: str, dataset: str) -> Dict[str, Any]:
    return {
        "country": country,
        "year": int(year),
        "resolution": resolution,
        "source": SOURCE,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
        "dataset": dataset,
    }


def get_population_data(
    country: str,
    year: str,
    resolution: str = "100m",
    format: str = "json",
    geojson: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Total population inside ``geojson``. Failures are reported as ``{"success": False}``."""
    try:
        if not geojson:
            raise WorldPopError("GeoJSON is required for WorldPop API requests")

        task = _run_stats(POPULATION_DATASET, year, geojson)
        total_population = (task.get("data") or {}).get("total_population")
        if not total_population:
            raise WorldPopError("No population data returned from API")

        bounds = calculate_bounds(geojson)
        area = _bbox_area_km2(bounds)
        return {
            "success": True,
            "data": {
                "population": total_population,
                "populationDensity": total_population / area if area > 0 else 0,
                "area": area,
                "metadata": _metadata(country, year, resolution, POPULATION_DATASET),
                "geospatial": {"bounds": bounds, "centroid": calculate_centroid(geojson)},
            },
            "taskid": task.get("taskid"),
        }
    except WorldPopError as e:
        logger.error(f"Error fetching WorldPop population data: {e}")
        return {"success": False, "error": str(e), "status_code": e.status_code}


def get_age_gender_data(
    country: str,
    year: str,
    resolution: str = "100m",
    format: str = "json",
    geojson: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    try:
        if not geojson:
            raise WorldPopError("GeoJSON is required for WorldPop API requests")

        task = _run_stats(AGE_GENDER_DATASET, year, geojson)
        pyramid = (task.get("data") or {}).get("agesexpyramid")
        if not pyramid:
            raise WorldPopError("No age/gender data returned from API")

        total_population = sum(group["male"] + group["female"] for group in pyramid)
        bounds = calculate_bounds(geojson)
        area = _bbox_area_km2(bounds)
        return {
            "success": True,
            "data": {
                "population": total_population,
                "populationDensity": total_population / area if area > 0 else 0,
                "area": area,
                "ageGenderData": pyramid,
                "metadata": _metadata(country, year, resolution, AGE_GENDER_DATASET),
                "geospatial": {"bounds": bounds, "centroid": calculate_centroid(geojson)},
            },
            "taskid": task.get("taskid"),
        }
    except WorldPopError as e:
        logger.error(f"Error fetching WorldPop age/gender data: {e}")
        return {"success": False, "error": str(e), "status_code": e.status_code}


def get_population_change(
    country: str,
    year1: str,
    year2: str,
    resolution: str = "100m",
    format: str = "json",
    geojson: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Population change between two years.

    Raises:
        ValueError: If the years are out of order or outside 2000-2020
        WorldPopError: If either period could not be fetched
    """
    start, end = int(year1), int(year2)
    if start >= end:
        raise ValueError("Year1 must be less than Year2 for change analysis")
    if start < MIN_YEAR or end > MAX_YEAR:
        raise ValueError("WorldPop Global Project data is only available for years 2000-2020")

    period1 = get_population_data(country, year1, resolution, format, geojson)
    period2 = get_population_data(country, year2, resolution, format, geojson)
    if not period1["success"] or not period2["success"]:
        failed = period1 if not period1["success"] else period2
        raise WorldPopError(f"Failed to fetch data: {failed['error']}", failed.get("status_code"))

    population1 = period1["data"]["population"] or 0
    population2 = period2["data"]["population"] or 0
    absolute_change = population2 - population1
    percentage_change = absolute_change / population1 * 100 if population1 > 0 else 0
    annual_growth_rate = (
        ((population2 / population1) ** (1 / (end - start)) - 1) * 100 if population1 > 0 else 0
    )

    density = period2["data"]["populationDensity"] or 0
    if density > 1000:
        urbanization_level = 3
    elif density > 500:
        urbanization_level = 2
    else:
        urbanization_level = 1

    return {
        "country": country,
        "year1": start,
        "year2": end,
        "period1Population": population1,
        "period2Population": population2,
        "absoluteChange": absolute_change,
        "percentageChange": percentage_change,
        "annualGrowthRate": annual_growth_rate,
        "urbanizationLevel": urbanization_level,
        "populationDensity": density,
        "area": period2["data"]["area"] or 0,
        "metadata": {
            "source": SOURCE,
            "resolution": resolution,
            "format": format,
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "analysisType": "Population Change",
            "geojsonProvided": bool(geojson),
            "dataset": POPULATION_DATASET,
        },
        "geospatial": period2["data"]["geospatial"],
    }


def get_metadata() -> Dict[str, Any]:
    """List the datasets the WorldPop services expose."""
    return request_json("GET", f"{WORLDPOP_API_BASE}/services", error_cls=WorldPopError)


def create_sample_geojson() -> Dict[str, Any]:
    """A small square in central London."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [
                        [[-0.1, 51.5], [-0.05, 51.5], [-0.05, 51.55], [-0.1, 51.55], [-0.1, 51.5]]
                    ],
                },
            }
        ],
    }
