"""Population statistics for an ROI from the WorldPop Global Project."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from core.errors import WorldPopError
from services.data_sources.worldpop import (
    AGE_GENDER_DATASET,
    POPULATION_DATASET,
    SOURCE,
    create_sample_geojson,
    get_age_gender_data,
    get_population_change,
    get_population_data,
    validate_year,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/worldpop", tags=["worldpop"])

SUPPORTED_ANALYSIS_TYPES = [
    "Population Data",
    "Population Density",
    "Age Gender Data",
    "Population Change",
]

API_INFO = {
    "dataAvailability": "2000-2020",
    "requiredParameters": ["country", "year", "geojson"],
    "supportedAnalysisTypes": SUPPORTED_ANALYSIS_TYPES,
}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _failure_response(e: Exception) -> JSONResponse:
    """Map an analysis failure to a client-facing message and status code."""
    message = str(e) or "Failed to perform population analysis"
    status_code = 500

    if isinstance(e, ValueError):
        status_code = 400
    elif isinstance(e, WorldPopError) and e.status_code == 405:
        message = "WorldPop API method not allowed. Please check the API endpoint configuration."
        status_code = 502
    elif "GeoJSON is required" in message:
        message = "A valid GeoJSON geometry is required for WorldPop API requests"
        status_code = 400
    elif "Task" in message and "failed" in message:
        message = (
            "WorldPop processing task failed. This may be due to invalid geometry or "
            "server issues."
        )
        status_code = 502

    return JSONResponse(
        status_code=status_code, content={"error": message, "apiInfo": API_INFO}
    )


def _parse_geometry(raw: Any) -> Optional[Dict[str, Any]]:
    """The ROI may arrive as an object or as a URL-encoded JSON string."""
    if raw and isinstance(raw, str):
        return json.loads(unquote(raw))
    return raw or None


@router.post("/request-population-analysis")
async def request_population_analysis(request: Request):
    logger.info("Processing WorldPop population analysis request")

    try:
        body = json.loads(await request.body())
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
    except ValueError as e:
        logger.error(f"Invalid WorldPop request body: {e}")
        return _error("Invalid JSON body", 400)

    analysis_type = body.get("analysisType")
    country = body.get("country")
    year1 = body.get("year1")
    year2 = body.get("year2")
    resolution = body.get("resolution") or "100m"
    format = body.get("format") or "json"

    if not analysis_type or not country:
        return _error("Analysis type and country are required parameters.", 400)

    try:
        geometry = _parse_geometry(body.get("selectedRoiGeometry"))
    except ValueError:
        return _error("Invalid geometry JSON", 400)
    if not geometry:
        logger.info("No geometry provided, using sample GeoJSON")
        geometry = create_sample_geojson()

    try:
        if analysis_type in ("Population Data", "Population Density", "Age Gender Data"):
            if not year1:
                label = {
                    "Population Data": "population data",
                    "Population Density": "population density",
                    "Age Gender Data": "age/gender data",
                }[analysis_type]
                return _error(f"Year is required for {label} analysis", 400)
            validate_year(year1)

            fetch = get_age_gender_data if analysis_type == "Age Gender Data" else get_population_data
            # Task polling sleeps between checks, keep it off the event loop
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(
                None, fetch, country, str(year1), resolution, format, geometry
            )
            if not result["success"]:
                return _error(result.get("error") or "Failed to fetch population data", 500)
            if analysis_type == "Population Density":
                result["data"]["analysisType"] = "Population Density"
                result["data"]["primaryMetric"] = result["data"]["populationDensity"]

        elif analysis_type == "Population Change":
            if not year1 or not year2:
                return _error(
                    "Both year1 and year2 are required for population change analysis", 400
                )
            if validate_year(year1) >= validate_year(year2):
                return _error("Year1 must be less than Year2", 400)
            loop = asyncio.get_event_loop()
            result = await loop.run_in_executor(
                None,
                get_population_change,
                country,
                str(year1),
                str(year2),
                resolution,
                format,
                geometry,
            )

        else:
            return _error(
                "Invalid analysis type. Must be one of: "
                + ", ".join(f"'{name}'" for name in SUPPORTED_ANALYSIS_TYPES),
                400,
            )
    except (ValueError, WorldPopError) as e:
        logger.error(f"WorldPop population analysis error: {e}")
        return _failure_response(e)

    return {
        "success": True,
        "analysisType": analysis_type,
        "country": country,
        "year1": int(str(year1)) if year1 else None,
        "year2": int(str(year2)) if year2 else None,
        "selectedRoiGeometry": geometry,
        "resolution": resolution,
        "format": format,
        "data": result,
        "metadata": {
            "source": SOURCE,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "analysisType": analysis_type,
            "country": country,
            "resolution": resolution,
            "dataAvailability": "2000-2020",
            "apiVersion": "v1",
            "dataset": AGE_GENDER_DATASET if analysis_type == "Age Gender Data" else POPULATION_DATASET,
        },
    }
