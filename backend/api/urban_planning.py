"""Urban planning analyses: green infrastructure and transport infrastructure."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Type

import ee
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from core.config import get_openweather_api_key, get_tomtom_api_key
from core.errors import Chat2GeoError
from models.urban_planning import GreenSpaceAnalysisRequest, InfrastructureAnalysisRequest
from services.urban_planning.green_space import run_green_space_analysis
from services.urban_planning.infrastructure import run_infrastructure_analysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/urban-planning", tags=["urban planning"])

ANALYSIS_ERRORS = (Chat2GeoError, ValueError, ee.EEException)


class InvalidRequest(Exception):
    def __init__(self, details: Any):
        super().__init__("Invalid input parameters")
        self.details = details


async def _parse(request: Request, model: Type[BaseModel]) -> Any:
    try:
        return model.model_validate(json.loads(await request.body()))
    except ValidationError as e:
        raise InvalidRequest(json.loads(e.json())) from e
    except ValueError as e:
        raise InvalidRequest([{"msg": f"Invalid JSON body: {e}"}]) from e


def _invalid(e: InvalidRequest) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid input parameters", "details": e.details},
    )


def _failed(message: str, e: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500, content={"success": False, "error": message, "details": str(e)}
    )


def _envelope(analysis_type: str, geometry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "analysisType": analysis_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "geometry": geometry,
    }


@router.post("/request-green-space-analysis")
async def request_green_space_analysis(request: Request):
    try:
        payload = await _parse(request, GreenSpaceAnalysisRequest)
    except InvalidRequest as e:
        logger.error(f"Invalid green space request: {e.details}")
        return _invalid(e)

    geometry = payload.selected_roi_geometry.model_dump()
    logger.info(f"Green space analysis: {payload.analysis_type}")

    try:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None,
            run_green_space_analysis,
            payload.analysis_type,
            geometry,
            payload.vegetation_index,
            payload.seasonal_comparison,
            payload.heat_mitigation_strategy,
        )
    except ANALYSIS_ERRORS as e:
        logger.error(f"Error in green space analysis: {e}")
        return _failed("Failed to perform green space analysis", e)

    return {
        **_envelope(payload.analysis_type, geometry),
        "vegetationIndex": payload.vegetation_index or "NDVI",
        "seasonalComparison": payload.seasonal_comparison or "Annual Trend",
        "apiStatus": {
            "openWeatherMap": bool(get_openweather_api_key()),
            "googleEarthEngine": True,
        },
        **result,
    }


@router.post("/request-infrastructure-analysis")
async def request_infrastructure_analysis(request: Request):
    try:
        payload = await _parse(request, InfrastructureAnalysisRequest)
    except InvalidRequest as e:
        logger.error(f"Invalid infrastructure request: {e.details}")
        return _invalid(e)

    geometry = payload.selected_roi_geometry.model_dump()
    logger.info(
        f"Infrastructure analysis: {payload.analysis_type} ({payload.infrastructure_type})"
    )

    try:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(
            None, run_infrastructure_analysis, payload.analysis_type, geometry
        )
    except ANALYSIS_ERRORS as e:
        logger.error(f"Error in infrastructure analysis: {e}")
        return _failed("Failed to perform infrastructure analysis", e)

    return {
        **_envelope(payload.analysis_type, geometry),
        "infrastructureType": payload.infrastructure_type,
        "apiStatus": {
            "tomtomTraffic": bool(get_tomtom_api_key()),
            "openWeatherMap": bool(get_openweather_api_key()),
            "openStreetMap": True,
        },
        **result,
    }
