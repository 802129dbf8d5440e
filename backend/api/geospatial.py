"""
Geospatial analysis dispatcher.

Checks the user's quota and ROI, then runs the analysis on Earth Engine or
through the Flask sidecar.
"""

import asyncio
import logging
from types import SimpleNamespace
from typing import Any, Dict, List

import ee
from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_current_user
from core.config import PREFER_FLASK_API
from core.errors import FlaskIntegrationError, GeeAuthenticationError, InvalidGeometryError
from models.analysis import GeospatialAnalysisRequest
from models.chat import GeeDataset
from services.charts import select_chart_type
from services.database.local_store import (
    get_usage_for_user,
    get_user_role_and_tier,
    increment_request_count,
    search_gee_datasets,
)
from services.flask_api.integration import integrated_analysis
from services.flask_api.utils import FLASK_ANALYSIS_TYPES
from services.gee.dynamic_world import google_dynamic_world_mapping
from services.permissions import get_permission_set
from services.roi import (
    calculate_geometry_area_km2,
    check_analysis_roi,
    check_geometry_area_is_less_than_threshold,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gee", tags=["geospatial"])

LAND_COVER_MAPS = "Land Use/Land Cover Maps"
EMPTY_RESULT_MESSAGE = "Something went wrong! Failed to run the analysis."


def _check_area(roi: Dict[str, Any], max_area: float) -> None:
    try:
        within_limit = check_geometry_area_is_less_than_threshold(roi, max_area)
        area = calculate_geometry_area_km2(roi)
    except InvalidGeometryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not within_limit:
        raise HTTPException(
            status_code=400,
            detail=(
                f"The area of the selected region of interest (ROI) is {area} sq km, which "
                f"exceeds the maximum area limit of {max_area} sq km. Please select a smaller "
                "ROI and try again."
            ),
        )


def _run(payload: GeospatialAnalysisRequest) -> Dict[str, Any]:
    roi = payload.selected_roi_geometry
    use_flask = payload.experimental or PREFER_FLASK_API

    if payload.function_type == LAND_COVER_MAPS and not use_flask:
        return google_dynamic_world_mapping(roi, payload.start_date1, payload.end_date1)

    if payload.function_type in FLASK_ANALYSIS_TYPES or use_flask:
        return integrated_analysis(
            payload.function_type,
            roi,
            payload.start_date1,
            payload.end_date1,
            payload.start_date2,
            payload.end_date2,
            city_name=payload.city_name,
            aggregation_method=payload.aggregation_method,
        )

    raise HTTPException(status_code=400, detail="Unsupported analysis type")


@router.post("/request-geospatial-analysis")
async def request_geospatial_analysis(
    payload: GeospatialAnalysisRequest,
    current_user: SimpleNamespace = Depends(get_current_user),
):
    role_record = await get_user_role_and_tier(current_user.id)
    if not role_record:
        raise HTTPException(status_code=403, detail="Failed to get role/subscription")
    permissions = get_permission_set(role_record.role, role_record.subscription_tier)

    usage = await get_usage_for_user(current_user.id)
    if usage.requests_count >= permissions.max_requests:
        raise HTTPException(status_code=403, detail="Request limit exceeded")

    roi = payload.selected_roi_geometry
    roi_error = check_analysis_roi(roi)
    if roi_error:
        raise HTTPException(status_code=400, detail=roi_error)
    _check_area(roi, permissions.max_area)

    await increment_request_count(current_user.id)
    logger.info(
        f"Running {payload.function_type} for {payload.start_date1} to {payload.end_date1}"
    )

    try:
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(None, _run, payload)
    except HTTPException:
        raise
    except InvalidGeometryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (FlaskIntegrationError, GeeAuthenticationError, ee.EEException) as e:
        logger.error(f"Geospatial analysis {payload.function_type} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if not result.get("mapStats"):
        raise HTTPException(status_code=500, detail=EMPTY_RESULT_MESSAGE)

    return {
        **result,
        **payload.echo(),
        "chartConfig": select_chart_type(payload.function_type),
    }


@router.get("/datasets", response_model=List[GeeDataset])
async def datasets(query: str = Query("", description="Text matched against title and id")):
    return await search_gee_datasets(query)
