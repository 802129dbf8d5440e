"""Debug endpoint that explains why an ROI is or is not usable for analysis."""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from services.roi import describe_roi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/debug", tags=["debug"])

ROI_FIELD = "selectedRoiGeometryInChat"


@router.get("/roi-status")
async def roi_status_usage():
    return {
        "endpoint": "ROI Debug Endpoint",
        "usage": f"POST with {ROI_FIELD} to debug ROI issues",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/roi-status")
async def roi_status(request: Request):
    try:
        body = json.loads(await request.body())
        if not isinstance(body, dict):
            raise ValueError("Request body must be a JSON object")
    except ValueError as e:
        logger.error(f"ROI debug endpoint error: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": str(e),
                "debug": {
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "errorType": "debug_endpoint_error",
                },
            },
        )

    logger.info(f"ROI debug request body: {json.dumps(body)}")
    return {"success": True, "debug": describe_roi(body.get(ROI_FIELD), ROI_FIELD in body)}
