import logging

from fastapi import APIRouter, Query

from services.charts import select_chart_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/charts", tags=["charts"])


@router.get("/chart-type")
async def chart_type(function_type: str = Query(..., alias="functionType")):
    """Chart metadata the UI uses to render an analysis result."""
    return select_chart_type(function_type)
