"""ArcGIS Online: list the feature services of the signed-in user's organization."""

import logging
from typing import Any, Dict

from core.config import ARCGIS_REST_BASE
from core.errors import EsriError
from services.data_sources.http_client import request_json

logger = logging.getLogger(__name__)


def fetch_organization_id(token: str) -> str:
    portal = request_json(
        "GET",
        f"{ARCGIS_REST_BASE}/portals/self",
        error_cls=EsriError,
        params={"f": "json", "token": token},
    )
    org_id = portal.get("id")
    if not org_id:
        raise EsriError("Organization ID not found in portal data")
    return org_id


def fetch_feature_services(token: str) -> Dict[str, Any]:
    """Search result of the organization's Feature Services, as returned by ArcGIS."""
    org_id = fetch_organization_id(token)
    logger.info(f"Searching feature services for ArcGIS organization {org_id}")
    return request_json(
        "GET",
        f"{ARCGIS_REST_BASE}/search",
        error_cls=EsriError,
        params={"q": f'orgid:{org_id} (type:"Feature Service")', "f": "json", "token": token},
    )
