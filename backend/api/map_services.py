"""Basemap tiles and ArcGIS layer listing for the map view."""

import asyncio
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie
from fastapi.responses import JSONResponse, RedirectResponse

from core.config import GOOGLE_MAPS_TILE_URL, get_google_maps_api_key
from core.errors import EsriError
from services.data_sources.esri import fetch_feature_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["map services"])


@router.get("/google-maps/basemaps/satellite")
async def satellite_tile(x: Optional[str] = None, y: Optional[str] = None, z: Optional[str] = None):
    """Redirect to the Google satellite tile, keeping the API key off the client."""
    api_key = get_google_maps_api_key()
    if not api_key:
        return JSONResponse(status_code=500, content={"error": "API key is not configured"})
    if not x or not y or not z:
        return JSONResponse(status_code=400, content={"error": "Missing parameters"})

    query = urlencode({"lyrs": "s", "x": x, "y": y, "z": z, "key": api_key})
    return RedirectResponse(f"{GOOGLE_MAPS_TILE_URL}?{query}", status_code=307)


@router.get("/esri/fetch-layers-list")
async def fetch_layers_list(arcgis_access_token: Optional[str] = Cookie(None)):
    if not arcgis_access_token:
        return JSONResponse(
            status_code=401,
            content={"error": "No access token found. User needs to authenticate with ArcGIS."},
        )

    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fetch_feature_services, arcgis_access_token)
    except EsriError as e:
        logger.error(f"Error fetching layers or feature services: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve services or organization information"},
        )
