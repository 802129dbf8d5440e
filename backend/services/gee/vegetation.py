"""Vegetation indices from Sentinel-2 surface reflectance."""

import logging
from typing import Any, Dict, Optional

import ee

from services.gee.auth import gee_authenticate
from services.gee.dynamic_world import to_ee_geometry, validate_geometry

logger = logging.getLogger(__name__)

SENTINEL_2_COLLECTION = "COPERNICUS/S2_SR_HARMONIZED"
SENTINEL_2_SCALE = 10
MAX_CLOUDY_PIXEL_PERCENTAGE = 20
# Sentinel-2 L2A reflectance is stored as integers scaled by 10000
REFLECTANCE_SCALE = 0.0001

VEGETATION_INDICES: Dict[str, Dict[str, Any]] = {
    "NDVI": {
        "bands": ["B8", "B4"],
        "expression": "(NIR - RED) / (NIR + RED)",
        "range": (-1.0, 1.0),
        "stressThreshold": 0.3,
        "interpretation": "General vegetation vigor and photosynthetic activity",
    },
    "EVI": {
        "bands": ["B8", "B4", "B2"],
        "expression": "2.5 * (NIR - RED) / (NIR + 6 * RED - 7.5 * BLUE + 1)",
        "range": (-1.0, 1.0),
        "stressThreshold": 0.2,
        "interpretation": "Enhanced vegetation detection, better for dense canopies",
    },
    "SAVI": {
        "bands": ["B8", "B4"],
        "expression": "1.5 * (NIR - RED) / (NIR + RED + 0.5)",
        "range": (-1.5, 1.5),
        "stressThreshold": 0.25,
        "interpretation": "Soil-adjusted vegetation index, accounts for bare ground",
    },
    "NDWI": {
        "bands": ["B3", "B8"],
        "expression": "(GREEN - NIR) / (GREEN + NIR)",
        "range": (-1.0, 1.0),
        "stressThreshold": -0.3,
        "interpretation": "Vegetation water content and drought stress",
    },
}

_BAND_ALIASES = {"B2": "BLUE", "B3": "GREEN", "B4": "RED", "B8": "NIR"}


def _index_image(composite: "ee.Image", index: str) -> "ee.Image":
    definition = VEGETATION_INDICES[index]
    bands = {_BAND_ALIASES[band]: composite.select(band) for band in definition["bands"]}
    return composite.expression(definition["expression"], bands).rename(index)


def mean_vegetation_index(
    geometry: Dict[str, Any], start_date: str, end_date: str, index: str = "NDVI"
) -> Optional[float]:
    """Mean of ``index`` over the ROI for a cloud-filtered median composite.

    Returns None when no imagery covers the period.
    """
    if index not in VEGETATION_INDICES:
        raise ValueError(f"Unsupported vegetation index: {index}")
    validate_geometry(geometry)
    gee_authenticate()

    region = to_ee_geometry(geometry)
    composite = (
        ee.ImageCollection(SENTINEL_2_COLLECTION)
        .filterBounds(region)
        .filterDate(start_date, end_date)
        .filter(ee.Filter.lt("CLOUDY_PIXEL_PERCENTAGE", MAX_CLOUDY_PIXEL_PERCENTAGE))
        .median()
        .multiply(REFLECTANCE_SCALE)
    )

    stats = _index_image(composite, index).reduceRegion(
        reducer=ee.Reducer.mean(),
        geometry=region,
        scale=SENTINEL_2_SCALE,
        tileScale=16,
        maxPixels=1e13,
        bestEffort=True,
    )

    try:
        value = stats.get(index).getInfo()
    except ee.EEException as e:
        logger.warning(f"{index} evaluation failed for {start_date} to {end_date}: {e}")
        return None

    if value is None:
        logger.warning(f"No Sentinel-2 imagery for {start_date} to {end_date}")
        return None
    return round(float(value), 4)
