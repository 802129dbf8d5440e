"""Land cover mapping with Google Dynamic World V1."""

import logging
from typing import Any, Dict, List, Mapping, Optional

import ee

from core.errors import EarthEngineDataError, InvalidGeometryError
from services.gee.auth import gee_authenticate
from services.roi import outer_ring

logger = logging.getLogger(__name__)

DYNAMIC_WORLD_COLLECTION = "GOOGLE/DYNAMICWORLD/V1"

LABEL_NAMES: List[str] = [
    "Water",
    "Trees",
    "Grass",
    "Flooded Vegetation",
    "Crops",
    "Shrub & Scrub",
    "Built Area",
    "Bare Ground",
    "Snow & Ice",
]

PALETTE: List[str] = [
    "#419BDF",  # Water
    "#397D49",  # Trees
    "#88B053",  # Grass
    "#7A87C6",  # Flooded Vegetation
    "#E49635",  # Crops
    "#DFC35A",  # Shrub & Scrub
    "#C4281B",  # Built Area
    "#A59B8F",  # Bare Ground
    "#D1DDF9",  # Snow & Ice
]

GREEN_CLASSES = ("Trees", "Grass", "Flooded Vegetation", "Shrub & Scrub")


def validate_geometry(geometry: Optional[Dict[str, Any]]) -> None:
    if not geometry:
        raise InvalidGeometryError("Invalid geometry provided for analysis")
    if geometry.get("type") != "FeatureCollection" and not geometry.get("coordinates"):
        raise InvalidGeometryError("Invalid geometry provided for analysis")
    if len(outer_ring(geometry)) < 3:
        raise InvalidGeometryError("Invalid geometry provided for analysis")


def to_ee_geometry(geometry: Dict[str, Any]) -> "ee.Geometry":
    if geometry.get("type") == "FeatureCollection":
        return ee.FeatureCollection(geometry).geometry()
    return ee.Geometry(geometry)


def histogram_to_percentages(
    histogram: Optional[Mapping[str, float]], label_names: List[str] = LABEL_NAMES
) -> Dict[str, str]:
    """Convert a class-index pixel histogram into percentage strings keyed by class name.

    Unknown class indices are reported as ``Class_<index>``. An empty histogram or
    one with no pixels gives an empty dict.
    """
    if not histogram:
        return {}

    total = sum(histogram.values())
    if total == 0:
        return {}

    stats = {}
    for key, value in histogram.items():
        try:
            index = int(float(key))
        except (TypeError, ValueError):
            index = -1
        name = label_names[index] if 0 <= index < len(label_names) else f"Class_{key}"
        stats[name] = f"{value / total * 100:.2f}"
    return stats


def _land_cover_image(region: "ee.Geometry", start_date: str, end_date: str) -> "ee.Image":
    return (
        ee.ImageCollection(DYNAMIC_WORLD_COLLECTION)
        .filterBounds(region)
        .filterDate(start_date, end_date)
        .select("label")
        .mode()
        .clip(region)
    )


def _class_histogram(image: "ee.Image", region: "ee.Geometry") -> Dict[str, str]:
    occurrences = image.reduceRegion(
        reducer=ee.Reducer.frequencyHistogram(),
        geometry=region,
        scale=30,
        tileScale=16,
        maxPixels=1e100,
        bestEffort=True,
    ).get("label")

    try:
        histogram = occurrences.getInfo()
    except ee.EEException as e:
        logger.error(f"Error during histogram evaluation: {e}")
        return {}

    stats = histogram_to_percentages(histogram)
    if not stats:
        logger.warning("No histogram data returned, map statistics will be empty")
    return stats


def google_dynamic_world_mapping(
    geometry: Dict[str, Any], start_date: str, end_date: str
) -> Dict[str, Any]:
    """Compute the modal Dynamic World land cover over the ROI and its tile layer."""
    validate_geometry(geometry)
    gee_authenticate()

    region = to_ee_geometry(geometry)
    image = _land_cover_image(region, start_date, end_date)
    logger.info(f"Dynamic World collection filtered for {start_date} to {end_date}")

    map_stats = _class_histogram(image, region)

    map_id = image.getMapId({"min": 0, "max": 8, "palette": PALETTE})
    url_format = map_id["tile_fetcher"].url_format
    image_geojson = image.geometry().getInfo()

    return {
        "urlFormat": url_format,
        "geojson": image_geojson,
        "legendConfig": {"labelNames": LABEL_NAMES, "palette": PALETTE},
        "mapStats": map_stats,
        "extraDescription": "",
    }


def class_coverage(geometry: Dict[str, Any], start_date: str, end_date: str) -> Dict[str, float]:
    """Percentage of the ROI covered by each Dynamic World class, as floats."""
    validate_geometry(geometry)
    gee_authenticate()

    region = to_ee_geometry(geometry)
    stats = _class_histogram(_land_cover_image(region, start_date, end_date), region)
    if not stats:
        raise EarthEngineDataError(
            f"No Dynamic World land cover data for {start_date} to {end_date}"
        )
    coverage = {name: 0.0 for name in LABEL_NAMES}
    coverage.update({name: float(value) for name, value in stats.items()})
    return coverage


def green_space_percentage(coverage: Mapping[str, float]) -> float:
    return round(sum(coverage.get(name, 0.0) for name in GREEN_CLASSES), 2)
