"""
Region of interest (ROI) helpers.

The browser sends the ROI as a plain GeoJSON dict. These helpers validate it,
describe it for debugging, and derive the quantities the analyses need
(geodesic area, center point, bounding box, corners).

Area is computed on the WGS84 ellipsoid with pyproj.Geod so limits are
independent of latitude.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pyproj import Geod
from shapely.geometry import MultiPolygon, Polygon, shape
from shapely.ops import unary_union

from core.errors import InvalidGeometryError

logger = logging.getLogger(__name__)

VALID_ROI_TYPES = ["Polygon", "MultiPolygon", "FeatureCollection"]
POLYGON_TYPES = ["Polygon", "MultiPolygon"]

EARTH_RADIUS_M = 6371000
WGS84 = Geod(ellps="WGS84")


# ========== Validation ==========


def is_valid_roi_geometry(roi: Any) -> bool:
    if not roi or not isinstance(roi, dict):
        return False
    roi_type = roi.get("type")
    if roi_type not in VALID_ROI_TYPES:
        return False

    if roi_type == "FeatureCollection":
        features = roi.get("features")
        return isinstance(features, list) and len(features) > 0

    coordinates = roi.get("coordinates")
    return isinstance(coordinates, list) and len(coordinates) > 0


def get_roi_validation_error(roi: Any) -> Optional[str]:
    """Return the first rule the ROI breaks, or None when it is usable."""
    if roi is None:
        return "ROI is null or undefined"
    if not isinstance(roi, dict):
        return "ROI is not an object"
    if not roi.get("type"):
        return "ROI missing 'type' property"

    roi_type = roi["type"]
    if roi_type not in VALID_ROI_TYPES:
        return f"Invalid ROI type '{roi_type}'. Must be one of: {', '.join(VALID_ROI_TYPES)}"

    if roi_type == "FeatureCollection":
        if "features" not in roi or roi["features"] is None:
            return "FeatureCollection missing 'features' property"
        features = roi["features"]
        if not isinstance(features, list):
            return "FeatureCollection 'features' is not an array"
        if len(features) == 0:
            return "FeatureCollection has no features"

        for i, feature in enumerate(features):
            geometry = feature.get("geometry") if isinstance(feature, dict) else None
            if not isinstance(geometry, dict) or not geometry:
                return f"Feature {i} missing geometry"
            if geometry.get("type") not in POLYGON_TYPES:
                return f"Feature {i} has invalid geometry type '{geometry.get('type')}'"
    else:
        if "coordinates" not in roi or roi["coordinates"] is None:
            return "ROI missing 'coordinates' property"
        if not isinstance(roi["coordinates"], list):
            return "ROI 'coordinates' is not an array"
        if len(roi["coordinates"]) == 0:
            return "ROI coordinates array is empty"

    return None


def generate_roi_recommendations(roi: Any) -> List[str]:
    if not roi:
        return [
            "Draw a region on the map before requesting analysis",
            "Use the drawing tools to select your area of interest",
        ]

    if not is_valid_roi_geometry(roi):
        return [
            "The ROI geometry appears to be invalid",
            "Try redrawing the region on the map",
            "Ensure you're drawing a polygon or multipolygon",
        ]

    return [
        "ROI appears valid - analysis should work",
        "If analysis fails, check console logs for API errors",
    ]


def _json_type_name(value: Any, present: bool = True) -> str:
    if not present:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def describe_roi(roi: Any, present: bool = True) -> Dict[str, Any]:
    """Build the diagnostic report returned by the ROI debug endpoint.

    Args:
        roi: The value the client sent as its ROI
        present: False when the client omitted the field entirely

    Returns:
        Dictionary with status flags, geometry details, validation result and
        recommendations
    """
    geometry_details = None
    if isinstance(roi, dict) and roi:
        coordinates = roi.get("coordinates")
        first_coordinate = None
        try:
            first_coordinate = coordinates[0][0][0]
        except (TypeError, IndexError, KeyError):
            first_coordinate = None

        geometry_details = {
            "hasType": bool(roi.get("type")),
            "type": roi.get("type"),
            "hasCoordinates": bool(coordinates),
            "coordinatesLength": len(coordinates) if isinstance(coordinates, list) else None,
            "firstCoordinate": first_coordinate,
            "keys": list(roi.keys()),
        }

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "roiStatus": {
            "exists": present and roi not in (None, "", False),
            "type": _json_type_name(roi, present),
            "isNull": present and roi is None,
            "isUndefined": not present,
            "isEmpty": roi == "" or (isinstance(roi, list) and len(roi) == 0),
        },
        "geometryDetails": geometry_details,
        "rawData": roi,
        "validation": {
            "isValidGeometry": is_valid_roi_geometry(roi),
            "errorMessage": get_roi_validation_error(roi),
        },
        "recommendations": generate_roi_recommendations(roi),
    }


def check_analysis_roi(roi: Any) -> Optional[str]:
    """Validate an ROI before it is sent to an analysis backend.

    Returns a user-facing error message, or None when the ROI is acceptable.
    """
    if not roi:
        return (
            "It seems you didn't provide a valid region of interest (ROI) for the analysis. "
            "you need to provide an ROI through importing a shapefile/geojson file or "
            "drawing a shape on the map."
        )

    if not isinstance(roi, dict) or roi.get("type") not in VALID_ROI_TYPES:
        return (
            "Selected ROI geometry must be a Polygon, MultiPolygon, or a FeatureCollection "
            "of polygons."
        )

    if roi["type"] == "FeatureCollection":
        for feature in roi.get("features") or []:
            geometry = feature.get("geometry") if isinstance(feature, dict) else None
            if not isinstance(geometry, dict) or geometry.get("type") not in POLYGON_TYPES:
                return "All features in the ROI must be polygons."

    return None


# ========== Geometry ==========


def roi_to_shape(roi: Dict[str, Any]):
    """Convert an ROI dict to a shapely (Multi)Polygon."""
    try:
        if roi.get("type") == "FeatureCollection":
            shapes = [shape(f["geometry"]) for f in roi.get("features", []) if f.get("geometry")]
            if not shapes:
                raise InvalidGeometryError("FeatureCollection has no features")
            return unary_union(shapes)
        return shape(roi)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidGeometryError(f"Invalid ROI geometry: {e}") from e


def compute_geodesic_area(geometry, geod: Geod = WGS84) -> float:
    """Geodesic area in square meters of a shapely Polygon or MultiPolygon."""
    if isinstance(geometry, Polygon):
        area, _ = geod.geometry_area_perimeter(geometry)
        return abs(area)
    if isinstance(geometry, MultiPolygon):
        return sum(compute_geodesic_area(part, geod) for part in geometry.geoms)
    # GeometryCollection from a union of mixed inputs
    if hasattr(geometry, "geoms"):
        return sum(
            compute_geodesic_area(part, geod)
            for part in geometry.geoms
            if isinstance(part, (Polygon, MultiPolygon))
        )
    return 0.0


def geodesic_area_m2(roi: Dict[str, Any]) -> float:
    return compute_geodesic_area(roi_to_shape(roi))


def calculate_geometry_area_km2(roi: Dict[str, Any]) -> float:
    return round(geodesic_area_m2(roi) / 1_000_000, 2)


def check_geometry_area_is_less_than_threshold(roi: Dict[str, Any], max_area: float) -> bool:
    return calculate_geometry_area_km2(roi) <= max_area


def outer_ring(roi: Dict[str, Any]) -> List[List[float]]:
    """First outer ring of the ROI as a list of [lng, lat] pairs."""
    roi_type = roi.get("type")
    try:
        if roi_type == "Polygon":
            ring = roi["coordinates"][0]
        elif roi_type == "MultiPolygon":
            ring = roi["coordinates"][0][0]
        elif roi_type == "FeatureCollection":
            return outer_ring(roi["features"][0]["geometry"])
        elif roi_type == "Feature":
            return outer_ring(roi["geometry"])
        else:
            raise InvalidGeometryError(f"Unsupported geometry type: {roi_type}")
    except (KeyError, IndexError, TypeError) as e:
        raise InvalidGeometryError("Invalid geometry provided") from e

    if not ring:
        raise InvalidGeometryError("Invalid geometry provided")
    return ring


def get_geometry_center(roi: Dict[str, Any]) -> Tuple[float, float]:
    """Mean of the outer ring vertices, returned as (lat, lng)."""
    ring = outer_ring(roi)
    lat = sum(c[1] for c in ring) / len(ring)
    lng = sum(c[0] for c in ring) / len(ring)
    return lat, lng


def geometry_to_bbox(roi: Dict[str, Any]) -> Tuple[float, float, float, float]:
    """Bounding box of the outer ring as (south, west, north, east)."""
    ring = outer_ring(roi)
    lats = [c[1] for c in ring]
    lngs = [c[0] for c in ring]
    return min(lats), min(lngs), max(lats), max(lngs)


def get_geometry_corners(roi: Dict[str, Any]) -> List[Dict[str, float]]:
    """SW, NW, NE and SE corners of the bounding box."""
    south, west, north, east = geometry_to_bbox(roi)
    return [
        {"lat": south, "lng": west},
        {"lat": north, "lng": west},
        {"lat": north, "lng": east},
        {"lat": south, "lng": east},
    ]


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
