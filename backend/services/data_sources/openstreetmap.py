"""
OpenStreetMap data via the Overpass API.

Components:
- OverpassQueryBuilder: builds Overpass QL for the feature families used by the analyses
- OpenStreetMapService: runs the queries and derives road, transit and building metrics
"""

import logging
from typing import Any, Dict, List

from shapely.geometry import Polygon

from core.config import OVERPASS_API_URL
from core.errors import DataSourceError, InvalidGeometryError, OverpassServiceError
from services.data_sources.http_client import request_json
from services.roi import compute_geodesic_area, geodesic_area_m2, geometry_to_bbox, haversine_distance

logger = logging.getLogger(__name__)

OVERPASS_HEADERS = {
    "User-Agent": "Chat2Geo, urban planning geospatial analysis",
    "Content-Type": "application/x-www-form-urlencoded",
}

ROAD_HIGHWAY_PATTERN = "^(motorway|trunk|primary|secondary|tertiary|residential|unclassified)$"

FEATURE_TYPES = ("roads", "buildings", "transport", "landuse", "amenities", "waterways")


class OverpassQueryBuilder:
    """Builds Overpass QL union queries over a bounding box."""

    def __init__(self, timeout: int = 25):
        self.timeout = timeout

    @staticmethod
    def statements(feature_type: str, bbox: str) -> List[str]:
        if feature_type == "roads":
            return [f'way["highway"~"{ROAD_HIGHWAY_PATTERN}"]({bbox});']
        if feature_type == "buildings":
            return [f'way["building"]({bbox});']
        if feature_type == "transport":
            return [
                f'node["public_transport"="stop_position"]({bbox});',
                f'node["highway"="bus_stop"]({bbox});',
                f'way["public_transport"="platform"]({bbox});',
                f'node["railway"="station"]({bbox});',
                f'node["railway"="subway_entrance"]({bbox});',
            ]
        if feature_type == "landuse":
            return [f'way["landuse"]({bbox});']
        if feature_type == "amenities":
            return [f'node["amenity"]({bbox});']
        if feature_type == "waterways":
            return [f'way["waterway"]({bbox});']
        logger.warning(f"Ignoring unknown OSM feature type: {feature_type}")
        return []

    def build(self, bbox: str, feature_types: List[str]) -> str:
        parts = [f"[out:json][timeout:{self.timeout}];", "("]
        for feature_type in feature_types:
            parts.extend(self.statements(feature_type, bbox))
        parts.append(");")
        parts.append("out geom;")
        return "\n".join(parts)


def bbox_string(geometry: Dict[str, Any]) -> str:
    """Overpass bbox order: south,west,north,east."""
    return ",".join(str(value) for value in geometry_to_bbox(geometry))


def calculate_road_length(coordinates: List[Dict[str, float]]) -> float:
    """Length of a polyline of ``{"lat", "lng"}`` points in meters."""
    return sum(
        haversine_distance(a["lat"], a["lng"], b["lat"], b["lng"])
        for a, b in zip(coordinates, coordinates[1:])
    )


def find_intersections(roads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Treat endpoints shared by more than one road as intersections."""
    endpoints: Dict[str, List[int]] = {}
    for road in roads:
        coordinates = road["coordinates"]
        if len(coordinates) < 2:
            continue
        for point in (coordinates[0], coordinates[-1]):
            key = f"{point['lat']:.6f},{point['lng']:.6f}"
            endpoints.setdefault(key, []).append(road["id"])

    intersections = []
    for key, road_ids in endpoints.items():
        if len(road_ids) > 1:
            lat, lng = (float(value) for value in key.split(","))
            intersections.append(
                {"id": len(intersections) + 1, "location": {"lat": lat, "lng": lng}, "roads": road_ids}
            )
    return intersections


def _footprint_area_m2(coordinates: List[Dict[str, float]]) -> float:
    if len(coordinates) < 3:
        return 0.0
    return compute_geodesic_area(Polygon([(c["lng"], c["lat"]) for c in coordinates]))


def _roi_area_m2(geometry: Dict[str, Any]) -> float:
    try:
        return geodesic_area_m2(geometry)
    except (InvalidGeometryError, ValueError) as e:
        logger.warning(f"Could not compute ROI area: {e}")
        return 0.0


def _way_coordinates(element: Dict[str, Any]) -> List[Dict[str, float]]:
    return [{"lat": point["lat"], "lng": point["lon"]} for point in element.get("geometry") or []]


class OpenStreetMapService:
    def __init__(self, api_url: str = OVERPASS_API_URL, timeout: int = 25):
        self.api_url = api_url
        self.query_builder = OverpassQueryBuilder(timeout=timeout)
        self.timeout = timeout

    def get_features(self, geometry: Dict[str, Any], feature_types: List[str]) -> Dict[str, Any]:
        query = self.query_builder.build(bbox_string(geometry), feature_types)
        logger.info(f"Querying OpenStreetMap for: {', '.join(feature_types)}")
        data = request_json(
            "POST",
            self.api_url,
            error_cls=OverpassServiceError,
            # Allow slightly more time than the query timeout
            timeout=self.timeout + 10,
            data={"data": query},
            headers=OVERPASS_HEADERS,
        )
        logger.info(f"OpenStreetMap query returned {len(data.get('elements') or [])} elements")
        return data

    def get_road_network(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        """Road ways in the ROI with total length (m) and density (km of road per km²)."""
        try:
            data = self.get_features(geometry, ["roads"])
        except DataSourceError as e:
            logger.error(f"Error getting road network: {e}")
            return {"roads": [], "totalLength": 0, "networkDensity": 0, "intersections": []}

        roads = []
        for element in data.get("elements") or []:
            if element.get("type") != "way" or not element.get("geometry"):
                continue
            tags = element.get("tags") or {}
            coordinates = _way_coordinates(element)
            roads.append(
                {
                    "id": element["id"],
                    "type": tags.get("highway", "unknown"),
                    "name": tags.get("name") or f"Road {element['id']}",
                    "length": calculate_road_length(coordinates),
                    "coordinates": coordinates,
                }
            )

        total_length = sum(road["length"] for road in roads)
        area_m2 = _roi_area_m2(geometry)
        density = (total_length / 1000) / (area_m2 / 1_000_000) if area_m2 > 0 else 0

        return {
            "roads": roads,
            "totalLength": round(total_length, 2),
            "networkDensity": round(density, 2),
            "intersections": find_intersections(roads),
        }

    def get_public_transport(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        try:
            data = self.get_features(geometry, ["transport"])
        except DataSourceError as e:
            logger.error(f"Error getting public transport data: {e}")
            return {
                "stops": [],
                "coverage": {"totalStops": 0, "stopsPerKm2": 0, "accessibilityScore": 0},
            }

        stops = []
        for element in data.get("elements") or []:
            if element.get("type") != "node" or element.get("lat") is None or element.get("lon") is None:
                continue
            tags = element.get("tags") or {}
            stops.append(
                {
                    "id": element["id"],
                    "name": tags.get("name") or f"Stop {element['id']}",
                    "type": (
                        tags.get("public_transport")
                        or tags.get("highway")
                        or tags.get("railway")
                        or "unknown"
                    ),
                    "location": {"lat": element["lat"], "lng": element["lon"]},
                    "tags": tags,
                }
            )

        area_km2 = _roi_area_m2(geometry) / 1_000_000
        stops_per_km2 = len(stops) / area_km2 if area_km2 > 0 else 0
        accessibility_score = min(1, stops_per_km2 / 10)

        return {
            "stops": stops,
            "coverage": {
                "totalStops": len(stops),
                "stopsPerKm2": round(stops_per_km2, 2),
                "accessibilityScore": round(accessibility_score, 2),
            },
        }

    def get_buildings(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        try:
            data = self.get_features(geometry, ["buildings"])
        except DataSourceError as e:
            logger.error(f"Error getting building data: {e}")
            return {
                "buildings": [],
                "density": {
                    "totalBuildings": 0,
                    "buildingsPerKm2": 0,
                    "totalBuildingArea": 0,
                    "buildingCoverage": 0,
                },
            }

        buildings = []
        for element in data.get("elements") or []:
            if element.get("type") != "way" or not element.get("geometry"):
                continue
            coordinates = _way_coordinates(element)
            buildings.append(
                {
                    "id": element["id"],
                    "type": (element.get("tags") or {}).get("building", "yes"),
                    "area": _footprint_area_m2(coordinates),
                    "coordinates": coordinates,
                }
            )

        total_building_area = sum(building["area"] for building in buildings)
        area_m2 = _roi_area_m2(geometry)
        buildings_per_km2 = len(buildings) / (area_m2 / 1_000_000) if area_m2 > 0 else 0
        coverage = total_building_area / area_m2 * 100 if area_m2 > 0 else 0

        return {
            "buildings": buildings,
            "density": {
                "totalBuildings": len(buildings),
                "buildingsPerKm2": round(buildings_per_km2),
                "totalBuildingArea": round(total_building_area, 2),
                "buildingCoverage": round(coverage, 2),
            },
        }
