"""TomTom routing and incident client for traffic congestion analysis."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import TOMTOM_API_BASE, get_tomtom_api_key
from core.errors import MissingApiKeyError, TrafficServiceError
from services.data_sources.http_client import request_json
from services.roi import geometry_to_bbox, get_geometry_center, get_geometry_corners

logger = logging.getLogger(__name__)

INCIDENT_TYPES = {
    0: "Unknown",
    1: "Accident",
    2: "Fog",
    3: "Dangerous Conditions",
    4: "Rain",
    5: "Ice",
    6: "Jam",
    7: "Lane Closed",
    8: "Road Closed",
    9: "Road Works",
    10: "Wind",
    11: "Flooding",
}

INCIDENT_CATEGORY_FILTER = ",".join(str(code) for code in INCIDENT_TYPES)

# Seconds of average delay above which each congestion level applies
CONGESTION_LEVELS = [(300, "Severe"), (120, "Heavy"), (60, "Moderate"), (30, "Light")]
HOTSPOT_DELAY_SECONDS = 60


def get_incident_type(icn_typ: Optional[int]) -> str:
    return INCIDENT_TYPES.get(icn_typ, "Unknown")


def map_severity(ty: Optional[int]) -> int:
    """Map TomTom's magnitude of delay onto 1 (minor) .. 4 (critical)."""
    ty = ty or 0
    if ty <= 1:
        return 1
    if ty <= 2:
        return 2
    if ty <= 3:
        return 3
    return 4


def calculate_severity_breakdown(incidents: List[Dict[str, Any]]) -> Dict[str, int]:
    breakdown = {"minor": 0, "moderate": 0, "major": 0, "critical": 0}
    names = {1: "minor", 2: "moderate", 3: "major", 4: "critical"}
    for incident in incidents:
        name = names.get(incident["severity"])
        if name:
            breakdown[name] += 1
    return breakdown


def congestion_level_for_delay(average_delay: float) -> str:
    for threshold, level in CONGESTION_LEVELS:
        if average_delay > threshold:
            return level
    return "Minimal"


def _average_speed_kmh(total_distance_m: float, total_time_s: float) -> float:
    if total_distance_m <= 0 or total_time_s <= 0:
        return 0.0
    return round(total_distance_m / total_time_s * 3.6, 1)


class TomTomTrafficService:
    def __init__(self, api_key: Optional[str] = None, base_url: str = TOMTOM_API_BASE):
        self.api_key = api_key or get_tomtom_api_key()
        if not self.api_key:
            raise MissingApiKeyError("TOMTOM_API_KEY")
        self.base_url = base_url

    def get_traffic_flow(
        self, start_lat: float, start_lng: float, end_lat: float, end_lng: float
    ) -> Dict[str, Any]:
        url = (
            f"{self.base_url}/services/4/calculateRoute/"
            f"{start_lat},{start_lng}:{end_lat},{end_lng}/json"
        )
        data = request_json(
            "GET",
            url,
            error_cls=TrafficServiceError,
            params={
                "key": self.api_key,
                "traffic": "true",
                "travelMode": "car",
                "routeType": "fastest",
            },
        )

        routes = data.get("routes") or []
        if not routes:
            raise TrafficServiceError("No route found")

        route = routes[0]
        summary = route.get("summary") or {}
        delay = summary.get("trafficDelayInSeconds") or 0
        return {
            "route": route,
            "trafficDelay": delay,
            "summary": {
                "lengthInMeters": summary.get("lengthInMeters", 0),
                "travelTimeInSeconds": summary.get("travelTimeInSeconds", 0),
                "trafficDelayInSeconds": delay,
                "departureTime": summary.get("departureTime"),
                "arrivalTime": summary.get("arrivalTime"),
            },
        }

    def get_traffic_incidents(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        south, west, north, east = geometry_to_bbox(geometry)
        url = f"{self.base_url}/services/4/incidentDetails/s3/{south},{west},{north},{east}/json"
        data = request_json(
            "GET",
            url,
            error_cls=TrafficServiceError,
            params={
                "key": self.api_key,
                "language": "en",
                "categoryFilter": INCIDENT_CATEGORY_FILTER,
            },
        )

        incidents = []
        for item in (data.get("tm") or {}).get("poi") or []:
            position = item.get("p") or {}
            incidents.append(
                {
                    "id": item.get("id"),
                    "type": get_incident_type(item.get("icnTyp")),
                    "severity": map_severity(item.get("ty")),
                    "description": item.get("d") or "Traffic incident",
                    "location": {"lat": position.get("y") or 0, "lng": position.get("x") or 0},
                    "roadName": item.get("rd") or "Unknown road",
                    "startTime": item.get("startTime") or datetime.now(timezone.utc).isoformat(),
                    "endTime": item.get("endTime"),
                    "delay": item.get("dl") or 0,
                }
            )

        return {
            "incidents": incidents,
            "totalIncidents": len(incidents),
            "severityBreakdown": calculate_severity_breakdown(incidents),
        }

    def analyze_regional_traffic(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        """Sample routes from the ROI centre to each bounding-box corner.

        Routes that fail are skipped. When none succeed the level is "Unknown".
        """
        center_lat, center_lng = get_geometry_center(geometry)
        samples = []
        for corner in get_geometry_corners(geometry):
            try:
                flow = self.get_traffic_flow(center_lat, center_lng, corner["lat"], corner["lng"])
            except TrafficServiceError as e:
                logger.warning(f"Failed to get traffic for route to {corner}: {e}")
                continue
            samples.append((corner, flow))

        if not samples:
            return {
                "congestionLevel": "Unknown",
                "averageSpeed": 0,
                "congestionHotspots": [],
                "recommendations": ["Traffic data unavailable for this region"],
            }

        average_delay = sum(flow["trafficDelay"] for _, flow in samples) / len(samples)
        total_distance = sum(flow["summary"]["lengthInMeters"] or 0 for _, flow in samples)
        total_time = sum(flow["summary"]["travelTimeInSeconds"] or 0 for _, flow in samples)
        average_speed = _average_speed_kmh(total_distance, total_time)
        congestion_level = congestion_level_for_delay(average_delay)

        hotspots = [
            {
                "location": corner,
                "congestionScore": round(flow["trafficDelay"] / 60, 1),
                "description": f"{round(flow['trafficDelay'] / 60)} min delay on this route",
            }
            for corner, flow in samples
            if flow["trafficDelay"] > HOTSPOT_DELAY_SECONDS
        ]

        recommendations = []
        if congestion_level in ("Severe", "Heavy"):
            recommendations.append("Consider implementing traffic management systems")
            recommendations.append("Evaluate public transportation improvements")
            recommendations.append("Analyze alternative route options")
        if len(hotspots) > 2:
            recommendations.append(
                "Multiple congestion points identified - comprehensive traffic study recommended"
            )
        if average_speed < 20:
            recommendations.append("Very low average speeds - consider infrastructure upgrades")

        return {
            "congestionLevel": congestion_level,
            "averageSpeed": average_speed,
            "congestionHotspots": hotspots,
            "recommendations": recommendations,
        }

    def get_optimal_routes(self, points: List[Dict[str, float]]) -> Dict[str, Any]:
        routes = []
        total_distance = 0
        total_time = 0

        for origin, destination in zip(points, points[1:]):
            try:
                flow = self.get_traffic_flow(
                    origin["lat"], origin["lng"], destination["lat"], destination["lng"]
                )
            except TrafficServiceError as e:
                logger.warning(f"Failed to get route from {origin} to {destination}: {e}")
                continue

            route = {
                "from": origin,
                "to": destination,
                "distance": flow["summary"]["lengthInMeters"],
                "travelTime": flow["summary"]["travelTimeInSeconds"],
                "trafficDelay": flow["trafficDelay"],
            }
            routes.append(route)
            total_distance += route["distance"] or 0
            total_time += route["travelTime"] or 0

        return {
            "routes": routes,
            "totalDistance": total_distance,
            "totalTime": total_time,
            "averageSpeed": _average_speed_kmh(total_distance, total_time),
        }
