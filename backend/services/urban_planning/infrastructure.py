"""
Transport infrastructure analyses.

Traffic comes from TomTom and requires ``TOMTOM_API_KEY``; road networks and
transit stops come from OpenStreetMap through the Overpass API.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.errors import MissingApiKeyError, WeatherServiceError
from services.data_sources.openstreetmap import OpenStreetMapService
from services.data_sources.tomtom import TomTomTrafficService
from services.data_sources.weather import OpenWeatherMapService
from services.roi import get_geometry_center

logger = logging.getLogger(__name__)

PRIMARY_ROAD_TYPES = ("motorway", "trunk", "primary")
SECONDARY_ROAD_TYPES = ("secondary", "tertiary")
LOCAL_ROAD_TYPES = ("residential", "unclassified")

MIN_TRANSIT_STOPS = 5
WEATHER_NOT_CONFIGURED = "Weather analysis unavailable - API not configured"


def hotspot_severity(congestion_score: float) -> str:
    if congestion_score > 8:
        return "high"
    if congestion_score > 5:
        return "medium"
    return "low"


def overall_congestion_score(average_speed: float) -> int:
    """Score out of 10; slower average speeds mean heavier congestion."""
    if average_speed < 20:
        return 8
    if average_speed < 40:
        return 5
    return 3


def analyze_traffic_congestion(
    geometry: Dict[str, Any], traffic_service: Optional[TomTomTrafficService] = None
) -> Dict[str, Any]:
    """Regional TomTom traffic and incidents.

    Raises:
        MissingApiKeyError: If TOMTOM_API_KEY is not set
        TrafficServiceError: If the incident lookup fails
    """
    traffic_service = traffic_service or TomTomTrafficService()
    regional = traffic_service.analyze_regional_traffic(geometry)
    incidents = traffic_service.get_traffic_incidents(geometry)

    hotspots = [
        {
            "location": hotspot["location"],
            "congestionLevel": hotspot["congestionScore"],
            "peakHours": ["Current real-time data"],
            "averageDelay": hotspot["description"],
            "affectedRoutes": ["Route data from TomTom"],
            "severity": hotspot_severity(hotspot["congestionScore"]),
        }
        for hotspot in regional["congestionHotspots"]
    ]

    return {
        "congestionHotspots": hotspots,
        "overallCongestionScore": overall_congestion_score(regional["averageSpeed"]),
        "analysisDate": datetime.now(timezone.utc).isoformat(),
        "dataSource": "TomTom Traffic API",
        "additionalData": {
            "averageSpeed": f"{regional['averageSpeed']} km/h",
            "congestionLevel": regional["congestionLevel"],
            "totalIncidents": incidents["totalIncidents"],
            "incidentBreakdown": incidents["severityBreakdown"],
            "recommendations": regional["recommendations"],
        },
    }


def analyze_road_network_density(
    geometry: Dict[str, Any], osm_service: Optional[OpenStreetMapService] = None
) -> Dict[str, Any]:
    osm_service = osm_service or OpenStreetMapService()
    network = osm_service.get_road_network(geometry)
    roads = network["roads"]
    density = network["networkDensity"]

    road_types: Dict[str, int] = {}
    for road in roads:
        road_types[road["type"]] = road_types.get(road["type"], 0) + 1

    area_km2 = (network["totalLength"] / 1000) / density if density > 0 else 0
    intersection_density = len(network["intersections"]) / area_km2 if area_km2 > 0 else 0

    return {
        "roadDensity": {
            "totalRoadLength": network["totalLength"],
            "roadDensityPerSqKm": density,
            "primaryRoads": sum(1 for road in roads if road["type"] in PRIMARY_ROAD_TYPES),
            "secondaryRoads": sum(1 for road in roads if road["type"] in SECONDARY_ROAD_TYPES),
            "localRoads": sum(1 for road in roads if road["type"] in LOCAL_ROAD_TYPES),
        },
        "connectivity": {
            "intersectionDensity": round(intersection_density, 2),
            "totalRoads": len(roads),
            "connectivityIndex": min(1, density / 10),
        },
        "roadTypes": road_types,
        "dataSource": "OpenStreetMap via Overpass API",
    }


def analyze_public_transport_accessibility(
    geometry: Dict[str, Any], osm_service: Optional[OpenStreetMapService] = None
) -> Dict[str, Any]:
    osm_service = osm_service or OpenStreetMapService()
    transport = osm_service.get_public_transport(geometry)

    stops = []
    for stop in transport["stops"]:
        tags = stop.get("tags") or {}
        stops.append(
            {
                "id": stop["id"],
                "name": stop["name"],
                "type": stop["type"],
                "location": stop["location"],
                "routes": tags["route_ref"].split(";") if tags.get("route_ref") else [],
                "accessibility": tags.get("wheelchair", "unknown"),
            }
        )

    total = len(stops)
    accessible = sum(1 for stop in stops if stop["accessibility"] == "yes")
    service_gaps = []
    if total < MIN_TRANSIT_STOPS:
        service_gaps.append(
            {
                "area": "Analysis region",
                "population": "Unknown",
                "nearestStop": "Multiple stops identified" if total else "No stops found",
                "priority": "high",
                "recommendedSolution": "Improve public transit coverage",
            }
        )

    return {
        "accessibilityMetrics": {
            "totalStops": total,
            "transitCoverage": f"{total} transit stops identified" if total else "0%",
            "stopsPerKm2": transport["coverage"]["stopsPerKm2"],
            "modalOptions": sorted({stop["type"] for stop in stops}),
            "accessibilityRatio": f"{accessible / total:.2f}" if total else "0.00",
        },
        "transitStops": stops,
        "serviceGaps": service_gaps,
        "accessibilityScore": transport["coverage"]["accessibilityScore"],
        "dataSource": "OpenStreetMap public transport data",
    }


def _weather_considerations(geometry: Dict[str, Any]) -> Optional[str]:
    try:
        service = OpenWeatherMapService()
        lat, lng = get_geometry_center(geometry)
        weather = service.get_current_weather(lat, lng)
    except MissingApiKeyError:
        return None
    except WeatherServiceError as e:
        logger.warning(f"Weather lookup for flyover recommendations failed: {e}")
        return None
    return (
        f"Climate considerations: {weather['description']}, "
        f"avg temp: {weather['temperature']}°C, wind: {weather['windSpeed']}m/s"
    )


def generate_flyover_recommendations(
    geometry: Dict[str, Any], congestion: Dict[str, Any]
) -> Dict[str, Any]:
    """One flyover candidate per congestion hotspot, worst delay first."""
    weather = _weather_considerations(geometry)
    hotspots = sorted(
        congestion["congestionHotspots"], key=lambda h: h["congestionLevel"], reverse=True
    )

    recommendations = []
    for number, hotspot in enumerate(hotspots, start=1):
        recommendations.append(
            {
                "id": f"flyover_{number:03d}",
                "type": "flyover",
                "location": hotspot["location"],
                "priority": "high" if hotspot["severity"] == "high" else "medium",
                "justification": (
                    f"Real traffic data shows congestion level: {hotspot['congestionLevel']}/10"
                ),
                "impact": {
                    "timeSavings": hotspot["averageDelay"],
                    "environmentalImpact": "Reduced emissions from idling vehicles",
                },
                "implementation": {
                    "permits": ["Environmental Impact Assessment", "Traffic Impact Study"],
                    "weatherConsiderations": weather or WEATHER_NOT_CONFIGURED,
                },
            }
        )

    return {
        "recommendations": recommendations,
        "costBenefitAnalysis": {
            "candidateSites": len(recommendations),
            "economicImpact": "Based on real traffic congestion analysis",
            "dataQuality": congestion["dataSource"],
        },
    }


def traffic_recommendations(congestion: Dict[str, Any]) -> List[Dict[str, Any]]:
    hotspots = congestion["congestionHotspots"]
    if not hotspots:
        return []
    return [
        {
            "type": "traffic_signal_optimization",
            "location": hotspots[0]["location"],
            "description": "Implement adaptive traffic signal timing based on real-time data",
            "expectedImprovement": "20-25% reduction in delays",
            "dataSource": congestion["dataSource"],
        },
        {
            "type": "lane_management",
            "location": hotspots[1]["location"] if len(hotspots) > 1 else hotspots[0]["location"],
            "description": "Dynamic lane management during peak hours",
            "expectedImprovement": "15-20% increase in throughput",
        },
    ]


def infrastructure_score(
    traffic: Dict[str, Any], network: Dict[str, Any], transit: Dict[str, Any]
) -> float:
    """Mean of traffic flow, road connectivity and transit access, each on 0-10."""
    traffic_score = 10 - traffic["overallCongestionScore"]
    connectivity_score = network["connectivity"]["connectivityIndex"] * 10
    transit_score = transit["accessibilityScore"] * 10
    score = (traffic_score + connectivity_score + transit_score) / 3
    return round(min(10.0, max(0.0, score)), 1)


def run_infrastructure_analysis(analysis_type: str, geometry: Dict[str, Any]) -> Dict[str, Any]:
    if analysis_type == "Flyover and Bridge Requirements":
        congestion = analyze_traffic_congestion(geometry)
        network = analyze_road_network_density(geometry)
        flyovers = generate_flyover_recommendations(geometry, congestion)
        return {
            **flyovers,
            "congestionAnalysis": congestion,
            "networkAnalysis": network,
            "summary": {
                "totalRecommendations": len(flyovers["recommendations"]),
                "highPriorityItems": sum(
                    1 for item in flyovers["recommendations"] if item["priority"] == "high"
                ),
                "dataQuality": (
                    f"Traffic: {congestion['dataSource']}, Roads: {network['dataSource']}"
                ),
            },
        }

    if analysis_type == "Traffic Congestion Hotspots":
        congestion = analyze_traffic_congestion(geometry)
        return {**congestion, "recommendations": traffic_recommendations(congestion)}

    if analysis_type == "Public Transport Accessibility":
        return analyze_public_transport_accessibility(geometry)

    if analysis_type == "Road Network Density":
        network = analyze_road_network_density(geometry)
        return {
            **network,
            "recommendations": [
                {
                    "type": "new_connector_road",
                    "description": (
                        "Build connector road between isolated areas "
                        "(based on real road network analysis)"
                    ),
                    "priority": "high" if network["connectivity"]["connectivityIndex"] < 0.5 else "medium",
                    "dataSource": network["dataSource"],
                }
            ],
        }

    if analysis_type == "Infrastructure Gap Analysis":
        traffic = analyze_traffic_congestion(geometry)
        network = analyze_road_network_density(geometry)
        transit = analyze_public_transport_accessibility(geometry)
        return {
            "trafficAnalysis": traffic,
            "networkAnalysis": network,
            "transitAnalysis": transit,
            "overallAssessment": {
                "infrastructureScore": infrastructure_score(traffic, network, transit),
                "dataQuality": {
                    "traffic": traffic["dataSource"],
                    "roads": network["dataSource"],
                    "transit": transit["dataSource"],
                },
            },
        }

    raise ValueError(f"Unsupported infrastructure analysis type: {analysis_type}")
