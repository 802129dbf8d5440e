#!/usr/bin/env python3
"""
Manual smoke test against a running backend (uvicorn main:app --port 8000).

Exercises the ROI debug endpoint and the urban planning analyses with real
third-party services, so TOMTOM_API_KEY and GCP_SERVICE_ACCOUNT_KEY must be set
on the server for the analyses to succeed.
"""

import json
import logging
import os

import requests

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")

MANHATTAN = {
    "type": "Polygon",
    "coordinates": [
        [
            [-73.9857, 40.7484],
            [-73.9787, 40.7484],
            [-73.9787, 40.7544],
            [-73.9857, 40.7544],
            [-73.9857, 40.7484],
        ]
    ],
}

LOS_ANGELES = {
    "type": "Polygon",
    "coordinates": [
        [
            [-118.2537, 34.0422],
            [-118.2337, 34.0422],
            [-118.2337, 34.0622],
            [-118.2537, 34.0622],
            [-118.2537, 34.0422],
        ]
    ],
}


def post(path, body):
    response = requests.post(f"{BASE_URL}/api{path}", json=body, timeout=300)
    logger.info(f"POST {path} -> {response.status_code}")
    return response.json()


def check_roi_debug():
    print("Testing ROI debug endpoint:")
    result = post("/debug/roi-status", {"selectedRoiGeometryInChat": MANHATTAN})
    print(f"  valid ROI -> {json.dumps(result['debug']['validation'])}")

    result = post("/debug/roi-status", {})
    print(f"  missing ROI -> {result['debug']['roiStatus']}")
    print(f"  recommendations: {result['debug']['recommendations']}")


def check_traffic():
    print("\nTesting traffic congestion analysis for Manhattan:")
    result = post(
        "/urban-planning/request-infrastructure-analysis",
        {
            "analysisType": "Traffic Congestion Hotspots",
            "infrastructureType": "Roads and Highways",
            "selectedRoiGeometry": MANHATTAN,
        },
    )
    if not result.get("success"):
        print(f"  failed: {result.get('error')} ({result.get('details')})")
        return
    print(f"  API status: {result['apiStatus']}")
    print(f"  congestion score: {result['overallCongestionScore']}/10")
    print(f"  hotspots: {len(result['congestionHotspots'])}")
    print(f"  additional data: {json.dumps(result['additionalData'], indent=2)}")


def check_green_space():
    print("\nTesting green space analysis for Los Angeles:")
    result = post(
        "/urban-planning/request-green-space-analysis",
        {
            "analysisType": "Green Space Coverage Assessment",
            "vegetationIndex": "NDVI",
            "selectedRoiGeometry": LOS_ANGELES,
        },
    )
    if not result.get("success"):
        print(f"  failed: {result.get('error')} ({result.get('details')})")
        return
    print(f"  API status: {result['apiStatus']}")
    print(f"  metrics: {json.dumps(result['overallMetrics'], indent=2)}")
    print(f"  weather: {json.dumps(result['weatherIntegration'], indent=2)}")


if __name__ == "__main__":
    check_roi_debug()
    check_traffic()
    check_green_space()
