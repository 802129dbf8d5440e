import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add the backend root directory to Python path first
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

SERVICE_KEYS = [
    "GOOGLE_MAPS_API_KEY",
    "GCP_SERVICE_ACCOUNT_KEY",
    "OPENWEATHER_API_KEY",
    "TOMTOM_API_KEY",
    "MAILGUN_API_KEY",
    "MAILGUN_DOMAIN",
    "RECIPIENT_EMAIL",
    "SENDER_EMAIL",
]


@pytest.fixture(autouse=True)
def no_service_keys(monkeypatch):
    """Start every test without third-party credentials."""
    for key in SERVICE_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def manhattan_roi():
    """A small polygon in midtown Manhattan."""
    return {
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


@pytest.fixture
def make_response():
    """Build a stand-in for a ``requests.Response``."""

    def _make(payload=None, status_code=200, reason="OK", invalid_json=False):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.reason = reason
        if invalid_json:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        else:
            response.json.return_value = payload
        return response

    return _make
