import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
# Load .env.local first (for local development), then .env (fallback)
load_dotenv(".env.local", override=True)  # Local development overrides
load_dotenv()  # Load .env if exists (won't override existing vars)
# General config in a central place


def _env_bool(name: str, default: str = "false") -> bool:
    """Parse a boolean-like environment variable.

    Accepts a broad set of truthy values to be user-friendly.
    """
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on", "y"}


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


# Application

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")

# Origin allowed to call the feedback endpoint from the browser
APP_URL = os.getenv("NEXT_PUBLIC_APP_URL", os.getenv("APP_URL", "http://localhost:3000"))

# CORS configuration
# Comma-separated list of allowed origins; if empty, allow all (not recommended with credentials)
RAW_ALLOWED_ORIGINS = os.getenv("ALLOWED_CORS_ORIGINS", "")
ALLOWED_CORS_ORIGINS = [o.strip() for o in RAW_ALLOWED_ORIGINS.split(",") if o.strip()]

# Identity used by the local (single user) deployment
LOCAL_USER_ID = os.getenv("LOCAL_USER_ID", "local-user-id")

# Timeout in seconds for outbound HTTP calls to third-party services
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "60"))


# ----------------------------------------------------------------------------
# Third-party services
# ----------------------------------------------------------------------------

GOOGLE_MAPS_TILE_URL = "https://maps.googleapis.com/maps/vt"
ARCGIS_REST_BASE = os.getenv("ARCGIS_REST_BASE", "https://www.arcgis.com/sharing/rest")
OPENWEATHER_API_BASE = os.getenv(
    "OPENWEATHER_API_BASE", "https://api.openweathermap.org/data/2.5"
)
TOMTOM_API_BASE = os.getenv("TOMTOM_API_BASE", "https://api.tomtom.com/traffic")
OVERPASS_API_URL = os.getenv("OVERPASS_API_URL", "https://overpass-api.de/api/interpreter")
WORLDPOP_API_BASE = os.getenv("WORLDPOP_API_BASE", "https://api.worldpop.org/v1")
MAILGUN_API_BASE = os.getenv("MAILGUN_API_BASE", "https://api.mailgun.net/v3")
FLASK_API_BASE_URL = os.getenv("FLASK_API_BASE_URL", "http://localhost:5000")

# Earth Engine
GEE_PROJECT = _env_optional("GEE_PROJECT")

# When enabled, Land Use/Land Cover requests are routed through the Flask
# sidecar even when the client does not ask for experimental analysis.
PREFER_FLASK_API = _env_bool("CHAT2GEO_PREFER_FLASK_API", default="false")


# Secrets are read through accessors so tests can override the environment at
# runtime without reloading this module.


def get_google_maps_api_key() -> Optional[str]:
    return _env_optional("GOOGLE_MAPS_API_KEY")


def get_gcp_service_account_key() -> Optional[str]:
    """Return the raw service account JSON used for Earth Engine."""
    return _env_optional("GCP_SERVICE_ACCOUNT_KEY")


def get_openweather_api_key() -> Optional[str]:
    return _env_optional("OPENWEATHER_API_KEY")


def get_tomtom_api_key() -> Optional[str]:
    return _env_optional("TOMTOM_API_KEY")


def get_mailgun_settings() -> dict:
    """Return the Mailgun settings; values are None when unset."""
    return {
        "api_key": _env_optional("MAILGUN_API_KEY"),
        "domain": _env_optional("MAILGUN_DOMAIN"),
        "recipient": _env_optional("RECIPIENT_EMAIL"),
        "sender": _env_optional("SENDER_EMAIL"),
    }
