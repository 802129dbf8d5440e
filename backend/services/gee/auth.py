"""Earth Engine and Google identity authentication from the service account key."""

import json
import logging

import ee
import google.auth.transport.requests
from google.oauth2 import service_account

from core.config import GEE_PROJECT, get_gcp_service_account_key
from core.errors import GeeAuthenticationError

logger = logging.getLogger(__name__)

_initialized = False


def _load_service_account_info() -> dict:
    key = get_gcp_service_account_key()
    if not key:
        raise GeeAuthenticationError("GCP_SERVICE_ACCOUNT_KEY environment variable is not set")
    try:
        return json.loads(key)
    except json.JSONDecodeError as e:
        raise GeeAuthenticationError(f"GCP_SERVICE_ACCOUNT_KEY is not valid JSON: {e}") from e


def gee_authenticate() -> None:
    """Initialize Earth Engine with the service account. Runs once per process."""
    global _initialized
    if _initialized:
        return

    info = _load_service_account_info()
    try:
        credentials = ee.ServiceAccountCredentials(
            info.get("client_email"), key_data=json.dumps(info)
        )
        ee.Initialize(credentials, project=GEE_PROJECT or info.get("project_id"))
    except ee.EEException as e:
        logger.error(f"Earth Engine initialization failed: {e}")
        raise GeeAuthenticationError(str(e)) from e

    _initialized = True
    logger.info("Earth Engine initialized with service account credentials")


def get_identity_token_google(target_audience: str) -> str:
    """Mint an ID token for ``target_audience`` and return it as an Authorization header value."""
    info = _load_service_account_info()
    credentials = service_account.IDTokenCredentials.from_service_account_info(
        info, target_audience=target_audience
    )
    credentials.refresh(google.auth.transport.requests.Request())
    return f"Bearer {credentials.token}"
