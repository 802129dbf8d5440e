"""Shared JSON-over-HTTP call used by the third-party API clients."""

import logging
from typing import Any, Optional, Type

import requests

from core.config import REQUEST_TIMEOUT
from core.errors import DataSourceError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "Chat2Geo, urban planning geospatial analysis",
    "Accept": "application/json",
}


def request_json(
    method: str,
    url: str,
    error_cls: Type[DataSourceError] = DataSourceError,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> Any:
    """Send a request and decode the JSON body.

    Raises:
        error_cls: On timeouts, connection failures, non-2xx answers and bodies
            that are not JSON. ``status_code`` is set when the service answered.
    """
    headers = {**DEFAULT_HEADERS, **kwargs.pop("headers", {})}
    try:
        response = requests.request(
            method, url, headers=headers, timeout=timeout or REQUEST_TIMEOUT, **kwargs
        )
    except requests.exceptions.Timeout as e:
        logger.error(f"{error_cls.service} request to {url} timed out")
        raise error_cls(f"{error_cls.service} request timed out") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Error connecting to {error_cls.service}: {e}")
        raise error_cls(f"Error connecting to {error_cls.service}: {e}") from e

    if not response.ok:
        logger.error(
            f"{error_cls.service} request failed: {response.status_code} {response.reason}"
        )
        raise error_cls(
            f"{error_cls.service} API error: {response.status_code} {response.reason}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as e:
        raise error_cls(
            f"Error parsing {error_cls.service} response (invalid JSON)",
            status_code=response.status_code,
        ) from e
