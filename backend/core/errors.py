"""Exception types raised by the service layer.

Routers translate these into HTTP responses; services never build responses
themselves.
"""

from typing import Optional


class Chat2GeoError(Exception):
    """Base class for all service-level failures."""


class MissingApiKeyError(Chat2GeoError):
    def __init__(self, variable: str):
        super().__init__(f"{variable} is not configured")
        self.variable = variable


class InvalidGeometryError(Chat2GeoError, ValueError):
    pass


class DataSourceError(Chat2GeoError):
    """An upstream REST API answered with an error or could not be reached."""

    service = "Upstream"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WeatherServiceError(DataSourceError):
    service = "OpenWeatherMap"


class TrafficServiceError(DataSourceError):
    service = "TomTom"


class OverpassServiceError(DataSourceError):
    service = "Overpass"


class WorldPopError(DataSourceError):
    service = "WorldPop"


class EsriError(DataSourceError):
    service = "ArcGIS"


class MailgunError(DataSourceError):
    service = "Mailgun"


class FlaskAPIError(DataSourceError):
    service = "Flask API"


class FlaskIntegrationError(Chat2GeoError):
    pass


class GeeAuthenticationError(Chat2GeoError):
    pass


class EarthEngineDataError(Chat2GeoError):
    """Earth Engine returned no usable statistics for the ROI."""


class UnsupportedDocumentType(Chat2GeoError):
    pass


class WorldPopTaskError(WorldPopError):
    """An asynchronous WorldPop task reported failure or never finished."""
