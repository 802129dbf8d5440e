"""
OpenWeatherMap client.

Current conditions and the 5-day forecast for a point or a region, plus the
derived heat stress index and the climate suitability assessment used by the
green infrastructure analyses.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TypedDict

from core.config import OPENWEATHER_API_BASE, get_openweather_api_key
from core.errors import MissingApiKeyError, WeatherServiceError
from services.data_sources.http_client import request_json
from services.roi import get_geometry_center

logger = logging.getLogger(__name__)


class WeatherData(TypedDict):
    temperature: float
    humidity: float
    pressure: float
    windSpeed: float
    windDirection: Optional[float]
    cloudCover: float
    visibility: Optional[float]
    weatherCondition: str
    description: str


def _to_weather_data(data: Dict[str, Any]) -> WeatherData:
    main = data["main"]
    wind = data.get("wind") or {}
    weather = (data.get("weather") or [{}])[0]
    return {
        "temperature": main["temp"],
        "humidity": main["humidity"],
        "pressure": main["pressure"],
        "windSpeed": wind.get("speed", 0),
        "windDirection": wind.get("deg"),
        "cloudCover": (data.get("clouds") or {}).get("all", 0),
        "visibility": data.get("visibility"),
        "weatherCondition": weather.get("main", ""),
        "description": weather.get("description", ""),
    }


def calculate_heat_stress_index(temperature: float, humidity: float) -> Dict[str, Any]:
    """Simplified heat index: temperature adjusted by half the humidity excess over 40%."""
    heat_index = temperature + 0.5 * (humidity - 40)

    if heat_index < 25:
        level, description = "Low", "Comfortable conditions"
    elif heat_index < 30:
        level, description = "Moderate", "Slightly uncomfortable"
    elif heat_index < 35:
        level, description = "High", "Uncomfortable, heat stress possible"
    elif heat_index < 40:
        level, description = "Very High", "Heat exhaustion and heat cramps possible"
    else:
        level, description = "Extreme", "Heat stroke highly likely"

    return {"index": round(heat_index, 1), "level": level, "description": description}


def _band(value: float, high: float, low: float, labels: List[str]) -> str:
    if value > high:
        return labels[0]
    if value > low:
        return labels[1]
    return labels[2]


class OpenWeatherMapService:
    def __init__(self, api_key: Optional[str] = None, base_url: str = OPENWEATHER_API_BASE):
        self.api_key = api_key or get_openweather_api_key()
        if not self.api_key:
            raise MissingApiKeyError("OPENWEATHER_API_KEY")
        self.base_url = base_url

    def _get(self, path: str, **params: Any) -> Dict[str, Any]:
        return request_json(
            "GET",
            f"{self.base_url}/{path}",
            error_cls=WeatherServiceError,
            params={**params, "appid": self.api_key, "units": "metric"},
        )

    def get_current_weather(self, lat: float, lng: float) -> WeatherData:
        return _to_weather_data(self._get("weather", lat=lat, lon=lng))

    def get_current_weather_by_city(self, city: str, country: Optional[str] = None) -> WeatherData:
        query = f"{city},{country}" if country else city
        return _to_weather_data(self._get("weather", q=query))

    def get_weather_forecast(self, lat: float, lng: float) -> Dict[str, Any]:
        data = self._get("forecast", lat=lat, lon=lng)
        forecasts = []
        for item in data.get("list", []):
            main = item["main"]
            wind = item.get("wind") or {}
            weather = (item.get("weather") or [{}])[0]
            forecasts.append(
                {
                    "datetime": datetime.fromtimestamp(item["dt"], tz=timezone.utc).isoformat(),
                    "temperature": {
                        "current": main["temp"],
                        "min": main.get("temp_min"),
                        "max": main.get("temp_max"),
                    },
                    "humidity": main.get("humidity"),
                    "pressure": main.get("pressure"),
                    "windSpeed": wind.get("speed", 0),
                    "windDirection": wind.get("deg"),
                    "cloudCover": (item.get("clouds") or {}).get("all", 0),
                    "weatherCondition": weather.get("main", ""),
                    "description": weather.get("description", ""),
                    "precipitation": (item.get("rain") or {}).get("3h", 0),
                }
            )

        city = data.get("city") or {}
        return {"city": city.get("name"), "country": city.get("country"), "forecasts": forecasts}

    def get_weather_for_region(self, geometry: Dict[str, Any]) -> Dict[str, Any]:
        """Weather at the ROI centre; the region is represented by that single point."""
        lat, lng = get_geometry_center(geometry)
        center_weather = self.get_current_weather(lat, lng)
        forecast = self.get_weather_forecast(lat, lng)
        return {
            "centerWeather": center_weather,
            "averageConditions": {
                "temperature": center_weather["temperature"],
                "humidity": center_weather["humidity"],
                "windSpeed": center_weather["windSpeed"],
                "pressure": center_weather["pressure"],
            },
            "forecast": forecast,
        }

    def analyze_climate_for_green_infrastructure(
        self, geometry: Dict[str, Any], region_weather: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Rate the ROI climate for green infrastructure.

        ``region_weather`` is a result of ``get_weather_for_region`` already fetched
        for the same ROI; without it the weather is looked up here.
        """
        weather = region_weather or self.get_weather_for_region(geometry)
        forecasts = weather["forecast"]["forecasts"]

        avg_temp = weather["centerWeather"]["temperature"]
        humidity = weather["centerWeather"]["humidity"]
        wind_speed = weather["centerWeather"]["windSpeed"]
        avg_precipitation = (
            sum(f["precipitation"] for f in forecasts) / len(forecasts) if forecasts else 0.0
        )

        recommendations = []
        score = 0

        if avg_temp > 30:
            recommendations.append("Consider shade trees and cooling vegetation")
            recommendations.append("Implement green roofs to reduce heat island effect")
            score += 2
        elif avg_temp > 20:
            recommendations.append("Good conditions for diverse vegetation types")
            score += 4
        else:
            recommendations.append("Consider cold-resistant plant species")
            score += 3

        if avg_precipitation > 5:
            recommendations.append("Excellent for rain gardens and bioswales")
            recommendations.append("Consider stormwater management green infrastructure")
            score += 4
        elif avg_precipitation > 2:
            recommendations.append("Good conditions for most green infrastructure")
            score += 3
        else:
            recommendations.append("Implement drought-resistant landscaping")
            recommendations.append("Consider water-efficient irrigation systems")
            score += 2

        if wind_speed > 15:
            recommendations.append("Use wind-resistant vegetation")
            recommendations.append("Consider windbreaks for sensitive areas")
        elif wind_speed > 5:
            recommendations.append("Good natural ventilation for cooling")

        if score >= 7:
            suitability = "Excellent"
        elif score >= 5:
            suitability = "Good"
        elif score >= 3:
            suitability = "Moderate"
        else:
            suitability = "Challenging"

        return {
            "suitability": suitability,
            "recommendations": recommendations,
            "climateFactors": {
                "temperature": (
                    f"{avg_temp}°C - {_band(avg_temp, 25, 15, ['Warm', 'Moderate', 'Cool'])}"
                ),
                "precipitation": (
                    f"{avg_precipitation:.1f}mm avg - "
                    f"{_band(avg_precipitation, 5, 2, ['High', 'Moderate', 'Low'])}"
                ),
                "humidity": f"{humidity}% - {_band(humidity, 70, 50, ['High', 'Moderate', 'Low'])}",
                "wind": (
                    f"{wind_speed}m/s - {_band(wind_speed, 10, 5, ['Strong', 'Moderate', 'Light'])}"
                ),
            },
        }

    calculate_heat_stress_index = staticmethod(calculate_heat_stress_index)
