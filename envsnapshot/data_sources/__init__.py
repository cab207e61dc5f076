"""Upstream providers: Open-Meteo, WAQI ground stations and IP geolocation."""

from .base import CallableEnvironmentDataSource, EnvironmentDataSource
from .factory import build_data_source
from .geo_ip import GEO_PROVIDERS, GeoProvider
from .open_meteo_client import (
    AirQualitySnapshot,
    WeatherSnapshot,
    fetch_air_current,
    fetch_weather_current,
    search_locations,
)
from .waqi_client import GroundStationSnapshot, fetch_ground_station

__all__ = [
    "build_data_source",
    "EnvironmentDataSource",
    "CallableEnvironmentDataSource",
    "GEO_PROVIDERS",
    "GeoProvider",
    "AirQualitySnapshot",
    "WeatherSnapshot",
    "GroundStationSnapshot",
    "fetch_air_current",
    "fetch_weather_current",
    "fetch_ground_station",
    "search_locations",
]
