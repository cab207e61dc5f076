"""Factory helpers for wiring the environment data source at startup."""

from __future__ import annotations

from functools import partial

from envsnapshot import config
from envsnapshot.data_sources.base import CallableEnvironmentDataSource, EnvironmentDataSource
from envsnapshot.data_sources.open_meteo_client import fetch_air_current, fetch_weather_current
from envsnapshot.data_sources.waqi_client import fetch_ground_station
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


def build_data_source(settings: config.Settings | None = None) -> EnvironmentDataSource:
    """Open-Meteo for weather and air quality, plus WAQI when a token is configured."""
    settings = settings or config.settings

    ground_station = None
    if settings.waqi_token:
        logger.info("WAQI token configured; ground-station AQI enabled")
        ground_station = partial(fetch_ground_station, token=settings.waqi_token)
    else:
        logger.info("No WAQI token configured; using modeled Open-Meteo AQI only")

    return CallableEnvironmentDataSource(
        weather=fetch_weather_current,
        air_quality=fetch_air_current,
        ground_station=ground_station,
    )
