"""Interfaces and helpers for environment data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from envsnapshot.data_sources.open_meteo_client import AirQualitySnapshot, WeatherSnapshot
from envsnapshot.data_sources.waqi_client import GroundStationSnapshot


class EnvironmentDataSource(Protocol):
    """Interface for anything that can provide weather, air-quality and station data."""

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Return the current weather snapshot."""
        ...

    def fetch_air_quality(self, latitude: float, longitude: float) -> AirQualitySnapshot:
        """Return the current modeled air-quality snapshot."""
        ...

    @property
    def has_ground_station(self) -> bool:
        """Whether a ground-station provider is configured."""
        ...

    def fetch_ground_station(self, latitude: float, longitude: float) -> GroundStationSnapshot:
        """Return the nearest monitoring-station reading."""
        ...


@dataclass
class CallableEnvironmentDataSource(EnvironmentDataSource):
    """Wrap plain callables so providers can be swapped (tests, alternate backends)."""

    weather: Callable[..., WeatherSnapshot]
    air_quality: Callable[..., AirQualitySnapshot]
    ground_station: Optional[Callable[..., GroundStationSnapshot]] = None

    @property
    def has_ground_station(self) -> bool:
        return self.ground_station is not None

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Delegate to the configured weather callable."""
        return self.weather(latitude, longitude)

    def fetch_air_quality(self, latitude: float, longitude: float) -> AirQualitySnapshot:
        """Delegate to the configured air-quality callable."""
        return self.air_quality(latitude, longitude)

    def fetch_ground_station(self, latitude: float, longitude: float) -> GroundStationSnapshot:
        """Delegate to the configured ground-station callable."""
        if self.ground_station is None:
            raise RuntimeError("No ground-station provider configured")
        return self.ground_station(latitude, longitude)
