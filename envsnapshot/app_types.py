"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass, field
from typing import Dict, Optional

from envsnapshot.data_sources.open_meteo_client import AirQualitySnapshot, WeatherSnapshot
from envsnapshot.data_sources.waqi_client import GroundStationSnapshot
from envsnapshot.domain import EnvironmentReport


@dataclass
class RawEnvironmentData:
    """Settled provider snapshots plus the merged AQI, before scoring."""
    weather: Optional[WeatherSnapshot] = None
    air_quality: Optional[AirQualitySnapshot] = None
    ground_station: Optional[GroundStationSnapshot] = None
    aqi: Optional[float] = None
    aqi_source: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)


@dataclass
class CachedReport:
    """Environment report with the monotonic time it was stored."""
    report: EnvironmentReport
    stored_at: float
