"""Concurrent, failure-tolerant fetch of weather, air quality and ground-station data."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from envsnapshot.app_types import RawEnvironmentData
from envsnapshot.combinators import Outcome, settle_all
from envsnapshot.data_sources import EnvironmentDataSource
from envsnapshot.data_sources.open_meteo_client import AirQualitySnapshot
from envsnapshot.data_sources.waqi_client import GroundStationSnapshot
from envsnapshot.domain import Location
from envsnapshot.errors import SourceUnavailable
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="aggregator")

WEATHER = "weather"
AIR_QUALITY = "air_quality"
GROUND_STATION = "ground_station"

AQI_SOURCE_GROUND_STATION = "waqi"
AQI_SOURCE_MODELED = "open-meteo"


def merge_aqi(
    air: Optional[AirQualitySnapshot],
    station: Optional[GroundStationSnapshot],
) -> tuple[Optional[float], Optional[str]]:
    """Pick the AQI to report and tag where it came from.

    A numeric ground-station reading wins over the modeled estimate.
    """
    if station is not None and station.aqi is not None:
        return station.aqi, AQI_SOURCE_GROUND_STATION
    if air is not None and air.us_aqi is not None:
        return air.us_aqi, AQI_SOURCE_MODELED
    return None, None


def _describe(error: BaseException) -> str:
    if isinstance(error, SourceUnavailable):
        return error.reason
    return f"{type(error).__name__}: {error}"


class Aggregator:
    """Fan out to every configured provider and merge whatever comes back."""

    def __init__(self, data_source: EnvironmentDataSource) -> None:
        self.data_source = data_source

    def _tasks(self, location: Location) -> Dict[str, Callable[[], object]]:
        lat, lon = location.latitude, location.longitude
        tasks: Dict[str, Callable[[], object]] = {
            WEATHER: lambda: self.data_source.fetch_weather(lat, lon),
            AIR_QUALITY: lambda: self.data_source.fetch_air_quality(lat, lon),
        }
        if self.data_source.has_ground_station:
            tasks[GROUND_STATION] = lambda: self.data_source.fetch_ground_station(lat, lon)
        return tasks

    def fetch(self, location: Location) -> RawEnvironmentData:
        """Fetch all sources concurrently; a failed source becomes None, never an exception."""
        logger.info(
            "Fetching environment data",
            extra={"latitude": location.latitude, "longitude": location.longitude, "source": location.source.value},
        )
        outcomes: Dict[str, Outcome] = settle_all(self._tasks(location))

        errors: Dict[str, str] = {}
        for name, outcome in outcomes.items():
            if not outcome.ok:
                errors[name] = _describe(outcome.error)
                logger.warning("Source unavailable", extra={"source_name": name, "error": errors[name]})

        weather = outcomes[WEATHER].value_or_none()
        air = outcomes[AIR_QUALITY].value_or_none()
        station = outcomes[GROUND_STATION].value_or_none() if GROUND_STATION in outcomes else None

        aqi, aqi_source = merge_aqi(air, station)
        logger.debug("Merged AQI", extra={"aqi": aqi, "aqi_source": aqi_source})

        return RawEnvironmentData(
            weather=weather,
            air_quality=air,
            ground_station=station,
            aqi=aqi,
            aqi_source=aqi_source,
            errors=errors,
        )
