"""Ground-station air quality from the World Air Quality Index (aqicn.org) feed API."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from envsnapshot.config import settings
from envsnapshot.data_sources.http import get_json, lookup_session
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="waqi_client")

session = lookup_session

WAQI_FEED_URL = "https://api.waqi.info/feed/geo:{latitude};{longitude}/"


@dataclass
class GroundStationSnapshot:
    """Reading from the nearest monitoring station."""
    aqi: Optional[int]
    dominant_pollutant: Optional[str]
    station: Optional[str]
    time: Optional[str]


def _parse_aqi(value) -> Optional[int]:
    """WAQI reports '-' when a station has no current reading."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def fetch_ground_station(latitude: float, longitude: float, *, token: str) -> GroundStationSnapshot:
    """Fetch the nearest station's AQI.

    Raises ``ValueError`` when WAQI answers with a non-"ok" status.
    """
    url = WAQI_FEED_URL.format(latitude=latitude, longitude=longitude)
    data = get_json(session, url, params={"token": token}, timeout=settings.http_timeout_seconds)

    if data.get("status") != "ok":
        logger.warning(
            "WAQI returned an error status",
            extra={"url": mask_url(f"{url}?token={token}"), "status": data.get("status"), "detail": data.get("data")},
        )
        raise ValueError(f"WAQI status {data.get('status')!r}")

    payload = data.get("data") or {}
    city = payload.get("city") or {}
    obs_time = payload.get("time") or {}
    return GroundStationSnapshot(
        aqi=_parse_aqi(payload.get("aqi")),
        dominant_pollutant=payload.get("dominentpol") or payload.get("dominantpol") or None,
        station=city.get("name") if isinstance(city, dict) else None,
        time=obs_time.get("s") if isinstance(obs_time, dict) else None,
    )
