"""Keyless IP geolocation providers, listed in the order they should be tried."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from envsnapshot.config import settings
from envsnapshot.data_sources.http import get_json, lookup_session
from envsnapshot.domain import Location, LocationSource
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/geo_ip")

session = lookup_session


def _coord(value) -> Optional[float]:
    """Parse a coordinate that may arrive as a string; zero is a valid value."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _build_location(lat, lon, city, region, country) -> Optional[Location]:
    latitude, longitude = _coord(lat), _coord(lon)
    if latitude is None or longitude is None:
        return None
    return Location(
        latitude=latitude,
        longitude=longitude,
        city=city or "",
        region=region or "",
        country=country or "",
        source=LocationSource.IP,
    )


def parse_geojs(data: dict) -> Optional[Location]:
    """GeoJS returns coordinates as strings."""
    return _build_location(data.get("latitude"), data.get("longitude"),
                           data.get("city"), data.get("region"), data.get("country"))


def parse_ipwho(data: dict) -> Optional[Location]:
    """ipwho.is signals failures with ``success: false`` and a 200 status."""
    if data.get("success") is False:
        logger.debug("ipwho.is reported failure", extra={"detail": data.get("message")})
        return None
    return _build_location(data.get("latitude"), data.get("longitude"),
                           data.get("city"), data.get("region"), data.get("country"))


def parse_ipapi(data: dict) -> Optional[Location]:
    """ipapi.co uses ``country_name`` for the display name and ``error`` when rate-limited."""
    if data.get("error"):
        logger.debug("ipapi.co reported error", extra={"reason": data.get("reason")})
        return None
    return _build_location(data.get("latitude"), data.get("longitude"),
                           data.get("city"), data.get("region"), data.get("country_name"))


@dataclass(frozen=True)
class GeoProvider:
    """One IP geolocation endpoint and the parser for its payload."""
    name: str
    url: str
    parse: Callable[[dict], Optional[Location]]

    def __call__(self) -> Optional[Location]:
        """Look up the caller's location; network and HTTP errors propagate."""
        data = get_json(session, self.url, timeout=settings.http_timeout_seconds)
        location = self.parse(data)
        logger.debug("Geo provider answered", extra={"provider": self.name, "resolved": location is not None})
        return location


GEO_PROVIDERS: List[GeoProvider] = [
    GeoProvider("geojs", "https://get.geojs.io/v1/ip/geo.json", parse_geojs),
    GeoProvider("ipwho", "https://ipwho.is/", parse_ipwho),
    # rate-limited on the free tier, so it goes last
    GeoProvider("ipapi", "https://ipapi.co/json/", parse_ipapi),
]
