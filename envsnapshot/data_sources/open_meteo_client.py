"""Helpers for fetching weather, air-quality and geocoding data from the Open-Meteo APIs."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from envsnapshot.config import settings
from envsnapshot.data_sources.http import forecast_session, get_json, lookup_session
from envsnapshot.domain import Location, LocationSource
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="open_meteo_client")

session = forecast_session
geocoding_session = lookup_session

OPEN_METEO_WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_AIR_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"

WEATHER_CURRENT_VARS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "dew_point_2m",
    "wind_speed_10m",
    "wind_gusts_10m",
    "wind_direction_10m",
    "precipitation",
    "rain",
    "snowfall",
    "weather_code",
    "pressure_msl",
    "surface_pressure",
    "visibility",
    "cloud_cover",
    "uv_index",
]

WEATHER_DAILY_VARS = [
    "sunrise",
    "sunset",
    "temperature_2m_max",
    "temperature_2m_min",
    "apparent_temperature_max",
    "apparent_temperature_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "wind_gusts_10m_max",
]

POLLEN_SPECIES = ["alder", "birch", "grass", "mugwort", "olive", "ragweed"]

# breakdown key -> Open-Meteo variable
AQI_BREAKDOWN_VARS = {
    "pm2_5": "us_aqi_pm2_5",
    "pm10": "us_aqi_pm10",
    "no2": "us_aqi_nitrogen_dioxide",
    "ozone": "us_aqi_ozone",
    "so2": "us_aqi_sulphur_dioxide",
    "co": "us_aqi_carbon_monoxide",
}

AIR_CURRENT_VARS = [
    "pm2_5",
    "pm10",
    "us_aqi",
    "uv_index",
    "ozone",
    "nitrogen_dioxide",
    "sulphur_dioxide",
    "carbon_monoxide",
    "dust",
    "aerosol_optical_depth",
    *AQI_BREAKDOWN_VARS.values(),
    *(f"{species}_pollen" for species in POLLEN_SPECIES),
]

DEFAULT_UNITS = {
    "temperature": "°C",
    "humidity": "%",
    "wind_speed": "km/h",
    "pressure": "hPa",
    "visibility": "m",
    "precipitation": "mm",
}

# WMO weather interpretation codes
WEATHER_DESCRIPTIONS = {
    0: "Clear sky", 1: "Mainly clear", 2: "Partly cloudy", 3: "Overcast",
    45: "Foggy", 48: "Depositing rime fog",
    51: "Light drizzle", 53: "Moderate drizzle", 55: "Dense drizzle",
    56: "Freezing drizzle", 57: "Heavy freezing drizzle",
    61: "Slight rain", 63: "Moderate rain", 65: "Heavy rain",
    66: "Freezing rain", 67: "Heavy freezing rain",
    71: "Slight snow", 73: "Moderate snow", 75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers", 81: "Moderate rain showers", 82: "Violent rain showers",
    85: "Slight snow showers", 86: "Heavy snow showers",
    95: "Thunderstorm", 96: "Thunderstorm with slight hail", 99: "Thunderstorm with heavy hail",
}


@dataclass
class WeatherSnapshot:
    """Normalized current weather plus today's daily aggregates."""
    time: Optional[dt.datetime]  # timezone-aware
    temperature: Optional[float] = None
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    dew_point: Optional[float] = None
    cloud_cover: Optional[float] = None
    uv_index: Optional[float] = None
    weather_code: Optional[int] = None
    wind_speed: Optional[float] = None
    wind_gusts: Optional[float] = None
    wind_direction: Optional[float] = None
    precipitation: Optional[float] = None
    rain: Optional[float] = None
    snowfall: Optional[float] = None
    precipitation_sum: Optional[float] = None
    precipitation_probability_max: Optional[float] = None
    pressure_msl: Optional[float] = None
    surface_pressure: Optional[float] = None
    visibility: Optional[float] = None  # meters
    sunrise: Optional[dt.datetime] = None
    sunset: Optional[dt.datetime] = None
    temp_max: Optional[float] = None
    temp_min: Optional[float] = None
    feels_like_max: Optional[float] = None
    feels_like_min: Optional[float] = None
    wind_speed_max: Optional[float] = None
    wind_gusts_max: Optional[float] = None
    units: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_UNITS))
    description: str = "Unknown"


@dataclass
class AirQualitySnapshot:
    """Normalized current air-quality reading; pollen is usually only present in Europe."""
    time: Optional[dt.datetime]
    us_aqi: Optional[float] = None
    pm2_5: Optional[float] = None
    pm10: Optional[float] = None
    ozone: Optional[float] = None
    nitrogen_dioxide: Optional[float] = None
    sulphur_dioxide: Optional[float] = None
    carbon_monoxide: Optional[float] = None
    uv_index: Optional[float] = None
    dust: Optional[float] = None
    aerosol_optical_depth: Optional[float] = None
    aqi_breakdown: Dict[str, Optional[float]] = field(default_factory=dict)
    pollen: Dict[str, Optional[float]] = field(default_factory=dict)


def describe_weather_code(code: Optional[int]) -> str:
    """Human-readable text for a WMO weather code."""
    if code is None:
        return "Unknown"
    return WEATHER_DESCRIPTIONS.get(int(code), "Unknown")


def _tzinfo(tz_name: Optional[str]) -> dt.tzinfo:
    """Resolve the timezone Open-Meteo reported, falling back to UTC."""
    if not tz_name:
        return dt.timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown timezone from Open-Meteo; using UTC", extra={"timezone": tz_name})
        return dt.timezone.utc


def _iso_to_dt_with_tz(s: Optional[str], tz: dt.tzinfo) -> Optional[dt.datetime]:
    """Interpret an Open-Meteo local time string in the response timezone."""
    if not s:
        return None
    naive = dt.datetime.fromisoformat(s)
    if naive.tzinfo is not None:
        return naive
    return naive.replace(tzinfo=tz)


def _first(daily: dict, key: str):
    """First element of a daily series, or None."""
    values = daily.get(key) or []
    return values[0] if values else None


def fetch_weather_current(latitude: float, longitude: float, *, timezone: str = "auto") -> WeatherSnapshot:
    """Fetch current conditions and today's daily aggregates for the given coordinates."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(WEATHER_CURRENT_VARS),
        "daily": ",".join(WEATHER_DAILY_VARS),
        "timezone": timezone,
        "forecast_days": 3,
    }

    data = get_json(session, OPEN_METEO_WEATHER_URL, params=params, timeout=settings.http_timeout_seconds)

    current = data.get("current")
    if not isinstance(current, dict):
        raise ValueError("Open-Meteo weather response has no 'current' block")
    current_units = data.get("current_units") or {}
    daily = data.get("daily") or {}
    tz = _tzinfo(data.get("timezone"))

    weather_code = current.get("weather_code")
    units = {
        "temperature": current_units.get("temperature_2m") or DEFAULT_UNITS["temperature"],
        "humidity": DEFAULT_UNITS["humidity"],
        "wind_speed": current_units.get("wind_speed_10m") or DEFAULT_UNITS["wind_speed"],
        "pressure": current_units.get("pressure_msl") or DEFAULT_UNITS["pressure"],
        "visibility": DEFAULT_UNITS["visibility"],
        "precipitation": current_units.get("precipitation") or DEFAULT_UNITS["precipitation"],
    }

    snapshot = WeatherSnapshot(
        time=_iso_to_dt_with_tz(current.get("time"), tz),
        temperature=current.get("temperature_2m"),
        feels_like=current.get("apparent_temperature"),
        humidity=current.get("relative_humidity_2m"),
        dew_point=current.get("dew_point_2m"),
        cloud_cover=current.get("cloud_cover"),
        uv_index=current.get("uv_index"),
        weather_code=weather_code,
        wind_speed=current.get("wind_speed_10m"),
        wind_gusts=current.get("wind_gusts_10m"),
        wind_direction=current.get("wind_direction_10m"),
        precipitation=current.get("precipitation"),
        rain=current.get("rain"),
        snowfall=current.get("snowfall"),
        precipitation_sum=_first(daily, "precipitation_sum"),
        precipitation_probability_max=_first(daily, "precipitation_probability_max"),
        pressure_msl=current.get("pressure_msl"),
        surface_pressure=current.get("surface_pressure"),
        visibility=current.get("visibility"),
        sunrise=_iso_to_dt_with_tz(_first(daily, "sunrise"), tz),
        sunset=_iso_to_dt_with_tz(_first(daily, "sunset"), tz),
        temp_max=_first(daily, "temperature_2m_max"),
        temp_min=_first(daily, "temperature_2m_min"),
        feels_like_max=_first(daily, "apparent_temperature_max"),
        feels_like_min=_first(daily, "apparent_temperature_min"),
        wind_speed_max=_first(daily, "wind_speed_10m_max"),
        wind_gusts_max=_first(daily, "wind_gusts_10m_max"),
        units=units,
        description=describe_weather_code(weather_code),
    )
    logger.debug("Fetched current weather", extra={"latitude": latitude, "longitude": longitude})
    return snapshot


def fetch_air_current(latitude: float, longitude: float, *, timezone: str = "auto") -> AirQualitySnapshot:
    """Fetch the latest air-quality, pollutant and pollen readings for the given coordinates."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(AIR_CURRENT_VARS),
        "timezone": timezone,
    }

    data = get_json(session, OPEN_METEO_AIR_URL, params=params, timeout=settings.http_timeout_seconds)

    current = data.get("current")
    if not isinstance(current, dict):
        raise ValueError("Open-Meteo air-quality response has no 'current' block")
    tz = _tzinfo(data.get("timezone"))

    snapshot = AirQualitySnapshot(
        time=_iso_to_dt_with_tz(current.get("time"), tz),
        us_aqi=current.get("us_aqi"),
        pm2_5=current.get("pm2_5"),
        pm10=current.get("pm10"),
        ozone=current.get("ozone"),
        nitrogen_dioxide=current.get("nitrogen_dioxide"),
        sulphur_dioxide=current.get("sulphur_dioxide"),
        carbon_monoxide=current.get("carbon_monoxide"),
        uv_index=current.get("uv_index"),
        dust=current.get("dust"),
        aerosol_optical_depth=current.get("aerosol_optical_depth"),
        aqi_breakdown={key: current.get(var) for key, var in AQI_BREAKDOWN_VARS.items()},
        pollen={species: current.get(f"{species}_pollen") for species in POLLEN_SPECIES},
    )
    logger.debug("Fetched current air quality", extra={"latitude": latitude, "longitude": longitude})
    return snapshot


def search_locations(query: str, *, count: int | None = None, language: str = "en") -> List[Location]:
    """Geocode a free-text place name into ranked candidate locations.

    Returns an empty list when nothing matches.
    """
    params = {
        "name": query,
        "count": count or settings.geocoding_result_count,
        "language": language,
        "format": "json",
    }
    data = get_json(geocoding_session, OPEN_METEO_GEOCODING_URL, params=params,
                    timeout=settings.http_timeout_seconds)

    out: List[Location] = []
    for r in data.get("results") or []:
        if r.get("latitude") is None or r.get("longitude") is None:
            continue
        city = r.get("name") or ""
        region = r.get("admin1") or ""
        country = r.get("country") or ""
        out.append(
            Location(
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                city=city,
                region=region,
                country=country,
                source=LocationSource.MANUAL,
                label=", ".join(part for part in (city, region, country) if part),
            )
        )
    logger.info("Geocoding search complete", extra={"query": query, "results": len(out)})
    return out
