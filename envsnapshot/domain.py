"""Domain vocabulary and schemas for environment snapshots.

This module defines the contract between the data-source adapters, the risk
scoring rules and any consumer of an ``EnvironmentReport``: locations, the
ordered level enums for every rule family, risk categories and the report
blocks. No interpretation logic lives here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _FrozenModel(BaseModel):
    """Immutable value object."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class LocationSource(str, Enum):
    """Where a resolved location came from."""
    SAVED = "saved"
    IP = "ip"
    GPS = "gps"
    MANUAL = "manual"
    DEFAULT = "default"


class Location(_FrozenModel):
    """A resolved point on the map with best-effort human-readable labels."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    city: str = ""
    region: str = ""
    country: str = ""
    source: LocationSource = LocationSource.MANUAL
    label: str = ""

    def with_source(self, source: LocationSource) -> "Location":
        """Return a copy tagged with a different source."""
        return self.model_copy(update={"source": source})

    @property
    def display_name(self) -> str:
        """Label if present, else the non-empty city/region/country parts."""
        if self.label:
            return self.label
        return ", ".join(part for part in (self.city, self.region, self.country) if part)


# ---------------------------------------------------------------------------
# Ordered level enums, one per rule family (low -> high severity)
# ---------------------------------------------------------------------------

class AqiLevel(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    UNHEALTHY_FOR_SENSITIVE = "Unhealthy for Sensitive"
    UNHEALTHY = "Unhealthy"
    VERY_UNHEALTHY = "Very Unhealthy"
    HAZARDOUS = "Hazardous"


class UvLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"
    EXTREME = "Extreme"


class WindChillLevel(str, Enum):
    COMFORTABLE = "Comfortable"
    WINDY = "Windy"
    COLD = "Cold"
    VERY_COLD = "Very Cold"
    EXTREME = "Extreme"


class PressureLevel(str, Enum):
    """Ordered from lowest to highest pressure, not by severity."""
    LOW = "Low"
    BELOW_NORMAL = "Below Normal"
    NORMAL = "Normal"
    HIGH = "High"


class VisibilityLevel(str, Enum):
    """Ordered from clearest to worst."""
    CLEAR = "Clear"
    HAZE = "Haze"
    MIST = "Mist"
    FOG = "Fog"
    DENSE_FOG = "Dense Fog"


class MoldRiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    ELEVATED = "Elevated"
    HIGH = "High"


class IndoorAirLevel(str, Enum):
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class SadRiskLevel(str, Enum):
    """Seasonal-affective risk from short daylight."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class PollenLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"


class SmokeLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    SEVERE = "Severe"


class RiskCategory(_FrozenModel):
    """Graded outcome of one scoring rule."""
    level: str
    color: str
    advisory: str = ""
    score: float | None = None
    notes: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Report blocks
# ---------------------------------------------------------------------------

class WindReport(_StrictBaseModel):
    speed: float | None = None
    gusts: float | None = None
    direction: float | None = None
    advisory: RiskCategory | None = None


class PrecipitationReport(_StrictBaseModel):
    current: float | None = None
    rain: float | None = None
    snow: float | None = None
    daily_sum: float | None = None
    probability_max: float | None = None
    is_active: bool = False


class PressureReport(_StrictBaseModel):
    msl: float | None = None
    surface: float | None = None
    category: RiskCategory | None = None


class VisibilityReport(_StrictBaseModel):
    meters: float | None = None
    km: float | None = None
    category: RiskCategory | None = None


class DaylightInfo(_StrictBaseModel):
    sunrise: datetime
    sunset: datetime
    daylight_hours: float
    sad_risk: RiskCategory


class DailyReport(_StrictBaseModel):
    temp_max: float | None = None
    temp_min: float | None = None
    feels_like_max: float | None = None
    feels_like_min: float | None = None
    wind_speed_max: float | None = None
    wind_gusts_max: float | None = None


class WeatherReport(_StrictBaseModel):
    """Outdoor weather block of an environment report."""
    temperature: float | None = None
    feels_like: float | None = None
    humidity: float | None = None
    dew_point: float | None = None
    cloud_cover: float | None = None
    description: str = "Unknown"
    weather_code: int | None = None
    units: Dict[str, str] = Field(default_factory=dict)
    wind: WindReport = Field(default_factory=WindReport)
    precipitation: PrecipitationReport = Field(default_factory=PrecipitationReport)
    pressure: PressureReport = Field(default_factory=PressureReport)
    visibility: VisibilityReport = Field(default_factory=VisibilityReport)
    daylight: DaylightInfo | None = None
    daily: DailyReport = Field(default_factory=DailyReport)


class AirQualityReport(_StrictBaseModel):
    """Air-quality block; always present, with nulls when no source answered."""
    aqi: float | None = None
    category: RiskCategory | None = None
    pm2_5: float | None = None
    pm10: float | None = None
    ozone: float | None = None
    no2: float | None = None
    so2: float | None = None
    co: float | None = None
    dust: float | None = None
    aerosol_optical_depth: float | None = None
    dominant_pollutant: str | None = None
    station: str | None = None
    source: str | None = None
    breakdown: Dict[str, float | None] | None = None
    smoke: RiskCategory | None = None


class UvReport(_StrictBaseModel):
    index: float | None = None
    category: RiskCategory | None = None


class PollenSpecies(_StrictBaseModel):
    key: str
    label: str
    value: float


class PollenSummary(_StrictBaseModel):
    category: RiskCategory
    total: float
    species: List[PollenSpecies] = Field(default_factory=list)


class IndoorReport(_StrictBaseModel):
    mold_risk: RiskCategory | None = None
    air_quality: RiskCategory | None = None
    humidity_advice: str | None = None


class EnvironmentReport(_StrictBaseModel):
    """Aggregate snapshot handed to consumers; treat as read-only."""
    location: Location
    weather: WeatherReport | None = None
    air_quality: AirQualityReport = Field(default_factory=AirQualityReport)
    uv: UvReport = Field(default_factory=UvReport)
    pollen: PollenSummary | None = None
    indoor: IndoorReport | None = None
    advisory: str
    fetched_at: datetime
    source_errors: Dict[str, str] = Field(default_factory=dict)
