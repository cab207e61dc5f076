"""Deterministic risk rules for environment measurements.

Every rule is a pure function from normalized scalars to a ``RiskCategory``.
A ``None`` input yields ``None``; any finite number yields a category.
Thresholds use an inclusive upper bound unless the comparison says otherwise.
``annotate`` assembles the rules into an ``EnvironmentReport``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional

from envsnapshot.app_types import RawEnvironmentData
from envsnapshot.domain import (
    AirQualityReport,
    AqiLevel,
    DailyReport,
    DaylightInfo,
    EnvironmentReport,
    IndoorAirLevel,
    IndoorReport,
    Location,
    MoldRiskLevel,
    PollenLevel,
    PollenSpecies,
    PollenSummary,
    PrecipitationReport,
    PressureLevel,
    PressureReport,
    RiskCategory,
    SadRiskLevel,
    SmokeLevel,
    UvLevel,
    UvReport,
    VisibilityLevel,
    VisibilityReport,
    WeatherReport,
    WindChillLevel,
    WindReport,
)

# Color tokens shared by every rule family.
GREEN = "#10b981"
AMBER = "#f59e0b"
ORANGE = "#f97316"
RED = "#ef4444"
PURPLE = "#7c3aed"
MAROON = "#991b1b"
INDIGO = "#6366f1"
BLUE = "#3b82f6"

AQI_UNAVAILABLE_ADVISORY = "Air quality data unavailable"

POLLEN_LABELS = {
    "grass": "Grass",
    "birch": "Birch",
    "alder": "Alder",
    "ragweed": "Ragweed",
    "mugwort": "Mugwort",
    "olive": "Olive",
}

# CO above this (µg/m³) suggests an indoor combustion source worth checking.
CO_ALERT_UG_M3 = 500


def _category(level, color: str, advisory: str = "", score: float | None = None, notes=None) -> RiskCategory:
    return RiskCategory(level=level.value, color=color, advisory=advisory, score=score, notes=list(notes or []))


def aqi_category(aqi: Optional[float]) -> Optional[RiskCategory]:
    """US AQI bands."""
    if aqi is None:
        return None
    if aqi <= 50:
        return _category(AqiLevel.GOOD, GREEN, "Good for outdoor breathing exercises")
    if aqi <= 100:
        return _category(AqiLevel.MODERATE, AMBER, "Acceptable, though sensitive groups may want to stay indoors")
    if aqi <= 150:
        return _category(AqiLevel.UNHEALTHY_FOR_SENSITIVE, ORANGE, "Consider breathing exercises indoors")
    if aqi <= 200:
        return _category(AqiLevel.UNHEALTHY, RED, "AQI elevated, breathe indoors")
    if aqi <= 300:
        return _category(AqiLevel.VERY_UNHEALTHY, PURPLE, "Avoid outdoor breathing and stay indoors")
    return _category(AqiLevel.HAZARDOUS, MAROON, "Hazardous air, remain indoors with air purification")


def uv_category(uv_index: Optional[float]) -> Optional[RiskCategory]:
    """WHO UV index bands."""
    if uv_index is None:
        return None
    if uv_index <= 2:
        return _category(UvLevel.LOW, GREEN, "No protection needed")
    if uv_index <= 5:
        return _category(UvLevel.MODERATE, AMBER, "Wear sunscreen if outside for long")
    if uv_index <= 7:
        return _category(UvLevel.HIGH, ORANGE, "Sunscreen and shade around midday")
    if uv_index <= 10:
        return _category(UvLevel.VERY_HIGH, RED, "Minimize sun exposure between 10am and 4pm")
    return _category(UvLevel.EXTREME, PURPLE, "Avoid sun exposure; unprotected skin burns in minutes")


def wind_chill_category(feels_like: Optional[float], actual: Optional[float]) -> Optional[RiskCategory]:
    """Cold-stress bands on apparent temperature (°C), then the wind-driven gap."""
    if feels_like is None or actual is None:
        return None
    diff = actual - feels_like
    if feels_like <= -27:
        return _category(WindChillLevel.EXTREME, MAROON, "Frostbite risk in minutes, stay indoors")
    if feels_like <= -15:
        return _category(WindChillLevel.VERY_COLD, RED, "Frostbite risk, limit outdoor exposure")
    if feels_like <= 0:
        return _category(WindChillLevel.COLD, ORANGE, "Dress warmly, cold stress possible")
    if diff > 5:
        return _category(WindChillLevel.WINDY, AMBER, f"Feels {diff:.0f}° colder due to wind")
    return _category(WindChillLevel.COMFORTABLE, GREEN, "Wind chill minimal")


def pressure_category(pressure_msl: Optional[float]) -> Optional[RiskCategory]:
    """Mean-sea-level pressure (hPa); lower bounds are exclusive below Normal."""
    if pressure_msl is None:
        return None
    if pressure_msl < 1000:
        return _category(PressureLevel.LOW, INDIGO, "Low pressure, possible migraine or fatigue trigger")
    if pressure_msl < 1013:
        return _category(PressureLevel.BELOW_NORMAL, AMBER, "Slightly low, watch for pressure sensitivity")
    if pressure_msl <= 1023:
        return _category(PressureLevel.NORMAL, GREEN, "Normal atmospheric pressure")
    return _category(PressureLevel.HIGH, BLUE, "High pressure, generally stable weather")


def visibility_category(meters: Optional[float]) -> Optional[RiskCategory]:
    """Visibility bands; every bound is exclusive."""
    if meters is None:
        return None
    if meters < 200:
        return _category(VisibilityLevel.DENSE_FOG, MAROON, "Dangerous, avoid driving")
    if meters < 1000:
        return _category(VisibilityLevel.FOG, RED, "Poor visibility, drive with caution")
    if meters < 4000:
        return _category(VisibilityLevel.MIST, AMBER, "Reduced visibility")
    if meters < 10000:
        return _category(VisibilityLevel.HAZE, AMBER, "Moderate visibility")
    return _category(VisibilityLevel.CLEAR, GREEN, "Good visibility")


def mold_risk(humidity: Optional[float], dew_point: Optional[float],
              temperature: Optional[float]) -> Optional[RiskCategory]:
    """Indoor mold risk from outdoor humidity and the dew-point condensation margin.

    Indoor moisture tracks the outdoor dew point more closely than outdoor RH,
    so a small ``temperature - dew_point`` margin raises the risk even when
    humidity alone looks moderate.
    """
    if humidity is None or dew_point is None or temperature is None:
        return None
    margin = temperature - dew_point

    if humidity >= 80 or margin < 2:
        return _category(MoldRiskLevel.HIGH, RED, "High mold risk, ensure ventilation and use a dehumidifier", 3)
    if humidity >= 70 or margin < 5:
        return _category(MoldRiskLevel.ELEVATED, ORANGE, "Elevated mold risk, check bathrooms and basements", 2)
    if humidity >= 60:
        return _category(MoldRiskLevel.MODERATE, AMBER, "Moderate, monitor indoor humidity", 1)
    return _category(MoldRiskLevel.LOW, GREEN, "Low mold risk, conditions are dry", 0)


def humidity_advice(humidity: Optional[float]) -> Optional[str]:
    if humidity is None:
        return None
    if humidity > 70:
        return "Use dehumidifier, high moisture indoors"
    if humidity < 30:
        return "Air very dry, consider humidifier for respiratory comfort"
    return "Indoor humidity likely comfortable"


def indoor_air_quality(outdoor_aqi: Optional[float], humidity: Optional[float],
                       co: Optional[float] = None) -> Optional[RiskCategory]:
    """Estimate indoor air from outdoor AQI, humidity and carbon monoxide.

    Humidity is required. A missing AQI or CO reading contributes nothing
    rather than being read as zero.
    """
    if humidity is None:
        return None

    actions: list[str] = []
    if outdoor_aqi is not None and outdoor_aqi > 100:
        actions.append("Close windows, outdoor air is unhealthy")
    elif outdoor_aqi is not None and outdoor_aqi > 50:
        actions.append("Ventilate to bring in cleaner outdoor air")

    if co is not None and co > CO_ALERT_UG_M3:
        actions.append("Elevated CO levels, check gas appliances")

    if humidity > 70:
        actions.append("High humidity, use dehumidifier")
    elif humidity < 30:
        actions.append("Very dry air, consider humidifier")

    if outdoor_aqi is not None and outdoor_aqi > 100:
        score = 3
    elif outdoor_aqi is not None and outdoor_aqi > 50:
        score = 2
    elif humidity > 70:
        score = 2
    else:
        score = 1

    if score >= 3:
        level, color = IndoorAirLevel.POOR, RED
    elif score >= 2:
        level, color = IndoorAirLevel.FAIR, AMBER
    else:
        level, color = IndoorAirLevel.GOOD, GREEN
    advisory = actions[0] if actions else "Indoor conditions likely good"
    return _category(level, color, advisory, score, actions)


def daylight_hours(sunrise: Optional[datetime], sunset: Optional[datetime]) -> Optional[float]:
    """Hours between sunrise and sunset, rounded to 0.1; never negative."""
    if sunrise is None or sunset is None:
        return None
    hours = (sunset - sunrise).total_seconds() / 3600
    return round(max(hours, 0.0), 1)


def daylight_risk(sunrise: Optional[datetime], sunset: Optional[datetime]) -> Optional[RiskCategory]:
    """Seasonal-affective risk from day length."""
    hours = daylight_hours(sunrise, sunset)
    if hours is None:
        return None
    if hours < 8:
        return _category(SadRiskLevel.HIGH, RED, "Very short days, consider light therapy")
    if hours < 10:
        return _category(SadRiskLevel.MODERATE, AMBER, "Short daylight, get outside during peak sun")
    return _category(SadRiskLevel.LOW, GREEN, "Adequate daylight for vitamin D")


def daylight_info(sunrise: Optional[datetime], sunset: Optional[datetime]) -> Optional[DaylightInfo]:
    risk = daylight_risk(sunrise, sunset)
    if risk is None:
        return None
    return DaylightInfo(sunrise=sunrise, sunset=sunset, daylight_hours=daylight_hours(sunrise, sunset), sad_risk=risk)


def pollen_category(total: Optional[float]) -> Optional[RiskCategory]:
    """Bands on the summed pollen concentration (grains/m³)."""
    if total is None:
        return None
    if total < 10:
        return _category(PollenLevel.LOW, GREEN, "Low pollen, safe for allergy sufferers")
    if total < 50:
        return _category(PollenLevel.MODERATE, AMBER, "Moderate pollen, take antihistamine if sensitive")
    if total < 100:
        return _category(PollenLevel.HIGH, ORANGE, "High pollen, limit outdoor exposure")
    return _category(PollenLevel.VERY_HIGH, RED, "Very high pollen, stay indoors if allergic")


def pollen_summary(pollen: Optional[Mapping[str, Optional[float]]]) -> Optional[PollenSummary]:
    """Sum every species that reported a value.

    Returns None when no species reported anything (no regional coverage);
    all-zero readings are real data and score Low.
    """
    if not pollen:
        return None
    reported = {key: value for key, value in pollen.items() if value is not None}
    if not reported:
        return None

    total = float(sum(reported.values()))
    species = [
        PollenSpecies(key=key, label=label, value=reported[key])
        for key, label in POLLEN_LABELS.items()
        if reported.get(key)
    ]
    return PollenSummary(category=pollen_category(total), total=round(total), species=species)


def smoke_risk(aerosol_optical_depth: Optional[float]) -> Optional[RiskCategory]:
    """Smoke/haze proxy from aerosol optical depth."""
    if aerosol_optical_depth is None:
        return None
    if aerosol_optical_depth > 1.0:
        return _category(SmokeLevel.SEVERE, MAROON, "Heavy smoke or haze, stay indoors and use an air purifier")
    if aerosol_optical_depth > 0.5:
        return _category(SmokeLevel.HIGH, RED, "Significant haze or smoke, limit outdoor activity")
    if aerosol_optical_depth > 0.2:
        return _category(SmokeLevel.MODERATE, AMBER, "Moderate haze detected")
    return _category(SmokeLevel.LOW, GREEN, "Clear air, no smoke detected")


# ---------------------------------------------------------------------------
# Report assembly
# ---------------------------------------------------------------------------

def _weather_report(raw: RawEnvironmentData) -> Optional[WeatherReport]:
    w = raw.weather
    if w is None:
        return None
    return WeatherReport(
        temperature=w.temperature,
        feels_like=w.feels_like,
        humidity=w.humidity,
        dew_point=w.dew_point,
        cloud_cover=w.cloud_cover,
        description=w.description,
        weather_code=w.weather_code,
        units=dict(w.units),
        wind=WindReport(
            speed=w.wind_speed,
            gusts=w.wind_gusts,
            direction=w.wind_direction,
            advisory=wind_chill_category(w.feels_like, w.temperature),
        ),
        precipitation=PrecipitationReport(
            current=w.precipitation,
            rain=w.rain,
            snow=w.snowfall,
            daily_sum=w.precipitation_sum,
            probability_max=w.precipitation_probability_max,
            is_active=(w.precipitation or 0) > 0,
        ),
        pressure=PressureReport(
            msl=w.pressure_msl,
            surface=w.surface_pressure,
            category=pressure_category(w.pressure_msl),
        ),
        visibility=VisibilityReport(
            meters=w.visibility,
            km=round(w.visibility / 1000, 1) if w.visibility is not None else None,
            category=visibility_category(w.visibility),
        ),
        daylight=daylight_info(w.sunrise, w.sunset),
        daily=DailyReport(
            temp_max=w.temp_max,
            temp_min=w.temp_min,
            feels_like_max=w.feels_like_max,
            feels_like_min=w.feels_like_min,
            wind_speed_max=w.wind_speed_max,
            wind_gusts_max=w.wind_gusts_max,
        ),
    )


def _air_quality_report(raw: RawEnvironmentData) -> AirQualityReport:
    aq = raw.air_quality
    station = raw.ground_station
    return AirQualityReport(
        aqi=raw.aqi,
        category=aqi_category(raw.aqi),
        pm2_5=aq.pm2_5 if aq else None,
        pm10=aq.pm10 if aq else None,
        ozone=aq.ozone if aq else None,
        no2=aq.nitrogen_dioxide if aq else None,
        so2=aq.sulphur_dioxide if aq else None,
        co=aq.carbon_monoxide if aq else None,
        dust=aq.dust if aq else None,
        aerosol_optical_depth=aq.aerosol_optical_depth if aq else None,
        dominant_pollutant=station.dominant_pollutant if station else None,
        station=station.station if station else None,
        source=raw.aqi_source,
        breakdown=dict(aq.aqi_breakdown) if aq else None,
        smoke=smoke_risk(aq.aerosol_optical_depth if aq else None),
    )


def annotate(location: Location, raw: RawEnvironmentData, fetched_at: datetime | None = None) -> EnvironmentReport:
    """Score raw provider data and assemble the report."""
    w = raw.weather
    aq = raw.air_quality

    uv_index = None
    if w is not None and w.uv_index is not None:
        uv_index = w.uv_index
    elif aq is not None:
        uv_index = aq.uv_index

    indoor = None
    if w is not None:
        indoor = IndoorReport(
            mold_risk=mold_risk(w.humidity, w.dew_point, w.temperature),
            air_quality=indoor_air_quality(raw.aqi, w.humidity, aq.carbon_monoxide if aq else None),
            humidity_advice=humidity_advice(w.humidity),
        )

    air_report = _air_quality_report(raw)
    return EnvironmentReport(
        location=location,
        weather=_weather_report(raw),
        air_quality=air_report,
        uv=UvReport(index=uv_index, category=uv_category(uv_index)),
        pollen=pollen_summary(aq.pollen if aq else None),
        indoor=indoor,
        advisory=air_report.category.advisory if air_report.category else AQI_UNAVAILABLE_ADVISORY,
        fetched_at=fetched_at or datetime.now(timezone.utc),
        source_errors=dict(raw.errors),
    )
