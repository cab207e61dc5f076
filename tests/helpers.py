"""Builders shared by the service, aggregator and API tests."""
import datetime as dt

from envsnapshot.data_sources import CallableEnvironmentDataSource
from envsnapshot.data_sources.open_meteo_client import AirQualitySnapshot, WeatherSnapshot
from envsnapshot.domain import Location, LocationSource


def make_weather(**overrides) -> WeatherSnapshot:
    tz = dt.timezone.utc
    values = dict(
        time=dt.datetime(2024, 6, 1, 12, 0, tzinfo=tz),
        temperature=22.0,
        feels_like=21.0,
        humidity=55.0,
        dew_point=12.0,
        cloud_cover=20.0,
        uv_index=4.0,
        weather_code=1,
        pressure_msl=1015.0,
        visibility=24000.0,
        sunrise=dt.datetime(2024, 6, 1, 5, 25, tzinfo=tz),
        sunset=dt.datetime(2024, 6, 1, 20, 25, tzinfo=tz),
        description="Mainly clear",
    )
    values.update(overrides)
    return WeatherSnapshot(**values)


def make_air(**overrides) -> AirQualitySnapshot:
    values = dict(
        time=dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc),
        us_aqi=45,
        pm2_5=8.0,
        pm10=14.0,
        ozone=60.0,
        nitrogen_dioxide=10.0,
        sulphur_dioxide=2.0,
        carbon_monoxide=180.0,
        uv_index=3.5,
        dust=1.0,
        aerosol_optical_depth=0.12,
        aqi_breakdown={"pm2_5": 33, "pm10": 13, "no2": 9, "ozone": 45, "so2": 1, "co": 2},
        pollen={"alder": None, "birch": None, "grass": None, "mugwort": None, "olive": None, "ragweed": None},
    )
    values.update(overrides)
    return AirQualitySnapshot(**values)


def make_location(**overrides) -> Location:
    values = dict(latitude=40.71, longitude=-74.0, city="New York", region="New York",
                  country="United States", source=LocationSource.IP)
    values.update(overrides)
    return Location(**values)


class CountingDataSource(CallableEnvironmentDataSource):
    """Data source that records how many times each provider was called."""

    def __init__(self, weather=None, air_quality=None, ground_station=None):
        self.calls = {"weather": 0, "air_quality": 0, "ground_station": 0}

        def _wrap(name, fn):
            if fn is None:
                return None

            def call(*args):
                self.calls[name] += 1
                if isinstance(fn, BaseException):
                    raise fn
                return fn(*args) if callable(fn) else fn
            return call

        super().__init__(
            weather=_wrap("weather", weather if weather is not None else make_weather()),
            air_quality=_wrap("air_quality", air_quality if air_quality is not None else make_air()),
            ground_station=_wrap("ground_station", ground_station),
        )
