import pytest
import requests

from envsnapshot.config import Settings
from envsnapshot.domain import LocationSource
from envsnapshot.environment_service import EnvironmentService, default_location_from
from envsnapshot.errors import LocationDenied
from envsnapshot.location_store import InMemoryLocationStore
from envsnapshot.risk_scoring import AQI_UNAVAILABLE_ADVISORY
from helpers import CountingDataSource, make_air, make_location, make_weather
from test_location_resolver import CountingProvider
from test_report_cache import FakeClock


def _service(data_source=None, store=None, providers=None, clock=None, **kwargs):
    if providers is None:
        providers = [CountingProvider("geojs", result=make_location())]
    return EnvironmentService(
        settings=Settings(location_store="memory", waqi_token=None),
        data_source=data_source or CountingDataSource(),
        store=store or InMemoryLocationStore(),
        geo_providers=providers,
        geocoder=lambda q: [],
        clock=clock or FakeClock(),
        **kwargs,
    )


def test_default_location_from_settings():
    location = default_location_from(Settings(default_city="Chicago", default_latitude=41.88,
                                              default_longitude=-87.63))
    assert location.city == "Chicago"
    assert location.source == LocationSource.DEFAULT


def test_report_is_cached_for_ttl():
    clock = FakeClock()
    source = CountingDataSource()
    service = _service(data_source=source, clock=clock)

    first = service.get_environment_data()
    clock.advance(5 * 60)
    second = service.get_environment_data()
    assert first is second
    assert source.calls["weather"] == 1

    clock.advance(6 * 60)
    service.get_environment_data()
    assert source.calls["weather"] == 2
    assert source.calls["air_quality"] == 2


def test_stored_location_skips_geolocation():
    store = InMemoryLocationStore()
    store.save(make_location(city="Paris", latitude=48.85, longitude=2.35))
    provider = CountingProvider("geojs", result=make_location())

    report = _service(store=store, providers=[provider]).get_environment_data()

    assert report.location.city == "Paris"
    assert report.location.source == LocationSource.SAVED
    assert provider.calls == 0


def test_weather_failure_yields_partial_report():
    source = CountingDataSource(weather=requests.ConnectionError("connection reset"))
    report = _service(data_source=source).get_environment_data()

    assert report.weather is None
    assert report.indoor is None
    assert report.air_quality.aqi == 45
    assert report.air_quality.category.level == "Good"
    assert "weather" in report.source_errors


def test_all_sources_failing_still_returns_report():
    source = CountingDataSource(weather=ValueError("malformed"), air_quality=ValueError("malformed"))
    report = _service(data_source=source).get_environment_data()

    assert report.weather is None
    assert report.air_quality.aqi is None
    assert report.advisory == AQI_UNAVAILABLE_ADVISORY


def test_end_to_end_new_york_morning():
    weather = make_weather(temperature=22.0, feels_like=21.0, humidity=85.0, dew_point=19.0)
    source = CountingDataSource(weather=weather, air_quality=make_air(us_aqi=45))

    report = _service(data_source=source).get_environment_data()

    assert report.location.city == "New York"
    assert report.location.source == LocationSource.IP
    assert report.air_quality.aqi == 45
    assert report.air_quality.source == "open-meteo"
    assert report.air_quality.category.level == "Good"
    assert report.advisory == "Good for outdoor breathing exercises"
    # condensation margin is 3 degrees; humidity at or above 80% alone makes it high
    assert report.indoor.mold_risk.level == "High"
    assert report.weather.daylight.daylight_hours == 15.0


def test_set_location_invalidates_cache():
    source = CountingDataSource()
    service = _service(data_source=source)
    service.get_environment_data()

    service.set_location(make_location(city="Lisbon", latitude=38.72, longitude=-9.14))
    report = service.get_environment_data()

    assert report.location.city == "Lisbon"
    assert report.location.source == LocationSource.MANUAL
    assert source.calls["weather"] == 2


def test_clear_cache_reresolves_from_store():
    store = InMemoryLocationStore()
    service = _service(store=store)
    service.get_environment_data()
    service.set_location(make_location(city="Lisbon", latitude=38.72, longitude=-9.14))

    service.clear_cache()

    assert service.current_location().source == LocationSource.SAVED
    assert store.loads >= 2


def test_gps_upgrade_clears_cache_and_refusal_keeps_location():
    source = CountingDataSource()
    service = _service(data_source=source)
    before = service.get_environment_data().location

    def refuse(timeout):
        raise PermissionError("denied")

    with pytest.raises(LocationDenied):
        service.upgrade_to_gps(refuse)
    assert service.current_location() == before
    assert source.calls["weather"] == 1

    upgraded = service.upgrade_to_gps(lambda timeout: (40.7484, -73.9857))
    assert upgraded.source == LocationSource.GPS
    assert service.get_environment_data().location == upgraded
    assert source.calls["weather"] == 2


def test_gps_falls_back_to_configured_provider():
    service = _service(position_provider=lambda timeout: (1.0, 2.0))
    assert service.upgrade_to_gps().latitude == 1.0
    with pytest.raises(LocationDenied):
        _service().upgrade_to_gps()
