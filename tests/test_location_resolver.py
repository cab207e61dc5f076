import threading

import pytest
import requests

from envsnapshot.domain import Location, LocationSource
from envsnapshot.errors import InvalidSearchQuery, LocationDenied, SourceUnavailable
from envsnapshot.location_resolver import LocationResolver
from envsnapshot.location_store import InMemoryLocationStore
from helpers import make_location

DEFAULT = Location(latitude=40.7128, longitude=-74.006, city="New York", source=LocationSource.DEFAULT)


class CountingProvider:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def _resolver(store=None, providers=(), **kwargs):
    return LocationResolver(store or InMemoryLocationStore(), providers, DEFAULT, **kwargs)


def test_saved_location_skips_ip_providers():
    store = InMemoryLocationStore()
    store.save(make_location(city="Paris", latitude=48.85, longitude=2.35, source=LocationSource.MANUAL))
    provider = CountingProvider("geojs", result=make_location())

    location = _resolver(store, [provider]).resolve()

    assert location.city == "Paris"
    assert location.source == LocationSource.SAVED
    assert provider.calls == 0


def test_corrupted_store_falls_through_to_ip():
    provider = CountingProvider("geojs", result=make_location(city="Denver"))
    location = _resolver(InMemoryLocationStore(raw="{broken"), [provider]).resolve()
    assert location.city == "Denver"
    assert location.source == LocationSource.IP


def test_third_provider_wins_after_two_fail():
    failing = CountingProvider("geojs", error=requests.ConnectionError("down"))
    empty = CountingProvider("ipwho", result=None)
    working = CountingProvider("ipapi", result=make_location(city="Austin", source=LocationSource.MANUAL))

    location = _resolver(providers=[failing, empty, working]).resolve()

    assert location.city == "Austin"
    assert location.source == LocationSource.IP
    assert (failing.calls, empty.calls, working.calls) == (1, 1, 1)


def test_all_providers_failing_uses_default():
    providers = [CountingProvider(n, error=requests.Timeout("slow")) for n in ("geojs", "ipwho", "ipapi")]
    location = _resolver(providers=providers).resolve()
    assert location.city == "New York"
    assert location.source == LocationSource.DEFAULT


def test_resolution_is_memoized_until_forget():
    store = InMemoryLocationStore()
    provider = CountingProvider("geojs", result=make_location())
    resolver = _resolver(store, [provider])

    resolver.resolve()
    resolver.resolve()
    assert provider.calls == 1
    assert store.loads == 1

    resolver.forget()
    resolver.resolve()
    assert store.loads == 2


def test_set_location_persists_and_survives_restart():
    store = InMemoryLocationStore()
    resolver = _resolver(store)

    chosen = resolver.set_location(make_location(city="Lisbon", latitude=38.72, longitude=-9.14))
    assert chosen.source == LocationSource.MANUAL
    assert resolver.current == chosen

    restarted = _resolver(store, [CountingProvider("geojs", result=make_location())])
    assert restarted.resolve().city == "Lisbon"


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_search_is_rejected(query):
    with pytest.raises(InvalidSearchQuery):
        _resolver(geocoder=lambda q: []).search_location(query)


def test_search_strips_query_and_has_no_side_effects():
    seen = []

    def geocoder(query):
        seen.append(query)
        return [make_location(city="Portland", source=LocationSource.MANUAL)]

    resolver = _resolver(geocoder=geocoder)
    results = resolver.search_location("  Portland ")

    assert seen == ["Portland"]
    assert results[0].city == "Portland"
    assert resolver.current is None


def test_search_network_failure_is_source_unavailable():
    def geocoder(query):
        raise requests.ConnectionError("no route")

    with pytest.raises(SourceUnavailable) as info:
        _resolver(geocoder=geocoder).search_location("Oslo")
    assert info.value.source == "geocoding"


def test_gps_without_provider_is_denied():
    with pytest.raises(LocationDenied):
        _resolver().upgrade_to_gps(None)


def test_gps_refusal_keeps_previous_location():
    store = InMemoryLocationStore()
    resolver = _resolver(store, [CountingProvider("geojs", result=make_location())])
    before = resolver.resolve()

    def refuse(timeout):
        raise PermissionError("user declined")

    with pytest.raises(LocationDenied):
        resolver.upgrade_to_gps(refuse)
    assert resolver.resolve() == before
    assert store.load() is None


def _raises(error):
    def provider(timeout):
        raise error
    return provider


@pytest.mark.parametrize(
    "provider",
    [
        pytest.param(_raises(OSError("position unavailable")), id="os-error"),
        pytest.param(_raises(RuntimeError("no fix")), id="runtime-error"),
        pytest.param(lambda timeout: None, id="no-fix"),
    ],
)
def test_gps_provider_failures_are_denied_and_keep_location(provider):
    store = InMemoryLocationStore()
    resolver = _resolver(store, [CountingProvider("geojs", result=make_location())])
    before = resolver.resolve()

    with pytest.raises(LocationDenied):
        resolver.upgrade_to_gps(provider)
    assert resolver.current == before
    assert store.load() is None


def test_set_location_during_slow_ip_lookup_is_not_overwritten():
    started = threading.Event()
    release = threading.Event()

    def slow_lookup():
        started.set()
        release.wait(5)
        return make_location(city="Denver")

    resolver = _resolver(providers=[slow_lookup])
    resolved = []
    worker = threading.Thread(target=lambda: resolved.append(resolver.resolve()))
    worker.start()
    assert started.wait(5)

    # does not wait for the in-flight lookup
    chosen = resolver.set_location(make_location(city="Lisbon", latitude=38.72, longitude=-9.14))
    release.set()
    worker.join(5)

    assert resolved[0] == chosen
    assert resolver.current.city == "Lisbon"


def test_gps_timeout_is_denied():
    release = threading.Event()

    def stuck(timeout):
        release.wait(5)
        return 1.0, 2.0

    resolver = _resolver(gps_timeout_seconds=0.05)
    try:
        with pytest.raises(LocationDenied):
            resolver.upgrade_to_gps(stuck)
    finally:
        release.set()


def test_gps_invalid_coordinates_are_denied():
    with pytest.raises(LocationDenied):
        _resolver().upgrade_to_gps(lambda timeout: (120.0, 0.0))


def test_gps_success_carries_labels_and_persists():
    store = InMemoryLocationStore()
    resolver = _resolver(store, [CountingProvider("geojs", result=make_location())])
    resolver.resolve()
    received = []

    def device(timeout):
        received.append(timeout)
        return 40.7484, -73.9857

    upgraded = resolver.upgrade_to_gps(device)

    assert upgraded.source == LocationSource.GPS
    assert (upgraded.latitude, upgraded.longitude) == (40.7484, -73.9857)
    assert upgraded.city == "New York"
    assert received == [8.0]
    assert store.load().latitude == 40.7484
    assert resolver.current == upgraded
