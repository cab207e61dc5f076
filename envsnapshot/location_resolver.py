"""Resolve the user's current location without prompting for permissions.

Priority: in-process memo, then the persisted choice, then keyless IP
geolocation, then a configured default. Precise device coordinates are used
only when the caller explicitly asks via ``upgrade_to_gps``.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional, Sequence, Tuple

import requests

from envsnapshot.combinators import first_success
from envsnapshot.data_sources import open_meteo_client
from envsnapshot.domain import Location, LocationSource
from envsnapshot.errors import AllGeoProvidersFailed, InvalidSearchQuery, LocationDenied, SourceUnavailable
from envsnapshot.location_store import LocationStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_resolver")

# Called with the timeout in seconds; returns (latitude, longitude).
PositionProvider = Callable[[float], Tuple[float, float]]
GeoLookup = Callable[[], Optional[Location]]
Geocoder = Callable[[str], List[Location]]


class LocationResolver:
    """Owns the memoized location and every way of changing it."""

    def __init__(
        self,
        store: LocationStore,
        providers: Sequence[GeoLookup],
        default_location: Location,
        *,
        geocoder: Geocoder | None = None,
        gps_timeout_seconds: float = 8.0,
    ) -> None:
        self.store = store
        self.providers = list(providers)
        self.default_location = default_location.with_source(LocationSource.DEFAULT)
        self.geocoder = geocoder or open_meteo_client.search_locations
        self.gps_timeout_seconds = gps_timeout_seconds
        self._memo: Optional[Location] = None
        self._lock = threading.RLock()

    @property
    def current(self) -> Optional[Location]:
        """The memoized location, without triggering resolution."""
        return self._memo

    def resolve(self) -> Location:
        """Return the current location; never raises."""
        with self._lock:
            if self._memo is not None:
                return self._memo

        # network lookups run unlocked so set_location/upgrade_to_gps are not held up
        located = self._load_saved()
        if located is not None:
            logger.info("Using saved location", extra={"city": located.city})
        else:
            try:
                located = self._locate_by_ip()
            except AllGeoProvidersFailed:
                logger.warning(
                    "All IP geolocation providers failed; using default location",
                    extra={"city": self.default_location.city},
                )
                located = self.default_location

        with self._lock:
            # an explicit choice made meanwhile wins over this resolution
            if self._memo is None:
                self._memo = located
            return self._memo

    def _load_saved(self) -> Optional[Location]:
        try:
            saved = self.store.load()
        except Exception as exc:
            logger.warning("Location store failed; treating as empty", extra={"error": str(exc)})
            return None
        if saved is None:
            return None
        return saved.with_source(LocationSource.SAVED)

    def _locate_by_ip(self) -> Location:
        location = first_success(self.providers)
        if location is None:
            raise AllGeoProvidersFailed(f"{len(self.providers)} providers exhausted")
        logger.info("Resolved location by IP", extra={"city": location.city, "country": location.country})
        return location.with_source(LocationSource.IP)

    def forget(self) -> None:
        """Drop the memo so the next ``resolve`` starts from the persisted store."""
        with self._lock:
            self._memo = None

    def set_location(self, location: Location) -> Location:
        """Adopt a user-chosen location and persist it."""
        chosen = location.with_source(LocationSource.MANUAL)
        with self._lock:
            self.store.save(chosen)
            self._memo = chosen
        logger.info("Location set manually", extra={"city": chosen.city, "country": chosen.country})
        return chosen

    def search_location(self, query: str) -> List[Location]:
        """Geocode ``query`` into candidates; has no side effects."""
        if query is None or not str(query).strip():
            raise InvalidSearchQuery("Search query must not be empty")
        try:
            return self.geocoder(str(query).strip())
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Geocoding failed", extra={"query": query, "error": str(exc)})
            raise SourceUnavailable("geocoding", str(exc)) from exc

    def upgrade_to_gps(self, position_provider: PositionProvider | None) -> Location:
        """Replace the location with device coordinates.

        City/region/country labels are carried over from the previous location;
        no reverse geocoding is done, so they are approximate. Raises
        ``LocationDenied`` on refusal, timeout or when no provider is available,
        leaving the previous location untouched.
        """
        if position_provider is None:
            raise LocationDenied("Device geolocation is not available")

        timeout = self.gps_timeout_seconds
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gps")
        try:
            future = pool.submit(position_provider, timeout)
            fix = future.result(timeout=timeout)
            latitude, longitude = fix
        except FutureTimeoutError as exc:
            logger.warning("GPS request timed out", extra={"timeout": timeout})
            raise LocationDenied("Location request timed out") from exc
        except LocationDenied:
            raise
        except (PermissionError, TimeoutError) as exc:
            logger.info("GPS request denied", extra={"error": str(exc)})
            raise LocationDenied("Location access denied") from exc
        except Exception as exc:
            logger.warning("GPS position unavailable", extra={"error": repr(exc)})
            raise LocationDenied("Location unavailable") from exc
        finally:
            # a stuck platform call must not block the caller past the timeout
            pool.shutdown(wait=False)

        with self._lock:
            previous = self._memo
            try:
                upgraded = Location(
                    latitude=latitude,
                    longitude=longitude,
                    city=previous.city if previous else "",
                    region=previous.region if previous else "",
                    country=previous.country if previous else "",
                    label=previous.label if previous else "",
                    source=LocationSource.GPS,
                )
            except ValueError as exc:
                raise LocationDenied(f"Device reported invalid coordinates: {exc}") from exc
            self.store.save(upgraded)
            self._memo = upgraded
        logger.info("Location upgraded to GPS", extra={"city": upgraded.city})
        return upgraded
