"""Public facade: location, aggregation, scoring and caching behind one object."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from envsnapshot.aggregator import Aggregator
from envsnapshot.config import Settings, settings as default_settings
from envsnapshot.data_sources import GEO_PROVIDERS, EnvironmentDataSource, build_data_source
from envsnapshot.domain import EnvironmentReport, Location, LocationSource
from envsnapshot.location_resolver import GeoLookup, Geocoder, LocationResolver, PositionProvider
from envsnapshot.location_store import LocationStore, build_location_store
from envsnapshot.report_cache import ReportCache
from envsnapshot.risk_scoring import annotate
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="environment_service")


def default_location_from(cfg: Settings) -> Location:
    """The last-resort location configured in settings."""
    return Location(
        latitude=cfg.default_latitude,
        longitude=cfg.default_longitude,
        city=cfg.default_city,
        region=cfg.default_region,
        country=cfg.default_country,
        source=LocationSource.DEFAULT,
    )


class EnvironmentService:
    """Holds one resolver, aggregator and cache; create one per user context."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        data_source: EnvironmentDataSource | None = None,
        store: LocationStore | None = None,
        geo_providers: Sequence[GeoLookup] | None = None,
        geocoder: Geocoder | None = None,
        position_provider: PositionProvider | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.position_provider = position_provider
        self.resolver = LocationResolver(
            store=store if store is not None else build_location_store(self.settings),
            providers=GEO_PROVIDERS if geo_providers is None else geo_providers,
            default_location=default_location_from(self.settings),
            geocoder=geocoder,
            gps_timeout_seconds=self.settings.gps_timeout_seconds,
        )
        self.aggregator = Aggregator(data_source or build_data_source(self.settings))
        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.cache = ReportCache(ttl_seconds=self.settings.report_ttl_seconds, **cache_kwargs)

    def _build_report(self) -> EnvironmentReport:
        location = self.resolver.resolve()
        raw = self.aggregator.fetch(location)
        report = annotate(location, raw, fetched_at=datetime.now(timezone.utc))
        logger.info(
            "Built environment report",
            extra={
                "aqi": report.air_quality.aqi,
                "aqi_source": report.air_quality.source,
                "failed_sources": sorted(raw.errors),
            },
        )
        return report

    def get_environment_data(self) -> EnvironmentReport:
        """Cached report when fresh, otherwise resolve, fetch, score and cache.

        Source failures degrade the report instead of raising.
        """
        return self.cache.get_or_fetch(self._build_report)

    def current_location(self) -> Location:
        return self.resolver.resolve()

    def clear_cache(self) -> None:
        """Drop the cached report and the location memo (the persisted choice stays)."""
        self.cache.clear()
        self.resolver.forget()

    def search_location(self, query: str) -> List[Location]:
        return self.resolver.search_location(query)

    def set_location(self, location: Location) -> Location:
        """Persist a manual choice and invalidate the cached report."""
        chosen = self.resolver.set_location(location)
        self.cache.clear()
        return chosen

    def upgrade_to_gps(self, position_provider: Optional[PositionProvider] = None) -> Location:
        """Switch to device coordinates; raises ``LocationDenied`` and keeps the old location on failure."""
        upgraded = self.resolver.upgrade_to_gps(position_provider or self.position_provider)
        self.cache.clear()
        return upgraded
