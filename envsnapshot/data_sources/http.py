"""Shared HTTP sessions for upstream providers.

``forecast_session`` is cached (requests_cache) and retries transient
failures with backoff (retry_requests); it serves the Open-Meteo weather and
air-quality calls only. ``lookup_session`` is a plain session for IP
geolocation, geocoding and WAQI lookups, which are never retried.
"""
from __future__ import annotations

import requests
import requests_cache
from retry_requests import retry

from envsnapshot.config import Settings, settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/http")

USER_AGENT = "envsnapshot/0.1 (+https://open-meteo.com)"


def build_forecast_session(cfg: Settings | None = None) -> requests.Session:
    """Build the cached, retrying session used for forecast endpoints."""
    cfg = cfg or settings
    cache_session = requests_cache.CachedSession(
        cfg.http_cache_name,
        backend=cfg.http_cache_backend,
        expire_after=cfg.http_cache_seconds,
    )
    cache_session.headers.update({"User-Agent": USER_AGENT})
    logger.info(
        "Using requests_cache and retry_requests for forecast calls",
        extra={
            "cache_backend": cfg.http_cache_backend,
            "expire_after": cfg.http_cache_seconds,
            "retries": cfg.http_retries,
        },
    )
    return retry(cache_session, retries=cfg.http_retries, backoff_factor=cfg.http_backoff_factor)


def build_lookup_session() -> requests.Session:
    """Build the plain session used for single-shot lookups."""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    return session


forecast_session = build_forecast_session()
lookup_session = build_lookup_session()


def get_json(session: requests.Session, url: str, *, params: dict | None = None,
             timeout: float | None = None) -> dict:
    """GET ``url`` and return the decoded JSON object.

    Raises ``requests.HTTPError`` on non-2xx, ``ValueError`` when the body is not a
    JSON object, and any transport error from ``requests``.
    """
    resp = session.get(url, params=params, timeout=timeout or settings.http_timeout_seconds)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object from {url}, got {type(data).__name__}")
    return data
