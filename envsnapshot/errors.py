"""Exception types raised across the environment snapshot service."""


class EnvironmentServiceError(Exception):
    """Base class for service errors."""


class SourceUnavailable(EnvironmentServiceError):
    """A single upstream provider failed (network error, non-2xx status or malformed payload)."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class AllGeoProvidersFailed(EnvironmentServiceError):
    """No IP geolocation provider produced coordinates."""


class LocationDenied(EnvironmentServiceError):
    """Device geolocation was refused, timed out or is not available."""


class InvalidSearchQuery(EnvironmentServiceError, ValueError):
    """A location search query was empty or otherwise unusable."""
