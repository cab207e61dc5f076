"""Shared protocol and helpers for persisted-location backends."""

from typing import Optional, Protocol

from pydantic import ValidationError

from envsnapshot.domain import Location
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_store/base")


class LocationStore(Protocol):
    """Key-value store that survives restarts and holds the user's chosen location."""

    def load(self) -> Optional[Location]:
        """Return the persisted location, or None when missing or unreadable."""

    def save(self, location: Location) -> None:
        """Persist ``location`` under the store's well-known key."""

    def delete(self) -> None:
        """Remove the persisted location without raising if it is absent."""


def dump_location(location: Location) -> str:
    """Serialize a location record."""
    return location.model_dump_json()


def load_location(raw: str | bytes | None) -> Optional[Location]:
    """Parse a stored record; corrupted records are logged and treated as missing."""
    if raw is None:
        return None
    try:
        return Location.model_validate_json(raw)
    except (ValidationError, ValueError) as exc:
        logger.warning("Ignoring corrupted persisted location", extra={"error": str(exc)})
        return None
