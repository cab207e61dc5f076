"""In-memory location store, intended for development and tests."""

import threading
from typing import Optional

from envsnapshot.domain import Location
from envsnapshot.location_store.base import LocationStore, dump_location, load_location


class InMemoryLocationStore(LocationStore):
    """Thread-safe store that keeps the serialized record, so corruption can be simulated."""

    def __init__(self, raw: str | None = None) -> None:
        self._raw: str | None = raw
        self._lock = threading.Lock()
        self.loads = 0

    def load(self) -> Optional[Location]:
        with self._lock:
            self.loads += 1
            return load_location(self._raw)

    def save(self, location: Location) -> None:
        with self._lock:
            self._raw = dump_location(location)

    def delete(self) -> None:
        with self._lock:
            self._raw = None
