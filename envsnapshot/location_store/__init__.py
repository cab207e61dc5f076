"""Persisted-location storage backends."""

from .base import LocationStore
from .factory import build_location_store
from .file import FileLocationStore
from .memory import InMemoryLocationStore
from .redis import RedisLocationStore

__all__ = [
    "LocationStore",
    "build_location_store",
    "FileLocationStore",
    "InMemoryLocationStore",
    "RedisLocationStore",
]
