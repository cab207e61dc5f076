"""Redis-backed location store."""

from typing import Optional

from envsnapshot.domain import Location
from envsnapshot.location_store.base import LocationStore, dump_location, load_location
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_store/redis_location_store")


class RedisLocationStore(LocationStore):
    """Store the chosen location as a JSON string under a single Redis key (no expiry)."""

    def __init__(self, client, key: str = "user_location", prefix: str = "envsnapshot:") -> None:
        logger.debug("Initializing RedisLocationStore")
        self.client = client
        self.key = f"{prefix}{key}"

    def load(self) -> Optional[Location]:
        try:
            raw = self.client.get(self.key)
        except Exception as exc:
            logger.warning("Redis location lookup failed; treating as missing", extra={"error": str(exc)})
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return load_location(raw)

    def save(self, location: Location) -> None:
        self.client.set(self.key, dump_location(location))

    def delete(self) -> None:
        self.client.delete(self.key)
