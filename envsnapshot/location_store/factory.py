"""Pick the persisted-location backend from configuration."""

import redis

from envsnapshot import config
from envsnapshot.location_store.base import LocationStore
from envsnapshot.location_store.file import FileLocationStore
from envsnapshot.location_store.memory import InMemoryLocationStore
from envsnapshot.location_store.redis import RedisLocationStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="location_store/factory")


def build_location_store(settings: config.Settings | None = None) -> LocationStore:
    """Initialize the backing location store based on configuration."""
    settings = settings or config.settings
    backend = settings.location_store

    if backend == "redis" or (settings.location_redis_url and backend != "memory"):
        if not settings.location_redis_url:
            raise ValueError("location_redis_url must be set for the Redis location store")
        try:
            client = redis.Redis.from_url(settings.location_redis_url)
            client.ping()
            logger.info("Using RedisLocationStore", extra={"redis_url": mask_url(settings.location_redis_url)})
            return RedisLocationStore(client, key=settings.location_store_key)
        except redis.RedisError as exc:
            logger.warning("Falling back to FileLocationStore (Redis unavailable)", extra={"error": str(exc)})
            return FileLocationStore(settings.location_store_path, key=settings.location_store_key)

    if backend == "memory":
        logger.info("Using InMemoryLocationStore; chosen locations will not survive restarts")
        return InMemoryLocationStore()

    if backend == "file":
        logger.info("Using FileLocationStore", extra={"path": settings.location_store_path})
        return FileLocationStore(settings.location_store_path, key=settings.location_store_key)

    raise ValueError(f"Unknown location store '{backend}'")
