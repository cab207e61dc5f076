"""Service configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the environment snapshot service."""
    model_config = SettingsConfigDict(env_prefix="ENVSNAP_", extra="ignore")

    # Optional WAQI (aqicn.org) token; absent means no ground-station lookups.
    waqi_token: str | None = None

    report_ttl_seconds: int = 600
    http_timeout_seconds: float = 8.0
    gps_timeout_seconds: float = 8.0
    http_retries: int = 3
    http_backoff_factor: float = 0.5
    http_cache_name: str = ".envsnapshot_http_cache"
    http_cache_backend: str = "sqlite"  # any requests_cache backend name, e.g. memory
    http_cache_seconds: int = 300

    location_store: str = "file"  # options: file, memory, redis
    location_store_path: str = "./.envsnapshot_location.json"
    location_redis_url: str | None = None
    location_store_key: str = "user_location"

    geocoding_result_count: int = 5

    default_latitude: float = 40.7128
    default_longitude: float = -74.0060
    default_city: str = "New York"
    default_region: str = "New York"
    default_country: str = "United States"

    log_level: str = "INFO"

    @field_validator("waqi_token", "location_redis_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty/whitespace strings as unset."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("location_store", "http_cache_backend", mode="after")
    @classmethod
    def lowercase(cls, v: str) -> str:
        """Normalize backend names."""
        return v.strip().lower()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'waqi_token'})}")
