"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the Luftcheck service."""
    model_config = SettingsConfigDict(env_prefix="LUFTCHECK_", extra="ignore")

    forecast_source: str = "open_meteo"  # options: open_meteo
    open_meteo_url: str = "https://api.open-meteo.com/v1/forecast"
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    nominatim_user_agent: str = "luftcheck/0.1 (+https://github.com/luftcheck/luftcheck)"
    forecast_timezone: str = "auto"
    forecast_days: int | None = None  # None lets Open-Meteo pick its default (7 days)
    forecast_ttl_seconds: int = 3600
    forecast_redis_url: str | None = None
    request_timeout_seconds: float = 10.0
    http_cache_seconds: int = 900
    api_key: str | None = None
    log_level: str = "INFO"

    @field_validator("open_meteo_url", "nominatim_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize endpoint URLs so query params attach cleanly."""
        return str(v).rstrip("/")

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        """Accept lowercase level names from the environment."""
        return str(v).upper()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
