"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    database_url: str = "sqlite+aiosqlite:///./leadtrace.db"
    api_host: str = "0.0.0.0"
    api_port: int = 3456
    cors_origins: str = "*"
    environment: str = "development"
    public_base_url: str = ""

    # Event log and persistence
    event_buffer_max: int = 50000
    persist_delay_seconds: float = 30.0

    # Live sessions
    live_window_seconds: int = 300

    # Geolocation collaborator
    geo_lookup_url: str = "http://ip-api.com/json/{ip}"
    geo_timeout_seconds: float = 3.0

    # Push stream
    stream_queue_size: int = 100

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
