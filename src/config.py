"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Inventory"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Database ---
    database_url: str  # postgres connection string for asyncpg
    database_min_pool_size: int = 2
    database_max_pool_size: int = 10

    # --- Catalog integration ---
    catalog_base_uri: str = "http://localhost:8080"
    catalog_events_rels: list[str] = ["events"]  # traversed from the catalog root
    catalog_events_template: str | None = None  # skips discovery when set
    catalog_event_type: str = "productAdded"
    http_timeout_seconds: float = 10.0

    # --- Sync scheduler ---
    sync_enabled: bool = True
    sync_interval_ms: int = 5000  # fixed delay between the end of one tick and the next

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
