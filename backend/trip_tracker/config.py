from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Database: PostgreSQL (production) or SQLite (local fallback)
    database_url: str = ""  # postgresql://...

    @property
    def effective_database_url(self) -> str:
        """Return the async database URL to use."""
        if self.database_url:
            url = self.database_url
            # Convert postgres:// to postgresql+asyncpg://
            if url.startswith("postgres://"):
                url = "postgresql+asyncpg://" + url[len("postgres://"):]
            elif url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            elif not url.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
                url = "postgresql+asyncpg://" + url
            return url
        db_path = Path(__file__).parent.parent / "data" / "trip_tracker.db"
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

    # Local durable storage (offline queue lives here)
    storage_dir: str = str(Path(__file__).parent.parent / "data" / "local_storage")
    queue_storage_key: str = "offline_queue"

    # Enrichment lookups
    lookup_timeout_seconds: float = 10.0
    lookup_max_attempts: int = 1
    nominatim_domain: str = "nominatim.openstreetmap.org"
    nominatim_user_agent: str = "TravelTrackerApp/1.0"
    air_quality_base_url: str = "https://air-quality-api.open-meteo.com"
    forecast_base_url: str = "https://api.open-meteo.com"

    # Keep a task queued when the record patch fails instead of retiring it
    retain_on_patch_failure: bool = False

    # Connectivity probe
    connectivity_probe_enabled: bool = True
    connectivity_probe_url: str = "https://api.open-meteo.com"
    connectivity_probe_interval_seconds: float = 15.0
    connectivity_probe_timeout_seconds: float = 5.0

    # CORS: allowed origins (comma-separated, or "*" for dev only)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def validate_production(self) -> list[str]:
        """Check critical env vars for production. Returns list of warnings."""
        warnings = []
        if self.app_env == "production":
            if not self.database_url:
                warnings.append("DATABASE_URL is required in production")
            if self.lookup_timeout_seconds <= 0:
                warnings.append("LOOKUP_TIMEOUT_SECONDS must be positive")
            if "*" in self.cors_origin_list:
                warnings.append("CORS_ORIGINS should not allow '*' in production")
            if not self.retain_on_patch_failure:
                warnings.append(
                    "RETAIN_ON_PATCH_FAILURE is off; failed record writes drop enrichment"
                )
        return warnings


settings = Settings()
