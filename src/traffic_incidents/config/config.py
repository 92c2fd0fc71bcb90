"""Configuration settings for the traffic incidents service."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Normandy, the area the original deployment polled
DEFAULT_COVERAGE_BBOX = (-1.5373653562812137, 48.90257667883992, 0.7880741778504614, 49.40242438761433)

DEFAULT_FEED_FIELDS = (
    "{incidents{type,geometry{type,coordinates},properties{iconCategory,magnitudeOfDelay,"
    "events{description,code,iconCategory},startTime,endTime}}}"
)


class Settings(BaseSettings):
    """
    Application settings with production-ready configuration management.

    Values come from environment variables (case-insensitive) or a local
    ``.env`` file, falling back to the defaults below.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # Application settings
    app_name: str = Field(default="Traffic Incidents API", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment (development, staging, production)")

    # API settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=4001, description="API port")
    api_prefix: str = Field(default="/api/traffic", description="API prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8081"], description="CORS allowed origins"
    )
    enable_docs: bool = Field(default=True, description="Enable OpenAPI docs endpoints")

    # Persistence
    database_url: str = Field(default="sqlite:///./traffic_incidents.db", description="SQLAlchemy database URL")
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    database_pool_size: int = Field(default=5, description="Connection pool size (server databases only)")

    # Traffic feed (TomTom Traffic Incident Details v5)
    vendor_base_url: str = Field(default="https://api.tomtom.com", description="Traffic feed base URL")
    vendor_api_key: str = Field(default="", description="Traffic feed API key")
    vendor_traffic_version: int = Field(default=5, description="Traffic incident API version")
    vendor_language: str = Field(default="fr-FR", description="Language of incident descriptions")
    vendor_time_validity_filter: str = Field(default="present", description="present, future or all")
    vendor_max_results: int = Field(default=1000, description="Maximum incidents per feed request", gt=0)
    vendor_timeout_seconds: float = Field(default=10.0, description="Feed request timeout in seconds", gt=0)
    vendor_fields: str = Field(default=DEFAULT_FEED_FIELDS, description="Feed field selector")
    vendor_circuit_failure_threshold: int = Field(default=3, description="Live feed failures before the circuit opens")
    vendor_circuit_recovery_seconds: float = Field(default=60.0, description="Seconds before a half-open retry")

    # Sync job
    sync_enabled: bool = Field(default=True, description="Run the periodic feed sync job")
    sync_interval_seconds: float = Field(default=300.0, description="Seconds between sync ticks", gt=0)
    coverage_bbox: Annotated[tuple[float, float, float, float], NoDecode] = Field(
        default=DEFAULT_COVERAGE_BBOX, description="Polled area as minLon,minLat,maxLon,maxLat"
    )
    vendor_default_ttl_minutes: int = Field(default=60, description="Expiry horizon when the feed gives no end time", gt=0)
    sync_matcher: Literal["memory", "store"] = Field(
        default="memory", description="memory: scan a per-tick pool; store: query the store per record"
    )

    # Queries
    query_live_vendor: bool = Field(default=False, description="Merge a live feed call into /incidents responses")

    # User reports
    report_default_duration_minutes: int = Field(default=60, description="Default report lifetime", gt=0)
    report_invalidation_threshold: int = Field(default=3, description="Invalidations that retire a report", gt=0)

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: str | None = Field(default=None, description="Log file path")
    log_rotation: bool = Field(default=True, description="Enable log rotation")
    log_max_size: str = Field(default="100MB", description="Maximum log file size")
    log_backup_count: int = Field(default=5, description="Number of backup log files")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["development", "dev", "local", "test", "staging", "stage", "production", "prod"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("coverage_bbox", mode="before")
    @classmethod
    def parse_coverage_bbox(cls, v):
        """Accept the comma separated form used by the query string."""
        if isinstance(v, str):
            return tuple(float(part) for part in v.split(","))
        return v

    @computed_field
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment in ("development", "dev", "local")

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment in ("production", "prod")

    def get_cors_settings(self) -> dict:
        """
        Get CORS settings based on environment.

        Returns:
            dict: CORS configuration
        """
        if self.is_production:
            return {
                "allow_origins": self.cors_origins,
                "allow_credentials": True,
                "allow_methods": ["GET", "POST", "PATCH"],
                "allow_headers": ["Authorization", "Content-Type", "X-User-Id"],
            }
        return {
            "allow_origins": ["*"],
            "allow_credentials": True,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
