"""Configuration management for zdravniki.

Loads upstream URLs, cache limits and runtime settings from environment
variables using Pydantic. Every setting has a working default, so the
service runs against the public sledilnik datasets without a .env file.

Usage:
    from zdravniki.config import settings

    print(settings.doctors_url)
    print(settings.cache_ttl_seconds)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_UPSTREAM_BASE = "https://raw.githubusercontent.com/sledilnik/zdravniki-data/main/csv"


class Settings(BaseSettings):
    """zdravniki configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
        doctors_url: Doctors CSV dataset
        institutions_url: Institutions CSV dataset
        doctors_ts_url: Timestamp token versioning the doctors dataset
        institutions_ts_url: Timestamp token versioning the institutions dataset
        http_timeout: Upstream request timeout (seconds)
        cache_ttl_seconds: Lifetime of a cache entry
        cache_max_size: Maximum entries per cache before FIFO eviction
        data_dir: Directory holding the local compressed data files
        search_threshold: Minimum record score returned by search
        search_limit: Maximum number of search matches returned
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # System Settings
    log_level: str = Field(default="INFO", description="Logging level")

    # Upstream datasets
    doctors_url: str = Field(
        default=f"{_UPSTREAM_BASE}/doctors.csv",
        description="Doctors CSV URL",
    )
    institutions_url: str = Field(
        default=f"{_UPSTREAM_BASE}/institutions.csv",
        description="Institutions CSV URL",
    )
    doctors_ts_url: str = Field(
        default=f"{_UPSTREAM_BASE}/doctors.csv.timestamp",
        description="Doctors timestamp token URL",
    )
    institutions_ts_url: str = Field(
        default=f"{_UPSTREAM_BASE}/institutions.csv.timestamp",
        description="Institutions timestamp token URL",
    )
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout (seconds)")

    # Cache
    cache_ttl_seconds: float = Field(
        default=600.0,
        ge=1,
        description="Cache entry lifetime (seconds)",
    )
    cache_max_size: int = Field(
        default=100,
        ge=1,
        description="Max entries per cache (oldest inserted is evicted)",
    )

    # Local compressed files
    data_dir: str = Field(default="database", description="Local data file directory")

    # Search
    search_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum weighted score for a search match",
    )
    search_limit: int = Field(default=50, ge=1, description="Max search matches")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("doctors_url", "institutions_url", "doctors_ts_url", "institutions_ts_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure upstream URLs are absolute http(s) URLs."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"upstream URL must start with http:// or https://, got '{v}'")
        return v


# Global settings instance — loaded once at import
settings = Settings()
