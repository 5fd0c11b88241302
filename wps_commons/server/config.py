"""
Server configuration using Pydantic Settings.

Defaults mirror the processing service's stock configuration. Every value
can be overridden through WPS_* environment variables or a .env file, and
the WPS wrapper's setters can adjust them further before start.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class WPSSettings(BaseSettings):
    """Embedded WPS server settings."""

    model_config = SettingsConfigDict(
        env_prefix="WPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Listener
    host: str = Field(default="localhost", description="Advertised and bound host name")
    port: int = Field(default=8080, description="Listener port")
    https: bool = Field(default=False, description="Advertise https as the protocol")
    webapp_path: str = Field(default="", description="Web application context path")

    # Processing pool
    min_pool_size: int = Field(default=10, description="Minimum worker pool size")
    max_pool_size: int = Field(default=20, description="Maximum worker pool size")
    keep_alive_seconds: int = Field(
        default=1000, description="Idle worker keep-alive in seconds"
    )
    computation_timeout_ms: int = Field(
        default=5, description="Computation timeout in milliseconds"
    )
    max_queued_tasks: int = Field(default=100, description="Maximum queued tasks")

    # Behaviour
    include_data_inputs_in_response: bool = Field(
        default=False, description="Echo data inputs in Execute responses"
    )
    cache_capabilities: bool = Field(
        default=True, description="Cache the capabilities document"
    )
    database_class_name: str = Field(
        default="org.n52.wps.server.database.FlatFileDatabase",
        description="Result database implementation",
    )

    # Embedded server
    startup_timeout: float = Field(
        default=10.0, description="Seconds to wait for the listener to bind"
    )
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Reject ports outside the TCP range."""
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator("min_pool_size", "max_pool_size", "max_queued_tasks")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "WPSSettings":
        """Ensure the pool bounds are ordered."""
        if self.max_pool_size < self.min_pool_size:
            raise ValueError(
                f"max_pool_size ({self.max_pool_size}) must not be smaller "
                f"than min_pool_size ({self.min_pool_size})"
            )
        return self

    @property
    def protocol(self) -> str:
        return "https" if self.https else "http"


@lru_cache()
def get_settings() -> WPSSettings:
    """
    Get cached settings instance.

    Returns:
        WPSSettings instance with loaded configuration.
    """
    return WPSSettings()


def get_settings_uncached() -> WPSSettings:
    """
    Get fresh settings instance (useful for testing).

    Returns:
        New WPSSettings instance with loaded configuration.
    """
    return WPSSettings()
