"""
Configuration management for the StratSim engine.

Uses pydantic-settings for type-safe environment variable handling.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field can be overridden with a STRATSIM_-prefixed variable,
    e.g. STRATSIM_MAX_GRID_COMBINATIONS=2000.
    """

    model_config = SettingsConfigDict(
        env_prefix="STRATSIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        description="Application environment",
    )

    # Server configuration
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8765, ge=1024, le=65535, description="Server port")

    # Data paths
    data_dir: Path = Field(
        default=Path("./data"),
        description="Root directory for CSV price data",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON formatted log lines",
    )

    # Metrics
    default_periods_per_year: int = Field(
        default=252,
        ge=1,
        le=525600,
        description="Annualization factor used when the bar interval is unknown",
    )

    # Selector
    selector_sim_cash: float = Field(
        default=100000.0,
        gt=0,
        description="Starting cash for the selector's lookback sub-simulations",
    )
    max_grid_combinations: int = Field(
        default=5000,
        ge=1,
        le=1000000,
        description="Largest parameter grid the selector accepts per candidate",
    )
    grid_warning_threshold: int = Field(
        default=1000,
        ge=1,
        description="Grid size above which a warning is logged",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("data_dir")
    @classmethod
    def ensure_data_dir_exists(cls, v: Path) -> Path:
        """Ensure data directory exists."""
        v.mkdir(parents=True, exist_ok=True)
        return v.resolve()

    def get_redacted_config(self) -> dict[str, str | int | float | bool]:
        """
        Get configuration dict safe for logging and API responses.
        """
        return {
            "env": self.env.value,
            "host": self.host,
            "port": self.port,
            "data_dir": str(self.data_dir),
            "log_level": self.log_level,
            "default_periods_per_year": self.default_periods_per_year,
            "selector_sim_cash": self.selector_sim_cash,
            "max_grid_combinations": self.max_grid_combinations,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return Settings()


def get_settings_dep() -> Settings:
    """
    Dependency for FastAPI routes to get settings.
    Allows for easy dependency override in tests.
    """
    return get_settings()
