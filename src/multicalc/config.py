"""
Configuration management for MultiCalc.

Handles loading configuration from environment variables and an optional
.env file, and provides sensible defaults for all settings.
"""

import logging

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""
    
    model_config = SettingsConfigDict(
        env_prefix="MULTICALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # Application settings
    app_name: str = "MultiCalc"
    debug: bool = False
    log_level: str = "INFO"
    
    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    
    # Display settings
    significant_digits: int = 12
    basic_max_display_length: int = 15
    scientific_max_display_length: int = 25
    conversion_display_decimals: int = 5
    money_display_decimals: int = 2
    
    # Currency rate source
    currency_api_url: str = "https://api.frankfurter.app"
    currency_timeout_seconds: float = 10.0
    default_from_currency: str = "USD"
    default_to_currency: str = "EUR"


class PlotConfig(BaseSettings):
    """Graphing-specific configuration."""
    
    model_config = SettingsConfigDict(env_prefix="MULTICALC_PLOT_")
    
    num_points: int = 100
    tick_count: int = 5
    
    # Initial graphing inputs
    default_expression: str = "x^2"
    default_x_min: float = -10.0
    default_x_max: float = 10.0


# Global settings instance
settings = Settings()
plot_config = PlotConfig()


def configure_logging(level: str | None = None) -> None:
    """Filter structlog output below the configured level."""
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric_level))
