"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (learned classification patterns)
    database_url: str = "sqlite:///./budget_analytics.db"

    # External Services
    aggregate_api_base: str = "http://localhost:8001"

    # Service
    service_name: str = "budget-analytics"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Analytics defaults
    anomaly_threshold: float = 2.0  # Multiplier over the historical category average
    anomaly_min_samples: int = 3
    history_window_months: int = 6  # Trailing window for averages and trends
    default_forecast_months: int = 3
    health_window_months: int = 3


settings = Settings()
