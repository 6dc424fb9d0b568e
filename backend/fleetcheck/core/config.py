"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FleetCheck API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Driver compliance checks
    # A license expiring within this many days is reported as "expires soon"
    LICENSE_EXPIRY_WARNING_DAYS: int = Field(
        default=30,
        ge=0,
        description="Days before license expiry at which a warning is raised",
    )
    # Medical fitness checks older than this are reported as due
    MEDICAL_CHECK_MAX_AGE_DAYS: int = Field(
        default=365,
        ge=1,
        description="Maximum age in days of the last medical fitness check",
    )

    # Error tracking (Sentry); disabled while SENTRY_DSN is empty
    SENTRY_DSN: str = Field(default="", description="Sentry DSN for error tracking")
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Fraction of requests traced by Sentry performance monitoring",
    )

    # Metrics (OpenTelemetry)
    OTEL_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "fleetcheck-backend"
    OTEL_EXPORTER: Literal["console", "otlp", "none"] = "console"
    OTEL_OTLP_ENDPOINT: str = ""
    # Comma-separated key=value pairs sent with every OTLP export
    OTEL_EXPORTER_OTLP_HEADERS: str = ""
    OTEL_METRICS_ENABLED: bool = False
    OTEL_METRICS_EXPORT_INTERVAL_MILLIS: int = Field(default=60000, ge=1000)
    # Serve the metrics at {API_V1_PREFIX}/metrics for Prometheus scraping
    PROMETHEUS_METRICS_ENABLED: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_compliance_windows(self) -> Self:
        """The license warning window must be shorter than the medical check window."""
        if self.LICENSE_EXPIRY_WARNING_DAYS >= self.MEDICAL_CHECK_MAX_AGE_DAYS:
            raise ValueError(
                "LICENSE_EXPIRY_WARNING_DAYS must be smaller than "
                f"MEDICAL_CHECK_MAX_AGE_DAYS, got {self.LICENSE_EXPIRY_WARNING_DAYS} "
                f">= {self.MEDICAL_CHECK_MAX_AGE_DAYS}"
            )
        return self


settings = Settings()
