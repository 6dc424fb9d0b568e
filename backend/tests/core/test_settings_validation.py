"""
Tests for Settings configuration validation in config.py.
"""
import pytest
from pydantic import ValidationError

from fleetcheck.core.config import Settings


class TestComplianceWindows:
    """Tests for the compliance threshold settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.LICENSE_EXPIRY_WARNING_DAYS == 30
        assert settings.MEDICAL_CHECK_MAX_AGE_DAYS == 365

    def test_warning_window_must_be_shorter_than_medical_window(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(LICENSE_EXPIRY_WARNING_DAYS=400, MEDICAL_CHECK_MAX_AGE_DAYS=365)
        assert "LICENSE_EXPIRY_WARNING_DAYS" in str(exc_info.value)

    def test_negative_warning_window_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LICENSE_EXPIRY_WARNING_DAYS=-1)

    def test_zero_medical_window_rejected(self):
        with pytest.raises(ValidationError):
            Settings(MEDICAL_CHECK_MAX_AGE_DAYS=0)

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("LICENSE_EXPIRY_WARNING_DAYS", "14")
        monkeypatch.setenv("MEDICAL_CHECK_MAX_AGE_DAYS", "180")

        settings = Settings()

        assert settings.LICENSE_EXPIRY_WARNING_DAYS == 14
        assert settings.MEDICAL_CHECK_MAX_AGE_DAYS == 180


class TestLogLevel:
    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="VERBOSE")

    def test_valid_log_level(self):
        assert Settings(LOG_LEVEL="DEBUG").LOG_LEVEL == "DEBUG"


class TestObservabilitySettings:
    def test_defaults_leave_tracking_off(self):
        settings = Settings()
        assert settings.SENTRY_DSN == ""
        assert settings.OTEL_ENABLED is False
        assert settings.OTEL_METRICS_ENABLED is False
        assert settings.PROMETHEUS_METRICS_ENABLED is False
        assert settings.OTEL_EXPORTER == "console"

    def test_sample_rate_bounded(self):
        with pytest.raises(ValidationError):
            Settings(SENTRY_TRACES_SAMPLE_RATE=1.5)

    def test_unknown_exporter_rejected(self):
        with pytest.raises(ValidationError):
            Settings(OTEL_EXPORTER="zipkin")
