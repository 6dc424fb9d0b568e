"""
Error tracking and metrics backends.

Errors go to Sentry. Metrics go through an OpenTelemetry MeterProvider that
exports to the console or an OTLP collector, and optionally to the
Prometheus registry scraped at {API_V1_PREFIX}/metrics.

Every call is a no-op until init() has run, so exception handlers and
degradation helpers can report unconditionally:

    from fleetcheck.core.observability import observability

    observability.init(service_name="fleetcheck-backend", environment="production")
    observability.capture_error(exc, context={"path": "/v1/attempts"})
    observability.record_metric("app.errors", 1, labels={"error.type": "Timeout"})
    observability.shutdown()
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import unquote

import sentry_sdk
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from prometheus_client import REGISTRY, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from fleetcheck.core.config import settings

logger = logging.getLogger(__name__)

MetricType = Literal["counter", "histogram"]


def parse_otlp_headers(headers_str: str) -> Dict[str, str]:
    """Parse "key1=value1,key2=value2" into a dict, URL-decoding both sides.

    Pairs without "=" or with an empty key or value are skipped.
    """
    headers: Dict[str, str] = {}
    for pair in (headers_str or "").split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        key, value = unquote(key.strip()), unquote(value.strip())
        if key and value:
            headers[key] = value
    return headers


def _serialize_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize_value(item) for item in value]
    return str(value)


class Observability:
    """Routes errors to Sentry and metrics to OpenTelemetry."""

    def __init__(self) -> None:
        self._initialized = False
        self._sentry_enabled = False
        self._meter_provider: Optional[MeterProvider] = None
        self._meter: Any = None
        self._instruments: Dict[str, Any] = {}
        self._prometheus_reader: Optional[PrometheusMetricReader] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def metrics_enabled(self) -> bool:
        return self._meter is not None

    @property
    def prometheus_enabled(self) -> bool:
        return self._prometheus_reader is not None

    def init(
        self,
        *,
        service_name: str,
        environment: str,
        release: Optional[str] = None,
        metric_readers: Optional[List[MetricReader]] = None,
    ) -> bool:
        """
        Start error tracking and metrics according to settings.

        Sentry starts when SENTRY_DSN is set. The meter provider starts when
        OTEL_ENABLED and OTEL_METRICS_ENABLED are both set, or when
        metric_readers is passed explicitly.

        Returns:
            True once initialized (also when called a second time).
        """
        if self._initialized:
            logger.warning("Observability already initialized, skipping")
            return True

        self._sentry_enabled = self._init_sentry(environment, release)

        if metric_readers is None:
            metric_readers = (
                self._build_metric_readers()
                if settings.OTEL_ENABLED and settings.OTEL_METRICS_ENABLED
                else []
            )
        if metric_readers:
            self._init_metrics(service_name, release, metric_readers)

        self._initialized = True
        logger.info(
            f"Observability initialized (service={service_name}, "
            f"sentry={'enabled' if self._sentry_enabled else 'disabled'}, "
            f"metrics={'enabled' if self.metrics_enabled else 'disabled'})"
        )
        return True

    def _init_sentry(self, environment: str, release: Optional[str]) -> bool:
        if not settings.SENTRY_DSN:
            logger.debug("Sentry initialization skipped (SENTRY_DSN not configured)")
            return False

        try:
            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                environment=environment,
                release=release,
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
                integrations=[
                    # Errors are captured explicitly; log records are not events
                    LoggingIntegration(level=None, event_level=None),
                    FastApiIntegration(transaction_style="endpoint"),
                    StarletteIntegration(transaction_style="endpoint"),
                ],
                send_default_pii=False,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
            return False

        logger.info(
            f"Sentry initialized for environment '{environment}' "
            f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
        )
        return True

    def _build_metric_readers(self) -> List[MetricReader]:
        readers: List[MetricReader] = []
        interval = settings.OTEL_METRICS_EXPORT_INTERVAL_MILLIS

        if settings.OTEL_EXPORTER == "console":
            readers.append(
                PeriodicExportingMetricReader(
                    ConsoleMetricExporter(), export_interval_millis=interval
                )
            )
        elif settings.OTEL_EXPORTER == "otlp":
            if settings.OTEL_OTLP_ENDPOINT:
                headers = parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS)
                exporter = OTLPMetricExporter(
                    endpoint=f"{settings.OTEL_OTLP_ENDPOINT.rstrip('/')}/v1/metrics",
                    headers=headers or None,
                )
                readers.append(
                    PeriodicExportingMetricReader(exporter, export_interval_millis=interval)
                )
            else:
                logger.warning("OTEL_EXPORTER is 'otlp' but OTEL_OTLP_ENDPOINT is empty")

        if settings.PROMETHEUS_METRICS_ENABLED:
            # The reader registers itself with the global prometheus_client REGISTRY
            self._prometheus_reader = PrometheusMetricReader()
            readers.append(self._prometheus_reader)

        return readers

    def _init_metrics(
        self,
        service_name: str,
        release: Optional[str],
        readers: List[MetricReader],
    ) -> None:
        attributes = {SERVICE_NAME: service_name}
        if release:
            attributes[SERVICE_VERSION] = release

        try:
            self._meter_provider = MeterProvider(
                resource=Resource(attributes=attributes), metric_readers=readers
            )
        except Exception as e:
            logger.error(f"Failed to initialize OpenTelemetry metrics: {e}", exc_info=True)
            self._prometheus_reader = None
            return

        self._meter = self._meter_provider.get_meter(service_name, version=release)
        logger.info(
            f"OpenTelemetry metrics initialized with {len(readers)} reader(s) "
            f"(exporter={settings.OTEL_EXPORTER}, "
            f"prometheus={'enabled' if self.prometheus_enabled else 'disabled'})"
        )

    def capture_error(
        self,
        exception: BaseException,
        *,
        context: Optional[Dict[str, Any]] = None,
        level: str = "error",
        tags: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """
        Send an exception to Sentry.

        Args:
            exception: The exception to report, with its traceback
            context: Extra data attached as the "additional" context block;
                datetimes and other non-JSON values are stringified
            level: Sentry level ("warning", "error", ...)
            tags: Indexed tags for filtering, e.g. {"error_type": "HTTPException"}

        Returns:
            The Sentry event id, or None when Sentry is not enabled.
        """
        if not self._sentry_enabled:
            return None

        try:
            with sentry_sdk.new_scope() as scope:
                if context:
                    scope.set_context("additional", _serialize_value(context))
                for key, value in (tags or {}).items():
                    scope.set_tag(key, value)
                scope.set_level(level)
                return sentry_sdk.capture_exception(exception)
        except Exception as e:
            logger.debug(f"Failed to capture error in Sentry: {e}")
            return None

    def record_metric(
        self,
        name: str,
        value: float,
        *,
        labels: Optional[Dict[str, str]] = None,
        metric_type: MetricType = "counter",
        unit: Optional[str] = None,
    ) -> None:
        """
        Add to a counter or record a histogram sample.

        Instruments are created on first use, keyed by name. Counters default
        to unit "1" and histograms to "ms".
        """
        if self._meter is None:
            return

        instrument = self._instruments.get(name)
        if instrument is None:
            if metric_type == "counter":
                instrument = self._meter.create_counter(
                    name=name, unit=unit or "1", description=f"Counter for {name}"
                )
            elif metric_type == "histogram":
                instrument = self._meter.create_histogram(
                    name=name, unit=unit or "ms", description=f"Histogram for {name}"
                )
            else:
                raise ValueError(f"Unsupported metric type: {metric_type}")
            self._instruments[name] = instrument

        if metric_type == "counter":
            instrument.add(value, attributes=labels or {})
        else:
            instrument.record(value, attributes=labels or {})

    def prometheus_text(self) -> str:
        """
        Current metrics in the Prometheus exposition format.

        Raises:
            RuntimeError: If the Prometheus reader is not running
        """
        if not self.prometheus_enabled:
            raise RuntimeError(
                "Prometheus exporter not initialized. Set OTEL_ENABLED, "
                "OTEL_METRICS_ENABLED and PROMETHEUS_METRICS_ENABLED."
            )
        return generate_latest(REGISTRY).decode("utf-8")

    def shutdown(self) -> None:
        """Flush pending events and metrics, then release the backends."""
        if not self._initialized:
            return

        if self._sentry_enabled:
            try:
                sentry_sdk.flush(timeout=2.0)
                sentry_sdk.get_client().close(timeout=2.0)
            except Exception as e:
                logger.warning(f"Failed to shut down Sentry: {e}")

        if self._meter_provider is not None:
            try:
                self._meter_provider.shutdown()
                logger.info("OpenTelemetry metrics shutdown complete")
            except Exception as e:
                logger.warning(f"Failed to shut down meter provider: {e}")

        self._sentry_enabled = False
        self._meter_provider = None
        self._meter = None
        self._instruments = {}
        self._prometheus_reader = None
        self._initialized = False


observability = Observability()
