"""Optional OpenTelemetry wiring for the omicsnet API."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from .config import TelemetryConfig

LOGGER = logging.getLogger(__name__)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from fastapi import FastAPI


@dataclass
class TelemetryManager:
    """Configure OTLP trace/metric exporters when the SDK is installed.

    Without ``config.enabled`` (or an exporter endpoint) nothing is imported
    and :meth:`instrument_app` is a no-op.
    """

    config: TelemetryConfig
    _shutdown_hooks: List[Callable[[], None]] = field(default_factory=list)
    _instrument_fastapi: Optional[Callable[["FastAPI"], None]] = None

    @property
    def enabled(self) -> bool:
        return self._instrument_fastapi is not None

    def configure(self) -> None:
        if not self.config.enabled:
            LOGGER.debug("Telemetry disabled by configuration")
            return
        if not self.config.capture_traces and not self.config.capture_metrics:
            LOGGER.debug("Telemetry enabled but neither traces nor metrics requested")
            return
        try:
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
            from opentelemetry.sdk.resources import Resource
        except ImportError:
            LOGGER.warning("OpenTelemetry SDK not available; telemetry disabled")
            return

        resource = Resource.create(
            {
                "service.name": self.config.service_name,
                "deployment.environment": self.config.environment,
            }
        )
        if self.config.capture_traces:
            self._configure_traces(resource)
        if self.config.capture_metrics:
            self._configure_metrics(resource)
        self._instrument_fastapi = FastAPIInstrumentor().instrument_app  # type: ignore[attr-defined]

    def _configure_traces(self, resource: Any) -> None:
        from opentelemetry import trace
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

        sampler = TraceIdRatioBased(max(min(self.config.sampling_ratio, 1.0), 0.0))
        provider = TracerProvider(resource=resource, sampler=sampler)
        try:
            exporter = OTLPSpanExporter(endpoint=self.config.exporter_endpoint)
        except Exception as exc:  # pragma: no cover - exporter wiring
            LOGGER.warning("Failed to initialise OTLP span exporter: %s", exc)
            return
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
        self._shutdown_hooks.append(provider.shutdown)
        LOGGER.info("OpenTelemetry tracing configured (endpoint=%s)", self.config.exporter_endpoint)

    def _configure_metrics(self, resource: Any) -> None:
        from opentelemetry import metrics
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

        try:
            exporter = OTLPMetricExporter(endpoint=self.config.exporter_endpoint)
        except Exception as exc:  # pragma: no cover - exporter wiring
            LOGGER.warning("Failed to initialise OTLP metric exporter: %s", exc)
            return
        provider = MeterProvider(resource=resource, metric_readers=[PeriodicExportingMetricReader(exporter)])
        metrics.set_meter_provider(provider)
        self._shutdown_hooks.append(provider.shutdown)
        LOGGER.info("OpenTelemetry metrics configured (endpoint=%s)", self.config.exporter_endpoint)

    def instrument_app(self, app: "FastAPI") -> None:
        if self._instrument_fastapi is None:
            return
        try:
            self._instrument_fastapi(app)
        except Exception as exc:  # pragma: no cover - instrumentation failure
            LOGGER.warning("Failed to instrument FastAPI: %s", exc)

    def shutdown(self) -> None:
        for hook in reversed(self._shutdown_hooks):
            try:
                hook()
            except Exception as exc:  # pragma: no cover - best effort cleanup
                LOGGER.debug("Telemetry shutdown hook failed: %s", exc)
        self._shutdown_hooks.clear()


def configure_telemetry(config: TelemetryConfig) -> TelemetryManager:
    manager = TelemetryManager(config=config)
    manager.configure()
    return manager


__all__ = ["TelemetryManager", "configure_telemetry"]
