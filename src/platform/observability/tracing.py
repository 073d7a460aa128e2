"""
OpenTelemetry tracing configuration for the validation client.

Provides:
- Auto-instrumentation for the local FastAPI surface
- Trace context propagation onto outgoing ticketing API requests
- OTLP export when an endpoint is configured
"""

import os
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON


class TracingConfig:
    """
    Usage:
        # Initialize once at app startup
        tracing = TracingConfig(service_name="ticket-validation")
        tracing.setup()

        # Get tracer for manual spans
        tracer = tracing.get_tracer(name=__name__)
    """

    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: str | None = None,
        enable_console: bool = False,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
        self.enable_console = (
            enable_console or os.getenv('OTEL_CONSOLE_EXPORT', 'false').lower() == 'true'
        )

        self._provider: TracerProvider | None = None

    def setup(self) -> None:
        """
        Setup OpenTelemetry tracing.

        Should be called once at application startup. Spans are only exported
        when OTEL_EXPORTER_OTLP_ENDPOINT or OTEL_CONSOLE_EXPORT is set.
        """
        resource = Resource(attributes={SERVICE_NAME: self.service_name})
        self._provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)

        if self.otlp_endpoint:
            otlp_exporter = OTLPSpanExporter(endpoint=self.otlp_endpoint)
            self._provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any, excluded_urls: str = 'health,metrics,ping') -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=excluded_urls)

    def get_tracer(self, *, name: str) -> trace.Tracer:
        return trace.get_tracer(name)

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()


def inject_trace_context(*, headers: dict[str, str] | None = None) -> dict[str, str]:
    """
    Inject current trace context into outgoing HTTP headers.

    Usage:
        headers = inject_trace_context(headers={'Accept': 'application/json'})
        await client.get(url, headers=headers)
    """
    headers = dict(headers or {})
    inject(headers)
    return headers
