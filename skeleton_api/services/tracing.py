"""Tracer provider construction for the request pipeline."""

import logging

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from skeleton_api.config import Settings

logger = logging.getLogger(__name__)

TRACER_NAME = "skeleton_api"


def create_tracer_provider(
    settings: Settings,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Build a TracerProvider for one application instance.

    The provider is deliberately not installed as the global provider;
    create_app() hands it to the tracing middleware directly.

    Args:
        settings: Service name, sample rate and console export flag
        exporter: Extra exporter, flushed synchronously (tests pass an
            InMemorySpanExporter here)
    """
    resource = Resource.create({
        "service.name": settings.tracing_service_name,
        "service.version": settings.app_version,
        "deployment.environment": settings.environment,
    })
    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(TraceIdRatioBased(settings.tracing_sample_rate)),
    )

    if settings.tracing_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))

    logger.info(
        f"Tracing configured - service: {settings.tracing_service_name}, "
        f"sample rate: {settings.tracing_sample_rate}"
    )
    return provider
