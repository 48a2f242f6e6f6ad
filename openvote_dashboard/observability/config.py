# SPDX-License-Identifier: Apache-2.0

"""
OpenTelemetry Configuration

Sets up distributed tracing and logging for the OpenVote dashboard core.
Spans are created around every backend call and triage decision; this module
only decides where they are exported.
"""

import logging
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

from ..config import DashboardConfig

SERVICE_NAME = 'openvote-dashboard'

logger = logging.getLogger(__name__)


def sampling_ratio(environment: str) -> float:
    """Trace sampling ratio for an environment."""
    return {
        'production': 0.1,
        'staging': 0.5,
    }.get(environment, 1.0)


def setup_observability(config: DashboardConfig) -> bool:
    """
    Initialize OpenTelemetry instrumentation.

    Args:
        config: Dashboard configuration

    Returns:
        True if a tracer provider was installed
    """
    setup_structured_logging(config.environment)

    if not config.otel_enabled:
        logger.info("OpenTelemetry disabled by configuration")
        return False

    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": config.service_version,
        "deployment.environment": config.environment
    })

    tracer_provider = TracerProvider(
        sampler=TraceIdRatioBased(sampling_ratio(config.environment)),
        resource=resource
    )

    if config.otlp_endpoint:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=config.otlp_endpoint), max_export_batch_size=512)
        )
    elif config.environment == 'development':
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(tracer_provider)
    logger.info(
        "OpenTelemetry configured",
        extra={"environment": config.environment, "otlp_endpoint": config.otlp_endpoint or None}
    )
    return True


def setup_structured_logging(environment: str):
    """Configure logging levels per environment."""
    log_level = {
        'production': logging.WARNING,
        'staging': logging.INFO,
        'development': logging.DEBUG
    }.get(environment, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
        handlers=[logging.StreamHandler()]
    )

    if environment == 'production':
        # Reduce noise, focus on errors and session events
        logging.getLogger('httpx').setLevel(logging.WARNING)
        logging.getLogger('httpcore').setLevel(logging.WARNING)
    elif environment == 'development':
        logging.getLogger('openvote_dashboard').setLevel(logging.DEBUG)
