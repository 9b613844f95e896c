"""OpenTelemetry tracing for artifactfs backend operations.

Tracing is off unless enabled through the environment. When OpenTelemetry
is not installed, traced operations run untouched.

Environment Variables:
    ARTIFACTFS_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    ARTIFACTFS_REQUIRE_OTEL: Set to "1" to raise if tracing cannot initialize
    ARTIFACTFS_OTEL_SERVICE_NAME: Service name for spans (default: "artifactfs")
    ARTIFACTFS_OTEL_EXPORTER: Exporter type - "otlp" or "console" (default: "otlp")
    ARTIFACTFS_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (optional)
    ARTIFACTFS_OTEL_EXPORTER_OTLP_PROTOCOL: "grpc" or "http" (default: "grpc")
    ARTIFACTFS_OTEL_TEST_CAPTURE: Set to "1" to use in-memory exporter for tests

Security:
    Paths are exported only as SHA256 digests; bucket and key names can
    identify tenants. Credential material never reaches a span.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

OTEL_ENABLED_ENV = "ARTIFACTFS_OTEL_ENABLED"
OTEL_TEST_CAPTURE_ENV = "ARTIFACTFS_OTEL_TEST_CAPTURE"
REQUIRE_OTEL_ENV = "ARTIFACTFS_REQUIRE_OTEL"

_tracer_provider: TracerProvider | None = None
_is_configured: bool = False
_test_exporter: Any = None  # InMemorySpanExporter when test capture is on


class TracingConfigError(Exception):
    """Raised when tracing configuration fails and ARTIFACTFS_REQUIRE_OTEL=1."""

    pass


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    return default


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool(OTEL_ENABLED_ENV, False)


def _create_otlp_exporter(protocol: str, endpoint: str | None) -> Any:
    """Create OTLP exporter based on protocol."""
    kwargs: dict[str, Any] = {}
    if endpoint:
        kwargs["endpoint"] = endpoint

    if protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as HTTPExporter,
        )

        return HTTPExporter(**kwargs)

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter as GRPCExporter,
    )

    return GRPCExporter(**kwargs)


def _create_console_exporter() -> SpanExporter:
    """Create console exporter for development."""
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter

    return ConsoleSpanExporter()


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing.

    Idempotent - safe to call multiple times.

    Returns:
        True if tracing is enabled and configured, False otherwise.

    Raises:
        TracingConfigError: If ARTIFACTFS_REQUIRE_OTEL=1 and configuration fails.
    """
    global _tracer_provider, _is_configured, _test_exporter

    enabled = is_tracing_enabled()
    require_otel = _get_env_bool(REQUIRE_OTEL_ENV, False)
    test_capture = _get_env_bool(OTEL_TEST_CAPTURE_ENV, False)

    if not enabled:
        _is_configured = True
        logger.debug("OpenTelemetry tracing disabled (%s not set)", OTEL_ENABLED_ENV)
        return False

    if _test_exporter is not None and test_capture:
        return True

    if _is_configured and _tracer_provider is not None:
        return True

    _is_configured = True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

        service_name = _get_env_str("ARTIFACTFS_OTEL_SERVICE_NAME", "artifactfs")
        exporter_type = _get_env_str("ARTIFACTFS_OTEL_EXPORTER", "otlp")
        endpoint = _get_env_str("ARTIFACTFS_OTEL_EXPORTER_OTLP_ENDPOINT", "")
        protocol = _get_env_str("ARTIFACTFS_OTEL_EXPORTER_OTLP_PROTOCOL", "grpc")

        provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

        if test_capture:
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
                InMemorySpanExporter,
            )

            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        elif exporter_type == "console":
            provider.add_span_processor(SimpleSpanProcessor(_create_console_exporter()))
        else:
            otlp_exporter = _create_otlp_exporter(protocol, endpoint or None)
            provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        trace.set_tracer_provider(provider)
        _tracer_provider = provider

        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            service_name,
            exporter_type if not test_capture else "in-memory",
        )
        return True

    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if require_otel:
            raise TracingConfigError(
                f"OpenTelemetry tracing required but configuration failed: {e}"
            ) from e
        return False


def _get_tracer() -> Any:
    """Return a tracer, configuring the provider on first use."""
    from opentelemetry import trace

    if not _is_configured:
        configure_tracing()
    if _tracer_provider is not None:
        return _tracer_provider.get_tracer("artifactfs.fs")
    return trace.get_tracer("artifactfs.fs")


def path_digest(path: str) -> str:
    """Return the SHA256 hex digest used to correlate a path in spans."""
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


def traced_fs_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace a backend operation with OpenTelemetry.

    The wrapped method must take the path as its first positional argument.

    Args:
        operation: Operation name (e.g., "read", "list", "localize").

    Returns:
        Decorated function that emits a span when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, path: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, path, *args, **kwargs)

            try:
                tracer = _get_tracer()
            except ImportError:
                return func(self, path, *args, **kwargs)

            with tracer.start_as_current_span(f"artifactfs.fs.{operation}") as span:
                span.set_attribute("artifactfs.backend", getattr(self, "backend_name", "unknown"))
                span.set_attribute("artifactfs.path_sha256", path_digest(path))
                try:
                    return func(self, path, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

        return cast(F, wrapper)

    return decorator


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from in-memory exporter (for testing).

    Returns:
        List of captured spans if ARTIFACTFS_OTEL_TEST_CAPTURE=1, else empty list.
    """
    if _test_exporter is not None and hasattr(_test_exporter, "get_finished_spans"):
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear captured spans from in-memory exporter (for testing)."""
    if _test_exporter is not None and hasattr(_test_exporter, "clear"):
        _test_exporter.clear()


def reset_tracing() -> None:
    """Reset tracing configuration (for testing).

    The global TracerProvider cannot be replaced once set, so the test
    exporter is kept and only its captured spans are cleared.
    """
    global _is_configured

    clear_test_spans()
    _is_configured = False
