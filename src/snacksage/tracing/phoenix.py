"""
Arize Phoenix tracing integration.

Spans cover knowledge index builds and retrieval calls and are exported to
a Phoenix collector. Every helper here is a no-op unless
``settings.enable_tracing`` is set and opentelemetry is importable, so the
index can call them unconditionally.

Usage:
    from snacksage.tracing import setup_tracing
    setup_tracing()  # Call once at application startup
"""

import functools
import warnings
from types import ModuleType
from typing import Any, Callable, Optional, TypeVar

from snacksage.config import settings

F = TypeVar("F", bound=Callable[..., Any])

PROJECT_NAME = "snacksage"


def _trace_api() -> Optional[ModuleType]:
    """The opentelemetry trace module when tracing is on, else None."""
    if not settings.enable_tracing:
        return None
    try:
        from opentelemetry import trace
    except ImportError:
        return None
    return trace


def setup_tracing() -> None:
    """
    Register the Phoenix exporter for this process.

    Failures only warn: the service runs the same with tracing off.
    """
    if not settings.enable_tracing:
        return

    try:
        from phoenix.otel import register

        register(
            project_name=PROJECT_NAME,
            endpoint=f"{settings.phoenix_endpoint}/v1/traces",
        )
    except ImportError:
        warnings.warn(
            "Phoenix tracing dependencies not installed. "
            "Install with: pip install snacksage[tracing]"
        )
    except Exception as e:
        warnings.warn(f"Failed to setup tracing: {e}")


def traced(name: str | None = None) -> Callable[[F], F]:
    """
    Run the decorated function inside its own span.

    Example:
        @traced("knowledge_index.retrieve")
        def get_context(self, query, top_k):
            ...
    """

    def decorator(func: F) -> F:
        span_name = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace = _trace_api()
            if trace is None:
                return func(*args, **kwargs)

            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("function.name", func.__name__)
                result = func(*args, **kwargs)
                span.set_attribute("result.type", type(result).__name__)
                return result

        return wrapper  # type: ignore

    return decorator


def add_span_attributes(**attributes: Any) -> None:
    """
    Attach attributes to the current span.

    Values that are not str, int, float or bool are stored as their str().
    """
    trace = _trace_api()
    if trace is None:
        return

    span = trace.get_current_span()
    for key, value in attributes.items():
        if not isinstance(value, (str, int, float, bool)):
            value = str(value)
        span.set_attribute(key, value)


def record_exception(exception: Exception) -> None:
    """Mark the current span as failed with the given exception."""
    trace = _trace_api()
    if trace is None:
        return

    span = trace.get_current_span()
    span.record_exception(exception)
    span.set_status(trace.Status(trace.StatusCode.ERROR))
