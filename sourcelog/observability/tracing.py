"""Trace context enrichment for loggers."""

from typing import Any, Protocol, TypeVar

from opentelemetry import trace
from opentelemetry.context import Context

TRACE_ID_KEY = "traceid"
SAMPLED_KEY = "sampled"

L = TypeVar("L", bound="SupportsBind")


class SupportsBind(Protocol):
    """Any logger that derives a new logger carrying extra fields."""

    def bind(self: L, **fields: Any) -> L: ...


def with_context(ctx: Context | None, log: L) -> L:
    """Return a logger enriched with the trace carried by ctx.

    If ctx holds a valid OpenTelemetry span context, the returned logger adds
    the trace ID (32 lowercase hex characters) and whether the span was
    sampled to every entry. Otherwise log is returned unchanged.

    Args:
        ctx: Request-scoped context; None means the current context.
        log: Logger to enrich. Neither it nor ctx is modified.

    Returns:
        A derived logger, or log itself when there is no valid span.
    """
    span_context = trace.get_current_span(ctx).get_span_context()
    if not span_context.is_valid:
        return log
    return log.bind(
        **{
            TRACE_ID_KEY: format(span_context.trace_id, "032x"),
            SAMPLED_KEY: span_context.trace_flags.sampled,
        }
    )
