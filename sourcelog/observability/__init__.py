"""Structured logging: format selection, call-site and trace enrichment."""

from sourcelog.observability.backend import DiscardSink, StreamSink
from sourcelog.observability.encoder import (
    EncoderConfig,
    EncoderResolution,
    new_console_encoder,
    new_json_encoder,
    resolve_encoder,
)
from sourcelog.observability.exceptions import (
    FrameUnavailableError,
    InvalidFormatError,
    LoggingError,
)
from sourcelog.observability.frames import StackFrameResolver
from sourcelog.observability.logger import Logger, new_logger
from sourcelog.observability.options import LoggerOptions
from sourcelog.observability.protocol import (
    FrameResolver,
    LogEntry,
    LogSink,
    SourceMetadata,
)
from sourcelog.observability.setup import init_logging, shutdown_logging
from sourcelog.observability.source import CALLER_SKIP, SourceSink
from sourcelog.observability.tracing import with_context
from sourcelog.observability.wiring import (
    SinkHandler,
    get_default_logger,
    redirect_stdlib_logging,
    redirect_structlog,
    set_default_logger,
)

__all__ = [
    "CALLER_SKIP",
    "DiscardSink",
    "EncoderConfig",
    "EncoderResolution",
    "FrameResolver",
    "FrameUnavailableError",
    "InvalidFormatError",
    "LogEntry",
    "LogSink",
    "Logger",
    "LoggerOptions",
    "LoggingError",
    "SinkHandler",
    "SourceMetadata",
    "SourceSink",
    "StackFrameResolver",
    "StreamSink",
    "get_default_logger",
    "init_logging",
    "new_console_encoder",
    "new_json_encoder",
    "new_logger",
    "redirect_stdlib_logging",
    "redirect_structlog",
    "resolve_encoder",
    "set_default_logger",
    "shutdown_logging",
    "with_context",
]
