"""Logger front-end over a log sink."""

import logging
import sys
import time
import traceback
from typing import Any

from sourcelog.observability.backend import StreamSink
from sourcelog.observability.encoder import new_console_encoder, new_json_encoder
from sourcelog.observability.frames import StackFrameResolver
from sourcelog.observability.options import LoggerOptions
from sourcelog.observability.protocol import FrameResolver, LogEntry, LogSink

# resolve <- _emit <- <level method> <- call site
_CALLER_SKIP = 2


class Logger:
    """Structured logger that hands entries to a log sink.

    Loggers are immutable; bind returns a new logger whose sink carries the
    extra fields. Every level method calls _emit directly, so sinks can rely
    on a fixed number of frames between themselves and the call site.
    """

    def __init__(
        self,
        sink: LogSink,
        *,
        name: str | None = None,
        add_caller: bool = False,
        resolver: FrameResolver | None = None,
    ) -> None:
        self._sink = sink
        self._name = name
        self._add_caller = add_caller
        self._resolver = resolver if resolver is not None else StackFrameResolver()

    @property
    def sink(self) -> LogSink:
        return self._sink

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def adds_caller(self) -> bool:
        return self._add_caller

    def bind(self, **fields: Any) -> "Logger":
        """Return a logger that adds the given fields to every entry."""
        if not fields:
            return self
        return self._derive(self._sink.with_fields(list(fields.items())), self._name)

    def named(self, name: str) -> "Logger":
        """Return a logger whose entries carry the given logger name."""
        full_name = f"{self._name}.{name}" if self._name else name
        return self._derive(self._sink, full_name)

    def enabled(self, level: int) -> bool:
        return self._sink.enabled(level)

    def debug(self, msg: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._emit(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._emit(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields: Any) -> None:
        self._emit(logging.ERROR, msg, fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log at ERROR with the traceback of the exception being handled."""
        stack = traceback.format_exc() if sys.exc_info()[0] is not None else None
        self._emit(logging.ERROR, msg, fields, stack=stack)

    def log(self, level: int, msg: str, **fields: Any) -> None:
        self._emit(level, msg, fields)

    def _derive(self, sink: LogSink, name: str | None) -> "Logger":
        return Logger(
            sink, name=name, add_caller=self._add_caller, resolver=self._resolver
        )

    def _emit(
        self,
        level: int,
        msg: str,
        fields: dict[str, Any],
        *,
        stack: str | None = None,
    ) -> None:
        entry = LogEntry(
            level=level,
            message=msg,
            time_ns=time.time_ns(),
            logger_name=self._name,
            stack=stack,
        )
        target = self._sink.check(entry)
        if target is None:
            return
        if self._add_caller:
            entry.caller = self._resolver.resolve(_CALLER_SKIP)
        target.write(entry, list(fields.items()))


def new_logger(options: LoggerOptions) -> Logger:
    """Build a logger from options.

    The backend sink is created from the options' encoder factory (or the
    development/production default), then passed through each sink wrapper
    in order.

    Args:
        options: Logger options, usually prepared by resolve_encoder.

    Returns:
        A logger writing to options.dest.
    """
    if options.encoder is not None:
        encoder = options.encoder()
    elif options.development:
        encoder = new_console_encoder()
    else:
        encoder = new_json_encoder()

    level = options.level
    if level is None:
        level = logging.DEBUG if options.development else logging.INFO

    sink: LogSink = StreamSink(encoder, options.destination(), level)
    for wrap in options.sink_wrappers:
        sink = wrap(sink)
    return Logger(sink, add_caller=options.add_caller)
