"""Process-wide logging wiring, performed once by the host.

Nothing here runs implicitly: building a logger or a sink decorator never
replaces the default logger or redirects other logging facades. The host
opts in by calling these functions during startup, and each redirect
returns a callable that undoes it.
"""

import logging
import time
import traceback
from collections.abc import Callable
from typing import Any

import structlog

from sourcelog.observability.backend import DiscardSink
from sourcelog.observability.frames import StackFrameResolver
from sourcelog.observability.logger import Logger
from sourcelog.observability.protocol import LogEntry, SourceMetadata

_default_logger: Logger = Logger(DiscardSink())

# Attributes every LogRecord has; anything else came from `extra`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_STRUCTLOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_resolver = StackFrameResolver()


def set_default_logger(logger: Logger) -> None:
    """Replace the process-wide default logger."""
    global _default_logger
    _default_logger = logger


def get_default_logger() -> Logger:
    """Return the process-wide default logger.

    Until set_default_logger is called this logger discards everything.
    """
    return _default_logger


class SinkHandler(logging.Handler):
    """Stdlib logging handler that forwards records to a logger's sink."""

    def __init__(self, logger: Logger, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                level=record.levelno,
                message=record.getMessage(),
                time_ns=round(record.created * 1_000_000_000),
                logger_name=record.name if record.name != "root" else None,
                stack=_record_stack(record),
            )
            target = self._logger.sink.check(entry)
            if target is None:
                return
            if self._logger.adds_caller:
                entry.caller = SourceMetadata(
                    function=record.funcName, file=record.pathname, line=record.lineno
                )
            fields = [
                (key, value)
                for key, value in vars(record).items()
                if key not in _RECORD_ATTRS
            ]
            target.write(entry, fields)
        except Exception:
            self.handleError(record)


def _record_stack(record: logging.LogRecord) -> str | None:
    parts = []
    if record.exc_info:
        parts.append("".join(traceback.format_exception(*record.exc_info)).rstrip())
    if record.stack_info:
        parts.append(record.stack_info)
    return "\n".join(parts) or None


def redirect_stdlib_logging(
    logger: Logger, level: int = logging.DEBUG
) -> Callable[[], None]:
    """Send records of the stdlib root logger to logger's sink.

    Existing root handlers are replaced. Records are filtered by the root
    level first, then by the sink.

    Returns:
        A callable that restores the previous root handlers and level.
    """
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level

    handler = SinkHandler(logger)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    def restore() -> None:
        root.removeHandler(handler)
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    return restore


class SinkLogger:
    """Final structlog logger that writes event dicts to a logger's sink."""

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    def msg(self, **event_dict: Any) -> None:
        self._write(event_dict)

    debug = info = warn = warning = error = exception = critical = fatal = log = msg

    def _write(self, event_dict: dict[str, Any]) -> None:
        level = _STRUCTLOG_LEVELS.get(str(event_dict.pop("level", "info")), logging.INFO)
        stack = "\n".join(
            str(event_dict.pop(key)) for key in ("exception", "stack") if key in event_dict
        )
        entry = LogEntry(
            level=level,
            message=str(event_dict.pop("event", "")),
            time_ns=time.time_ns(),
            logger_name=self._logger.name,
            stack=stack or None,
        )
        target = self._logger.sink.check(entry)
        if target is None:
            return
        if self._logger.adds_caller:
            entry.caller = _resolver.resolve(0)
        target.write(entry, list(event_dict.items()))


class SinkLoggerFactory:
    """structlog logger factory producing SinkLoggers."""

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    def __call__(self, *args: Any) -> SinkLogger:
        if args and isinstance(args[0], str):
            return SinkLogger(self._logger.named(args[0]))
        return SinkLogger(self._logger)


def redirect_structlog(logger: Logger) -> Callable[[], None]:
    """Configure structlog so that its loggers emit through logger's sink.

    Returns:
        A callable that restores the previous structlog configuration.
    """
    was_configured = structlog.is_configured()
    saved = structlog.get_config()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ],
        logger_factory=SinkLoggerFactory(logger),
        cache_logger_on_first_use=False,
    )

    def restore() -> None:
        if was_configured:
            structlog.configure(**saved)
        else:
            structlog.reset_defaults()

    return restore
