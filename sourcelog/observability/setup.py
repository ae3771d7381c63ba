"""Logging setup and initialization."""

import logging
from collections.abc import Callable
from typing import TextIO

from sourcelog.config import LoggingSettings, get_settings
from sourcelog.observability.backend import DiscardSink
from sourcelog.observability.encoder import resolve_encoder
from sourcelog.observability.logger import Logger, new_logger
from sourcelog.observability.options import LoggerOptions
from sourcelog.observability.source import SourceSink
from sourcelog.observability.wiring import (
    redirect_stdlib_logging,
    redirect_structlog,
    set_default_logger,
)

# Module-level state for cleanup
_undo: list[Callable[[], None]] = []
_initialized: bool = False


def init_logging(
    settings: LoggingSettings | None = None,
    *,
    dest: TextIO | None = None,
) -> Logger:
    """Build the process logger and wire it in as the default.

    Resolves the effective encoder from the two format settings, wraps the
    backend with the source decorator, installs the result as the default
    logger and redirects the facades enabled in settings.

    Args:
        settings: Logging settings; the cached environment settings if None.
        dest: Output stream, stderr if None.

    Returns:
        The configured logger.

    Raises:
        InvalidFormatError: If a format setting names an unsupported format.
            Nothing is wired in that case.
    """
    global _initialized

    if settings is None:
        settings = get_settings()

    level = None
    if settings.log_level is not None:
        level = logging.getLevelNamesMapping()[settings.log_level]

    options = LoggerOptions(
        development=settings.development,
        dest=dest,
        level=level,
        add_caller=settings.add_caller,
    )
    resolution = resolve_encoder(
        settings.log_format,
        settings.log_format_explicit,
        settings.log_encoder,
        settings.log_encoder_explicit,
        options,
    )
    caller_skip = settings.caller_skip
    options.sink_wrappers.append(lambda sink: SourceSink(sink, caller_skip))
    logger = new_logger(options)

    if _initialized:
        shutdown_logging()

    set_default_logger(logger)
    if settings.redirect_stdlib:
        _undo.append(redirect_stdlib_logging(
            logger, level if level is not None else logging.DEBUG
        ))
    if settings.redirect_structlog:
        _undo.append(redirect_structlog(logger))
    _initialized = True

    logger.debug(
        "logging_initialized",
        format=resolution.config.format,
        format_conflict=resolution.warning is not None,
    )
    return logger


def shutdown_logging() -> None:
    """Undo facade redirection and reset the default logger.

    This should be called during application shutdown, or before calling
    init_logging again with different settings.
    """
    global _initialized

    while _undo:
        _undo.pop()()
    set_default_logger(Logger(DiscardSink()))
    _initialized = False
