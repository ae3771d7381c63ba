"""Encoder configuration and log format selection."""

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Final, NamedTuple

import structlog
from structlog.typing import Processor

from sourcelog.observability.exceptions import InvalidFormatError
from sourcelog.observability.options import LoggerOptions
from sourcelog.observability.protocol import SourceMetadata

FORMAT_CONSOLE: Final = "console"
FORMAT_JSON: Final = "json"
SUPPORTED_FORMATS: Final = frozenset({FORMAT_CONSOLE, FORMAT_JSON})
DEFAULT_FORMAT: Final = FORMAT_CONSOLE

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}


@dataclass(frozen=True)
class EncoderConfig:
    """How entries are laid out by the backend.

    An empty key disables the corresponding element.
    """

    format: str
    time_key: str
    level_key: str
    message_key: str
    stacktrace_key: str
    caller_key: str
    encode_time: Callable[[int], str]
    encode_level: Callable[[int], str]
    encode_caller: Callable[[SourceMetadata], str]
    renderer: Processor


class EncoderResolution(NamedTuple):
    """Outcome of resolve_encoder."""

    config: EncoderConfig
    warning: str | None


def rfc3339_nano_time(time_ns: int) -> str:
    """Encode a wall-clock time as RFC3339 UTC with nine fractional digits."""
    seconds, nanos = divmod(time_ns, 1_000_000_000)
    stamp = datetime.fromtimestamp(seconds, UTC).strftime("%Y-%m-%dT%H:%M:%S")
    return f"{stamp}.{nanos:09d}Z"


def iso8601_millis_time(time_ns: int) -> str:
    """Encode a wall-clock time in local ISO8601 with millisecond precision."""
    moment = datetime.fromtimestamp(time_ns / 1_000_000_000).astimezone()
    return moment.isoformat(timespec="milliseconds")


def capital_level(level: int) -> str:
    return _LEVEL_NAMES.get(level, f"LEVEL({level})")


def short_caller(caller: SourceMetadata) -> str:
    """Encode a caller as `<parent dir>/<file>:<line>`."""
    path = PurePath(caller.file)
    if path.parent.name:
        return f"{path.parent.name}/{path.name}:{caller.line}"
    return f"{path.name}:{caller.line}"


def new_json_encoder() -> EncoderConfig:
    """Build the encoder used for machine-parseable output.

    Keys and encodings are fixed so that log collectors such as Kibana can
    index entries without per-service mappings.
    """
    return EncoderConfig(
        format=FORMAT_JSON,
        time_key="time",
        level_key="level",
        message_key="msg",
        stacktrace_key="stacktrace",
        caller_key="caller",
        encode_time=rfc3339_nano_time,
        encode_level=capital_level,
        encode_caller=short_caller,
        renderer=structlog.processors.JSONRenderer(),
    )


def new_console_encoder() -> EncoderConfig:
    """Build the encoder used for human-readable output."""
    # ConsoleRenderer expects structlog's own key names
    return EncoderConfig(
        format=FORMAT_CONSOLE,
        time_key="timestamp",
        level_key="level",
        message_key="event",
        stacktrace_key="stack",
        caller_key="caller",
        encode_time=iso8601_millis_time,
        encode_level=capital_level,
        encode_caller=short_caller,
        renderer=structlog.dev.ConsoleRenderer(colors=False),
    )


_ENCODERS: dict[str, Callable[[], EncoderConfig]] = {
    FORMAT_CONSOLE: new_console_encoder,
    FORMAT_JSON: new_json_encoder,
}


def resolve_encoder(
    log_format: str,
    format_explicit: bool,
    legacy_encoder: str,
    legacy_explicit: bool,
    options: LoggerOptions,
) -> EncoderResolution:
    """Pick the effective encoder from the two format settings.

    `log_format` takes precedence over the legacy encoder setting when both
    are set explicitly and disagree; the conflict is reported as a single
    line on stderr. When neither is set explicitly the console encoder is
    used.

    Args:
        log_format: Value of the primary format setting.
        format_explicit: Whether log_format was set by the operator.
        legacy_encoder: Value of the legacy encoder setting.
        legacy_explicit: Whether legacy_encoder was set by the operator.
        options: Options whose encoder factory is replaced on success.

    Returns:
        The encoder configuration and the conflict warning, if any.

    Raises:
        InvalidFormatError: If an explicitly set value is unsupported.
            options is left unmodified.
    """
    if format_explicit and log_format not in SUPPORTED_FORMATS:
        raise InvalidFormatError(log_format, source="log_format")
    if legacy_explicit and legacy_encoder not in SUPPORTED_FORMATS:
        raise InvalidFormatError(legacy_encoder, source="legacy encoder")

    warning = None
    if format_explicit:
        effective = log_format
        if legacy_explicit and legacy_encoder != log_format:
            warning = (
                f"log format {log_format!r} overrides legacy encoder "
                f"{legacy_encoder!r}"
            )
    elif legacy_explicit:
        effective = legacy_encoder
    else:
        effective = DEFAULT_FORMAT

    config = _ENCODERS[effective]()
    if warning is not None:
        print(f"warning: {warning}", file=sys.stderr)

    options.encoder = lambda: config
    return EncoderResolution(config=config, warning=warning)
