"""Stream backend that renders entries with structlog renderers."""

import threading
from collections.abc import Sequence
from typing import Any, TextIO

from sourcelog.observability.encoder import EncoderConfig
from sourcelog.observability.protocol import Field, LogEntry

NAME_KEY = "logger"


class StreamSink:
    """Log sink that writes one rendered line per entry to a text stream.

    Bound fields are emitted before per-entry fields; when keys repeat the
    last value wins.
    """

    def __init__(
        self,
        encoder: EncoderConfig,
        dest: TextIO,
        level: int,
        *,
        fields: Sequence[Field] = (),
        lock: "threading.Lock | None" = None,
    ) -> None:
        self._encoder = encoder
        self._dest = dest
        self._level = level
        self._fields = tuple(fields)
        # Shared with derived sinks so lines never interleave
        self._lock = lock if lock is not None else threading.Lock()

    @property
    def encoder(self) -> EncoderConfig:
        return self._encoder

    def enabled(self, level: int) -> bool:
        return level >= self._level

    def check(self, entry: LogEntry) -> "StreamSink | None":
        return self if self.enabled(entry.level) else None

    def write(self, entry: LogEntry, fields: Sequence[Field]) -> None:
        method_name = self._encoder.encode_level(entry.level).lower()
        line = self._encoder.renderer(None, method_name, self._encode(entry, fields))
        with self._lock:
            self._dest.write(f"{line}\n")
            self._dest.flush()

    def with_fields(self, fields: Sequence[Field]) -> "StreamSink":
        return StreamSink(
            self._encoder,
            self._dest,
            self._level,
            fields=(*self._fields, *fields),
            lock=self._lock,
        )

    def _encode(self, entry: LogEntry, fields: Sequence[Field]) -> dict[str, Any]:
        enc = self._encoder
        event_dict: dict[str, Any] = {}
        if enc.time_key:
            event_dict[enc.time_key] = enc.encode_time(entry.time_ns)
        if enc.level_key:
            event_dict[enc.level_key] = enc.encode_level(entry.level)
        if entry.logger_name:
            event_dict[NAME_KEY] = entry.logger_name
        if enc.caller_key and entry.caller is not None:
            event_dict[enc.caller_key] = enc.encode_caller(entry.caller)
        event_dict[enc.message_key] = entry.message

        for key, value in (*self._fields, *fields):
            event_dict[key] = value

        if enc.stacktrace_key and entry.stack:
            event_dict[enc.stacktrace_key] = entry.stack
        return event_dict


class DiscardSink:
    """Log sink that drops every entry."""

    def enabled(self, level: int) -> bool:
        return False

    def check(self, entry: LogEntry) -> None:
        return None

    def write(self, entry: LogEntry, fields: Sequence[Field]) -> None:
        pass

    def with_fields(self, fields: Sequence[Field]) -> "DiscardSink":
        return self
