"""Sink decorator that records the call site of every log entry."""

from collections.abc import Sequence

from sourcelog.observability.frames import StackFrameResolver
from sourcelog.observability.protocol import (
    Field,
    FrameResolver,
    LogEntry,
    LogSink,
)

# write <- Logger._emit <- Logger.<level method> <- call site
CALLER_SKIP = 3

SOURCE_KEY = "source"


class SourceSink:
    """Log sink that adds a nested `source` field to each entry.

    The field names the function, file and line of the application code
    that emitted the entry. The frame is located `caller_skip` levels above
    `write`; the resolver then passes over any facade frames that remain.
    When the frame cannot be resolved, or the resolver raises, the field is
    omitted and the entry is still written.

    Instances are immutable and can be shared across threads.
    """

    __slots__ = ("_wrapped", "_caller_skip", "_resolver")

    def __init__(
        self,
        wrapped: LogSink,
        caller_skip: int = CALLER_SKIP,
        resolver: FrameResolver | None = None,
    ) -> None:
        """Initialize the decorator.

        Args:
            wrapped: Sink that receives the augmented entries.
            caller_skip: Frames between write and the application call site.
            resolver: Call-stack introspection, the live stack by default.
        """
        self._wrapped = wrapped
        self._caller_skip = caller_skip
        self._resolver = resolver if resolver is not None else StackFrameResolver()

    @property
    def wrapped(self) -> LogSink:
        return self._wrapped

    @property
    def caller_skip(self) -> int:
        return self._caller_skip

    def enabled(self, level: int) -> bool:
        return self._wrapped.enabled(level)

    def check(self, entry: LogEntry) -> LogSink | None:
        # Route admitted entries through this decorator, not the wrapped sink
        if self._wrapped.check(entry) is None:
            return None
        return self

    def write(self, entry: LogEntry, fields: Sequence[Field]) -> None:
        try:
            source = self._resolver.resolve(self._caller_skip)
        except Exception:
            # FrameUnavailableError or a failing custom resolver
            source = None

        if source is not None:
            fields = [*fields, (SOURCE_KEY, source)]
        self._wrapped.write(entry, fields)

    def with_fields(self, fields: Sequence[Field]) -> "SourceSink":
        return SourceSink(
            self._wrapped.with_fields(fields),
            caller_skip=self._caller_skip,
            resolver=self._resolver,
        )
