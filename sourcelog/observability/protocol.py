"""Protocol definitions for log sinks and call-site resolution."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

Field = tuple[str, Any]


@dataclass(frozen=True, slots=True)
class SourceMetadata:
    """Location of the application code that emitted a log entry."""

    function: str
    file: str
    line: int

    def __structlog__(self) -> dict[str, Any]:
        return {"function": self.function, "file": self.file, "line": self.line}


@dataclass
class LogEntry:
    """A single log event before fields are attached.

    Structured fields are passed alongside the entry rather than stored
    on it, so that sink decorators can extend them without copying.
    """

    level: int
    message: str
    time_ns: int
    logger_name: str | None = None
    caller: SourceMetadata | None = None  # Set when the logger adds callers
    stack: str | None = None


class LogSink(Protocol):
    """Protocol for log backends and the decorators that wrap them."""

    def enabled(self, level: int) -> bool:
        """Return True if entries at this level would be written."""
        ...

    def check(self, entry: LogEntry) -> "LogSink | None":
        """Decide whether the entry should be written.

        Returns:
            The sink that must receive the entry, or None to drop it.
        """
        ...

    def write(self, entry: LogEntry, fields: Sequence[Field]) -> None:
        """Write an entry with its structured fields.

        Raises:
            OSError: If the underlying stream cannot be written.
        """
        ...

    def with_fields(self, fields: Sequence[Field]) -> "LogSink":
        """Return a new sink that adds fields to every entry."""
        ...


class FrameResolver(Protocol):
    """Protocol for call-stack introspection."""

    def resolve(self, skip: int) -> SourceMetadata | None:
        """Locate the frame `skip` levels above the caller of resolve.

        Args:
            skip: Frames to ascend; 0 is the function calling resolve.

        Returns:
            The frame's location, or None if the stack is not that deep.
        """
        ...
