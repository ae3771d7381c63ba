"""Options for building a logger."""

import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from sourcelog.observability.encoder import EncoderConfig
    from sourcelog.observability.protocol import LogSink


@dataclass
class LoggerOptions:
    """Mutable options consumed once by new_logger.

    The encoder factory is replaced by resolve_encoder during startup; every
    other field is set by the host before the logger is built.
    """

    development: bool = True
    dest: TextIO | None = None  # Defaults to sys.stderr at build time
    level: int | None = None  # Defaults to DEBUG in development, INFO otherwise
    encoder: "Callable[[], EncoderConfig] | None" = None
    add_caller: bool = False
    sink_wrappers: "list[Callable[[LogSink], LogSink]]" = field(default_factory=list)

    def destination(self) -> TextIO:
        return self.dest if self.dest is not None else sys.stderr
