"""Shared test fixtures for sourcelog."""

import io
import json
from collections.abc import Callable
from typing import Any

import pytest

from sourcelog.observability import (
    CALLER_SKIP,
    Logger,
    LoggerOptions,
    SourceSink,
    new_logger,
    resolve_encoder,
)
from sourcelog.observability.frames import StackFrameResolver


@pytest.fixture
def buf() -> io.StringIO:
    """In-memory destination for rendered log lines."""
    return io.StringIO()


@pytest.fixture
def make_logger(buf: io.StringIO) -> Callable[..., Logger]:
    """Build a logger the way a host does at startup.

    The encoder is resolved from explicit format settings and the backend is
    wrapped with the source decorator.
    """

    def _make(
        log_format: str = "json",
        *,
        legacy_encoder: str | None = None,
        resolver: StackFrameResolver | None = None,
        add_caller: bool = False,
    ) -> Logger:
        options = LoggerOptions(development=True, dest=buf, add_caller=add_caller)
        resolve_encoder(
            log_format,
            True,
            legacy_encoder or log_format,
            True,
            options,
        )
        options.sink_wrappers.append(
            lambda sink: SourceSink(sink, CALLER_SKIP, resolver=resolver)
        )
        return new_logger(options)

    return _make


@pytest.fixture
def json_lines(buf: io.StringIO) -> Callable[[], list[dict[str, Any]]]:
    """Parse every line written so far as a JSON object."""

    def _parse() -> list[dict[str, Any]]:
        return [json.loads(line) for line in buf.getvalue().splitlines()]

    return _parse
