"""Tests for the source decorator and frame resolution."""

import inspect
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import facade_shim
import pytest

from sourcelog.observability import (
    CALLER_SKIP,
    FrameUnavailableError,
    LogEntry,
    Logger,
    SourceMetadata,
    SourceSink,
    StackFrameResolver,
)

SITE = SourceMetadata(function="app.handlers.create_user", file="/srv/app/handlers.py", line=42)


class RecordingSink:
    """In-memory sink that records writes for assertions."""

    def __init__(self, level: int = 0, fields: Sequence[tuple[str, Any]] = ()) -> None:
        self.level = level
        self.fields = tuple(fields)
        self.writes: list[tuple[LogEntry, list[tuple[str, Any]]]] = []

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def check(self, entry: LogEntry) -> "RecordingSink | None":
        return self if self.enabled(entry.level) else None

    def write(self, entry: LogEntry, fields: Sequence[tuple[str, Any]]) -> None:
        self.writes.append((entry, [*self.fields, *fields]))

    def with_fields(self, fields: Sequence[tuple[str, Any]]) -> "RecordingSink":
        return RecordingSink(self.level, (*self.fields, *fields))


class FakeResolver:
    """Frame resolver returning a fixed result."""

    def __init__(self, result: SourceMetadata | None = SITE, *, fail: bool = False) -> None:
        self.result = result
        self.fail = fail
        self.skips: list[int] = []

    def resolve(self, skip: int) -> SourceMetadata | None:
        self.skips.append(skip)
        if self.fail:
            raise FrameUnavailableError("stack introspection unavailable")
        return self.result


def make_entry(level: int = 20) -> LogEntry:
    return LogEntry(level=level, message="hello", time_ns=1)


class TestSourceSinkWrite:
    """Tests for SourceSink.write."""

    def test_appends_source_field(self):
        """Resolved call site should be appended after the entry's fields."""
        inner = RecordingSink()
        sink = SourceSink(inner, resolver=FakeResolver())

        sink.write(make_entry(), [("user", "bob")])

        _, fields = inner.writes[0]
        assert fields == [("user", "bob"), ("source", SITE)]

    def test_resolves_at_configured_skip(self):
        """The resolver is asked for the decorator's skip depth."""
        resolver = FakeResolver()
        sink = SourceSink(RecordingSink(), caller_skip=5, resolver=resolver)

        sink.write(make_entry(), [])

        assert resolver.skips == [5]

    def test_default_skip(self):
        sink = SourceSink(RecordingSink())
        assert sink.caller_skip == CALLER_SKIP

    def test_omits_source_when_unresolved(self):
        """A stack too shallow for the skip depth should not fail the write."""
        inner = RecordingSink()
        sink = SourceSink(inner, resolver=FakeResolver(None))

        sink.write(make_entry(), [("user", "bob")])

        assert inner.writes[0][1] == [("user", "bob")]

    def test_omits_source_when_introspection_fails(self):
        """FrameUnavailableError should degrade to an entry without source."""
        inner = RecordingSink()
        sink = SourceSink(inner, resolver=FakeResolver(fail=True))

        sink.write(make_entry(), [])

        assert len(inner.writes) == 1
        assert inner.writes[0][1] == []

    def test_omits_source_when_resolver_raises(self):
        """Any resolver failure degrades like FrameUnavailableError."""

        class BrokenResolver:
            def resolve(self, skip: int) -> SourceMetadata | None:
                raise RuntimeError("no frames")

        inner = RecordingSink()
        sink = SourceSink(inner, resolver=BrokenResolver())

        sink.write(make_entry(), [("user", "bob")])

        assert inner.writes[0][1] == [("user", "bob")]

    def test_does_not_mutate_caller_fields(self):
        inner = RecordingSink()
        sink = SourceSink(inner, resolver=FakeResolver())
        fields = [("user", "bob")]

        sink.write(make_entry(), fields)

        assert fields == [("user", "bob")]


class TestSourceSinkDelegation:
    """Tests for enabled, check and with_fields."""

    def test_enabled_delegates(self):
        sink = SourceSink(RecordingSink(level=30), resolver=FakeResolver())

        assert sink.enabled(40)
        assert not sink.enabled(20)

    def test_check_routes_admitted_entries_through_decorator(self):
        """check should return the decorator so that write adds source."""
        sink = SourceSink(RecordingSink(level=30), resolver=FakeResolver())

        assert sink.check(make_entry(40)) is sink
        assert sink.check(make_entry(20)) is None

    def test_with_fields_returns_new_decorator(self):
        """Derived decorators share skip depth and leave the original alone."""
        inner = RecordingSink()
        resolver = FakeResolver()
        sink = SourceSink(inner, caller_skip=4, resolver=resolver)

        child = sink.with_fields([("request", "r-1")])
        child.write(make_entry(), [])
        sink.write(make_entry(), [])

        assert child is not sink
        assert isinstance(child, SourceSink)
        assert child.caller_skip == 4
        assert sink.wrapped is inner
        assert resolver.skips == [4, 4]
        # Only the derived sink carries the bound field
        assert inner.writes[0][1] == [("source", SITE)]
        assert child.wrapped.writes[0][1] == [("request", "r-1"), ("source", SITE)]

    def test_is_immutable(self):
        sink = SourceSink(RecordingSink())

        with pytest.raises(AttributeError):
            sink.extra = 1  # type: ignore[attr-defined]


def _locate(resolver: StackFrameResolver, skip: int) -> SourceMetadata | None:
    return resolver.resolve(skip)


class TestStackFrameResolver:
    """Tests for StackFrameResolver against the live stack."""

    def test_skip_zero_is_the_calling_function(self):
        resolver = StackFrameResolver()

        source = _locate(resolver, 0)

        assert source is not None
        assert source.function.endswith("._locate")
        assert Path(source.file).name == "test_source.py"

    def test_skip_one_is_its_caller(self):
        resolver = StackFrameResolver()

        line = inspect.currentframe().f_lineno + 1
        source = _locate(resolver, 1)

        assert source is not None
        assert source.function.endswith(
            "TestStackFrameResolver.test_skip_one_is_its_caller"
        )
        assert source.line == line

    def test_too_deep_returns_none(self):
        assert StackFrameResolver().resolve(100_000) is None

    @pytest.mark.parametrize("skip", [-1, -2])
    def test_negative_skip_returns_none(self, skip):
        """A negative skip would otherwise name the resolver itself."""
        assert StackFrameResolver().resolve(skip) is None

    def test_ignored_modules_are_passed_over(self):
        resolver = StackFrameResolver(ignore_modules=(__name__,))

        # Every frame of this module is skipped; pytest's frames remain
        source = _locate(resolver, 0)

        assert source is not None
        assert not source.function.startswith(f"{__name__}.")

    def test_with_ignored_extends_defaults(self):
        resolver = StackFrameResolver().with_ignored("vendor.facade")

        assert "logging" in resolver.ignore_modules
        assert "vendor.facade" in resolver.ignore_modules

    def test_ignore_matches_whole_module_names(self):
        """Ignored names match whole modules, not name prefixes."""
        resolver = StackFrameResolver(ignore_modules=("test_sour",))

        source = _locate(resolver, 0)

        assert source is not None
        assert source.function.endswith("._locate")


class TestCallSiteThroughLogger:
    """The decorator reports the application call site."""

    def test_direct_call(self):
        inner = RecordingSink()
        logger = Logger(SourceSink(inner))

        line = inspect.currentframe().f_lineno + 1
        logger.info("hello")

        source = dict(inner.writes[0][1])["source"]
        assert source.function.endswith("TestCallSiteThroughLogger.test_direct_call")
        assert source.line == line
        assert Path(source.file).name == "test_source.py"

    def test_bound_logger_keeps_call_site(self):
        inner = RecordingSink()
        logger = Logger(SourceSink(inner)).bind(user="bob")

        line = inspect.currentframe().f_lineno + 1
        logger.warning("hello")

        assert inner.writes == []
        fields = dict(logger.sink.wrapped.writes[0][1])
        assert fields["user"] == "bob"
        assert fields["source"].line == line

    def test_facade_shim_reports_original_call_site(self):
        """Frames added by a redirected facade are not reported."""
        inner = RecordingSink()
        resolver = StackFrameResolver().with_ignored(facade_shim.__name__)
        logger = Logger(SourceSink(inner, resolver=resolver))
        facade = facade_shim.LegacyFacade(logger)

        direct_line = inspect.currentframe().f_lineno + 1
        logger.info("direct")
        shim_line = inspect.currentframe().f_lineno + 1
        facade.infof("via %s", "shim")

        direct = dict(inner.writes[0][1])["source"]
        shimmed = dict(inner.writes[1][1])["source"]
        assert inner.writes[1][0].message == "via shim"
        assert shimmed.function == direct.function
        assert shimmed.file == direct.file
        assert (direct.line, shimmed.line) == (direct_line, shim_line)
