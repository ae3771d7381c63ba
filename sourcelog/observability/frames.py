"""Call-stack introspection for source metadata."""

import sys
from collections.abc import Iterable

from sourcelog.observability.protocol import SourceMetadata

# Frames from these modules belong to logging facades, never to callers.
DEFAULT_IGNORED_MODULES: tuple[str, ...] = (
    "logging",
    "structlog",
    "sourcelog.observability.wiring",
)


class StackFrameResolver:
    """Resolve call sites from the live interpreter stack.

    After ascending the requested number of frames, frames that belong to
    an ignored module are passed over as well. Redirected facades add a
    varying number of their own frames, and this keeps the reported
    location on the application code that called them.
    """

    def __init__(
        self, ignore_modules: Iterable[str] = DEFAULT_IGNORED_MODULES
    ) -> None:
        self._ignore_modules = tuple(ignore_modules)

    @property
    def ignore_modules(self) -> tuple[str, ...]:
        return self._ignore_modules

    def with_ignored(self, *modules: str) -> "StackFrameResolver":
        """Return a resolver that also passes over the given modules."""
        return StackFrameResolver((*self._ignore_modules, *modules))

    def resolve(self, skip: int) -> SourceMetadata | None:
        if skip < 0:
            return None
        try:
            frame = sys._getframe(skip + 1)
        except ValueError:
            return None

        while frame is not None and self._is_ignored(frame.f_globals):
            frame = frame.f_back
        if frame is None or not frame.f_lineno:
            return None

        code = frame.f_code
        module = frame.f_globals.get("__name__")
        function = f"{module}.{code.co_qualname}" if module else code.co_qualname
        return SourceMetadata(function=function, file=code.co_filename, line=frame.f_lineno)

    def _is_ignored(self, frame_globals: dict) -> bool:
        module = frame_globals.get("__name__", "")
        return any(
            module == name or module.startswith(name + ".")
            for name in self._ignore_modules
        )
