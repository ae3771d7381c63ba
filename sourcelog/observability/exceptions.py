"""Exceptions for logging configuration and enrichment."""


class LoggingError(Exception):
    """Base exception for logging setup errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidFormatError(LoggingError):
    """Raised when a requested log format is not supported."""

    def __init__(self, value: str, *, source: str = "log_format") -> None:
        self.value = value
        self.source = source
        super().__init__(
            f"unsupported {source} {value!r}: must be one of 'console', 'json'"
        )


class FrameUnavailableError(LoggingError):
    """Raised by a frame resolver that cannot inspect the call stack."""

    pass
