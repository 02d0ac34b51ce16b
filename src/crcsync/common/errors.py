"""Base error definitions for crcsync."""

from typing import Any, Dict


class CrcSyncError(Exception):
    """Base exception for all crcsync errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(CrcSyncError):
    """Configuration is invalid or missing."""
    pass


class InputUnavailableError(CrcSyncError):
    """Input file cannot be opened or read."""
    pass


class OutputUnavailableError(CrcSyncError):
    """Temporary output cannot be created, written or moved into place."""
    pass


class ScanError(CrcSyncError):
    """Base exception for errors raised while scanning file content."""
    pass


class LineTooLongError(ScanError):
    """A line exceeds the configured maximum length."""
    pass


class MalformedInvocationError(ScanError):
    """Text starts a macro invocation but does not follow its grammar."""
    pass


def classify_error(exception: Exception) -> str:
    """
    Classify an exception into an error category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'input', 'output', 'line_too_long',
        'malformed', 'config', 'io' or 'unknown'
    """
    if isinstance(exception, InputUnavailableError):
        return 'input'
    elif isinstance(exception, OutputUnavailableError):
        return 'output'
    elif isinstance(exception, LineTooLongError):
        return 'line_too_long'
    elif isinstance(exception, MalformedInvocationError):
        return 'malformed'
    elif isinstance(exception, ConfigurationError):
        return 'config'
    elif isinstance(exception, OSError):
        return 'io'
    else:
        return 'unknown'
