"""Shared building blocks for crcsync: errors, logging, configuration, checksums."""

from .config import ConfigLoader
from .logging import setup_logging, get_logger, LogContext
from .logging_config import LoggingConfig
from .errors import (
    CrcSyncError, ConfigurationError, InputUnavailableError, OutputUnavailableError,
    ScanError, LineTooLongError, MalformedInvocationError, classify_error
)
from .checksums import compute_crc32, format_crc32

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'get_logger',
    'LogContext',
    'CrcSyncError',
    'ConfigurationError',
    'InputUnavailableError',
    'OutputUnavailableError',
    'ScanError',
    'LineTooLongError',
    'MalformedInvocationError',
    'classify_error',
    'compute_crc32',
    'format_crc32',
]
