"""Tests for the error hierarchy and classification."""

import pytest
from crcsync.common import (
    CrcSyncError, ConfigurationError, InputUnavailableError, OutputUnavailableError,
    ScanError, LineTooLongError, MalformedInvocationError, classify_error
)


class TestErrorHierarchy:
    """Test error types and their context."""

    def test_base_error_carries_context(self):
        """Test base CrcSyncError functionality."""
        error = CrcSyncError("Test error", file="/test/path", line=3)

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {"file": "/test/path", "line": 3}

    def test_scan_errors_inherit_from_scan_error(self):
        """Test that tokenizer errors share a base."""
        for error in (LineTooLongError("x"), MalformedInvocationError("x")):
            assert isinstance(error, ScanError)
            assert isinstance(error, CrcSyncError)

    def test_io_errors_are_not_os_errors(self):
        """Test that wrapped I/O failures are distinct from OSError."""
        for error in (InputUnavailableError("x"), OutputUnavailableError("x")):
            assert isinstance(error, CrcSyncError)
            assert not isinstance(error, OSError)


class TestClassifyError:
    """Tests for classify_error function."""

    @pytest.mark.parametrize("error, category", [
        (InputUnavailableError("x"), 'input'),
        (OutputUnavailableError("x"), 'output'),
        (LineTooLongError("x"), 'line_too_long'),
        (MalformedInvocationError("x"), 'malformed'),
        (ConfigurationError("x"), 'config'),
        (PermissionError("x"), 'io'),
        (RuntimeError("x"), 'unknown'),
    ])
    def test_classification(self, error, category):
        """Test each error maps to its category."""
        assert classify_error(error) == category
