"""
Unit tests for the error taxonomy.
"""

import errno

import pytest

from connresponder.errors import (
    ResponderError,
    CommandLineError,
    NetworkError,
    NetworkSetupError,
    WaitError,
    SocketReadError,
    SocketWriteError,
    IOFailure,
    PayloadReadError,
    OutputWriteError,
)


class TestResponderError:
    """Tests for the base error."""

    def test_str_is_message_and_code(self):
        """Test the "<message>: <code>" rendering."""
        error = ResponderError("Error binding to socket", 98)
        assert str(error) == "Error binding to socket: 98"

    def test_code_defaults_to_zero(self):
        """Test errors without an OS code."""
        error = CommandLineError("Unknown parameter option")
        assert error.code == 0
        assert str(error) == "Unknown parameter option: 0"

    def test_from_os_error_uses_errno(self):
        """Test that the errno becomes the code."""
        cause = OSError(errno.ECONNRESET, "Connection reset by peer")
        error = SocketReadError.from_os_error("Error while reading from socket", cause)

        assert isinstance(error, SocketReadError)
        assert error.code == errno.ECONNRESET
        assert error.message == "Error while reading from socket"

    def test_from_os_error_without_errno(self):
        """Test exceptions that carry no errno."""
        error = OutputWriteError.from_os_error("Error writing output", ValueError("closed file"))
        assert error.code == 0


class TestHierarchy:
    """Tests for error kinds."""

    @pytest.mark.parametrize("kind", [NetworkSetupError, WaitError, SocketReadError, SocketWriteError])
    def test_network_errors(self, kind):
        """Test that socket failures are NetworkErrors."""
        assert issubclass(kind, NetworkError)
        assert issubclass(kind, ResponderError)

    @pytest.mark.parametrize("kind", [PayloadReadError, OutputWriteError])
    def test_io_failures(self, kind):
        """Test that file failures are IOFailures."""
        assert issubclass(kind, IOFailure)
        assert not issubclass(kind, NetworkError)

    def test_command_line_error_is_separate(self):
        """Test that the recoverable kind is not a fatal kind."""
        assert issubclass(CommandLineError, ResponderError)
        assert not issubclass(CommandLineError, (NetworkError, IOFailure))
