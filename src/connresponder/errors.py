"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the responder can hit is one of a small set of error kinds.
Each carries a human-readable message and the underlying OS error code, and
renders as "<message>: <code>", which is exactly what the CLI prints on
stderr before exiting.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ResponderError hierarchy                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ResponderError                                                     │
    │   ├── CommandLineError       RECOVERED: usage text, exit 0          │
    │   ├── NetworkError                                                   │
    │   │   ├── NetworkSetupError  resolve / socket / bind / listen       │
    │   │   ├── WaitError          the selector wait itself failed        │
    │   │   ├── SocketReadError    recv() failed                          │
    │   │   └── SocketWriteError   send() failed                          │
    │   └── IOFailure                                                      │
    │       ├── PayloadReadError   reading the response file failed       │
    │       └── OutputWriteError   writing the capture sink failed        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing in the core retries. Every kind except CommandLineError is fatal
and propagates straight up to the entry point.

=============================================================================
"""

from typing import Optional


class ResponderError(Exception):
    """
    Base class for every responder failure.

    Attributes:
        message: What was being attempted when it failed.
        code: OS error code (errno), 0 when there is none.
    """

    def __init__(self, message: str, code: int = 0):
        super().__init__(message, code)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.message}: {self.code}"

    @classmethod
    def from_os_error(cls, message: str, error: Optional[BaseException]) -> "ResponderError":
        """
        Build an error of this kind from a caught OSError.

        The errno becomes the code. The caught exception should be
        chained by the caller with ``raise ... from error``.
        """
        code = getattr(error, "errno", None) or 0
        return cls(message, code)


class CommandLineError(ResponderError):
    """Malformed command line, or a response file that can't be opened."""


class NetworkError(ResponderError):
    """Any failure of the OS networking layer."""


class NetworkSetupError(NetworkError):
    """Address resolution, socket creation, bind or listen failed."""


class WaitError(NetworkError):
    """The readiness wait failed."""


class SocketReadError(NetworkError):
    """Receiving from a connection failed."""


class SocketWriteError(NetworkError):
    """Sending to a connection failed."""


class IOFailure(ResponderError):
    """Failure reading the response payload or writing captured bytes."""


class PayloadReadError(IOFailure):
    """Reading the response payload source failed."""


class OutputWriteError(IOFailure):
    """Writing to the capture sink failed."""


__all__ = [
    "ResponderError",
    "CommandLineError",
    "NetworkError",
    "NetworkSetupError",
    "WaitError",
    "SocketReadError",
    "SocketWriteError",
    "IOFailure",
    "PayloadReadError",
    "OutputWriteError",
]
