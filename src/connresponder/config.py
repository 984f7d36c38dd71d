"""
=============================================================================
RESPONDER CONFIGURATION
=============================================================================

All knobs of a responder run live in one dataclass.

The tool itself only takes two real inputs, the listening port and the
response file. Everything else here has a fixed default that reproduces
the classic behaviour (backlog of 2, 4 KB buffers, two connection slots,
stop after two captures) and is only exposed so tests and embedding code
can tweak it.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments
       └── python -m connresponder -p 9090 -r reply.bin

    2. Environment variables
       └── RESPONDER_PORT=9090 python -m connresponder

    3. Defaults in this dataclass

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional, Union


DEFAULT_PORT = 8080
DEFAULT_RESPONSE_FILE = "Response.txt"


@dataclass
class ResponderConfig:
    """
    Responder configuration.

    Usage:
        config = ResponderConfig(port=9090, response_file="reply.bin")
        config.validate()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    port: Union[int, str] = DEFAULT_PORT
    """
    Port to listen on. A string is passed to address resolution as-is,
    so numeric strings and service names ("http") both work.
    0 lets the OS pick a free port.
    """

    host: Optional[str] = None
    """
    Local address to bind. None resolves the passive "any" address and
    takes the first IPv4 or IPv6 result.
    """

    backlog: int = 2
    """Accept queue length. Only two connections are ever accepted."""

    buffer_size: int = 4096
    """Chunk size for both receiving captures and sending the payload."""

    # ─────────────────────────────────────────────────────────────────────
    # RESPONDER BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    response_file: str = DEFAULT_RESPONSE_FILE
    """File whose bytes are sent to the first accepted connection."""

    max_connections: int = 2
    """
    Number of connection slots. Once they are all filled the listening
    socket is no longer serviced.
    """

    completion_threshold: int = 2
    """
    The run ends after this many data-handler invocations. It counts
    invocations, not distinct connections.
    """

    accept_probe_timeout: float = 0.001
    """
    How long to look for data that arrived together with the connect,
    right after accepting. 0 makes it a pure poll.
    """

    terminator: bytes = b"\n"
    """Written to the sink after each drained batch."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR).
    Logs always go to stderr; stdout carries the captured bytes.
    """

    @classmethod
    def from_env(cls) -> "ResponderConfig":
        """
        Create configuration from environment variables.

        RESPONDER_PORT           Listening port (default: 8080)
        RESPONDER_RESPONSE_FILE  Response file (default: Response.txt)
        RESPONDER_HOST           Bind address (default: any)
        RESPONDER_LOG_LEVEL      Logging level (default: WARNING)
        """
        return cls(
            port=os.getenv("RESPONDER_PORT", str(DEFAULT_PORT)),
            response_file=os.getenv("RESPONDER_RESPONSE_FILE", DEFAULT_RESPONSE_FILE),
            host=os.getenv("RESPONDER_HOST") or None,
            log_level=os.getenv("RESPONDER_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Non-numeric ports are left to address resolution, which reports
        unknown service names as a NetworkSetupError.
        """
        port = self.port
        if isinstance(port, str) and port.isdigit():
            port = int(port)
        if isinstance(port, int) and not 0 <= port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if self.completion_threshold < 1:
            raise ValueError("completion_threshold must be >= 1")

        if self.accept_probe_timeout < 0:
            raise ValueError("accept_probe_timeout must be >= 0")
