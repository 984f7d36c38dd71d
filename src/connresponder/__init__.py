"""
=============================================================================
CONNRESPONDER - One-Shot Diagnostic TCP Responder
=============================================================================

Listens on a port, sends a canned response to the first connection, and
writes whatever arrives on up to two connections to standard output. Made
for looking at the raw bytes a client sends, or what a second peer sends
back, while debugging a protocol.

    ┌──────────┐   1. connect          ┌──────────────────┐
    │ client A │ ────────────────────► │                  │
    │ (slot 0) │ ◄──────────────────── │                  │   captured
    │          │   2. Response.txt     │  connresponder   │ ─────────► stdout
    │          │ ────────────────────► │                  │   bytes +
    └──────────┘   3. request bytes    │                  │   "\\n" per
    ┌──────────┐                       │                  │   batch
    │ client B │ ────────────────────► │                  │
    │ (slot 1) │   4. more bytes       └──────────────────┘
    └──────────┘

The run ends after two captured batches.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    connresponder/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m connresponder)
    ├── server.py            # ConnectionResponder: one full run
    ├── config.py            # ResponderConfig dataclass
    ├── errors.py            # Error taxonomy
    ├── core/
    │   ├── listener.py      # Resolve, bind, listen
    │   ├── connection.py    # Accepted connection slot
    │   └── multiplexer.py   # The single-threaded event loop
    └── handlers/
        ├── capture.py       # Drain queued bytes to the sink
        └── payload.py       # Stream the response payload

=============================================================================
QUICK START
=============================================================================

    from connresponder import ConnectionResponder, ResponderConfig

    ConnectionResponder(ResponderConfig(port=9090, response_file="reply.bin")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ResponderConfig
from .server import ConnectionResponder
from .errors import ResponderError, CommandLineError

__all__ = [
    "ConnectionResponder",
    "ResponderConfig",
    "ResponderError",
    "CommandLineError",
    "__version__",
]
