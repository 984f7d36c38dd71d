"""
=============================================================================
CONNECTION SLOTS
=============================================================================

A Connection is one accepted client socket sitting in one of the
responder's ordered slots:

    ┌──────────────┬─────────────────────────────────────────────────────┐
    │ slot 0       │ "main"  - the first peer, receives the response     │
    │ slot 1       │ "other" - any second peer, only ever captured       │
    └──────────────┴─────────────────────────────────────────────────────┘

The class wraps the raw socket with the three primitives the handlers
need and nothing more:

    recv()             One receive, OS errors become SocketReadError
    bytes_available()  How many bytes are queued right now (FIONREAD)
    wait_readable()    A short, bounded readiness probe

=============================================================================
WHY FIONREAD?
=============================================================================

Captures are a best-effort drain of what is queued *now*, not a read until
the peer closes. After each recv() the kernel is asked how much is still
queued; zero ends the drain. A peer that keeps the connection open
therefore never blocks the responder inside a handler.

    recv() ──► write ──► FIONREAD > 0 ? ──yes──► recv() ...
                               │
                               no
                               ▼
                          terminator

=============================================================================
"""

import array
import fcntl
import select
import socket
import termios
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Tuple

from ..errors import SocketReadError


logger = logging.getLogger(__name__)


class SlotState(Enum):
    """Lifecycle of a connection slot."""
    OPEN = "open"            # Accepted, registered for data events
    HUNG_UP = "hung_up"      # Peer closed its side, no longer watched
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    An accepted connection occupying a responder slot.

    Attributes:
        socket: The connected client socket (blocking).
        address: Peer address as returned by accept().
        slot: Slot index, 0 for the first accepted connection.
        id: Short identifier used in log lines.
        drains: How many data-handler invocations captured from it.
    """

    socket: socket.socket
    address: Tuple
    slot: int

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: SlotState = SlotState.OPEN
    accepted_at: float = field(default_factory=time.time)
    drains: int = 0
    bytes_captured: int = 0

    def __post_init__(self):
        # Handlers only recv() when data is known to be queued.
        self.socket.setblocking(True)

    @property
    def is_main(self) -> bool:
        """The first accepted connection, the one that gets the response."""
        return self.slot == 0

    @property
    def peer(self) -> str:
        return f"{self.address[0]}:{self.address[1]}"

    def recv(self, size: int) -> bytes:
        """
        Receive up to ``size`` bytes.

        Returns:
            The bytes read, or b"" when the peer has closed its side.

        Raises:
            SocketReadError: The receive itself failed.
        """
        try:
            return self.socket.recv(size)
        except OSError as e:
            raise SocketReadError.from_os_error("Error while reading from socket", e) from e

    def bytes_available(self) -> int:
        """
        Number of bytes queued on the socket right now.

        Raises:
            SocketReadError: The FIONREAD query failed.
        """
        buf = array.array("i", [0])
        try:
            fcntl.ioctl(self.socket.fileno(), termios.FIONREAD, buf, True)
        except OSError as e:
            raise SocketReadError.from_os_error("Error while reading from socket", e) from e
        return buf[0]

    def wait_readable(self, timeout: float) -> bool:
        """
        Probe whether the socket becomes readable within ``timeout`` seconds.

        Used once, right after accept, to catch data that came with the
        connect.
        """
        try:
            readable, _, _ = select.select([self.socket], [], [], timeout)
        except OSError as e:
            raise SocketReadError.from_os_error("Error while probing socket", e) from e
        return bool(readable)

    def mark_hung_up(self):
        self.state = SlotState.HUNG_UP
        logger.debug(f"[{self.id}] Peer {self.peer} hung up (slot {self.slot})")

    def close(self):
        """Release the socket. Safe to call more than once."""
        if self.state == SlotState.CLOSED:
            return

        try:
            self.socket.close()
        except OSError:
            pass  # Already closed

        self.state = SlotState.CLOSED
        logger.debug(
            f"[{self.id}] Closed slot {self.slot} "
            f"(drains={self.drains}, bytes={self.bytes_captured}, age={time.time() - self.accepted_at:.3f}s)"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
