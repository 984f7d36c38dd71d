"""
=============================================================================
EVENT MULTIPLEXER
=============================================================================

The heart of the responder: one thread, one selector, one place to block.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Readiness Registry                            │
    ├──────────┬──────────────────────────────────────────────────────────┤
    │ index 0  │ accept on the listening socket                            │
    │ index 1  │ data ready on slot 0 ("main", gets the response)          │
    │ index 2  │ data ready on slot 1 ("other")                            │
    │ ...      │ up to max_connections slots                               │
    └──────────┴──────────────────────────────────────────────────────────┘

Each selector registration carries its registry index as its data. When
several events are ready at once only the lowest index is serviced, so
accept wins over slot 0, which wins over slot 1. Readiness is level
triggered: whatever was not serviced is reported again on the next wait.

=============================================================================
STATE MACHINE
=============================================================================

    WAITING ──── select() returns ────► DISPATCHING
       ▲                                    │
       │         counter < threshold        │
       └────────────────────────────────────┤
                                            │ counter >= threshold
                                            ▼                (or error)
                                       TERMINATED

DISPATCHING an accept:
    1. accept() into the next free slot, register its data event
    2. probe for data that came with the connect; drain it inline
    3. slot 0 only: stream the response payload
    4. registry full: stop watching the listening socket

DISPATCHING a data event:
    drain the slot into the sink, count one completion

The completion counter counts handler invocations, not peers: a single
connection that is drained twice completes the run on its own.

No timeout anywhere. With no peers the run blocks forever.

=============================================================================
"""

import selectors
import logging
from enum import Enum
from typing import BinaryIO, List, Optional

from ..config import ResponderConfig
from ..errors import NetworkSetupError, WaitError
from ..handlers.capture import drain_and_echo
from ..handlers.payload import send_payload
from .connection import Connection, SlotState
from .listener import Listener


logger = logging.getLogger(__name__)


ACCEPT_INDEX = 0


class ResponderState(Enum):
    """Event loop states."""
    WAITING = "waiting"
    DISPATCHING = "dispatching"
    TERMINATED = "terminated"


class Responder:
    """
    Single-threaded accept/capture loop over one listener.

    Usage:
        with create_listener(8080) as listener, open("Response.txt", "rb") as payload:
            with Responder(listener, payload, sys.stdout.buffer) as responder:
                responder.run()

    Args:
        listener: Bound, listening socket. Not closed by the responder.
        payload_source: Binary readable holding the response payload.
        sink: Binary writable receiving captured bytes.
        config: Limits and buffer sizes; defaults reproduce the classic
                two-connection behaviour.
    """

    def __init__(
        self,
        listener: Listener,
        payload_source: BinaryIO,
        sink: BinaryIO,
        config: Optional[ResponderConfig] = None,
    ):
        self.config = config or ResponderConfig()
        self.listener = listener
        self.payload_source = payload_source
        self.sink = sink

        self.state = ResponderState.WAITING
        self.completions = 0

        # Arena of slots; slot k is registered under index k + 1.
        self.slots: List[Connection] = []

        self._payload_sent = False
        self._accepting = False
        self._selector = selectors.DefaultSelector()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def connection_count(self) -> int:
        """Number of slots filled so far."""
        return len(self.slots)

    @property
    def is_full(self) -> bool:
        return len(self.slots) >= self.config.max_connections

    @property
    def is_complete(self) -> bool:
        return self.completions >= self.config.completion_threshold

    @property
    def payload_sent(self) -> bool:
        return self._payload_sent

    # =========================================================================
    # EVENT LOOP
    # =========================================================================

    def run(self) -> int:
        """
        Run until the completion threshold is reached.

        Returns:
            The completion count.

        Raises:
            WaitError: The selector wait failed.
            NetworkSetupError: Registering the listener or accepting failed.
            SocketReadError, SocketWriteError, PayloadReadError,
            OutputWriteError: From the handlers.
        """
        if self.state == ResponderState.TERMINATED:
            raise RuntimeError("Responder already ran")

        try:
            self._register_listener()

            while not self.is_complete:
                self.state = ResponderState.WAITING
                index = self._wait()

                self.state = ResponderState.DISPATCHING
                if index == ACCEPT_INDEX:
                    self._handle_accept()
                else:
                    self._handle_data(self.slots[index - 1])

            logger.info(
                f"Completed after {self.completions} captures "
                f"from {len(self.slots)} connection(s)"
            )
            return self.completions
        finally:
            self.state = ResponderState.TERMINATED
            self.close()

    def _register_listener(self):
        try:
            self._selector.register(self.listener.socket, selectors.EVENT_READ, ACCEPT_INDEX)
        except (OSError, ValueError) as e:
            raise NetworkSetupError.from_os_error("Could not setup event", e) from e
        self._accepting = True

    def _wait(self) -> int:
        """
        Block until at least one registered event is ready.

        Returns:
            The lowest ready registry index.
        """
        while True:
            try:
                ready = self._selector.select(timeout=None)
            except OSError as e:
                raise WaitError.from_os_error("Error while waiting for network events", e) from e

            if ready:
                return min(key.data for key, _ in ready)

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def _handle_accept(self):
        """Accept one connection into the next slot."""
        if self.is_full:
            return

        try:
            client_socket, client_address = self.listener.accept()
        except OSError as e:
            raise NetworkSetupError.from_os_error("Error accepting socket", e) from e

        conn = Connection(socket=client_socket, address=client_address, slot=len(self.slots))
        self.slots.append(conn)
        logger.debug(f"[{conn.id}] Accepted {conn.peer} into slot {conn.slot}")

        try:
            self._selector.register(conn.socket, selectors.EVENT_READ, conn.slot + 1)
        except (OSError, ValueError) as e:
            raise NetworkSetupError.from_os_error("Could not setup event", e) from e

        # Data may have come with the connect.
        if conn.wait_readable(self.config.accept_probe_timeout):
            logger.debug(f"[{conn.id}] Data arrived with the connect")
            self._handle_data(conn)

        if conn.is_main and not self._payload_sent and conn.state == SlotState.OPEN:
            logger.debug(f"[{conn.id}] Sending response")
            send_payload(conn.socket, self.payload_source, self.config.buffer_size)
            self._payload_sent = True

        if self.is_full:
            self._stop_accepting()

    def _handle_data(self, conn: Connection):
        """Drain one slot and count the capture."""
        captured = drain_and_echo(
            conn,
            self.sink,
            buffer_size=self.config.buffer_size,
            terminator=self.config.terminator,
        )

        if captured < 0:
            self._retire(conn)
            return

        self.completions += 1
        logger.debug(
            f"[{conn.id}] Capture {self.completions}/{self.config.completion_threshold} "
            f"from slot {conn.slot}"
        )

    def _stop_accepting(self):
        if not self._accepting:
            return
        self._selector.unregister(self.listener.socket)
        self._accepting = False
        logger.debug("All connection slots filled, no longer accepting")

    def _retire(self, conn: Connection):
        """Stop watching a slot whose peer has hung up."""
        try:
            self._selector.unregister(conn.socket)
        except (KeyError, ValueError):
            pass  # Never registered
        conn.close()

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def close(self):
        """Release the selector and every connection socket."""
        self._selector.close()
        self._accepting = False
        for conn in self.slots:
            conn.close()

    def __enter__(self) -> "Responder":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
