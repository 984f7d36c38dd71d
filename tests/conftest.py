"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
import time
from typing import Generator, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from connresponder import ResponderConfig
from connresponder.core import Responder, create_listener


@pytest.fixture
def payload() -> bytes:
    """Response payload sent to the first connection."""
    return b"HELLO\n"


@pytest.fixture
def response_file(tmp_path: Path, payload: bytes) -> Path:
    """Response payload written to disk."""
    path = tmp_path / "Response.txt"
    path.write_bytes(payload)
    return path


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def recv_exact(sock: socket.socket, size: int) -> bytes:
    """Read exactly ``size`` bytes or whatever arrives before EOF."""
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def wait_until(predicate, timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class ResponderThread:
    """Runs a Responder in a background thread against a loopback listener."""

    def __init__(
        self,
        payload: bytes,
        config: Optional[ResponderConfig] = None,
        sink: Optional[io.BytesIO] = None,
    ):
        self.config = config or ResponderConfig(host="127.0.0.1", port=0)
        self.listener = create_listener(self.config.port, host=self.config.host, backlog=self.config.backlog)
        self.sink = sink if sink is not None else io.BytesIO()
        self.responder = Responder(self.listener, io.BytesIO(payload), self.sink, self.config)
        self.result: Optional[int] = None
        self.error: Optional[BaseException] = None
        self.clients: List[socket.socket] = []
        self._thread = threading.Thread(target=self._run, daemon=True)

    @property
    def port(self) -> int:
        return self.listener.port

    @property
    def captured(self) -> bytes:
        return self.sink.getvalue()

    def _run(self):
        try:
            self.result = self.responder.run()
        except BaseException as e:
            self.error = e

    def start(self) -> "ResponderThread":
        self._thread.start()
        return self

    def connect(self) -> socket.socket:
        """Open a client connection to the responder."""
        client = socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
        self.clients.append(client)
        return client

    def wait_for_capture(self, expected: bytes, timeout: float = 5.0) -> bool:
        return wait_until(lambda: self.captured == expected, timeout)

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for the run to finish. Returns False if it is still going."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def finished(self) -> bool:
        return not self._thread.is_alive()

    def stop(self):
        for client in self.clients:
            client.close()
        self.listener.close()


@pytest.fixture
def responder_thread(payload: bytes) -> Generator[ResponderThread, None, None]:
    """A responder with default limits, running in the background."""
    runner = ResponderThread(payload).start()

    yield runner

    runner.stop()


@pytest.fixture
def make_responder(payload: bytes):
    """Factory for responders with a custom configuration."""
    runners: List[ResponderThread] = []

    def factory(**overrides) -> ResponderThread:
        config = ResponderConfig(host="127.0.0.1", port=0, **overrides)
        runner = ResponderThread(payload, config).start()
        runners.append(runner)
        return runner

    yield factory

    for runner in runners:
        runner.stop()
