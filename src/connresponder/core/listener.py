"""
=============================================================================
LISTENER SETUP
=============================================================================

Creates the one listening socket a responder run owns.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. getaddrinfo()  Resolve a local, passive address for the port
                      └─ AF_UNSPEC: IPv4 or IPv6, first usable result wins
    2. socket()       Create a stream socket of that family
    3. bind()         Reserve the address
    4. listen()       Start queueing connections (backlog = 2)

Every step that fails raises NetworkSetupError carrying the OS error code.
A socket created before the failing step is closed before raising, so
nothing leaks on the error path.

=============================================================================
"""

import socket
import logging
from typing import Optional, Tuple, Union

from ..errors import NetworkSetupError


logger = logging.getLogger(__name__)


class Listener:
    """
    Owns a bound, listening socket.

    Usable as a context manager so the socket is released on every exit
    path, including exceptions raised from inside the event loop:

        with create_listener(8080) as listener:
            Responder(listener, payload, sink).run()
    """

    def __init__(self, sock: socket.socket):
        self.socket = sock

    @property
    def address(self) -> Tuple:
        """The bound local address as reported by the OS."""
        return self.socket.getsockname()

    @property
    def port(self) -> int:
        """The bound port (useful when listening on port 0)."""
        return self.address[1]

    def accept(self) -> Tuple[socket.socket, Tuple]:
        return self.socket.accept()

    def close(self):
        try:
            self.socket.close()
        except OSError:
            pass  # Already closed
        logger.debug("Listening socket closed")

    def __enter__(self) -> "Listener":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def resolve_bind_address(port: Union[int, str], host: Optional[str] = None) -> Tuple:
    """
    Resolve the local address to bind for ``port``.

    Returns:
        The first IPv4 or IPv6 ``(family, type, proto, canonname, sockaddr)``
        entry from getaddrinfo.

    Raises:
        NetworkSetupError: Resolution failed or produced no IP result.
    """
    try:
        results = socket.getaddrinfo(
            host,
            port,
            socket.AF_UNSPEC,
            socket.SOCK_STREAM,
            0,
            socket.AI_PASSIVE,
        )
    except OSError as e:
        raise NetworkSetupError.from_os_error("Could not start server", e) from e

    for info in results:
        if info[0] in (socket.AF_INET, socket.AF_INET6):
            return info

    raise NetworkSetupError("Could not start server: no IPv4 or IPv6 address", 0)


def create_listener(
    port: Union[int, str],
    host: Optional[str] = None,
    backlog: int = 2,
) -> Listener:
    """
    Create, bind and start a listening socket.

    Args:
        port: Port number or service name. 0 lets the OS choose.
        host: Local address to bind. None means the passive any-address.
        backlog: Accept queue length.

    Returns:
        A Listener owning the socket. The caller must close it.

    Raises:
        NetworkSetupError: Any of resolve, socket, bind or listen failed.
    """
    family, socktype, proto, _, sockaddr = resolve_bind_address(port, host)

    try:
        sock = socket.socket(family, socktype, proto)
    except OSError as e:
        raise NetworkSetupError.from_os_error("Error creating socket", e) from e

    try:
        # Rebinding must work while the previous run's socket is in TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        try:
            sock.bind(sockaddr)
        except OSError as e:
            logger.error(f"Failed to bind to {sockaddr[0]}:{sockaddr[1]}: {e}")
            raise NetworkSetupError.from_os_error("Error binding to socket", e) from e

        try:
            sock.listen(backlog)
        except OSError as e:
            raise NetworkSetupError.from_os_error("Error listening to socket", e) from e
    except BaseException:
        sock.close()
        raise

    listener = Listener(sock)
    logger.info(f"Listening on {listener.address[0]}:{listener.port}")
    return listener
