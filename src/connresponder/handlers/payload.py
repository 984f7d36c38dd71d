"""
Response sender: stream the response payload to a socket.
"""

import socket
import logging
from typing import BinaryIO

from ..errors import PayloadReadError, SocketWriteError


logger = logging.getLogger(__name__)


def send_payload(sock: socket.socket, source: BinaryIO, buffer_size: int = 4096) -> int:
    """
    Send everything left in ``source`` to ``sock``.

    Reads ``buffer_size`` chunks and hands each one to sendall() before
    reading the next. A zero-length read ends the transfer. Nothing is
    retried.

    Args:
        sock: Connected socket to write to.
        source: Binary readable, positioned where sending should start.
        buffer_size: Chunk size in bytes.

    Returns:
        Total bytes sent.

    Raises:
        PayloadReadError: Reading ``source`` failed.
        SocketWriteError: Sending a chunk failed.
    """
    sent = 0
    while True:
        try:
            chunk = source.read(buffer_size)
        except (OSError, ValueError) as e:
            raise PayloadReadError.from_os_error("Error while reading the response file", e) from e

        if not chunk:
            break

        try:
            sock.sendall(chunk)
        except OSError as e:
            raise SocketWriteError.from_os_error("Error while sending the response file", e) from e

        sent += len(chunk)

    logger.debug(f"Sent {sent} byte response")
    return sent
