"""
Data handler: drain whatever a connection has queued into the capture sink.
"""

import errno
import logging
from typing import TYPE_CHECKING, BinaryIO

from ..errors import OutputWriteError, SocketReadError

if TYPE_CHECKING:
    from ..core.connection import Connection


logger = logging.getLogger(__name__)


def write_output(sink: BinaryIO, data: bytes):
    """Write ``data`` to the sink, mapping failures to OutputWriteError."""
    try:
        sink.write(data)
    except (OSError, ValueError) as e:
        # ValueError: write to a closed file.
        raise OutputWriteError.from_os_error("Error writing output", e) from e


def drain_and_echo(
    conn: "Connection",
    sink: BinaryIO,
    buffer_size: int = 4096,
    terminator: bytes = b"\n",
) -> int:
    """
    Copy the bytes currently queued on ``conn`` to ``sink``.

    Receives in ``buffer_size`` chunks until the queued byte count reads
    zero, then writes ``terminator`` so each batch ends on its own line,
    and flushes.

    If the very first receive reports end-of-stream or a connection reset
    the peer has hung up: nothing is written and -1 is returned so the
    caller can retire the slot instead of counting a capture.

    Returns:
        Number of captured bytes (terminator excluded), or -1 on hang-up.

    Raises:
        SocketReadError: A receive failed (a reset after the first chunk
            included).
        OutputWriteError: Writing or flushing the sink failed.
    """
    try:
        chunk = conn.recv(buffer_size)
    except SocketReadError as e:
        if e.code != errno.ECONNRESET:
            raise
        logger.debug(f"[{conn.id}] Connection reset by peer on slot {conn.slot}")
        chunk = b""

    if not chunk:
        conn.mark_hung_up()
        return -1

    captured = 0
    while True:
        write_output(sink, chunk)
        captured += len(chunk)

        if conn.bytes_available() == 0:
            break

        chunk = conn.recv(buffer_size)
        if not chunk:
            # Hung up mid-drain; what was read so far is still a batch.
            break

    write_output(sink, terminator)
    try:
        sink.flush()
    except (OSError, ValueError) as e:
        raise OutputWriteError.from_os_error("Error writing output", e) from e

    conn.drains += 1
    conn.bytes_captured += captured
    logger.debug(f"[{conn.id}] Captured {captured} bytes from slot {conn.slot}")
    return captured
