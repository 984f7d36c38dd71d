"""
Handlers run by the event loop.

- capture: drain queued bytes from a connection into the output sink
- payload: stream the response payload to the first connection
"""

from .capture import drain_and_echo, write_output
from .payload import send_payload

__all__ = ["drain_and_echo", "write_output", "send_payload"]
