"""
=============================================================================
CONNECTION RESPONDER
=============================================================================

Ties the pieces together for one run of the tool:

    ConnectionResponder.run()
        │
        ├──► _setup_logging()        logs go to stderr, never stdout
        ├──► open_response_file()    CommandLineError if it can't be opened
        ├──► create_listener()       NetworkSetupError on failure
        │
        └──► Responder.run()         BLOCKS until two captures
                 │
                 └──► finally: connections, selector, listener and the
                      response file are all released, whatever happened

=============================================================================
"""

import sys
import logging
from typing import BinaryIO, Optional

from .config import ResponderConfig
from .core import Responder, create_listener
from .errors import CommandLineError


logger = logging.getLogger(__name__)


def open_response_file(path: str) -> BinaryIO:
    """
    Open the response payload for sequential binary reading.

    Raises:
        CommandLineError: The file can't be opened. This goes down the
                          usage-text path, like a bad argument.
    """
    try:
        return open(path, "rb")
    except OSError as e:
        logger.warning(f"Can not open response file {path!r}: {e}")
        raise CommandLineError.from_os_error("Can not open response file", e) from e


class ConnectionResponder:
    """
    One-shot responder application.

    Usage:
        responder = ConnectionResponder(ResponderConfig(port=9090))
        responder.run()   # Blocks until two captures, then returns

    Args:
        config: Run configuration.
        sink: Where captured bytes go. Defaults to the binary stdout.
    """

    def __init__(self, config: Optional[ResponderConfig] = None, sink: Optional[BinaryIO] = None):
        self.config = config or ResponderConfig()
        self.sink = sink if sink is not None else sys.stdout.buffer
        self.responder: Optional[Responder] = None

    def run(self) -> int:
        """
        Run one capture session.

        Returns:
            The completion count.

        Raises:
            CommandLineError: The response file can't be opened.
            ResponderError: Any fatal network or I/O failure.
        """
        self.config.validate()
        self._setup_logging()

        with open_response_file(self.config.response_file) as payload:
            with create_listener(
                self.config.port,
                host=self.config.host,
                backlog=self.config.backlog,
            ) as listener:
                self.responder = Responder(listener, payload, self.sink, self.config)
                try:
                    return self.responder.run()
                except KeyboardInterrupt:
                    logger.info("Received keyboard interrupt")
                    raise

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.WARNING)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            stream=sys.stderr,
        )

        logging.getLogger("connresponder").setLevel(level)
