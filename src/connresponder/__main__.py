"""
=============================================================================
CONNECTION RESPONDER CLI ENTRY POINT
=============================================================================

    # Defaults: port 8080, response from ./Response.txt
    python -m connresponder

    # Custom port and response file
    python -m connresponder -p 9090 -r reply.bin

    # Capture to a file, trace what happens on stderr
    python -m connresponder -p 9090 -f reply.bin -l DEBUG > capture.bin

=============================================================================
EXIT BEHAVIOUR
=============================================================================

    ┌──────────────────────────────┬─────────────────────────────────────┐
    │ bad / unknown argument       │ usage on stdout, exit 0             │
    │ response file can't be opened│ usage on stdout, exit 0             │
    │ network or I/O failure       │ "<message>: <code>" on stderr, -1   │
    │ two captures done            │ exit 0                              │
    └──────────────────────────────┴─────────────────────────────────────┘

A malformed command line is treated as a request for help rather than a
hard failure. Scripts that wrap this tool rely on that.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import DEFAULT_PORT, DEFAULT_RESPONSE_FILE, ResponderConfig
from .errors import CommandLineError, ResponderError
from .server import ConnectionResponder


class ResponderArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises CommandLineError instead of exiting."""

    def error(self, message):
        raise CommandLineError(message, 0)


def build_parser() -> ResponderArgumentParser:
    parser = ResponderArgumentParser(
        prog="connresponder",
        usage="%(prog)s [-p Port] [-r Response File]",
        description="One-shot TCP responder: sends a response file to the first "
                    "connection and writes what arrives to standard output.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Default port: {DEFAULT_PORT}\n"
               f"Default response file: {DEFAULT_RESPONSE_FILE}\n",
        add_help=False,
        allow_abbrev=False,
    )

    parser.add_argument(
        "-p", "-P",
        dest="port",
        default=None,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )

    parser.add_argument(
        "-r", "-R", "-f", "-F",
        dest="response_file",
        default=None,
        help=f"File sent to the first connection (default: {DEFAULT_RESPONSE_FILE})",
    )

    parser.add_argument(
        "-l", "--log-level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging verbosity on stderr (default: WARNING)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"connresponder {__version__}",
    )

    return parser


def normalize_argv(argv: List[str]) -> List[str]:
    """
    Reduce single-dash words to their first letter.

    Only the character after the dash names an option, so ``-port 9090``
    is ``-p 9090`` and ``-file reply.bin`` is ``-f reply.bin``.
    """
    return [
        arg[:2] if arg.startswith("-") and not arg.startswith("--") and len(arg) > 2 else arg
        for arg in argv
    ]


def parse_config(argv: Optional[List[str]] = None) -> ResponderConfig:
    """
    Build the run configuration from the environment and ``argv``.

    Raises:
        CommandLineError: Unknown flag, or a flag without its value.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args, extras = parser.parse_known_args(normalize_argv(argv))

    # Stray words are ignored; stray flags are not.
    unknown = [arg for arg in extras if arg.startswith("-")]
    if unknown:
        raise CommandLineError(f"Unknown parameter option {unknown[0]}", 0)

    config = ResponderConfig.from_env()
    if args.port is not None:
        config.port = args.port
    if args.response_file is not None:
        config.response_file = args.response_file
    if args.log_level is not None:
        config.log_level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    try:
        config = parse_config(argv)
        ConnectionResponder(config).run()
    except CommandLineError:
        build_parser().print_help(sys.stdout)
        return 0
    except ResponderError as e:
        print(str(e), file=sys.stderr)
        return -1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return -1
    except KeyboardInterrupt:
        return 130
    return 0


def run():
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
