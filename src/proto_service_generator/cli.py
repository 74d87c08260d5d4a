"""Command-line interface for generating Java service classes from protobuf schemas.

Notes:
    - Without arguments the generator behaves as a protoc plugin, reading a `CodeGeneratorRequest` from stdin
      and writing a `CodeGeneratorResponse` to stdout. Logging therefore goes to stderr.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from proto_service_generator.run import run

logger = logging.getLogger(__name__)

LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_parser() -> argparse.ArgumentParser:
    """Setup for the parser.

    Returns:
        argparse.ArgumentParser: The parser after setup.
    """
    parser = argparse.ArgumentParser(
        description="Generate Java dispatcher and client classes for protobuf services (protoc plugin)."
    )

    parser.add_argument(
        "-r",
        "--request",
        type=str,
        default=None,
        help="path to a serialized CodeGeneratorRequest; read from stdin if omitted.",
    )

    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=None,
        help="directory to write generated sources to, instead of writing a response to stdout.",
    )

    parser.add_argument(
        "-p",
        "--parameter",
        type=str,
        default=None,
        help="generator options as 'key=value,...', replacing the parameter of the request.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbosity",
        default=0,
        action="count",
        help="increase logging verbosity (-v for info, -vv for debug).",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the service generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    parser = setup_parser()
    args = parser.parse_args(argv)

    level = LOG_LEVELS[min(args.verbosity, len(LOG_LEVELS) - 1)]
    logging.basicConfig(level=level, format="%(name)s %(levelname)s: %(message)s")

    return run(args)
