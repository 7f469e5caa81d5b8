#!/usr/bin/env python3
"""
Command line entry point for the hello-world responder.
"""

import argparse
import logging
import os
import sys

from prometheus_client import start_http_server

from .core.acceptor import ConnectionAcceptor, DEFAULT_BACKLOG
from .core.server_utils import ServerConfigError, configure_logging

ADDRESS_ENV_VAR = "HELLO_RESPONDER_ADDRESS"
DEFAULT_ADDRESS = "127.0.0.1:3001"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Answer every TCP connection with a fixed HTTP 200 hello world"
    )

    parser.add_argument(
        "--address",
        default=os.environ.get(ADDRESS_ENV_VAR, DEFAULT_ADDRESS),
        help=f"host:port to listen on (default: ${ADDRESS_ENV_VAR} or {DEFAULT_ADDRESS})",
    )
    parser.add_argument(
        "--backlog",
        type=int,
        default=DEFAULT_BACKLOG,
        help=f"Listen queue length (default: {DEFAULT_BACKLOG})",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON objects"
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Serve Prometheus metrics on this port (disabled by default)",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the responder until interrupted.

    Returns:
        Process exit status; 1 when the configuration is invalid or the
        address cannot be bound.
    """
    args = parse_args(argv)
    logger = configure_logging(
        level=getattr(logging, args.log_level),
        log_file=args.log_file,
        json_format=args.json_logs,
    )

    try:
        acceptor = ConnectionAcceptor.from_address(args.address, backlog=args.backlog)
        if args.metrics_port is not None:
            start_http_server(args.metrics_port)
            logger.info(f"Serving metrics on port {args.metrics_port}")
        acceptor.run()
    except (ServerConfigError, OSError) as e:
        logger.error(f"Startup failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
