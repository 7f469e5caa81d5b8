"""
Utility functions for responder configuration and operation.

This module provides core functionality for:
- Logging setup (plain text or JSON)
- Event loop setup with uvloop
- Listen address parsing and validation
- Socket option configuration
- Per-connection error handling

Per-connection failures are logged and contained here so that the
accept loop never sees them.
"""

import sys
import socket
import asyncio
import logging
from typing import Optional, Tuple

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "hello_responder"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
JSON_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

default_logger = logging.getLogger(LOGGER_NAME)

# Try to import uvloop for better performance on Linux/macOS
try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


class ServerConfigError(Exception):
    """Custom exception for server configuration errors"""

    pass


class BindError(ServerConfigError):
    """Raised when the listening socket cannot be bound."""

    pass


def configure_logging(level=logging.INFO, log_file=None, json_format=False):
    """Configure logging for the responder.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        json_format: Emit one JSON object per record instead of plain text

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if json_format:
        formatter = JsonFormatter(JSON_LOG_FORMAT, datefmt=DATE_FORMAT)
    else:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def setup_uvloop() -> None:
    """Configure uvloop for improved event loop performance.

    Raises:
        ServerConfigError: If uvloop setup fails

    Notes:
        Falls back to the default event loop if uvloop is unavailable
        or the platform is Windows.
    """
    if not UVLOOP_AVAILABLE or sys.platform == "win32":
        default_logger.warning("uvloop not available, using default event loop")
        return
    try:
        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
        default_logger.info("Using uvloop event loop")
    except Exception as e:
        default_logger.error(f"Failed to setup uvloop: {e}")
        raise ServerConfigError("Failed to initialize event loop") from e


def validate_port(port) -> int:
    """Return ``port`` as an int, rejecting values outside 0-65535."""
    if isinstance(port, bool) or not isinstance(port, int):
        raise ServerConfigError("Port must be an integer")
    if port < 0 or port > 65535:
        raise ServerConfigError("Port number must be between 0 and 65535")
    return port


def parse_address(address: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address.

    IPv6 hosts must be bracketed, e.g. ``[::1]:3001``.

    Raises:
        ServerConfigError: If the address is malformed
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host or not port_text:
        raise ServerConfigError(f"Invalid address {address!r}, expected host:port")

    if host.startswith("["):
        if not host.endswith("]"):
            raise ServerConfigError(f"Invalid IPv6 address {address!r}")
        host = host[1:-1]
    elif ":" in host:
        raise ServerConfigError(f"IPv6 address must be bracketed: {address!r}")

    try:
        port = int(port_text)
    except ValueError:
        raise ServerConfigError(f"Invalid port {port_text!r}") from None
    return host, validate_port(port)


def format_address(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def configure_socket_opts(sock: socket.socket) -> None:
    """Configure options on the listening socket.

    Only SO_REUSEADDR is set. SO_REUSEPORT is left off so that a second
    process cannot silently share an address that is already bound.

    Raises:
        ServerConfigError: If the option cannot be set
    """
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    except OSError as e:
        default_logger.error(f"Failed to configure socket options: {e}")
        raise ServerConfigError("Socket configuration failed") from e


def configure_connection_opts(conn: socket.socket) -> None:
    """Disable Nagle on an accepted connection. Failures are ignored."""
    try:
        conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError as e:
        default_logger.debug(f"Failed to set TCP_NODELAY: {e}")


def handle_connection_error(
    conn: socket.socket,
    error: Exception,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Handle a failed write or close on a single connection.

    Args:
        conn: The client socket
        error: Exception that occurred
        logger: Optional logger instance, defaults to the package logger

    The failure is logged at DEBUG with its traceback and the socket is
    closed. Nothing is raised, so the caller's task simply ends.
    """
    if logger is None:
        logger = default_logger

    logger.debug(f"Error writing response: {error}", exc_info=error)

    try:
        conn.close()
    except OSError as e:
        logger.debug(f"Error while closing connection: {e}")
