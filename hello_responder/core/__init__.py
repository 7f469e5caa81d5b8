"""
Core responder components
"""

from .acceptor import ConnectionAcceptor
from .response import HELLO_BODY, HELLO_RESPONSE, create_response
from .server_utils import BindError, ServerConfigError, configure_logging, parse_address

# Expose public interface
__all__ = [
    "ConnectionAcceptor",
    "HELLO_BODY",
    "HELLO_RESPONSE",
    "create_response",
    "BindError",
    "ServerConfigError",
    "configure_logging",
    "parse_address",
]
