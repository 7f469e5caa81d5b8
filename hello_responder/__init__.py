from .core import (
    ConnectionAcceptor, HELLO_BODY, HELLO_RESPONSE, create_response,
    BindError, ServerConfigError, configure_logging, parse_address
)

__version__ = '1.0.0'

__all__ = [
    # Core components
    'ConnectionAcceptor',

    # Response payload
    'HELLO_BODY',
    'HELLO_RESPONSE',
    'create_response',

    # Configuration and errors
    'BindError',
    'ServerConfigError',
    'configure_logging',
    'parse_address',
]
