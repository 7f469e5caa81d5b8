"""
Connection acceptor answering every TCP connection with a fixed response.

This module implements the responder's only moving part:
- A listening socket bound to a configured host:port
- An accept loop that never exits on its own
- One independent response task per accepted connection
- Prometheus counters for accepted connections and write failures
"""

"""
Copyright 2025 Chris Bunting
File: acceptor.py | Purpose: Accept loop and per-connection responder
@author Chris Bunting | @version 1.0.0

CHANGELOG:
2025-09-02 - Chris Bunting: Initial implementation
2025-09-04 - Chris Bunting: Log and count per-connection write failures
"""

import asyncio
import functools
import signal
import socket
import sys
from typing import Optional, Set, Tuple

from prometheus_client import Counter, Gauge

from .response import HELLO_RESPONSE
from .server_utils import (
    BindError,
    ServerConfigError,
    configure_connection_opts,
    configure_socket_opts,
    default_logger,
    format_address,
    handle_connection_error,
    parse_address,
    setup_uvloop,
    validate_port,
)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001
DEFAULT_BACKLOG = 2048
ACCEPT_ERROR_DELAY = 0.1

CONNECTIONS_ACCEPTED = Counter(
    "hello_responder_connections_total", "Total accepted connections"
)
RESPONSES_WRITTEN = Counter(
    "hello_responder_responses_total", "Responses fully written"
)
RESPONSE_ERRORS = Counter(
    "hello_responder_response_errors_total", "Responses that failed to write"
)
IN_FLIGHT = Gauge("hello_responder_in_flight_responses", "Responses being written")


class ConnectionAcceptor:
    """Accepts TCP connections and answers each with ``HELLO_RESPONSE``.

    Attributes:
        host: Host address to bind to
        port: Port number to listen on (0 picks a free port)
        backlog: Listen queue length
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 backlog: int = DEFAULT_BACKLOG):
        self.host = host
        self.port = validate_port(port)

        if isinstance(backlog, bool) or not isinstance(backlog, int):
            raise ServerConfigError("Backlog must be an integer")
        if backlog < 1:
            raise ServerConfigError("Backlog must be at least 1")
        self.backlog = backlog

        self._sock: Optional[socket.socket] = None
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_address(cls, address: str, **kwargs) -> "ConnectionAcceptor":
        """Build an acceptor from a ``host:port`` string."""
        host, port = parse_address(address)
        return cls(host, port, **kwargs)

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) actually bound. Only valid after listen()."""
        if self._sock is None:
            raise ServerConfigError("Acceptor is not listening")
        host, port = self._sock.getsockname()[:2]
        return host, port

    @property
    def in_flight(self) -> int:
        """Number of response tasks that have not finished yet."""
        return len(self._tasks)

    def listen(self) -> None:
        """Bind the listening socket and start listening.

        Raises:
            BindError: If the address cannot be resolved or bound
        """
        if self._sock is not None:
            raise ServerConfigError("Acceptor is already listening")

        try:
            infos = socket.getaddrinfo(
                self.host, self.port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE
            )
        except socket.gaierror as e:
            raise BindError(f"Cannot resolve {self.host!r}: {e}") from e
        family, socktype, proto, _, sockaddr = infos[0]

        sock = socket.socket(family, socktype, proto)
        try:
            configure_socket_opts(sock)
            sock.bind(sockaddr)
            sock.listen(self.backlog)
            sock.setblocking(False)
        except (OSError, ServerConfigError) as e:
            sock.close()
            raise BindError(
                f"Cannot listen on {format_address(self.host, self.port)}: {e}"
            ) from e

        self._sock = sock
        print(f"listening on {format_address(*self.address)}")

    async def accept_loop(self) -> None:
        """Accept connections forever, one response task per connection.

        Response tasks are not awaited. The loop only ends when the task
        running it is cancelled or the listening socket is closed.

        After a failed accept the loop sleeps for ``ACCEPT_ERROR_DELAY``
        so response tasks can run and release descriptors. Only the first
        error of a run of failures is logged at ERROR.
        """
        sock = self._sock
        if sock is None:
            raise ServerConfigError("listen() must be called before accept_loop()")
        loop = asyncio.get_running_loop()
        failing = False

        while True:
            try:
                conn, _ = await loop.sock_accept(sock)
            except OSError as e:
                if sock.fileno() == -1:
                    raise
                if failing:
                    default_logger.debug(f"Error accepting connection: {e}")
                else:
                    default_logger.error(f"Error accepting connection: {e}")
                    failing = True
                await asyncio.sleep(ACCEPT_ERROR_DELAY)
                continue

            failing = False
            CONNECTIONS_ACCEPTED.inc()
            conn.setblocking(False)
            configure_connection_opts(conn)
            self._dispatch(conn)

    def _dispatch(self, conn: socket.socket) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.respond(conn))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._response_done, conn))
        return task

    def _response_done(self, conn: socket.socket, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        # cancelled before respond() got to run
        if task.cancelled() and conn.fileno() != -1:
            conn.close()

    async def respond(self, conn: socket.socket) -> None:
        """Write the fixed response to ``conn`` and close it.

        Write failures end the task quietly; they are logged at DEBUG and
        counted, and never reach the accept loop. A response counts as
        written once the payload is sent, even if the half-close after it
        fails.
        """
        loop = asyncio.get_running_loop()
        IN_FLIGHT.inc()
        try:
            try:
                await loop.sock_sendall(conn, HELLO_RESPONSE)
            except OSError as e:
                RESPONSE_ERRORS.inc()
                handle_connection_error(conn, e)
                return
            RESPONSES_WRITTEN.inc()

            # FIN before close; unread request bytes would otherwise turn
            # the close into a bare RST.
            try:
                conn.shutdown(socket.SHUT_WR)
            except OSError as e:
                default_logger.debug(f"Error shutting down connection: {e}")
            conn.close()
        finally:
            IN_FLIGHT.dec()
            # cancelled mid-write
            if conn.fileno() != -1:
                conn.close()

    def close(self) -> None:
        """Close the listening socket. Safe to call more than once."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    async def serve(self) -> None:
        """Listen if needed and run the accept loop until cancelled."""
        if self._sock is None:
            self.listen()
        try:
            await self.accept_loop()
        finally:
            self.close()

    def run(self) -> None:
        """Blocking entry point. SIGINT/SIGTERM stop accepting and return.

        Responses still being written when the signal arrives are not
        waited for.
        """
        setup_uvloop()
        try:
            asyncio.run(self._serve_until_signal())
        except KeyboardInterrupt:
            pass

    async def _serve_until_signal(self) -> None:
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()

        if sys.platform != "win32":
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, task.cancel)
                except NotImplementedError:
                    pass

        try:
            await self.serve()
        except asyncio.CancelledError:
            default_logger.info("Shutdown requested, no longer accepting connections")
