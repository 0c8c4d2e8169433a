"""
=============================================================================
ACCEPTOR
=============================================================================

Binds the listening socket and accepts connections forever, handing each
one to its own thread.

    ┌───────────────────────┐
    │   Listening Socket    │ ◄── bound once at startup
    └───────────┬───────────┘
                │ accept()
        ┌───────┼───────────────┬───────────────┐
        ▼       ▼               ▼               ▼
    Thread 1  Thread 2  ...  Thread N       (no upper bound)
        │       │               │
        └───────┴───────┬───────┘
                        ▼
                 shared MessageStore

The accept loop never waits on request processing: it spawns a thread and
goes straight back to accept(). There is no cap on concurrent connections
and no per-connection timeout.

SHUTDOWN:

accept() is given a 1-second timeout so the loop can notice shutdown()
called from another thread or from a signal handler. Connection threads
are daemons, so in-flight requests are abandoned at process exit.

=============================================================================
"""

import logging
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class Acceptor:
    """
    TCP accept loop with one thread per connection.

    Usage:
        acceptor = Acceptor(config, ConnectionHandler(store))
        acceptor.bind()
        acceptor.serve_forever()   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig, handler: Callable[[Connection], None]):
        self.config = config
        self.handler = handler

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._stopped = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Actual bound (host, port), useful when binding to port 0."""
        if self._socket is None:
            return self.config.address
        host, port = self._socket.getsockname()[:2]
        return (host, port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are small, send them without Nagle's delay
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Lets the accept loop check _running once a second
        sock.settimeout(1.0)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and listen.

        Returns:
            The bound address.

        Raises:
            OSError: If the address is in use or not permitted.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind(self.config.address)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        return self.address

    def serve_forever(self) -> None:
        """Accept connections until shutdown() is called. Blocks."""
        if self._socket is None:
            self.bind()

        self._running = True
        self._stopped.clear()
        self._ready.set()

        try:
            self._accept_loop()
        finally:
            self._cleanup()

    def _accept_loop(self) -> None:
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            conn = Connection(socket=client_socket, address=client_address)
            logger.info(f"[{conn.id}] Accepted connection from {conn.peer}")

            thread = threading.Thread(
                target=self.handler,
                args=(conn,),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            thread.start()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. Used by tests."""
        return self._ready.wait(timeout)

    def shutdown(self) -> None:
        """Stop accepting. Safe to call more than once and from any thread."""
        if self._running:
            logger.info("Shutting down acceptor...")
        self._running = False

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

    def _cleanup(self) -> None:
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._ready.clear()
        self._stopped.set()
        logger.info("Acceptor stopped")
