"""
=============================================================================
CHAT SERVER
=============================================================================

Ties the server pieces together:

    ┌──────────────────────────────────────────────────────────────┐
    │                        ChatServer                            │
    │                                                              │
    │   ServerConfig ──► Acceptor ──► thread per connection        │
    │                                     │                        │
    │                                     ▼                        │
    │                          ConnectionHandler(store)            │
    │                                     │                        │
    │                                     ▼                        │
    │                               MessageStore                   │
    └──────────────────────────────────────────────────────────────┘

The store is created here and owned by the server instance. Nothing about
it is global, so two servers in one process (as in the tests) never share
messages.

=============================================================================
"""

import logging
import signal
import threading
from typing import Optional, Tuple

from ..config import ServerConfig, setup_logging
from ..store import MessageStore
from .acceptor import Acceptor
from .handler import ConnectionHandler


logger = logging.getLogger(__name__)


class ChatServer:
    """
    The chat server.

    Usage:
        server = ChatServer(ServerConfig(port=8080))
        server.run()              # blocks until Ctrl+C / SIGTERM

    Or in the background (tests):
        server = ChatServer(ServerConfig(port=0))
        host, port = server.start()
        ...
        server.stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None,
                 store: Optional[MessageStore] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on bad config

        self.store = store if store is not None else MessageStore()
        self.handler = ConnectionHandler(self.store)
        self._acceptor = Acceptor(self.config, self.handler)
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self._acceptor.address

    @property
    def is_running(self) -> bool:
        return self._acceptor.is_running

    # =========================================================================
    # FOREGROUND
    # =========================================================================

    def run(self) -> None:
        """Bind and serve in the current thread until interrupted."""
        setup_logging(self.config.log_level)

        self._acceptor.bind()
        self._install_signal_handlers()

        try:
            self._acceptor.serve_forever()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            self._acceptor.shutdown()
        finally:
            logger.info(f"Server stopped with {len(self.store)} messages in memory")

    def _install_signal_handlers(self) -> None:
        # signal.signal only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self._acceptor.shutdown()

        signal.signal(signal.SIGTERM, shutdown_handler)

    # =========================================================================
    # BACKGROUND
    # =========================================================================

    def start(self, timeout: float = 5.0) -> Tuple[str, int]:
        """
        Bind, then serve from a daemon thread.

        Returns:
            The bound (host, port).
        """
        address = self._acceptor.bind()
        self._thread = threading.Thread(
            target=self._acceptor.serve_forever,
            name="acceptor",
            daemon=True,
        )
        self._thread.start()
        if not self._acceptor.wait_until_ready(timeout):
            raise RuntimeError("Server failed to start")
        return address

    def stop(self, timeout: float = 5.0) -> None:
        self._acceptor.shutdown()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout)
        self._thread = None
