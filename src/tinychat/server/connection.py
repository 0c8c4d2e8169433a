"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for exactly one request/response cycle.

    ┌─────────┐  reader   ┌─────────┐  route   ┌────────────┐  send  ┌─────────┐
    │   NEW   │ ────────► │ READING │ ───────► │ PROCESSING │ ─────► │ WRITING │
    └─────────┘           └─────────┘          └────────────┘        └────┬────┘
                                                                          │
                                                          close()         ▼
                                                                     ┌─────────┐
                                                                     │ CLOSED  │
                                                                     └─────────┘

There is no KEEP_ALIVE state: after the response the connection always
closes. There is also no read timeout. A client that connects and never
sends a full request line keeps its thread blocked in READING until it
disconnects. That is a known resource-exhaustion gap, not something this
class tries to paper over.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional

from ..errors import TransportError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle of a single connection, mostly for logging."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One accepted client socket.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port).
        id: Short id used to correlate log lines.
        state: Current lifecycle state.
        created_at: When the connection was accepted.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # Blocking with no timeout: the protocol has no per-connection deadline
        self.socket.settimeout(None)

    @property
    def peer(self) -> str:
        return f"{self.address[0]}:{self.address[1]}"

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    @property
    def reader(self) -> BinaryIO:
        """
        Buffered binary stream over the socket.

        The request parser pulls lines and exact-length bodies from this.
        """
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
        self.state = ConnectionState.READING
        return self._reader

    def send(self, data: bytes) -> None:
        """
        Write the whole response.

        Raises:
            TransportError: If the client went away mid-write.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError(f"send to {self.peer} failed: {e}") from e

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) first so the client sees EOF right after the
        response, then drain whatever it still sends so the kernel does not
        answer unread bytes with a reset.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        if self._reader is not None:
            self._reader.close()
        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
