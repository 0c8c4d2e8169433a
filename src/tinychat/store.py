"""
=============================================================================
MESSAGE STORE
=============================================================================

The single piece of shared state on the server: an append-only list of
chat messages guarded by one lock.

    Connection thread 1 ──► append(msg) ──┐
                                          │      ┌──────────────────┐
    Connection thread 2 ──► snapshot() ───┼────► │ Lock             │
                                          │      │ [m0, m1, m2, ...]│
    Connection thread 3 ──► append(msg) ──┘      └──────────────────┘

RULES:
    - The lock is held only while touching the list, never across socket I/O.
    - snapshot() returns a copy, so callers can JSON-encode and write it out
      without holding the lock.
    - No read/write lock split: every access is mutually exclusive.

Because append and copy both happen under the same lock, a snapshot always
contains every append that finished before it started, and nothing that
started after it finished.

=============================================================================
"""

import threading
from typing import List

from .messages import Message


class MessageStore:
    """
    Thread-safe, append-only, unbounded list of messages.

    One instance is created per server and handed to every connection
    handler. It is never a module-level global.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        """Add a message to the end of the log. Always succeeds."""
        with self._lock:
            self._messages.append(message)

    def snapshot(self) -> List[Message]:
        """Return a detached copy of every message appended so far."""
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
