"""
=============================================================================
BACKGROUND SYNC LOOP
=============================================================================

Keeps the UI's message list fresh by polling the server:

    ┌──────────────────────────── every 100 ms ────────────────────────────┐
    │                                                                      │
    │   connect ──► GET /messages ──► parse ──► decode ──► channel.put()   │
    │                                                           │          │
    └───────────────────────────────────────────────────────────┼──────────┘
                                                                ▼
                                                   ClientUI takes the batch

The channel is a bounded queue.Queue. When the UI falls behind, put()
blocks and the poller waits for it.

FAILURE CONTRACT:

    retry=True   log the error, keep it in ``last_error``, try again next tick
    retry=False  stop the loop, keep the error in ``error``; the UI checks
                 it every frame and exits with SyncFailed

Either way the failure is a value someone can inspect. The thread is a
daemon, so without stop() it is simply abandoned when the process exits.

=============================================================================
"""

import logging
import queue
import threading
from typing import List, Optional

from ..errors import ChatError
from ..messages import Message
from .transport import ChatClient


logger = logging.getLogger(__name__)


class ClientSync:
    """
    Polls GET /messages and publishes each full list to a channel.

    Args:
        client: Transport used for each poll.
        channel: Bounded queue the UI reads from.
        interval: Seconds to sleep between polls.
        retry: Keep polling after a failure instead of stopping.
    """

    def __init__(self, client: ChatClient, channel: "queue.Queue[List[Message]]",
                 interval: float = 0.1, retry: bool = True):
        self.client = client
        self.channel = channel
        self.interval = interval
        self.retry = retry

        self.error: Optional[ChatError] = None
        self.last_error: Optional[ChatError] = None
        self.polls = 0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def failed(self) -> bool:
        """True once the loop has stopped because of an error."""
        return self.error is not None

    def poll_once(self) -> List[Message]:
        """Fetch the current list and publish it. Errors propagate."""
        messages = self.client.fetch_messages()
        self._publish(messages)
        self.polls += 1
        return messages

    def _publish(self, messages: List[Message]) -> None:
        # Block while the channel is full, but keep noticing stop()
        while not self._stop.is_set():
            try:
                self.channel.put(messages, timeout=self.interval)
                return
            except queue.Full:
                continue

    def run(self) -> None:
        """Loop until stop() or, with retry=False, until the first failure."""
        while not self._stop.is_set():
            try:
                self.poll_once()
                self.last_error = None
            except ChatError as e:
                self.last_error = e
                if not self.retry:
                    self.error = e
                    logger.error(f"Sync stopped: {type(e).__name__}: {e}")
                    return
                logger.warning(f"Sync failed, retrying: {type(e).__name__}: {e}")

            self._stop.wait(self.interval)

    def start(self) -> "ClientSync":
        self._thread = threading.Thread(target=self.run, name="sync", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout)
