"""
=============================================================================
TERMINAL UI
=============================================================================

A single loop, one iteration per frame:

    ┌────────────────────────────────────────────────────────────────┐
    │ 1. render messages + input buffer                              │
    │ 2. wait up to one frame for a new batch from the sync channel  │
    │ 3. poll the keyboard (one frame timeout)                       │
    │       Enter   → POST the buffer on a new connection            │
    │       Ctrl-C  → return                                         │
    │       other   → edit the buffer                                │
    └────────────────────────────────────────────────────────────────┘

    ┌ Messages ───────────────────────────────────────────────┐
    │alice: hi                                                │
    │bob: hello                                               │
    └─────────────────────────────────────────────────────────┘
    ┌ Input ──────────────────────────────────────────────────┐
    │how are yo_                                              │
    └─────────────────────────────────────────────────────────┘

A failed POST is not caught here: it ends the loop and the caller decides
what to do. The screen is passed in, so tests drive the loop with a fake
object that records addstr() calls and replays keys from get_wch().

=============================================================================
"""

import curses
import logging
import queue
from typing import List, Optional, Union

from ..errors import SyncFailed
from ..messages import Message
from .sync import ClientSync
from .transport import ChatClient


logger = logging.getLogger(__name__)


CTRL_C = "\x03"
ENTER_KEYS = ("\n", "\r", curses.KEY_ENTER)
BACKSPACE_KEYS = ("\x7f", "\x08", curses.KEY_BACKSPACE)

Key = Union[str, int]


def safe_addstr(screen, y: int, x: int, text: str, attr: int = 0) -> None:
    """addstr that ignores writes past the screen edge."""
    try:
        screen.addstr(y, x, text, attr)
    except curses.error:
        pass


def printable(text: str) -> str:
    """Replace control characters so one message stays on one screen line."""
    return "".join(c if c.isprintable() else " " for c in text)


def draw_box(screen, y: int, x: int, height: int, width: int, title: str) -> None:
    """Draw a bordered box with a title in its top edge."""
    if height < 2 or width < 2:
        return
    inner = width - 2
    label = f" {title} "[:inner]
    safe_addstr(screen, y, x, "┌" + label + "─" * (inner - len(label)) + "┐")
    for row in range(1, height - 1):
        safe_addstr(screen, y + row, x, "│")
        safe_addstr(screen, y + row, x + width - 1, "│")
    safe_addstr(screen, y + height - 1, x, "└" + "─" * inner + "┘")


class ClientUI:
    """
    Interactive chat screen.

    Args:
        user: Name attached to every message sent.
        client: Transport for POSTs.
        channel: Batches published by ClientSync.
        sync: The sync loop, checked each frame for a fatal error.
        frame: Seconds for both the channel wait and the key poll.
    """

    def __init__(self, user: str, client: ChatClient,
                 channel: "queue.Queue[List[Message]]",
                 sync: Optional[ClientSync] = None, frame: float = 0.1):
        self.user = user
        self.client = client
        self.channel = channel
        self.sync = sync
        self.frame = frame

        self.messages: List[Message] = []
        self.input = ""
        self.sent = 0

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def setup(self, screen) -> None:
        """Terminal modes for the chat screen."""
        # raw: Ctrl-C arrives as a key instead of SIGINT
        curses.raw()
        curses.noecho()
        try:
            curses.curs_set(1)
        except curses.error:
            pass  # Terminal cannot show a cursor
        screen.keypad(True)
        screen.timeout(int(self.frame * 1000))

    def main(self, screen) -> None:
        """Entry point for curses.wrapper()."""
        self.setup(screen)
        self.run(screen)

    def run(self, screen) -> None:
        """
        Frame loop. Returns on Ctrl-C.

        Raises:
            SyncFailed: The sync loop stopped after an error.
            ChatError: Sending a message failed.
        """
        while True:
            if self.sync is not None and self.sync.failed:
                raise SyncFailed(f"message sync stopped: {self.sync.error}") from self.sync.error

            self.render(screen)
            self.receive()

            key = self.read_key(screen)
            if key is None:
                continue
            if not self.handle_key(key):
                return

    def receive(self) -> bool:
        """
        Wait up to one frame for a batch and keep only the newest.

        Returns:
            True if the message list was replaced.
        """
        try:
            batch = self.channel.get(timeout=self.frame)
        except queue.Empty:
            return False

        # Drain anything else that queued up, the last batch is the freshest
        while True:
            try:
                batch = self.channel.get_nowait()
            except queue.Empty:
                break

        self.messages = batch
        return True

    def read_key(self, screen) -> Optional[Key]:
        try:
            return screen.get_wch()
        except curses.error:
            return None  # Poll timed out

    # =========================================================================
    # INPUT
    # =========================================================================

    def handle_key(self, key: Key) -> bool:
        """
        Apply one key press.

        Returns:
            False when the UI should exit.
        """
        if key == CTRL_C:
            return False

        if key in ENTER_KEYS:
            self.submit()
        elif key in BACKSPACE_KEYS:
            self.input = self.input[:-1]
        elif isinstance(key, str) and key.isprintable():
            self.input += key

        return True

    def submit(self) -> None:
        """POST the input buffer on a new connection and clear it."""
        text, self.input = self.input, ""
        if not text:
            return

        # Response is discarded, there is no ack check
        self.client.post_message(Message(user=self.user, message=text))
        self.sent += 1
        logger.debug(f"Sent message #{self.sent}")

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render(self, screen) -> None:
        screen.erase()
        height, width = screen.getmaxyx()

        # One-cell margin around both panes
        top, left = 1, 1
        inner_height = max(height - 2, 0)
        inner_width = max(width - 2, 0)

        input_height = 3
        messages_height = max(inner_height - input_height, 2)

        title = "Messages"
        if self.sync is not None and self.sync.last_error is not None:
            title = f"Messages (sync error: {type(self.sync.last_error).__name__})"
        draw_box(screen, top, left, messages_height, inner_width, title)

        visible = self.message_lines(messages_height - 2)
        for row, line in enumerate(visible):
            safe_addstr(screen, top + 1 + row, left + 1, line[:max(inner_width - 2, 0)])

        input_top = top + messages_height
        draw_box(screen, input_top, left, input_height, inner_width, f"Input ({self.user})")

        text = self.visible_input(inner_width - 3)
        safe_addstr(screen, input_top + 1, left + 1, text)
        try:
            screen.move(input_top + 1, left + 1 + len(text))
        except curses.error:
            pass

        screen.refresh()

    def message_lines(self, rows: int) -> List[str]:
        """The newest messages that fit in ``rows`` lines."""
        if rows <= 0:
            return []
        lines = [printable(f"{m.user}: {m.message}") for m in self.messages]
        return lines[-rows:]

    def visible_input(self, width: int) -> str:
        """Tail of the input buffer that fits, so the cursor stays visible."""
        if width <= 0:
            return ""
        return self.input[-width:]
