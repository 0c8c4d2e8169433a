"""
Unit tests for the curses client UI, driven through a fake screen.
"""

import curses
import queue

import pytest

from tinychat.client.app import prompt_username
from tinychat.client.ui import CTRL_C, ClientUI, draw_box
from tinychat.errors import SyncFailed, TransportError
from tinychat.messages import Message


class FakeScreen:
    """Records drawing calls and replays a scripted list of keys."""

    def __init__(self, keys=(), height=12, width=40):
        self.keys = list(keys)
        self.height = height
        self.width = width
        self.rows = {}
        self.cursor = None
        self.refreshes = 0

    def get_wch(self):
        if not self.keys:
            return CTRL_C
        key = self.keys.pop(0)
        if key is None:
            raise curses.error("no input")
        return key

    def erase(self):
        self.rows = {}

    def getmaxyx(self):
        return (self.height, self.width)

    def addstr(self, y, x, text, attr=0):
        if y >= self.height or x >= self.width:
            raise curses.error("addstr out of bounds")
        row = self.rows.get(y, " " * self.width)
        row = row[:x] + text + row[x + len(text):]
        self.rows[y] = row[:self.width]

    def move(self, y, x):
        self.cursor = (y, x)

    def refresh(self):
        self.refreshes += 1

    def keypad(self, flag):
        pass

    def timeout(self, ms):
        pass

    def text(self) -> str:
        return "\n".join(self.rows.get(y, "") for y in range(self.height))


class FakeClient:
    def __init__(self, fail=False):
        self.posted = []
        self.fail = fail

    def post_message(self, message):
        if self.fail:
            raise TransportError("connection refused")
        self.posted.append(message)


class FakeSync:
    def __init__(self, error=None, last_error=None):
        self.error = error
        self.last_error = last_error

    @property
    def failed(self):
        return self.error is not None


@pytest.fixture
def channel():
    return queue.Queue(maxsize=100)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def ui(fake_client, channel):
    return ClientUI("alice", fake_client, channel, frame=0.01)


class TestKeys:
    """Tests for ClientUI.handle_key()."""

    def test_typing_appends(self, ui):
        for key in "hi there":
            assert ui.handle_key(key) is True

        assert ui.input == "hi there"

    def test_ctrl_c_exits(self, ui):
        assert ui.handle_key("\x03") is False

    @pytest.mark.parametrize("key", ["\x7f", "\x08", curses.KEY_BACKSPACE])
    def test_backspace(self, ui, key):
        ui.input = "abc"
        ui.handle_key(key)
        assert ui.input == "ab"

    def test_backspace_on_empty(self, ui):
        ui.handle_key("\x7f")
        assert ui.input == ""

    def test_other_special_keys_ignored(self, ui):
        ui.handle_key(curses.KEY_LEFT)
        ui.handle_key("\x1b")
        assert ui.input == ""

    @pytest.mark.parametrize("key", ["\n", "\r", curses.KEY_ENTER])
    def test_enter_posts_and_clears(self, ui, fake_client, key):
        ui.input = "hello"

        ui.handle_key(key)

        assert fake_client.posted == [Message("alice", "hello")]
        assert ui.input == ""
        assert ui.sent == 1

    def test_enter_on_empty_sends_nothing(self, ui, fake_client):
        ui.handle_key("\n")
        assert fake_client.posted == []

    def test_post_failure_propagates(self, channel):
        ui = ClientUI("alice", FakeClient(fail=True), channel, frame=0.01)
        ui.input = "hello"

        with pytest.raises(TransportError):
            ui.handle_key("\n")


class TestReceive:
    """Tests for ClientUI.receive()."""

    def test_nothing_queued(self, ui):
        assert ui.receive() is False
        assert ui.messages == []

    def test_keeps_newest_batch(self, ui, channel):
        channel.put([Message("a", "1")])
        channel.put([Message("a", "1"), Message("b", "2")])

        assert ui.receive() is True
        assert ui.messages == [Message("a", "1"), Message("b", "2")]
        assert channel.empty()


class TestRender:
    """Tests for ClientUI.render()."""

    def test_messages_and_input_drawn(self, ui):
        ui.messages = [Message("alice", "hi"), Message("bob", "hello")]
        ui.input = "typing"
        screen = FakeScreen()

        ui.render(screen)

        text = screen.text()
        assert "Messages" in text
        assert "alice: hi" in text
        assert "bob: hello" in text
        assert "typing" in text
        assert screen.refreshes == 1

    def test_only_newest_lines_fit(self, ui):
        ui.messages = [Message("u", str(i)) for i in range(50)]
        screen = FakeScreen(height=12)

        ui.render(screen)

        text = screen.text()
        assert "u: 49" in text
        assert "u: 44" not in text

    def test_cursor_after_input(self, ui):
        ui.input = "abc"
        screen = FakeScreen()

        ui.render(screen)

        y, x = screen.cursor
        assert screen.rows[y][x - 3:x] == "abc"

    def test_sync_error_in_title(self, fake_client, channel):
        sync = FakeSync(last_error=TransportError("down"))
        ui = ClientUI("alice", fake_client, channel, sync=sync, frame=0.01)
        screen = FakeScreen(width=60)

        ui.render(screen)

        assert "sync error: TransportError" in screen.text()

    def test_multiline_message_stays_on_one_row(self, ui):
        """Test that control characters in a message do not break the layout."""
        ui.messages = [Message("bob", "he said\nthen left\ttoo")]
        screen = FakeScreen(width=60)

        ui.render(screen)

        rows = [row for row in screen.rows.values() if "bob:" in row]
        assert len(rows) == 1
        assert "bob: he said then left too" in rows[0]
        assert rows[0].rstrip().endswith("│")

    def test_tiny_screen_does_not_crash(self, ui):
        ui.messages = [Message("alice", "hi")]
        ui.render(FakeScreen(height=3, width=4))

    def test_draw_box(self):
        screen = FakeScreen(height=5, width=20)

        draw_box(screen, 0, 0, 3, 10, "T")

        assert screen.rows[0] == "┌ T ─────┐" + " " * 10
        assert screen.rows[2].startswith("└────────┘")


class TestRunLoop:
    """Tests for ClientUI.run()."""

    def test_exits_on_ctrl_c(self, ui, fake_client):
        screen = FakeScreen(keys=["h", "i", None, "\n", "\x03"])

        ui.run(screen)

        assert fake_client.posted == [Message("alice", "hi")]

    def test_shows_published_messages(self, ui, channel):
        channel.put([Message("bob", "yo")])
        screen = FakeScreen(keys=[None, None])

        ui.run(screen)

        assert ui.messages == [Message("bob", "yo")]

    def test_sync_failure_ends_loop(self, fake_client, channel):
        error = TransportError("down")
        ui = ClientUI("alice", fake_client, channel, sync=FakeSync(error=error), frame=0.01)

        with pytest.raises(SyncFailed) as exc_info:
            ui.run(FakeScreen(keys=["x"]))

        assert exc_info.value.__cause__ is error


class TestPromptUsername:
    """Tests for prompt_username()."""

    def test_returns_name(self):
        assert prompt_username(lambda prompt: "alice") == "alice"

    def test_reprompts_until_non_empty(self):
        answers = iter(["", "   ", " bob "])
        assert prompt_username(lambda prompt: next(answers)) == "bob"

    def test_eof_gives_none(self):
        def closed(prompt):
            raise EOFError

        assert prompt_username(closed) is None
