"""
Integration tests for the client transport and sync loop.
"""

import queue
import socket
import time

import pytest

from tinychat.client import ChatClient, ClientSync
from tinychat.errors import InvalidMessage, TransportError
from tinychat.messages import Message, decode_messages
from tinychat.protocol import Status
from tinychat.server import ChatServer


@pytest.fixture
def closed_port() -> int:
    """A port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestChatClient:
    """Tests for ChatClient against a live server."""

    def test_fetch_empty(self, client: ChatClient):
        assert client.fetch_messages() == []

    def test_post_and_fetch(self, client: ChatClient, chat_server: ChatServer):
        response = client.post_message(Message("alice", "hi"))

        assert response.status is Status.OK
        assert response.body == '{"status":"ok"}'
        assert client.fetch_messages() == [Message("alice", "hi")]

    def test_message_text_is_escaped(self, client: ChatClient):
        """Test that quotes and newlines survive the trip."""
        text = 'he said "hi"\nthen left'

        client.post_message(Message("bob", text))

        assert client.fetch_messages() == [Message("bob", text)]

    def test_non_ascii_round_trip(self, client: ChatClient):
        client.post_message(Message("zoë", "привет 👋"))
        assert client.fetch_messages() == [Message("zoë", "привет 👋")]

    def test_connection_refused(self, closed_port: int):
        client = ChatClient("127.0.0.1", closed_port, timeout=1.0)

        with pytest.raises(TransportError) as exc_info:
            client.fetch_messages()

        assert isinstance(exc_info.value.__cause__, OSError)


class TestClientSync:
    """Tests for ClientSync."""

    def test_publishes_full_list(self, client: ChatClient):
        client.post_message(Message("a", "1"))
        client.post_message(Message("b", "2"))
        channel = queue.Queue(maxsize=100)
        sync = ClientSync(client, channel, interval=0.01)

        assert sync.poll_once() == [Message("a", "1"), Message("b", "2")]
        assert channel.get_nowait() == [Message("a", "1"), Message("b", "2")]
        assert sync.polls == 1

    def test_background_loop(self, client: ChatClient):
        channel = queue.Queue(maxsize=100)
        sync = ClientSync(client, channel, interval=0.01).start()
        try:
            client.post_message(Message("a", "1"))

            def saw_message():
                try:
                    return channel.get(timeout=0.1) == [Message("a", "1")]
                except queue.Empty:
                    return False

            assert wait_for(saw_message)
        finally:
            sync.stop(timeout=1.0)

    def test_stop_while_channel_full(self, client: ChatClient):
        """Test that a full channel does not keep the thread alive after stop()."""
        channel = queue.Queue(maxsize=1)
        sync = ClientSync(client, channel, interval=0.01).start()

        assert wait_for(channel.full)
        sync.stop(timeout=2.0)

        assert not sync._thread.is_alive()

    def test_retry_keeps_polling(self, closed_port: int):
        channel = queue.Queue(maxsize=100)
        sync = ClientSync(ChatClient("127.0.0.1", closed_port), channel, interval=0.01).start()
        try:
            assert wait_for(lambda: sync.last_error is not None)
            assert sync.failed is False
            assert sync._thread.is_alive()
        finally:
            sync.stop(timeout=1.0)

    def test_fail_fast_stops_on_first_error(self, closed_port: int):
        channel = queue.Queue(maxsize=100)
        sync = ClientSync(ChatClient("127.0.0.1", closed_port), channel,
                          interval=0.01, retry=False).start()

        assert wait_for(lambda: sync.failed)
        sync.stop(timeout=1.0)

        assert isinstance(sync.error, TransportError)
        assert channel.empty()
        assert sync.polls == 0

    def test_fail_fast_on_undecodable_body(self):
        """Test that a body the JSON decoder cannot follow still stops the loop cleanly."""

        class NestedBodyClient:
            def fetch_messages(self):
                return decode_messages("[" * 100000)

        channel = queue.Queue(maxsize=100)
        sync = ClientSync(NestedBodyClient(), channel, interval=0.01, retry=False).start()

        assert wait_for(lambda: sync.failed)
        sync.stop(timeout=1.0)

        assert isinstance(sync.error, InvalidMessage)
        assert not sync._thread.is_alive()
