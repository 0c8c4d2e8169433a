"""
pytest configuration and fixtures.
"""

import io
import socket
from typing import Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinychat import MessageStore, ServerConfig
from tinychat.client import ChatClient
from tinychat.server import ChatServer


ALICE_BODY = b'{"user":"alice","message":"hi"}'


def post_bytes(body: bytes, uri: str = "/messages") -> bytes:
    """Raw POST request carrying ``body`` with a matching Content-Length."""
    return (
        f"POST {uri} HTTP/1.1\r\n".encode()
        + b"Host: localhost\r\n"
        + b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


def send_raw(address: Tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes on a fresh connection and read until the server closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        # Half-close so a server waiting on a short body sees EOF
        sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def make_post():
    return post_bytes


@pytest.fixture
def raw_exchange():
    return send_raw


@pytest.fixture
def stream():
    """Wrap raw bytes in a binary stream the parsers can read from."""
    return io.BytesIO


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample GET /messages request, as the client sends it."""
    return b"GET /messages HTTP/1.1\r\nHost: localhost\r\n\r\n"


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST /messages request with a JSON body."""
    return post_bytes(ALICE_BODY)


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def chat_server() -> Generator[ChatServer, None, None]:
    """A live server on a free port, stopped after the test."""
    server = ChatServer(ServerConfig(host="127.0.0.1", port=0, log_level="WARNING"))
    server.start()

    yield server

    server.stop()


@pytest.fixture
def client(chat_server: ChatServer) -> ChatClient:
    host, port = chat_server.address
    return ChatClient(host, port, timeout=5.0)
