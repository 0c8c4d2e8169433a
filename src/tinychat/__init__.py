"""
=============================================================================
TINYCHAT - Minimal Chat Server and Terminal Client
=============================================================================

A chat server that keeps an in-memory, append-only log of messages, and a
terminal client that polls it. Both speak a small HTTP-shaped protocol
directly over TCP sockets.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌──────────────────────────────┐            ┌──────────────────────────┐
    │            CLIENT            │            │          SERVER          │
    │                              │            │                          │
    │  ClientSync ── GET /messages ┼──── TCP ──►│  Acceptor                │
    │      │        every 100 ms   │            │     │ thread per conn    │
    │      ▼                       │            │     ▼                    │
    │  bounded channel             │            │  ConnectionHandler       │
    │      │                       │            │     │                    │
    │      ▼                       │            │     ▼                    │
    │  ClientUI ─── POST /messages ┼──── TCP ──►│  MessageStore (locked)   │
    │   (curses)    on Enter       │            │                          │
    └──────────────────────────────┘            └──────────────────────────┘

Every request opens a new connection and every connection carries exactly
one request and one response.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    tinychat/
    ├── protocol/     Request/response framing (parse + serialize)
    ├── server/       Acceptor, per-connection handler, ChatServer
    ├── client/       Transport, sync loop, curses UI
    ├── messages.py   Message value type and JSON encoding
    ├── store.py      Thread-safe append-only MessageStore
    ├── config.py     ServerConfig / ClientConfig, logging setup
    └── errors.py     Exception taxonomy

=============================================================================
QUICK START
=============================================================================

    # Terminal 1
    python -m tinychat server --port 8080

    # Terminal 2
    python -m tinychat client --port 8080 --user alice

=============================================================================
"""

from .config import ClientConfig, ServerConfig
from .errors import (
    ApplicationError,
    ChatError,
    ProtocolError,
    TransportError,
)
from .messages import Message
from .store import MessageStore

__version__ = "1.0.0"

__all__ = [
    "ChatError",
    "ProtocolError",
    "ApplicationError",
    "TransportError",
    "ClientConfig",
    "ServerConfig",
    "Message",
    "MessageStore",
    "__version__",
]
