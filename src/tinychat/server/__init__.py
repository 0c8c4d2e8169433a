"""
Server side of tinychat.

    connection.py  One accepted socket and its lifecycle state
    handler.py     route() and the per-connection request/response cycle
    acceptor.py    Listening socket and thread-per-connection accept loop
    app.py         ChatServer, which owns the store and wires it all up
"""

from .acceptor import Acceptor
from .app import ChatServer
from .connection import Connection, ConnectionState
from .handler import ConnectionHandler, route

__all__ = [
    "Acceptor",
    "ChatServer",
    "Connection",
    "ConnectionState",
    "ConnectionHandler",
    "route",
]
