"""
=============================================================================
CONNECTION HANDLER
=============================================================================

One request, one response, then close. No keep-alive, no pipelining.

ROUTING TABLE:

    ┌────────┬────────────┬──────────────────────────────────────────────┐
    │ Method │ URI        │ Behaviour                                    │
    ├────────┼────────────┼──────────────────────────────────────────────┤
    │ GET    │ /messages  │ 200, JSON array of every message             │
    │ POST   │ /messages  │ body decodes → append, 200 {"status":"ok"}   │
    │        │            │ body does not decode → request fails         │
    │        │            │ no body → 400 "Invalid Message"              │
    │ other  │ other      │ 404 "Not Found"                              │
    └────────┴────────────┴──────────────────────────────────────────────┘

FAILURE ISOLATION:

Anything that goes wrong while handling a connection (bad framing, a body
that is not a message, a socket error, or a plain bug) is caught in
ConnectionHandler.__call__, logged, and ends only that connection. The
acceptor and every other connection carry on.

=============================================================================
"""

import logging

from ..errors import ChatError, TransportError
from ..messages import Message, encode_messages
from ..protocol import (
    Method,
    Request,
    Response,
    Status,
    json_response,
    parse_request,
    text_response,
)
from ..store import MessageStore
from .connection import Connection, ConnectionState


logger = logging.getLogger(__name__)


MESSAGES_URI = "/messages"
ACK_BODY = '{"status":"ok"}'


def route(request: Request, store: MessageStore) -> Response:
    """
    Map a parsed request to a response, touching the store as needed.

    Pure with respect to sockets, so it can be tested on its own.

    Raises:
        InvalidMessage: POST body is present but is not a valid message.
    """
    if request.uri == MESSAGES_URI:
        if request.method is Method.GET:
            return json_response(encode_messages(store.snapshot()))

        if request.method is Method.POST:
            if request.body is None:
                return text_response("Invalid Message", Status.BAD_REQUEST)

            # Decode before touching the store: a bad body never mutates it
            message = Message.from_json(request.body)
            store.append(message)
            return json_response(ACK_BODY)

    return text_response("Not Found", Status.NOT_FOUND)


class ConnectionHandler:
    """
    Runs the request/response cycle for accepted connections.

    One handler instance is shared by every connection thread. It holds
    the server's single MessageStore.

    Usage:
        handler = ConnectionHandler(store)
        threading.Thread(target=handler, args=(conn,)).start()
    """

    def __init__(self, store: MessageStore):
        self.store = store

    def handle(self, conn: Connection) -> Response:
        """
        Parse, route, respond, close. Errors propagate to the caller.

        Returns:
            The response that was sent.
        """
        with conn:
            try:
                request = parse_request(conn.reader)
            except OSError as e:
                raise TransportError(f"receive from {conn.peer} failed: {e}") from e

            conn.state = ConnectionState.PROCESSING
            response = route(request, self.store)

            conn.send(response.to_bytes())

        logger.debug(
            f"[{conn.id}] {request.method.value} {request.uri} -> "
            f"{response.status.value} {response.status.phrase}"
        )
        return response

    def __call__(self, conn: Connection) -> None:
        """
        Connection-thread entry point.

        This is the failure boundary: errors are logged here and never
        leave the thread.
        """
        try:
            self.handle(conn)
        except ChatError as e:
            logger.warning(f"[{conn.id}] Failed to handle {conn.peer}: {type(e).__name__}: {e}")
        except Exception as e:
            logger.exception(f"[{conn.id}] Unexpected error handling {conn.peer}: {e}")
