"""
=============================================================================
ONE-SHOT CLIENT TRANSPORT
=============================================================================

Every request uses a brand-new TCP connection:

    connect() ──► sendall(request) ──► parse_response() ──► close()

There is no connection reuse and no retry here. Socket failures surface as
TransportError (with the OSError chained), framing problems as the matching
ProtocolError. What to do about them is the caller's decision.

=============================================================================
"""

import logging
import socket
from typing import List, Optional, Tuple

from ..errors import TransportError
from ..messages import Message, decode_messages
from ..protocol import Request, Response, parse_response


logger = logging.getLogger(__name__)


MESSAGES_URI = "/messages"


class ChatClient:
    """
    Talks to a chat server at ``(host, port)``.

    Usage:
        client = ChatClient("127.0.0.1", 8080)
        client.post_message(Message("alice", "hi"))
        messages = client.fetch_messages()
    """

    def __init__(self, host: str, port: int, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)

    def exchange(self, request: Request) -> Response:
        """
        Send one request on a fresh connection and read the response.

        Raises:
            TransportError: Connect, send or receive failed.
            ProtocolError: The response is not well framed.
        """
        try:
            sock = socket.create_connection(self.address, timeout=self.timeout)
        except OSError as e:
            raise TransportError(f"connect to {self.host}:{self.port} failed: {e}") from e

        with sock:
            try:
                sock.sendall(request.to_bytes())
                with sock.makefile("rb") as reader:
                    response = parse_response(reader)
            except OSError as e:
                raise TransportError(f"request to {self.host}:{self.port} failed: {e}") from e

        logger.debug(f"{request.method.value} {request.uri} -> {response.status.value}")
        return response

    def fetch_messages(self) -> List[Message]:
        """
        GET /messages and decode the body.

        The status code is not checked: a non-JSON body simply fails to
        decode.

        Raises:
            InvalidMessage: Body is not a JSON array of messages.
        """
        response = self.exchange(Request.get(MESSAGES_URI))
        return decode_messages(response.body)

    def post_message(self, message: Message) -> Response:
        """POST one message. The response is returned but not inspected."""
        return self.exchange(Request.post(MESSAGES_URI, message.to_json()))
