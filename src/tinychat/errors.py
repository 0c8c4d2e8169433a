"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the chat protocol can produce is one of three kinds:

    ┌─────────────────┬───────────────────────────────────────────────────┐
    │  Kind           │ Raised when                                       │
    ├─────────────────┼───────────────────────────────────────────────────┤
    │  ProtocolError  │ The bytes on the wire do not follow the framing   │
    │                 │ rules (bad method, bad Content-Length, unknown    │
    │                 │ status code, missing body, short body read, ...)  │
    │  ApplicationError│ The framing is fine but the payload is not a     │
    │                 │ valid chat message                                │
    │  TransportError │ The socket itself failed (refused, reset, closed) │
    └─────────────────┴───────────────────────────────────────────────────┘

The server catches all of them at the connection boundary and drops only
that connection. The client lets them propagate to whoever started the loop.

=============================================================================
"""


class ChatError(Exception):
    """Base class for every error raised by tinychat."""


# =============================================================================
# PROTOCOL ERRORS
# =============================================================================

class ProtocolError(ChatError):
    """The peer sent bytes that do not follow the wire format."""


class UnsupportedMethod(ProtocolError):
    """Request method token is neither GET nor POST."""

    def __init__(self, method: str):
        super().__init__(f"unsupported method: {method}")
        self.method = method


class MalformedRequestLine(ProtocolError):
    """Request line is missing its method or URI token."""


class MalformedHeader(ProtocolError):
    """Header line has no ':' separator or is not valid UTF-8."""


class InvalidContentLength(ProtocolError):
    """Content-Length value is not an unsigned integer."""

    def __init__(self, value: str):
        super().__init__(f"invalid Content-Length: {value!r}")
        self.value = value


class MalformedStatusLine(ProtocolError):
    """Status line is missing its code or the code is not an integer."""


class UnknownStatusCode(ProtocolError):
    """Status code is an integer outside the 200/400/404 table."""

    def __init__(self, code: int):
        super().__init__(f"unknown status code: {code}")
        self.code = code


class MissingBody(ProtocolError):
    """Response carries no Content-Length header."""


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================

class TransportError(ChatError):
    """Socket-level I/O failure (connect, send or receive)."""


class IncompleteBody(ProtocolError, TransportError):
    """
    The stream ended before Content-Length bytes arrived.

    This is both a framing violation and a connection failure, so it can be
    caught as either.
    """

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"incomplete body: expected {expected} bytes, got {received}"
        )
        self.expected = expected
        self.received = received


# =============================================================================
# APPLICATION ERRORS
# =============================================================================

class ApplicationError(ChatError):
    """The payload was framed correctly but makes no sense to the app."""


class InvalidMessage(ApplicationError):
    """Body could not be decoded as a chat message."""


class SyncFailed(ChatError):
    """The background sync loop stopped after an error (fail-fast mode)."""
