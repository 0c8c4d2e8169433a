"""
=============================================================================
REQUEST PARSER
=============================================================================

Parses one chat request from a byte stream.

    GET /messages HTTP/1.1\r\n
    ─┬─ ────┬────  ───┬────
     │      │         └── read but ignored
     │      └── uri
     └── method: GET or POST only

PARSING ALGORITHM:

    1. Read the request line, split on whitespace
    2. First token → Method (anything but GET/POST → UnsupportedMethod)
    3. Second token → uri (missing → MalformedRequestLine)
    4. Read headers until the blank line
    5. Content-Length present? Read exactly that many bytes as the body
       Content-Length absent?  body is None

There is no size limit and no timeout. A peer that never finishes its
request line keeps the reading thread waiting.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Dict, Optional

from ..errors import MalformedRequestLine, UnsupportedMethod
from .framing import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    format_head,
    parse_content_length,
    read_body,
    read_headers,
    read_line,
)


PROTOCOL_VERSION = "HTTP/1.1"
DEFAULT_HOST = "localhost"


class Method(Enum):
    """The closed set of request methods."""

    GET = "GET"
    POST = "POST"

    @classmethod
    def from_token(cls, token: str) -> "Method":
        """
        Map a request-line token to a Method.

        Matching is exact: "get" is not GET.

        Raises:
            UnsupportedMethod: For any other token.
        """
        try:
            return cls(token)
        except ValueError:
            raise UnsupportedMethod(token) from None


@dataclass
class Request:
    """
    A parsed chat request.

    Attributes:
        method: GET or POST.
        uri: Request target exactly as sent ("/messages").
        headers: Header map, case-sensitive keys, last duplicate wins.
        body: Decoded body, or None when no Content-Length was sent.
    """

    method: Method
    uri: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @classmethod
    def get(cls, uri: str, host: str = DEFAULT_HOST) -> "Request":
        """Build a bodiless GET request."""
        return cls(method=Method.GET, uri=uri, headers={"Host": host})

    @classmethod
    def post(cls, uri: str, body: str, host: str = DEFAULT_HOST) -> "Request":
        """Build a POST request carrying a JSON body."""
        return cls(
            method=Method.POST,
            uri=uri,
            headers={
                "Host": host,
                CONTENT_TYPE: "application/json",
                CONTENT_LENGTH: str(len(body.encode("utf-8"))),
            },
            body=body,
        )

    def to_bytes(self) -> bytes:
        """
        Serialize for sending over a socket.

            POST /messages HTTP/1.1\r\n
            Host: localhost\r\n
            Content-Length: 29\r\n
            \r\n
            {"user":"alice","message":"hi"}
        """
        head = format_head(f"{self.method.value} {self.uri} {PROTOCOL_VERSION}", self.headers)
        if self.body is None:
            return head
        return head + self.body.encode("utf-8")


def parse_request(stream: BinaryIO) -> Request:
    """
    Read and parse exactly one request from ``stream``.

    Args:
        stream: Binary stream positioned at the start of a request.

    Returns:
        The parsed Request.

    Raises:
        UnsupportedMethod: Method token is not GET or POST.
        MalformedRequestLine: Method or uri token is missing.
        MalformedHeader: A header line has no ':'.
        InvalidContentLength: Content-Length is not an unsigned integer.
        IncompleteBody: The stream ended before the full body arrived.
    """
    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LINE
    # ─────────────────────────────────────────────────────────────────────
    first_line = read_line(stream, error=MalformedRequestLine)
    parts = first_line.split()

    if not parts:
        raise MalformedRequestLine("missing method")
    method = Method.from_token(parts[0])

    if len(parts) < 2:
        raise MalformedRequestLine("missing URI")
    uri = parts[1]

    # ─────────────────────────────────────────────────────────────────────
    # HEADERS + BODY
    # ─────────────────────────────────────────────────────────────────────
    headers = read_headers(stream)

    length = parse_content_length(headers)
    body = read_body(stream, length) if length is not None else None

    return Request(method=method, uri=uri, headers=headers, body=body)
