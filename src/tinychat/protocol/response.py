"""
=============================================================================
RESPONSE SERIALIZER AND PARSER
=============================================================================

Only three statuses exist in this protocol:

    ┌────────────┬──────┬──────────────────────────────┐
    │  Status    │ Code │ Status line                  │
    ├────────────┼──────┼──────────────────────────────┤
    │  OK        │ 200  │ HTTP/1.1 200 OK              │
    │  NOT_FOUND │ 404  │ HTTP/1.1 404 NOT FOUND       │
    │  BAD_REQ.. │ 400  │ HTTP/1.1 400 BAD REQUEST     │
    └────────────┴──────┴──────────────────────────────┘

Every response has a body, and Content-Length / Content-Type always
describe it. A response without Content-Length is a protocol error
(MissingBody), there is no such thing as a bodiless response here.

Header order on the wire follows dict order and carries no meaning.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import IntEnum
import re
from typing import BinaryIO, Dict

from ..errors import MalformedStatusLine, MissingBody, UnknownStatusCode
from .framing import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    format_head,
    parse_content_length,
    read_body,
    read_headers,
    read_line,
)
from .request import PROTOCOL_VERSION


_STATUS_CODE = re.compile(r"[0-9]{3}")


class Status(IntEnum):
    """
    Response status codes.

    IntEnum, so ``Status.OK == 200`` holds and codes read off the wire can
    be looked up with ``Status(code)``.
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase as written on the status line ("NOT FOUND")."""
        return self.name.replace("_", " ")

    @property
    def status_line(self) -> str:
        return f"{PROTOCOL_VERSION} {self.value} {self.phrase}"

    @classmethod
    def from_code(cls, code: int) -> "Status":
        """
        Raises:
            UnknownStatusCode: If ``code`` is not in the table.
        """
        try:
            return cls(code)
        except ValueError:
            raise UnknownStatusCode(code) from None


@dataclass
class Response:
    """
    A chat response.

    Use :meth:`build` rather than the constructor when producing responses
    so that Content-Length and Content-Type are always in step with the body.
    """

    status: Status
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def build(cls, status: Status, content_type: str, body: str) -> "Response":
        """Create a response whose framing headers match ``body``."""
        return cls(
            status=status,
            headers={
                CONTENT_TYPE: content_type,
                CONTENT_LENGTH: str(len(body.encode("utf-8"))),
            },
            body=body,
        )

    @property
    def content_type(self) -> str:
        return self.headers.get(CONTENT_TYPE, "")

    def to_bytes(self) -> bytes:
        """
        Serialize for sending over a socket.

            HTTP/1.1 200 OK\r\n
            Content-Type: application/json\r\n
            Content-Length: 15\r\n
            \r\n
            {"status":"ok"}           ← no trailing delimiter
        """
        return format_head(self.status.status_line, self.headers) + self.body.encode("utf-8")


def json_response(body: str, status: Status = Status.OK) -> Response:
    return Response.build(status, "application/json", body)


def text_response(body: str, status: Status) -> Response:
    return Response.build(status, "text/plain", body)


def parse_response(stream: BinaryIO) -> Response:
    """
    Read and parse exactly one response from ``stream``.

    The first token of the status line (the protocol version) is ignored.

    Raises:
        MalformedStatusLine: Status code is missing or not three ASCII digits.
        UnknownStatusCode: Status code is not 200, 400 or 404.
        MalformedHeader: A header line has no ':'.
        MissingBody: No Content-Length header.
        InvalidContentLength: Content-Length is not an unsigned integer.
        IncompleteBody: The stream ended before the full body arrived.
    """
    first_line = read_line(stream, error=MalformedStatusLine)
    parts = first_line.split()

    if len(parts) < 2:
        raise MalformedStatusLine(f"missing status code: {first_line!r}")

    if not _STATUS_CODE.fullmatch(parts[1]):
        raise MalformedStatusLine(f"status code is not a 3-digit integer: {parts[1]!r}")
    code = int(parts[1])

    status = Status.from_code(code)

    headers = read_headers(stream)

    length = parse_content_length(headers)
    if length is None:
        raise MissingBody("response has no Content-Length header")

    return Response(status=status, headers=headers, body=read_body(stream, length))
