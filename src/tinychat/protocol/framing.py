"""
=============================================================================
LINE AND BODY FRAMING
=============================================================================

Requests and responses share the same framing, only the first line
differs:

    ┌─ FIRST LINE ─────────────────────────────────────────────────────┐
    │  POST /messages HTTP/1.1\r\n        (request)                    │
    │  HTTP/1.1 200 OK\r\n                (response)                   │
    └──────────────────────────────────────────────────────────────────┘
    ┌─ HEADERS ────────────────────────────────────────────────────────┐
    │  Content-Type: application/json\r\n                              │
    │  Content-Length: 31\r\n                                          │
    └──────────────────────────────────────────────────────────────────┘
    ┌─ BLANK-LINE TERMINATOR ──────────────────────────────────────────┐
    │  \r\n                                                            │
    └──────────────────────────────────────────────────────────────────┘
    ┌─ BODY (exactly Content-Length bytes, no delimiter) ──────────────┐
    │  {"user":"alice","message":"hi"}                                 │
    └──────────────────────────────────────────────────────────────────┘

Unlike a buffer-then-split parser, everything here reads straight from a
binary stream (``socket.makefile("rb")`` or ``io.BytesIO`` in tests) one
line at a time, then asks for exactly the number of body bytes it needs.

HEADER QUIRKS:
    - Keys are case-sensitive: "content-length" is NOT "Content-Length".
    - A repeated key overwrites the earlier value, last one wins.

=============================================================================
"""

import re
from typing import BinaryIO, Dict, Optional, Type

from ..errors import (
    IncompleteBody,
    InvalidContentLength,
    MalformedHeader,
    ProtocolError,
)


CONTENT_LENGTH = "Content-Length"
CONTENT_TYPE = "Content-Type"

# Unsigned integer: ASCII digits, optional leading '+'
_UNSIGNED = re.compile(r"^\+?[0-9]+$")


def read_line(stream: BinaryIO, error: Type[ProtocolError] = MalformedHeader) -> str:
    """
    Read one line and strip its trailing CR/LF.

    End of stream yields an empty string, which callers treat the same as
    a blank line.

    Args:
        stream: Binary stream to read from.
        error: ProtocolError subclass raised if the line is not UTF-8.
    """
    raw = stream.readline()
    try:
        line = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise error(f"line is not valid UTF-8: {e}") from e
    return line.rstrip("\r\n")


def read_headers(stream: BinaryIO) -> Dict[str, str]:
    """
    Read header lines up to and including the blank-line terminator.

    Each line is split at the first ':' and both halves are trimmed.

    Raises:
        MalformedHeader: If a non-blank line has no ':'.
    """
    headers: Dict[str, str] = {}

    while True:
        line = read_line(stream)
        if not line:
            break

        name, sep, value = line.partition(":")
        if not sep:
            raise MalformedHeader(f"header line has no ':': {line!r}")

        # Last occurrence wins, no case folding
        headers[name.strip()] = value.strip()

    return headers


def parse_content_length(headers: Dict[str, str]) -> Optional[int]:
    """
    Return the Content-Length value, or None if the header is absent.

    Raises:
        InvalidContentLength: If the value is not an unsigned integer.
    """
    value = headers.get(CONTENT_LENGTH)
    if value is None:
        return None
    if not _UNSIGNED.match(value):
        raise InvalidContentLength(value)
    return int(value)


def read_body(stream: BinaryIO, length: int) -> str:
    """
    Read exactly ``length`` bytes and decode them as UTF-8 (lossy).

    Raises:
        IncompleteBody: If the stream ends before ``length`` bytes arrive.
    """
    data = stream.read(length) if length else b""
    if len(data) < length:
        raise IncompleteBody(expected=length, received=len(data))
    return data.decode("utf-8", errors="replace")


def format_head(first_line: str, headers: Dict[str, str]) -> bytes:
    """
    Serialize the first line and headers, ending with the blank line.

        first_line\r\n
        Key: value\r\n
        ...\r\n
        \r\n
    """
    lines = [first_line]
    lines.extend(f"{name}: {value}" for name, value in headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
