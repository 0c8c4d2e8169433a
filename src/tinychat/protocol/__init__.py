"""
=============================================================================
WIRE PROTOCOL
=============================================================================

A tiny HTTP-shaped protocol spoken directly over TCP: one request, one
response, one connection.

    request.py   Method, Request, parse_request()
    response.py  Status, Response, parse_response()
    framing.py   Line, header and Content-Length body framing shared by both

=============================================================================
"""

from .framing import CONTENT_LENGTH, CONTENT_TYPE
from .request import Method, Request, parse_request
from .response import (
    Response,
    Status,
    json_response,
    parse_response,
    text_response,
)


def serialize_request(request: Request) -> bytes:
    return request.to_bytes()


def serialize_response(response: Response) -> bytes:
    """Serialize a response to the bytes written on the socket."""
    return response.to_bytes()


__all__ = [
    "CONTENT_LENGTH",
    "CONTENT_TYPE",
    "Method",
    "Request",
    "parse_request",
    "serialize_request",
    "Response",
    "Status",
    "json_response",
    "text_response",
    "parse_response",
    "serialize_response",
]
