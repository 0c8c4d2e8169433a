"""
Chat message value type and its JSON encoding.

A message is just who said it and what they said:

    {"user": "alice", "message": "hi"}

Messages have no id and no timestamp. Their identity is their position in
the store. Encoding is compact JSON with non-ASCII text written as-is, so
the byte length the server reports matches what a client sees.
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable, List

from .errors import InvalidMessage


# Compact separators: {"user":"a","message":"1"} with no spaces.
_SEPARATORS = (",", ":")


@dataclass(frozen=True)
class Message:
    """A single chat message. Immutable once created."""

    user: str
    message: str

    def to_dict(self) -> dict:
        return {"user": self.user, "message": self.message}

    def to_json(self) -> str:
        """Encode as a compact JSON object."""
        return json.dumps(self.to_dict(), separators=_SEPARATORS, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> "Message":
        """
        Build a Message from a decoded JSON value.

        Extra keys are ignored. Both fields must be present and be strings.

        Raises:
            InvalidMessage: If the value is not a valid message object.
        """
        if not isinstance(data, dict):
            raise InvalidMessage(f"expected a JSON object, got {type(data).__name__}")

        for name in ("user", "message"):
            if name not in data:
                raise InvalidMessage(f"missing field: {name}")
            if not isinstance(data[name], str):
                raise InvalidMessage(f"field {name} must be a string")

        return cls(user=data["user"], message=data["message"])

    @classmethod
    def from_json(cls, text: str) -> "Message":
        """
        Decode one message from JSON text.

        Raises:
            InvalidMessage: If the text is not JSON or not a message object.
        """
        return cls.from_dict(_loads(text))


def encode_messages(messages: Iterable[Message]) -> str:
    """Encode messages as a compact JSON array (``[]`` when empty)."""
    return json.dumps(
        [m.to_dict() for m in messages],
        separators=_SEPARATORS,
        ensure_ascii=False,
    )


def decode_messages(text: str) -> List[Message]:
    """
    Decode a JSON array of messages, preserving order.

    Raises:
        InvalidMessage: If the text is not a JSON array of message objects.
    """
    data = _loads(text)
    if not isinstance(data, list):
        raise InvalidMessage(f"expected a JSON array, got {type(data).__name__}")
    return [Message.from_dict(item) for item in data]


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidMessage(f"invalid JSON: {e}") from e
    except RecursionError as e:
        # Nested deeper than the decoder can follow
        raise InvalidMessage("JSON nested too deeply") from e
