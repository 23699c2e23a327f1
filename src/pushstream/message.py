"""Messages — the immutable Data | Error | Done values a stream carries."""

from __future__ import annotations

import enum
from typing import Any, NamedTuple

from pushstream.errors import StreamError


class MessageKind(enum.Enum):
    DATA = "data"
    ERROR = "error"
    DONE = "done"


class Message(NamedTuple):
    """A tagged value flowing from a stream to its subscriptions."""

    kind: MessageKind
    value: Any = None

    def __repr__(self) -> str:
        if self.kind is MessageKind.DONE:
            return "Message(DONE)"
        return f"Message({self.kind.name}, {self.value!r})"


DONE = Message(MessageKind.DONE)


def data_message(value: Any) -> Message:
    return Message(MessageKind.DATA, value)


def error_message(error: BaseException | str | Any) -> Message:
    """Build an Error message. Plain text becomes a StreamError."""
    if isinstance(error, BaseException):
        return Message(MessageKind.ERROR, error)
    if isinstance(error, str):
        return Message(MessageKind.ERROR, StreamError(error))
    return Message(MessageKind.ERROR, StreamError(repr(error)))
