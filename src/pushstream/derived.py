"""Derived streams — one parent, one operator, a transformed republish.

A DerivedStream subscribes to its parent on its own first listen() and
routes every parent value through its operator's republish(). Parent
errors are forwarded as-is and the parent's Done closes the derived stream.
Closing a derived stream (from the parent's Done, from an operator such as
Take, or directly) cancels the parent subscription first, and so does
cancelling its own subscription, so a chain releases its root.

Operators are small state holders with a single republish(stream, value)
method. They decide whether to stream.add() the value, drop it, or
stream.close().
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pushstream.stream import Stream
from pushstream.subscription import Subscription

logger = logging.getLogger("pushstream.derived")


class Passthrough:
    """Republish every value unchanged."""

    __slots__ = ()

    def republish(self, stream: DerivedStream, value: Any) -> None:
        stream.add(value)


class Map:
    __slots__ = ("transform",)

    def __init__(self, transform: Callable[[Any], Any]) -> None:
        self.transform = transform

    def republish(self, stream: DerivedStream, value: Any) -> None:
        stream.add(self.transform(value))


class Where:
    """Keep matching values. A raising condition propagates to the caller."""

    __slots__ = ("condition",)

    def __init__(self, condition: Callable[[Any], bool]) -> None:
        self.condition = condition

    def republish(self, stream: DerivedStream, value: Any) -> None:
        if self.condition(value):
            stream.add(value)


class Take:
    __slots__ = ("limit", "taken")

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.taken = 0

    def republish(self, stream: DerivedStream, value: Any) -> None:
        if self.taken < self.limit:
            stream.add(value)
            self.taken += 1
        if self.taken >= self.limit:
            stream.close()


class TakeWhile:
    """Republish while the condition holds.

    The first value that fails the condition, or makes it raise, is dropped
    and closes the stream. The exception is not reported anywhere.
    """

    __slots__ = ("condition",)

    def __init__(self, condition: Callable[[Any], bool]) -> None:
        self.condition = condition

    def republish(self, stream: DerivedStream, value: Any) -> None:
        try:
            keep = self.condition(value)
        except Exception:
            keep = False
        if keep:
            stream.add(value)
        else:
            stream.close()


class Skip:
    __slots__ = ("count", "skipped")

    def __init__(self, count: int) -> None:
        self.count = count
        self.skipped = 0

    def republish(self, stream: DerivedStream, value: Any) -> None:
        if self.skipped < self.count:
            self.skipped += 1
            return
        stream.add(value)


class SkipWhile:
    """Drop values while the condition holds; a raising condition ends skipping."""

    __slots__ = ("condition", "skipping")

    def __init__(self, condition: Callable[[Any], bool]) -> None:
        self.condition = condition
        self.skipping = True

    def republish(self, stream: DerivedStream, value: Any) -> None:
        if self.skipping:
            try:
                if self.condition(value):
                    return
            except Exception:
                pass
            self.skipping = False
        stream.add(value)


class DerivedStream(Stream):
    """Stream republishing a transformed view of exactly one parent."""

    def __init__(self, parent: Stream, operator: Any = None) -> None:
        super().__init__(scheduler=parent.scheduler)
        self._parent = parent
        self._operator = operator if operator is not None else Passthrough()
        self._parent_subscription: Subscription | None = None

    def _on_parent_data(self, value: Any) -> None:
        if self._closed:
            return
        self._operator.republish(self, value)

    def _on_parent_error(self, error: BaseException) -> None:
        if not self._closed:
            self.add_error(error)

    def listen(self, on_data, **callbacks) -> Subscription:
        if self._parent_subscription is None and not self._closed:
            self._parent_subscription = self._parent.listen(
                self._on_parent_data,
                on_error=self._on_parent_error,
                on_done=self.close,
            )
            logger.debug("%r attached to %r", self, self._parent)
        return super().listen(on_data, **callbacks)

    def cancel(self, subscription: Subscription) -> None:
        if subscription is not self._subscription:
            return
        super().cancel(subscription)
        self._release_parent()

    def close(self) -> None:
        self._release_parent()
        super().close()

    def _release_parent(self) -> None:
        if self._parent_subscription is None:
            return
        subscription, self._parent_subscription = self._parent_subscription, None
        subscription.cancel()
        logger.debug("%r released %r", self, self._parent)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "paused" if self._paused else "open"
        return f"DerivedStream({type(self._operator).__name__}, {state})"
