"""Broadcast streams — one upstream subscription fanned out to many listeners.

Nothing is buffered here. A message reaches the subscriptions present when
it was emitted; a listener that joins later never sees it. Pausing a
listener only holds back that listener's own Subscription buffer.
"""

from __future__ import annotations

import logging
from typing import Any

from pushstream.errors import StreamClosedError
from pushstream.message import DONE, Message, MessageKind, data_message, error_message
from pushstream.stream import Stream
from pushstream.subscription import Subscription

logger = logging.getLogger("pushstream.broadcast")


class BroadcastStream(Stream):
    """Multi-listener stream over a single parent stream."""

    def __init__(self, parent: Stream) -> None:
        super().__init__(scheduler=parent.scheduler)
        self._parent = parent
        self._parent_subscription: Subscription | None = None
        self._subscribers: dict[Subscription, None] = {}  # insertion-ordered set

    def _fan_out(self, message: Message) -> None:
        # Recipients are fixed at emission time; later joiners miss it.
        recipients = list(self._subscribers)

        def _send(recipients: list[Subscription]) -> None:
            for index, subscription in enumerate(recipients):
                if subscription not in self._subscribers:
                    continue
                try:
                    self._dispatch(subscription, message)
                except BaseException:
                    # One raising listener does not cost the others this message.
                    rest = recipients[index + 1 :]
                    if rest:
                        self._schedule(lambda: _send(rest))
                    raise

        self._schedule(lambda: _send(recipients))

    def _dispatch(self, subscription: Subscription, message: Message) -> None:
        try:
            subscription.message_handler(message)
        finally:
            if message.kind is MessageKind.DONE:
                # Done is the last thing a listener hears; it no longer counts.
                self._subscribers.pop(subscription, None)

    def add(self, value: Any) -> None:
        if self._closed:
            raise StreamClosedError("cannot add to closed stream")
        self._fan_out(data_message(value))

    def add_error(self, error: BaseException | str) -> None:
        if self._closed:
            raise StreamClosedError("cannot add error to closed stream")
        self._fan_out(error_message(error))

    def listen(self, on_data, **callbacks) -> Subscription:
        if self._parent_subscription is None and not self._closed:
            self._parent_subscription = self._parent.listen(
                self.add,
                on_error=self.add_error,
                on_done=self.close,
            )
            logger.debug("%r attached to %r", self, self._parent)

        subscription = Subscription(self, on_data, **callbacks)
        self._subscribers[subscription] = None
        self._call_event_listeners("on_listen")
        if self._closed:
            # Late joiner: give it a Done of its own.
            self._schedule(lambda: self._dispatch(subscription, DONE))
        return subscription

    def cancel(self, subscription: Subscription) -> None:
        if subscription not in self._subscribers:
            return
        del self._subscribers[subscription]
        self._call_event_listeners("on_cancel")

    def pause(self) -> None:
        pass

    def resume(self) -> None:
        pass

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._parent_subscription is not None:
            subscription, self._parent_subscription = self._parent_subscription, None
            subscription.cancel()
            logger.debug("%r released %r", self, self._parent)
        self._fan_out(DONE)

    @property
    def is_broadcast(self) -> bool:
        return True

    @property
    def listener_count(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"BroadcastStream({state}, {len(self._subscribers)} listeners)"
