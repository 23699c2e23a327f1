"""Push-based single-subscription stream with operator chaining.

A Stream buffers whatever its producer adds until someone listens, then
hands the buffer to that one Subscription on the next tick. Every delivery
goes through a scheduler (see _scheduling), so a batch of add() calls made
in one synchronous block always reaches the listener as one ordered batch.

Derivations (map/where/take/...) return new streams that subscribe to this
one lazily, on their own first listen(). Closing a derived stream cancels
its upstream subscription, so a chain tears down from the consumer end.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from pushstream import _scheduling
from pushstream.errors import AlreadyListeningError, StreamClosedError
from pushstream.message import DONE, Message, data_message, error_message
from pushstream.subscription import Callback, DataListener, ErrorListener, Subscription

if TYPE_CHECKING:
    from pushstream._scheduling import Scheduler

T = TypeVar("T")
U = TypeVar("U")

logger = logging.getLogger("pushstream.stream")

EVENTS = ("on_listen", "on_pause", "on_resume", "on_cancel")

_MISSING: Any = object()


class Stream(Generic[T]):
    """Ordered asynchronous sequence of Data/Error events ended by Done."""

    def __init__(self, *, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler
        self._subscription: Subscription | None = None
        self._buffer: list[Message] = []
        self._paused = False
        self._closed = False
        self._event_callbacks: dict[str, list[Callback]] = {name: [] for name in EVENTS}

    # --- Scheduling ---

    def _schedule(self, callback: Callable[[], object]) -> None:
        if self._scheduler is not None:
            self._scheduler(callback)
        else:
            _scheduling.schedule(callback)

    def _emit(self) -> None:
        """Schedule delivery of the outbound buffer to the subscription."""
        if self._paused or self._subscription is None:
            return
        self._schedule(self._deliver)

    def _deliver(self) -> None:
        if self._paused or self._subscription is None:
            return
        pending, self._buffer = self._buffer, []
        index = 0
        try:
            while index < len(pending) and self._subscription is not None:
                message = pending[index]
                index += 1
                self._subscription.message_handler(message)
        finally:
            if index < len(pending):
                # Cancelled or raised mid-delivery: keep the rest, in order.
                self._buffer[:0] = pending[index:]
                self._emit()
        if self._closed and self._subscription is not None:
            self.cancel(self._subscription)

    def _call_event_listeners(self, name: str) -> None:
        def _fire() -> None:
            for callback in list(self._event_callbacks[name]):
                callback()

        self._schedule(_fire)

    # --- Consumer side ---

    def listen(
        self,
        on_data: DataListener,
        *,
        on_error: ErrorListener | None = None,
        on_done: Callback | None = None,
        on_pause: Callback | None = None,
        on_resume: Callback | None = None,
        cancel_on_error: bool = False,
    ) -> Subscription:
        """Attach the single listener. Buffered messages follow on the next tick."""
        if self._subscription is not None:
            raise AlreadyListeningError("stream already has a listener")
        self._subscription = Subscription(
            self,
            on_data,
            on_error=on_error,
            on_done=on_done,
            on_pause=on_pause,
            on_resume=on_resume,
            cancel_on_error=cancel_on_error,
        )
        logger.debug("listen on %r (%d buffered)", self, len(self._buffer))
        self._call_event_listeners("on_listen")
        self._emit()
        return self._subscription

    def cancel(self, subscription: Subscription) -> None:
        """Detach subscription. Called by Subscription.cancel(), not by consumers."""
        if subscription is not self._subscription:
            return
        self._subscription = None
        logger.debug("cancel on %r", self)
        self._call_event_listeners("on_cancel")

    # --- Producer side ---

    def add(self, value: T) -> None:
        if self._closed:
            raise StreamClosedError("cannot add to closed stream")
        self._buffer.append(data_message(value))
        self._emit()

    def add_error(self, error: BaseException | str) -> None:
        if self._closed:
            raise StreamClosedError("cannot add error to closed stream")
        self._buffer.append(error_message(error))
        self._emit()

    def close(self) -> None:
        """Append the Done message. Further add()/add_error() calls fail."""
        if self._closed:
            return
        self._closed = True
        self._buffer.append(DONE)
        logger.debug("close %r", self)
        self._emit()

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        self._call_event_listeners("on_pause")

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        self._call_event_listeners("on_resume")
        self._emit()

    # --- Lifecycle hooks ---

    def add_event_listener(self, name: str, callback: Callback) -> None:
        """Register a hook for on_listen, on_pause, on_resume or on_cancel."""
        self._hooks(name).append(callback)

    def remove_event_listener(self, name: str, callback: Callback) -> None:
        hooks = self._hooks(name)
        hooks[:] = [c for c in hooks if c != callback]

    def _hooks(self, name: str) -> list[Callback]:
        try:
            return self._event_callbacks[name]
        except KeyError:
            raise ValueError(f"unknown stream event {name!r}, expected one of {EVENTS}") from None

    # --- State ---

    @property
    def is_broadcast(self) -> bool:
        return False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def scheduler(self) -> Scheduler | None:
        return self._scheduler

    def __repr__(self) -> str:
        state = "closed" if self._closed else "paused" if self._paused else "open"
        return f"{type(self).__name__}({state})"

    # --- Derivations ---

    def as_broadcast_stream(self) -> Stream[T]:
        """Multi-listener view. Subscribes to this stream on its first listen."""
        from pushstream.broadcast import BroadcastStream

        return BroadcastStream(self)

    def map(self, transform: Callable[[T], U]) -> Stream[U]:
        """Republish transform(value). Exceptions from transform propagate."""
        from pushstream.derived import DerivedStream, Map

        return DerivedStream(self, Map(transform))

    def where(self, condition: Callable[[T], bool]) -> Stream[T]:
        """Republish only values matching condition. Exceptions propagate."""
        from pushstream.derived import DerivedStream, Where

        return DerivedStream(self, Where(condition))

    def take(self, n: int) -> Stream[T]:
        """Republish the first n values, then close and release this stream."""
        from pushstream.derived import DerivedStream, Take

        return DerivedStream(self, Take(n))

    def take_while(self, condition: Callable[[T], bool]) -> Stream[T]:
        """Republish while condition holds; close on the first failure or exception."""
        from pushstream.derived import DerivedStream, TakeWhile

        return DerivedStream(self, TakeWhile(condition))

    def skip(self, n: int) -> Stream[T]:
        from pushstream.derived import DerivedStream, Skip

        return DerivedStream(self, Skip(n))

    def skip_while(self, condition: Callable[[T], bool]) -> Stream[T]:
        """Drop values while condition holds; an exception ends skipping."""
        from pushstream.derived import DerivedStream, SkipWhile

        return DerivedStream(self, SkipWhile(condition))

    # --- Aggregators ---

    def every(self, condition: Callable[[T], bool]) -> Future[bool]:
        from pushstream import aggregators

        return aggregators.every(self, condition)

    def first(self) -> Future[T]:
        from pushstream import aggregators

        return aggregators.first(self)

    def first_where(self, condition: Callable[[T], bool]) -> Future[T]:
        from pushstream import aggregators

        return aggregators.first_where(self, condition)

    def for_each(self, fn: Callable[[T], object]) -> Future[None]:
        from pushstream import aggregators

        return aggregators.for_each(self, fn)

    def reduce(self, reducer: Callable[[Any, T], Any], initial: Any = _MISSING) -> Future[Any]:
        from pushstream import aggregators

        if initial is _MISSING:
            return aggregators.reduce(self, reducer)
        return aggregators.reduce(self, reducer, initial)

    def to_list(self) -> Future[list[T]]:
        from pushstream import aggregators

        return aggregators.to_list(self)

    def to_set(self) -> Future[set[T]]:
        from pushstream import aggregators

        return aggregators.to_set(self)
