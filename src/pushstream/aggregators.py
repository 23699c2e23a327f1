"""Terminal aggregators — consume a stream into a single Future.

Each aggregator listens once and cancels its subscription before settling
the Future, whether it succeeds or fails. The Futures are
concurrent.futures.Future objects: call .result() after the scheduler has
drained, or await them with asyncio.wrap_future().
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable

from pushstream.errors import StreamExhaustedError

if TYPE_CHECKING:
    from pushstream.stream import Stream
    from pushstream.subscription import Subscription

logger = logging.getLogger("pushstream.aggregators")

_MISSING: Any = object()


class _Settle:
    """Cancel-then-settle helper shared by every aggregator."""

    __slots__ = ("future", "subscription")

    def __init__(self) -> None:
        self.future: Future = Future()
        self.subscription: Subscription | None = None

    def resolve(self, value: Any) -> None:
        self._cancel()
        if not self.future.done():
            self.future.set_result(value)

    def reject(self, error: BaseException) -> None:
        self._cancel()
        if not self.future.done():
            logger.debug("aggregator rejected with %r", error)
            self.future.set_exception(error)

    def _cancel(self) -> None:
        if self.subscription is not None:
            self.subscription.cancel()


def every(stream: Stream, condition: Callable[[Any], bool]) -> Future[bool]:
    """True if every value satisfies condition. A raising condition counts as False."""
    settle = _Settle()

    def _on_data(value: Any) -> None:
        try:
            ok = condition(value)
        except Exception:
            ok = False
        if not ok:
            settle.resolve(False)

    settle.subscription = stream.listen(
        _on_data, on_error=settle.reject, on_done=lambda: settle.resolve(True)
    )
    return settle.future


def first(stream: Stream) -> Future:
    settle = _Settle()
    settle.subscription = stream.listen(
        settle.resolve,
        on_error=settle.reject,
        on_done=lambda: settle.reject(StreamExhaustedError("stream closed without a value")),
    )
    return settle.future


def first_where(stream: Stream, condition: Callable[[Any], bool]) -> Future:
    """First value matching condition. A raising condition rejects with its exception."""
    settle = _Settle()

    def _on_data(value: Any) -> None:
        try:
            matched = condition(value)
        except Exception as exc:
            settle.reject(exc)
            return
        if matched:
            settle.resolve(value)

    settle.subscription = stream.listen(
        _on_data,
        on_error=settle.reject,
        on_done=lambda: settle.reject(StreamExhaustedError("no value matched before the stream closed")),
    )
    return settle.future


def for_each(stream: Stream, fn: Callable[[Any], object]) -> Future[None]:
    settle = _Settle()

    def _on_data(value: Any) -> None:
        try:
            fn(value)
        except Exception as exc:
            settle.reject(exc)

    settle.subscription = stream.listen(
        _on_data, on_error=settle.reject, on_done=lambda: settle.resolve(None)
    )
    return settle.future


def reduce(stream: Stream, reducer: Callable[[Any, Any], Any], initial: Any = _MISSING) -> Future:
    """Fold values with reducer. Without initial, the first value seeds the fold."""
    settle = _Settle()
    state = {"acc": initial}

    def _on_data(value: Any) -> None:
        if state["acc"] is _MISSING:
            state["acc"] = value
            return
        try:
            state["acc"] = reducer(state["acc"], value)
        except Exception as exc:
            settle.reject(exc)

    def _on_done() -> None:
        if state["acc"] is _MISSING:
            settle.reject(StreamExhaustedError("cannot reduce an empty stream without an initial value"))
        else:
            settle.resolve(state["acc"])

    settle.subscription = stream.listen(_on_data, on_error=settle.reject, on_done=_on_done)
    return settle.future


def to_list(stream: Stream) -> Future[list]:
    settle = _Settle()
    result: list = []
    settle.subscription = stream.listen(
        result.append, on_error=settle.reject, on_done=lambda: settle.resolve(result)
    )
    return settle.future


def to_set(stream: Stream) -> Future[set]:
    settle = _Settle()
    result: set = set()
    settle.subscription = stream.listen(
        result.add, on_error=settle.reject, on_done=lambda: settle.resolve(result)
    )
    return settle.future
