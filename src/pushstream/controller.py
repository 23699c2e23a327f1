"""StreamController — the producer's handle on a stream.

The controller owns the producer-facing Stream and hands out two narrowed
views of it: `stream` (consumer operations only) and `sink` (producer
operations only). In broadcast mode consumers see
`source.as_broadcast_stream()` instead of the source itself.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from pushstream.stream import Stream
from pushstream.subscription import Callback

if TYPE_CHECKING:
    from pushstream._scheduling import Scheduler

T = TypeVar("T")

logger = logging.getLogger("pushstream.controller")

# Everything a consumer may touch on the stream it was given.
CONSUMER_ATTRIBUTES = frozenset({
    "listen",
    "as_broadcast_stream",
    "map",
    "where",
    "take",
    "take_while",
    "skip",
    "skip_while",
    "every",
    "first",
    "first_where",
    "for_each",
    "reduce",
    "to_list",
    "to_set",
    "is_broadcast",
    "scheduler",
})


def _completed() -> Future[None]:
    future: Future[None] = Future()
    future.set_result(None)
    return future


class StreamView(Generic[T]):
    """Read-only view of a stream: listen, derive and aggregate, nothing else."""

    __slots__ = ("_stream",)

    def __init__(self, stream: Stream[T]) -> None:
        self._stream = stream

    def __getattr__(self, name: str) -> Any:
        if name in CONSUMER_ATTRIBUTES:
            return getattr(self._stream, name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __dir__(self) -> list[str]:
        return sorted(CONSUMER_ATTRIBUTES)

    def __repr__(self) -> str:
        return f"StreamView({self._stream!r})"


class StreamSink(Generic[T]):
    """Producer-only handle: add, add_error, add_stream, close, done."""

    __slots__ = ("_controller",)

    def __init__(self, controller: StreamController[T]) -> None:
        self._controller = controller

    def add(self, value: T) -> None:
        self._controller.add(value)

    def add_error(self, error: BaseException | str) -> None:
        self._controller.add_error(error)

    def add_stream(self, stream: Any, *, cancel_on_error: bool = False) -> Future[None]:
        return self._controller.add_stream(stream, cancel_on_error=cancel_on_error)

    def close(self) -> None:
        self._controller.close()

    @property
    def done(self) -> Future[None]:
        return self._controller.done


class StreamController(Generic[T]):
    """Controller that sends data, error and done events on its stream.

    Usage:
        controller = StreamController(on_listen=lambda: print("listening"))
        controller.stream.listen(print)
        controller.add(1)
        controller.close()
    """

    def __init__(
        self,
        *,
        broadcast: bool = False,
        on_listen: Callback | None = None,
        on_pause: Callback | None = None,
        on_resume: Callback | None = None,
        on_cancel: Callback | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._source: Stream[T] = Stream(scheduler=scheduler)
        self._target: Stream[T] = self._source.as_broadcast_stream() if broadcast else self._source
        self._view: StreamView[T] = StreamView(self._target)
        self._sink: StreamSink[T] = StreamSink(self)
        self._done: Future[None] = _completed()

        # Reassignable after construction; looked up when the event fires.
        self.on_listen = on_listen
        self.on_pause = on_pause
        self.on_resume = on_resume
        self.on_cancel = on_cancel
        for event in ("on_listen", "on_pause", "on_resume", "on_cancel"):
            self._target.add_event_listener(event, self._hook(event))

    def _hook(self, event: str) -> Callable[[], None]:
        def _fire() -> None:
            callback = getattr(self, event)
            if callback is not None:
                callback()

        return _fire

    @classmethod
    def broadcast(cls, **options: Any) -> StreamController[T]:
        return cls(broadcast=True, **options)

    def add(self, value: T) -> None:
        self._source.add(value)

    def add_error(self, error: BaseException | str) -> None:
        self._source.add_error(error)

    def close(self) -> None:
        self._source.close()

    def add_stream(self, stream: Any, *, cancel_on_error: bool = False) -> Future[None]:
        """Forward every event of stream into this controller.

        The returned Future resolves when stream is done. With
        cancel_on_error, the first error is forwarded, forwarding stops and
        the Future resolves.
        """
        future: Future[None] = Future()

        def _finish() -> None:
            if not future.done():
                future.set_result(None)

        def _on_error(error: BaseException) -> None:
            self.add_error(error)
            if cancel_on_error:
                logger.debug("add_stream stopped forwarding after %r", error)
                _finish()

        stream.listen(self.add, on_error=_on_error, on_done=_finish, cancel_on_error=cancel_on_error)
        self._done = future
        return future

    @property
    def stream(self) -> StreamView[T]:
        return self._view

    @property
    def sink(self) -> StreamSink[T]:
        return self._sink

    @property
    def done(self) -> Future[None]:
        return self._done

    @property
    def is_paused(self) -> bool:
        return self._source.is_paused

    @property
    def is_closed(self) -> bool:
        return self._source.is_closed

    def __repr__(self) -> str:
        return f"StreamController({self._target!r})"
