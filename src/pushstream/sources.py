"""Stream sources — adapt futures and other streams into Streams.

Futures may complete on any thread, so completion is marshalled through
the stream's scheduler before it touches stream state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Iterable

from pushstream import _scheduling
from pushstream.controller import StreamController, StreamView
from pushstream.derived import DerivedStream, Passthrough
from pushstream.errors import StreamError
from pushstream.stream import Stream

if TYPE_CHECKING:
    from pushstream._scheduling import Scheduler

logger = logging.getLogger("pushstream.sources")


def _outcome(future: Any) -> tuple[bool, Any]:
    """(ok, value-or-error) for a finished concurrent or asyncio future."""
    if future.cancelled():
        return False, StreamError("future was cancelled")
    error = future.exception()
    if error is not None:
        return False, error
    return True, future.result()


def _target(scheduler: Scheduler | None) -> Scheduler:
    """Where completion is sent, decided on the calling thread.

    A done-callback may run on a worker thread with no loop of its own, so
    the running loop has to be captured here rather than looked up there.
    """
    if scheduler is not None:
        return scheduler
    installed = _scheduling.get_scheduler()
    if installed is not None:
        return installed
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return _scheduling.schedule
    return loop.call_soon_threadsafe


def _on_done(future: Any, scheduler: Scheduler | None, settle) -> None:
    target = _target(scheduler)

    def _callback(done: Any) -> None:
        ok, value = _outcome(done)
        target(lambda: settle(ok, value))

    future.add_done_callback(_callback)


def from_future(future: Any, *, scheduler: Scheduler | None = None) -> StreamView:
    """Stream of one value (or one error) from future, then done."""
    controller: StreamController = StreamController(scheduler=scheduler)

    def _settle(ok: bool, value: Any) -> None:
        logger.debug("future settled ok=%s", ok)
        if ok:
            controller.add(value)
        else:
            controller.add_error(value)
        controller.close()

    _on_done(future, scheduler, _settle)
    return controller.stream


def from_futures(futures: Iterable[Any], *, scheduler: Scheduler | None = None) -> StreamView:
    """Stream of every result and error from futures in completion order.

    Closes once all of them have settled; immediately if there are none.
    """
    controller: StreamController = StreamController(scheduler=scheduler)
    futures = list(futures)
    remaining = [len(futures)]

    def _settle(ok: bool, value: Any) -> None:
        if controller.is_closed:
            return
        if ok:
            controller.add(value)
        else:
            controller.add_error(value)
        remaining[0] -= 1
        if remaining[0] == 0:
            controller.close()

    if not futures:
        controller.close()
    for future in futures:
        _on_done(future, scheduler, _settle)
    return controller.stream


def from_stream(stream: Stream) -> Stream:
    """New single-subscription stream republishing stream's events."""
    return DerivedStream(stream, Passthrough())
