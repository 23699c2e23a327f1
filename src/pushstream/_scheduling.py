"""Deferred dispatch — the "next tick" every stream delivers through.

A scheduler is any callable taking a zero-argument callback. It must run
the callback after the current synchronous unit of work, FIFO among the
callbacks scheduled before any of them runs. Streams never call listeners
from inside a producer call; they hand the delivery to a scheduler.

Resolution order for a stream's deliveries:
1. the scheduler passed to the stream (inherited by derived streams),
2. the process-wide scheduler installed with set_scheduler(),
3. loop.call_soon on the running asyncio loop, if there is one,
4. the module's default TaskQueue, drained with flush().
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from typing import Callable

Callback = Callable[[], object]
Scheduler = Callable[[Callback], None]


class TaskQueue:
    """Deterministic FIFO scheduler. Nothing runs until flush() is called.

    Usage:
        queue = TaskQueue()
        stream = Stream(scheduler=queue)
        stream.listen(print)
        stream.add(1)
        queue.flush()   # prints 1
    """

    __slots__ = ("_tasks", "_lock")

    def __init__(self) -> None:
        self._tasks: deque[Callback] = deque()
        self._lock = threading.Lock()

    def __call__(self, callback: Callback) -> None:
        with self._lock:
            self._tasks.append(callback)

    def __len__(self) -> int:
        return len(self._tasks)

    def flush(self) -> int:
        """Run callbacks until the queue is empty. Returns how many ran.

        Callbacks scheduled while flushing run in the same flush. If a
        callback raises, the exception propagates and the rest stay queued.
        """
        ran = 0
        while True:
            with self._lock:
                if not self._tasks:
                    return ran
                callback = self._tasks.popleft()
            callback()
            ran += 1

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()

    def __repr__(self) -> str:
        return f"TaskQueue(pending={len(self._tasks)})"


def asyncio_scheduler(loop: asyncio.AbstractEventLoop | None = None) -> Scheduler:
    """Scheduler that runs callbacks on an asyncio event loop.

    Defaults to the running loop; call from inside a coroutine in that case.
    Safe to call from other threads.
    """
    target = loop if loop is not None else asyncio.get_running_loop()

    def _schedule(callback: Callback) -> None:
        target.call_soon_threadsafe(callback)

    return _schedule


# ─── Process-wide setting ────────────────────────────────────────────────────
_scheduler: Scheduler | None = None
_default_queue = TaskQueue()


def set_scheduler(scheduler: Scheduler | None) -> None:
    """Install the process-wide scheduler. None restores the default."""
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> Scheduler | None:
    return _scheduler


def schedule(callback: Callback) -> None:
    """Defer callback using the process-wide scheduler or the fallback."""
    if _scheduler is not None:
        _scheduler(callback)
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        _default_queue(callback)
    else:
        loop.call_soon(callback)


def flush() -> int:
    """Drain the default queue. Only needed without a scheduler or loop."""
    return _default_queue.flush()


def pending_count() -> int:
    """Callbacks waiting in the default queue. Useful for testing."""
    return len(_default_queue)
