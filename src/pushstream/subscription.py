"""Subscription — one listener's registration against one stream.

Holds the listener and its optional callbacks, buffers inbound messages,
and withholds them while paused. Teardown lives on the owning stream;
cancel() only marks the subscription dead and tells the stream.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from pushstream.message import Message, MessageKind

if TYPE_CHECKING:
    from pushstream.stream import Stream

DataListener = Callable[[Any], object]
ErrorListener = Callable[[BaseException], object]
Callback = Callable[[], object]


class Subscription:
    """Per-listener state machine: buffer, pause/resume, cancel."""

    __slots__ = (
        "_stream",
        "_on_data",
        "_on_error",
        "_on_done",
        "_on_pause",
        "_on_resume",
        "_cancel_on_error",
        "_buffer",
        "_paused",
        "_cancelled",
        "_flushing",
    )

    def __init__(
        self,
        stream: Stream,
        on_data: DataListener,
        *,
        on_error: ErrorListener | None = None,
        on_done: Callback | None = None,
        on_pause: Callback | None = None,
        on_resume: Callback | None = None,
        cancel_on_error: bool = False,
    ) -> None:
        self._stream = stream
        self._on_data = on_data
        self._on_error = on_error
        self._on_done = on_done
        self._on_pause = on_pause
        self._on_resume = on_resume
        self._cancel_on_error = cancel_on_error
        self._buffer: list[Message] = []
        self._paused = False
        self._cancelled = False
        self._flushing = False

    def message_handler(self, message: Message) -> None:
        """Accept a message from the owning stream and try to deliver it."""
        if self._cancelled:
            return
        self._buffer.append(message)
        self._flush()

    def _flush(self) -> None:
        if self._paused or self._flushing:
            return
        # A flush runs its batch to completion even if a callback pauses;
        # messages that arrive meanwhile wait for the next batch.
        self._flushing = True
        try:
            while self._buffer and not self._paused:
                pending, self._buffer = self._buffer, []
                index = 0
                try:
                    while index < len(pending):
                        if self._cancelled:
                            return
                        message = pending[index]
                        index += 1
                        self._deliver(message)
                finally:
                    # A raising callback consumes only its own message.
                    if not self._cancelled and index < len(pending):
                        self._buffer[:0] = pending[index:]
        finally:
            self._flushing = False

    def _deliver(self, message: Message) -> None:
        if message.kind is MessageKind.DATA:
            self._on_data(message.value)
        elif message.kind is MessageKind.ERROR:
            if self._on_error is not None:
                self._on_error(message.value)
            if self._cancel_on_error:
                self.cancel()
        elif self._on_done is not None:
            self._on_done()

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        if self._on_pause is not None:
            self._on_pause()
        self._stream.pause()

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        if self._on_resume is not None:
            self._on_resume()
        self._stream.resume()
        self._flush()

    def cancel(self) -> None:
        """Stop all further delivery. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        self._buffer.clear()
        self._stream.cancel(self)

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        if self._cancelled:
            state = "cancelled"
        elif self._paused:
            state = f"paused, {len(self._buffer)} buffered"
        else:
            state = "active"
        return f"Subscription({state})"
