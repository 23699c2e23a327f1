"""Textual integration for pushstream. Opt-in — requires textual.

Streams deliver on whatever scheduler they were given; scheduler(app) puts
delivery on a Textual app's message loop. listen() guards a listener that
touches widgets: it skips delivery while the app is paused or not running,
swallows NoMatches from widget queries, and marshals deliveries from
background threads via call_from_thread.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("pushstream.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded listeners during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def scheduler(app):
    """Scheduler that runs stream deliveries on app's message loop.

    Usage:
        controller = StreamController(scheduler=stx.scheduler(app))
    """

    def _schedule(callback):
        # call_later posts a message, which is safe from any thread and
        # does not wait for the app to run it.
        app.call_later(callback)

    return _schedule


def _guard(app, fn):
    _main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            logger.debug("widget query missed in %r", fn)

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def listen(app, stream, on_data, *, on_error=None, on_done=None, **options):
    """stream.listen() with callbacks that safely bridge to Textual widgets.

    on_data, on_error and on_done are guarded; other keyword options pass
    through to listen() unchanged.
    """
    return stream.listen(
        _guard(app, on_data),
        on_error=_guard(app, on_error) if on_error is not None else None,
        on_done=_guard(app, on_done) if on_done is not None else None,
        **options,
    )
