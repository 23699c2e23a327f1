"""Tests for pushstream.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from pushstream import StreamController, TaskQueue
from pushstream import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []
        self._call_later_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)

    def call_later(self, fn, *args):
        self._call_later_log.append((fn, args))
        return True


def _run_later(app):
    """Drain the mock app's call_later queue, including newly added work."""
    while app._call_later_log:
        fn, args = app._call_later_log.pop(0)
        fn(*args)


class TestListen:
    def test_skips_when_not_running(self, tick):
        app = _MockApp(is_running=False)
        controller = StreamController()
        received = []
        stx.listen(app, controller.stream, received.append)
        controller.add(1)
        tick()
        assert received == []

    def test_skips_during_pause(self, tick):
        app = _MockApp()
        controller = StreamController()
        received = []
        stx.listen(app, controller.stream, received.append)
        controller.add(1)
        with stx.pause(app):
            tick()
        assert received == []

    def test_fires_when_safe(self, tick):
        app = _MockApp()
        controller = StreamController()
        received, done = [], []
        stx.listen(app, controller.stream, received.append, on_done=lambda: done.append(True))
        controller.add(1)
        controller.close()
        tick()
        assert received == [1]
        assert done == [True]

    def test_catches_nomatch(self, tick):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        controller = StreamController()

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        stx.listen(app, controller.stream, _raise_nomatch)
        controller.add(1)
        tick()

    def test_propagates_real_errors(self, tick):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        controller = StreamController()

        def _raise_value_error(v):
            raise ValueError("boom")

        stx.listen(app, controller.stream, _raise_value_error)
        controller.add(1)
        with pytest.raises(ValueError, match="boom"):
            tick()

    def test_guards_on_error(self, tick):
        app = _MockApp()
        controller = StreamController()
        errors = []
        stx.listen(app, controller.stream, lambda v: None, on_error=errors.append)
        controller.add_error("bad")
        tick()
        assert [str(e) for e in errors] == ["bad"]

    def test_thread_marshal(self):
        """Deliveries on a background thread use call_from_thread."""
        app = _MockApp()
        queue = TaskQueue()
        controller = StreamController(scheduler=queue)
        received = []
        stx.listen(app, controller.stream, received.append)
        controller.add(2)

        t = threading.Thread(target=queue.flush)
        t.start()
        t.join()

        assert received == [2]
        assert len(app._call_from_thread_log) >= 1


class TestScheduler:
    def test_delivers_through_call_later(self):
        app = _MockApp()
        controller = StreamController(scheduler=stx.scheduler(app))
        received = []
        controller.stream.listen(received.append)
        controller.add(1)
        assert received == []
        assert app._call_later_log
        _run_later(app)
        assert received == [1]

    def test_background_thread_does_not_block(self):
        app = _MockApp()
        schedule = stx.scheduler(app)
        log = []

        t = threading.Thread(target=schedule, args=(lambda: log.append(1),))
        t.start()
        t.join()

        assert app._call_from_thread_log == []
        assert len(app._call_later_log) == 1
        assert log == []
        _run_later(app)
        assert log == [1]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
