"""Tests for StreamController, its stream view and its sink."""

import pytest

from pushstream import Stream, StreamController


@pytest.fixture
def controller(tick):
    return StreamController()


class TestStreamView:
    def test_listen_through_view(self, controller, tick):
        received = []
        controller.stream.listen(received.append)
        controller.add("foo")
        tick()
        assert received == ["foo"]

    @pytest.mark.parametrize(
        "name",
        ["add", "add_error", "close", "pause", "resume", "cancel", "add_event_listener", "_buffer"],
    )
    def test_hides_producer_operations(self, controller, name):
        with pytest.raises(AttributeError):
            getattr(controller.stream, name)

    def test_exposes_derivations_and_aggregators(self, controller, tick):
        result = controller.stream.map(lambda v: v * 2).to_list()
        controller.add(1)
        controller.add(2)
        controller.close()
        tick()
        assert result.result() == [2, 4]

    def test_is_broadcast(self, controller):
        assert controller.stream.is_broadcast is False
        assert StreamController.broadcast().stream.is_broadcast is True


class TestBroadcast:
    def test_delivers_to_every_listener(self, tick):
        controller = StreamController.broadcast()
        a, b = [], []
        controller.stream.listen(a.append)
        controller.stream.listen(b.append)
        controller.add("foo")
        tick()
        assert a == b == ["foo"]

    def test_listener_added_after_delivery_misses_it(self, tick):
        controller = StreamController.broadcast()
        early, late = [], []
        controller.stream.listen(early.append)
        controller.add("foo")
        tick()
        controller.stream.listen(late.append)
        tick()
        assert early == ["foo"]
        assert late == []


class TestProducer:
    def test_add_error(self, controller, tick):
        errors = []
        controller.stream.listen(lambda v: None, on_error=errors.append)
        controller.add_error("bar")
        tick()
        assert str(errors[0]) == "bar"

    def test_close(self, controller, tick):
        done = []
        controller.stream.listen(lambda v: None, on_done=lambda: done.append(True))
        controller.close()
        tick()
        assert done == [True]
        assert controller.is_closed

    def test_is_paused(self, controller, tick):
        sub = controller.stream.listen(lambda v: None)
        assert controller.is_paused is False
        sub.pause()
        assert controller.is_paused is True


class TestHooks:
    def test_hooks_from_constructor(self, tick):
        calls = []
        controller = StreamController(
            on_listen=lambda: calls.append("listen"),
            on_pause=lambda: calls.append("pause"),
            on_resume=lambda: calls.append("resume"),
            on_cancel=lambda: calls.append("cancel"),
        )
        sub = controller.stream.listen(lambda v: None)
        sub.pause()
        sub.resume()
        sub.cancel()
        tick()
        assert calls == ["listen", "pause", "resume", "cancel"]

    def test_hooks_assigned_later(self, controller, tick):
        calls = []
        controller.on_listen = lambda: calls.append("listen")
        controller.on_cancel = lambda: calls.append("cancel")
        sub = controller.stream.listen(lambda v: None)
        sub.cancel()
        tick()
        assert calls == ["listen", "cancel"]

    def test_broadcast_hooks(self, tick):
        calls = []
        controller = StreamController.broadcast(on_listen=lambda: calls.append("listen"))
        controller.stream.listen(lambda v: None)
        controller.stream.listen(lambda v: None)
        tick()
        assert calls == ["listen", "listen"]


class TestAddStream:
    def test_forwards_and_resolves_on_done(self, controller, tick):
        source = Stream()
        received, errors = [], []
        controller.stream.listen(received.append, on_error=errors.append)
        done = controller.add_stream(source)
        assert controller.done is done
        source.add(1)
        source.add_error("oops")
        source.add(2)
        tick()
        assert not done.done()
        source.close()
        tick()
        assert done.done()
        assert received == [1, 2]
        assert [str(e) for e in errors] == ["oops"]

    def test_cancel_on_error_stops_forwarding(self, controller, tick):
        source = Stream()
        received, errors = [], []
        controller.stream.listen(received.append, on_error=errors.append)
        done = controller.add_stream(source, cancel_on_error=True)
        source.add(1)
        source.add_error("oops")
        source.add(2)
        tick()
        assert done.done()
        assert received == [1]
        assert len(errors) == 1

    def test_done_is_resolved_without_add_stream(self, controller):
        assert controller.done.done()


class TestSink:
    def test_add(self, controller, tick):
        received = []
        controller.stream.listen(received.append)
        controller.sink.add("foo")
        tick()
        assert received == ["foo"]

    def test_add_error(self, controller, tick):
        errors = []
        controller.stream.listen(lambda v: None, on_error=errors.append)
        controller.sink.add_error("oops")
        tick()
        assert str(errors[0]) == "oops"

    def test_close(self, controller, tick):
        done = []
        controller.stream.listen(lambda v: None, on_done=lambda: done.append(True))
        controller.sink.close()
        tick()
        assert done == [True]

    def test_add_stream_and_done(self, controller, tick):
        source = Stream()
        received = []
        controller.stream.listen(received.append)
        future = controller.sink.add_stream(source)
        assert controller.sink.done is future
        source.add(1)
        source.close()
        tick()
        assert received == [1]
        assert future.done()
