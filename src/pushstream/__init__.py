"""pushstream: push-based asynchronous streams with controllers and operators."""

from importlib.metadata import version as _version

__version__ = _version("pushstream")

from pushstream._scheduling import (
    TaskQueue,
    asyncio_scheduler,
    flush,
    get_scheduler,
    pending_count,
    set_scheduler,
)
from pushstream.errors import (
    AlreadyListeningError,
    StreamClosedError,
    StreamError,
    StreamExhaustedError,
)
from pushstream.message import DONE, Message, MessageKind
from pushstream.subscription import Subscription
from pushstream.stream import Stream
from pushstream.broadcast import BroadcastStream
from pushstream.derived import DerivedStream
from pushstream.controller import StreamController, StreamSink, StreamView
from pushstream.sources import from_future, from_futures, from_stream
# textual NOT auto-imported — opt-in only

__all__ = [
    "Stream",
    "BroadcastStream",
    "DerivedStream",
    "Subscription",
    "StreamController",
    "StreamSink",
    "StreamView",
    "Message",
    "MessageKind",
    "DONE",
    "StreamError",
    "StreamClosedError",
    "AlreadyListeningError",
    "StreamExhaustedError",
    "TaskQueue",
    "asyncio_scheduler",
    "set_scheduler",
    "get_scheduler",
    "flush",
    "pending_count",
    "from_future",
    "from_futures",
    "from_stream",
]
