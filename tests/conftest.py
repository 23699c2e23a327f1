import pytest

from pushstream import TaskQueue
import pushstream._scheduling as _sched_mod


@pytest.fixture
def tick():
    """Install a TaskQueue as the process-wide scheduler; call tick() to drain it."""
    old = _sched_mod._scheduler
    queue = TaskQueue()
    _sched_mod._scheduler = queue
    try:
        yield queue.flush
    finally:
        _sched_mod._scheduler = old
