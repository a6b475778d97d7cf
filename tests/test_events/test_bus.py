from __future__ import annotations

from sourcepatch.events import BatchCompleted, EventBus, OperationSkipped
from sourcepatch.model import PolicyState


def _done() -> BatchCompleted:
    return BatchCompleted(files_changed=0, operations_applied=0, operations_pending=0)


class TestEventBus:
    def test_typed_listener(self):
        bus = EventBus()
        seen = []
        bus.subscribe(BatchCompleted, seen.append)
        bus.emit(OperationSkipped(index=0, path="a.html", state=PolicyState.AMBIGUOUS_NEEDS_ANCHOR, reason=""))
        bus.emit(_done())
        assert seen == [_done()]

    def test_catch_all_runs_first(self):
        bus = EventBus()
        order = []
        bus.subscribe(BatchCompleted, lambda e: order.append("typed"))
        bus.on_all(lambda e: order.append("all"))
        bus.emit(_done())
        assert order == ["all", "typed"]

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(BatchCompleted, seen.append)
        unsubscribe()
        unsubscribe()
        bus.emit(_done())
        assert seen == []
        assert not bus.has_listeners()

    def test_listener_may_unsubscribe_itself(self):
        bus = EventBus()
        seen = []

        def once(event):
            seen.append(event)
            stop()

        stop = bus.on_all(once)
        bus.emit(_done())
        bus.emit(_done())
        assert len(seen) == 1
