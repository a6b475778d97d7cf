"""Synchronous event bus for batch progress events."""

from typing import Any, Callable

Listener = Callable[[Any], None]


class EventBus:
    """Delivers batch events to listeners on the caller's thread.

    The orchestrator publishes one event per operation and one per batch;
    editor front ends subscribe to update their change lists.  Listeners
    registered with :meth:`on_all` see every event before the listeners
    of the event's own type.
    """

    def __init__(self) -> None:
        self._by_type: dict[type, list[Listener]] = {}
        self._catch_all: list[Listener] = []

    def subscribe(self, event_type: type, callback: Listener) -> Callable[[], None]:
        """Call *callback* for each event of *event_type*; returns an unsubscribe function."""
        listeners = self._by_type.setdefault(event_type, [])
        listeners.append(callback)
        return lambda: _discard(listeners, callback)

    def on_all(self, callback: Listener) -> Callable[[], None]:
        self._catch_all.append(callback)
        return lambda: _discard(self._catch_all, callback)

    def has_listeners(self) -> bool:
        return bool(self._catch_all) or any(self._by_type.values())

    def emit(self, event: Any) -> None:
        # Copy so a listener may unsubscribe while being called.
        for callback in [*self._catch_all, *self._by_type.get(type(event), ())]:
            callback(event)


def _discard(listeners: list[Listener], callback: Listener) -> None:
    if callback in listeners:
        listeners.remove(callback)
