"""Publish/subscribe notifications for queue and playback changes."""

from collections.abc import Callable
from config import MAX_LISTENERS
from core.logging import log_error, queue_logger
from eliot import log_message
from typing import Any

Listener = Callable[[dict[str, Any]], None]


class EventEmitter:
    """Dispatches named events to subscribed callbacks.

    Listeners receive a single dict payload. A listener that raises is logged
    and skipped; the remaining listeners still run.
    """

    def __init__(self, max_listeners: int = MAX_LISTENERS):
        self._listeners: dict[str, list[Listener]] = {}
        self.max_listeners = max_listeners

    def on(self, event: str, listener: Listener) -> None:
        """Subscribe to an event.

        Args:
            event: Event name
            listener: Callable taking the event payload
        """
        listeners = self._listeners.setdefault(event, [])
        if listener in listeners:
            return
        listeners.append(listener)

        if len(listeners) > self.max_listeners:
            log_message(
                message_type="listener_limit_exceeded",
                event=event,
                count=len(listeners),
                max_listeners=self.max_listeners,
                description=f"{event} has {len(listeners)} listeners (max {self.max_listeners}), possible leak",
            )

    def off(self, event: str, listener: Listener) -> None:
        """Unsubscribe from an event."""
        listeners = self._listeners.get(event)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[event]

    def once(self, event: str, listener: Listener) -> None:
        """Subscribe to the next emission of an event only."""

        def wrapper(payload):
            self.off(event, wrapper)
            listener(payload)

        self.on(event, wrapper)

    def emit(self, event: str, **payload) -> None:
        """Emit an event to all subscribers.

        Args:
            event: Event name
            **payload: Data passed to listeners as a dict
        """
        # Copy so listeners may unsubscribe while being called
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(payload)
            except Exception as e:
                log_error(queue_logger, e, event=event, listener=getattr(listener, "__name__", repr(listener)))

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Remove listeners for one event, or for every event."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))
