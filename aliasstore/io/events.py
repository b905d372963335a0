"""
Minimal event subscription support for storage objects.

Storage backends report lifecycle changes ("open", "close", "destroy") and
unhandled failures ("error") to listeners registered with ``on``.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """Mixin keeping per-event listener lists."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}

    def on(self, event_name: str, listener: Callable[..., Any]) -> "EventEmitter":
        """Register a listener for an event. Returns self for chaining."""
        if not callable(listener):
            raise TypeError(f"Listener for '{event_name}' must be callable, got {type(listener).__name__}")
        self._listeners.setdefault(event_name, []).append(listener)
        return self

    def once(self, event_name: str, listener: Callable[..., Any]) -> "EventEmitter":
        """Register a listener that is removed after its first call."""
        def _once(*args):
            self.off(event_name, _once)
            listener(*args)

        _once.listener = listener
        return self.on(event_name, _once)

    def off(self, event_name: str, listener: Callable[..., Any]) -> "EventEmitter":
        """
        Remove a previously registered listener. Unknown listeners are ignored.

        Listeners added with ``once`` can be removed by passing the original listener.
        """
        listeners = self._listeners.get(event_name, [])
        for index, registered in enumerate(listeners):
            if registered == listener or getattr(registered, "listener", None) == listener:
                del listeners[index]
                break
        return self

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def emit(self, event_name: str, *args) -> bool:
        """
        Call every listener of an event in registration order.

        Returns:
            True if at least one listener was called
        """
        listeners = list(self._listeners.get(event_name, []))
        if not listeners:
            return False
        logger.debug(f"Emitting '{event_name}' to {len(listeners)} listener(s)")
        for listener in listeners:
            listener(*args)
        return True
