"""Listener registry for DocForge.

One registry holds the listeners of one scope (a route, or the API as a
whole). Listeners are kept per event name in registration order.
"""

import logging
from collections.abc import Callable

from docforge.hooks.types import Action, Listener

logger = logging.getLogger(__name__)


def _event_name(event: Action | str) -> str:
    if isinstance(event, Action):
        return event.value
    return event


class ListenerRegistry:
    """Ordered listeners keyed by event name (``before.create``, ...).

    Example:
        registry = ListenerRegistry("contact")

        @registry.before("create")
        async def stamp_owner(event):
            event.data["owner"] = event.user
    """

    def __init__(self, scope: str):
        self.scope = scope
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event_name: str, listener: Listener) -> Listener:
        """Register a listener for a full event name.

        Args:
            event_name: e.g. "before.create" or "after.getAll"
            listener: Async (or plain) callable receiving the Event

        Returns:
            The listener, so the method can be used as a decorator body
        """
        self._listeners.setdefault(event_name, []).append(listener)
        logger.debug("Registered %s listener on %s", event_name, self.scope)
        return listener

    def before(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register a ``before.<action>`` listener (direct call or decorator)."""
        return self._register("before", action, listener)

    def after(
        self, action: Action | str, listener: Listener | None = None
    ) -> Listener | Callable[[Listener], Listener]:
        """Register an ``after.<action>`` listener (direct call or decorator)."""
        return self._register("after", action, listener)

    def _register(
        self, phase: str, action: Action | str, listener: Listener | None
    ) -> Listener | Callable[[Listener], Listener]:
        event_name = f"{phase}.{_event_name(action)}"
        if listener is not None:
            return self.on(event_name, listener)

        def decorator(fn: Listener) -> Listener:
            return self.on(event_name, fn)

        return decorator

    def off(self, event_name: str, listener: Listener) -> bool:
        """Remove one registration of a listener. Returns False if not found."""
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def listeners(self, event_name: str) -> list[Listener]:
        """Listeners for an event name, in registration order (a copy)."""
        return list(self._listeners.get(event_name, ()))

    def has_listeners(self, event_name: str) -> bool:
        return bool(self._listeners.get(event_name))

    def clear(self) -> None:
        """Remove all listeners. Primarily for testing."""
        self._listeners.clear()
