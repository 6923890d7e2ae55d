"""Lifecycle events published by the image pipeline.

Listeners run synchronously, in subscription order, on the thread that
triggered the event. A listener that raises aborts the operation that
dispatched the event.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from .utils.logging import get_logger

logger = get_logger("imagekit.events")


@dataclass
class ImageSaving:
    """Fired after validation, before the original is persisted."""
    image: Any
    path: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ImageSaved:
    """Fired after every processing step, before metadata is computed."""
    image_name: str
    path: str
    full_path: str


@dataclass
class ImageDeleted:
    """Fired after each delete attempt, successful or not."""
    image_name: str
    path: str
    success: bool


Listener = Callable[[Any], None]


class EventDispatcher:
    """Synchronous, ordered event delivery."""

    def __init__(self):
        self._listeners: Dict[Optional[Type], List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: Optional[Type], listener: Listener) -> Listener:
        """Register ``listener`` for ``event_type`` (None receives every event).

        Returns the listener so it can be used as a decorator argument.
        """
        self._listeners[event_type].append(listener)
        return listener

    def unsubscribe(self, event_type: Optional[Type], listener: Listener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listen(self, event_type: Optional[Type] = None):
        """Decorator form of ``subscribe``."""
        def decorator(listener: Listener) -> Listener:
            return self.subscribe(event_type, listener)
        return decorator

    def dispatch(self, event: Any) -> None:
        listeners = list(self._listeners.get(type(event), [])) + list(self._listeners.get(None, []))
        logger.debug(f"Dispatching {type(event).__name__} to {len(listeners)} listener(s)")
        for listener in listeners:
            listener(event)

    def clear(self) -> None:
        self._listeners.clear()


# Process-wide dispatcher used by handlers built without an explicit one
dispatcher = EventDispatcher()
