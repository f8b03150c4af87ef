"""
Pointer event plumbing

A window-like source of global pointer events. The host UI forwards its
events here; drag gestures attach listeners only while active.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional


POINTER_MOVE = 'pointermove'
POINTER_UP = 'pointerup'
POINTER_CANCEL = 'pointercancel'
BLUR = 'blur'

EVENT_TYPES = (POINTER_MOVE, POINTER_UP, POINTER_CANCEL, BLUR)


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in viewport pixels"""
    client_x: float = 0.0
    client_y: float = 0.0
    pointer_id: int = 0


Handler = Callable[[Optional[PointerEvent]], None]


class PointerEventSource:
    """Registry of global listeners, keyed by event type"""

    def __init__(self):
        self._listeners: Dict[str, List[Handler]] = {t: [] for t in EVENT_TYPES}

    def add_listener(self, event_type: str, handler: Handler):
        if event_type not in self._listeners:
            raise ValueError(f"Unknown event type: {event_type}")
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def remove_listener(self, event_type: str, handler: Handler):
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(h) for h in self._listeners.values())

    def dispatch(self, event_type: str, event: Optional[PointerEvent] = None):
        """Deliver an event to every listener registered for it"""
        # Copy: handlers may unregister themselves
        for handler in list(self._listeners.get(event_type, [])):
            handler(event)
