"""Event exports."""

from .bus import EVENT_ID_MODES, EventBus, EventHandler
from .types import EventType, SimEvent

__all__ = ["EVENT_ID_MODES", "EventBus", "EventHandler", "EventType", "SimEvent"]
