"""
Listener registry: ordered handlers per event type.

Registration order is dispatch priority. The registry is only mutated by
add_event_listener() and reset(); dispatch reads it without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from edgeflow_core.events import EVENT_TYPES

logger = logging.getLogger(__name__)

EventListener = Callable[[Any], Any]


class ListenerRegistry:
    """Per-type ordered listeners. Unknown types are kept but never dispatched."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}

    def add_event_listener(self, type: str, listener: EventListener) -> None:
        """Append listener for type."""
        if type not in EVENT_TYPES:
            logger.warning('Invalid event type: expected "fetch" | "scheduled", got "%s"', type)
        self._listeners.setdefault(type, []).append(listener)

    def listeners(self, type: str) -> list[EventListener]:
        """Listeners for type in registration order (a copy)."""
        return list(self._listeners.get(type, ()))

    def types(self) -> list[str]:
        return list(self._listeners)

    def reset(self) -> None:
        """Drop every listener of every type."""
        self._listeners = {}

    def __len__(self) -> int:
        return sum(len(v) for v in self._listeners.values())
