"""
edgeflow-core: local emulation of an edge runtime's event lifecycle.

Fetch and scheduled events, single-response-wins dispatch, pass-through to an
upstream origin on failure, and wait-until background task accounting.
"""

__version__ = "0.1.0"

from edgeflow_core.events import FetchEvent, ScheduledEvent
from edgeflow_core.registry import ListenerRegistry
from edgeflow_core.adapters import FetchContext, ScheduledContext, ScheduledController
from edgeflow_core.config import DispatchOptions
from edgeflow_core.dispatch import EventDispatcher
from edgeflow_core.errors import DispatchError, UpstreamNotConfiguredError

__all__ = [
    "FetchEvent",
    "ScheduledEvent",
    "ListenerRegistry",
    "FetchContext",
    "ScheduledContext",
    "ScheduledController",
    "DispatchOptions",
    "EventDispatcher",
    "DispatchError",
    "UpstreamNotConfiguredError",
]
