"""
Module-style handlers: (request, env, ctx) and (controller, env, ctx).

Each adapter registers an ordinary event listener that builds a restricted
context per invocation, so both calling conventions share one dispatch path.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable

import httpx

from edgeflow_core.events import FETCH, SCHEDULED, FetchEvent, ScheduledEvent
from edgeflow_core.registry import ListenerRegistry


@dataclass(frozen=True)
class FetchContext:
    """What a module fetch handler may do with its event."""

    pass_through_on_exception: Callable[[], None]
    wait_until: Callable[[Awaitable[Any]], None]


@dataclass(frozen=True)
class ScheduledContext:
    wait_until: Callable[[Awaitable[Any]], None]


@dataclass(frozen=True)
class ScheduledController:
    """Read-only trigger details passed to module scheduled handlers."""

    scheduled_time: datetime
    cron: str


ModuleFetchHandler = Callable[[httpx.Request, Any, FetchContext], Any]
ModuleScheduledHandler = Callable[[ScheduledController, Any, ScheduledContext], Any]


def add_module_fetch_listener(
    registry: ListenerRegistry,
    handler: ModuleFetchHandler,
    environment: Any,
) -> None:
    """Register handler(request, environment, ctx); its return value becomes the response."""

    def listener(event: FetchEvent) -> None:
        ctx = FetchContext(
            pass_through_on_exception=event.pass_through_on_exception,
            wait_until=event.wait_until,
        )
        event.respond_with(handler(event.request, environment, ctx))

    registry.add_event_listener(FETCH, listener)


def add_module_scheduled_listener(
    registry: ListenerRegistry,
    handler: ModuleScheduledHandler,
    environment: Any,
) -> None:
    """Register handler(controller, environment, ctx); its return value is awaited as background work."""

    def listener(event: ScheduledEvent) -> None:
        controller = ScheduledController(scheduled_time=event.scheduled_time, cron=event.cron)
        ctx = ScheduledContext(wait_until=event.wait_until)
        event.wait_until(handler(controller, environment, ctx))

    registry.add_event_listener(SCHEDULED, listener)
