"""
Event types handed to registered listeners.

FetchEvent wraps an inbound request; ScheduledEvent carries a trigger time and
cron expression. Listeners mutate dispatch state only through the event's
methods. The state itself lives in a weak side table owned by this module and
read by the dispatcher, so handler code cannot inspect or forge it.
"""

from __future__ import annotations

import asyncio
import inspect
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Union

import httpx

FETCH = "fetch"
SCHEDULED = "scheduled"
EVENT_TYPES = (FETCH, SCHEDULED)


@dataclass
class DispatchState:
    """Engine-private bookkeeping for one event. Never exposed to listeners."""

    response: Any = None
    pass_through: bool = False
    wait_until: list[Any] = field(default_factory=list)


_state: "weakref.WeakKeyDictionary[Union[FetchEvent, ScheduledEvent], DispatchState]" = (
    weakref.WeakKeyDictionary()
)


def dispatch_state(event: "FetchEvent | ScheduledEvent") -> DispatchState:
    """Return the bookkeeping for event. Used by the dispatcher only."""
    return _state[event]


def _schedule(awaitable: Any) -> Any:
    """Start a coroutine as a task when a loop is running; else keep it for later."""
    if not asyncio.iscoroutine(awaitable):
        return awaitable
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return awaitable
    return asyncio.ensure_future(awaitable)


def _retrieve_exception(future: "asyncio.Future[Any]") -> None:
    if not future.cancelled():
        future.exception()


def release(tasks: list[Any]) -> None:
    """Give up on background work that will never be gathered.

    Running tasks finish on their own with their errors marked as retrieved;
    coroutines that never started are closed.
    """
    for task in tasks:
        if isinstance(task, asyncio.Future):
            task.add_done_callback(_retrieve_exception)
        elif asyncio.iscoroutine(task):
            task.close()


async def resolve(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def settle_all(tasks: list[Any]) -> list[Any]:
    """Await every task concurrently; results keep registration order, first error wins."""
    return list(await asyncio.gather(*(resolve(t) for t in tasks)))


@dataclass(frozen=True, eq=False)
class FetchEvent:
    """An inbound request. Listeners answer it with respond_with()."""

    request: httpx.Request
    type: str = field(default=FETCH, init=False)

    def __post_init__(self) -> None:
        _state[self] = DispatchState()

    def respond_with(self, response: Any | Awaitable[Any]) -> None:
        """Set the candidate response, replacing any earlier one."""
        state = _state[self]
        previous = state.response
        if asyncio.iscoroutine(previous) and previous is not response:
            # Replaced before the dispatcher awaited it
            previous.close()
        state.response = response

    def pass_through_on_exception(self) -> None:
        """Allow the dispatcher to proxy upstream if this listener fails."""
        _state[self].pass_through = True

    def wait_until(self, awaitable: Awaitable[Any] | Any) -> None:
        """Register background work that must finish before the invocation does."""
        _state[self].wait_until.append(_schedule(awaitable))


@dataclass(frozen=True, eq=False)
class ScheduledEvent:
    """A cron trigger. Listeners may only register background work."""

    scheduled_time: datetime
    cron: str = ""
    type: str = field(default=SCHEDULED, init=False)

    def __post_init__(self) -> None:
        if isinstance(self.scheduled_time, (int, float)):
            # Runtime convention: milliseconds since the epoch
            object.__setattr__(self, "scheduled_time", datetime.fromtimestamp(self.scheduled_time / 1000))
        elif not isinstance(self.scheduled_time, datetime):
            object.__setattr__(self, "scheduled_time", datetime.fromisoformat(str(self.scheduled_time)))
        _state[self] = DispatchState()

    def wait_until(self, awaitable: Awaitable[Any] | Any) -> None:
        """Register background work that must finish before the invocation does."""
        _state[self].wait_until.append(_schedule(awaitable))
