"""
Dispatch engine: run registered listeners for fetch and scheduled events.

Fetch: listeners run one turn at a time in registration order; the first
response wins. A failing listener aborts the dispatch unless it granted
pass-through, in which case the request is proxied to the upstream.
Scheduled: every listener runs, then background work is gathered.
Suspension only happens at explicit awaits: the chosen response, the upstream
call, and background-task aggregation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable
from datetime import datetime
from typing import Any

import httpx

from edgeflow_core.adapters import (
    ModuleFetchHandler,
    ModuleScheduledHandler,
    add_module_fetch_listener,
    add_module_scheduled_listener,
)
from edgeflow_core.config import DispatchOptions, parse_upstream
from edgeflow_core.errors import UpstreamNotConfiguredError
from edgeflow_core.events import (
    FETCH,
    SCHEDULED,
    FetchEvent,
    ScheduledEvent,
    dispatch_state,
    release,
    settle_all,
)
from edgeflow_core.registry import EventListener, ListenerRegistry
from edgeflow_core.transport.base import UpstreamTransport
from edgeflow_core.transport.http import DEFAULT_TIMEOUT, HttpxTransport

logger = logging.getLogger(__name__)


async def _read_body(request: httpx.Request) -> bytes:
    try:
        return request.content
    except httpx.RequestNotRead:
        pass
    if isinstance(request.stream, AsyncIterable):
        return await request.aread()
    return request.read()


def _copy_request(
    request: httpx.Request,
    content: bytes,
    *,
    url: httpx.URL | None = None,
    drop_host: bool = False,
) -> httpx.Request:
    """New Request with copied headers; the source request is left untouched."""
    headers = request.headers.copy()
    # The body is buffered, so the copy carries a Content-Length instead
    headers.pop("transfer-encoding", None)
    if drop_host:
        headers.pop("host", None)
    return httpx.Request(
        request.method,
        url if url is not None else request.url,
        headers=headers,
        content=content,
        extensions=dict(request.extensions),
    )


def _upstream_url(request_url: httpx.URL, upstream: httpx.URL) -> httpx.URL:
    """Same path and query, upstream's origin."""
    target = request_url.raw_path.decode("ascii")
    return httpx.URL(f"{upstream.scheme}://{upstream.netloc.decode('ascii')}{target}")


class EventDispatcher:
    """
    Owns a ListenerRegistry and dispatches fetch and scheduled events through it.

    transport: used only on the fallback path; defaults to an HttpxTransport created on first use.
    upstream: default origin for dispatch_fetch() when none is passed per call.
    environment: bindings handed to module-style handlers unless one is given at registration.
    """

    def __init__(
        self,
        transport: UpstreamTransport | None = None,
        *,
        upstream: str | httpx.URL | None = None,
        environment: Any = None,
        upstream_timeout: float = DEFAULT_TIMEOUT,
        registry: ListenerRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else ListenerRegistry()
        self.upstream = parse_upstream(upstream)
        self.environment = environment if environment is not None else {}
        self._transport = transport
        self._upstream_timeout = upstream_timeout

    @classmethod
    def from_options(
        cls,
        options: DispatchOptions,
        transport: UpstreamTransport | None = None,
    ) -> "EventDispatcher":
        """Build a dispatcher from plain options (see DispatchOptions.from_env)."""
        return cls(
            transport,
            upstream=options.upstream,
            environment=options.environment,
            upstream_timeout=options.upstream_timeout,
        )

    @property
    def transport(self) -> UpstreamTransport:
        if self._transport is None:
            self._transport = HttpxTransport(timeout=self._upstream_timeout)
        return self._transport

    async def aclose(self) -> None:
        if self._transport is not None:
            await self._transport.aclose()

    # --- Registration ---

    def add_event_listener(self, type: str, listener: EventListener) -> None:
        self.registry.add_event_listener(type, listener)

    def add_module_fetch_listener(self, handler: ModuleFetchHandler, environment: Any = None) -> None:
        add_module_fetch_listener(self.registry, handler, self._environment(environment))

    def add_module_scheduled_listener(self, handler: ModuleScheduledHandler, environment: Any = None) -> None:
        add_module_scheduled_listener(self.registry, handler, self._environment(environment))

    def reset_event_listeners(self) -> None:
        """Drop all listeners, e.g. between independent test runs."""
        self.registry.reset()

    def build_sandbox(self) -> dict[str, Any]:
        """Globals exposed to handler code."""
        return {
            "FetchEvent": FetchEvent,
            "ScheduledEvent": ScheduledEvent,
            "add_event_listener": self.add_event_listener,
        }

    def _environment(self, environment: Any) -> Any:
        return self.environment if environment is None else environment

    # --- Dispatch ---

    @staticmethod
    def _call_listener(listener: EventListener, event: FetchEvent | ScheduledEvent) -> None:
        result = listener(event)
        # An async listener keeps running in the background instead of being dropped
        if inspect.isawaitable(result):
            event.wait_until(result)

    async def dispatch_fetch(
        self,
        request: httpx.Request | httpx.URL | str,
        upstream: str | httpx.URL | None = None,
    ) -> Any:
        """
        Dispatch request to fetch listeners; fall back to the upstream if none responds.

        The returned response carries wait_until(), a zero-argument coroutine function
        resolving to all background-task results in registration order.
        Raises UpstreamNotConfiguredError when nothing responded and no upstream is set.
        """
        if not isinstance(request, httpx.Request):
            request = httpx.Request("GET", request)
        upstream_url = parse_upstream(upstream) if upstream is not None else self.upstream
        content = await _read_body(request)

        event = FetchEvent(_copy_request(request, content))
        state = dispatch_state(event)

        async def wait_until() -> list[Any]:
            return await settle_all(state.wait_until)

        logger.debug("Dispatching fetch: %s %s", request.method, request.url)
        for index, listener in enumerate(self.registry.listeners(FETCH)):
            try:
                self._call_listener(listener, event)
                response = state.response
                if inspect.isawaitable(response):
                    response = await response
                    state.response = response
            except Exception:
                if asyncio.iscoroutine(state.response):
                    # Chosen but never awaited
                    state.response.close()
                if state.pass_through:
                    logger.warning(
                        "Fetch listener %d failed with pass-through enabled; proxying to upstream",
                        index,
                        exc_info=True,
                    )
                    break
                release(state.wait_until)
                raise
            if response:
                logger.debug("Fetch listener %d responded", index)
                response.wait_until = wait_until
                return response

        if upstream_url is None:
            raise UpstreamNotConfiguredError()

        upstream_request = _copy_request(
            request,
            content,
            url=_upstream_url(request.url, upstream_url),
            drop_host=True,
        )
        logger.debug("No listener responded; proxying to %s", upstream_request.url)
        response = await self.transport.fetch(upstream_request)
        response.wait_until = wait_until
        return response

    async def dispatch_scheduled(
        self,
        scheduled_time: datetime | float | str | None = None,
        cron: str | None = None,
    ) -> list[Any]:
        """
        Run every scheduled listener, then await all background work.
        Returns results in registration order; the first failure is raised.
        """
        event = ScheduledEvent(
            scheduled_time if scheduled_time is not None else datetime.now(),
            cron or "",
        )
        logger.debug("Dispatching scheduled: time=%s cron=%r", event.scheduled_time, event.cron)
        for listener in self.registry.listeners(SCHEDULED):
            self._call_listener(listener, event)
        return await settle_all(dispatch_state(event).wait_until)
