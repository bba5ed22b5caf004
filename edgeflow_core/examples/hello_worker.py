"""
Hello-world worker handlers.

A module-style fetch handler that greets the caller, a raw listener that
guards a path prefix, and a scheduled handler that reports its trigger.
Minimal illustrations of both calling conventions.
"""

from __future__ import annotations

from typing import Any

import httpx

from edgeflow_core.adapters import FetchContext, ScheduledContext, ScheduledController
from edgeflow_core.events import FetchEvent


async def hello_fetch(request: httpx.Request, env: dict[str, Any], ctx: FetchContext) -> httpx.Response:
    """Respond with "<GREETING>:<url>"; GREETING comes from the environment bindings."""
    greeting = env.get("GREETING", "Hello")
    return httpx.Response(200, text=f"{greeting}:{request.url}")


async def report_trigger(
    controller: ScheduledController,
    env: dict[str, Any],
    ctx: ScheduledContext,
) -> str:
    return f"{controller.cron}@{controller.scheduled_time.isoformat()}"


class PathGuard:
    """
    Raw listener: answers 403 for requests under a blocked prefix and leaves
    everything else to later listeners (or the upstream).
    Counts how many events it has seen.
    """

    def __init__(self, blocked_prefix: str = "/admin") -> None:
        self.blocked_prefix = blocked_prefix
        self.seen = 0

    def __call__(self, event: FetchEvent) -> None:
        self.seen += 1
        if event.request.url.path.startswith(self.blocked_prefix):
            event.respond_with(httpx.Response(403, text="Forbidden"))
