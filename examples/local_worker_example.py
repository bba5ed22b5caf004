"""
Local worker demo: fetch dispatch with an offline upstream.

Demonstrates:
- A raw listener (PathGuard) and a module-style handler sharing one dispatcher.
- First response wins: /admin is answered by the guard, the hello handler never runs.
- Pass-through: a failing handler that allowed it falls back to the upstream.
- wait_until(): background work is awaited after the response is returned.
- Swapping StaticTransport for HttpxTransport is the only change for a real upstream.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from edgeflow_core import EventDispatcher, FetchContext
from edgeflow_core.examples.hello_worker import PathGuard, hello_fetch
from edgeflow_core.transport import StaticTransport


async def audit(request: httpx.Request) -> str:
    """Background task: pretend to ship an access log line."""
    await asyncio.sleep(0.01)
    return f"audited {request.method} {request.url.path}"


def flaky_handler(request: httpx.Request, env: dict, ctx: FetchContext) -> httpx.Response | None:
    """Fails on /flaky after allowing pass-through; audits everything else and declines."""
    ctx.wait_until(audit(request))
    if request.url.path == "/flaky":
        ctx.pass_through_on_exception()
        raise RuntimeError("origin lookup failed")
    return None


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Offline upstream (in real use: HttpxTransport())
    upstream = StaticTransport(status_code=200, content="from upstream")
    dispatcher = EventDispatcher(upstream, upstream="http://origin.local", environment={"GREETING": "Hi"})

    guard = PathGuard(blocked_prefix="/admin")
    dispatcher.add_event_listener("fetch", guard)
    dispatcher.add_module_fetch_listener(flaky_handler)

    print("--- /admin (guard responds) ---")
    res = await dispatcher.dispatch_fetch("http://localhost:8787/admin")
    print(f"{res.status_code} {res.text!r}")

    print("\n--- /flaky (pass-through to upstream) ---")
    res = await dispatcher.dispatch_fetch("http://localhost:8787/flaky")
    print(f"{res.status_code} {res.text!r}")
    print(f"background: {await res.wait_until()}")

    dispatcher.add_module_fetch_listener(hello_fetch)
    print("\n--- /hello (module handler responds) ---")
    res = await dispatcher.dispatch_fetch("http://localhost:8787/hello")
    print(f"{res.status_code} {res.text!r}")
    print(f"background: {await res.wait_until()}")

    print("\n--- Upstream request log ---")
    for req in upstream.get_request_log():
        print(f"  {req.method} {req.url} host={req.headers.get('host')}")

    print("\n--- Scheduled dispatch ---")
    dispatcher.add_module_scheduled_listener(lambda controller, env, ctx: f"tick {controller.cron}")
    print(await dispatcher.dispatch_scheduled(cron="*/5 * * * *"))


if __name__ == "__main__":
    asyncio.run(main())
