"""
Request-log replay demo using the replay package.

Demonstrates: load CSV → register handlers → replay through the dispatcher → metrics.
Requests nobody answers go to an offline upstream; point EDGEFLOW_UPSTREAM at a real
origin and drop the StaticTransport to replay against it instead.
"""

import asyncio
from pathlib import Path

import httpx

from edgeflow_core import DispatchOptions, EventDispatcher
from edgeflow_core.examples.hello_worker import PathGuard, hello_fetch
from edgeflow_core.transport import StaticTransport
from replay import ReplayEngine, load_csv, print_report


def only_hello(request: httpx.Request, env: dict, ctx):
    if request.url.path == "/hello":
        return hello_fetch(request, env, ctx)
    return None


async def main() -> None:
    # Path to sample data (relative to repo root or script)
    csv_path = Path(__file__).resolve().parent / "data" / "sample_requests.csv"
    data = load_csv(csv_path, base_url="http://localhost:8787")

    options = DispatchOptions.from_env(environment={"GREETING": "Hello"})
    if options.upstream is None:
        options.upstream = "http://origin.local"
    dispatcher = EventDispatcher.from_options(options, transport=StaticTransport(status_code=304))
    dispatcher.add_event_listener("fetch", PathGuard(blocked_prefix="/admin"))
    dispatcher.add_module_fetch_listener(only_hello)

    engine = ReplayEngine(dispatcher)
    result = await engine.run(data)

    print(result.to_dataframe()[["method", "url", "status", "error"]])
    print_report(result)


if __name__ == "__main__":
    asyncio.run(main())
