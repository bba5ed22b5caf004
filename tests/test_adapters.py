"""
Tests for module-style handlers: FetchContext, ScheduledController, environment wiring, sandbox.
"""

import asyncio
import dataclasses
from datetime import datetime

import httpx
import pytest

from edgeflow_core import (
    EventDispatcher,
    FetchContext,
    FetchEvent,
    ScheduledContext,
    ScheduledController,
    ScheduledEvent,
    UpstreamNotConfiguredError,
)
from edgeflow_core.examples.hello_worker import PathGuard, hello_fetch, report_trigger
from edgeflow_core.transport import StaticTransport


def _dispatcher(**kwargs) -> EventDispatcher:
    return EventDispatcher(StaticTransport(content="upstream"), **kwargs)


# --- Module fetch handlers ---


@pytest.mark.asyncio
async def test_module_fetch_handler_arguments_and_response():
    dispatcher = _dispatcher()
    seen = {}

    def handler(request, env, ctx):
        seen["request"] = request
        seen["env"] = env
        seen["ctx"] = ctx
        return httpx.Response(200, text="module")

    env = {"KEY": "value"}
    dispatcher.add_module_fetch_listener(handler, env)
    res = await dispatcher.dispatch_fetch("http://localhost:8787/m")
    assert res.text == "module"
    assert str(seen["request"].url) == "http://localhost:8787/m"
    assert seen["env"] is env
    assert isinstance(seen["ctx"], FetchContext)
    assert {f.name for f in dataclasses.fields(seen["ctx"])} == {"pass_through_on_exception", "wait_until"}


@pytest.mark.asyncio
async def test_module_fetch_handler_uses_dispatcher_environment_by_default():
    dispatcher = _dispatcher(environment={"GREETING": "Howdy"})
    dispatcher.add_module_fetch_listener(hello_fetch)
    res = await dispatcher.dispatch_fetch("http://localhost:8787/")
    assert res.text == "Howdy:http://localhost:8787/"


@pytest.mark.asyncio
async def test_module_fetch_context_wait_until_and_pass_through():
    dispatcher = _dispatcher(upstream="http://origin.example")

    def handler(request, env, ctx):
        ctx.wait_until(asyncio.sleep(0, result="logged"))
        ctx.pass_through_on_exception()
        raise RuntimeError("fail after granting pass-through")

    dispatcher.add_module_fetch_listener(handler)
    res = await dispatcher.dispatch_fetch("http://localhost:8787/")
    assert res.text == "upstream"
    assert await res.wait_until() == ["logged"]


@pytest.mark.asyncio
async def test_module_fetch_handler_returning_none_defers():
    dispatcher = _dispatcher()
    dispatcher.add_module_fetch_listener(lambda request, env, ctx: None)
    dispatcher.add_module_fetch_listener(hello_fetch)
    res = await dispatcher.dispatch_fetch("http://localhost:8787/")
    assert res.text == "Hello:http://localhost:8787/"


@pytest.mark.asyncio
async def test_raw_and_module_listeners_share_priority_order():
    dispatcher = _dispatcher()
    guard = PathGuard("/admin")
    dispatcher.add_event_listener("fetch", guard)
    dispatcher.add_module_fetch_listener(hello_fetch)

    blocked = await dispatcher.dispatch_fetch("http://localhost:8787/admin/users")
    allowed = await dispatcher.dispatch_fetch("http://localhost:8787/home")
    assert blocked.status_code == 403
    assert allowed.status_code == 200
    assert guard.seen == 2


@pytest.mark.asyncio
async def test_module_fetch_handler_error_without_pass_through():
    dispatcher = _dispatcher()

    def handler(request, env, ctx):
        raise KeyError("missing binding")

    dispatcher.add_module_fetch_listener(handler)
    with pytest.raises(KeyError):
        await dispatcher.dispatch_fetch("http://localhost:8787/")


# --- Module scheduled handlers ---


@pytest.mark.asyncio
async def test_module_scheduled_handler_controller_and_return_value():
    dispatcher = _dispatcher()
    seen = {}

    def handler(controller, env, ctx):
        seen["controller"] = controller
        seen["ctx"] = ctx
        ctx.wait_until(asyncio.sleep(0, result="explicit"))
        return "returned"

    dispatcher.add_module_scheduled_listener(handler, {"A": 1})
    ts = datetime(2024, 1, 15, 10, 0, 0)
    results = await dispatcher.dispatch_scheduled(ts, "*/5 * * * *")
    assert results == ["explicit", "returned"]
    controller = seen["controller"]
    assert isinstance(controller, ScheduledController)
    assert controller.scheduled_time == ts
    assert controller.cron == "*/5 * * * *"
    with pytest.raises(AttributeError):
        controller.cron = "changed"
    assert isinstance(seen["ctx"], ScheduledContext)
    assert not hasattr(seen["ctx"], "pass_through_on_exception")


@pytest.mark.asyncio
async def test_module_scheduled_handler_async_return_is_awaited():
    dispatcher = _dispatcher()
    dispatcher.add_module_scheduled_listener(report_trigger)
    ts = datetime(2024, 1, 15, 10, 0, 0)
    assert await dispatcher.dispatch_scheduled(ts, "@daily") == ["@daily@2024-01-15T10:00:00"]


@pytest.mark.asyncio
async def test_module_scheduled_handler_none_return_is_still_counted():
    dispatcher = _dispatcher()
    dispatcher.add_module_scheduled_listener(lambda controller, env, ctx: None)
    assert await dispatcher.dispatch_scheduled() == [None]


# --- Sandbox ---


@pytest.mark.asyncio
async def test_build_sandbox_registers_through_dispatcher():
    dispatcher = _dispatcher()
    sandbox = dispatcher.build_sandbox()
    assert sandbox["FetchEvent"] is FetchEvent
    assert sandbox["ScheduledEvent"] is ScheduledEvent

    sandbox["add_event_listener"]("fetch", lambda e: e.respond_with(httpx.Response(204)))
    res = await dispatcher.dispatch_fetch("http://localhost:8787/")
    assert res.status_code == 204

    dispatcher.reset_event_listeners()
    with pytest.raises(UpstreamNotConfiguredError):
        await dispatcher.dispatch_fetch("http://localhost:8787/")


def test_sandbox_event_constructors_usable_by_handler_code():
    sandbox = EventDispatcher().build_sandbox()
    event = sandbox["ScheduledEvent"](datetime(2024, 1, 1), "0 0 * * *")
    assert event.cron == "0 0 * * *"
