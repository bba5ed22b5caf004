"""
Tests for replay: ReplayEngine, compute_metrics, print_report.
"""

import asyncio

import httpx
import pandas as pd
import pytest

from edgeflow_core import EventDispatcher
from edgeflow_core.examples.hello_worker import PathGuard, hello_fetch
from edgeflow_core.transport import StaticTransport
from replay import ReplayEngine, ReplayRecord, ReplayResult, compute_metrics, load_dataframe, print_report


def _requests(*paths: str) -> pd.DataFrame:
    return load_dataframe(pd.DataFrame({"url": list(paths)}), base_url="http://localhost:8787")


def _record(status, duration_ms, error=None, background_error=None) -> ReplayRecord:
    return ReplayRecord(
        method="GET",
        url="http://localhost/",
        status=status,
        duration_ms=duration_ms,
        error=error,
        background_error=background_error,
    )


# --- ReplayEngine ---


@pytest.mark.asyncio
async def test_replay_engine_records_each_request():
    transport = StaticTransport(status_code=304)
    dispatcher = EventDispatcher(transport, upstream="http://origin.local")
    dispatcher.add_event_listener("fetch", PathGuard("/admin"))
    dispatcher.add_module_fetch_listener(
        lambda request, env, ctx: hello_fetch(request, env, ctx) if request.url.path == "/hello" else None
    )

    result = await ReplayEngine(dispatcher).run(_requests("/hello", "/admin", "/static.js"))
    assert [r.status for r in result.records] == [200, 403, 304]
    assert all(r.error is None for r in result.records)
    assert all(r.background_tasks == 0 for r in result.records)
    assert len(transport.get_request_log()) == 1


@pytest.mark.asyncio
async def test_replay_engine_continues_after_failure():
    dispatcher = EventDispatcher(StaticTransport())
    dispatcher.add_event_listener(
        "fetch",
        lambda e: e.respond_with(httpx.Response(200)) if e.request.url.path == "/ok" else None,
    )
    result = await ReplayEngine(dispatcher).run(_requests("/missing", "/ok"))
    first, second = result.records
    assert first.status is None
    assert first.error == "UpstreamNotConfiguredError"
    assert second.status == 200
    assert second.error is None


@pytest.mark.asyncio
async def test_replay_engine_upstream_override():
    transport = StaticTransport(status_code=202)
    dispatcher = EventDispatcher(transport)
    result = await ReplayEngine(dispatcher, upstream="http://origin.local").run(_requests("/a"))
    assert result.records[0].status == 202
    assert str(transport.get_request_log()[0].url) == "http://origin.local/a"


@pytest.mark.asyncio
async def test_replay_engine_records_background_outcome():
    async def broken():
        raise TimeoutError("sink timeout")

    def listener(e):
        if e.request.url.path == "/bad":
            e.wait_until(broken())
        else:
            e.wait_until(asyncio.sleep(0, result="ok"))
        e.respond_with(httpx.Response(200))

    dispatcher = EventDispatcher(StaticTransport())
    dispatcher.add_event_listener("fetch", listener)
    result = await ReplayEngine(dispatcher).run(_requests("/good", "/bad"))
    good, bad = result.records
    assert good.background_tasks == 1
    assert good.background_error is None
    assert bad.background_tasks is None
    assert bad.background_error == "TimeoutError"


@pytest.mark.asyncio
async def test_replay_engine_keeps_timestamps():
    dispatcher = EventDispatcher(StaticTransport(), upstream="http://origin.local")
    data = load_dataframe(pd.DataFrame({
        "url": ["http://localhost/a"],
        "timestamp": ["2024-01-15T10:00:00"],
    }))
    result = await ReplayEngine(dispatcher, await_background=False).run(data)
    assert result.records[0].timestamp.year == 2024
    assert result.records[0].background_tasks is None


def test_replay_result_to_dataframe():
    result = ReplayResult(records=[_record(200, 1.0), _record(None, 2.0, error="ValueError")])
    df = result.to_dataframe()
    assert list(df["error"]) == [None, "ValueError"]
    assert "duration_ms" in df.columns
    assert len(df) == 2


def test_replay_result_to_dataframe_empty():
    df = ReplayResult().to_dataframe()
    assert df.empty
    assert "status" in df.columns


# --- Metrics ---


def test_compute_metrics_empty():
    m = compute_metrics([])
    assert m.total == 0
    assert m.error_rate == 0.0
    assert m.status_counts == {}


def test_compute_metrics_counts_and_latency():
    records = [
        _record(200, 10.0),
        _record(304, 20.0),
        _record(500, 30.0, background_error="ValueError"),
        _record(None, 40.0, error="UpstreamNotConfiguredError"),
    ]
    m = compute_metrics(records)
    assert m.total == 4
    assert m.ok == 2
    assert m.errors == 1
    assert m.error_rate == pytest.approx(0.25)
    assert m.status_counts == {200: 1, 304: 1, 500: 1}
    assert m.mean_latency_ms == pytest.approx(25.0)
    assert m.p50_latency_ms == pytest.approx(25.0)
    assert m.p95_latency_ms == pytest.approx(38.5)
    assert m.background_failures == 1


def test_print_report(capsys):
    result = ReplayResult(records=[_record(200, 5.0), _record(404, 15.0)])
    m = print_report(result)
    out = capsys.readouterr().out
    assert "Replay Summary" in out
    assert "Requests:        2" in out
    assert "HTTP 404" in out
    assert m.ok == 1
