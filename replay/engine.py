"""
Replay engine: drives recorded requests through an EventDispatcher.

Loads rows → builds requests → dispatch_fetch → optional wait_until → records.
A failing request is recorded and the replay moves on to the next row.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime

import pandas as pd

from edgeflow_core import EventDispatcher

from replay.data_loader import request_from_row

logger = logging.getLogger(__name__)


@dataclass
class ReplayRecord:
    """Outcome of replaying one request. status is None when dispatch raised."""

    method: str
    url: str
    status: int | None
    duration_ms: float
    error: str | None = None
    background_tasks: int | None = None
    background_error: str | None = None
    timestamp: datetime | None = None


@dataclass
class ReplayResult:
    """Result of a replay run: one record per request, in replay order."""

    records: list[ReplayRecord] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [asdict(r) for r in self.records],
            columns=[f.name for f in fields(ReplayRecord)],
        )


class ReplayEngine:
    """
    Replays a request log against a dispatcher's listeners.

    upstream: origin for unanswered requests; None uses the dispatcher's default.
    await_background: also await each response's wait_until() and record its outcome.
    """

    def __init__(
        self,
        dispatcher: EventDispatcher,
        *,
        upstream: str | None = None,
        await_background: bool = True,
    ) -> None:
        self.dispatcher = dispatcher
        self.upstream = upstream
        self.await_background = await_background

    async def _replay_one(self, method: str, url: str, headers: str, body: str) -> ReplayRecord:
        start = time.perf_counter()
        try:
            request = request_from_row(method, url, headers, body)
            response = await self.dispatcher.dispatch_fetch(request, self.upstream)
        except Exception as e:  # noqa: BLE001
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.info("Replay %s %s failed: %s: %s", method, url, type(e).__name__, e)
            return ReplayRecord(method=method, url=url, status=None, duration_ms=duration_ms, error=type(e).__name__)
        duration_ms = (time.perf_counter() - start) * 1000.0

        record = ReplayRecord(
            method=method,
            url=url,
            status=getattr(response, "status_code", None),
            duration_ms=duration_ms,
        )
        if self.await_background:
            try:
                results = await response.wait_until()
                record.background_tasks = len(results)
            except Exception as e:  # noqa: BLE001
                logger.info("Background work for %s %s failed: %s", method, url, e)
                record.background_error = type(e).__name__
        return record

    async def run(self, data: pd.DataFrame) -> ReplayResult:
        """
        Replay every row of a normalized request DataFrame (see load_dataframe) in order.

        Returns
        -------
        ReplayResult
            One ReplayRecord per row.
        """
        records: list[ReplayRecord] = []
        has_timestamp = "timestamp" in data.columns
        for row in data.itertuples(index=False):
            record = await self._replay_one(row.method, row.url, row.headers, row.body)
            if has_timestamp:
                record.timestamp = pd.Timestamp(row.timestamp).to_pydatetime()
            records.append(record)
        errors = sum(1 for r in records if r.error is not None)
        logger.info("Replay finished: %d requests, %d errors", len(records), errors)
        return ReplayResult(records=records)
