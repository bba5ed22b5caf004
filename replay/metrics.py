"""
Replay metrics: status distribution, error rate, dispatch latency percentiles.

Latency covers dispatch_fetch only (response ready), not background work.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from replay.engine import ReplayRecord


@dataclass
class ReplayMetrics:
    """Summary of a replay run."""

    total: int
    ok: int
    errors: int
    error_rate: float
    mean_latency_ms: float
    p50_latency_ms: float
    p95_latency_ms: float
    background_failures: int
    status_counts: dict[int, int] = field(default_factory=dict)


def compute_metrics(records: Sequence[ReplayRecord]) -> ReplayMetrics:
    """
    Compute summary metrics from replay records.

    Parameters
    ----------
    records : sequence of ReplayRecord
        Output of ReplayEngine.run().records.

    Returns
    -------
    ReplayMetrics
        ok counts responses with status below 400; errors counts dispatches that
        raised; latencies are over all records.
    """
    if not records:
        return ReplayMetrics(
            total=0,
            ok=0,
            errors=0,
            error_rate=0.0,
            mean_latency_ms=0.0,
            p50_latency_ms=0.0,
            p95_latency_ms=0.0,
            background_failures=0,
        )

    total = len(records)
    errors = sum(1 for r in records if r.error is not None)
    ok = sum(1 for r in records if r.status is not None and r.status < 400)
    statuses = Counter(r.status for r in records if r.status is not None)
    latencies = np.array([r.duration_ms for r in records], dtype=float)

    return ReplayMetrics(
        total=total,
        ok=ok,
        errors=errors,
        error_rate=errors / total,
        mean_latency_ms=float(np.mean(latencies)),
        p50_latency_ms=float(np.percentile(latencies, 50)),
        p95_latency_ms=float(np.percentile(latencies, 95)),
        background_failures=sum(1 for r in records if r.background_error is not None),
        status_counts=dict(sorted(statuses.items())),
    )
