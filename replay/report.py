"""
Replay report: print a summary from ReplayResult and ReplayMetrics.
"""

from __future__ import annotations

from replay.engine import ReplayResult
from replay.metrics import ReplayMetrics, compute_metrics


def print_report(result: ReplayResult) -> ReplayMetrics:
    """
    Compute metrics from a replay result and print a summary.

    Returns
    -------
    ReplayMetrics
        The computed metrics (e.g. for programmatic use).
    """
    metrics = compute_metrics(result.records)
    print("--- Replay Summary ---")
    print(f"Requests:        {metrics.total}")
    print(f"OK (<400):       {metrics.ok}")
    print(f"Errors:          {metrics.errors} ({metrics.error_rate:.1%})")
    print(f"Latency mean:    {metrics.mean_latency_ms:.2f} ms")
    print(f"Latency p50:     {metrics.p50_latency_ms:.2f} ms")
    print(f"Latency p95:     {metrics.p95_latency_ms:.2f} ms")
    print(f"Background fail: {metrics.background_failures}")
    for status, count in metrics.status_counts.items():
        print(f"  HTTP {status}:      {count}")
    print("----------------------")
    return metrics
