"""
Request-log replay on top of edgeflow-core.

Feeds recorded requests through an EventDispatcher; computes status, error and
latency metrics for the run.
"""

from replay.engine import ReplayEngine, ReplayRecord, ReplayResult
from replay.data_loader import load_csv, load_dataframe
from replay.metrics import ReplayMetrics, compute_metrics
from replay.report import print_report

__all__ = [
    "ReplayEngine",
    "ReplayRecord",
    "ReplayResult",
    "load_csv",
    "load_dataframe",
    "ReplayMetrics",
    "compute_metrics",
    "print_report",
]
