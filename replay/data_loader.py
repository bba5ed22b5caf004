"""
Load recorded requests from CSV or DataFrame for replay.

Expects a url column and optionally method, headers (JSON object), body and
timestamp. Rows are ordered by timestamp when one is present.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pandas as pd


# Standard column names; lowercase for normalization
REQUEST_COLUMNS = ("method", "url", "headers", "body")


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Ensure columns are lowercase; map common aliases to method/url/headers/body/timestamp."""
    out = df.copy()
    out.columns = [str(c).lower().strip() for c in out.columns]
    # Common aliases
    renames = {
        "verb": "method",
        "http_method": "method",
        "uri": "url",
        "path": "url",
        "data": "body",
        "payload": "body",
        "time": "timestamp",
        "ts": "timestamp",
        "date": "timestamp",
    }
    out = out.rename(columns={k: v for k, v in renames.items() if k in out.columns and v not in out.columns})
    return out


def load_csv(
    path: str | Path,
    *,
    base_url: str | None = None,
) -> pd.DataFrame:
    """
    Load a request log from a CSV file.

    Parameters
    ----------
    path : str or Path
        Path to the CSV file.
    base_url : str, optional
        Origin joined onto relative urls (e.g. "/hello" -> "http://localhost:8787/hello").

    Returns
    -------
    pd.DataFrame
        Columns method, url, headers, body (and timestamp if the log has one).
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return load_dataframe(df, base_url=base_url)


def load_dataframe(
    df: pd.DataFrame,
    *,
    base_url: str | None = None,
) -> pd.DataFrame:
    """
    Normalize a DataFrame of requests for replay.

    Parameters
    ----------
    df : pd.DataFrame
        Raw DataFrame (columns may be mixed case or aliased).
    base_url : str, optional
        Origin joined onto relative urls.

    Returns
    -------
    pd.DataFrame
        Normalized DataFrame; method upper-cased and defaulting to GET, headers
        defaulting to "{}", body defaulting to "".
    """
    out = _normalize_columns(df)
    if "url" not in out.columns:
        raise ValueError("Request log needs a url column")
    defaults = {"method": "GET", "headers": "{}", "body": ""}
    for col, default in defaults.items():
        if col not in out.columns:
            out[col] = default
        out[col] = out[col].fillna(default).astype(str)
        out.loc[out[col].str.strip() == "", col] = default
    out["method"] = out["method"].str.upper().str.strip()
    out["url"] = out["url"].astype(str).str.strip()
    if base_url is not None:
        base = httpx.URL(base_url)
        out["url"] = out["url"].map(lambda u: str(base.join(u)))
    cols = list(REQUEST_COLUMNS)
    if "timestamp" in out.columns:
        out["timestamp"] = pd.to_datetime(out["timestamp"])
        out = out.sort_values("timestamp", kind="stable")
        cols.insert(0, "timestamp")
    return out[cols].reset_index(drop=True)


def request_from_row(method: str, url: str, headers: str, body: str) -> httpx.Request:
    """Build an httpx.Request from one normalized row."""
    parsed_headers = json.loads(headers) if headers else {}
    if not isinstance(parsed_headers, dict):
        raise ValueError(f"headers must be a JSON object, got {headers!r}")
    return httpx.Request(method, url, headers=parsed_headers, content=body.encode() if body else None)
