"""
Dispatcher options: default upstream, transport timeout, handler environment.

Options arrive as a plain structure; parsing deployment config files is left to
the caller. from_env() covers the common local setup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from edgeflow_core.transport.http import DEFAULT_TIMEOUT

# Origin that unanswered requests are proxied to, e.g. "https://example.com".
UPSTREAM_ENV = "EDGEFLOW_UPSTREAM"
# Upstream request timeout in seconds.
UPSTREAM_TIMEOUT_ENV = "EDGEFLOW_UPSTREAM_TIMEOUT"


def parse_upstream(upstream: str | httpx.URL | None) -> httpx.URL | None:
    """Normalise an upstream to its origin. None or empty means no upstream."""
    if upstream is None or upstream == "":
        return None
    url = httpx.URL(str(upstream))
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Invalid upstream {str(upstream)!r}: expected an http(s) origin")
    return httpx.URL(f"{url.scheme}://{url.netloc.decode('ascii')}/")


@dataclass
class DispatchOptions:
    """Plain options for building an EventDispatcher."""

    upstream: str | None = None
    upstream_timeout: float = DEFAULT_TIMEOUT
    environment: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Fail early on a malformed upstream
        parse_upstream(self.upstream)
        if self.upstream_timeout <= 0:
            raise ValueError(f"upstream_timeout must be positive, got {self.upstream_timeout}")

    @property
    def upstream_url(self) -> httpx.URL | None:
        return parse_upstream(self.upstream)

    @classmethod
    def from_env(cls, environment: dict[str, Any] | None = None) -> "DispatchOptions":
        """Build options from EDGEFLOW_UPSTREAM and EDGEFLOW_UPSTREAM_TIMEOUT."""
        upstream = os.environ.get(UPSTREAM_ENV) or None
        raw_timeout = os.environ.get(UPSTREAM_TIMEOUT_ENV, "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"{UPSTREAM_TIMEOUT_ENV} must be a number, got {raw_timeout!r}") from None
        return cls(upstream=upstream, upstream_timeout=timeout, environment=dict(environment or {}))
