"""
Upstream transport abstraction.

UpstreamTransport ABC: fetch(request) -> response. The dispatcher calls it only
on the fallback path, when no listener responded or a pass-through listener failed.
Implementations: HttpxTransport (real network), StaticTransport (offline).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx


class UpstreamTransport(ABC):
    """
    Sends a proxied request to the upstream origin.
    Errors raised here reach the dispatch caller unchanged; no retries at this layer.
    """

    @abstractmethod
    async def fetch(self, request: httpx.Request) -> httpx.Response:
        """
        Send request and return the upstream response.
        The request already targets the upstream origin and carries no inbound host header.
        """
        ...

    async def aclose(self) -> None:
        """Release any resources held by the transport."""
        return None
