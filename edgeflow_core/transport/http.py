"""
Network transport: forwards fallback requests to the real upstream with httpx.

The client is either injected (shared pool, test MockTransport) or created and
owned by the transport; only an owned client is closed by aclose().
"""

from __future__ import annotations

import logging

import httpx

from edgeflow_core.transport.base import UpstreamTransport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpxTransport(UpstreamTransport):
    """
    Real upstream transport backed by httpx.AsyncClient.

    - client=None: an AsyncClient is created with the given timeout and closed by aclose().
    - client given: used as-is and left open; the caller owns its lifecycle.
    Redirects are not followed, so the handler sees exactly what the origin returned.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        logger.info("HttpxTransport created (owned client=%s, timeout=%s)", self._owns_client, timeout)

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        logger.debug("Upstream request: %s %s", request.method, request.url)
        response = await self._client.send(request, follow_redirects=False)
        logger.debug("Upstream response: %s %s -> %s", request.method, request.url, response.status_code)
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
