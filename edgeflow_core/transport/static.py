"""
Offline upstream: answers fallback requests locally without a network.

Serves either a canned response (status, body, headers) or whatever a responder
callable builds for the request. Every request is kept in a log for inspection.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Union

import httpx

from edgeflow_core.events import resolve
from edgeflow_core.transport.base import UpstreamTransport

Responder = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


class StaticTransport(UpstreamTransport):
    """
    Local stand-in for the upstream origin.
    Pass responder(request) -> response (sync or async), or status_code/content/headers
    for a fixed answer. A fresh Response is built per request.
    """

    def __init__(
        self,
        responder: Responder | None = None,
        *,
        status_code: int = 200,
        content: bytes | str = b"",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._responder = responder
        self._status_code = status_code
        self._content = content.encode() if isinstance(content, str) else content
        self._headers = dict(headers or {})
        self._request_log: list[httpx.Request] = []

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        self._request_log.append(request)
        if self._responder is not None:
            return await resolve(self._responder(request))
        return httpx.Response(
            self._status_code,
            content=self._content,
            headers=self._headers,
            request=request,
        )

    def get_request_log(self) -> list[httpx.Request]:
        """Return every request received, in order (for debugging/assertions)."""
        return list(self._request_log)
