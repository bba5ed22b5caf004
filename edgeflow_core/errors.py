"""
Errors raised by the dispatch engine itself.

Listener and transport errors are never wrapped; they reach the caller as raised.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for errors originating in the dispatcher."""

    code: str = "dispatch"


class UpstreamNotConfiguredError(DispatchError):
    """No listener responded and there is no upstream to proxy the request to."""

    code = "upstream"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No fetch handler responded and unable to proxy request to upstream: "
            "no upstream specified. Have you added a fetch event listener that "
            "responds with a Response?"
        )
