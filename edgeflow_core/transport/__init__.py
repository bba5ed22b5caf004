"""
Upstream transports used on the dispatcher's fallback path.

UpstreamTransport interface; httpx network transport; offline static transport.
"""

from edgeflow_core.transport.base import UpstreamTransport
from edgeflow_core.transport.http import HttpxTransport
from edgeflow_core.transport.static import StaticTransport

__all__ = [
    "UpstreamTransport",
    "HttpxTransport",
    "StaticTransport",
]
