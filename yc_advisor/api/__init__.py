"""
HTTP layer: FastAPI app, streaming gateway and SSE framing.
"""

from yc_advisor.api.app import AppContainer, build_container, create_app
from yc_advisor.api.gateway import StreamingGateway, StreamTimeoutError
from yc_advisor.api.sse import EventStreamWriter, create_sse_response, encode_event

__all__ = [
    "AppContainer",
    "build_container",
    "create_app",
    "StreamingGateway",
    "StreamTimeoutError",
    "EventStreamWriter",
    "create_sse_response",
    "encode_event",
]
