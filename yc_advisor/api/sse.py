"""Server-Sent Events framing for the chat stream."""

from typing import AsyncIterator

from fastapi.responses import StreamingResponse

DONE_SENTINEL = "[DONE]"
ERROR_PREFIX = "Error: "


def encode_event(payload: str) -> str:
    """Encode a payload as one SSE `data` event (multi-line safe)."""
    # SSE ends a line on CRLF, LF or a lone CR
    lines = payload.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return "".join(f"data: {line}\n" for line in lines) + "\n"


class EventStreamWriter:
    """
    Produces the frames of one chat stream and remembers when it was closed.

    Every method returns the frame to send, or None once the stream is
    closed, so completion, error and disconnect paths can all run without
    writing twice or after the end.
    """

    def __init__(self):
        self.closed = False
        self.frames_sent = 0

    def data(self, payload: str) -> str | None:
        if self.closed:
            return None
        self.frames_sent += 1
        return encode_event(payload)

    def done(self) -> str | None:
        """Final `[DONE]` frame; closes the stream."""
        frame = self.data(DONE_SENTINEL)
        self.close()
        return frame

    def error(self, message: str) -> str | None:
        """Error frame; closes the stream."""
        frame = self.data(f"{ERROR_PREFIX}{message}")
        self.close()
        return frame

    def close(self) -> None:
        self.closed = True


def create_sse_response(generator: AsyncIterator[str]) -> StreamingResponse:
    """Create an SSE StreamingResponse."""
    return StreamingResponse(
        generator,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
