"""
Streaming gateway between HTTP chat requests and conversation turns.

Each fragment of the answer is sent as the whole answer generated so far,
followed by a single `[DONE]` frame, or a single error frame if the turn
fails or runs past the time limit.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from fastapi.responses import JSONResponse, Response

from yc_advisor.api.sse import EventStreamWriter, create_sse_response
from yc_advisor.graph.session import (
    AnswerFragment,
    ConversationSession,
    TurnCompleted,
    TurnEvent,
)
from yc_advisor.services.session_registry import SessionRegistry
from yc_advisor.utils.logger import get_logger, set_correlation_id

logger = get_logger(__name__)

MISSING_FIELDS_ERROR = "Message and threadId are required"


class StreamTimeoutError(Exception):
    """Raised when a chat stream exceeds its maximum duration."""


DisconnectCheck = Callable[[], Awaitable[bool]]


class StreamingGateway:
    """
    Opens chat streams: validates the request, resolves the thread and
    relays the turn's events as SSE frames.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        session: ConversationSession,
        max_duration: float = 300,
    ):
        """
        Args:
            registry: Live thread registry
            session: Runs the conversation turns
            max_duration: Seconds after which an open stream is failed
        """
        self.registry = registry
        self.session = session
        self.max_duration = max_duration

    async def open_stream(
        self,
        message: str | None,
        thread_id: str | None,
        is_disconnected: DisconnectCheck | None = None,
    ) -> Response:
        """
        Starts a turn and returns its event stream.

        Returns:
            400 JSON when message or thread id is missing, 500 JSON when the
            turn cannot be started, otherwise a text/event-stream response
        """
        if not message or not thread_id:
            return JSONResponse({"error": MISSING_FIELDS_ERROR}, status_code=400)

        try:
            thread_id = await self.registry.resolve(thread_id)
            set_correlation_id(thread_id)
            events = self.session.turn(thread_id, message)
        except Exception as e:
            logger.error("stream_open_failed", exc_info=True, error=str(e))
            return JSONResponse({"error": str(e)}, status_code=500)

        logger.info("stream_opened", message_length=len(message))
        return create_sse_response(self.relay(events, is_disconnected))

    async def relay(
        self,
        events: AsyncIterator[TurnEvent],
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncIterator[str]:
        """
        Converts turn events into SSE frames.

        Fragments are accumulated and each frame carries the full text so far.
        On completion the final answer is sent once more if it differs from
        what was streamed (fallback answers, retried generations), then
        `[DONE]`. The stream is closed exactly once whichever path ends it.
        """
        writer = EventStreamWriter()
        answer_so_far = ""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.max_duration

        try:
            while not writer.closed:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise StreamTimeoutError(
                        f"Response exceeded {self.max_duration:g}s limit"
                    )
                try:
                    event = await asyncio.wait_for(anext(events), timeout=remaining)
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError as e:
                    raise StreamTimeoutError(
                        f"Response exceeded {self.max_duration:g}s limit"
                    ) from e

                if is_disconnected is not None and await is_disconnected():
                    logger.info("client_disconnected", frames_sent=writer.frames_sent)
                    writer.close()
                    break

                if isinstance(event, AnswerFragment):
                    answer_so_far += event.text
                    frame = writer.data(answer_so_far)
                    if frame:
                        yield frame
                elif isinstance(event, TurnCompleted):
                    if event.answer != answer_so_far:
                        frame = writer.data(event.answer)
                        if frame:
                            yield frame
                    frame = writer.done()
                    if frame:
                        yield frame

            frame = writer.done()
            if frame:
                yield frame

        except Exception as e:
            logger.error("stream_failed", exc_info=True, error=str(e))
            frame = writer.error(str(e))
            if frame:
                yield frame

        finally:
            writer.close()
            await events.aclose()
            logger.info("stream_closed", frames_sent=writer.frames_sent)
