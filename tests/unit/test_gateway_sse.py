"""
Unit tests for the streaming gateway and SSE framing.
Tests cumulative frames, termination, errors, timeouts and request checks.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, Mock
from fastapi.responses import StreamingResponse

from yc_advisor.api.gateway import MISSING_FIELDS_ERROR, StreamingGateway
from yc_advisor.api.sse import EventStreamWriter, encode_event
from yc_advisor.database.supabase import DatabaseError
from yc_advisor.graph.session import AnswerFragment, ConversationSession, TurnCompleted
from yc_advisor.services.session_registry import SessionRegistry


class FakeSession:
    """Yields a fixed list of events; raises `error` after them if set."""

    def __init__(self, events=(), error: Exception | None = None, delay: float = 0):
        self.events = list(events)
        self.error = error
        self.delay = delay
        self.closed = False
        self.turns: list[tuple[str, str]] = []

    def turn(self, thread_id, user_text):
        self.turns.append((thread_id, user_text))
        return self._events()

    async def _events(self):
        try:
            for event in self.events:
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield event
            if self.error:
                raise self.error
        finally:
            self.closed = True


def gateway_for(session, max_duration: float = 300) -> StreamingGateway:
    return StreamingGateway(SessionRegistry(), session, max_duration=max_duration)


async def relay_frames(session, is_disconnected=None, max_duration: float = 300):
    gateway = gateway_for(session, max_duration)
    events = session.turn("t1", "hi")
    return [frame async for frame in gateway.relay(events, is_disconnected)]


class TestEncoding:
    """Tests for SSE framing."""

    def test_single_line(self):
        assert encode_event("Hello") == "data: Hello\n\n"

    def test_multi_line_payload_keeps_every_line(self):
        assert encode_event("a\nb") == "data: a\ndata: b\n\n"

    @pytest.mark.parametrize("payload", ["a\rb", "a\r\nb"])
    def test_carriage_returns_end_lines(self, payload):
        assert encode_event(payload) == "data: a\ndata: b\n\n"

    def test_writer_stops_after_done(self):
        writer = EventStreamWriter()

        assert writer.done() == "data: [DONE]\n\n"
        assert writer.done() is None
        assert writer.error("late") is None
        assert writer.data("late") is None
        assert writer.frames_sent == 1

    def test_writer_stops_after_error(self):
        writer = EventStreamWriter()

        assert writer.error("boom") == "data: Error: boom\n\n"
        assert writer.done() is None

    def test_writer_closed_explicitly(self):
        writer = EventStreamWriter()
        writer.close()

        assert writer.data("x") is None
        assert writer.done() is None


class TestRelay:
    """Tests for relaying turn events."""

    @pytest.mark.asyncio
    async def test_frames_are_cumulative(self):
        session = FakeSession(
            [
                AnswerFragment("Hel"),
                AnswerFragment("lo"),
                TurnCompleted(thread_id="t1", answer="Hello"),
            ]
        )

        frames = await relay_frames(session)

        assert frames == ["data: Hel\n\n", "data: Hello\n\n", "data: [DONE]\n\n"]

    @pytest.mark.asyncio
    async def test_final_answer_resent_when_different(self):
        session = FakeSession(
            [AnswerFragment("Hel"), TurnCompleted(thread_id="t1", answer="Sorry")]
        )

        frames = await relay_frames(session)

        assert frames == ["data: Hel\n\n", "data: Sorry\n\n", "data: [DONE]\n\n"]

    @pytest.mark.asyncio
    async def test_answer_without_fragments(self):
        session = FakeSession([TurnCompleted(thread_id="t1", answer="Welcome!")])

        frames = await relay_frames(session)

        assert frames == ["data: Welcome!\n\n", "data: [DONE]\n\n"]

    @pytest.mark.asyncio
    async def test_end_without_completion_still_done_once(self):
        frames = await relay_frames(FakeSession([AnswerFragment("Hi")]))

        assert frames == ["data: Hi\n\n", "data: [DONE]\n\n"]

    @pytest.mark.asyncio
    async def test_failure_sends_single_error_frame(self):
        session = FakeSession([AnswerFragment("Hel")], error=RuntimeError("boom"))

        frames = await relay_frames(session)

        assert frames == ["data: Hel\n\n", "data: Error: boom\n\n"]
        assert session.closed

    @pytest.mark.asyncio
    async def test_checkpoint_write_failure_sends_error_instead_of_done(
        self, fake_workflow
    ):
        store = Mock()
        store.list_checkpoints = AsyncMock(return_value=[])
        store.append = AsyncMock(side_effect=DatabaseError("write failed"))

        frames = await relay_frames(ConversationSession(store, fake_workflow))

        assert frames == [
            "data: Hello\n\n",
            "data: Hello founder\n\n",
            "data: Error: write failed\n\n",
        ]

    @pytest.mark.asyncio
    async def test_timeout_sends_error_frame(self):
        session = FakeSession([AnswerFragment("late")], delay=1)

        frames = await relay_frames(session, max_duration=0.05)

        assert len(frames) == 1
        assert frames[0].startswith("data: Error: Response exceeded")
        assert "[DONE]" not in frames[0]

    @pytest.mark.asyncio
    async def test_disconnect_stops_stream(self):
        session = FakeSession(
            [AnswerFragment("Hel"), TurnCompleted(thread_id="t1", answer="Hello")]
        )
        is_disconnected = AsyncMock(return_value=True)

        frames = await relay_frames(session, is_disconnected=is_disconnected)

        assert frames == []
        assert session.closed


class TestOpenStream:
    """Tests for request validation and stream setup."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message, thread_id", [(None, "t1"), ("hi", None), ("", "t1"), ("hi", "")]
    )
    async def test_missing_fields_rejected(self, message, thread_id):
        session = FakeSession()

        response = await gateway_for(session).open_stream(message, thread_id)

        assert response.status_code == 400
        assert json.loads(response.body) == {"error": MISSING_FIELDS_ERROR}
        assert session.turns == []

    @pytest.mark.asyncio
    async def test_setup_failure_returns_500(self):
        registry = Mock()
        registry.resolve = AsyncMock(side_effect=RuntimeError("registry down"))
        gateway = StreamingGateway(registry, FakeSession())

        response = await gateway.open_stream("hi", "t1")

        assert response.status_code == 500
        assert json.loads(response.body) == {"error": "registry down"}

    @pytest.mark.asyncio
    async def test_returns_event_stream(self):
        session = FakeSession([TurnCompleted(thread_id="t1", answer="ok")])
        gateway = gateway_for(session)

        response = await gateway.open_stream("hi", "t1")

        assert isinstance(response, StreamingResponse)
        assert response.media_type == "text/event-stream"
        assert response.headers["cache-control"] == "no-cache"
        assert session.turns == [("t1", "hi")]
        assert "t1" in gateway.registry
