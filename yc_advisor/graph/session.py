"""
Conversation session: runs one advisor turn for a thread.

A turn loads the thread's checkpoints, replays them into the chat history,
runs the advisor workflow once while relaying generated tokens, records the
user/assistant pair as the next checkpoints and then returns. The next user
message starts the next turn.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator
from langchain_core.callbacks import AsyncCallbackHandler

from yc_advisor.database.checkpoints import CheckpointStore
from yc_advisor.graph.checkpoints import reconstruct_messages, turn_checkpoints
from yc_advisor.models.domain import Message
from yc_advisor.services.summary_service import SummaryService
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)

_RUN_FINISHED = object()


@dataclass
class AnswerFragment:
    """A piece of the answer as the model generated it."""

    text: str


@dataclass
class TurnCompleted:
    """The turn's final answer, emitted after it has been persisted."""

    thread_id: str
    answer: str


TurnEvent = AnswerFragment | TurnCompleted


class FragmentCollector(AsyncCallbackHandler):
    """Forwards every generated token of the run to a queue."""

    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    async def on_llm_new_token(self, token: str, **kwargs: Any) -> None:
        if token:
            self.queue.put_nowait(token)


class ConversationSession:
    """
    Executes turns against the advisor workflow and the checkpoint log.
    One instance serves every thread; per-thread state lives in the store.
    """

    def __init__(
        self,
        store: CheckpointStore,
        workflow,
        summary_service: SummaryService | None = None,
    ):
        """
        Args:
            store: Durable checkpoint log
            workflow: Compiled advisor graph (see graph.builder.build_graph)
            summary_service: Refreshes the user's summary every few turns
        """
        self.store = store
        self.workflow = workflow
        self.summary_service = summary_service
        self._background_tasks: set[asyncio.Task] = set()
        # thread id -> (lock, turns holding or awaiting it)
        self._thread_locks: dict[str, tuple[asyncio.Lock, int]] = {}

    async def history(self, thread_id: str) -> list[Message]:
        """Display messages of a thread, oldest first."""
        return reconstruct_messages(await self.store.list_checkpoints(thread_id))

    @asynccontextmanager
    async def _thread_turn(self, thread_id: str):
        """Holds the thread's lock; the entry is dropped once nobody needs it."""
        lock, users = self._thread_locks.get(thread_id, (asyncio.Lock(), 0))
        self._thread_locks[thread_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._thread_locks[thread_id]
            if users == 1:
                del self._thread_locks[thread_id]
            else:
                self._thread_locks[thread_id] = (lock, users - 1)

    async def turn(self, thread_id: str, user_text: str) -> AsyncIterator[TurnEvent]:
        """
        Runs one turn and yields its events.

        Yields zero or more AnswerFragment in generation order, then exactly
        one TurnCompleted once the turn's checkpoints are stored. Closing the
        iterator early cancels the run and nothing is stored.

        Turns on the same thread run one at a time, from loading the log to
        storing the new checkpoints, so each one sees the previous answer.

        Raises:
            DatabaseError: If the checkpoint log cannot be read or written
        """
        async with self._thread_turn(thread_id):
            checkpoints = await self.store.list_checkpoints(thread_id)
            history = reconstruct_messages(checkpoints)
            last_step = max((cp.step for cp in checkpoints), default=-1)

            logger.info(
                "turn_started", prior_messages=len(history), last_step=last_step
            )

            queue: asyncio.Queue = asyncio.Queue()
            run = asyncio.create_task(
                self.workflow.ainvoke(
                    {
                        "input": user_text,
                        "chat_history": [m.to_langchain() for m in history],
                    },
                    config={"callbacks": [FragmentCollector(queue)]},
                )
            )
            run.add_done_callback(lambda _: queue.put_nowait(_RUN_FINISHED))

            try:
                while True:
                    item = await queue.get()
                    if item is _RUN_FINISHED:
                        break
                    yield AnswerFragment(text=item)
                state = run.result()
            finally:
                if not run.done():
                    run.cancel()
                    logger.warning("turn_abandoned")

            answer = state["answer"]
            for checkpoint in turn_checkpoints(last_step, user_text, answer):
                await self.store.append(thread_id, checkpoint)

            logger.info(
                "turn_persisted", step=last_step + 2, answer_length=len(answer)
            )

        self._schedule_summary(
            thread_id,
            [
                *history,
                Message(role="user", content=user_text),
                Message(role="assistant", content=answer),
            ],
        )
        yield TurnCompleted(thread_id=thread_id, answer=answer)

    def _schedule_summary(self, user_id: str, messages: list[Message]) -> None:
        if self.summary_service is None or not self.summary_service.should_refresh(
            messages
        ):
            return
        task = asyncio.create_task(self._refresh_summary(user_id, messages))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _refresh_summary(self, user_id: str, messages: list[Message]) -> None:
        try:
            await self.summary_service.refresh(user_id, messages)
        except Exception as e:
            logger.error("summary_refresh_failed", exc_info=True, error=str(e))

    async def wait_for_background(self) -> None:
        """Waits for pending summary refreshes (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)
