"""
Graph nodes for the per-turn advisor workflow.
Nodes are thin and delegate to the responder.
"""

from langchain_core.runnables import RunnableConfig

from yc_advisor.models.domain import ConversationState
from yc_advisor.services.responder import RetrievalAugmentedResponder
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


class AdvisorNodes:
    """Container for the advisor graph's node functions."""

    def __init__(self, responder: RetrievalAugmentedResponder):
        self.responder = responder

    async def advisor_node(
        self, state: ConversationState, config: RunnableConfig
    ) -> dict:
        """
        Answers the current input with retrieval + generation.
        Returns only the new human/AI pair; the reducer appends it.
        """
        logger.info("node_started", node="advisor", action="retrieve_and_generate")

        history = state.get("chat_history", [])
        result = await self.responder.respond(
            state["input"], history, callbacks=config.get("callbacks")
        )
        return {
            "chat_history": result.updated_history[len(history):],
            "context": result.context,
            "answer": result.answer,
        }
