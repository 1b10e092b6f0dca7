"""
Retrieval-augmented responder.
One call = one search + one completion; every failure is turned into a
fixed apology so the conversation can carry on.
"""

import json
from dataclasses import dataclass
from langchain_core.callbacks import Callbacks
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import PromptTemplate

from yc_advisor.services.llm_service import LLMService
from yc_advisor.services.retrieval_service import (
    RetrievalService,
    classify_query,
    normalize_match,
    serialize_matches,
)
from yc_advisor.utils.prompts import get_prompts
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)
PROMPTS = get_prompts()

NO_RESULTS_MESSAGE = PROMPTS.no_results_message
APOLOGY_MESSAGE = PROMPTS.apology_message


@dataclass
class AdvisorServices:
    """
    External service handles shared by every turn.
    Built once by the hosting process and injected into the responder.
    """

    retrieval: RetrievalService
    llm: LLMService


@dataclass
class ResponderResult:
    answer: str
    updated_history: list[BaseMessage]
    context: str = ""
    matches: int = 0


def render_chat_history(chat_history: list[BaseMessage]) -> str:
    """Renders prior turns as "Human: ..." / "Assistant: ..." lines."""
    lines = []
    for message in chat_history:
        if isinstance(message, HumanMessage):
            lines.append(f"Human: {message.content}")
        elif isinstance(message, AIMessage):
            lines.append(f"Assistant: {message.content}")
        else:
            lines.append(f"{message.content}")
    return "\n".join(lines)


class RetrievalAugmentedResponder:
    """
    Answers a founder's message grounded in retrieved YC documents.
    """

    def __init__(self, services: AdvisorServices):
        self.services = services
        self.prompt_template = PromptTemplate.from_template(PROMPTS.advisor_template)

    async def respond(
        self,
        query: str,
        chat_history: list[BaseMessage],
        callbacks: Callbacks = None,
    ) -> ResponderResult:
        """
        Runs retrieval and generation for one user message.

        Args:
            query: The user's message
            chat_history: Prior turns of the conversation, oldest first
            callbacks: LangChain callbacks forwarded to the completion call

        Returns:
            ResponderResult with the answer and the history extended by the
            new user/assistant pair. Never raises.
        """
        try:
            query_type = classify_query(query)
            matches = await self.services.retrieval.search(query, query_type)

            if not matches:
                logger.warning("no_matches_found", query_type=query_type)
                return self._result(query, chat_history, NO_RESULTS_MESSAGE)

            records = [normalize_match(match, query_type) for match in matches]

            prompt = self.prompt_template.format(
                chat_history=render_chat_history(chat_history),
                query=query,
                results=serialize_matches(records, indent=2),
            )

            response = await self.services.llm.invoke_with_retry(
                prompt, callbacks=callbacks
            )
            content = response.content
            answer = content if isinstance(content, str) else json.dumps(content)

            logger.info(
                "response_generated",
                query_type=query_type,
                matches=len(records),
                answer_length=len(answer),
            )
            return self._result(
                query,
                chat_history,
                answer,
                context=serialize_matches(records),
                matches=len(records),
            )

        except Exception as e:
            logger.error("respond_failed", exc_info=True, error=str(e))
            return self._result(query, chat_history, APOLOGY_MESSAGE)

    @staticmethod
    def _result(
        query: str,
        chat_history: list[BaseMessage],
        answer: str,
        context: str = "",
        matches: int = 0,
    ) -> ResponderResult:
        return ResponderResult(
            answer=answer,
            updated_history=[
                *chat_history,
                HumanMessage(content=query),
                AIMessage(content=answer),
            ],
            context=context,
            matches=matches,
        )
