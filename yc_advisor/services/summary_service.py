"""
Conversation summaries for the sidebar.
Generates a three-section summary every few turns and parses the stored
text back into its sections for display.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from langchain_core.messages import HumanMessage, SystemMessage

from yc_advisor.database.summaries import SummaryStore
from yc_advisor.models.domain import Message
from yc_advisor.services.llm_service import LLMService
from yc_advisor.utils.messages import content_to_text
from yc_advisor.utils.prompts import get_prompts
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)
PROMPTS = get_prompts()

DISCUSSIONS_LABEL = "Discussions till now:"
LAST_TASK_LABEL = "Last task or action item assigned:"
CONTEXT_LABEL = "Important context for next interactions:"

BULLET_MARKERS = ("-", "*", "•")
_SECTION_SEPARATOR = re.compile(r"\n[ \t]*\n")


@dataclass
class SummaryProjection:
    discussions: list[str] = field(default_factory=list)
    last_task: list[str] = field(default_factory=list)
    context: list[str] = field(default_factory=list)
    created_at: datetime | None = None


def _bullets(section: str, label: str) -> list[str]:
    body = section[len(label):]
    items = []
    for line in body.strip().split("\n"):
        line = line.strip()
        if line.startswith(BULLET_MARKERS):
            items.append(line[1:].strip())
    return items


def project_summary(summary_text: str) -> SummaryProjection:
    """
    Splits a stored summary into its three labelled bullet lists.

    Sections are separated by blank lines and recognised by their leading
    label; unlabelled sections and non-bullet lines are dropped. A missing
    section yields an empty list.
    """
    projection = SummaryProjection()
    for section in _SECTION_SEPARATOR.split(summary_text):
        section = section.strip()
        if section.startswith(DISCUSSIONS_LABEL):
            projection.discussions = _bullets(section, DISCUSSIONS_LABEL)
        elif section.startswith(LAST_TASK_LABEL):
            projection.last_task = _bullets(section, LAST_TASK_LABEL)
        elif section.startswith(CONTEXT_LABEL):
            projection.context = _bullets(section, CONTEXT_LABEL)
    return projection


class SummaryService:
    """
    Keeps one running summary per user and serves its latest version.
    """

    def __init__(
        self,
        llm_service: LLMService,
        store: SummaryStore,
        turn_threshold: int = 3,
    ):
        """
        Args:
            llm_service: LLM service generating the summaries
            store: Where summaries are appended and read from
            turn_threshold: Completed turns between two summaries
        """
        self.llm_service = llm_service
        self.store = store
        self.turn_threshold = turn_threshold

    def should_refresh(self, messages: list[Message]) -> bool:
        """True after every `turn_threshold`-th advisor answer."""
        answers = sum(1 for message in messages if message.role == "assistant")
        return answers > 0 and answers % self.turn_threshold == 0

    async def refresh(self, user_id: str, messages: list[Message]) -> str:
        """
        Writes a new summary of the conversation, building on the previous one.

        Args:
            user_id: Owner of the conversation
            messages: Full reconstructed conversation

        Returns:
            The stored summary text

        Raises:
            LLMError, DatabaseError: Generation or storage failures propagate
        """
        logger.info("summarization_started", messages=len(messages))

        previous = await self.store.latest(user_id)
        current_summary = previous.summary if previous else "No previous summary."
        conversation = "\n".join(
            f"- {'Founder' if m.role == 'user' else 'Advisor'}: {m.content}"
            for m in messages
        )

        prompt = [
            SystemMessage(content=PROMPTS.summary_system_message),
            HumanMessage(
                content=PROMPTS.summary_template.format(
                    current_summary=current_summary, conversation=conversation
                )
            ),
        ]
        response = await self.llm_service.invoke_with_retry(prompt)
        summary = content_to_text(response.content).strip()

        await self.store.add(user_id, summary)
        logger.info("summarization_completed", summary_length=len(summary))
        return summary

    async def latest(self, user_id: str) -> SummaryProjection | None:
        """
        Returns the newest summary of a user split into sections, if any.

        Raises:
            DatabaseError: If the store cannot be read
        """
        record = await self.store.latest(user_id)
        if record is None:
            return None
        projection = project_summary(record.summary)
        projection.created_at = record.created_at
        return projection
