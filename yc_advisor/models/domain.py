"""
Domain models representing the conversation entities and state.
ConversationState is the transient state of one LangGraph advisor run;
Checkpoint is the persisted record the message history is rebuilt from.
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from typing_extensions import TypedDict
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langgraph.graph import START
from langgraph.graph.message import add_messages
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Key under which the orchestration engine records the input of a run (its
# step-zero node name). Input checkpoints are recognised by it.
GRAPH_START_MARKER = START

USER_SENDER = "user"
ADVISOR_NODE = "advisor"

Role = Literal["user", "assistant"]


class ConversationState(TypedDict):
    """
    State of a single retrieval + generation run.

    Attributes:
        input: The current user query.
        chat_history: Prior turns followed by the new human/AI pair.
        context: Serialized retrieved documents.
        answer: Generated advisor answer.
    """

    input: str
    chat_history: Annotated[list[BaseMessage], add_messages]
    context: str
    answer: str


class Message(BaseModel):
    """Display unit rebuilt from checkpoints. Never persisted directly."""

    role: Role
    content: str

    def to_langchain(self) -> BaseMessage:
        if self.role == "user":
            return HumanMessage(content=self.content)
        return AIMessage(content=self.content)


class CheckpointWrite(BaseModel):
    """Payload a graph step wrote: who sent it and the message fragments."""

    model_config = ConfigDict(extra="allow")

    sender: str | None = None
    messages: list[Any] | None = None


class Checkpoint(BaseModel):
    """
    One persisted execution step of a thread.

    `writes` keeps the stored key order; the first key decides how the
    checkpoint is read back.
    """

    model_config = ConfigDict(extra="ignore")

    step: int
    source: str = ""
    writes: dict[str, CheckpointWrite | None] | None = None
    parents: dict[str, Any] = Field(default_factory=dict)

    @field_validator("writes", mode="before")
    @classmethod
    def _drop_non_mapping_payloads(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            key: payload if isinstance(payload, (dict, CheckpointWrite)) else None
            for key, payload in value.items()
        }


class SummaryRecord(BaseModel):
    """Latest stored conversation summary of a user."""

    summary: str
    created_at: datetime | None = None


class AuthenticatedUser(BaseModel):
    """Identity of the caller as reported by the identity provider."""

    id: str
    email: str | None = None
