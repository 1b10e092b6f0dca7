"""
HTTP request/response schemas and the display records built from
vector-index matches.
"""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

from yc_advisor.models.domain import Message


class ChatRequest(BaseModel):
    """
    Body of POST /chat (and the query parameters of GET /chat).
    Presence is checked by the gateway so it can answer with its own error shape.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str | None = None
    thread_id: str | None = Field(default=None, alias="threadId")


class ErrorResponse(BaseModel):
    error: str


class HistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thread_id: str = Field(alias="threadId")
    messages: list[Message]


class SummaryResponse(BaseModel):
    """Sidebar summary split into its three labelled sections."""

    model_config = ConfigDict(populate_by_name=True)

    discussions: list[str] = Field(default_factory=list)
    last_task: list[str] = Field(default_factory=list, alias="lastTask")
    context: list[str] = Field(default_factory=list)
    created_at: datetime | None = Field(default=None, alias="createdAt")


class CompanyMatch(BaseModel):
    """Company profile returned by the vector index, flattened for the prompt."""

    type: Literal["company"] = "company"
    name: str = "N/A"
    description: str = "N/A"
    batch: str = "N/A"
    founded_date: str = "N/A"
    industries: str = "N/A"
    founders: str = "N/A"
    score: str = Field(description="Similarity as a percentage, two decimals")


class ApplicationMatch(BaseModel):
    """Past application returned by the vector index, flattened for the prompt."""

    type: Literal["application"] = "application"
    company_name: str = "N/A"
    description: str = "N/A"
    batch: str = "N/A"
    status: str = "N/A"
    qa_pairs: list = Field(default_factory=list, max_length=3)
    score: str = Field(description="Similarity as a percentage, two decimals")


class VectorMatch(BaseModel):
    """Raw match as returned by the similarity search."""

    score: float
    metadata: dict = Field(default_factory=dict)
