"""
Shared test fixtures and configuration.
"""

import pytest
from unittest.mock import Mock
from langchain_core.load import dumpd
from langchain_core.messages import AIMessage, HumanMessage

from yc_advisor.database.checkpoints import InMemoryCheckpointStore
from yc_advisor.database.summaries import InMemorySummaryStore
from yc_advisor.models.domain import Checkpoint, CheckpointWrite
from yc_advisor.models.schemas import VectorMatch


class FakeWorkflow:
    """
    Stands in for the compiled advisor graph.
    Emits `tokens` through the run's callbacks, then returns `answer`.
    """

    def __init__(self, answer: str = "Hello founder", tokens: list[str] | None = None):
        self.answer = answer
        self.tokens = tokens if tokens is not None else [answer]
        self.calls: list[dict] = []

    async def ainvoke(self, inputs: dict, config: dict | None = None) -> dict:
        self.calls.append(inputs)
        callbacks = (config or {}).get("callbacks") or []
        for token in self.tokens:
            for handler in callbacks:
                await handler.on_llm_new_token(token)
        return {
            "input": inputs["input"],
            "chat_history": inputs["chat_history"],
            "context": "",
            "answer": self.answer,
        }


def user_checkpoint(step: int, text: str) -> Checkpoint:
    """Input checkpoint as the workflow engine records it."""
    return Checkpoint(
        step=step,
        source="input",
        writes={"__start__": {"messages": [dumpd(HumanMessage(content=text))]}},
    )


def advisor_checkpoint(step: int, text: str) -> Checkpoint:
    return Checkpoint(
        step=step,
        source="loop",
        writes={
            "advisor": CheckpointWrite(
                sender="advisor", messages=[dumpd(AIMessage(content=text))]
            )
        },
    )


@pytest.fixture
def checkpoint_store():
    """Empty in-memory checkpoint store."""
    return InMemoryCheckpointStore()


@pytest.fixture
def summary_store():
    """Empty in-memory summary store."""
    return InMemorySummaryStore()


@pytest.fixture
def fake_workflow():
    """Workflow answering "Hello founder" in two fragments."""
    return FakeWorkflow(answer="Hello founder", tokens=["Hello", " founder"])


@pytest.fixture
def mock_embeddings():
    """Mock embeddings model."""
    embeddings = Mock()
    embeddings.embed_query = Mock(return_value=[0.1, 0.2, 0.3])
    return embeddings


@pytest.fixture
def company_match() -> VectorMatch:
    """Company profile match as returned by the vector index."""
    return VectorMatch(
        score=0.87654,
        metadata={
            "type": "company",
            "name": "Rippling",
            "description": "Employee management platform",
            "batch": "W17",
            "founded_date": "2016",
            "industries": ["b2b", "fintech-payments"],
            "founders": ["Parker Conrad", "Prasanna Sankar"],
        },
    )


@pytest.fixture
def application_match() -> VectorMatch:
    """Past application match as returned by the vector index."""
    return VectorMatch(
        score=0.5,
        metadata={
            "type": "application",
            "company_name": "Acme",
            "description": "Payroll for bakeries",
            "batch": "S21",
            "status": "accepted",
            "qa_pairs": [
                {"q": "What?", "a": "Payroll"},
                {"q": "Who?", "a": "Bakeries"},
                {"q": "Why now?", "a": "Regulation"},
                {"q": "How big?", "a": "Huge"},
            ],
        },
    )


@pytest.fixture
def make_user_checkpoint():
    """Factory for input checkpoints: make_user_checkpoint(step, text)."""
    return user_checkpoint


@pytest.fixture
def make_advisor_checkpoint():
    """Factory for advisor checkpoints: make_advisor_checkpoint(step, text)."""
    return advisor_checkpoint


@pytest.fixture
def make_workflow():
    """Factory for fake workflows: make_workflow(answer, tokens)."""
    return FakeWorkflow
