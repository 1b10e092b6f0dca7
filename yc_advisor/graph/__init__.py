"""
Graph package for the advisor workflow and conversation sessions.
"""

from yc_advisor.graph.builder import build_graph, build_responder, build_summary_service
from yc_advisor.graph.nodes import AdvisorNodes
from yc_advisor.graph.checkpoints import (
    checkpoint_to_message,
    reconstruct_messages,
    turn_checkpoints,
)
from yc_advisor.graph.session import (
    ConversationSession,
    AnswerFragment,
    TurnCompleted,
    TurnEvent,
    FragmentCollector,
)

__all__ = [
    "build_graph",
    "build_responder",
    "build_summary_service",
    "AdvisorNodes",
    "checkpoint_to_message",
    "reconstruct_messages",
    "turn_checkpoints",
    "ConversationSession",
    "AnswerFragment",
    "TurnCompleted",
    "TurnEvent",
    "FragmentCollector",
]
