"""
Graph builder for the per-turn advisor workflow.
Assembles services from settings and compiles the LangGraph graph.
"""

from supabase import Client
from langgraph.graph import StateGraph, START, END

from yc_advisor.config import Settings
from yc_advisor.database.supabase import SupabaseVectorIndex
from yc_advisor.database.summaries import SupabaseSummaryStore
from yc_advisor.graph.nodes import AdvisorNodes
from yc_advisor.models.domain import ADVISOR_NODE, ConversationState
from yc_advisor.models.embeddings import get_embeddings_model
from yc_advisor.services.llm_service import LLMService, create_llm
from yc_advisor.services.responder import AdvisorServices, RetrievalAugmentedResponder
from yc_advisor.services.retrieval_service import RetrievalService
from yc_advisor.services.summary_service import SummaryService
from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


def _llm_service(settings: Settings, model_name: str) -> LLMService:
    return LLMService(
        model=create_llm(model_name, api_key=settings.api_key_for(model_name)),
        max_retries=settings.llm_max_retries,
        timeout=settings.llm_timeout,
        rate_limit=settings.llm_rate_limit,
    )


def build_responder(settings: Settings, supabase: Client) -> RetrievalAugmentedResponder:
    """
    Creates the responder with its service bundle (index, embeddings, LLM).
    """
    logger.info("advisor_services_initializing", model=settings.advisor_model)

    embeddings = get_embeddings_model(
        provider=settings.embeddings_provider.lower(),
        model=settings.embeddings_model,
        api_key=settings.api_key_for(settings.embeddings_provider.lower()),
        cache_size=settings.embeddings_cache_size,
    )
    retrieval = RetrievalService(
        index=SupabaseVectorIndex(supabase, match_function=settings.match_function),
        embeddings=embeddings,
        top_k=settings.retrieval_top_k,
    )
    services = AdvisorServices(
        retrieval=retrieval, llm=_llm_service(settings, settings.advisor_model)
    )
    return RetrievalAugmentedResponder(services)


def build_summary_service(settings: Settings, supabase: Client) -> SummaryService:
    return SummaryService(
        llm_service=_llm_service(settings, settings.summary_model),
        store=SupabaseSummaryStore(supabase),
        turn_threshold=settings.summarization_turn_threshold,
    )


def build_graph(responder: RetrievalAugmentedResponder):
    """
    Compiles the single-step workflow run once per user turn.

    Args:
        responder: Responder answering the turn

    Returns:
        Compiled graph taking {"input", "chat_history"}
    """
    nodes = AdvisorNodes(responder)

    workflow = StateGraph(ConversationState)
    workflow.add_node(ADVISOR_NODE, nodes.advisor_node)
    workflow.add_edge(START, ADVISOR_NODE)
    workflow.add_edge(ADVISOR_NODE, END)

    logger.info("graph_compiling", checkpointer=False)
    return workflow.compile()
