"""
FastAPI application: chat streaming, history replay and sidebar summary.
"""

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from supabase import create_client

from yc_advisor.api.gateway import MISSING_FIELDS_ERROR, StreamingGateway
from yc_advisor.config import Settings, get_settings
from yc_advisor.database.checkpoints import SupabaseCheckpointStore
from yc_advisor.database.supabase import DatabaseError, SupabaseIdentityProvider
from yc_advisor.graph.builder import build_graph, build_responder, build_summary_service
from yc_advisor.graph.session import ConversationSession
from yc_advisor.models.domain import AuthenticatedUser
from yc_advisor.models.schemas import (
    ChatRequest,
    ErrorResponse,
    HistoryResponse,
    SummaryResponse,
)
from yc_advisor.services.session_registry import SessionRegistry
from yc_advisor.services.summary_service import SummaryService
from yc_advisor.utils.logger import configure_logging, get_logger, set_correlation_id

logger = get_logger(__name__)

ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 500, 502)
}


@dataclass
class AppContainer:
    """Long-lived components shared by all requests."""

    registry: SessionRegistry
    session: ConversationSession
    summary_service: SummaryService | None = None
    identity: SupabaseIdentityProvider | None = None
    stream_max_duration: float = 300
    cors_origins: tuple[str, ...] = ()


def build_container(settings: Settings) -> AppContainer:
    """Wires Supabase, the advisor workflow and the registry from settings."""
    supabase = create_client(settings.supabase_url, settings.supabase_service_key)

    summary_service = build_summary_service(settings, supabase)
    session = ConversationSession(
        store=SupabaseCheckpointStore(supabase),
        workflow=build_graph(build_responder(settings, supabase)),
        summary_service=summary_service,
    )
    registry = SessionRegistry(
        retention_seconds=settings.thread_retention_hours * 3600,
        sweep_interval=settings.thread_sweep_interval_seconds,
    )
    return AppContainer(
        registry=registry,
        session=session,
        summary_service=summary_service,
        identity=SupabaseIdentityProvider(supabase),
        stream_max_duration=settings.stream_max_duration,
        cors_origins=tuple(settings.cors_origins),
    )


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def get_current_user(
    request: Request, container: AppContainer = Depends(get_container)
) -> AuthenticatedUser | None:
    """Resolves `Authorization: Bearer <token>`; None when absent or rejected."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token or container.identity is None:
        return None
    return await container.identity.get_user(token.strip())


def create_app(container: AppContainer) -> FastAPI:
    """
    Builds the HTTP application around an explicitly constructed container.
    The registry sweep runs for the lifetime of the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container.registry.start()
        yield
        await container.registry.stop()
        await container.session.wait_for_background()

    app = FastAPI(
        title="YC Advisor API",
        description="Retrieval-augmented YC application advisor",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    if container.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(container.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    gateway = StreamingGateway(
        registry=container.registry,
        session=container.session,
        max_duration=container.stream_max_duration,
    )

    async def open_chat(request: Request, fields: dict):
        try:
            params = ChatRequest.model_validate(fields)
        except ValidationError:
            # present but not strings
            return JSONResponse({"error": MISSING_FIELDS_ERROR}, status_code=400)
        return await gateway.open_stream(
            params.message, params.thread_id, request.is_disconnected
        )

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/chat", responses=ERROR_RESPONSES)
    async def chat_get(request: Request):
        """Stream an advisor answer; message and threadId as query params."""
        return await open_chat(request, dict(request.query_params))

    @app.post("/chat", responses=ERROR_RESPONSES)
    async def chat_post(request: Request):
        """Stream an advisor answer; JSON body {message, threadId}."""
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

        return await open_chat(request, body if isinstance(body, dict) else {})

    @app.get("/history", response_model=HistoryResponse, responses=ERROR_RESPONSES)
    async def history(
        threadId: str | None = None,
        user: AuthenticatedUser | None = Depends(get_current_user),
    ):
        """Replay a thread's messages (defaults to the caller's own thread)."""
        thread_id = threadId or (user.id if user else None)
        if not thread_id:
            return JSONResponse({"error": "threadId is required"}, status_code=400)

        set_correlation_id(thread_id)
        try:
            messages = await container.session.history(thread_id)
        except DatabaseError as e:
            return JSONResponse({"error": str(e)}, status_code=502)
        return HistoryResponse(thread_id=thread_id, messages=messages)

    @app.get("/summary", responses=ERROR_RESPONSES)
    async def summary(user: AuthenticatedUser | None = Depends(get_current_user)):
        """Latest conversation summary of the caller, split into sections."""
        if user is None:
            return JSONResponse({"error": "Not authenticated"}, status_code=401)
        if container.summary_service is None:
            return {"summary": None}

        try:
            projection = await container.summary_service.latest(user.id)
        except DatabaseError as e:
            return JSONResponse({"error": str(e)}, status_code=502)

        if projection is None:
            return {"summary": None}
        return SummaryResponse(
            discussions=projection.discussions,
            last_task=projection.last_task,
            context=projection.context,
            created_at=projection.created_at,
        ).model_dump(mode="json", by_alias=True)

    return app


def create_app_from_settings() -> FastAPI:
    """Application factory used by the server entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, use_structured=settings.structured_logging)
    logger.info("app_initializing", model=settings.advisor_model)
    return create_app(build_container(settings))
