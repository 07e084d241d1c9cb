from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from section_orchestrator.config import Settings
from section_orchestrator.conversation_store import ConversationStore
from section_orchestrator.generation_client import GenerationClient, create_generation_client
from section_orchestrator.logging_config import (
    TRACE_HEADER,
    set_trace_id,
    setup_logging,
    trace_id_from_header,
)
from section_orchestrator.models.generation import GenerationRequest, GenerationResult
from section_orchestrator.orchestrator import GenerationOrchestrator
from section_orchestrator.prompt_recorder import InMemoryPromptRecorder, PromptRecorder

logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5


def _build_recorder(settings: Settings) -> PromptRecorder:
    # Use Firestore in production, in-memory for dev
    if settings.is_dev:
        return InMemoryPromptRecorder()
    from section_orchestrator.firestore_prompt_recorder import FirestorePromptRecorder

    return FirestorePromptRecorder(
        project_id=settings.project_id,
        collection_name=settings.prompt_records_collection,
    )


async def _sweep_periodically(store: ConversationStore, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(store.sweep)
        except Exception:
            logger.exception("Conversation sweep failed")


async def _cancel_on_disconnect(
    request: Request,
    cancel_event: threading.Event,
    interval: float = DISCONNECT_POLL_SECONDS,
) -> None:
    """Set ``cancel_event`` once the caller hangs up."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected; no further plan steps will start")
            cancel_event.set()
            return
        await asyncio.sleep(interval)


def create_app(
    *,
    settings: Settings | None = None,
    store: ConversationStore | None = None,
    client: GenerationClient | None = None,
    orchestrator: GenerationOrchestrator | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    store = store or ConversationStore(
        max_age=timedelta(hours=settings.conversation_max_age_hours)
    )
    owned_client: GenerationClient | None = None
    if orchestrator is None:
        owned_client = client or create_generation_client(settings)
        orchestrator = GenerationOrchestrator(
            client=owned_client,
            store=store,
            recorder=_build_recorder(settings),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(_sweep_periodically(store, settings.sweep_interval_seconds))
        try:
            yield
        finally:
            sweeper.cancel()
            close = getattr(owned_client, "close", None)
            if close is not None:
                close()

    app = FastAPI(title="Section Orchestrator API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.conversation_store = store
    app.state.orchestrator = orchestrator

    @app.post("/v1/generations", response_model=GenerationResult)
    async def create_generation(
        generation_request: GenerationRequest, http_request: Request
    ) -> GenerationResult:
        set_trace_id(trace_id_from_header(http_request.headers.get(TRACE_HEADER)))
        logger.info(
            "Received generation request",
            extra={"user_id": generation_request.user_id, "mode": generation_request.mode.value},
        )
        cancel_event = threading.Event()
        watcher = asyncio.create_task(_cancel_on_disconnect(http_request, cancel_event))
        try:
            return await asyncio.to_thread(
                orchestrator.generate, generation_request, cancel_event=cancel_event
            )
        finally:
            watcher.cancel()

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


settings = Settings.from_env()
setup_logging(environment=settings.environment, project_id=settings.project_id)
app = create_app(settings=settings)
