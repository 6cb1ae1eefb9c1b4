"""Application orchestrator - wires storage, tools and the chat service, and builds the HTTP app."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Mapping, Optional

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from venue_chat.ai.client import create_client
from venue_chat.ai.handler import ChatService, ClientFactory
from venue_chat.ai.tools.registry import ToolRegistry
from venue_chat.api.routes import router
from venue_chat.config import AppConfig
from venue_chat.log import get_logger
from venue_chat.storage.conversation_repo import ConversationRepository
from venue_chat.storage.database import Database
from venue_chat.storage.estimate_repo import EstimateRepository
from venue_chat.storage.models import utcnow
from venue_chat.storage.settings_repo import SettingsRepository
from venue_chat.storage.venue_repo import VenueRepository

logger = get_logger(__name__)


class VenueChatApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        client_factory: Optional[ClientFactory] = None,
        env: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.env = env
        self.client_factory = client_factory or create_client
        self.db = Database(config.storage.db_path)
        self.conversation_repo = ConversationRepository(self.db)
        self.venue_repo = VenueRepository(self.db)
        self.estimate_repo = EstimateRepository(self.db)
        self.settings_repo = SettingsRepository(self.db)
        self.tool_registry = ToolRegistry()
        self.chat_service = ChatService(
            venues=self.venue_repo,
            conversations=self.conversation_repo,
            settings=self.settings_repo,
            tool_registry=self.tool_registry,
            chat_config=config.chat,
            provider_overrides=config.providers,
            client_factory=self.client_factory,
            env=env,
            clock=clock or utcnow,
        )

    async def start(self) -> None:
        """Open the database and register tools."""
        await self.db.initialize()
        self.tool_registry.discover_and_register(
            venues=self.venue_repo,
            conversations=self.conversation_repo,
            estimates=self.estimate_repo,
            chat_config=self.config.chat,
        )
        logger.info(
            "venue_chat_started",
            default_provider=self.config.chat.default_provider,
            tools=[t.name for t in self.tool_registry.all_tools()],
        )

    async def stop(self) -> None:
        await self.db.close()
        logger.info("venue_chat_stopped")


def create_app(
    config: AppConfig,
    client_factory: Optional[ClientFactory] = None,
    env: Optional[Mapping[str, str]] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Build the FastAPI application; the orchestrator lives on ``app.state``."""

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        venue_chat = VenueChatApp(config, client_factory=client_factory, env=env, clock=clock)
        await venue_chat.start()
        application.state.venue_chat = venue_chat
        try:
            yield
        finally:
            application.state.venue_chat = None
            await venue_chat.stop()

    app = FastAPI(
        title="Venue Chat",
        description="Conversational booking assistant for vacation venues.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> Response:
        """Bind a request id into the log context and echo it back as ``X-Request-ID``."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        logger.info("http_request", method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router, prefix="/api")
    return app
