"""FastAPI route definitions for the booking assistant API."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from venue_chat.ai.client import call_by_provider_code
from venue_chat.ai.providers import PROVIDERS, available_providers, get_provider
from venue_chat.api.schemas import (
    AISettingOut,
    AISettingsResponse,
    AISettingsUpdate,
    AvailableModels,
    ChatReply,
    ConnectionTestRequest,
    ConnectionTestResponse,
    ConversationDetail,
    ConversationList,
    ConversationSummary,
    HealthResponse,
    MessageOut,
    ModelInfo,
)
from venue_chat.errors import (
    ChatModelNotConfigured,
    ConversationNotFound,
    CredentialMissing,
    ProviderCallFailed,
    ProviderNotConfigured,
    VenueNotFound,
)
from venue_chat.log import get_logger
from venue_chat.messenger.webhooks import parse_inbound

if TYPE_CHECKING:
    from venue_chat.app import VenueChatApp

logger = get_logger(__name__)

router = APIRouter()

CONVERSATION_LIST_LIMIT = 50
INTERNAL_ERROR_DETAIL = "An internal error occurred. Please try again."


def _get_app(request: Request) -> VenueChatApp:
    """Retrieve the wired application from app state (set by the lifespan)."""
    app = getattr(request.app.state, "venue_chat", None)
    if app is None:
        raise HTTPException(
            status_code=503,
            detail="The assistant is still starting up. Please try again in a moment.",
        )
    return app


# -- Chat -------------------------------------------------------------------


@router.post("/chat/{venue_id}", response_model=ChatReply)
async def chat(venue_id: str, request: Request, body: dict[str, Any] = Body(...)):
    """Run one guest turn for a web widget or messaging webhook payload."""
    app = _get_app(request)
    inbound = parse_inbound(body)
    if not inbound.text:
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        turn = await app.chat_service.handle_turn(venue_id, inbound)
    except VenueNotFound as e:
        raise HTTPException(status_code=404, detail="Venue not found") from e
    except ChatModelNotConfigured as e:
        logger.warning("chat_model_not_configured", venue_id=venue_id, error=str(e))
        raise HTTPException(status_code=400, detail="Chat model is not configured") from e
    except Exception as e:
        # Provider bodies and tracebacks stay in the server log
        logger.exception("turn_failed", venue_id=venue_id)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL) from e

    return ChatReply(
        conversation_id=turn.conversation_id,
        message=turn.reply,
        provider=turn.provider,
        model=turn.model,
        tokens_used=turn.tokens_used,
    )


@router.get("/chat/{venue_id}/conversations", response_model=ConversationList)
async def list_conversations(venue_id: str, request: Request):
    app = _get_app(request)
    conversations = await app.conversation_repo.list_for_venue(
        venue_id, limit=CONVERSATION_LIST_LIMIT
    )
    return ConversationList(
        conversations=[ConversationSummary(**asdict(c)) for c in conversations]
    )


@router.get("/chat/conversation/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(conversation_id: str, request: Request):
    app = _get_app(request)
    try:
        conversation, messages = await app.conversation_repo.get_with_messages(conversation_id)
    except ConversationNotFound as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e
    return ConversationDetail(
        conversation=ConversationSummary(**asdict(conversation)),
        messages=[
            MessageOut(
                id=m.id,
                role=m.role,
                content=m.content,
                provider=m.provider,
                model=m.model,
                tokens_used=m.tokens_used,
                tools_used=m.tools_used,
                created_at=m.created_at,
            )
            for m in messages
        ],
    )


@router.get("/webhook/{venue_id}", response_class=PlainTextResponse)
async def verify_webhook(
    venue_id: str,
    request: Request,
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """Messaging platform subscription handshake."""
    app = _get_app(request)
    expected = app.config.webhook.verify_token
    if mode == "subscribe" and token and (expected is None or token == expected):
        logger.info("webhook_verified", venue_id=venue_id)
        return PlainTextResponse(challenge or "")
    logger.warning("webhook_verification_failed", venue_id=venue_id, mode=mode)
    raise HTTPException(status_code=403, detail="Verification failed")


# -- AI settings ------------------------------------------------------------


@router.get("/ai/available-models", response_model=AvailableModels)
async def available_models(request: Request):
    """Providers whose API key is present in the environment."""
    app = _get_app(request)
    specs = available_providers(app.env, app.config.providers)
    return AvailableModels(
        models=[
            ModelInfo(code=s.code, name=s.name, model=s.model, family=s.family.value)
            for s in specs
        ]
    )


@router.get("/ai/settings", response_model=AISettingsResponse)
async def get_ai_settings(request: Request):
    app = _get_app(request)
    settings = await app.settings_repo.list_settings()
    return AISettingsResponse(settings=[AISettingOut(**asdict(s)) for s in settings])


@router.post("/ai/settings", response_model=AISettingsResponse)
async def update_ai_settings(update: AISettingsUpdate, request: Request):
    app = _get_app(request)
    for feature, code in update.model_dump(exclude_none=True).items():
        if code not in PROVIDERS:
            logger.warning("ai_setting_unknown_provider", feature=feature, provider=code)
            continue
        spec = get_provider(code, app.config.providers)
        await app.settings_repo.save_setting(feature, code, spec.model)
        logger.info("ai_setting_saved", feature=feature, provider=code)
    settings = await app.settings_repo.list_settings()
    return AISettingsResponse(settings=[AISettingOut(**asdict(s)) for s in settings])


@router.post("/ai/test-connection", response_model=ConnectionTestResponse)
async def test_connection(payload: ConnectionTestRequest, request: Request):
    """Send a tiny prompt through the adapter and report the outcome."""
    app = _get_app(request)
    code = payload.provider_code
    try:
        response = await call_by_provider_code(
            code,
            [{"role": "user", "content": "Hi"}],
            max_tokens=10,
            timeout=app.config.chat.request_timeout,
            env=app.env,
            overrides=app.config.providers,
            client_factory=app.client_factory,
        )
    except ProviderNotConfigured as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CredentialMissing as e:
        return ConnectionTestResponse(success=False, provider=code, error=str(e))
    except ProviderCallFailed as e:
        return ConnectionTestResponse(
            success=False, provider=code, error=f"HTTP {e.status_code}: {e.body[:500]}"
        )

    return ConnectionTestResponse(
        success=True, provider=code, model=response.model, response=response.content
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()
