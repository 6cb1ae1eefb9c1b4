"""Chat turn handler: inbound message -> conversation -> model + tools -> reply."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Optional

from venue_chat.ai.client import LLMClient, create_client
from venue_chat.ai.conversation import build_messages
from venue_chat.ai.prompts import build_system_prompt, build_venue_context
from venue_chat.ai.providers import ProviderSpec, get_provider, require_api_key
from venue_chat.ai.tool_runner import run_tool_loop
from venue_chat.ai.tools.base import ToolContext
from venue_chat.ai.tools.registry import ToolRegistry
from venue_chat.config import ChatConfig, ProviderOverride
from venue_chat.core.locks import ConversationLocks
from venue_chat.core.types import AIFeature, MessageRole
from venue_chat.errors import (
    ChatModelNotConfigured,
    CredentialMissing,
    ProviderNotConfigured,
    VenueNotFound,
)
from venue_chat.log import get_logger
from venue_chat.messenger.models import IncomingMessage
from venue_chat.storage.conversation_repo import ConversationRepository
from venue_chat.storage.models import ChatMessage, utcnow
from venue_chat.storage.settings_repo import SettingsRepository
from venue_chat.storage.venue_repo import VenueRepository

logger = get_logger(__name__)

ClientFactory = Callable[[ProviderSpec, str, float], LLMClient]


@dataclass
class TurnResult:
    conversation_id: str
    reply: str
    provider: str
    model: str
    tokens_used: int


class ChatService:
    """Runs one guest turn end to end.

    The guest's message is stored before the model is called, so a failed
    turn keeps it for the next one. Turns on the same conversation are
    serialized in-process.
    """

    def __init__(
        self,
        venues: VenueRepository,
        conversations: ConversationRepository,
        settings: SettingsRepository,
        tool_registry: ToolRegistry,
        chat_config: ChatConfig,
        provider_overrides: Optional[Mapping[str, ProviderOverride]] = None,
        client_factory: ClientFactory = create_client,
        env: Optional[Mapping[str, str]] = None,
        clock: Callable[[], datetime] = utcnow,
        locks: Optional[ConversationLocks] = None,
    ):
        self._venues = venues
        self._conversations = conversations
        self._settings = settings
        self._tool_registry = tool_registry
        self._config = chat_config
        self._overrides = provider_overrides or {}
        self._client_factory = client_factory
        self._env = env
        self._clock = clock
        self._locks = locks or ConversationLocks()

    async def resolve_chat_provider(self) -> tuple[ProviderSpec, str]:
        """Provider selected for customer chat (or the default) and its API key."""
        code = (
            await self._settings.get_provider_code(AIFeature.CUSTOMER_CHAT.value)
            or self._config.default_provider
        )
        try:
            spec = get_provider(code, self._overrides)
            return spec, require_api_key(spec, self._env)
        except (ProviderNotConfigured, CredentialMissing) as e:
            raise ChatModelNotConfigured(str(e)) from e

    async def handle_turn(self, venue_id: str, inbound: IncomingMessage) -> TurnResult:
        venue = await self._venues.get_venue(venue_id)
        if venue is None:
            raise VenueNotFound(venue_id)

        conversation = await self._conversations.get_or_create(
            inbound.conversation_id,
            venue_id,
            source=inbound.source,
            external_id=inbound.external_id,
            phone=inbound.phone,
            name=inbound.sender_name,
        )

        async with self._locks.hold(conversation.id):
            history = await self._conversations.recent_messages(
                conversation.id, limit=self._config.history_limit
            )
            await self._conversations.append_message(
                ChatMessage(
                    conversation_id=conversation.id,
                    role=MessageRole.USER.value,
                    content=inbound.text,
                )
            )

            plans = await self._venues.list_active_plans(venue_id)
            templates = await self._venues.list_applicable_templates(venue_id)
            spec, api_key = await self.resolve_chat_provider()

            now = self._clock()
            context_text = build_venue_context(venue, templates, plans)
            system_prompt = build_system_prompt(venue, context_text, now, inbound.contact)
            messages = build_messages(system_prompt, history, inbound.text)

            tool_context = ToolContext(
                venue=venue,
                conversation_id=conversation.id,
                now=now,
                plans=plans,
                contact=inbound.contact,
            )

            logger.info(
                "turn_started",
                conversation_id=conversation.id,
                venue_id=venue_id,
                provider=spec.code,
                history=len(history),
            )
            client = self._client_factory(spec, api_key, self._config.request_timeout)
            try:
                result = await run_tool_loop(
                    ai_client=client,
                    tool_registry=self._tool_registry,
                    messages=messages,
                    context=tool_context,
                    max_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                    max_rounds=self._config.max_tool_rounds,
                )
            finally:
                await client.close()

            await self._conversations.append_message(
                ChatMessage(
                    conversation_id=conversation.id,
                    role=MessageRole.ASSISTANT.value,
                    content=result.text,
                    provider=spec.code,
                    model=result.model,
                    tokens_used=result.usage.total_tokens,
                    tools_used=result.tools_used,
                )
            )
            await self._conversations.touch(conversation.id)

        logger.info(
            "turn_completed",
            conversation_id=conversation.id,
            tools_used=result.tools_used,
            tokens=result.usage.total_tokens,
        )
        return TurnResult(
            conversation_id=conversation.id,
            reply=result.text,
            provider=spec.code,
            model=result.model,
            tokens_used=result.usage.total_tokens,
        )
