"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class ProviderFamily(StrEnum):
    ANTHROPIC = "anthropic"
    OPENAI_COMPATIBLE = "openai_compatible"


class MessageRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ConversationSource(StrEnum):
    WEB = "web"
    WHATSAPP = "webhook-whatsapp"
    META = "webhook-meta"


class AIFeature(StrEnum):
    CUSTOMER_CHAT = "customer_chat"
    RECEIPT_EXTRACTION = "receipt_extraction"
    MESSAGE_SUGGESTIONS = "message_suggestions"


class EstimateStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
