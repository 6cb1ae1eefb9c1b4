"""Unified inbound message model for the web widget and webhook channels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from venue_chat.core.types import ConversationSource


@dataclass(frozen=True, slots=True)
class ContactInfo:
    type: str  # "whatsapp" | "instagram" | ...
    value: str


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    text: str
    source: str = ConversationSource.WEB.value
    conversation_id: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
    sender_name: Optional[str] = None
    contact: Optional[ContactInfo] = None
