"""Extract the guest's message from the widget, Twilio and Meta payload shapes."""

from __future__ import annotations

from typing import Any, Optional

from venue_chat.core.types import ConversationSource
from venue_chat.messenger.models import ContactInfo, IncomingMessage


def _first(items: Any) -> Optional[dict[str, Any]]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def _meta_message(body: dict[str, Any]) -> Optional[IncomingMessage]:
    entry = _first(body.get("entry"))
    change = _first(entry.get("changes")) if entry else None
    value = (change or {}).get("value") or {}
    message = _first(value.get("messages"))
    if message is None:
        return None
    text = (message.get("text") or {}).get("body") or message.get("body") or ""
    contact = _first(value.get("contacts")) or {}
    return IncomingMessage(
        text=text,
        source=ConversationSource.META.value,
        phone=message.get("from"),
        external_id=message.get("id"),
        sender_name=(contact.get("profile") or {}).get("name"),
    )


def parse_inbound(body: dict[str, Any]) -> IncomingMessage:
    """Normalize any supported payload; ``text`` is empty when none was found."""
    conversation_id = body.get("conversation_id")
    contact = None
    if body.get("contact_type") and body.get("contact_value"):
        contact = ContactInfo(type=str(body["contact_type"]), value=str(body["contact_value"]))

    inbound: Optional[IncomingMessage] = None
    if body.get("entry"):
        inbound = _meta_message(body)
    if inbound is None and body.get("Body") and body.get("From"):
        inbound = IncomingMessage(
            text=str(body["Body"]),
            source=ConversationSource.WHATSAPP.value,
            phone=body["From"],
            external_id=body.get("MessageSid"),
        )
    if inbound is None:
        inbound = IncomingMessage(
            text=str(body.get("message") or ""),
            source=str(body.get("source") or ConversationSource.WEB.value),
        )

    return IncomingMessage(
        text=inbound.text.strip(),
        source=inbound.source,
        conversation_id=str(conversation_id) if conversation_id else None,
        phone=inbound.phone,
        external_id=inbound.external_id,
        sender_name=inbound.sender_name,
        contact=contact,
    )
