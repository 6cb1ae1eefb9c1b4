"""Convert stored conversation history into the generic model message list."""

from __future__ import annotations

from typing import Any

from venue_chat.core.types import MessageRole
from venue_chat.storage.models import ChatMessage


def build_messages(
    system_prompt: str,
    history: list[ChatMessage],
    user_text: str,
) -> list[dict[str, Any]]:
    """System prompt, prior turns in order, then the new guest message.

    Tool exchanges are not replayed from history: only the final texts of
    earlier turns are stored.
    """
    messages: list[dict[str, Any]] = [{"role": MessageRole.SYSTEM.value, "content": system_prompt}]
    for record in history:
        if record.role not in (MessageRole.USER, MessageRole.ASSISTANT) or not record.content:
            continue
        messages.append({"role": record.role, "content": record.content})
    messages.append({"role": MessageRole.USER.value, "content": user_text})
    return messages
