"""Iterative tool execution loop over the normalized model responses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from venue_chat.ai.client import ChatResponse, LLMClient, ToolCall, Usage
from venue_chat.ai.tools.base import ToolContext
from venue_chat.ai.tools.registry import ToolRegistry
from venue_chat.log import get_logger

logger = get_logger(__name__)

MAX_TOOL_ROUNDS = 10
FALLBACK_REPLY = (
    "Lo siento, no pude completar tu solicitud en este momento. "
    "¿Podrías intentarlo de nuevo en unos minutos?"
)


@dataclass
class ToolLoopResult:
    text: str
    model: str
    usage: Usage = field(default_factory=Usage)
    tools_used: list[str] = field(default_factory=list)


def serialize_result(result: dict[str, Any]) -> str:
    return json.dumps(result, ensure_ascii=False, default=str)


async def execute_tool_call(
    tool_registry: ToolRegistry, call: ToolCall, context: ToolContext
) -> dict[str, Any]:
    """Run one tool call. Malformed arguments raise ToolArgumentsInvalid.

    Keys the tool does not declare are dropped before dispatch.
    """
    arguments = call.parse_arguments()
    tool = tool_registry.get(call.name)
    if tool is None:
        logger.warning("unknown_tool_requested", tool=call.name)
        return {"error": True, "message": f"Herramienta desconocida: {call.name}"}
    declared = tool.parameters.get("properties", {})
    ignored = sorted(key for key in arguments if key not in declared)
    if ignored:
        logger.warning("tool_arguments_ignored", tool=call.name, keys=ignored)
    logger.info("tool_execute", tool=call.name, conversation_id=context.conversation_id)
    return await tool.execute(
        context, **{key: value for key, value in arguments.items() if key in declared}
    )


async def run_tool_loop(
    ai_client: LLMClient,
    tool_registry: ToolRegistry,
    messages: list[dict[str, Any]],
    context: ToolContext,
    max_tokens: int = 1024,
    temperature: float = 0.7,
    max_rounds: int = MAX_TOOL_ROUNDS,
) -> ToolLoopResult:
    """Call the model until it answers without tool calls.

    Tool calls of one response run sequentially in the order requested; the
    whole exchange is appended to *messages* before the model is called again.
    """
    tools = tool_registry.catalog()
    tools_used: list[str] = []

    response = await ai_client.chat(
        messages, max_tokens=max_tokens, temperature=temperature, tools=tools
    )
    usage = response.usage
    rounds = 0

    while response.tool_calls:
        if rounds >= max_rounds:
            logger.warning(
                "tool_round_limit_reached",
                conversation_id=context.conversation_id,
                rounds=rounds,
            )
            break

        results: list[tuple[ToolCall, str]] = []
        for call in response.tool_calls:
            result = await execute_tool_call(tool_registry, call, context)
            results.append((call, serialize_result(result)))
            tools_used.append(call.name)

        messages.extend(ai_client.tool_exchange(response, results))
        response = await ai_client.chat(
            messages, max_tokens=max_tokens, temperature=temperature, tools=tools
        )
        usage = usage + response.usage
        rounds += 1

    return ToolLoopResult(
        text=_final_text(response),
        model=response.model,
        usage=usage,
        tools_used=tools_used,
    )


def _final_text(response: ChatResponse) -> str:
    text = (response.content or "").strip()
    return text or FALLBACK_REPLY
