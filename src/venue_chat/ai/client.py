"""Model adapter with Anthropic and OpenAI-compatible backends.

Both backends accept the same generic message list (OpenAI-style roles, with
tool schemas in ``{"type": "function", "function": {...}}`` form) and return
one normalized ``ChatResponse``. Everything that differs between the two wire
protocols lives in the backend classes.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

import anthropic
import openai

from venue_chat.ai.providers import ProviderSpec, get_provider, require_api_key
from venue_chat.config import ProviderOverride
from venue_chat.core.types import MessageRole, ProviderFamily
from venue_chat.errors import ProviderCallFailed, ToolArgumentsInvalid
from venue_chat.log import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 60.0


@dataclass
class ToolCall:
    """A tool invocation requested by the model; ``arguments`` is JSON text."""

    id: str
    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> dict[str, Any]:
        try:
            parsed = json.loads(self.arguments or "{}")
        except (json.JSONDecodeError, TypeError) as e:
            raise ToolArgumentsInvalid(self.name, str(self.arguments)) from e
        if not isinstance(parsed, dict):
            raise ToolArgumentsInvalid(self.name, str(self.arguments))
        return parsed

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class ChatResponse:
    """Unified response from any model backend."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    model: str = ""
    raw: Any = None  # Backend-specific raw response


class LLMClient(ABC):
    """Abstract base class for model backends."""

    family: ProviderFamily

    def __init__(self, spec: ProviderSpec, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        self.spec = spec
        self._api_key = api_key
        self._timeout = timeout

    @property
    def model_name(self) -> str:
        return self.spec.model

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int = 1024,
        temperature: float = 0.7,
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResponse:
        """Send the conversation and return the normalized response."""
        ...

    @abstractmethod
    def tool_exchange(
        self, response: ChatResponse, results: list[tuple[ToolCall, str]]
    ) -> list[dict[str, Any]]:
        """Messages recording the model's tool calls and their results, in this wire format."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    def _failure(self, exc: Exception) -> ProviderCallFailed:
        status_code = getattr(exc, "status_code", None)
        response = getattr(exc, "response", None)
        body = response.text if status_code is not None and response is not None else str(exc)
        logger.error(
            "llm_call_failed",
            provider=self.spec.code,
            status_code=status_code,
            error=body[:500],
        )
        return ProviderCallFailed(self.spec.code, body, status_code)


class AnthropicClient(LLMClient):
    """Anthropic Messages API backend using the official SDK."""

    family = ProviderFamily.ANTHROPIC

    def __init__(self, spec: ProviderSpec, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(spec, api_key, timeout)
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            base_url=spec.base_url,
            max_retries=0,
            timeout=timeout,
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int = 1024,
        temperature: float = 0.7,
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResponse:
        system, normalized = normalize_anthropic_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.spec.model,
            "max_tokens": max_tokens,
            "messages": normalized,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system
        if tools:
            kwargs["tools"] = to_anthropic_tools(tools)

        logger.debug("llm_request", provider=self.spec.code, message_count=len(normalized))
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise self._failure(e) from e

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input))
                )

        usage = Usage(
            prompt_tokens=response.usage.input_tokens or 0,
            completion_tokens=response.usage.output_tokens or 0,
        )
        logger.debug(
            "llm_response",
            provider=self.spec.code,
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            stop_reason=response.stop_reason,
        )
        return ChatResponse(
            content="\n".join(texts),
            tool_calls=tool_calls,
            usage=usage,
            model=response.model or self.spec.model,
            raw=response,
        )

    def tool_exchange(
        self, response: ChatResponse, results: list[tuple[ToolCall, str]]
    ) -> list[dict[str, Any]]:
        assistant_content: list[dict[str, Any]] = []
        if response.content:
            assistant_content.append({"type": "text", "text": response.content})
        for call, _ in results:
            assistant_content.append(
                {
                    "type": "tool_use",
                    "id": call.id,
                    "name": call.name,
                    "input": call.parse_arguments(),
                }
            )
        tool_result_content = [
            {"type": "tool_result", "tool_use_id": call.id, "content": result_text}
            for call, result_text in results
        ]
        return [
            {"role": "assistant", "content": assistant_content},
            {"role": "user", "content": tool_result_content},
        ]

    async def close(self) -> None:
        await self._client.close()


class OpenAICompatibleClient(LLMClient):
    """Chat-completions backend for OpenAI and API-compatible vendors."""

    family = ProviderFamily.OPENAI_COMPATIBLE

    def __init__(self, spec: ProviderSpec, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(spec, api_key, timeout)
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=spec.base_url,
            max_retries=0,
            timeout=timeout,
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        max_tokens: int = 1024,
        temperature: float = 0.7,
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResponse:
        kwargs: dict[str, Any] = {
            "model": self.spec.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        logger.debug("llm_request", provider=self.spec.code, message_count=len(messages))
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise self._failure(e) from e

        message = response.choices[0].message if response.choices else None
        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in ((message.tool_calls or []) if message else [])
            if getattr(tc, "function", None) is not None
        ]
        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
            )
        logger.debug(
            "llm_response",
            provider=self.spec.code,
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
        )
        return ChatResponse(
            content=(message.content or "") if message else "",
            tool_calls=tool_calls,
            usage=usage,
            model=response.model or self.spec.model,
            raw=response,
        )

    def tool_exchange(
        self, response: ChatResponse, results: list[tuple[ToolCall, str]]
    ) -> list[dict[str, Any]]:
        exchange: list[dict[str, Any]] = [
            {
                "role": "assistant",
                "content": response.content or None,
                "tool_calls": [call.to_dict() for call, _ in results],
            }
        ]
        for call, result_text in results:
            exchange.append({"role": "tool", "tool_call_id": call.id, "content": result_text})
        return exchange

    async def close(self) -> None:
        await self._client.close()


def normalize_anthropic_messages(
    messages: list[dict[str, Any]],
) -> tuple[Optional[str], list[dict[str, Any]]]:
    """Split out the system prompt and make content shapes consistent.

    Once any message carries content blocks (after a tool exchange), every
    plain-string message is promoted to a single text block.
    """
    system: Optional[str] = None
    others: list[dict[str, Any]] = []
    for message in messages:
        if message.get("role") == MessageRole.SYSTEM:
            system = message.get("content")
        else:
            others.append(message)

    has_blocks = any(isinstance(m.get("content"), list) for m in others)
    normalized: list[dict[str, Any]] = []
    for message in others:
        role = "assistant" if message.get("role") == MessageRole.ASSISTANT else "user"
        content = message.get("content") or ""
        if has_blocks and isinstance(content, str):
            content = [{"type": "text", "text": content}]
        normalized.append({"role": role, "content": content})
    return system, normalized


def to_anthropic_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Translate generic function tool schemas into Anthropic tool definitions."""
    return [
        {
            "name": tool["function"]["name"],
            "description": tool["function"].get("description", ""),
            "input_schema": tool["function"].get("parameters") or {"type": "object", "properties": {}},
        }
        for tool in tools
    ]


_BACKENDS: dict[ProviderFamily, type[LLMClient]] = {
    ProviderFamily.ANTHROPIC: AnthropicClient,
    ProviderFamily.OPENAI_COMPATIBLE: OpenAICompatibleClient,
}


def create_client(spec: ProviderSpec, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> LLMClient:
    """Create the backend matching the provider's wire protocol."""
    return _BACKENDS[spec.family](spec, api_key, timeout)


async def call_by_provider_code(
    code: str,
    messages: list[dict[str, Any]],
    max_tokens: int = 1024,
    temperature: float = 0.7,
    tools: list[dict[str, Any]] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, ProviderOverride]] = None,
    client_factory: Optional[Callable[[ProviderSpec, str, float], LLMClient]] = None,
) -> ChatResponse:
    """One-shot call: resolve the provider code, send, normalize.

    Raises ProviderNotConfigured, CredentialMissing or ProviderCallFailed.
    """
    spec = get_provider(code, overrides)
    factory = client_factory or create_client
    client = factory(spec, require_api_key(spec, env), timeout)
    try:
        return await client.chat(messages, max_tokens=max_tokens, temperature=temperature, tools=tools)
    finally:
        await client.close()
