"""Provider table: maps a provider code to its model and wire protocol."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from venue_chat.config import ProviderOverride
from venue_chat.core.types import ProviderFamily
from venue_chat.errors import CredentialMissing, ProviderNotConfigured


@dataclass(frozen=True)
class ProviderSpec:
    code: str
    name: str
    model: str
    family: ProviderFamily
    base_url: str
    env_key: str


PROVIDERS: dict[str, ProviderSpec] = {
    spec.code: spec
    for spec in (
        ProviderSpec(
            code="anthropic_claude",
            name="Anthropic Claude",
            model="claude-sonnet-4-20250514",
            family=ProviderFamily.ANTHROPIC,
            base_url="https://api.anthropic.com",
            env_key="ANTHROPIC_API_KEY",
        ),
        ProviderSpec(
            code="xai_grok",
            name="xAI Grok",
            model="grok-4",
            family=ProviderFamily.OPENAI_COMPATIBLE,
            base_url="https://api.x.ai/v1",
            env_key="GROK_API_KEY",
        ),
        ProviderSpec(
            code="openai_gpt4o",
            name="OpenAI GPT-4o",
            model="gpt-4o",
            family=ProviderFamily.OPENAI_COMPATIBLE,
            base_url="https://api.openai.com/v1",
            env_key="OPENAI_API_KEY",
        ),
        ProviderSpec(
            code="openai_gpt4o_mini",
            name="OpenAI GPT-4o Mini",
            model="gpt-4o-mini",
            family=ProviderFamily.OPENAI_COMPATIBLE,
            base_url="https://api.openai.com/v1",
            env_key="OPENAI_API_KEY",
        ),
    )
}


def get_provider(
    code: str, overrides: Optional[Mapping[str, ProviderOverride]] = None
) -> ProviderSpec:
    spec = PROVIDERS.get(code)
    if spec is None:
        raise ProviderNotConfigured(code)
    override = (overrides or {}).get(code)
    if override is not None:
        spec = replace(
            spec,
            model=override.model or spec.model,
            base_url=override.base_url or spec.base_url,
        )
    return spec


def get_api_key(spec: ProviderSpec, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    value = (os.environ if env is None else env).get(spec.env_key)
    return value or None


def require_api_key(spec: ProviderSpec, env: Optional[Mapping[str, str]] = None) -> str:
    api_key = get_api_key(spec, env)
    if api_key is None:
        raise CredentialMissing(spec.code, spec.env_key)
    return api_key


def available_providers(
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, ProviderOverride]] = None,
) -> list[ProviderSpec]:
    """Providers whose credential is present."""
    specs = [get_provider(code, overrides) for code in PROVIDERS]
    return [spec for spec in specs if get_api_key(spec, env)]
