"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ChatConfig(BaseModel):
    default_provider: str = "anthropic_claude"
    max_tokens: int = 1024
    temperature: float = 0.7
    history_limit: int = 20
    request_timeout: float = 60.0
    max_tool_rounds: int = 10
    availability_checks_per_window: int = 5
    availability_window_seconds: int = 3600
    alternative_search_days: int = 30


class ProviderOverride(BaseModel):
    """Per-provider tweaks on top of the built-in provider table."""

    model: Optional[str] = None
    base_url: Optional[str] = None


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


class StorageConfig(BaseModel):
    db_path: str = "./data/venue_chat.db"


class WebhookConfig(BaseModel):
    verify_token: Optional[str] = None


class AppConfig(BaseModel):
    log_level: str = "INFO"
    data_dir: str = "./data"
    chat: ChatConfig = Field(default_factory=ChatConfig)
    providers: dict[str, ProviderOverride] = Field(default_factory=dict)
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str, extra: dict[str, str] | None = None) -> str:
    """Replace ${VAR_NAME} with its value; unset variables become empty.

    An empty scalar loads as null, so optional settings such as the webhook
    token fall back to their defaults when the variable is not exported.
    """
    values = {**os.environ, **(extra or {})}
    return _ENV_VAR_PATTERN.sub(lambda m: values.get(m.group(1), ""), text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")

    # First pass: extract data_dir for self-referencing
    raw_data = yaml.safe_load(raw_text) or {}
    data_dir = _interpolate_env_vars(str(raw_data.get("data_dir", "./data")))

    # Second pass: interpolate all env vars
    interpolated = _interpolate_env_vars(raw_text, extra={"data_dir": data_dir})
    data = yaml.safe_load(interpolated) or {}

    return AppConfig(**data)
