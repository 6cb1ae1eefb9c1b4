"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChatReply(BaseModel):
    """Assistant reply for one guest turn."""

    conversation_id: str = Field(..., description="Conversation the turn was appended to")
    message: str = Field(..., description="The assistant's reply text")
    provider: str
    model: str
    tokens_used: int = 0


class ConversationSummary(BaseModel):
    id: str
    venue_id: str
    source: str
    external_id: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConversationList(BaseModel):
    conversations: list[ConversationSummary]


class MessageOut(BaseModel):
    id: Optional[int] = None
    role: str
    content: str
    provider: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[int] = None
    tools_used: list[str] = Field(default_factory=list)
    created_at: datetime


class ConversationDetail(BaseModel):
    conversation: ConversationSummary
    messages: list[MessageOut]


class ModelInfo(BaseModel):
    code: str
    name: str
    model: str
    family: str


class AvailableModels(BaseModel):
    models: list[ModelInfo]


class AISettingOut(BaseModel):
    setting_key: str
    provider_code: str
    model: str
    updated_at: Optional[datetime] = None


class AISettingsResponse(BaseModel):
    settings: list[AISettingOut]


class AISettingsUpdate(BaseModel):
    """Feature -> provider code selections; unknown codes are skipped."""

    customer_chat: Optional[str] = None
    receipt_extraction: Optional[str] = None
    message_suggestions: Optional[str] = None


class ConnectionTestRequest(BaseModel):
    provider_code: str = Field(..., min_length=1)


class ConnectionTestResponse(BaseModel):
    success: bool
    provider: str
    model: Optional[str] = None
    response: Optional[str] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "venue-chat"
