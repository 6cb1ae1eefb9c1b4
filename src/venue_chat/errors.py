"""Exception hierarchy for the booking assistant."""

from __future__ import annotations

from datetime import date
from typing import Optional


class VenueChatError(Exception):
    """Base class for all errors raised by venue-chat."""


class InvalidDateRange(VenueChatError):
    """Requested stay is in the past or ends before it starts."""

    def __init__(self, message: str, today: date):
        super().__init__(message)
        self.message = message
        self.today = today


class ProviderNotConfigured(VenueChatError):
    """The provider code is not in the provider table."""

    def __init__(self, code: str):
        super().__init__(f"Unknown model provider: {code}")
        self.code = code


class CredentialMissing(VenueChatError):
    """The provider's API key is not present in the environment."""

    def __init__(self, code: str, env_key: str):
        super().__init__(f"API key not configured for {code} ({env_key})")
        self.code = code
        self.env_key = env_key


class ChatModelNotConfigured(VenueChatError):
    """No usable provider is available for the customer chat feature."""


class ProviderCallFailed(VenueChatError):
    """The model backend returned an error or could not be reached."""

    def __init__(self, code: str, body: str, status_code: Optional[int] = None):
        super().__init__(f"Provider {code} call failed ({status_code}): {body}")
        self.code = code
        self.body = body
        self.status_code = status_code


class RateLimitExceeded(VenueChatError):
    """Too many availability checks in the trailing window."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(f"Limit of {limit} checks per {window_seconds}s reached")
        self.limit = limit
        self.window_seconds = window_seconds


class ToolArgumentsInvalid(VenueChatError):
    """The model sent tool arguments that are not a JSON object."""

    def __init__(self, tool_name: str, raw: str):
        super().__init__(f"Malformed arguments for tool '{tool_name}': {raw[:200]}")
        self.tool_name = tool_name
        self.raw = raw


class VenueNotFound(VenueChatError):
    def __init__(self, venue_id: str):
        super().__init__(f"Venue not found: {venue_id}")
        self.venue_id = venue_id


class ConversationNotFound(VenueChatError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id
