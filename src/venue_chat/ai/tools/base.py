"""Abstract tool interface for model tool calling."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from venue_chat.messenger.models import ContactInfo
from venue_chat.storage.models import Plan, Venue


@dataclass
class ToolContext:
    """Per-turn state the tools act on."""

    venue: Venue
    conversation_id: str
    now: datetime
    plans: list[Plan] = field(default_factory=list)
    contact: Optional[ContactInfo] = None

    @property
    def today(self) -> date:
        return self.now.date()


class Tool(ABC):
    """Base class for all model-callable tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name sent to the model."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Description shown to the model."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema dict describing accepted parameters."""
        ...

    @abstractmethod
    async def execute(self, context: ToolContext, **kwargs: Any) -> dict[str, Any]:
        """Run the tool and return a JSON-serializable result for the model."""
        ...

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the generic function-tool definition format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def as_int(value: Any, default: int) -> int:
    """Lenient integer coercion for model-supplied counts."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_day(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored)."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None
