"""Tool registry for discovering and managing available tools."""

from __future__ import annotations

from typing import Any

from venue_chat.ai.tools.base import Tool
from venue_chat.config import ChatConfig
from venue_chat.log import get_logger
from venue_chat.storage.conversation_repo import ConversationRepository
from venue_chat.storage.estimate_repo import EstimateRepository
from venue_chat.storage.venue_repo import VenueRepository

logger = get_logger(__name__)


class ToolRegistry:
    """Registry of all available tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool_name=tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def all_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def catalog(self) -> list[dict[str, Any]]:
        """Generic tool definitions for every registered tool."""
        return [tool.to_api_dict() for tool in self._tools.values()]

    def discover_and_register(
        self,
        venues: VenueRepository,
        conversations: ConversationRepository,
        estimates: EstimateRepository,
        chat_config: ChatConfig,
    ) -> None:
        """Register the booking assistant's built-in tools."""
        from venue_chat.ai.tools.availability import CheckAvailabilityTool
        from venue_chat.ai.tools.estimate import CreateEstimateTool
        from venue_chat.ai.tools.plans import GetPlansTool
        from venue_chat.ai.tools.venue_info import GetVenueInfoTool

        self.register(
            CheckAvailabilityTool(
                venues,
                conversations,
                checks_per_window=chat_config.availability_checks_per_window,
                window_seconds=chat_config.availability_window_seconds,
                search_days=chat_config.alternative_search_days,
            )
        )
        self.register(GetVenueInfoTool(venues))
        self.register(GetPlansTool(venues))
        self.register(CreateEstimateTool(estimates))
