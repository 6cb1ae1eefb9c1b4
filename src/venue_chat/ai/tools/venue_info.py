"""Venue details and amenities lookup."""

from __future__ import annotations

from typing import Any

from venue_chat.ai.tools.base import Tool, ToolContext
from venue_chat.storage.venue_repo import VenueRepository

_VENUE_FIELDS = (
    "name",
    "address",
    "city",
    "department",
    "address_reference",
    "whatsapp",
    "instagram",
    "wifi_ssid",
    "wifi_password",
    "venue_info",
    "delivery_info",
    "waze_link",
    "google_maps_link",
)


class GetVenueInfoTool(Tool):
    def __init__(self, venues: VenueRepository):
        self._venues = venues

    @property
    def name(self) -> str:
        return "get_venue_info"

    @property
    def description(self) -> str:
        return (
            "Obtiene información detallada del venue/cabaña incluyendo amenities, ubicación, "
            "WiFi, y otras características. Usar cuando el cliente pregunte sobre piscina, "
            "jacuzzi, parrilla, u otras amenidades."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "required": []}

    async def execute(self, context: ToolContext, **kwargs: Any) -> dict[str, Any]:
        venue = context.venue
        amenities = await self._venues.list_active_amenities(venue.id)
        data: dict[str, Any] = {field: getattr(venue, field) for field in _VENUE_FIELDS}
        data["amenities"] = [
            {"name": a.name, "description": a.description, "category": a.category}
            for a in amenities
        ]
        return data
