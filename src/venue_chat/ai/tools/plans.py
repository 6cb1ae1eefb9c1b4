"""Plan catalogue lookup, each plan with its own amenities."""

from __future__ import annotations

from typing import Any

from venue_chat.ai.tools.base import Tool, ToolContext
from venue_chat.storage.venue_repo import VenueRepository


class GetPlansTool(Tool):
    def __init__(self, venues: VenueRepository):
        self._venues = venues

    @property
    def name(self) -> str:
        return "get_plans"

    @property
    def description(self) -> str:
        return (
            "Obtiene todos los planes disponibles con sus precios, capacidades, horarios, "
            "comidas incluidas y amenities específicos de cada plan."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "required": []}

    async def execute(self, context: ToolContext, **kwargs: Any) -> dict[str, Any]:
        plans = []
        for plan in context.plans:
            amenities = await self._venues.list_amenities_for_plan(plan.id)
            plans.append(
                {
                    "id": plan.id,
                    "name": plan.name,
                    "plan_type": plan.plan_type,
                    "description": plan.description,
                    "adult_price": plan.adult_price,
                    "child_price": plan.child_price,
                    "min_guests": plan.min_guests,
                    "max_capacity": plan.max_capacity,
                    "check_in_time": plan.check_in_time,
                    "check_out_time": plan.check_out_time,
                    "includes_food": plan.includes_food,
                    "food_description": plan.food_description,
                    "includes_beverages": plan.includes_beverages,
                    "includes_overnight": plan.includes_overnight,
                    "includes_rooms": plan.includes_rooms,
                    "amenities": [
                        {"name": a.name, "description": a.description} for a in amenities
                    ],
                }
            )
        return {"plans": plans}
