"""Availability check tool backed by the venue's reservation calendar."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from venue_chat.ai.tools.base import Tool, ToolContext, as_int, parse_day
from venue_chat.booking.availability import (
    is_available,
    is_weekend,
    next_available_dates,
    stay_days,
    validate_stay,
)
from venue_chat.errors import InvalidDateRange, RateLimitExceeded
from venue_chat.log import get_logger
from venue_chat.storage.conversation_repo import ConversationRepository
from venue_chat.storage.models import Plan
from venue_chat.storage.venue_repo import VenueRepository

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = (
    "Has alcanzado el límite de consultas de disponibilidad ({limit} por hora). "
    "Por favor espera un momento o contacta directamente por WhatsApp para más información."
)


def suitable_plans(plans: list[Plan], total_guests: int) -> list[dict[str, Any]]:
    """Plans whose capacity bounds admit the party size."""
    return [
        {
            "name": plan.name,
            "plan_type": plan.plan_type,
            "adult_price": plan.adult_price,
            "child_price": plan.child_price,
        }
        for plan in plans
        if (plan.min_guests or 1) <= total_guests <= (plan.max_capacity or 999)
    ]


class CheckAvailabilityTool(Tool):
    def __init__(
        self,
        venues: VenueRepository,
        conversations: ConversationRepository,
        checks_per_window: int = 5,
        window_seconds: int = 3600,
        search_days: int = 30,
    ):
        self._venues = venues
        self._conversations = conversations
        self._checks_per_window = checks_per_window
        self._window_seconds = window_seconds
        self._search_days = search_days

    @property
    def name(self) -> str:
        return "check_availability"

    @property
    def description(self) -> str:
        return (
            "Verifica la disponibilidad de la cabaña para fechas específicas y cantidad de "
            "personas. Usar cuando el cliente pregunte si hay disponibilidad."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "check_in": {
                    "type": "string",
                    "description": "Fecha de llegada en formato YYYY-MM-DD",
                },
                "check_out": {
                    "type": "string",
                    "description": (
                        "Fecha de salida en formato YYYY-MM-DD. "
                        "Si es pasadía, usar la misma fecha que check_in."
                    ),
                },
                "adults": {"type": "integer", "description": "Número de adultos"},
                "children": {"type": "integer", "description": "Número de niños"},
            },
            "required": ["check_in", "adults"],
        }

    async def execute(self, context: ToolContext, **kwargs: Any) -> dict[str, Any]:
        try:
            await self._enforce_rate_limit(context)
        except RateLimitExceeded as e:
            logger.info("availability_rate_limited", conversation_id=context.conversation_id)
            return {"error": True, "message": RATE_LIMIT_MESSAGE.format(limit=e.limit)}

        check_in = parse_day(kwargs.get("check_in"))
        check_out = parse_day(kwargs.get("check_out")) or check_in
        if check_in is None:
            return {
                "error": True,
                "message": "Se requiere una fecha de llegada válida en formato YYYY-MM-DD.",
                "today": context.today.isoformat(),
            }
        try:
            validate_stay(check_in, check_out, context.today)
        except InvalidDateRange as e:
            return {"error": True, "message": e.message, "today": e.today.isoformat()}

        adults = as_int(kwargs.get("adults"), 1) or 1
        children = max(as_int(kwargs.get("children"), 0), 0)
        total_guests = adults + children

        reservations = await self._venues.list_reservations(context.venue.id)
        available = is_available(reservations, check_in, check_out)
        plans = suitable_plans(context.plans, total_guests)

        alternatives = []
        if not available:
            alternatives = [
                d.to_dict()
                for d in next_available_dates(
                    reservations,
                    check_in,
                    num_days=self._search_days,
                    prefer_weekends=is_weekend(check_in),
                    stay_length=stay_days(check_in, check_out),
                )
            ]

        await self._conversations.record_tool_invocation(
            context.conversation_id, self.name, at=context.now
        )
        logger.info(
            "availability_checked",
            venue_id=context.venue.id,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
            is_available=available,
        )

        return {
            "venue_name": context.venue.name,
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
            "adults": adults,
            "children": children,
            "total_guests": total_guests,
            "is_available": available,
            "suitable_plans": plans,
            "next_available_dates": alternatives,
            "message": self._summary(available, total_guests, plans, alternatives),
        }

    async def _enforce_rate_limit(self, context: ToolContext) -> None:
        since = context.now - timedelta(seconds=self._window_seconds)
        used = await self._conversations.count_tool_invocations(
            context.conversation_id, self.name, since
        )
        if used >= self._checks_per_window:
            raise RateLimitExceeded(self._checks_per_window, self._window_seconds)

    @staticmethod
    def _summary(
        available: bool,
        total_guests: int,
        plans: list[dict[str, Any]],
        alternatives: list[dict[str, Any]],
    ) -> str:
        if available and plans:
            return (
                f"La cabaña está disponible para {total_guests} persona(s). "
                f"Hay {len(plans)} plan(es) disponible(s)."
            )
        if available:
            return f"La cabaña está disponible pero no hay planes para {total_guests} persona(s)."
        message = "La cabaña no está disponible para esas fechas."
        if alternatives:
            listed = ", ".join(f"{d['date']} ({d['day_of_week']})" for d in alternatives)
            message += f" Fechas próximas disponibles: {listed}."
        return message
