"""Tentative booking (estimate) creation."""

from __future__ import annotations

from typing import Any, Optional

from venue_chat.ai.tools.base import Tool, ToolContext, as_int, parse_day
from venue_chat.core.types import EstimateStatus
from venue_chat.log import get_logger
from venue_chat.storage.estimate_repo import EstimateRepository
from venue_chat.storage.models import Estimate, Plan

logger = get_logger(__name__)

CREATED_BY = "chat_ai"
DEFAULT_CONTACT_TYPE = "whatsapp"


def match_plan(plans: list[Plan], requested: Optional[str]) -> Optional[Plan]:
    """First plan whose name contains, or is contained in, the requested name.

    Case-insensitive. Ties are not disambiguated: list order wins.
    """
    wanted = (requested or "").strip().lower()
    if not wanted:
        return None
    for plan in plans:
        name = plan.name.lower()
        if wanted in name or name in wanted:
            return plan
    return None


def estimate_price(plan: Optional[Plan], adults: int, children: int) -> Optional[float]:
    if plan is None:
        return None
    price = (plan.adult_price or 0.0) * adults + (plan.child_price or 0.0) * children
    return round(price, 2)


class CreateEstimateTool(Tool):
    def __init__(self, estimates: EstimateRepository):
        self._estimates = estimates

    @property
    def name(self) -> str:
        return "create_estimate"

    @property
    def description(self) -> str:
        return (
            "Crea una cotización/reserva tentativa cuando el cliente confirma su interés. "
            "Solo usar cuando tienes TODOS los datos requeridos: nombre del cliente, fecha "
            "check_in, plan, adultos, niños."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "customer_name": {
                    "type": "string",
                    "description": "Nombre completo del cliente",
                },
                "plan_name": {
                    "type": "string",
                    "description": "Nombre del plan seleccionado (pasadía, pasanoche, hospedaje, etc.)",
                },
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
                "notes": {
                    "type": "string",
                    "description": "Notas adicionales o solicitudes especiales del cliente",
                },
            },
            "required": ["customer_name", "plan_name", "check_in", "adults"],
        }

    async def execute(self, context: ToolContext, **kwargs: Any) -> dict[str, Any]:
        customer_name = str(kwargs.get("customer_name") or "").strip()
        check_in = parse_day(kwargs.get("check_in"))

        missing = [
            field
            for field, present in (("customer_name", customer_name), ("check_in", check_in))
            if not present
        ]
        if missing:
            logger.info("estimate_missing_fields", missing=missing)
            return {
                "success": False,
                "error": True,
                "missing_fields": missing,
                "message": "Faltan datos para crear la cotización. Pregunta al cliente por ellos.",
            }

        check_out = parse_day(kwargs.get("check_out")) or check_in
        adults = max(as_int(kwargs.get("adults"), 0), 0)
        children = max(as_int(kwargs.get("children"), 0), 0)
        plan_name = kwargs.get("plan_name")
        plan = match_plan(context.plans, plan_name)
        price = estimate_price(plan, adults, children)
        contact = context.contact

        estimate = await self._estimates.create(
            Estimate(
                venue_id=context.venue.id,
                plan_id=plan.id if plan else None,
                customer_name=customer_name,
                contact_type=contact.type if contact else DEFAULT_CONTACT_TYPE,
                contact_value=contact.value if contact else "",
                check_in=check_in,
                check_out=check_out,
                adults=adults,
                children=children,
                calculated_price=price,
                notes=kwargs.get("notes") or None,
                conversation_id=context.conversation_id,
                status=EstimateStatus.PENDING.value,
                created_by=CREATED_BY,
            )
        )

        return {
            "success": True,
            "estimate_id": estimate.id,
            "customer_name": customer_name,
            "plan": plan.name if plan else plan_name,
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
            "adults": adults,
            "children": children,
            "calculated_price": price,
            "message": (
                f"Cotización creada exitosamente. El cliente {customer_name} "
                "recibirá confirmación pronto."
            ),
        }
