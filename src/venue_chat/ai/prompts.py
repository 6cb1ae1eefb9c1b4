"""Venue knowledge base and system prompt for the guest-facing assistant.

Both are rebuilt on every turn from live venue, plan and template rows; venue
data can be edited by staff in the middle of a conversation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from venue_chat.messenger.models import ContactInfo
from venue_chat.storage.models import MessageTemplate, Plan, Venue

DEFAULT_VENUE_NAME = "la Cabaña"

WEEKDAY_NAMES = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
MONTH_NAMES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

_CONTACT_LABELS = {"whatsapp": "WhatsApp", "instagram": "Instagram"}


def format_price(value: float) -> str:
    if float(value).is_integer():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def _section(title: str, lines: list[str]) -> list[str]:
    if not lines:
        return []
    return [f"## {title}", *lines, ""]


def _plan_lines(plan: Plan) -> list[str]:
    lines = [f"### {plan.name}"]
    if plan.description:
        lines.append(plan.description)
    if plan.plan_type:
        lines.append(f"Tipo: {plan.plan_type}")
    if plan.adult_price:
        lines.append(f"Precio adulto: {format_price(plan.adult_price)}")
    if plan.child_price:
        lines.append(f"Precio niño: {format_price(plan.child_price)}")
    if plan.check_in_time:
        lines.append(f"Check-in: {plan.check_in_time}")
    if plan.check_out_time:
        lines.append(f"Check-out: {plan.check_out_time}")
    if plan.min_guests:
        lines.append(f"Mínimo de personas: {plan.min_guests}")
    if plan.max_capacity:
        lines.append(f"Capacidad máxima: {plan.max_capacity}")
    if plan.food_almuerzo:
        lines.append(f"Almuerzo: {plan.food_almuerzo}")
    if plan.food_cena:
        lines.append(f"Cena: {plan.food_cena}")
    included = [
        label
        for flag, label in (
            (plan.includes_food, "alimentación"),
            (plan.includes_beverages, "bebidas"),
            (plan.includes_overnight, "noche"),
            (plan.includes_rooms, "habitaciones"),
        )
        if flag
    ]
    if included:
        lines.append(f"Incluye: {', '.join(included)}")
    lines.append("")
    return lines


def build_venue_context(
    venue: Venue,
    templates: Optional[list[MessageTemplate]] = None,
    plans: Optional[list[Plan]] = None,
) -> str:
    """Render the venue knowledge base as markdown-ish text.

    Sections whose source fields are empty are left out entirely.
    """
    parts = [f"# Información de {venue.name or DEFAULT_VENUE_NAME}", ""]

    location: list[str] = []
    if venue.address:
        location.append(f"Dirección: {venue.address}")
        if venue.city:
            location.append(f"Ciudad: {venue.city}")
        if venue.department:
            location.append(f"Departamento: {venue.department}")
        if venue.address_reference:
            location.append(f"Referencia: {venue.address_reference}")
        if venue.waze_link:
            location.append(f"Link de Waze: {venue.waze_link}")
        if venue.google_maps_link:
            location.append(f"Link de Google Maps: {venue.google_maps_link}")
    parts += _section("Ubicación", location)

    wifi: list[str] = []
    if venue.wifi_ssid:
        wifi.append(f"Red: {venue.wifi_ssid}")
    if venue.wifi_password:
        wifi.append(f"Contraseña: {venue.wifi_password}")
    parts += _section("WiFi", wifi)

    contact: list[str] = []
    if venue.whatsapp:
        contact.append(f"WhatsApp: {venue.whatsapp}")
    if venue.instagram:
        contact.append(f"Instagram: {venue.instagram}")
    parts += _section("Contacto", contact)

    if venue.delivery_info:
        parts += _section("Domicilios", [venue.delivery_info])
    if venue.venue_info:
        parts += _section("Información General", [venue.venue_info])

    if plans:
        parts.append("## Planes Disponibles")
        for plan in plans:
            parts += _plan_lines(plan)

    if templates:
        parts.append("## Respuestas Predefinidas")
        for template in templates:
            parts += [f"### {template.name}", template.content, ""]

    return "\n".join(parts)


def format_long_date(moment: datetime) -> str:
    return f"{moment.day} de {MONTH_NAMES[moment.month - 1]} de {moment.year}"


def build_system_prompt(
    venue: Venue,
    context: str,
    now: datetime,
    contact: Optional[ContactInfo] = None,
) -> str:
    """System prompt anchored to *now* so relative dates resolve correctly."""
    venue_name = venue.name or DEFAULT_VENUE_NAME
    weekday = WEEKDAY_NAMES[now.weekday()]
    iso_date = now.date().isoformat()
    year = now.year

    contact_section = ""
    if contact is not None:
        label = _CONTACT_LABELS.get(contact.type.lower(), contact.type)
        contact_section = (
            "\nINFORMACIÓN DEL CLIENTE:\n"
            f"- Tipo de contacto: {label}\n"
            f"- Contacto: {contact.value}\n"
        )

    return f"""Eres un asistente virtual amable y servicial de "{venue_name}". Tu trabajo es responder preguntas de clientes potenciales y huéspedes sobre la propiedad.

FECHA ACTUAL: Hoy es {weekday}, {format_long_date(now)} ({iso_date}).
{contact_section}
REGLAS IMPORTANTES:
1. AL INICIO de la conversación, SIEMPRE saluda y pregunta el nombre del cliente de forma amable.
2. Responde basándote en la información disponible. Usa las herramientas para consultar detalles específicos.
3. Si no tienes un dato, dilo con honestidad. NUNCA inventes información que no esté disponible.
4. Sé conciso pero amable. Usa un tono cálido y profesional.
5. Cuando menciones precios, siempre indica que pueden variar según temporada y disponibilidad.
6. Responde siempre en español, aunque el cliente escriba en otro idioma.

HERRAMIENTAS DISPONIBLES:
- "get_venue_info": Para consultar amenities (piscina, jacuzzi, BBQ, etc.), ubicación, WiFi
- "get_plans": Para consultar planes disponibles con precios y lo que incluyen
- "check_availability": Para verificar disponibilidad en fechas específicas
- "create_estimate": Para crear una cotización cuando el cliente quiera reservar

FLUJO DE CONVERSACIÓN:
1. Si el cliente NO ha dado su nombre, pregúntalo amablemente al inicio
2. Si preguntan por amenidades (piscina, jacuzzi, parrilla, etc.), USA la herramienta get_venue_info
3. Si preguntan por planes o precios, USA la herramienta get_plans
4. Si preguntan por disponibilidad, recolecta: fechas, adultos, niños, y luego usa check_availability
5. Si el cliente quiere CONFIRMAR/RESERVAR, verifica que tienes TODOS estos datos antes de usar create_estimate:
   - Nombre del cliente
   - Fecha(s)
   - Plan elegido
   - Cantidad de adultos
   - Cantidad de niños
   Si falta algún dato, PREGÚNTALO antes de crear la cotización.

INTERPRETACIÓN DE FECHAS:
- SIEMPRE usa la fecha actual ({iso_date}) como referencia para interpretar fechas relativas.
- Si el cliente dice "el 12 de febrero", asume el año {year} o {year + 1} (el más próximo en el futuro).
- Si dice "el próximo sábado", calcula la fecha del próximo sábado desde hoy.
- Si dice "este fin de semana", calcula el próximo sábado y domingo.
- NUNCA asumas fechas en el pasado. Todas las consultas deben ser para fechas futuras.

VERIFICACIÓN DE DISPONIBILIDAD:
- Cuando el cliente pregunte por disponibilidad, usa la herramienta check_availability.
- Antes de verificar disponibilidad, asegúrate de tener:
  * La fecha de llegada (check_in)
  * La fecha de salida (check_out) - SOLO si es hospedaje/pasanoche
  * Cuántos adultos van
  * Cuántos niños van
- Si el cliente solo menciona una fecha sin especificar hospedaje, asume que es pasadía.
- Si no tienes toda la información necesaria, pregunta amablemente antes de verificar.

CONFIRMACIÓN DE RESERVA:
- NUNCA uses create_estimate sin tener TODOS los datos requeridos.
- Si el cliente dice "quiero reservar" o similar, primero verifica que tienes:
  1. Nombre del cliente
  2. Fecha de llegada
  3. Plan seleccionado
  4. Número de adultos
  5. Número de niños (puede ser 0)
- Si falta información, pregunta específicamente por lo que falta.
- Una vez creada la cotización, confirma los detalles al cliente.

{context}"""
