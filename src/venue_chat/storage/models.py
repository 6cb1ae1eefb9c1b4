"""Data models for storage layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Venue:
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    department: Optional[str] = None
    address_reference: Optional[str] = None
    wifi_ssid: Optional[str] = None
    wifi_password: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    venue_info: Optional[str] = None
    delivery_info: Optional[str] = None
    waze_link: Optional[str] = None
    google_maps_link: Optional[str] = None


@dataclass
class Plan:
    id: str
    venue_id: str
    name: str
    plan_type: Optional[str] = None
    description: Optional[str] = None
    adult_price: Optional[float] = None
    child_price: Optional[float] = None
    min_guests: Optional[int] = None
    max_capacity: Optional[int] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    includes_food: bool = False
    food_description: Optional[str] = None
    food_almuerzo: Optional[str] = None
    food_cena: Optional[str] = None
    includes_beverages: bool = False
    includes_overnight: bool = False
    includes_rooms: bool = False
    is_active: bool = True


@dataclass
class MessageTemplate:
    id: str
    name: str
    content: str
    venue_id: Optional[str] = None  # None for global templates
    is_system: bool = False
    is_active: bool = True


@dataclass
class Amenity:
    id: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True


@dataclass
class Reservation:
    """A booked occupancy (``accommodations`` row)."""

    id: str
    venue_id: str
    start: datetime
    duration: Optional[str] = None  # seconds, stored as text
    adults: int = 0
    children: int = 0


@dataclass
class Estimate:
    venue_id: str
    customer_name: str
    contact_type: str
    contact_value: str
    check_in: Optional[date]
    check_out: Optional[date]
    adults: int = 0
    children: int = 0
    plan_id: Optional[str] = None
    calculated_price: Optional[float] = None
    notes: Optional[str] = None
    conversation_id: Optional[str] = None
    status: str = "pending"
    created_by: str = "chat_ai"
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[str] = None


@dataclass
class Conversation:
    id: str
    venue_id: str
    source: str = "web"
    external_id: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class ChatMessage:
    conversation_id: str
    role: str  # "user" | "assistant"
    content: str
    provider: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[int] = None
    tools_used: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[int] = None


@dataclass
class AISetting:
    setting_key: str
    provider_code: str
    model: str
    updated_at: datetime = field(default_factory=utcnow)
