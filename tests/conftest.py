"""Shared test fixtures for the venue-chat test suite."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio

from venue_chat.ai.client import ChatResponse, LLMClient, OpenAICompatibleClient, ToolCall, Usage
from venue_chat.ai.providers import ProviderSpec
from venue_chat.core.types import ProviderFamily
from venue_chat.storage.conversation_repo import ConversationRepository
from venue_chat.storage.database import Database
from venue_chat.storage.estimate_repo import EstimateRepository
from venue_chat.storage.models import Amenity, MessageTemplate, Plan, Venue
from venue_chat.storage.settings_repo import SettingsRepository
from venue_chat.storage.venue_repo import VenueRepository

# Thursday; the end-to-end scenario asks about Saturday 2025-03-01
FIXED_NOW = datetime(2025, 2, 20, 15, 0, tzinfo=timezone.utc)

VENUE_ID = "cabana-1"


class ScriptedClient(LLMClient):
    """Model backend that replays canned responses and records every request."""

    family = ProviderFamily.OPENAI_COMPATIBLE

    def __init__(self, script: ScriptedLLM, spec: ProviderSpec, api_key: str, timeout: float):
        super().__init__(spec, api_key, timeout)
        self._script = script

    async def chat(self, messages, max_tokens=1024, temperature=0.7, tools=None):
        self._script.calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        if not self._script.responses:
            raise AssertionError("model called more times than scripted")
        response = self._script.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def tool_exchange(self, response, results):
        return OpenAICompatibleClient.tool_exchange(self, response, results)

    async def close(self) -> None:
        self._script.closed += 1


class ScriptedLLM:
    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.specs: list[ProviderSpec] = []
        self.closed = 0

    def reply(self, text: str, tokens: tuple[int, int] = (10, 5)) -> ScriptedLLM:
        self.responses.append(
            ChatResponse(content=text, usage=Usage(*tokens), model="scripted-model")
        )
        return self

    def tool(self, name: str, arguments: str, call_id: str = "call_1", text: str = "") -> ScriptedLLM:
        self.responses.append(
            ChatResponse(
                content=text,
                tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)],
                usage=Usage(20, 10),
                model="scripted-model",
            )
        )
        return self

    def fail(self, exc: Exception) -> ScriptedLLM:
        self.responses.append(exc)
        return self

    def factory(self, spec: ProviderSpec, api_key: str, timeout: float) -> LLMClient:
        self.specs.append(spec)
        return ScriptedClient(self, spec, api_key, timeout)


@pytest.fixture
def scripted_llm():
    return ScriptedLLM()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "venue_chat.db"))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def venue_repo(db):
    return VenueRepository(db)


@pytest.fixture
def conversation_repo(db):
    return ConversationRepository(db)


@pytest.fixture
def estimate_repo(db):
    return EstimateRepository(db)


@pytest.fixture
def settings_repo(db):
    return SettingsRepository(db)


def make_venue(**overrides) -> Venue:
    data = dict(
        id=VENUE_ID,
        name="Cabaña El Mirador",
        address="Vereda La Piedra km 3",
        city="Guatapé",
        department="Antioquia",
        wifi_ssid="Mirador-WiFi",
        wifi_password="montaña2025",
        whatsapp="+573001234567",
    )
    data.update(overrides)
    return Venue(**data)


def make_plans(venue_id: str = VENUE_ID) -> list[Plan]:
    return [
        Plan(
            id="plan-pasadia",
            venue_id=venue_id,
            name="Pasadía",
            plan_type="pasadia",
            adult_price=80000,
            child_price=40000,
            min_guests=1,
            max_capacity=20,
            includes_food=True,
            food_almuerzo="Bandeja paisa",
        ),
        Plan(
            id="plan-hospedaje",
            venue_id=venue_id,
            name="Hospedaje Familiar",
            plan_type="hospedaje",
            adult_price=150000,
            child_price=75000,
            min_guests=4,
            max_capacity=10,
            includes_overnight=True,
            includes_rooms=True,
        ),
    ]


@pytest_asyncio.fixture
async def venue(venue_repo):
    """A venue with two active plans, one inactive plan, templates and amenities."""
    seeded = make_venue()
    await venue_repo.add_venue(seeded)
    for plan in make_plans():
        await venue_repo.add_plan(plan)
    await venue_repo.add_plan(
        Plan(id="plan-old", venue_id=VENUE_ID, name="Plan Antiguo", is_active=False)
    )
    await venue_repo.add_template(
        MessageTemplate(
            id="tpl-mascotas",
            venue_id=VENUE_ID,
            name="Mascotas",
            content="Se permiten mascotas pequeñas.",
        )
    )
    await venue_repo.add_template(
        MessageTemplate(
            id="tpl-pago",
            name="Formas de pago",
            content="Aceptamos transferencia y efectivo.",
            is_system=True,
        )
    )
    await venue_repo.add_template(
        MessageTemplate(
            id="tpl-inactivo",
            venue_id=VENUE_ID,
            name="Viejo",
            content="No usar.",
            is_active=False,
        )
    )
    await venue_repo.add_amenity(
        Amenity(id="am-piscina", name="Piscina", category="agua"),
        venue_ids=(VENUE_ID,),
        plan_ids=("plan-pasadia",),
    )
    await venue_repo.add_amenity(
        Amenity(id="am-jacuzzi", name="Jacuzzi", category="agua", is_active=False),
        venue_ids=(VENUE_ID,),
    )
    return seeded
