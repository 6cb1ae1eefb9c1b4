"""Tests for the FastAPI endpoints."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from venue_chat.app import create_app
from venue_chat.config import AppConfig, StorageConfig, WebhookConfig
from venue_chat.errors import ProviderCallFailed
from venue_chat.storage.database import Database
from venue_chat.storage.seed import seed_fixture
from venue_chat.storage.venue_repo import VenueRepository

ENV = {"ANTHROPIC_API_KEY": "test-anthropic-key", "OPENAI_API_KEY": "test-openai-key"}

FIXTURE = {
    "venues": [{"id": "cabana-1", "name": "Cabaña El Mirador", "city": "Guatapé"}],
    "plans": [
        {
            "id": "plan-pasadia",
            "venue_id": "cabana-1",
            "name": "Pasadía",
            "adult_price": 80000,
            "child_price": 40000,
        }
    ],
    "reservations": [
        {"id": "res-1", "venue_id": "cabana-1", "date": "2025-03-01T10:00:00", "duration": 43200}
    ],
}


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "api.db")

    async def _seed() -> None:
        db = Database(path)
        await db.initialize()
        try:
            await seed_fixture(VenueRepository(db), FIXTURE)
        finally:
            await db.close()

    asyncio.run(_seed())
    return path


@pytest.fixture
def make_client(db_path, scripted_llm, fixed_now):
    clients = []

    def _make(env=ENV, verify_token=None) -> TestClient:
        config = AppConfig(
            storage=StorageConfig(db_path=db_path),
            webhook=WebhookConfig(verify_token=verify_token),
        )
        app = create_app(config, client_factory=scripted_llm.factory, env=env, clock=lambda: fixed_now)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "venue-chat"}

    def test_request_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        assert client.get("/api/health").headers["X-Request-ID"]


class TestStartup:
    def test_503_before_lifespan(self, db_path):
        app = create_app(AppConfig(storage=StorageConfig(db_path=db_path)), env=ENV)
        response = TestClient(app).post("/api/chat/cabana-1", json={"message": "Hola"})
        assert response.status_code == 503


class TestChatEndpoint:
    def test_widget_turn(self, client, scripted_llm):
        scripted_llm.reply("¡Hola! ¿Cómo te llamas?")
        response = client.post("/api/chat/cabana-1", json={"message": "Hola"})
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "¡Hola! ¿Cómo te llamas?"
        assert data["provider"] == "anthropic_claude"
        assert data["model"] == "scripted-model"
        assert data["tokens_used"] == 15
        assert data["conversation_id"]

    def test_conversation_continues(self, client, scripted_llm):
        scripted_llm.reply("uno").reply("dos")
        first = client.post("/api/chat/cabana-1", json={"message": "Hola"}).json()
        second = client.post(
            "/api/chat/cabana-1",
            json={"message": "Soy Ana", "conversation_id": first["conversation_id"]},
        ).json()
        assert second["conversation_id"] == first["conversation_id"]

    def test_twilio_payload(self, client, scripted_llm):
        scripted_llm.reply("Hola desde WhatsApp")
        response = client.post(
            "/api/chat/cabana-1",
            json={"Body": "Hola", "From": "whatsapp:+573001112233", "MessageSid": "SM1"},
        )
        assert response.status_code == 200
        conversation_id = response.json()["conversation_id"]
        detail = client.get(f"/api/chat/conversation/{conversation_id}").json()
        assert detail["conversation"]["source"] == "webhook-whatsapp"
        assert detail["conversation"]["phone"] == "whatsapp:+573001112233"

    def test_empty_message_is_rejected(self, client, scripted_llm):
        response = client.post("/api/chat/cabana-1", json={"message": "   "})
        assert response.status_code == 400
        assert scripted_llm.calls == []

    def test_unknown_venue(self, client):
        response = client.post("/api/chat/nowhere", json={"message": "Hola"})
        assert response.status_code == 404

    def test_model_not_configured(self, make_client):
        response = make_client(env={}).post("/api/chat/cabana-1", json={"message": "Hola"})
        assert response.status_code == 400

    def test_provider_error_is_not_leaked(self, client, scripted_llm):
        scripted_llm.fail(ProviderCallFailed("anthropic_claude", "secret upstream body", 500))
        response = client.post("/api/chat/cabana-1", json={"message": "Hola"})
        assert response.status_code == 500
        assert "secret" not in response.text
        assert response.json()["detail"] == "An internal error occurred. Please try again."

    def test_malformed_tool_arguments_fail_the_turn(self, client, scripted_llm):
        scripted_llm.tool("check_availability", "{not json")
        response = client.post("/api/chat/cabana-1", json={"message": "¿Hay cupo?"})
        assert response.status_code == 500


class TestConversationEndpoints:
    def test_list_and_detail(self, client, scripted_llm):
        scripted_llm.reply("Hola")
        conversation_id = client.post("/api/chat/cabana-1", json={"message": "Hola"}).json()[
            "conversation_id"
        ]

        listed = client.get("/api/chat/cabana-1/conversations").json()["conversations"]
        assert [c["id"] for c in listed] == [conversation_id]

        detail = client.get(f"/api/chat/conversation/{conversation_id}").json()
        assert [m["role"] for m in detail["messages"]] == ["user", "assistant"]
        assert detail["messages"][1]["provider"] == "anthropic_claude"

    def test_detail_missing(self, client):
        response = client.get("/api/chat/conversation/0b7c7f0e-9d3e-4b1e-8a43-0c9f4c3c2a10")
        assert response.status_code == 404


class TestWebhookHandshake:
    PARAMS = {"hub.mode": "subscribe", "hub.verify_token": "s3cret", "hub.challenge": "12345"}

    def test_any_token_accepted_when_unconfigured(self, client):
        response = client.get("/api/webhook/cabana-1", params=self.PARAMS)
        assert response.status_code == 200
        assert response.text == "12345"

    def test_configured_token_must_match(self, make_client):
        client = make_client(verify_token="other")
        assert client.get("/api/webhook/cabana-1", params=self.PARAMS).status_code == 403

    def test_configured_token_match(self, make_client):
        client = make_client(verify_token="s3cret")
        assert client.get("/api/webhook/cabana-1", params=self.PARAMS).text == "12345"

    def test_wrong_mode(self, client):
        params = dict(self.PARAMS, **{"hub.mode": "unsubscribe"})
        assert client.get("/api/webhook/cabana-1", params=params).status_code == 403


class TestAISettings:
    def test_available_models(self, client):
        codes = [m["code"] for m in client.get("/api/ai/available-models").json()["models"]]
        assert codes == ["anthropic_claude", "openai_gpt4o", "openai_gpt4o_mini"]

    def test_save_and_list(self, client):
        response = client.post(
            "/api/ai/settings",
            json={"customer_chat": "openai_gpt4o", "receipt_extraction": "made_up_provider"},
        )
        assert response.status_code == 200
        settings = response.json()["settings"]
        assert [(s["setting_key"], s["provider_code"], s["model"]) for s in settings] == [
            ("customer_chat", "openai_gpt4o", "gpt-4o")
        ]
        assert client.get("/api/ai/settings").json()["settings"][0]["provider_code"] == "openai_gpt4o"

    def test_chat_follows_saved_setting(self, client, scripted_llm):
        client.post("/api/ai/settings", json={"customer_chat": "openai_gpt4o_mini"})
        scripted_llm.reply("Hola")
        data = client.post("/api/chat/cabana-1", json={"message": "Hola"}).json()
        assert data["provider"] == "openai_gpt4o_mini"

    def test_connection_success(self, client, scripted_llm):
        scripted_llm.reply("Hello!")
        response = client.post("/api/ai/test-connection", json={"provider_code": "openai_gpt4o"})
        assert response.json() == {
            "success": True,
            "provider": "openai_gpt4o",
            "model": "scripted-model",
            "response": "Hello!",
            "error": None,
        }
        assert scripted_llm.calls[0]["messages"] == [{"role": "user", "content": "Hi"}]

    def test_connection_missing_key(self, client):
        data = client.post("/api/ai/test-connection", json={"provider_code": "xai_grok"}).json()
        assert data["success"] is False
        assert "GROK_API_KEY" in data["error"]

    def test_connection_provider_error(self, client, scripted_llm):
        scripted_llm.fail(ProviderCallFailed("openai_gpt4o", '{"error": "bad key"}', 401))
        data = client.post("/api/ai/test-connection", json={"provider_code": "openai_gpt4o"}).json()
        assert data["success"] is False
        assert "401" in data["error"]

    def test_connection_unknown_provider(self, client):
        response = client.post("/api/ai/test-connection", json={"provider_code": "nope"})
        assert response.status_code == 400
