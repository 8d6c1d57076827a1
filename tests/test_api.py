"""Tests for the HTTP chat API."""
import time
import pytest
from fastapi.testclient import TestClient

import api.main
from core import ConversationController
from modules.responses import GREETING_POOL


@pytest.fixture
def client(monkeypatch, instant_settings, fake_ollama):
    monkeypatch.setattr(
        api.main,
        "build_controller",
        lambda: ConversationController(instant_settings, transport=fake_ollama.transport),
    )
    with TestClient(api.main.app) as test_client:
        yield test_client


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "healthy"
    assert data["use_backend"] is False
    assert data["backend_ready"] is False
    assert data["state"] == "rule_based"
    assert data["model"] == "qwen2.5:latest"


def test_chat_rule_based(client):
    r = client.post("/chat", json={"message": "你好"})
    assert r.status_code == 200
    data = r.json()
    assert data["response"] in GREETING_POOL
    assert data["source"] == "rules"
    assert data["turn_id"] == 1


def test_chat_empty_message(client):
    r = client.post("/chat", json={"message": "   "})
    assert r.status_code == 422


def test_chat_through_backend(client, fake_ollama):
    fake_ollama.reply = "喵～"
    r = client.post("/mode", json={"use_backend": True})
    assert r.status_code == 200
    assert r.json()["use_backend"] is True

    # the probe runs in the background
    for _ in range(100):
        health = client.get("/health").json()
        if health["backend_ready"]:
            break
        time.sleep(0.01)
    assert health["backend_ready"] is True
    assert health["state"] == "backend_ready"

    r = client.post("/chat", json={"message": "hello"})
    data = r.json()
    assert data["response"] == "喵～"
    assert data["source"] == "backend"
