"""Shared fixtures: a fake Ollama server and fast settings."""
import json
import pytest
import httpx
from config.settings import DisplayConfig, Settings


class FakeOllama:
    """In-process stand-in for the two Ollama endpoints."""

    def __init__(self):
        self.models = ["qwen2.5:latest-q4", "llama3:8b"]
        self.reply = "hi"
        self.tags_body: dict | None = None
        self.generate_body: dict | None = None
        self.tags_error: Exception | None = None
        self.generate_error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/tags":
            if self.tags_error:
                raise self.tags_error
            body = self.tags_body if self.tags_body is not None else {
                "models": [{"name": name} for name in self.models]
            }
            return httpx.Response(200, json=body)
        if request.url.path == "/api/generate":
            if self.generate_error:
                raise self.generate_error
            body = self.generate_body if self.generate_body is not None else {
                "model": json.loads(request.content)["model"],
                "response": self.reply,
                "done": True,
            }
            return httpx.Response(200, json=body)
        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_ollama():
    return FakeOllama()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def app_settings():
    """Default settings: the 500-1500 ms thinking window."""
    return Settings()


@pytest.fixture
def instant_settings():
    """Settings with the thinking delay switched off."""
    return Settings(display=DisplayConfig(min_delay_ms=0, max_delay_ms=0))
