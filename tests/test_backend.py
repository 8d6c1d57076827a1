"""Tests for the Ollama backend client."""
import asyncio
import json
import httpx
import pytest
from config.settings import BackendConfig
from modules.backend import MODEL_NOT_LOADED, NO_RESPONSE, BackendClient, BackendState


def probe(fake_ollama, model_name=None, config=None):
    async def scenario():
        async with BackendClient(config or BackendConfig(), transport=fake_ollama.transport) as client:
            found = await client.check_availability(model_name)
            return found, client.state
    return asyncio.run(scenario())


def probe_then_generate(fake_ollama, message="hello", config=None):
    async def scenario():
        async with BackendClient(config or BackendConfig(), transport=fake_ollama.transport) as client:
            await client.check_availability()
            reply = await client.generate(message)
            return reply, client.state
    return asyncio.run(scenario())


def test_probe_matches_model_by_substring(fake_ollama):
    found, state = probe(fake_ollama, "qwen2.5:latest")
    assert found is True
    assert state.ready is True
    assert fake_ollama.calls("/api/tags")[0].method == "GET"


def test_probe_unknown_model(fake_ollama):
    found, state = probe(fake_ollama, "llama3.1")
    assert found is False
    assert state.ready is False


def test_probe_defaults_to_configured_model(fake_ollama):
    fake_ollama.models = ["mistral:7b"]
    found, _ = probe(fake_ollama, config=BackendConfig(model="mistral"))
    assert found is True


def test_probe_transport_failure_is_false(fake_ollama):
    fake_ollama.tags_error = httpx.ConnectError("Connection refused")
    found, state = probe(fake_ollama)
    assert found is False
    assert state.ready is False


def test_probe_listing_without_models_field(fake_ollama):
    fake_ollama.tags_body = {"error": "unexpected"}
    found, _ = probe(fake_ollama)
    assert found is False


def test_probe_http_error_status(fake_ollama):
    found, _ = probe(fake_ollama, config=BackendConfig(base_url="http://localhost:11434/missing"))
    assert found is False


def test_failed_probe_clears_readiness(fake_ollama):
    async def scenario():
        async with BackendClient(BackendConfig(), transport=fake_ollama.transport) as client:
            first = await client.check_availability("qwen2.5:latest")
            second = await client.check_availability("llama3.1")
            return first, second, client.state.ready
    assert asyncio.run(scenario()) == (True, False, False)


def test_probe_writes_shared_state(fake_ollama):
    shared = BackendState()

    async def scenario():
        async with BackendClient(BackendConfig(), shared, transport=fake_ollama.transport) as client:
            await client.check_availability()

    asyncio.run(scenario())
    assert shared.ready is True


def test_generate_returns_response_field(fake_ollama):
    reply, state = probe_then_generate(fake_ollama, "hello")
    assert reply == "hi"
    assert state.pending_request is None
    assert state.in_flight == 0


def test_generate_request_body(fake_ollama):
    probe_then_generate(fake_ollama, "今天好累")
    request = fake_ollama.calls("/api/generate")[0]
    body = json.loads(request.content)

    assert request.method == "POST"
    assert request.headers["content-type"] == "application/json"
    assert body["model"] == "qwen2.5:latest"
    assert body["stream"] is False
    assert body["temperature"] == 0.8
    assert body["top_p"] == 0.9
    assert body["max_tokens"] == 150
    assert body["prompt"].startswith("系统设定：【核心身份】")
    assert "\n用户消息：今天好累\n" in body["prompt"]
    assert body["prompt"].endswith("请以猫娘喵喵的身份回复：")


def test_generate_missing_field_is_sentinel(fake_ollama):
    fake_ollama.generate_body = {"done": True}
    reply, _ = probe_then_generate(fake_ollama)
    assert reply == NO_RESPONSE


def test_generate_transport_failure_embeds_description(fake_ollama):
    fake_ollama.generate_error = httpx.ConnectError("Connection reset by peer")
    reply, state = probe_then_generate(fake_ollama)
    assert reply.startswith("Error: ")
    assert "Connection reset by peer" in reply
    assert state.pending_request is None


def test_generate_without_probe_is_sentinel(fake_ollama):
    async def scenario():
        async with BackendClient(BackendConfig(), transport=fake_ollama.transport) as client:
            return await client.generate("hello")

    assert asyncio.run(scenario()) == MODEL_NOT_LOADED
    assert fake_ollama.calls("/api/generate") == []


def test_pending_request_set_while_in_flight():
    seen = []
    state = BackendState(ready=True)

    async def handler(request):
        seen.append((state.busy, state.in_flight))
        return httpx.Response(200, json={"response": "ok"})

    async def scenario():
        async with BackendClient(BackendConfig(), state, transport=httpx.MockTransport(handler)) as client:
            return await client.generate("hello")

    assert asyncio.run(scenario()) == "ok"
    assert seen == [(True, 1)]
    assert state.busy is False


def test_config_rejects_out_of_range_sampling():
    with pytest.raises(ValueError):
        BackendConfig(temperature=1.5)
    with pytest.raises(ValueError):
        BackendConfig(max_tokens=0)
