import pytest

from merchandising.exceptions import GenerationError, ModelUnavailable
from merchandising.services.ai.gateway import ModelGateway, build_provider
from merchandising.services.ai.providers.ollama import OllamaProvider
from merchandising.settings import Settings


@pytest.mark.asyncio
async def test_prompt_form_uses_generate_text(make_gateway):
    gateway, provider = make_gateway("hello")

    assert await gateway.generate("say hi") == "hello"
    assert provider.calls == [{"prompt": "say hi", "messages": None, "system_context": None}]


@pytest.mark.asyncio
async def test_messages_form_passes_system_context(make_gateway):
    gateway, provider = make_gateway("reply")
    messages = [{"role": "user", "content": "hi"}]

    assert await gateway.generate(messages, system_context="be nice") == "reply"
    assert provider.calls[0]["messages"] == messages
    assert provider.calls[0]["system_context"] == "be nice"


@pytest.mark.asyncio
async def test_no_provider_is_unavailable():
    with pytest.raises(ModelUnavailable):
        await ModelGateway(None).generate("x")


@pytest.mark.asyncio
async def test_unconfigured_provider_is_unavailable(make_gateway):
    gateway, provider = make_gateway("x", configured=False)

    with pytest.raises(ModelUnavailable):
        await gateway.generate("x")
    assert provider.call_count == 0


@pytest.mark.asyncio
async def test_provider_error_becomes_generation_error(make_gateway):
    gateway, _ = make_gateway(error=RuntimeError("quota"))

    with pytest.raises(GenerationError) as excinfo:
        await gateway.generate("x")
    assert excinfo.value.provider == "fake"
    assert excinfo.value.recoverable is True


@pytest.mark.asyncio
async def test_timeout_becomes_generation_error(make_gateway):
    gateway, _ = make_gateway("late", delay=0.5, timeout=0.05)

    with pytest.raises(GenerationError) as excinfo:
        await gateway.generate("x")
    assert "timed out" in excinfo.value.message


@pytest.mark.asyncio
async def test_empty_response_is_generation_error(make_gateway):
    gateway, _ = make_gateway("   ")

    with pytest.raises(GenerationError):
        await gateway.generate("x")


def test_build_provider_from_settings():
    provider = build_provider(Settings(default_ai_provider="ollama", ollama_model="llama3"))

    assert isinstance(provider, OllamaProvider)
    assert provider.model_name == "llama3"
    assert provider.is_configured


def test_from_settings_uses_configured_timeout():
    gateway = ModelGateway.from_settings(Settings(default_ai_provider="ollama", ai_request_timeout_seconds=12))
    assert gateway.timeout == 12
    assert gateway.provider_name == "ollama"
