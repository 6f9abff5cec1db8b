"""Tests for the provider gateway: selection, request shaping and failure taxonomy."""

import httpx
import pytest

from app.core.config import Settings
from app.models.chat import ChatMessage, ChatOptions
from app.services.llm import (
    AnthropicProvider,
    EmptyCompletion,
    NoProviderConfigured,
    OpenAIProvider,
    TransportFailure,
    create_gateway,
    create_gateway_from_settings,
    select_provider,
)
from conftest import anthropic_reply, openai_reply, request_json


def _settings(**overrides) -> Settings:
    values = {
        "ANTHROPIC_API_KEY": None,
        "OPENAI_API_KEY": None,
        "OPENROUTER_API_KEY": None,
        "LLM_PROVIDER": None,
        "LLM_MODEL": None,
        "LLM_BASE_URL": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ── Provider selection ───────────────────────────────────────────────────────


def test_only_openrouter_key_selects_openrouter_with_default_model():
    gateway = create_gateway_from_settings(_settings(OPENROUTER_API_KEY="or-key"))
    assert gateway.provider == "openrouter"
    assert gateway.model == "openai/gpt-4o-mini"


def test_explicit_preference_wins_when_its_key_is_present():
    gateway = create_gateway_from_settings(
        _settings(ANTHROPIC_API_KEY="a-key", OPENAI_API_KEY="o-key", LLM_PROVIDER="openai")
    )
    assert gateway.provider == "openai"
    assert gateway.model == "gpt-4o-mini"


def test_explicit_preference_without_key_falls_back_to_priority():
    gateway = create_gateway(openai_api_key="o-key", openrouter_api_key="or-key", provider="anthropic")
    assert gateway.provider == "openai"


def test_priority_prefers_anthropic():
    gateway = create_gateway(anthropic_api_key="a", openai_api_key="o", openrouter_api_key="r")
    assert gateway.provider == "anthropic"
    assert gateway.model == "claude-sonnet-4-20250514"


def test_model_override_is_used():
    gateway = create_gateway(openai_api_key="o", model="gpt-4.1")
    assert gateway.model == "gpt-4.1"


def test_no_keys_raises_no_provider_configured():
    with pytest.raises(NoProviderConfigured):
        create_gateway_from_settings(_settings())


def test_unknown_provider_name_falls_back_to_priority():
    config = _settings(LLM_PROVIDER="gemini", OPENAI_API_KEY="o-key")
    assert create_gateway_from_settings(config).provider == "openai"


def test_provider_name_is_case_insensitive():
    config = _settings(LLM_PROVIDER=" OpenAI ", ANTHROPIC_API_KEY="a-key", OPENAI_API_KEY="o-key")
    assert config.LLM_PROVIDER == "openai"
    assert create_gateway_from_settings(config).provider == "openai"


def test_blank_provider_from_environment_is_ignored(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "")
    config = Settings(_env_file=None, ANTHROPIC_API_KEY=None, OPENAI_API_KEY=None, OPENROUTER_API_KEY="or-key")
    assert config.LLM_PROVIDER is None
    assert create_gateway_from_settings(config).provider == "openrouter"


def test_select_provider_skips_unknown_preference():
    assert select_provider({"anthropic": "a", "openai": None}, preferred="gemini") == ("anthropic", "a")


# ── Request shaping ──────────────────────────────────────────────────────────


def test_anthropic_moves_system_message_out_of_messages():
    provider = AnthropicProvider("a-key")
    path, headers, payload = provider.build_request(
        [ChatMessage(role="system", content="X"), ChatMessage(role="user", content="Y")],
        ChatOptions(temperature=0.3, max_tokens=50),
    )
    assert path == "/messages"
    assert payload["system"] == "X"
    assert payload["messages"] == [{"role": "user", "content": "Y"}]
    assert headers["x-api-key"] == "a-key"
    assert headers["anthropic-version"] == "2023-06-01"


def test_anthropic_omits_system_when_absent_and_joins_repeated_roles():
    provider = AnthropicProvider("a-key")
    _, _, payload = provider.build_request(
        [
            ChatMessage(role="user", content="first"),
            ChatMessage(role="user", content="second"),
            ChatMessage(role="assistant", content="reply"),
        ],
        ChatOptions(),
    )
    assert "system" not in payload
    assert payload["messages"] == [
        {"role": "user", "content": "first\n\nsecond"},
        {"role": "assistant", "content": "reply"},
    ]


def test_anthropic_conversation_opens_with_user_turn():
    provider = AnthropicProvider("a-key")
    _, _, payload = provider.build_request(
        [
            ChatMessage(role="system", content="X"),
            ChatMessage(role="assistant", content="Hi! Ask me anything about Dota 2."),
            ChatMessage(role="user", content="Q"),
            ChatMessage(role="assistant", content="A"),
            ChatMessage(role="user", content="Q2"),
        ],
        ChatOptions(),
    )
    assert payload["system"] == "X"
    assert payload["messages"][0]["role"] == "user"
    assert payload["messages"] == [
        {"role": "user", "content": "Q"},
        {"role": "assistant", "content": "A"},
        {"role": "user", "content": "Q2"},
    ]


def test_openai_sends_system_inline_with_bearer_auth():
    provider = OpenAIProvider("o-key")
    path, headers, payload = provider.build_request(
        [ChatMessage(role="system", content="X"), ChatMessage(role="user", content="Y")],
        ChatOptions(temperature=0.2, max_tokens=400),
    )
    assert path == "/chat/completions"
    assert headers == {"authorization": "Bearer o-key"}
    assert payload == {
        "model": "gpt-4o-mini",
        "messages": [{"role": "system", "content": "X"}, {"role": "user", "content": "Y"}],
        "temperature": 0.2,
        "max_tokens": 400,
    }


@pytest.mark.asyncio
async def test_openrouter_request_carries_identifying_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return openai_reply("hi")

    gateway = create_gateway(openrouter_api_key="or-key", transport=httpx.MockTransport(handler))
    await gateway.chat([ChatMessage(role="user", content="hello")])

    assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer or-key"
    assert seen["headers"]["HTTP-Referer"] == "http://localhost"
    assert seen["headers"]["X-Title"] == "dota2-interactive-agent"


@pytest.mark.asyncio
async def test_anthropic_round_trip_reads_first_text_block_and_usage():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = request_json(request)
        return httpx.Response(
            200,
            json={
                "content": [{"type": "tool_use", "id": "x"}, {"type": "text", "text": "Buy a BKB."}],
                "usage": {"input_tokens": 12, "output_tokens": 4},
            },
        )

    gateway = create_gateway(anthropic_api_key="a-key", transport=httpx.MockTransport(handler))
    result = await gateway.chat(
        [ChatMessage(role="system", content="Be brief."), ChatMessage(role="user", content="Item?")],
        ChatOptions(temperature=0.1, max_tokens=300),
    )

    assert captured["url"] == "https://api.anthropic.com/v1/messages"
    assert captured["body"]["system"] == "Be brief."
    assert all(m["role"] != "system" for m in captured["body"]["messages"])
    assert captured["body"]["max_tokens"] == 300
    assert result.content == "Buy a BKB."
    assert result.usage.input_tokens == 12
    assert result.usage.output_tokens == 4


@pytest.mark.asyncio
async def test_base_url_override_is_used():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return openai_reply("ok")

    gateway = create_gateway(
        openai_api_key="o", base_url="http://llm.internal/v1", transport=httpx.MockTransport(handler)
    )
    await gateway.chat([ChatMessage(role="user", content="hi")])
    assert seen["url"] == "http://llm.internal/v1/chat/completions"


@pytest.mark.asyncio
async def test_openai_usage_is_parsed():
    gateway = create_gateway(
        openai_api_key="o",
        transport=httpx.MockTransport(
            lambda request: openai_reply("answer", usage={"prompt_tokens": 7, "completion_tokens": 3})
        ),
    )
    result = await gateway.chat([ChatMessage(role="user", content="hi")])
    assert result.content == "answer"
    assert (result.usage.input_tokens, result.usage.output_tokens) == (7, 3)


# ── Failures ─────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   \n\t "])
async def test_blank_completion_raises_empty_completion(content):
    gateway = create_gateway(
        openai_api_key="o", transport=httpx.MockTransport(lambda request: openai_reply(content))
    )
    with pytest.raises(EmptyCompletion):
        await gateway.chat([ChatMessage(role="user", content="hi")])


@pytest.mark.asyncio
async def test_anthropic_without_text_block_raises_empty_completion():
    gateway = create_gateway(
        anthropic_api_key="a",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"content": []})),
    )
    with pytest.raises(EmptyCompletion):
        await gateway.chat([ChatMessage(role="user", content="hi")])


@pytest.mark.asyncio
async def test_non_2xx_raises_transport_failure_with_status_and_body():
    gateway = create_gateway(
        anthropic_api_key="a",
        transport=httpx.MockTransport(lambda request: httpx.Response(529, text='{"error":"overloaded"}')),
    )
    with pytest.raises(TransportFailure) as exc_info:
        await gateway.chat([ChatMessage(role="user", content="hi")])

    assert exc_info.value.status_code == 529
    assert exc_info.value.body == '{"error":"overloaded"}'
    assert exc_info.value.provider == "anthropic"


@pytest.mark.asyncio
async def test_network_error_raises_transport_failure_without_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = create_gateway(openai_api_key="o", transport=httpx.MockTransport(handler))
    with pytest.raises(TransportFailure) as exc_info:
        await gateway.chat([ChatMessage(role="user", content="hi")])
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_empty_message_list_is_rejected():
    gateway = create_gateway(openai_api_key="o", transport=httpx.MockTransport(lambda r: openai_reply("x")))
    with pytest.raises(ValueError):
        await gateway.chat([])


@pytest.mark.asyncio
async def test_anthropic_response_without_usage():
    gateway = create_gateway(
        anthropic_api_key="a", transport=httpx.MockTransport(lambda request: anthropic_reply("gg"))
    )
    result = await gateway.chat([ChatMessage(role="user", content="hi")])
    assert result.content == "gg"
    assert result.usage is None


@pytest.mark.asyncio
async def test_non_json_success_body_raises_empty_completion():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway page</html>"))
    gateway = create_gateway(openai_api_key="o", transport=transport)
    with pytest.raises(EmptyCompletion):
        await gateway.chat([ChatMessage(role="user", content="hi")])
