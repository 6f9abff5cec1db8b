from collections.abc import Sequence

import httpx
from loguru import logger

from app.core.config import Settings, settings
from app.core.security import redact_secret
from app.models.chat import ChatCompletion, ChatMessage, ChatOptions
from app.services.llm.anthropic import AnthropicProvider
from app.services.llm.base import LLMProvider
from app.services.llm.errors import NoProviderConfigured
from app.services.llm.openai_compat import OpenAIProvider, OpenRouterProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    AnthropicProvider.name: AnthropicProvider,
    OpenAIProvider.name: OpenAIProvider,
    OpenRouterProvider.name: OpenRouterProvider,
}

# Auto-selection order when no usable explicit preference is given
PROVIDER_PRIORITY: tuple[str, ...] = ("anthropic", "openai", "openrouter")


class LLMGateway:
    """Uniform chat-completion interface over one configured provider."""

    def __init__(self, provider: LLMProvider):
        self._provider = provider

    @property
    def provider(self) -> str:
        return self._provider.name

    @property
    def model(self) -> str:
        return self._provider.model

    async def chat(self, messages: Sequence[ChatMessage], options: ChatOptions | None = None) -> ChatCompletion:
        """
        Send a chat completion request.

        Raises:
            ValueError: if `messages` is empty
            TransportFailure: non-2xx status or network failure
            EmptyCompletion: the provider returned no text
        """
        if not messages:
            raise ValueError("messages must not be empty")
        return await self._provider.chat(list(messages), options or ChatOptions())

    async def close(self) -> None:
        await self._provider.close()


def select_provider(api_keys: dict[str, str | None], preferred: str | None = None) -> tuple[str, str]:
    """
    Pick a provider and its key.

    An explicit preference wins only when it names a known provider whose key
    is present; otherwise the first provider in PROVIDER_PRIORITY with a key
    is used.
    """
    preferred = (preferred or "").strip().lower()
    if preferred in PROVIDERS and api_keys.get(preferred):
        return preferred, api_keys[preferred]

    for name in PROVIDER_PRIORITY:
        if api_keys.get(name):
            return name, api_keys[name]

    raise NoProviderConfigured()


def create_gateway(
    anthropic_api_key: str | None = None,
    openai_api_key: str | None = None,
    openrouter_api_key: str | None = None,
    provider: str | None = None,
    model: str | None = None,
    base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LLMGateway:
    name, api_key = select_provider(
        {
            "anthropic": anthropic_api_key,
            "openai": openai_api_key,
            "openrouter": openrouter_api_key,
        },
        preferred=provider,
    )
    provider_cls = PROVIDERS[name]
    instance = provider_cls(api_key, model=model, base_url=base_url, transport=transport)
    logger.info(f"Using LLM provider: {instance.name} ({instance.model}) key={redact_secret(api_key)}")
    return LLMGateway(instance)


def create_gateway_from_settings(config: Settings = settings) -> LLMGateway:
    return create_gateway(
        anthropic_api_key=config.ANTHROPIC_API_KEY,
        openai_api_key=config.OPENAI_API_KEY,
        openrouter_api_key=config.OPENROUTER_API_KEY,
        provider=config.LLM_PROVIDER,
        model=config.LLM_MODEL,
        base_url=config.LLM_BASE_URL,
    )
