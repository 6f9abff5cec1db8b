"""
LLM provider gateway.

One chat-completion interface over OpenAI, OpenRouter and Anthropic. Adding a
provider means adding an `LLMProvider` subclass and registering it in
`PROVIDERS`; call sites only ever see `LLMGateway`.
"""

from app.services.llm.anthropic import AnthropicProvider
from app.services.llm.base import LLMProvider
from app.services.llm.errors import EmptyCompletion, LLMError, NoProviderConfigured, TransportFailure
from app.services.llm.gateway import LLMGateway, create_gateway, create_gateway_from_settings, select_provider
from app.services.llm.openai_compat import OpenAIProvider, OpenRouterProvider

__all__ = [
    "LLMGateway",
    "LLMProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "create_gateway",
    "create_gateway_from_settings",
    "select_provider",
    "LLMError",
    "NoProviderConfigured",
    "TransportFailure",
    "EmptyCompletion",
]
