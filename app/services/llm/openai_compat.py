from typing import Any

import httpx

from app.core.config import settings
from app.models.chat import ChatCompletion, ChatMessage, ChatOptions, TokenUsage
from app.services.llm.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions. Messages, including system ones, are sent as-is."""

    name = "openai"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"

    def request_headers(self) -> dict[str, str]:
        return {"authorization": f"Bearer {self.api_key}"}

    def build_request(
        self, messages: list[ChatMessage], options: ChatOptions
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        payload = {
            "model": self.model,
            "messages": [m.model_dump() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }
        return "/chat/completions", self.request_headers(), payload

    def parse_response(self, data: Any) -> ChatCompletion:
        content = ""
        choices = data.get("choices") if isinstance(data, dict) else None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                content = message["content"]

        usage = None
        raw_usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(raw_usage, dict):
            usage = TokenUsage(
                input_tokens=raw_usage.get("prompt_tokens") or 0,
                output_tokens=raw_usage.get("completion_tokens") or 0,
            )
        return ChatCompletion(content=content, usage=usage)


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter speaks the OpenAI format but wants two identifying headers on every call."""

    name = "openrouter"
    default_model = "openai/gpt-4o-mini"
    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        referer: str = settings.OPENROUTER_REFERER,
        title: str = settings.OPENROUTER_TITLE,
    ):
        super().__init__(api_key, model=model, base_url=base_url, timeout=timeout, transport=transport)
        self.referer = referer
        self.title = title

    def request_headers(self) -> dict[str, str]:
        headers = super().request_headers()
        headers["HTTP-Referer"] = self.referer
        headers["X-Title"] = self.title
        return headers
