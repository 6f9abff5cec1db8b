from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx
from loguru import logger

from app.core.base_client import BaseClient
from app.core.config import settings
from app.models.chat import ChatCompletion, ChatMessage, ChatOptions
from app.services.llm.errors import EmptyCompletion, TransportFailure


class LLMProvider(BaseClient, ABC):
    """
    One provider's chat-completion endpoint.

    Subclasses own the mapping between the uniform message list and their wire
    format; `chat` owns transport and the failure taxonomy.
    """

    name: ClassVar[str]
    default_model: ClassVar[str]
    default_base_url: ClassVar[str]

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        super().__init__(
            base_url=base_url or self.default_base_url,
            timeout=timeout,
            headers={"content-type": "application/json"},
            transport=transport,
        )

    @abstractmethod
    def build_request(
        self, messages: list[ChatMessage], options: ChatOptions
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (path, headers, JSON payload) for one completion request."""

    @abstractmethod
    def parse_response(self, data: Any) -> ChatCompletion:
        """Read completion text and usage out of a decoded response body."""

    async def chat(self, messages: list[ChatMessage], options: ChatOptions) -> ChatCompletion:
        path, headers, payload = self.build_request(messages, options)
        logger.debug(f"{self.name} chat request: model={self.model} messages={len(messages)}")

        try:
            response = await self._request("POST", path, json=payload, headers=headers)
        except httpx.HTTPStatusError as e:
            raise TransportFailure(self.name, e.response.status_code, e.response.text) from e
        except httpx.RequestError as e:
            raise TransportFailure(self.name, None, str(e)) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"{self.name} returned a non-JSON body: {response.text[:200]}")
            raise EmptyCompletion(self.name) from e

        completion = self.parse_response(data)
        if not completion.content.strip():
            raise EmptyCompletion(self.name)
        return completion
