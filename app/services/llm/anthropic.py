from typing import Any

from app.models.chat import ChatCompletion, ChatMessage, ChatOptions, TokenUsage
from app.services.llm.base import LLMProvider

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API. System text travels out-of-band in `system`."""

    name = "anthropic"
    default_model = "claude-sonnet-4-20250514"
    default_base_url = "https://api.anthropic.com/v1"

    @staticmethod
    def split_system(messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, str]]]:
        """
        Pull system messages out of the conversation.

        The Messages API wants the conversation to open with a user turn and
        alternate from there. Assistant turns before the first user turn (a
        client-side greeting, say) are dropped, and consecutive turns with the
        same role are joined.
        """
        system_parts: list[str] = []
        conversation: list[dict[str, str]] = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(msg.content)
                continue
            if not conversation and msg.role == "assistant":
                continue
            if conversation and conversation[-1]["role"] == msg.role:
                conversation[-1]["content"] = f"{conversation[-1]['content']}\n\n{msg.content}"
            else:
                conversation.append({"role": msg.role, "content": msg.content})

        system = "\n\n".join(p for p in system_parts if p) or None
        return system, conversation

    def build_request(
        self, messages: list[ChatMessage], options: ChatOptions
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        system, conversation = self.split_system(messages)
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": conversation,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if system:
            payload["system"] = system

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        return "/messages", headers, payload

    def parse_response(self, data: Any) -> ChatCompletion:
        content = ""
        blocks = data.get("content") if isinstance(data, dict) else None
        if isinstance(blocks, list):
            for block in blocks:
                if isinstance(block, dict) and block.get("type") == "text":
                    text = block.get("text")
                    content = text if isinstance(text, str) else ""
                    break

        usage = None
        raw_usage = data.get("usage") if isinstance(data, dict) else None
        if isinstance(raw_usage, dict):
            usage = TokenUsage(
                input_tokens=raw_usage.get("input_tokens") or 0,
                output_tokens=raw_usage.get("output_tokens") or 0,
            )
        return ChatCompletion(content=content, usage=usage)
