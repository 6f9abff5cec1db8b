from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

ChatRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class ChatOptions(BaseModel):
    temperature: float = 0.7
    max_tokens: int = 1024


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ChatCompletion(BaseModel):
    content: str
    usage: TokenUsage | None = None


class WebCitation(BaseModel):
    title: str
    url: str
    snippet: str = ""


class HistoryMessage(BaseModel):
    role: str = "user"
    content: str | None = None


class ChatRequest(BaseModel):
    """Chat body as sent by the web client. Malformed parts are coerced, not rejected."""

    message: str = ""
    history: list[HistoryMessage] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("history", mode="before")
    @classmethod
    def coerce_history(cls, value: Any) -> list[dict[str, Any]]:
        if not isinstance(value, list):
            return []
        history = []
        for item in value:
            if not isinstance(item, dict):
                continue
            role = item.get("role")
            content = item.get("content")
            history.append(
                {
                    "role": role if isinstance(role, str) else "user",
                    "content": content if isinstance(content, str) else "",
                }
            )
        return history


class Citation(BaseModel):
    title: str
    url: str


class ChatResponse(BaseModel):
    answer: str
    citations: list[Citation] = Field(default_factory=list)
