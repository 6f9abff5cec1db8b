"""FastAPI dependencies: shared service instances."""

from functools import lru_cache

from app.services.chat import ChatService
from app.services.llm import create_gateway_from_settings
from app.services.profile_store import ProfileStore, profile_store
from app.services.search import SearchService


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    """Build the chat service once. Raises NoProviderConfigured when no LLM key is set."""
    return ChatService(
        gateway=create_gateway_from_settings(),
        store=profile_store,
        search=SearchService(),
    )


def get_profile_store() -> ProfileStore:
    return profile_store
