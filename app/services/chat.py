"""
Chat orchestration.

Each message starts two independent paths:

- foreground: web search, prompt synthesis, gateway call, answer
- background: preference extraction, profile evolution, persistence

The background path is fire-and-forget. Its failures are logged and never
reach the caller, and the answer never waits for it.

Profile reads and writes are not serialized. Two messages arriving close
together can both evolve the same stale snapshot, and the later write wins.
This is accepted for the single implicit user; serving several users would
need per-user serialization of evolution writes (e.g. a queue keyed by user id).
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from app.core.config import settings
from app.core.constants import ANSWER_MAX_TOKENS, ANSWER_TEMPERATURE
from app.models.chat import ChatOptions, ChatResponse, Citation, HistoryMessage
from app.models.profile import UserProfile
from app.services.evolution import describe_changes, evolve_profile
from app.services.llm import LLMGateway
from app.services.preferences import PreferenceExtractor, has_preferences
from app.services.profile_store import ProfileStore
from app.services.prompts import build_answer_messages
from app.services.search import SearchService

NO_SOURCES_ANSWER = (
    "I could not find relevant sources for that query right now. Try rephrasing or adding more specifics."
)


class ChatService:
    def __init__(
        self,
        gateway: LLMGateway,
        store: ProfileStore,
        search: SearchService,
        extractor: PreferenceExtractor | None = None,
        user_id: str = settings.DEFAULT_USER_ID,
    ):
        self.gateway = gateway
        self.store = store
        self.search = search
        self.extractor = extractor or PreferenceExtractor(gateway)
        self.user_id = user_id
        # Strong references so pending evolution tasks are not garbage collected
        self._background_tasks: set[asyncio.Task] = set()

    async def answer(self, message: str, history: Sequence[HistoryMessage] = ()) -> ChatResponse:
        """
        Answer one chat message with cited web sources.

        Search and gateway errors propagate; profile evolution runs detached.
        """
        profile = await self.store.load_profile(self.user_id)

        self.trigger_evolution(message, profile)

        sources = await self.search.search(message)
        if not sources:
            return ChatResponse(answer=NO_SOURCES_ANSWER, citations=[])

        await self.store.save_notes(message, sources)

        completion = await self.gateway.chat(
            build_answer_messages(message, sources, profile, history),
            ChatOptions(temperature=ANSWER_TEMPERATURE, max_tokens=ANSWER_MAX_TOKENS),
        )
        if completion.usage:
            logger.debug(
                f"Answer tokens: in={completion.usage.input_tokens} out={completion.usage.output_tokens}"
            )

        return ChatResponse(
            answer=completion.content,
            citations=[Citation(title=s.title, url=s.url) for s in sources],
        )

    def trigger_evolution(self, message: str, profile: UserProfile | None) -> asyncio.Task | None:
        """Fire and forget a background profile evolution for `message`."""
        if profile is None:
            logger.debug("No profile snapshot, skipping profile evolution")
            return None

        task = asyncio.create_task(self._evolution_task(message, profile))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _evolution_task(self, message: str, profile: UserProfile) -> None:
        try:
            await self.evolve_from_message(message, profile)
        except Exception as e:
            logger.exception(f"Background profile update failed: {e}")

    async def evolve_from_message(self, message: str, profile: UserProfile) -> UserProfile | None:
        """Extract preferences from `message` and persist whatever is new."""
        extracted = await self.extractor.extract(message)
        if not has_preferences(extracted):
            return None

        result = evolve_profile(profile, extracted)
        if not result.changes:
            return None

        logger.info(f"Profile evolution: {describe_changes(result)}")
        return await self.store.apply_profile_update(profile.user_id, result.updated)

    async def drain(self) -> None:
        """Wait for in-flight background tasks (used on shutdown)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
