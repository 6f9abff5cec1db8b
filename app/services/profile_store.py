import json
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import ValidationError

from app.core.config import settings
from app.core.constants import NOTES_TAGS
from app.models.chat import WebCitation
from app.models.profile import UserProfile
from app.services.redis_service import RedisService, redis_service

# Fields a partial update may touch; identity and timestamps are managed here.
UPDATABLE_FIELDS = frozenset(
    {"preferred_heroes", "preferred_roles", "skill_level", "mmr_bracket", "playstyle", "learning_goals"}
)


class ProfileStore:
    """Redis-backed storage for player profiles and the search note log."""

    KEY_PREFIX = settings.REDIS_PROFILE_KEY
    NOTES_KEY = settings.REDIS_NOTES_KEY

    def __init__(self, redis: RedisService = redis_service, notes_max_entries: int = settings.NOTES_MAX_ENTRIES):
        self.redis = redis
        self.notes_max_entries = notes_max_entries

    def _format_key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    async def load_profile(self, user_id: str) -> UserProfile | None:
        raw = await self.redis.get(self._format_key(user_id))
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Failed to decode stored profile for user {user_id}: {e}")
            return None

    async def save_profile(self, profile: UserProfile) -> bool:
        return await self.redis.set(self._format_key(profile.user_id), profile.model_dump_json(by_alias=True))

    async def ensure_profile(self, user_id: str) -> UserProfile:
        """Load the profile, creating an empty one on first use."""
        profile = await self.load_profile(user_id)
        if profile is not None:
            return profile

        profile = UserProfile(user_id=user_id)
        if await self.save_profile(profile):
            logger.info(f"Created empty profile for user {user_id}")
        return profile

    async def apply_profile_update(self, user_id: str, fields: dict[str, Any]) -> UserProfile | None:
        """
        Merge `fields` into the stored profile and bump `updated_at`.

        No-op when `fields` is empty or the profile does not exist. Returns the
        stored profile after the update, or None when nothing was written.

        Raises:
            ValueError: `fields` names something that cannot be updated
        """
        if not fields:
            return None

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")

        current = await self.load_profile(user_id)
        if current is None:
            logger.warning(f"Skipping profile update for missing user {user_id}")
            return None

        updated = UserProfile.model_validate(
            {**current.model_dump(), **fields, "updated_at": datetime.now(timezone.utc)}
        )
        if not await self.save_profile(updated):
            return None
        return updated

    async def save_notes(self, query: str, sources: Sequence[WebCitation]) -> bool:
        """Append search results to the note log."""
        created_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat()
        entries = [
            json.dumps(
                {
                    "query": query,
                    "source_url": s.url,
                    "source_title": s.title,
                    "snippet": s.snippet or "",
                    "tags": NOTES_TAGS,
                    "summary": None,
                    "created_at": created_at,
                }
            )
            for s in sources
        ]
        return await self.redis.push_capped(self.NOTES_KEY, entries, self.notes_max_entries)

    async def close(self) -> None:
        await self.redis.close()


profile_store = ProfileStore()
