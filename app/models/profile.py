from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Serializes with the camelCase keys the web client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProfile(CamelModel):
    """
    Persisted player profile.

    List fields keep discovery order and only grow through evolution.
    `skill_level` is the only field that can be replaced outright.
    """

    user_id: str
    preferred_heroes: list[str] = Field(default_factory=list)
    preferred_roles: list[str] = Field(default_factory=list)
    skill_level: str | None = None
    mmr_bracket: str | None = None
    playstyle: str | None = None
    learning_goals: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ProfileUpdate(CamelModel):
    """Partial profile payload. Unset fields are left untouched."""

    preferred_heroes: list[str] | None = None
    preferred_roles: list[str] | None = None
    skill_level: str | None = None
    mmr_bracket: str | None = None
    playstyle: str | None = None
    learning_goals: list[str] | None = None


class ExtractedPreferences(CamelModel):
    """Preferences stated in a single chat message. Absent means not mentioned."""

    heroes: list[str] | None = None
    roles: list[str] | None = None
    skill_level: str | None = None
    playstyle: str | None = None
    learning_goals: list[str] | None = None


class MemoryUpdate(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None
    action: Literal["add", "replace", "merge"]


class EvolutionResult(BaseModel):
    updated: dict[str, Any] = Field(default_factory=dict)
    changes: list[MemoryUpdate] = Field(default_factory=list)
