from collections.abc import Sequence

from app.core.constants import PROMPT_MAX_GOALS, PROMPT_MAX_HEROES
from app.models.chat import ChatMessage, HistoryMessage, WebCitation
from app.models.profile import UserProfile

BASE_PROMPT = "You are a concise Dota 2 assistant."
CLOSING_PROMPT = (
    "Tailor advice to their level and preferences. Use provided sources. Cite with [n]. "
    "Keep answers tight and practical."
)
DEFAULT_SYSTEM_PROMPT = (
    "You are a concise Dota 2 assistant. Use the provided sources. Cite with [n]. Keep answers tight and practical."
)
ANSWER_INSTRUCTIONS = "Answer in 3-6 sentences. Use [n] citations. If unsure, say so briefly."


def build_personalized_prompt(profile: UserProfile) -> str:
    """
    Render a profile into system prompt text.

    Sentences appear in a fixed order and only for populated fields, so the
    same profile always renders the same text.
    """
    parts = [BASE_PROMPT]

    if profile.skill_level:
        parts.append(f"You are helping a {profile.skill_level} player.")

    if profile.preferred_heroes:
        parts.append(f"They main: {', '.join(profile.preferred_heroes[:PROMPT_MAX_HEROES])}.")

    if profile.preferred_roles:
        parts.append(f"They prefer playing {', '.join(profile.preferred_roles)}.")

    if profile.playstyle:
        parts.append(f"Their playstyle is {profile.playstyle}.")

    if profile.learning_goals:
        parts.append(f"Current learning goals: {', '.join(profile.learning_goals[:PROMPT_MAX_GOALS])}.")

    parts.append(CLOSING_PROMPT)
    return " ".join(parts)


def has_profile_data(profile: UserProfile) -> bool:
    return bool(
        profile.preferred_heroes
        or profile.preferred_roles
        or profile.skill_level
        or profile.playstyle
        or profile.learning_goals
    )


def system_prompt_for(profile: UserProfile | None) -> str:
    if profile is not None and has_profile_data(profile):
        return build_personalized_prompt(profile)
    return DEFAULT_SYSTEM_PROMPT


def format_sources(sources: Sequence[WebCitation]) -> str:
    return "\n\n".join(
        f"[{idx}] {s.title}\n{s.snippet or ''}\nURL: {s.url}".strip() for idx, s in enumerate(sources, start=1)
    )


def sanitize_history(history: Sequence[HistoryMessage]) -> list[ChatMessage]:
    """Clients may not inject system turns; anything that is not the assistant is the user."""
    return [
        ChatMessage(role="assistant" if h.role == "assistant" else "user", content=h.content or "")
        for h in history
    ]


def build_answer_messages(
    query: str,
    sources: Sequence[WebCitation],
    profile: UserProfile | None,
    history: Sequence[HistoryMessage] = (),
) -> list[ChatMessage]:
    """Assemble system prompt, prior turns and the sourced question for the answer call."""
    user_content = f"Question: {query}\n\nSources:\n{format_sources(sources)}\n\nInstructions: {ANSWER_INSTRUCTIONS}"
    return [
        ChatMessage(role="system", content=system_prompt_for(profile)),
        *sanitize_history(history),
        ChatMessage(role="user", content=user_content),
    ]
