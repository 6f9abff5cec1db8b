"""
Preference extraction.

Asks the configured LLM to pull explicitly stated player preferences out of a
chat message, then validates the answer field by field. Model output is
treated as untrusted: anything malformed is dropped, and a failed extraction
is reported as "nothing found" rather than as an error.
"""

import json
import re
from typing import Any

from loguru import logger

from app.core.constants import EXTRACTION_MAX_TOKENS, EXTRACTION_TEMPERATURE, VALID_ROLES
from app.models.chat import ChatMessage, ChatOptions
from app.models.profile import ExtractedPreferences
from app.services.llm import LLMGateway

EXTRACTION_PROMPT = """You are analyzing a Dota 2 player's message to extract their preferences and profile information.

Extract ONLY information that is CLEARLY and EXPLICITLY stated in the message. Do not assume or infer.

Return a JSON object with these optional fields (include only fields that are clearly mentioned):
- heroes: array of hero names mentioned positively (e.g., "I play Anti-Mage" or "I love PA")
- roles: array of roles mentioned (valid: "carry", "mid", "offlane", "soft support", "hard support")
- skillLevel: their rank if mentioned (e.g., "Herald", "Guardian", "Crusader", "Archon", "Legend", "Ancient", "Divine", "Immortal")
- playstyle: description of their playstyle if mentioned (e.g., "aggressive", "farming focused", "team fighter")
- learningGoals: array of things they want to learn or improve

Rules:
- Only include fields where information is EXPLICITLY stated
- Hero names should be full official names (e.g., "Anti-Mage" not "AM", "Phantom Assassin" not "PA")
- Be conservative - when in doubt, don't include it
- Return ONLY valid JSON, no explanation

User message: """

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


class ExtractionFailure(Exception):
    """Model output could not be read as a preference record."""


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the trimmed text if there is none."""
    content = text.strip()
    match = _FENCE_RE.search(content)
    if match:
        return match.group(1).strip()
    return content


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    items = [v.strip() for v in value if isinstance(v, str) and v.strip()]
    return items or None


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_preferences(text: str) -> ExtractedPreferences:
    """
    Parse and validate raw model output.

    Raises:
        ExtractionFailure: output is not JSON or not a JSON object
    """
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ExtractionFailure(f"Invalid JSON from extraction model: {e}") from e

    if not isinstance(parsed, dict):
        raise ExtractionFailure(f"Expected a JSON object, got {type(parsed).__name__}")

    roles = _string_list(parsed.get("roles"))
    if roles:
        roles = [r for r in roles if r.lower() in VALID_ROLES] or None

    return ExtractedPreferences(
        heroes=_string_list(parsed.get("heroes")),
        roles=roles,
        skill_level=_string(_pick(parsed, "skillLevel", "skill_level")),
        playstyle=_string(parsed.get("playstyle")),
        learning_goals=_string_list(_pick(parsed, "learningGoals", "learning_goals")),
    )


def has_preferences(prefs: ExtractedPreferences) -> bool:
    return bool(prefs.heroes or prefs.roles or prefs.learning_goals or prefs.skill_level or prefs.playstyle)


class PreferenceExtractor:
    def __init__(self, gateway: LLMGateway):
        self.gateway = gateway

    async def extract(self, message: str) -> ExtractedPreferences:
        """Extract preferences from one user message. Never raises."""
        try:
            response = await self.gateway.chat(
                [ChatMessage(role="user", content=EXTRACTION_PROMPT + message)],
                ChatOptions(temperature=EXTRACTION_TEMPERATURE, max_tokens=EXTRACTION_MAX_TOKENS),
            )
            return parse_preferences(response.content)
        except Exception as e:
            logger.warning(f"Preference extraction failed: {e}")
            return ExtractedPreferences()
