"""
Core constants used across the application. Keep these simple and documented.
"""

from typing import Final

# Closed role vocabulary for extracted preferences (compared lower-cased)
VALID_ROLES: Final[frozenset[str]] = frozenset(
    {"carry", "mid", "offlane", "soft support", "hard support", "support"}
)

# Extraction call: low temperature and a small budget keep the output short and structured
EXTRACTION_TEMPERATURE: Final[float] = 0.1
EXTRACTION_MAX_TOKENS: Final[int] = 300

# Foreground answer call
ANSWER_TEMPERATURE: Final[float] = 0.2
ANSWER_MAX_TOKENS: Final[int] = 400

# Prompt rendering caps
PROMPT_MAX_HEROES: Final[int] = 5
PROMPT_MAX_GOALS: Final[int] = 3

NOTES_TAGS: Final[str] = "web,serpapi"
