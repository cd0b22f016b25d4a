"""Automated screening of member-submitted skill text.

Submissions are never rejected here; a match only sets ``flag_reason`` so
that moderators see the submission highlighted in the review queue.
"""

from __future__ import annotations

import re
from typing import Optional

# Markup and script injection
_MARKUP_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"<\s*script[\s>]",
        r"<\s*iframe[\s>]",
        r"javascript\s*:",
    ]
]

# Link-dropping and promotional copy
_SPAM_PATTERNS: list[re.Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"https?://",
        r"\bwww\.\S+",
        r"\b(buy|cheap|discount|promo)\s+(now|code|offer)\b",
        r"\b(click|visit)\s+(here|my\s+(site|page|link))\b",
    ]
]

_PROFANITY_WORDS: set[str] = {
    "fuck", "shit", "asshole", "bitch", "bastard", "cunt",
}

_PROFANITY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"\b{re.escape(w)}\b", re.IGNORECASE)
    for w in _PROFANITY_WORDS
]

MAX_SKILL_LENGTH = 80


def screen_submission(skill: str, description: str = "") -> Optional[str]:
    """Return a flag reason for suspicious submission text, or ``None``."""
    text = f"{skill}\n{description}"
    for pattern in _MARKUP_PATTERNS:
        if pattern.search(text):
            return "markup"
    for pattern in _PROFANITY_PATTERNS:
        if pattern.search(text):
            return "profanity"
    for pattern in _SPAM_PATTERNS:
        if pattern.search(text):
            return "spam"
    if len(skill) > MAX_SKILL_LENGTH:
        return "too_long"
    return None
