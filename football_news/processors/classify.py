from __future__ import annotations

import re
from typing import Pattern, Sequence, Tuple

from ..utils.logging import get_logger

logger = get_logger("fn.processors.classify")


def _family(*terms: str) -> Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(terms) + r")", re.IGNORECASE)


# First match wins; order is the category priority.
CATEGORY_PATTERNS: Sequence[Tuple[str, Pattern[str]]] = (
    (
        "transfer",
        _family(
            r"transfers?\b",
            r"sign(?:s|ed|ing)\b",
            r"joins?\b",
            r"deals?\b",
            r"loan\b",
            r"moves? to\b",
            r"bid\b",
            r"contract\b",
            r"here we go\b",
        ),
    ),
    (
        "match",
        _family(
            r"goals?\b",
            r"scores?\b",
            r"scored\b",
            r"wins?\b",
            r"won\b",
            r"defeat",
            r"draws?\b",
            r"beat(?:s|en)?\b",
            r"match report\b",
            r"player ratings\b",
            r"highlights\b",
            r"full[- ]time\b",
            r"red card\b",
        ),
    ),
    ("injury", _family(r"injur", r"sidelined\b", r"ruled out\b", r"hamstring\b", r"fitness\b")),
    ("lineup", _family(r"line-?ups?\b", r"starting xi\b", r"starting eleven\b", r"team news\b")),
    ("preview", _family(r"preview\b", r"ahead of\b", r"predictions?\b", r"build-up\b", r"how to watch\b")),
    ("analysis", _family(r"analysis\b", r"tactic", r"interview\b", r"exclusive\b", r"feature\b", r"column\b")),
)


def classify_text(text: str) -> str:
    """Return the first matching category family for ``text`` or ``"general"``."""
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    logger.debug("No category family matched; using general")
    return "general"
