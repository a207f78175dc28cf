from __future__ import annotations

import html
import re
import unicodedata
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_relative_age_re = re.compile(
    r"(\d+)\s*(second|sec|minute|min|hour|hr|day|week|month)s?\s+ago", re.IGNORECASE
)

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u00A0"): " ",  # non-breaking space
}

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "minute": 60,
    "min": 60,
    "hour": 3600,
    "hr": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
}


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""
    if "<" not in raw_html and "&" not in raw_html:
        return _whitespace_re.sub(" ", raw_html).strip()

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text for downstream processing.

    - Strip BOM
    - Replace curly quotes/dashes and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters and collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()


def clean_text(raw: str | None, *, limit: Optional[int] = None) -> str:
    text = normalize_plain_text(clean_html_to_text(raw))
    if limit is not None and len(text) > limit:
        text = text[:limit].rstrip()
    return text


def as_utc(value: datetime) -> datetime:
    """Timezone-naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: str | datetime | None) -> Optional[datetime]:
    """Parse ISO-8601 or RFC-822 style timestamps; None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return as_utc(date_parser.parse(value))
    except (ValueError, OverflowError):
        return None


def parse_relative_age(text: str | None, now: datetime) -> Optional[datetime]:
    """Convert strings such as ``"3 hours ago"`` to an absolute time relative to ``now``."""
    if not text:
        return None
    match = _relative_age_re.search(text)
    if not match:
        return None
    amount = int(match.group(1))
    unit = match.group(2).lower()
    return now - timedelta(seconds=amount * _UNIT_SECONDS[unit])


def resolve_published(
    published: Optional[datetime],
    age: Optional[str],
    now: datetime,
) -> datetime:
    """Best-effort publish time: explicit timestamp, then relative age, then ``now``.

    Times in the future are clamped to ``now``.
    """
    resolved = as_utc(published) if published is not None else None
    if resolved is None and age:
        resolved = parse_relative_age(age, now) or parse_datetime(age)
    if resolved is None or resolved > now:
        return now
    return resolved


def hostname_of(url: str | None) -> str:
    if not url:
        return ""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def is_http_url(url: str | None) -> bool:
    if not url:
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
