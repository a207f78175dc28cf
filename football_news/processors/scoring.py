from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..utils.logging import get_logger

logger = get_logger("fn.processors.scoring")

IMPORTANCE_MIN = 0
IMPORTANCE_MAX = 200

DEFAULT_CATEGORY_WEIGHTS: Dict[str, int] = {
    "transfer": 90,
    "match": 85,
    "injury": 75,
    "lineup": 70,
    "preview": 65,
    "analysis": 60,
    "general": 50,
}

# Hours since publish -> bonus, first band that fits wins
DEFAULT_RECENCY_BANDS: Tuple[Tuple[float, int], ...] = ((1, 30), (3, 20), (6, 15), (24, 10))

DEFAULT_BREAKING_TERMS: Tuple[str, ...] = (
    "breaking",
    "confirmed",
    "confirms",
    "official",
    "officially",
    "announces",
    "sacked",
    "sacks",
    "red card",
    "here we go",
    "done deal",
    "completes",
    "resigns",
)

DEFAULT_LEAGUE_TAGS: Dict[str, str] = {
    "premier league": "PremierLeague",
    "la liga": "LaLiga",
    "champions league": "ChampionsLeague",
    "europa league": "EuropaLeague",
    "serie a": "SerieA",
    "bundesliga": "Bundesliga",
    "ligue 1": "Ligue1",
}

DEFAULT_OUTLET_TIERS: Dict[str, int] = {
    "bbc.co.uk": 1,
    "bbc.com": 1,
    "skysports.com": 1,
    "theguardian.com": 1,
    "theathletic.com": 1,
    "espn.com": 2,
    "espn.co.uk": 2,
    "goal.com": 2,
    "transfermarkt.com": 2,
    "football365.com": 2,
    "fourfourtwo.com": 2,
    "marca.com": 2,
    "mirror.co.uk": 3,
    "thesun.co.uk": 3,
    "dailymail.co.uk": 3,
    "express.co.uk": 3,
}

DEFAULT_TRUST_OVERRIDES: Dict[str, int] = {
    "bbc.co.uk": 95,
    "bbc.com": 95,
    "skysports.com": 92,
    "theguardian.com": 95,
    "theathletic.com": 95,
}

DEFAULT_TEAM_TAGS: Dict[str, str] = {
    "manchester united": "ManchesterUnited",
    "manchester city": "ManchesterCity",
    "liverpool": "Liverpool",
    "chelsea": "Chelsea",
    "arsenal": "Arsenal",
    "tottenham": "Tottenham",
    "real madrid": "RealMadrid",
    "barcelona": "Barcelona",
    "bayern": "Bayern",
    "psg": "PSG",
}


@dataclass(slots=True)
class ScoringProfile:
    """Per-source scoring constants injected into the normalizer."""

    source_kind: str
    base_trust: int
    category_weights: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS))
    marquee_bonus: int = 20
    breaking_bonus: int = 50
    recency_bands: Tuple[Tuple[float, int], ...] = DEFAULT_RECENCY_BANDS
    breaking_window_hours: float = 2.0

    def category_weight(self, category: str) -> int:
        return self.category_weights.get(category, self.category_weights.get("general", 50))

    def recency_bonus(self, age_hours: float) -> int:
        for limit, bonus in self.recency_bands:
            if age_hours <= limit:
                return bonus
        return 0


def default_profile(source_kind: str) -> ScoringProfile:
    """Curated-domain search ranks above known RSS outlets, which rank above open web search."""
    if source_kind == "analysis":
        weights = dict(DEFAULT_CATEGORY_WEIGHTS)
        weights.update({"analysis": 75, "transfer": 85, "match": 60, "general": 65})
        return ScoringProfile(source_kind="analysis", base_trust=80, category_weights=weights)
    if source_kind == "rss":
        return ScoringProfile(source_kind="rss", base_trust=75)
    if source_kind == "breaking":
        return ScoringProfile(source_kind="breaking", base_trust=60)
    raise ValueError(f"Unknown source kind: {source_kind}")


def _domain_matches(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith("." + domain)


@dataclass(slots=True)
class OutletDirectory:
    """Static three-tier outlet allow-list keyed by domain, with optional trust overrides."""

    tiers: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_OUTLET_TIERS))
    overrides: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_TRUST_OVERRIDES))

    def tier_for(self, hostname: str) -> Optional[int]:
        best: Optional[Tuple[int, int]] = None
        for domain, tier in self.tiers.items():
            # Longest matching domain wins so sport.bbc.co.uk can differ from bbc.co.uk
            if _domain_matches(hostname, domain) and (best is None or len(domain) > best[0]):
                best = (len(domain), tier)
        return best[1] if best else None

    def override_for(self, hostname: str) -> Optional[int]:
        for domain, trust in self.overrides.items():
            if _domain_matches(hostname, domain):
                return trust
        return None

    def trust(self, base: int, hostname: str, fallback_tier: Optional[int] = None) -> Tuple[int, int]:
        """Return ``(trust_score, source_tier)`` for an outlet.

        Tier 1 lifts trust to at least 90, tier 2 keeps it within 80..89,
        tier 3 and unknown outlets are capped at 65.
        """
        tier = self.tier_for(hostname) or fallback_tier or 3
        if tier == 1:
            score = max(base, 90)
        elif tier == 2:
            score = min(max(base, 80), 89)
        else:
            score = min(base, 65)
        override = self.override_for(hostname)
        if override is not None:
            score = override
        return max(0, min(100, score)), tier


def _phrase_pattern(phrases: Iterable[str]) -> Optional[Pattern[str]]:
    items = sorted({p.lower() for p in phrases if p}, key=len, reverse=True)
    if not items:
        return None
    return re.compile(r"\b(?:" + "|".join(re.escape(p) for p in items) + r")\b")


@dataclass(slots=True)
class TagVocabulary:
    leagues: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LEAGUE_TAGS))
    teams: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEAM_TAGS))
    max_tags: int = 5
    query_words: int = 2

    def extract(self, text: str, query: str = "") -> List[str]:
        lowered = text.lower()
        tags: List[str] = []
        for phrase, tag in list(self.leagues.items()) + list(self.teams.items()):
            if phrase in lowered:
                tags.append(tag)
        significant = [w for w in query.split() if len(w) > 3]
        tags.extend(significant[: self.query_words])
        return list(dict.fromkeys(tags))[: self.max_tags]


class Scorer:
    """Trust, importance and breaking heuristics shared by every source."""

    def __init__(
        self,
        *,
        outlets: Optional[OutletDirectory] = None,
        vocabulary: Optional[TagVocabulary] = None,
        marquee_teams: Sequence[str] = (),
        breaking_terms: Sequence[str] = DEFAULT_BREAKING_TERMS,
    ) -> None:
        self.outlets = outlets or OutletDirectory()
        self.vocabulary = vocabulary or TagVocabulary()
        self._marquee = _phrase_pattern(marquee_teams)
        self._breaking = _phrase_pattern(breaking_terms)

    def trust(self, profile: ScoringProfile, hostname: str, feed_tier: Optional[int] = None) -> Tuple[int, int]:
        return self.outlets.trust(profile.base_trust, hostname, feed_tier)

    def mentions_marquee(self, text: str) -> bool:
        return bool(self._marquee and self._marquee.search(text.lower()))

    def is_breaking(self, profile: ScoringProfile, text: str, published_at: datetime, now: datetime) -> bool:
        if not (self._breaking and self._breaking.search(text.lower())):
            return False
        age_hours = (now - published_at).total_seconds() / 3600
        return 0 <= age_hours <= profile.breaking_window_hours

    def importance(
        self,
        profile: ScoringProfile,
        category: str,
        text: str,
        published_at: datetime,
        now: datetime,
        *,
        breaking: bool,
    ) -> int:
        score = profile.category_weight(category)
        if self.mentions_marquee(text):
            score += profile.marquee_bonus
        age_hours = max(0.0, (now - published_at).total_seconds() / 3600)
        score += profile.recency_bonus(age_hours)
        if breaking:
            score += profile.breaking_bonus
        return max(IMPORTANCE_MIN, min(IMPORTANCE_MAX, score))

    def tags(self, text: str, query: str) -> List[str]:
        return self.vocabulary.extract(text, query)
