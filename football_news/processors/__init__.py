"""Normalization, classification, scoring and deduplication of fetched items."""

from .classify import classify_text
from .dedup import DedupStats, Deduplicator, jaccard, title_tokens
from .normalize import Normalizer
from .scoring import (
    OutletDirectory,
    Scorer,
    ScoringProfile,
    TagVocabulary,
    default_profile,
)

__all__ = [
    "classify_text",
    "DedupStats",
    "Deduplicator",
    "jaccard",
    "title_tokens",
    "Normalizer",
    "OutletDirectory",
    "Scorer",
    "ScoringProfile",
    "TagVocabulary",
    "default_profile",
]
